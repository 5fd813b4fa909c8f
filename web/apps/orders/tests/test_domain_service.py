"""Unit tests for the OrderService coordinator.

These tests drive the service through the in-memory adapters and assert
on the state left in the stores: totals, stock levels, statuses and line
items, for the happy paths and every failure kind.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from apps.exceptions import (
    InsufficientStock,
    NoValidProductInOrder,
    OrderNotFound,
    ProductNotFound,
    UnexpectedError,
)
from apps.orders.adapters import (
    InMemoryOrderLineRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryStore,
)
from apps.orders.domain import LineItemRequest, OrderStatus
from apps.orders.services import OrderService
from apps.products.domain import Product

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def products(store):
    repo = InMemoryProductRepository(store)
    repo.save(Product(id=None, name="P1", price=Decimal("100"), stock=10))
    repo.save(Product(id=None, name="P2", price=Decimal("2.50"), stock=4))
    return repo


@pytest.fixture
def service(store, products):
    return OrderService(
        products=products,
        orders=InMemoryOrderRepository(store),
        lines=InMemoryOrderLineRepository(store),
        clock=lambda: FIXED_NOW,
    )


def test_create_order_places_order_and_reserves_stock(service, products):
    order = service.create_order([LineItemRequest(1, 5)])

    assert order.total_price == Decimal("500")
    assert order.status is OrderStatus.PLACED
    assert order.created_at == FIXED_NOW
    assert [(i.product_id, i.quantity) for i in order.items] == [(1, 5)]
    assert products.find_by_id(1).stock == 5
    assert order.id in service.lifecycle.registry


def test_created_order_completes_on_sweep(service):
    order = service.create_order([LineItemRequest(1, 5)])
    service.lifecycle.sweep()
    assert service.get_order(order.id).status is OrderStatus.COMPLETED


def test_create_order_admits_only_valid_items(service, products):
    order = service.create_order(
        [LineItemRequest(1, 2), LineItemRequest(2, 0), LineItemRequest(77, 3)]
    )
    assert [(i.product_id, i.quantity) for i in order.items] == [(1, 2)]
    assert order.total_price == Decimal("200")
    assert products.find_by_id(2).stock == 4


def test_create_order_with_no_valid_items_raises(service):
    with pytest.raises(NoValidProductInOrder):
        service.create_order([LineItemRequest(77, 1), LineItemRequest(1, 0)])
    assert service.list_all_orders() == []


def test_create_order_insufficient_stock_changes_nothing(service, products):
    with pytest.raises(InsufficientStock):
        service.create_order([LineItemRequest(1, 3), LineItemRequest(2, 5)])
    assert products.find_by_id(1).stock == 10
    assert products.find_by_id(2).stock == 4
    assert service.list_all_orders() == []


def test_create_order_single_item_over_stock(store, service, products):
    products.save(Product(id=1, name="P1", price=Decimal("100"), stock=3))
    with pytest.raises(InsufficientStock):
        service.create_order([LineItemRequest(1, 5)])
    assert products.find_by_id(1).stock == 3


def test_get_order_missing_raises(service):
    with pytest.raises(OrderNotFound):
        service.get_order(123)


def test_delete_order_missing_is_a_no_op(service):
    service.delete_order(123)


def test_delete_order_keeps_reserved_stock(service, products):
    order = service.create_order([LineItemRequest(1, 4)])
    service.delete_order(order.id)

    with pytest.raises(OrderNotFound):
        service.get_order(order.id)
    assert products.find_by_id(1).stock == 6
    assert order.id not in service.lifecycle.registry


def test_list_all_orders(service):
    a = service.create_order([LineItemRequest(1, 1)])
    b = service.create_order([LineItemRequest(2, 1)])
    assert [o.id for o in service.list_all_orders()] == [a.id, b.id]


def test_update_order_consumes_only_the_delta(service, products):
    order = service.create_order([LineItemRequest(1, 5)])
    products.save(Product(id=1, name="P1", price=Decimal("100"), stock=3))

    updated = service.update_order(order.id, [LineItemRequest(1, 8)])

    assert products.find_by_id(1).stock == 0
    assert updated.total_price == Decimal("800")
    assert [(i.product_id, i.quantity) for i in updated.items] == [(1, 8)]
    assert updated.status is OrderStatus.PLACED


def test_update_order_returns_stock_when_quantity_drops(service, products):
    order = service.create_order([LineItemRequest(1, 5), LineItemRequest(2, 2)])
    updated = service.update_order(order.id, [LineItemRequest(1, 1), LineItemRequest(2, 0)])

    assert products.find_by_id(1).stock == 9
    assert products.find_by_id(2).stock == 4
    assert [(i.product_id, i.quantity) for i in updated.items] == [(1, 1)]
    assert updated.total_price == Decimal("100")


def test_update_order_replaces_line_items(service, products):
    order = service.create_order([LineItemRequest(1, 1)])
    old_ids = {i.id for i in order.items}

    updated = service.update_order(order.id, [LineItemRequest(2, 2)])

    stored = service.get_order(order.id)
    assert [(i.product_id, i.quantity) for i in stored.items] == [(2, 2)]
    assert not old_ids & {i.id for i in updated.items}
    # P1 was left out of the request, so its unit stays taken
    assert products.find_by_id(1).stock == 9


def test_update_order_uses_current_price(service, products):
    order = service.create_order([LineItemRequest(2, 2)])
    products.save(Product(id=2, name="P2", price=Decimal("3.00"), stock=2))

    updated = service.update_order(order.id, [LineItemRequest(2, 2)])
    assert updated.total_price == Decimal("6.00")
    assert products.find_by_id(2).stock == 2


def test_update_order_missing_order_changes_nothing(service, products):
    with pytest.raises(OrderNotFound):
        service.update_order(999, [LineItemRequest(1, 1)])
    assert products.find_by_id(1).stock == 10


def test_update_order_beyond_old_plus_stock_raises(service, products):
    order = service.create_order([LineItemRequest(1, 5)])
    with pytest.raises(InsufficientStock):
        service.update_order(order.id, [LineItemRequest(1, 11)])
    assert products.find_by_id(1).stock == 5
    assert service.get_order(order.id).items[0].quantity == 5


def test_update_order_unknown_product_raises_before_any_change(service, products):
    order = service.create_order([LineItemRequest(1, 5)])
    with pytest.raises(ProductNotFound):
        service.update_order(order.id, [LineItemRequest(1, 1), LineItemRequest(55, 1)])
    assert products.find_by_id(1).stock == 5


def test_update_does_not_touch_status(service):
    order = service.create_order([LineItemRequest(1, 1)])
    service.lifecycle.sweep()
    updated = service.update_order(order.id, [LineItemRequest(1, 2)])
    assert updated.status is OrderStatus.COMPLETED


def test_unexpected_failures_are_wrapped(service, monkeypatch):
    def broken(order_id):
        raise ConnectionError("store unavailable")

    monkeypatch.setattr(service.orders, "find_by_id", broken)
    with pytest.raises(UnexpectedError) as e:
        service.get_order(1)
    assert isinstance(e.value.__cause__, ConnectionError)


def test_concurrent_create_cannot_take_the_same_units(service, products, monkeypatch):
    validate = service.reservations.validate
    raced = []

    def validate_then_race(requested):
        reservation = validate(requested)
        if not raced:
            raced.append(True)
            service.create_order([LineItemRequest(1, 10)])
        return reservation

    monkeypatch.setattr(service.reservations, "validate", validate_then_race)
    with pytest.raises(InsufficientStock):
        service.create_order([LineItemRequest(1, 10)])

    assert products.find_by_id(1).stock == 0
    assert len(service.list_all_orders()) == 1


def test_sweep_between_update_read_and_write_keeps_completion(service, monkeypatch):
    order = service.create_order([LineItemRequest(1, 1)])
    read = service.orders.find_by_id
    swept = []

    def read_then_sweep(order_id):
        found = read(order_id)
        if not swept:
            swept.append(None)
            swept[0] = service.lifecycle.sweep()
        return found

    monkeypatch.setattr(service.orders, "find_by_id", read_then_sweep)
    updated = service.update_order(order.id, [LineItemRequest(1, 3)])

    assert swept == [[order.id]]
    stored = read(order.id)
    assert stored.status is OrderStatus.COMPLETED
    assert updated.status is OrderStatus.COMPLETED
    assert [(i.product_id, i.quantity) for i in stored.items] == [(1, 3)]
    assert stored.total_price == Decimal("300")
    assert order.id not in service.lifecycle.registry


def test_update_between_sweep_read_and_write_keeps_new_items(service, products, monkeypatch):
    order = service.create_order([LineItemRequest(1, 1)])
    read = service.orders.find_by_id
    updates = []

    def read_then_update(order_id):
        found = read(order_id)
        if not updates:
            updates.append(None)
            updates[0] = service.update_order(order_id, [LineItemRequest(2, 2)])
        return found

    monkeypatch.setattr(service.orders, "find_by_id", read_then_update)
    assert service.lifecycle.sweep() == [order.id]

    stored = read(order.id)
    assert stored.status is OrderStatus.COMPLETED
    assert [(i.product_id, i.quantity) for i in stored.items] == [(2, 2)]
    assert stored.total_price == Decimal("5.00")
    assert products.find_by_id(2).stock == 2


def test_update_of_order_deleted_mid_update_gives_stock_back(service, products, monkeypatch):
    order = service.create_order([LineItemRequest(1, 2)])
    replace = service.orders.replace_items

    def delete_then_replace(order_id, items, total_price):
        service.orders.delete_by_id(order_id)
        return replace(order_id, items, total_price)

    monkeypatch.setattr(service.orders, "replace_items", delete_then_replace)
    with pytest.raises(OrderNotFound):
        service.update_order(order.id, [LineItemRequest(1, 5)])
    assert products.find_by_id(1).stock == 8

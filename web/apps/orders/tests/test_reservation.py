"""Unit tests for the stock reservation engine.

The engine runs against the in-memory product repository so stock changes
can be read back exactly as a caller would see them.
"""

import threading
from decimal import Decimal

import pytest

from apps.exceptions import InsufficientStock, NoValidProductInOrder, ProductNotFound
from apps.orders.adapters import InMemoryProductRepository, InMemoryStore
from apps.orders.domain import LineItemRequest
from apps.orders.reservation import StockReservationEngine
from apps.products.domain import Product


@pytest.fixture
def products():
    repo = InMemoryProductRepository(InMemoryStore())
    repo.save(Product(id=None, name="Keyboard", price=Decimal("100"), stock=10))
    repo.save(Product(id=None, name="Mouse", price=Decimal("0.10"), stock=3))
    return repo


@pytest.fixture
def engine(products):
    return StockReservationEngine(products)


def test_validate_sums_price_times_quantity(engine):
    res = engine.validate([LineItemRequest(1, 5), LineItemRequest(2, 3)])
    assert res.total_price == Decimal("500.30")
    assert [(i.product.id, i.quantity) for i in res.items] == [(1, 5), (2, 3)]


def test_validate_uses_exact_decimal_arithmetic(engine):
    res = engine.validate([LineItemRequest(2, 3)])
    assert res.total_price == Decimal("0.30")


def test_validate_skips_unknown_products_and_non_positive_quantities(engine):
    res = engine.validate([LineItemRequest(99, 1), LineItemRequest(2, 0), LineItemRequest(1, 2)])
    assert [i.product.id for i in res.items] == [1]
    assert res.total_price == Decimal("200")


def test_validate_without_admitted_items_raises(engine):
    with pytest.raises(NoValidProductInOrder):
        engine.validate([LineItemRequest(99, 1), LineItemRequest(1, -4)])


def test_validate_empty_request_raises(engine):
    with pytest.raises(NoValidProductInOrder):
        engine.validate([])


def test_validate_insufficient_stock_names_product_and_writes_nothing(engine, products):
    with pytest.raises(InsufficientStock) as e:
        engine.validate([LineItemRequest(1, 2), LineItemRequest(2, 4)])
    assert e.value.product_id == 2
    assert "Mouse" in str(e.value)
    assert e.value.available == 3 and e.value.requested == 4
    assert products.find_by_id(1).stock == 10
    assert products.find_by_id(2).stock == 3


def test_validate_merges_repeated_products(engine):
    # 2 + 2 exceeds the 3 units in stock even though each pair alone fits
    with pytest.raises(InsufficientStock):
        engine.validate([LineItemRequest(2, 2), LineItemRequest(2, 2)])


def test_reserve_decrements_and_persists(engine, products):
    engine.reserve(products.find_by_id(1), 4)
    assert products.find_by_id(1).stock == 6


def test_adjust_returns_stock_on_negative_delta(engine, products):
    engine.adjust(products.find_by_id(2), -2)
    assert products.find_by_id(2).stock == 5


def test_adjust_refuses_to_go_negative(engine, products):
    with pytest.raises(InsufficientStock):
        engine.adjust(products.find_by_id(2), 4)
    assert products.find_by_id(2).stock == 3


def test_plan_update_uses_deltas_for_stock_and_new_quantities_for_price(engine):
    plan = engine.plan_update({1: 5}, [LineItemRequest(1, 8)])
    assert [(a.product.id, a.delta, a.quantity) for a in plan.adjustments] == [(1, 3, 8)]
    assert plan.total_price == Decimal("800")


def test_plan_update_allows_old_plus_current_stock(engine):
    # 5 already held + 10 in stock
    plan = engine.plan_update({1: 5}, [LineItemRequest(1, 15)])
    assert plan.adjustments[0].delta == 10


def test_plan_update_beyond_old_plus_stock_raises(engine):
    with pytest.raises(InsufficientStock):
        engine.plan_update({1: 5}, [LineItemRequest(1, 16)])


def test_plan_update_unknown_product_raises(engine):
    with pytest.raises(ProductNotFound):
        engine.plan_update({}, [LineItemRequest(42, 1)])


def test_plan_update_zero_quantity_releases_commitment(engine):
    plan = engine.plan_update({1: 5}, [LineItemRequest(1, 0), LineItemRequest(2, 1)])
    assert [(a.product.id, a.delta) for a in plan.adjustments] == [(1, -5), (2, 1)]
    assert [a.product.id for a in plan.admitted] == [2]
    assert plan.total_price == Decimal("0.10")


def test_reserve_checks_stored_stock_not_the_validated_copy(engine, products):
    # both requests validate against the same 10 units
    first = engine.validate([LineItemRequest(1, 10)])
    second = engine.validate([LineItemRequest(1, 10)])

    engine.reserve_all(first.items)
    with pytest.raises(InsufficientStock) as e:
        engine.reserve_all(second.items)
    assert e.value.available == 0
    assert products.find_by_id(1).stock == 0


def test_concurrent_reservations_never_oversell(engine, products):
    keyboard = products.find_by_id(1)
    barrier = threading.Barrier(5)
    outcomes = []

    def reserve():
        barrier.wait()
        try:
            engine.reserve(keyboard, 3)
            outcomes.append("ok")
        except InsufficientStock:
            outcomes.append("rejected")

    threads = [threading.Thread(target=reserve) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 3
    assert products.find_by_id(1).stock == 1


def test_reserve_all_gives_back_earlier_items_when_a_later_one_fails(engine, products):
    res = engine.validate([LineItemRequest(1, 5), LineItemRequest(2, 3)])
    products.save(Product(id=2, name="Mouse", price=Decimal("0.10"), stock=1))

    with pytest.raises(InsufficientStock):
        engine.reserve_all(res.items)
    assert products.find_by_id(1).stock == 10
    assert products.find_by_id(2).stock == 1


def test_apply_undoes_earlier_changes_when_a_later_one_fails(engine, products):
    plan = engine.plan_update({1: 5, 2: 1}, [LineItemRequest(1, 2), LineItemRequest(2, 4)])
    assert [(a.product.id, a.delta) for a in plan.adjustments] == [(1, -3), (2, 3)]
    products.save(Product(id=2, name="Mouse", price=Decimal("0.10"), stock=0))

    with pytest.raises(InsufficientStock):
        engine.apply(plan.adjustments)
    assert products.find_by_id(1).stock == 10


def test_adjust_on_deleted_product_raises_not_found(engine, products):
    keyboard = products.find_by_id(1)
    products.delete_by_id(1)
    with pytest.raises(ProductNotFound):
        engine.adjust(keyboard, 1)

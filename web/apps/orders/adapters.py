"""In-process adapters for the store ports.

These adapters implement ``ProductRepository``, ``OrderRepository`` and
``OrderLineRepository`` on top of a shared ``InMemoryStore`` without any
database. They are intended for unit tests and local development.

Stored objects are never handed out directly: reads return deep copies
and writes store deep copies, so a caller only changes stored state by
calling a repository method, as with a real database. Conditional writes
(``adjust_stock``, ``compare_and_set_status``) check and change state under
the store lock.
"""

import copy
import itertools
import threading
from decimal import Decimal
from typing import Dict, List, Optional

from apps.products.domain import Product

from .domain import Order, OrderLineItem, OrderStatus


class InMemoryStore:
    """Tables held in dictionaries, guarded by one lock."""

    def __init__(self):
        self.lock = threading.RLock()
        self.products: Dict[int, Product] = {}
        self.orders: Dict[int, Order] = {}
        self._product_ids = itertools.count(1)
        self._order_ids = itertools.count(1)
        self._line_ids = itertools.count(1)

    def next_product_id(self) -> int:
        return next(self._product_ids)

    def next_order_id(self) -> int:
        return next(self._order_ids)

    def next_line_id(self) -> int:
        return next(self._line_ids)


class InMemoryProductRepository:
    """Stub implementation of ``ProductRepository``."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with self.store.lock:
            product = self.store.products.get(product_id)
            return copy.deepcopy(product) if product else None

    def save(self, product: Product) -> Product:
        with self.store.lock:
            if product.id is None:
                product.id = self.store.next_product_id()
            self.store.products[product.id] = copy.deepcopy(product)
            return product

    def find_all(self) -> List[Product]:
        with self.store.lock:
            return [copy.deepcopy(p) for _, p in sorted(self.store.products.items())]

    def delete_by_id(self, product_id: int) -> None:
        """Delete a product and every line item referencing it."""
        with self.store.lock:
            self.store.products.pop(product_id, None)
            for order in self.store.orders.values():
                order.items = [i for i in order.items if i.product_id != product_id]

    def adjust_stock(self, product_id: int, delta: int) -> Optional[Product]:
        with self.store.lock:
            product = self.store.products.get(product_id)
            if product is None or product.stock < delta:
                return None
            product.stock -= delta
            return copy.deepcopy(product)


class InMemoryOrderRepository:
    """Stub implementation of ``OrderRepository``."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_by_id(self, order_id: int) -> Optional[Order]:
        with self.store.lock:
            order = self.store.orders.get(order_id)
            return copy.deepcopy(order) if order else None

    def save(self, order: Order) -> Order:
        with self.store.lock:
            if order.id is None:
                order.id = self.store.next_order_id()
            for item in order.items:
                if item.id is None:
                    item.id = self.store.next_line_id()
                item.order_id = order.id
            self.store.orders[order.id] = copy.deepcopy(order)
            return order

    def delete_by_id(self, order_id: int) -> None:
        with self.store.lock:
            self.store.orders.pop(order_id, None)

    def find_all(self) -> List[Order]:
        with self.store.lock:
            return [copy.deepcopy(o) for _, o in sorted(self.store.orders.items())]

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        return [o for o in self.find_all() if o.status is status]

    def compare_and_set_status(self, order_id: int, expected: OrderStatus, target: OrderStatus) -> bool:
        with self.store.lock:
            order = self.store.orders.get(order_id)
            if order is None or order.status is not expected:
                return False
            order.status = target
            return True

    def replace_items(self, order_id: int, items: List[OrderLineItem], total_price: Decimal) -> Optional[Order]:
        with self.store.lock:
            order = self.store.orders.get(order_id)
            if order is None:
                return None
            order.total_price = total_price
            order.items = [
                OrderLineItem(id=self.store.next_line_id(), order_id=order_id, product_id=i.product_id, quantity=i.quantity)
                for i in items
            ]
            return copy.deepcopy(order)


class InMemoryOrderLineRepository:
    """Stub implementation of ``OrderLineRepository``.

    Appends the item to its order's stored item list.

    Raises:
        KeyError: If ``item.order_id`` does not name a stored order.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store

    def save(self, item: OrderLineItem) -> OrderLineItem:
        with self.store.lock:
            order = self.store.orders[item.order_id]
            if item.id is None:
                item.id = self.store.next_line_id()
            order.items = [i for i in order.items if i.id != item.id]
            order.items.append(copy.deepcopy(item))
            return item

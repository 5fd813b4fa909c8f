"""Repository layer for persisting orders.

These SQLAlchemy repositories implement the ``OrderRepository`` and
``OrderLineRepository`` ports. They map between ORM rows and the domain
dataclasses so services never see ORM types, and they open one session
per call like the rest of the persistence code.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update

from apps.db import get_session

from .domain import Order, OrderLineItem, OrderStatus
from .models import OrderLineModel, OrderModel


def to_domain(obj: OrderModel) -> Order:
    """Build a domain ``Order`` (with items) from a loaded ORM row."""
    return Order(
        id=obj.id,
        created_at=obj.created_at,
        status=OrderStatus.from_string(obj.status),
        total_price=obj.total_price,
        items=[
            OrderLineItem(id=row.id, order_id=obj.id, product_id=row.product_id, quantity=row.quantity)
            for row in obj.items
        ],
    )


class SqlOrderRepository:
    """Repository that persists Order domain objects using SQLAlchemy."""

    def find_by_id(self, order_id: int) -> Optional[Order]:
        with get_session() as s:
            obj = s.get(OrderModel, order_id)
            return to_domain(obj) if obj else None

    def save(self, order: Order) -> Order:
        """Insert or update an order and make its stored items match.

        Items with an id are updated in place, items without one are
        inserted, and stored items absent from ``order.items`` are deleted
        through the delete-orphan cascade.

        Args:
            order: Domain order to persist.

        Returns:
            The same order with its id and its items' ids assigned.
        """
        with get_session() as s:
            obj = s.get(OrderModel, order.id) if order.id is not None else None
            if obj is None:
                obj = OrderModel(id=order.id)
                s.add(obj)
            obj.created_at = order.created_at
            obj.status = order.status.value
            obj.total_price = order.total_price

            existing = {row.id: row for row in obj.items}
            rows = []
            for item in order.items:
                row = existing.get(item.id) if item.id is not None else None
                if row is None:
                    row = OrderLineModel()
                row.product_id = item.product_id
                row.quantity = item.quantity
                rows.append(row)
            obj.items = rows
            s.commit()

            order.id = obj.id
            for item, row in zip(order.items, rows):
                item.id = row.id
                item.order_id = obj.id
            return order

    def delete_by_id(self, order_id: int) -> None:
        with get_session() as s:
            obj = s.get(OrderModel, order_id)
            if obj is not None:
                s.delete(obj)
                s.commit()

    def find_all(self) -> List[Order]:
        with get_session() as s:
            rows = s.scalars(select(OrderModel).order_by(OrderModel.id)).all()
            return [to_domain(r) for r in rows]

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        with get_session() as s:
            rows = s.scalars(
                select(OrderModel).where(OrderModel.status == status.value).order_by(OrderModel.id)
            ).all()
            return [to_domain(r) for r in rows]

    def compare_and_set_status(self, order_id: int, expected: OrderStatus, target: OrderStatus) -> bool:
        """Write ``target`` to the status column if it still holds ``expected``."""
        with get_session() as s:
            result = s.execute(
                update(OrderModel)
                .where(OrderModel.id == order_id, OrderModel.status == expected.value)
                .values(status=target.value)
            )
            s.commit()
            return result.rowcount > 0

    def replace_items(self, order_id: int, items: List[OrderLineItem], total_price: Decimal) -> Optional[Order]:
        """Swap the stored line items and total of an order.

        The order row is locked for the duration (``SELECT ... FOR UPDATE``
        where the backend supports it) and its status column is never
        written, so a concurrent status change is kept.
        """
        with get_session() as s:
            obj = s.get(OrderModel, order_id, with_for_update=True)
            if obj is None:
                return None
            obj.total_price = total_price
            obj.items = [OrderLineModel(product_id=i.product_id, quantity=i.quantity) for i in items]
            s.commit()
            return to_domain(obj)


class SqlOrderLineRepository:
    """Persists single line items of an existing order."""

    def save(self, item: OrderLineItem) -> OrderLineItem:
        with get_session() as s:
            row = s.get(OrderLineModel, item.id) if item.id is not None else None
            if row is None:
                row = OrderLineModel()
                s.add(row)
            row.order_id = item.order_id
            row.product_id = item.product_id
            row.quantity = item.quantity
            s.commit()
            item.id = row.id
            return item

"""SQLAlchemy repository for products.

Each method opens its own session and commits before returning, so the
repository can be shared freely between request threads.
"""

from typing import List, Optional

from sqlalchemy import delete, select, update

from apps.db import get_session
from apps.orders.models import OrderLineModel

from .domain import Product
from .models import ProductModel


def to_domain(obj: ProductModel) -> Product:
    return Product(
        id=obj.id,
        name=obj.name,
        description=obj.description or "",
        price=obj.price,
        stock=obj.stock,
    )


class SqlProductRepository:
    """Repository that persists Product domain objects using SQLAlchemy."""

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with get_session() as s:
            obj = s.get(ProductModel, product_id)
            return to_domain(obj) if obj else None

    def save(self, product: Product) -> Product:
        """Insert or update a product.

        Args:
            product: Domain product; a None id means insert.

        Returns:
            The same product with ``id`` set to the stored primary key.
        """
        with get_session() as s:
            obj = s.get(ProductModel, product.id) if product.id is not None else None
            if obj is None:
                obj = ProductModel(id=product.id)
                s.add(obj)
            obj.name = product.name
            obj.description = product.description
            obj.price = product.price
            obj.stock = product.stock
            s.commit()
            product.id = obj.id
            return product

    def find_all(self) -> List[Product]:
        with get_session() as s:
            rows = s.scalars(select(ProductModel).order_by(ProductModel.id)).all()
            return [to_domain(r) for r in rows]

    def delete_by_id(self, product_id: int) -> None:
        """Delete a product and the line items that reference it."""
        with get_session() as s:
            s.execute(delete(OrderLineModel).where(OrderLineModel.product_id == product_id))
            s.execute(delete(ProductModel).where(ProductModel.id == product_id))
            s.commit()

    def adjust_stock(self, product_id: int, delta: int) -> Optional[Product]:
        """Take ``delta`` units in a single guarded UPDATE.

        The row only changes while ``stock >= delta``, so concurrent
        reservations cannot drive the stock below zero.
        """
        with get_session() as s:
            result = s.execute(
                update(ProductModel)
                .where(ProductModel.id == product_id, ProductModel.stock >= delta)
                .values(stock=ProductModel.stock - delta)
            )
            if result.rowcount == 0:
                s.rollback()
                return None
            s.commit()
            obj = s.get(ProductModel, product_id)
            return to_domain(obj) if obj else None

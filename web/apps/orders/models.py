"""SQLAlchemy models for orders and their line items."""

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import mapped_column, relationship

from apps.db import Base
from apps.products.models import ProductModel


class OrderModel(Base):
    """SQLAlchemy model representing an order.

    Attributes:
        id: Integer primary key.
        created_at: Creation timestamp.
        status: Lowercase ``OrderStatus`` value.
        total_price: Derived order total.
        items: Owned line items; removed together with the order and
            when dropped from the collection.
    """

    __tablename__ = "store_order"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at = mapped_column(DateTime(timezone=True), nullable=False)
    status = mapped_column(String(32), nullable=False, index=True)
    total_price = mapped_column(Numeric(14, 2, asdecimal=True), nullable=False, default=0)

    items = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderLineModel.id",
    )


class OrderLineModel(Base):
    """SQLAlchemy model for the order-product association."""

    __tablename__ = "order_product"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id = mapped_column(ForeignKey("store_order.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = mapped_column(ForeignKey(ProductModel.id, ondelete="CASCADE"), nullable=False, index=True)
    quantity = mapped_column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")

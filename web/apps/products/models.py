"""SQLAlchemy model for products."""

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import mapped_column

from apps.db import Base


class ProductModel(Base):
    """SQLAlchemy model representing a product and its stock.

    Attributes:
        id: Integer primary key.
        name: Product name (max 200 chars).
        description: Free text description.
        price: Unit price, exact decimal with 2 fractional digits.
        stock: Available units (non-null, defaults to 0).
    """

    __tablename__ = "products"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    name = mapped_column(String(200), nullable=False)
    description = mapped_column(Text, nullable=False, default="")
    price = mapped_column(Numeric(12, 2, asdecimal=True), nullable=False)
    stock = mapped_column(Integer, nullable=False, default=0)

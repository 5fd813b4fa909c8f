"""Pydantic schemas for products."""

from decimal import Decimal

from pydantic import BaseModel, Field

from .domain import Product


class ProductIn(BaseModel):
    """Input schema for creating or replacing a product.

    Attributes:
        name: Display name (1-200 chars).
        description: Optional free text.
        price: Non-negative unit price with at most 2 decimal places.
        stock: Non-negative units available.
    """

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(ge=0)


class ProductOut(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    stock: int

    @classmethod
    def from_domain(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
        )

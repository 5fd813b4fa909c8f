"""Pydantic schemas for orders.

This module exposes the request/response schemas used by the orders API
and the helpers mapping them to and from domain objects.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .domain import LineItemRequest, Order


class OrderLineIn(BaseModel):
    """Input schema for a single order line item.

    Attributes:
        product_id: Identifier of the requested product.
        quantity: Requested units. Zero or negative quantities are not
            rejected here; the order services skip them (create) or treat
            them as a removal (update).
    """

    product_id: int
    quantity: int

    def to_domain(self) -> LineItemRequest:
        return LineItemRequest(product_id=self.product_id, quantity=self.quantity)


class OrderLinesDTO(BaseModel):
    """Body of the create and update endpoints.

    Attributes:
        items: Requested line items. The list may be empty; an order with
            no admissible item is rejected by the domain, not by the schema.
    """

    items: list[OrderLineIn] = Field(default_factory=list)

    def to_domain(self) -> list[LineItemRequest]:
        return [i.to_domain() for i in self.items]


class OrderLineOut(BaseModel):
    id: int
    product_id: int
    quantity: int


class OrderReadDTO(BaseModel):
    """Response schema for a single order."""

    id: int
    created_at: datetime
    status: str
    total_price: Decimal
    items: list[OrderLineOut]

    @classmethod
    def from_domain(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            created_at=order.created_at,
            status=order.status.value,
            total_price=order.total_price,
            items=[OrderLineOut(id=i.id, product_id=i.product_id, quantity=i.quantity) for i in order.items],
        )

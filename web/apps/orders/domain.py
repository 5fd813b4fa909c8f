"""Domain models and ports for orders.

This module contains the order status enumeration, simple dataclasses for
orders and their line items, and protocol definitions (ports) for the
persistence collaborators the order services depend on.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Protocol

from apps.exceptions import UnknownOrderStatus


# ---- Enums ----
class OrderStatus(str, Enum):
    """Enumeration of the possible order statuses.

    The happy path is CREATED -> PLACED -> COMPLETED. CANCELED and ANULATED
    are administrative end states. The value is the lowercase string kept
    in storage.
    """

    CREATED = "created"
    PLACED = "placed"
    COMPLETED = "completed"
    CANCELED = "canceled"
    ANULATED = "anulated"

    @classmethod
    def from_string(cls, status: str) -> "OrderStatus":
        """Parse a status string, ignoring case.

        Args:
            status: Free-form status text such as ``"Placed"``.

        Returns:
            The matching OrderStatus.

        Raises:
            UnknownOrderStatus: If no status matches.
        """
        wanted = (status or "").strip().lower()
        for member in cls:
            if member.value == wanted:
                return member
        raise UnknownOrderStatus(f"Unknown status: {status}")


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class LineItemRequest:
    """A requested (product, quantity) pair, as received from a client.

    Attributes:
        product_id: Identifier of the requested product.
        quantity: Units requested. Zero or negative values are accepted
            here and skipped by the reservation engine.
    """

    product_id: int
    quantity: int


@dataclass
class OrderLineItem:
    """A product and quantity attached to one order.

    Attributes:
        id: Persistent identifier, or None if not yet saved.
        order_id: Owning order.
        product_id: Referenced product.
        quantity: Committed units, always positive.
    """

    id: Optional[int]
    order_id: Optional[int]
    product_id: int
    quantity: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    """Container for order data.

    Attributes:
        id: Persistent identifier, or None if not yet saved.
        created_at: Creation timestamp.
        status: Current OrderStatus.
        total_price: Sum of price x quantity over the line items. Derived
            by the services, never set from client input.
        items: Line items owned by the order.
    """

    id: Optional[int]
    created_at: datetime = field(default_factory=utcnow)
    status: OrderStatus = OrderStatus.CREATED
    total_price: Decimal = Decimal("0")
    items: List[OrderLineItem] = field(default_factory=list)

    def committed_quantities(self) -> dict[int, int]:
        """Map product id -> quantity currently committed by this order."""
        committed: dict[int, int] = {}
        for item in self.items:
            committed[item.product_id] = committed.get(item.product_id, 0) + item.quantity
        return committed


# ---- Ports (DIP) ----
class OrderRepository(Protocol):
    """Port describing order persistence.

    ``save`` is an upsert that also makes the stored line items match
    ``order.items`` exactly: items missing from the list are deleted.
    """

    def find_by_id(self, order_id: int) -> Optional[Order]:
        raise NotImplementedError()

    def save(self, order: Order) -> Order:
        """Persist ``order`` and its line items; returns it with ids assigned."""
        raise NotImplementedError()

    def delete_by_id(self, order_id: int) -> None:
        """Delete the order and its items. Missing ids are ignored."""
        raise NotImplementedError()

    def find_all(self) -> List[Order]:
        raise NotImplementedError()

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        raise NotImplementedError()

    def compare_and_set_status(self, order_id: int, expected: OrderStatus, target: OrderStatus) -> bool:
        """Set ``target`` only if the stored status is still ``expected``.

        Nothing but the status column is written.

        Returns:
            True if the order was changed, False if it is missing or its
            status moved on.
        """
        raise NotImplementedError()

    def replace_items(self, order_id: int, items: List[OrderLineItem], total_price: Decimal) -> Optional[Order]:
        """Replace the line items and total of a stored order.

        The stored status is left untouched.

        Returns:
            The updated order, or None if it does not exist.
        """
        raise NotImplementedError()


class OrderLineRepository(Protocol):
    """Port for persisting a single line item of an existing order."""

    def save(self, item: OrderLineItem) -> OrderLineItem:
        raise NotImplementedError()

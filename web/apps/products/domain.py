"""Product entity and the port used to store it."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Protocol


@dataclass
class Product:
    """A sellable product and its current stock.

    Attributes:
        id: Persistent identifier, or None if not yet saved.
        name: Display name, used in error messages.
        description: Free text description.
        price: Unit price. Kept as ``Decimal`` so totals never drift.
        stock: Units available for new reservations. Never negative.
    """

    id: Optional[int]
    name: str
    price: Decimal
    stock: int
    description: str = ""


class ProductRepository(Protocol):
    """Port describing product persistence used by the domain."""

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """Return the product with ``product_id`` or None."""
        raise NotImplementedError()

    def save(self, product: Product) -> Product:
        """Insert or update ``product`` and return it with its id assigned."""
        raise NotImplementedError()

    def find_all(self) -> List[Product]:
        raise NotImplementedError()

    def delete_by_id(self, product_id: int) -> None:
        raise NotImplementedError()

    def adjust_stock(self, product_id: int, delta: int) -> Optional[Product]:
        """Atomically take ``delta`` units (give back when negative).

        The change is applied in the store itself, guarded by
        ``stock >= delta``, never computed from an earlier read.

        Returns:
            The product after the change, or None when it does not exist
            or holds fewer than ``delta`` units.
        """
        raise NotImplementedError()

"""Stock reservation for orders.

``StockReservationEngine`` decides which requested line items are
admissible, prices them and moves stock. Validation is a complete pass
over the request before anything is written. Stock itself is only moved
through guarded decrements in the product store, and a batch that fails
part way gives back what it already took.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from apps.exceptions import InsufficientStock, NoValidProductInOrder, ProductNotFound
from apps.products.domain import Product, ProductRepository

from .domain import LineItemRequest

logger = logging.getLogger("store.reservation")


@dataclass(frozen=True)
class AdmittedItem:
    """A requested line item that passed validation."""

    product: Product
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


@dataclass
class Reservation:
    """Outcome of validating a create request.

    Attributes:
        total_price: Sum of price x quantity over ``items``.
        items: Admitted items, in request order.
    """

    total_price: Decimal
    items: List[AdmittedItem] = field(default_factory=list)


@dataclass(frozen=True)
class StockAdjustment:
    """Net stock change for one product of an order being updated.

    Attributes:
        product: Product as loaded during validation.
        delta: New quantity minus previously committed quantity. Positive
            values consume stock, negative values return it.
        quantity: New requested quantity (zero when the product is dropped).
    """

    product: Product
    delta: int
    quantity: int


@dataclass
class UpdatePlan:
    """Outcome of validating an update request.

    ``total_price`` is computed over the new quantities while
    ``adjustments`` carry the deltas; the two are deliberately separate.
    """

    total_price: Decimal
    adjustments: List[StockAdjustment] = field(default_factory=list)

    @property
    def admitted(self) -> List[StockAdjustment]:
        """Adjustments that end up as line items (quantity > 0)."""
        return [a for a in self.adjustments if a.quantity > 0]


def merge_requests(requested: Iterable[LineItemRequest]) -> Dict[int, int]:
    """Sum requested quantities per product id, keeping first-seen order."""
    merged: Dict[int, int] = {}
    for req in requested:
        merged[req.product_id] = merged.get(req.product_id, 0) + req.quantity
    return merged


class StockReservationEngine:
    """Validates requested quantities and moves stock for orders."""

    def __init__(self, products: ProductRepository):
        self.products = products

    def validate(self, requested: Iterable[LineItemRequest]) -> Reservation:
        """Validate a create request and compute its total.

        Unknown products and non-positive quantities are skipped without
        error. Nothing is written.

        Args:
            requested: Requested line items. Repeated product ids are
                merged by summing their quantities.

        Returns:
            Reservation with the admitted items and their total price.

        Raises:
            InsufficientStock: If a product holds less stock than requested.
            NoValidProductInOrder: If no item was admitted.
        """
        reservation = Reservation(total_price=Decimal("0"))
        for product_id, quantity in merge_requests(requested).items():
            product = self.products.find_by_id(product_id)
            if product is None:
                logger.info("skipping unknown product", extra={"product_id": product_id})
                continue
            if quantity > product.stock:
                raise InsufficientStock(product.id, product.name, product.stock, quantity)
            if quantity <= 0:
                continue
            item = AdmittedItem(product=product, quantity=quantity)
            reservation.items.append(item)
            reservation.total_price += item.subtotal

        if not reservation.items:
            raise NoValidProductInOrder()
        return reservation

    def plan_update(self, committed: Dict[int, int], requested: Iterable[LineItemRequest]) -> UpdatePlan:
        """Validate an update request against the quantities already held.

        Args:
            committed: Product id -> quantity the order currently holds.
            requested: New line items for the order. Non-positive
                quantities release whatever the order held for that product.

        Returns:
            UpdatePlan with one adjustment per requested product.

        Raises:
            ProductNotFound: If a requested product does not exist.
            InsufficientStock: If a positive delta exceeds current stock.
        """
        plan = UpdatePlan(total_price=Decimal("0"))
        for product_id, quantity in merge_requests(requested).items():
            product = self.products.find_by_id(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            quantity = max(quantity, 0)
            delta = quantity - committed.get(product_id, 0)
            if delta > product.stock:
                raise InsufficientStock(product.id, product.name, product.stock, delta)
            plan.adjustments.append(StockAdjustment(product=product, delta=delta, quantity=quantity))
            plan.total_price += product.price * quantity
        return plan

    def reserve(self, product: Product, quantity: int) -> Product:
        """Take ``quantity`` units out of ``product`` stock."""
        return self.adjust(product, quantity)

    def adjust(self, product: Product, delta: int) -> Product:
        """Apply a signed stock change in the product store.

        The change is made by ``ProductRepository.adjust_stock`` against the
        stored stock, not against ``product.stock``, which may be stale.

        Args:
            product: Product to change, as loaded during validation.
            delta: Units to take (positive) or give back (negative).

        Returns:
            The product after the change.

        Raises:
            InsufficientStock: If the stored stock is below ``delta``.
            ProductNotFound: If the product no longer exists.
        """
        updated = self.products.adjust_stock(product.id, delta)
        if updated is None:
            current = self.products.find_by_id(product.id)
            if current is None:
                raise ProductNotFound(product.id)
            raise InsufficientStock(current.id, current.name, current.stock, delta)
        return updated

    def reserve_all(self, items: Iterable[AdmittedItem]) -> List[Product]:
        """Reserve every admitted item, or none of them.

        If a reservation fails, the ones already taken are given back
        before the error propagates.
        """
        return self._apply_all([(item.product, item.quantity) for item in items])

    def apply(self, adjustments: Iterable[StockAdjustment]) -> List[Product]:
        """Apply every non-zero adjustment of an update plan, or none of them."""
        return self._apply_all([(a.product, a.delta) for a in adjustments if a.delta])

    def _apply_all(self, changes: List[Tuple[Product, int]]) -> List[Product]:
        applied: List[Tuple[Product, int]] = []
        updated: List[Product] = []
        try:
            for product, delta in changes:
                updated.append(self.adjust(product, delta))
                applied.append((product, delta))
        except Exception:
            self._give_back(applied)
            logger.info("stock changes rolled back", extra={"products": [p.id for p, _ in applied]})
            raise
        return updated

    def release_all(self, items: Iterable[AdmittedItem]) -> None:
        """Give back the stock taken by ``reserve_all``."""
        self._give_back([(item.product, item.quantity) for item in items])

    def revert(self, adjustments: Iterable[StockAdjustment]) -> None:
        """Undo the stock changes made by ``apply``."""
        self._give_back([(a.product, a.delta) for a in adjustments if a.delta])

    def _give_back(self, applied: List[Tuple[Product, int]]) -> None:
        for product, delta in reversed(applied):
            if self.products.adjust_stock(product.id, -delta) is None:
                logger.warning("could not undo stock change", extra={"product_id": product.id, "delta": delta})

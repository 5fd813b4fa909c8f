"""Order coordinator.

``OrderService`` is the entry point the HTTP layer uses for orders. It
wires the stock reservation engine, the order stores and the lifecycle
manager together and does not perform any I/O of its own beyond the
ports it is given.
"""

import functools
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from apps.exceptions import OrderNotFound, StoreError, UnexpectedError
from apps.products.domain import ProductRepository

from .domain import (
    LineItemRequest,
    Order,
    OrderLineItem,
    OrderLineRepository,
    OrderRepository,
    utcnow,
)
from .lifecycle import OrderLifecycleManager, PendingOrderRegistry
from .reservation import StockReservationEngine

logger = logging.getLogger("store.orders")


def _domain_errors_only(func):
    """Let StoreError through and wrap anything else in UnexpectedError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StoreError as exc:
            logger.warning("%s rejected: %s", func.__name__, exc, extra={"code": exc.code})
            raise
        except Exception as exc:
            logger.exception("%s failed unexpectedly", func.__name__)
            raise UnexpectedError(f"An unexpected error occurred: {exc}") from exc

    return wrapper


class OrderService:
    """Coordinates creating, reading, updating and deleting orders.

    Args:
        products: Product store used for lookups and stock changes.
        orders: Order store.
        lines: Line item store used while an order is being created.
        registry: Pending-order registry shared with the completion
            sweeper. A private one is created when omitted.
        clock: Returns the creation timestamp for new orders.
    """

    def __init__(
        self,
        products: ProductRepository,
        orders: OrderRepository,
        lines: OrderLineRepository,
        registry: Optional[PendingOrderRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.products = products
        self.orders = orders
        self.lines = lines
        self.reservations = StockReservationEngine(products)
        self.lifecycle = OrderLifecycleManager(orders, registry)
        self.clock = clock or utcnow

    @_domain_errors_only
    def create_order(self, requested: Iterable[LineItemRequest]) -> Order:
        """Create and place an order for the requested line items.

        Unknown products and non-positive quantities are skipped; at least
        one item must remain. Stock is only touched once every item has
        been validated, and it is taken with guarded decrements before the
        order is written, so two concurrent orders cannot both take the
        last units.

        Args:
            requested: Requested (product id, quantity) pairs.

        Returns:
            The placed order, with its line items.

        Raises:
            NoValidProductInOrder: If no requested item is admissible.
            InsufficientStock: If a product lacks stock for its quantity.
            UnexpectedError: For any other failure.
        """
        reservation = self.reservations.validate(requested)
        self.reservations.reserve_all(reservation.items)

        try:
            order = Order(id=None, created_at=self.clock(), total_price=reservation.total_price)
            order = self.lifecycle.create(order)
            for admitted in reservation.items:
                item = self.lines.save(
                    OrderLineItem(id=None, order_id=order.id, product_id=admitted.product.id, quantity=admitted.quantity)
                )
                order.items.append(item)
        except Exception:
            self.reservations.release_all(reservation.items)
            raise

        return self.lifecycle.place(order)

    @_domain_errors_only
    def get_order(self, order_id: int) -> Order:
        """Return the order with ``order_id``.

        Raises:
            OrderNotFound: If it does not exist.
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    @_domain_errors_only
    def delete_order(self, order_id: int) -> None:
        """Delete an order if it exists. Reserved stock is not given back."""
        self.orders.delete_by_id(order_id)
        self.lifecycle.registry.deregister(order_id)
        logger.info("order deleted", extra={"order_id": order_id})

    @_domain_errors_only
    def list_all_orders(self) -> List[Order]:
        return self.orders.find_all()

    @_domain_errors_only
    def update_order(self, order_id: int, requested: Iterable[LineItemRequest]) -> Order:
        """Replace the line items of an order.

        Stock moves by the difference between each product's new quantity
        and the quantity the order held before; the total is recomputed
        from the new quantities at current prices. Only the items and the
        total are written, so the order status does not change, even if the
        completion sweep moves it while the update runs.

        Products the order held but the request leaves out lose their line
        items, yet their stock is not given back. Send quantity 0 to
        release a product.

        Args:
            order_id: Order to update.
            requested: The complete new set of line items. A product sent
                with quantity 0 is removed from the order and its stock
                given back.

        Returns:
            The updated order.

        Raises:
            OrderNotFound: If the order does not exist.
            ProductNotFound: If a requested product does not exist.
            InsufficientStock: If a product cannot cover the increase.
            UnexpectedError: For any other failure.
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        plan = self.reservations.plan_update(order.committed_quantities(), requested)
        self.reservations.apply(plan.adjustments)

        items = [
            OrderLineItem(id=None, order_id=order_id, product_id=a.product.id, quantity=a.quantity)
            for a in plan.admitted
        ]
        try:
            saved = self.orders.replace_items(order_id, items, plan.total_price)
        except Exception:
            self.reservations.revert(plan.adjustments)
            raise
        if saved is None:
            self.reservations.revert(plan.adjustments)
            raise OrderNotFound(order_id)
        logger.info("order updated", extra={"order_id": saved.id})
        return saved

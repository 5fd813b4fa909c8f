"""Order status lifecycle and the deferred completion sweep.

New orders are written twice on creation (CREATED, then PLACED) and then
registered in a ``PendingOrderRegistry``. A ``CompletionSweeper`` thread
periodically asks the ``OrderLifecycleManager`` to move every registered
order that is still PLACED to COMPLETED.

The registry lives in process memory and is shared between request
threads (which register) and the sweep thread (which deregisters), so all
access goes through a lock. It is only a cache: ``recover()`` rebuilds it
from the order store after a restart.
"""

import logging
import threading
from typing import Dict, FrozenSet, List, Optional, Set

from apps.exceptions import InvalidStatusTransition

from .domain import Order, OrderRepository, OrderStatus

logger = logging.getLogger("store.lifecycle")

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.PLACED, OrderStatus.CANCELED, OrderStatus.ANULATED}),
    OrderStatus.PLACED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELED, OrderStatus.ANULATED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
    OrderStatus.ANULATED: frozenset(),
}


class PendingOrderRegistry:
    """Thread-safe set of order ids waiting for completion."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids: Set[int] = set()

    def register(self, order_id: int) -> None:
        with self._lock:
            self._ids.add(order_id)

    def deregister(self, order_id: int) -> None:
        with self._lock:
            self._ids.discard(order_id)

    def snapshot(self) -> List[int]:
        """Return the registered ids, sorted, as an independent list."""
        with self._lock:
            return sorted(self._ids)

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

    def __contains__(self, order_id: int) -> bool:
        with self._lock:
            return order_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


class OrderLifecycleManager:
    """Owns order status changes and the completion sweep."""

    def __init__(self, orders: OrderRepository, registry: Optional[PendingOrderRegistry] = None):
        self.orders = orders
        self.registry = registry if registry is not None else PendingOrderRegistry()

    def transition(self, order: Order, target: OrderStatus) -> Order:
        """Move ``order`` to ``target`` and persist it.

        Raises:
            InvalidStatusTransition: If the move is not in ALLOWED_TRANSITIONS.
        """
        if target not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidStatusTransition(order.status, target)
        order.status = target
        return self.orders.save(order)

    def create(self, order: Order) -> Order:
        """Write the creation checkpoint: status CREATED, first save."""
        order.status = OrderStatus.CREATED
        saved = self.orders.save(order)
        logger.info("order created", extra={"order_id": saved.id})
        return saved

    def place(self, order: Order) -> Order:
        """Advance a created order to PLACED and schedule its completion."""
        saved = self.transition(order, OrderStatus.PLACED)
        self.registry.register(saved.id)
        logger.info("order placed", extra={"order_id": saved.id})
        return saved

    def sweep(self) -> List[int]:
        """Complete every registered order that is still PLACED.

        Orders in any other status stay registered and are looked at
        again on the next sweep. Ids whose order no longer exists are
        dropped. Completion writes only the status column, and only while
        the stored status is still PLACED, so an update running at the
        same time keeps its items and total.

        Returns:
            Ids of the orders completed by this sweep.
        """
        completed: List[int] = []
        for order_id in self.registry.snapshot():
            order = self.orders.find_by_id(order_id)
            if order is None:
                self.registry.deregister(order_id)
                continue
            if order.status is not OrderStatus.PLACED:
                continue
            if not self.orders.compare_and_set_status(order_id, OrderStatus.PLACED, OrderStatus.COMPLETED):
                continue
            self.registry.deregister(order_id)
            completed.append(order_id)
        if completed:
            logger.info("orders completed", extra={"order_ids": completed})
        return completed

    def recover(self) -> int:
        """Register every PLACED order found in the store.

        Returns:
            Number of orders registered.
        """
        placed = self.orders.find_by_status(OrderStatus.PLACED)
        for order in placed:
            self.registry.register(order.id)
        if placed:
            logger.info("recovered placed orders", extra={"count": len(placed)})
        return len(placed)


class CompletionSweeper:
    """Daemon thread that calls ``OrderLifecycleManager.sweep`` periodically.

    The thread waits on an Event between runs, so ``stop()`` returns
    promptly even with long intervals. A failing sweep is logged and the
    timer keeps going.
    """

    def __init__(self, lifecycle: OrderLifecycleManager, interval: float = 120.0):
        self.lifecycle = lifecycle
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="order-completion-sweeper", daemon=True)

    def start(self) -> None:
        logger.info("completion sweeper started", extra={"interval": self.interval})
        self._thread.start()

    def stop(self, join: bool = True) -> None:
        self._stop_event.set()
        if join and self._thread.is_alive():
            self._thread.join()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def run_once(self) -> List[int]:
        try:
            return self.lifecycle.sweep()
        except Exception:
            logger.exception("completion sweep failed")
            return []

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.run_once()

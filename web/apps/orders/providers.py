"""Service provider helpers for wiring services with repositories.

``get_order_service`` and ``get_product_service`` return services backed
by the SQLAlchemy repositories, or by the in-process adapters when
``settings.USE_IN_MEMORY_STORE`` is truthy. The pending-order registry
and the in-memory store are process-wide, so every request and the
completion sweeper see the same state.
"""

import threading
from typing import Optional

from apps import settings
from apps.products.repository import SqlProductRepository
from apps.products.services import ProductService

from .adapters import (
    InMemoryOrderLineRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryStore,
)
from .lifecycle import OrderLifecycleManager, PendingOrderRegistry
from .repository import SqlOrderLineRepository, SqlOrderRepository
from .services import OrderService

_lock = threading.Lock()
_registry = PendingOrderRegistry()
_memory_store: Optional[InMemoryStore] = None


def get_memory_store() -> InMemoryStore:
    global _memory_store
    with _lock:
        if _memory_store is None:
            _memory_store = InMemoryStore()
        return _memory_store


def reset() -> None:
    """Forget the in-memory store and every registered order."""
    global _memory_store
    with _lock:
        _memory_store = None
    _registry.clear()


def _repositories() -> dict:
    if getattr(settings, "USE_IN_MEMORY_STORE", False):
        store = get_memory_store()
        return {
            "products": InMemoryProductRepository(store),
            "orders": InMemoryOrderRepository(store),
            "lines": InMemoryOrderLineRepository(store),
        }
    return {
        "products": SqlProductRepository(),
        "orders": SqlOrderRepository(),
        "lines": SqlOrderLineRepository(),
    }


def get_order_service() -> OrderService:
    """Return an OrderService wired for the configured store.

    Returns:
        OrderService: A service sharing the process-wide registry.
    """
    return OrderService(registry=_registry, **_repositories())


def get_product_service() -> ProductService:
    return ProductService(_repositories()["products"])


def get_lifecycle_manager() -> OrderLifecycleManager:
    return OrderLifecycleManager(_repositories()["orders"], _registry)

"""Store management API built with FastAPI.

This module assembles the application: JSON logging, the request-id
middleware, the orders/products/monitoring routers and a fallback handler
for unexpected errors. On startup it waits for the database (unless the
in-memory store is configured), rebuilds the pending-order registry from
the order store and starts the completion sweeper; on shutdown it stops
the sweeper.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from apps import db, settings
from apps.exceptions import StoreError
from apps.monitoring.api import router as monitoring_router
from apps.orders.lifecycle import CompletionSweeper
from apps.orders.providers import get_lifecycle_manager
from apps.orders.views import error_response
from apps.orders.views import router as orders_router
from apps.products.views import router as products_router
from gateway.logging_filters import configure_logging
from gateway.middleware import RequestIdMiddleware

logger = logging.getLogger("store.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not getattr(settings, "USE_IN_MEMORY_STORE", False):
        db.wait_for_db()
        db.init_db()

    lifecycle = get_lifecycle_manager()
    lifecycle.recover()

    sweeper = None
    if getattr(settings, "ORDER_SWEEP_ENABLED", True):
        sweeper = CompletionSweeper(lifecycle, interval=getattr(settings, "ORDER_COMPLETION_INTERVAL_SECS", 120.0))
        sweeper.start()
    app.state.sweeper = sweeper
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.stop()


def create_app() -> FastAPI:
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = FastAPI(title="Store Management Service", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)
    app.include_router(monitoring_router)
    app.include_router(products_router)
    app.include_router(orders_router)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return error_response(exc)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            {"detail": "UNEXPECTED_ERROR", "message": "An unexpected error occurred."},
            status_code=500,
        )

    return app


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn using the host/port/worker settings."""
    workers = getattr(settings, "UVICORN_WORKERS", 1)
    uvicorn.run(
        "apps.main:app" if workers > 1 else app,
        host=getattr(settings, "HOST", "0.0.0.0"),
        port=getattr(settings, "PORT", 9000),
        workers=workers,
        log_level=getattr(settings, "LOG_LEVEL", "INFO").lower(),
    )


if __name__ == "__main__":
    run()

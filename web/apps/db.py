"""SQLAlchemy engine and session handling.

The engine is created lazily from ``settings.DATABASE_URL`` the first time
it is needed, so importing the models never requires a database driver.
Tests (or alternative wiring) can install their own engine with
``use_engine``.
"""

import logging
import time
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session

from apps import settings

logger = logging.getLogger("store.db")

_engine: Engine | None = None


class Base(DeclarativeBase):
    pass


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    return _engine


def use_engine(engine: Engine | None) -> None:
    """Replace the process-wide engine (``None`` resets to lazy creation)."""
    global _engine
    _engine = engine


@contextmanager
def get_session():
    """Context manager that yields a SQLAlchemy session.

    The session is automatically closed when exiting the context.

    Yields:
        Session: Active SQLAlchemy session bound to the current engine.
    """
    with Session(get_engine()) as s:
        yield s


def init_db() -> None:
    """Create every table known to the ORM models."""
    # model modules register their tables on Base.metadata when imported
    from apps.orders import models as _orders  # noqa: F401
    from apps.products import models as _products  # noqa: F401

    Base.metadata.create_all(get_engine())


def ping() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("select 1"))
        return True
    except Exception:
        logger.warning("database ping failed", exc_info=True)
        return False


def wait_for_db(timeout: float | None = None) -> None:
    """Block until the database accepts connections.

    Args:
        timeout: Seconds to keep trying; defaults to
            ``settings.DB_STARTUP_TIMEOUT_SECS``.

    Raises:
        sqlalchemy.exc.OperationalError: If the database is still
            unreachable once the deadline has passed.
    """
    if timeout is None:
        timeout = getattr(settings, "DB_STARTUP_TIMEOUT_SECS", 30.0)
    deadline = time.time() + timeout
    while True:
        try:
            with get_engine().connect() as conn:
                conn.execute(text("select 1"))
            return
        except Exception:
            if time.time() > deadline:
                raise
            logger.info("waiting for database")
            time.sleep(1)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from apps import db, settings
from apps.orders import providers


@pytest.fixture(autouse=True)
def use_memory_store_for_tests(monkeypatch):
    """Run every test against a fresh in-process store, without the sweep thread."""
    monkeypatch.setattr(settings, "USE_IN_MEMORY_STORE", True)
    monkeypatch.setattr(settings, "ORDER_SWEEP_ENABLED", False)
    providers.reset()
    yield
    providers.reset()


@pytest.fixture
def sqlite_engine(monkeypatch):
    """Point the SQL repositories at a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.use_engine(engine)
    db.init_db()
    monkeypatch.setattr(settings, "USE_IN_MEMORY_STORE", False)
    yield engine
    db.use_engine(None)
    engine.dispose()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from apps.main import create_app

    with TestClient(create_app()) as c:
        yield c

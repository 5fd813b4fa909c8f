"""Runtime settings for the store management service.

Values are read once from the environment at import time. Code consumes
them through ``getattr(settings, NAME, default)`` so tests can override a
single value with ``monkeypatch.setattr``.
"""

import os

DB_HOST = os.getenv("DB_HOST", "store-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "store")
DB_USER = os.getenv("DB_USER", "store_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "store-pass")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_STARTUP_TIMEOUT_SECS = float(os.getenv("DB_STARTUP_TIMEOUT_SECS", "30"))

# "1" swaps the SQL repositories for the in-process ones
USE_IN_MEMORY_STORE = os.getenv("USE_IN_MEMORY_STORE", "0") == "1"

# Placed orders are completed by a background sweep on this period
ORDER_COMPLETION_INTERVAL_SECS = float(os.getenv("ORDER_COMPLETION_INTERVAL_SECS", "120"))
ORDER_SWEEP_ENABLED = os.getenv("ORDER_SWEEP_ENABLED", "1") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "9000"))
UVICORN_WORKERS = int(os.getenv("UVICORN_WORKERS", "1"))

"""Logging setup and filters for enriching log records with request context.

``RequestIdFilter`` injects the current request id into log records using
the ContextVar set by ``RequestIdMiddleware``; ``configure_logging``
installs a JSON handler carrying that filter on the ``store`` logger tree.
"""

import logging
from logging import Filter, LogRecord

from pythonjsonlogger import jsonlogger

from .middleware import REQUEST_ID_CTX

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    Outside a request the ContextVar default ("-") is used, so formatters
    can always reference ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def configure_logging(level: str = "INFO", logger_name: str = "store") -> logging.Logger:
    """Attach a JSON stream handler to ``logger_name`` once.

    Args:
        level: Log level name, e.g. "INFO".
        logger_name: Root of the logger tree to configure.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger

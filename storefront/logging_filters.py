"""Logging setup and filters for enriching log records with request context.

``RequestIdFilter`` injects the current request id into log records using the
ContextVar set by the request-id middleware, which enables per-request
correlation in logs without modifying individual log statements.
``configure_logging`` installs a JSON stream handler on the ``storefront``
logger that references ``%(request_id)s``.
"""

import logging
from logging import Filter, LogRecord

from pythonjsonlogger import jsonlogger

from .middleware import REQUEST_ID_CTX

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    If no value is present, a hyphen ("-") is used as a placeholder so
    formatters can reliably reference ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a JSON handler to the ``storefront`` logger once.

    Args:
        level: Name of the level applied to the ``storefront`` logger.

    Returns:
        logging.Logger: The configured ``storefront`` logger.
    """
    logger = logging.getLogger("storefront")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger

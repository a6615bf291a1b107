"""
logging_config.py - Centralized JSON Logging Configuration

PURPOSE:
    Provides structured JSON logging for the store service with timezone-aware
    timestamps and per-visitor context injection.

JSON LOG FIELDS:
    - timestamp: ISO 8601 format in LOG_TIMEZONE (default UTC)
    - level: Log level (INFO, ERROR, WARNING, DEBUG, CRITICAL)
    - logger: Module where the log originated (e.g., "store_service.cart_store")
    - message: The actual log message
    - service_name: Name of the service (injected automatically)
    - session_id: Optional visitor session the record belongs to
    - order_id: Optional order the record belongs to
    - exception: Full stack trace (only when exc_info is set)

USAGE:
    from shared.logging_config import setup_logging
    setup_logging("store-service", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Cart persisted", extra={"session_id": session_id})

EXAMPLE JSON OUTPUT:
    {
        "timestamp": "2026-02-23T22:48:51.001014+00:00",
        "level": "INFO",
        "logger": "store_service.checkout",
        "message": "Checkout accepted, order 12 saved",
        "service_name": "store-service",
        "order_id": 12
    }
"""

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict
from zoneinfo import ZoneInfo

LOG_TIMEZONE = os.getenv("LOG_TIMEZONE", "UTC")

CONTEXT_FIELDS = ("service_name", "session_id", "order_id")


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs JSON logs with request context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(ZoneInfo(LOG_TIMEZONE)).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceFilter(logging.Filter):
    """Stamps every record with the owning service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(service_name: str, level: str = "INFO") -> None:
    """Setup JSON logging for a service."""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Reconfiguring replaces our own handler instead of stacking a second one
    for existing in list(logger.handlers):
        if isinstance(existing.formatter, JsonFormatter):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ServiceFilter(service_name))
    logger.addHandler(handler)

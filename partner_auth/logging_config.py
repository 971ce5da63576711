"""
Logging for the partner authorization service.

Every record is one JSON line on stdout. Flow steps, rejected callbacks and
provider or store failures each log under their own message, with ids such
as external_user_id or error_type attached as top-level keys. Tokens and
client secrets are never passed to the logger.
"""

import json
import logging
import os
from datetime import UTC, datetime


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Keys passed as ``extra={"extra_fields": {...}}`` become top-level
    fields; a traceback, when present, goes under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A JSON string representing the log record.
        """
        log_object = {
            "timestamp": datetime.now(UTC).isoformat(),
            "severity": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if they exist
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_object.update(record.extra_fields)

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, default=str)


def setup_global_logging() -> None:
    """
    Configure global logging.

    Installs a single stdout handler with JsonFormatter on the root logger.
    The level comes from LOG_LEVEL (default INFO).
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()

    # Drop a handler from an earlier call to avoid duplicate logs
    for h in root_logger.handlers[:]:
        if isinstance(h.formatter, JsonFormatter):
            root_logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

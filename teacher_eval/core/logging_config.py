"""
Logging setup for the service.
Plain text in development, one JSON object per line elsewhere.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from teacher_eval.core.config import Settings

PACKAGE_LOGGER = "teacher_eval"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logs in production"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the package logger once; calling it again replaces the handler
    so repeated app construction (tests) does not duplicate lines.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if settings.ENV == "dev":
        handler.setFormatter(DevelopmentFormatter())
    else:
        handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger

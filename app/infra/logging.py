"""Structured logging configuration."""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger
from app.infra.config import config

SERVICE_NAME = "smart-search-chat"

# Transport libraries log every request and SSE event at INFO/DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "mcp", "mcp.client.streamable_http")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with the service and environment."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", SERVICE_NAME)
        log_record.setdefault("env", config.APP_ENV)


def setup_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Configure JSON logging for the ``app`` logger tree.

    Args:
        level: Explicit level; defaults to DEBUG when ``DEBUG`` is set, else INFO
    """
    logger = logging.getLogger("app")
    logger.setLevel(level or (logging.DEBUG if config.DEBUG else logging.INFO))
    logger.handlers = []

    formatter = ServiceJsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        rename_fields={"levelname": "level", "name": "logger"},
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


app_logger = setup_logging()

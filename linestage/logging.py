"""Structlog configuration.

The terminal belongs to the textual UI while it runs, so records go to a log
file when one is configured and are dropped otherwise.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Optional

import structlog


def configure_logging(level_name: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure structlog + stdlib logging.

    Args:
        level_name: Standard logging level name.
        log_file: File to append records to; None disables output.
    """
    log_level = getattr(logging, level_name.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "logger", "event"]
        ),
        foreign_pre_chain=shared_processors,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": str(log_file),
            "encoding": "utf-8",
        }
    else:
        handler = {"class": "logging.NullHandler"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"()": lambda: formatter}},
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

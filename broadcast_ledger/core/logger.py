import logging
import sys
from typing import Any

import structlog

from broadcast_ledger.core.config import settings


def _configure_stdlib_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        stream=sys.stdout,
    )
    # SQLAlchemy echoes through its own logger when DATABASE_ECHO is set.
    if settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)


def add_environment(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def configure_logging() -> None:
    _configure_stdlib_logging()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_environment,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(**initial_values: Any) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger

'''
Structured logging configuration for Folio.

Configures structlog with orjson serialization, context-variable
binding for per-user fields, and ISO 8601 UTC timestamps. Ledger core
modules log through stdlib logging; their records are rendered by the
same JSON pipeline. Call configure_logging() once at process startup.
'''

from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog

__all__ = ['bind_context', 'clear_context', 'configure_logging', 'get_logger']


def _orjson_dumps_str(*args: Any, **kwargs: Any) -> str:

    '''
    Serialize to JSON string via orjson for stdlib ProcessorFormatter.

    Returns:
        str: JSON-encoded string
    '''

    return orjson.dumps(*args, **kwargs).decode()


def _shared_processors() -> list[structlog.types.Processor]:

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso', utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(log_level: str = 'INFO') -> None:

    '''
    Configure structlog and stdlib logging to emit JSON lines to stdout.

    Args:
        log_level (str): Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    '''

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        msg = f'unknown log level: {log_level!r}'
        raise ValueError(msg)

    shared_processors = _shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.BytesLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(serializer=_orjson_dumps_str),
        ],
        foreign_pre_chain=[*shared_processors, structlog.stdlib.add_logger_name],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)


def get_logger(name: str | None = None) -> Any:

    '''
    Return a structlog logger, optionally bound to a logger name.

    Args:
        name (str | None): Logger name recorded as the 'logger' field.

    Returns:
        Any: structlog bound logger
    '''

    if name is None:
        return structlog.get_logger()
    return structlog.get_logger().bind(logger=name)


def bind_context(**fields: Any) -> None:

    '''Bind fields such as user_id to every log line in this context.'''

    structlog.contextvars.bind_contextvars(**fields)


def clear_context() -> None:

    '''Remove all fields bound with bind_context.'''

    structlog.contextvars.clear_contextvars()

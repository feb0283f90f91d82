"""
Structured Logging
==================

structlog setup for the storefront service.

Every event carries the service name and deployment environment. Request
scoped fields (request id, user id) live in structlog contextvars: the HTTP
middleware binds them once per request and every logger picks them up, so
services never pass request_id around themselves.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

from storefront.config.settings import get_settings

SERVICE_NAME = "storefront"


def _add_service_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def configure_logging(json_logs: bool | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        json_logs: Force JSON (True) or console (False) rendering.
            Defaults to JSON in production only.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if json_logs is None:
        json_logs = settings.is_production

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)
    # Access logs duplicate the request middleware events
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_request_context(request_id: str, **fields: Any) -> None:
    """Start a fresh request context; None-valued fields are skipped."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        **{key: value for key, value in fields.items() if value is not None},
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module, typically get_logger(__name__)."""
    return structlog.get_logger(name)

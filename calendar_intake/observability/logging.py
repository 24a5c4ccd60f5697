"""
Structured logging shared by the API server and the CLI.

One structlog pipeline sits on top of stdlib logging. It renders JSON
lines in production and a console format elsewhere. Output goes to
stderr so CLI commands can write their results to stdout. Credentials
logged by mistake are masked before rendering.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from calendar_intake.config.settings import get_settings

# Event keys whose values are never rendered
REDACTED_KEYS = frozenset({"api_key", "authorization", "admin_token", "token"})
REDACTED_VALUE = "***"

# Libraries that log every HTTP call or upload part at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncio", "multipart")


def redact_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values bound under any of REDACTED_KEYS."""
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED_VALUE
    return event_dict


def build_processors(json_logs: bool) -> list[Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Level name such as "DEBUG". Defaults to LOG_LEVEL.
        json_logs: Force JSON (True) or console (False) output.
            Defaults to JSON in production only.

    Usage:
        setup_logging()
        logger = structlog.get_logger(__name__)
        logger.info("Extracted event", source="ai", client_id="10.0.0.1")
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    if json_logs is None:
        json_logs = settings.is_production

    structlog.configure(
        processors=build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name),
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Bind fields to every log line emitted in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

"""Structured logging for alphacopy.

Production renders one JSON object per line; development gets the
structlog console renderer. Wallet secrets and credentials are redacted
before rendering, wherever in the event they appear.

Usage:
    from alphacopy.config.logging import setup_logging, get_logger

    setup_logging()  # once, at startup
    logger = get_logger(__name__)
    logger.info("service.started", wallets=3)

Pipeline modules log through the standard library
(`logging.getLogger(__name__)` with `extra={...}`); those records pass
through the same processor chain via `foreign_pre_chain`.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from .settings import Settings, get_settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset({
    "secret",
    "encrypted_secret",
    "private_key",
    "secret_key",
    "keypair",
    "token",
    "bot_token",
    "telegram_bot_token",
    "encryption_key",
    "authorization",
    "api_key",
})

# Third-party loggers and the level they are held at.
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "websockets": logging.WARNING,
    "aiogram": logging.WARNING,
}


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(v) for v in value)
    return value


def redact_sensitive(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Processor: mask sensitive keys at any nesting depth."""
    return _redact(event_dict)


def _static_context(settings: Settings) -> structlog.types.Processor:
    context = {"service": "alphacopy", "environment": settings.environment}

    def add_static_context(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_static_context


def setup_logging(settings: Settings | None = None) -> None:
    """Install the structlog pipeline on the root logger.

    Args:
        settings: Source of `log_level`, `log_format` and `db_echo`.
            Defaults to the cached application settings.
    """
    settings = settings or get_settings()
    json_output = settings.log_format == "json"

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _static_context(settings),
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_trade_context(user_id: int, attempt_id: str, **extra: Any) -> None:
    """Attach attempt ids to every log line emitted by the current task."""
    structlog.contextvars.bind_contextvars(user_id=user_id, attempt_id=attempt_id, **extra)


def clear_trade_context() -> None:
    structlog.contextvars.clear_contextvars()

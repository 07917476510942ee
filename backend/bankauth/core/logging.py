"""
Structured logging configuration.

Provides JSON-structured logging for production and readable text for development.
"""
import logging
import re
import sys
from typing import Any

import structlog

from bankauth.core.config import settings

# Substrings of keys whose values are never written to logs
SENSITIVE_FIELDS = (
    "password",
    "token",
    "secret",
    "code",
    "authorization",
    "cookie",
    "session_id",
)

_EMAIL_RE = re.compile(r"^([^@\s])[^@\s]*@([^@\s]+\.[^@\s]+)$")

# Keys added by the logging pipeline itself
_STRUCTURAL_KEYS = ("event", "logger", "level", "timestamp", "service")


def setup_logging() -> None:
    """
    Configure logging for the application.

    In production: JSON format through structlog with redaction
    In development: Readable text format
    """
    log_level = getattr(logging, settings.LOG_LEVEL)

    if settings.DEBUG:
        configure_development_logging(log_level)
    else:
        configure_production_logging(log_level)


def configure_development_logging(level: int) -> None:
    """Configure logging for development (readable format)."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
    )

    # Silence noisy SQLAlchemy engine logs
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)


def configure_production_logging(level: int) -> None:
    """
    Configure logging for production (JSON format).

    structlog loggers and plain logging calls (LogHelper, libraries) share one
    stdout handler, so both go through redaction and the JSON renderer.
    """
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        # LogHelper passes its fields as `extra=`
        foreign_pre_chain=[*shared_processors, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            redact_sensitive_data,
            structlog.processors.JSONRenderer(),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Redact sensitive data from a structlog event.

    Keys naming credentials (passwords, tokens, 2FA codes) are replaced
    outright; other string values go through redact_string().
    """
    redacted = event_dict.copy()

    for key, value in redacted.items():
        if isinstance(key, str):
            key_lower = key.lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                redacted[key] = "***REDACTED***"
            elif isinstance(value, str) and key not in _STRUCTURAL_KEYS:
                redacted[key] = redact_string(value)

    return redacted


def redact_string(value: str) -> str:
    """
    Redact sensitive patterns from strings.

    Patterns:
    - Email addresses
    - Tokens (long alphanumeric strings, JWTs)
    """
    match = _EMAIL_RE.match(value)
    if match:
        return f"{match.group(1)}***@{match.group(2)}"

    if len(value) > 20 and value.replace('_', '').replace('-', '').replace('.', '').isalnum() and ' ' not in value:
        return f"{value[:8]}...{value[-4:]}"

    return value


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogHelper:
    """
    Helper for consistent structured logging.

    Usage:
        logger = LogHelper(__name__)
        logger.info("Login succeeded", username="alice")
        logger.warning("Login rejected", username="alice", reason="Invalid password")
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.name = name

    def _add_context(self, **kwargs: Any) -> dict[str, Any]:
        context = {
            "service": "bankauth",
            "logger": self.name,
        }
        context.update(kwargs)
        return context

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._add_context(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._add_context(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._add_context(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._add_context(**kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self.logger.exception(message, extra=self._add_context(**kwargs))

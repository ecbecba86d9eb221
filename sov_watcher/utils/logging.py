"""
Structured JSON logging for SOV Watcher.

Provides standardized logging with:
- JSON formatted output to stderr
- UTC timestamps with timezone info
- Structured context fields
- Redaction of emails and credentials quoted in answer text
- Component-based logger creation

All logs use Python's standard logging module with custom formatting.
Log level defaults to INFO, use setup_logging(verbose=True) for DEBUG.

Examples:
    >>> from sov_watcher.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbose=True)
    >>> logger = get_logger("sov.aggregator")
    >>> logger.info("SOV calculated", extra={"context": {"mentions": 12}})
"""

import json
import logging
import re
import sys
from collections.abc import Callable
from typing import Any

from sov_watcher.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs logs as JSON with structured fields.

    Each log record is formatted as a JSON object with:
    - timestamp: ISO 8601 UTC timestamp
    - level: Log level (INFO, WARNING, ERROR, DEBUG)
    - component: Module/component name (from logger name)
    - message: Human-readable log message
    - context: Additional structured data (from 'context' in extra)
    - session_id: Analysis session identifier (from 'session_id' in extra)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and isinstance(record.context, dict):
            log_entry["context"] = record.context

        if hasattr(record, "session_id"):
            log_entry["session_id"] = record.session_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class AnswerRedactingFilter(logging.Filter):
    """
    Logging filter that masks personal data and credentials in answer text.

    Answers, contexts and entities are logged at DEBUG. Generated answers
    routinely quote contact addresses, and pasted answers sometimes carry
    signed links or tokens. Before a record is emitted:
    - email local parts are masked: "sales@acme.io" -> "***@acme.io"
    - credential query values are masked: "?api_key=abc" -> "?api_key=***"
    - bearer and long opaque tokens keep their last four characters:
      "Bearer abcdefghijklmnopqrstuvwxyz12" -> "Bearer ***yz12"
    """

    REDACTIONS: list[tuple[re.Pattern, Callable[[re.Match], str]]] = [
        (
            re.compile(
                r"([?&](?:api_?key|key|token|access_token|secret|password|sig)=)[^&\s]+",
                re.IGNORECASE,
            ),
            lambda m: f"{m.group(1)}***",
        ),
        (
            re.compile(r"\b[A-Za-z0-9._%+-]+@([A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,})\b"),
            lambda m: f"***@{m.group(1)}",
        ),
        (
            re.compile(r"\bBearer\s+[a-zA-Z0-9_-]{20,}\b"),
            lambda m: f"Bearer ***{m.group(0)[-4:]}",
        ),
        (
            re.compile(r"\b[a-zA-Z0-9_-]{32,}\b"),
            lambda m: f"***{m.group(0)[-4:]}",
        ),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._redact(str(arg)) for arg in record.args)

        if hasattr(record, "context") and isinstance(record.context, dict):
            record.context = self._redact_dict(record.context)

        return True

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.REDACTIONS:
            text = pattern.sub(replacement, text)
        return text

    def _redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._redact(value)
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self._redact(v) if isinstance(v, str) else v for v in value
                ]
            else:
                result[key] = value
        return result


def setup_logging(verbose: bool = False, quiet_logs: bool = False) -> None:
    """
    Configure structured JSON logging for the application.

    Sets up:
    - JSON formatter for structured output
    - Answer-text redaction filter (emails, credentials)
    - stderr output (stdout reserved for user-facing content)
    - Log level: DEBUG if verbose=True, INFO otherwise

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
        quiet_logs: If True (and not verbose), only WARNING and above reach
            the handler. Used in human mode where Rich owns the terminal.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove any existing handlers (prevents duplicate logs)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if verbose:
        handler.setLevel(logging.DEBUG)
    elif quiet_logs:
        handler.setLevel(logging.WARNING)
    else:
        handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(AnswerRedactingFilter())

    root_logger.addHandler(handler)


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        component: Component name (e.g., "sov.aggregator", "extractor.entities")

    Returns:
        Logger instance configured for JSON output
    """
    return logging.getLogger(component)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    session_id: str | None = None,
) -> None:
    """
    Log a message with structured context and optional session_id.

    Equivalent to logger.log(level, message, extra={'context': {...}, 'session_id': '...'})

    Args:
        logger: Logger instance (from get_logger)
        level: Log level (logging.INFO, logging.WARNING, etc.)
        message: Human-readable log message
        context: Optional dict with additional structured data
        session_id: Optional analysis session identifier to include in log

    Example:
        >>> logger = get_logger("sov.aggregator")
        >>> log_with_context(
        ...     logger,
        ...     logging.INFO,
        ...     "Share of Voice calculated",
        ...     context={"brand": "Acme", "mentions": 14},
        ...     session_id="analysis_2025-11-02T08-30-00Z_1a2b3c4d",
        ... )
    """
    extra = {}

    if context is not None:
        extra["context"] = context

    if session_id is not None:
        extra["session_id"] = session_id

    logger.log(level, message, extra=extra if extra else None)

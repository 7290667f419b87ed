"""
Structured logging and the signing debug side channel.

Key material and full signatures must never reach a log sink. Every handler
configured here carries CredentialRedactionFilter, and the signing code only
ever talks to logs through a DebugSink that is a no-op unless enabled.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class CredentialRedactionFilter(logging.Filter):
    """
    Security filter that redacts key material from log records.

    - Signatures (128+ hex chars) keep an 8 char prefix for correlation
    - Private keys and scalars (0x-prefixed or bare, 50-64 hex chars)
    - key=value style secrets

    Usage:
        >>> handler = logging.StreamHandler()
        >>> handler.addFilter(CredentialRedactionFilter())
        >>> logger.addHandler(handler)
    """

    SIGNATURE_PATTERN = re.compile(r'(?<![0-9a-zA-Z])((?:0x)?[0-9a-fA-F]{8})[0-9a-fA-F]{120,}')
    PRIVATE_KEY_PATTERN = re.compile(r'0x[0-9a-fA-F]{50,64}(?![0-9a-fA-F])')
    BARE_KEY_PATTERN = re.compile(r'(?<![0-9a-zA-Z])[0-9a-fA-F]{50,64}(?![0-9a-fA-F])')
    SECRET_PATTERN = re.compile(
        r'((?:secret|passphrase|password|private_key|key)["\']?\s*[:=]\s*["\']?)[a-zA-Z0-9+/=]{20,}["\']?',
        re.IGNORECASE
    )

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact credentials from log record.

        Args:
            record: Log record to filter

        Returns:
            Always True (record is never dropped, just sanitized)
        """
        if record.msg:
            record.msg = self._redact_credentials(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact_credentials(str(v))
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact_credentials(str(arg))
                    for arg in record.args
                )

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            record.extra_fields = {
                k: self._redact_credentials(v) if isinstance(v, str) else v
                for k, v in extra_fields.items()
            }

        if record.exc_text:
            record.exc_text = self._redact_credentials(record.exc_text)

        return True

    def _redact_credentials(self, text: str) -> str:
        if not text:
            return text

        text = self.SIGNATURE_PATTERN.sub(r'\1...[REDACTED]', text)
        text = self.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
        text = self.BARE_KEY_PATTERN.sub('[REDACTED]', text)
        text = self.SECRET_PATTERN.sub(r'\1[REDACTED]', text)
        return text


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """
    Structured logger wrapper.

    Attaches keyword fields to the record as ``extra_fields``.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        event: str,
        message: Optional[str] = None,
        **fields
    ) -> None:
        log_message = f"{event}: {message}" if message else event

        extra_fields = {"event": event}
        extra_fields.update(fields)

        self.logger.log(level, log_message, extra={'extra_fields': extra_fields})

    def debug(self, event: str, message: Optional[str] = None, **fields) -> None:
        """Log debug event."""
        self._log(logging.DEBUG, event, message, **fields)

    def info(self, event: str, message: Optional[str] = None, **fields) -> None:
        """
        Log info event.

        Example:
            >>> logger.info(
            ...     "auth_headers_created",
            ...     method="GET",
            ...     path="/api/v1/private/account/getPositionTransactionPage",
            ... )
        """
        self._log(logging.INFO, event, message, **fields)

    def warning(self, event: str, message: Optional[str] = None, **fields) -> None:
        """Log warning event."""
        self._log(logging.WARNING, event, message, **fields)

    def error(self, event: str, message: Optional[str] = None, **fields) -> None:
        """Log error event."""
        self._log(logging.ERROR, event, message, **fields)


class DebugSink(Protocol):
    """Append-only trace sink for the signing path."""

    def __call__(self, event: str, **fields: Any) -> None:
        ...


class NullDebugSink:
    """Default sink. Discards everything."""

    def __call__(self, event: str, **fields: Any) -> None:
        return None


class LoggingDebugSink:
    """
    Sink that forwards trace events to a StructuredLogger at DEBUG level.

    The redaction filter is installed on the underlying logger, so records
    are sanitized before any handler sees them.
    """

    def __init__(self, name: str = "edgex_crypto.debug"):
        self._structured = StructuredLogger(name)
        if not any(isinstance(f, CredentialRedactionFilter)
                   for f in self._structured.logger.filters):
            self._structured.logger.addFilter(CredentialRedactionFilter())

    def __call__(self, event: str, **fields: Any) -> None:
        self._structured.debug(event, **fields)


def emit_debug(sink: Optional[DebugSink], event: str, **fields: Any) -> None:
    """
    Fire-and-forget a trace event.

    A failing sink is reported at WARNING and otherwise ignored; it must
    never break signing.
    """
    if sink is None:
        return
    try:
        sink(event, **fields)
    except Exception as e:
        logger.warning(f"Debug sink failed on {event}: {type(e).__name__}")

"""
Structured Logging Module
Provides JSON-formatted logging for better integration with log aggregation tools
"""

import json
import logging
from typing import Any, Dict

REDACTED = "[REDACTED]"


class JSONFormatter(logging.Formatter):
    """
    Formats log records as one JSON object per line.

    Context travels in ``record.extra_fields``, e.g.
    ``logger.info("Parsed message", extra={"extra_fields": {"parts": 3}})``.
    Nested dicts and lists in the context are kept as JSON structure.

    SECURITY STORY: Verification codes are one-time credentials. A log line
    that carries an extracted code next to the recipient address is as good
    as the code itself, so any field whose name looks like a code or a
    secret is written as "[REDACTED]", at any nesting level.
    """

    # Substrings of field names whose values never reach the log
    SENSITIVE_FIELDS = {
        'password', 'token', 'api_key', 'secret', 'credential',
        'code', 'otp'
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Python logging.LogRecord to format

        Returns:
            JSON string with structured log data
        """
        payload = self._base_fields(record)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                payload[key] = self._redact(key, value)

        return json.dumps(payload, default=str, ensure_ascii=False)

    def _base_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        return {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _is_sensitive(self, key: str) -> bool:
        """Substring match on the lowercased key: ``verification_code`` and ``OTP_value`` both hit"""
        key_lower = str(key).lower()
        return any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS)

    def _redact(self, key: str, value: Any) -> Any:
        if self._is_sensitive(key):
            return REDACTED
        if isinstance(value, dict):
            return {k: self._redact(k, v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._redact(key, item) for item in value]
        return value

"""
core/log.py -- Process-wide logging setup.

Library modules only ever call logging.getLogger("userauth.<area>"); the host
process calls configure_logging() once at startup. The format string is the
one used across the project's log output:

    2025-01-01 12:00:00 INFO  userauth.service User registered (id=1)

RedactingFilter is a last line of defence: credential values that reach a log
record through an f-string or an exception message are masked before the
record is emitted.
"""

from __future__ import annotations

import logging
import re

_LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SENSITIVE_RE = re.compile(
    r"(?P<key>password|password_hash|secret_key|access_token|token)(?P<sep>['\"]?\s*[=:]\s*)(?P<value>['\"]?[^\s,'\"}]+['\"]?)",
    re.IGNORECASE,
)


def redact(message: str) -> str:
    """Mask the value part of key=value / key: value pairs with sensitive keys."""
    return _SENSITIVE_RE.sub(lambda m: f"{m.group('key')}{m.group('sep')}***", message)


class RedactingFilter(logging.Filter):
    """Rewrite a record's message so credential values never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler with the project format and the redacting filter.

    Safe to call more than once: basicConfig is a no-op when the root logger
    already has handlers, and the filter is only attached once per handler.
    """
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())

"""
Logging configuration helpers.

Every root handler gets a filter that masks ``secret=`` and ``data=``
query values, so otpauth and migration URIs never reach a log verbatim,
including debug output of third-party libraries.

Deutsch:
    Logging-Konfiguration; OTP-Geheimnisse in URIs werden maskiert.
"""

from __future__ import annotations

import logging
import os
import re

LOGLEVEL_ENV = "OTPMIGRATE_LOGLEVEL"

_SECRET_PARAM = re.compile(r"(?i)\b((?:secret|data)=)[^&\s\"']+")


class SecretRedactingFilter(logging.Filter):
    """Replace secret-bearing URI parameters in the formatted message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(default_level: str = "INFO") -> None:
    """
    Configure the root logger once and attach the redacting filter.

    Deutsch:
        Setzt das Root-Logging mit einfacher, CI-freundlicher Formatierung auf.
    """

    level_name = os.getenv(LOGLEVEL_ENV, default_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        )
    for handler in root.handlers:
        if not any(isinstance(existing, SecretRedactingFilter) for existing in handler.filters):
            handler.addFilter(SecretRedactingFilter())

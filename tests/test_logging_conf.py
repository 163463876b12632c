from __future__ import annotations

import logging

import pytest

from otpmigrate.logging_conf import SecretRedactingFilter, configure_logging

URI = "otpauth://totp/Example:alice?secret=JBSWY3DPEHPK3PXP&issuer=Example"


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("otpmigrate.test", logging.INFO, __file__, 1, msg, args, None)


def test_filter_masks_secret_and_migration_data() -> None:
    record = _record("account %s, code %s", URI, "otpauth-migration://offline?data=CgUKA2FiYw%3D%3D")

    assert SecretRedactingFilter().filter(record) is True
    message = record.getMessage()

    assert "JBSWY3DPEHPK3PXP" not in message
    assert "secret=***&issuer=Example" in message
    assert "data=***" in message


def test_filter_leaves_plain_messages_untouched() -> None:
    record = _record("added %d account(s)", 3)

    SecretRedactingFilter().filter(record)

    assert record.getMessage() == "added 3 account(s)"
    assert record.args == (3,)


def test_configure_logging_attaches_filter_once(caplog: pytest.LogCaptureFixture) -> None:
    configure_logging("INFO")
    configure_logging("INFO")

    assert sum(isinstance(existing, SecretRedactingFilter) for existing in caplog.handler.filters) == 1

    logging.getLogger("otpmigrate.test").warning("third-party echo of %s", URI)
    assert "JBSWY3DPEHPK3PXP" not in caplog.text

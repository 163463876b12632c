"""
Exception hierarchy shared by codec, adapters and exporters.

Deutsch:
    Gemeinsame Ausnahmen für Codec, Adapter und Exporter.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .models import Account


class OtpMigrateError(Exception):
    """Base class for all otpmigrate errors. / Basisklasse aller Fehler."""


class MalformedPayload(OtpMigrateError):
    """
    Raised when binary or structured input violates its required structure.

    Deutsch:
        Eingabe verletzt die erforderliche Struktur.
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        message = super().__str__()
        if self.source:
            return f"{self.source}: {message}"
        return message


class NoRelevantContent(OtpMigrateError):
    """Input carries no recognisable payload. Informational, not a failure."""


class UnsupportedInput(OtpMigrateError):
    """Raised when no adapter handles a given input unit."""


class SettingsError(OtpMigrateError):
    """Raised when the settings file cannot be loaded or is invalid."""


class ExportError(OtpMigrateError):
    """Export-time precondition violation. No partial export is emitted."""


class EmptySelection(ExportError):
    def __init__(self) -> None:
        super().__init__("no accounts selected for export")


class SelectionTooLarge(ExportError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"{count} accounts selected, format accepts at most {limit}")
        self.count = count
        self.limit = limit


class IncompatibleAccountType(ExportError):
    """
    Raised when a selection contains accounts the target format cannot hold.

    ``accounts`` carries the offending subset so callers can deselect them
    and ask the user to retry.
    """

    def __init__(self, accounts: Sequence[Account], reason: str = "only TOTP accounts are supported") -> None:
        self.accounts: Tuple[Account, ...] = tuple(accounts)
        super().__init__(f"{reason}; {len(self.accounts)} incompatible account(s) selected")

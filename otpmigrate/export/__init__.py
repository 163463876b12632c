"""
Export encoders turning a selection of accounts into shareable output.

Deutsch:
    Exporter für ausgewählte Konten.
"""

from __future__ import annotations

from .authenticator import AuthenticatorExporter
from .backup import to_csv, to_json, write_backup
from .lastpass import LastPassExporter
from .selection import require_selection

__all__ = [
    "AuthenticatorExporter",
    "LastPassExporter",
    "require_selection",
    "to_csv",
    "to_json",
    "write_backup",
]

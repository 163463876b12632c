"""
Sequential ingest of input units (files, scanned codes) into an account set.

Every unit is processed on its own: a malformed file is reported and the
remaining units still run against the same account set.

Deutsch:
    Sequentieller Import von Eingabeeinheiten in eine Kontensammlung.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .adapters import BaseAdapter, adapter_for_filename, get_adapter
from .collector import add
from .errors import MalformedPayload, NoRelevantContent, OtpMigrateError, UnsupportedInput
from .models import Account, AccountSet
from .normalizer import normalize_all

log = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_DUPLICATES = "duplicates"
STATUS_EMPTY = "empty"
STATUS_NO_CONTENT = "no-content"
STATUS_ERROR = "error"


@dataclass
class InputUnit:
    """
    One independently reported input: a file's text or one scanned code.

    ``adapter`` overrides the suffix based adapter lookup.
    """

    name: str
    text: str
    adapter: Optional[str] = None


@dataclass
class UnitOutcome:
    name: str
    status: str
    added: List[Account] = field(default_factory=list)
    duplicate_count: int = 0
    error: Optional[OtpMigrateError] = None

    @property
    def added_count(self) -> int:
        return len(self.added)

    def describe(self) -> str:
        if self.status == STATUS_ERROR:
            return f"{self.name}: error: {self.error}"
        if self.status == STATUS_NO_CONTENT:
            return f"{self.name}: no migration QR code found"
        if self.status == STATUS_EMPTY:
            return f"{self.name}: no OTP secrets found"
        text = f"{self.name}: {self.added_count} account(s) added"
        if self.duplicate_count:
            text += f", {self.duplicate_count} duplicate(s) skipped"
        return text


def uri_unit(uri: str, index: int = 1) -> InputUnit:
    return InputUnit(name=f"uri#{index}", text=uri, adapter="qr")


def read_units(paths: Iterable[Path]) -> List[InputUnit]:
    """Load files as UTF-8 text; undecodable bytes are replaced."""

    units: List[InputUnit] = []
    for path in paths:
        path = Path(path)
        units.append(InputUnit(name=path.name, text=path.read_text(encoding="utf-8-sig", errors="replace")))
    return units


def process_unit(unit: InputUnit, account_set: AccountSet) -> UnitOutcome:
    try:
        adapter = _resolve_adapter(unit)
        records = adapter.adapt(unit.text)
    except (MalformedPayload, UnsupportedInput) as exc:
        log.error("failed to process %s: %s", unit.name, exc)
        return UnitOutcome(name=unit.name, status=STATUS_ERROR, error=exc)

    if records is None:
        notice = NoRelevantContent(f"{unit.name} carries no migration QR code")
        log.info("%s", notice)
        return UnitOutcome(name=unit.name, status=STATUS_NO_CONTENT, error=notice)
    if not records:
        log.info("%s contains no OTP secrets", unit.name)
        return UnitOutcome(name=unit.name, status=STATUS_EMPTY)

    result = add(normalize_all(records), account_set.fingerprints())
    account_set.merge(result.added)
    status = STATUS_DUPLICATES if result.duplicate_count else STATUS_OK
    outcome = UnitOutcome(
        name=unit.name,
        status=status,
        added=result.added,
        duplicate_count=result.duplicate_count,
    )
    if result.duplicate_count:
        log.warning("%s", outcome.describe())
    else:
        log.info("%s", outcome.describe())
    return outcome


def process_units(units: Iterable[InputUnit], account_set: AccountSet) -> List[UnitOutcome]:
    """
    Process units strictly in order against one account set.

    Deutsch:
        Verarbeitet Eingaben nacheinander gegen dieselbe Kontensammlung.
    """

    return [process_unit(unit, account_set) for unit in units]


def _resolve_adapter(unit: InputUnit) -> BaseAdapter:
    if unit.adapter:
        return get_adapter(unit.adapter)
    return adapter_for_filename(unit.name)

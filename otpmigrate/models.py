"""
Shared data models for the otpmigrate pipeline.

Deutsch:
    Gemeinsame Datenmodelle für die Import- und Export-Pipeline.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple


class _CoercibleEnum(IntEnum):
    @classmethod
    def coerce(cls, value: int):
        """Map out-of-range values onto UNSPECIFIED instead of failing."""

        try:
            return cls(value)
        except ValueError:
            return cls(0)


class Algorithm(_CoercibleEnum):
    UNSPECIFIED = 0
    SHA1 = 1
    SHA256 = 2
    SHA512 = 3


class DigitCount(_CoercibleEnum):
    UNSPECIFIED = 0
    SIX = 1
    EIGHT = 2


class OtpKind(_CoercibleEnum):
    UNSPECIFIED = 0
    HOTP = 1
    TOTP = 2


DIGITS_BY_COUNT: Dict[DigitCount, int] = {
    DigitCount.UNSPECIFIED: 6,
    DigitCount.SIX: 6,
    DigitCount.EIGHT: 8,
}


@dataclass(frozen=True)
class RawOtpRecord:
    """
    Pre-normalisation record as produced by an input adapter.

    Deutsch:
        Rohdatensatz eines Eingabe-Adapters vor der Normalisierung.
    """

    secret: bytes
    name: str = ""
    issuer: str = ""
    algorithm: Algorithm = Algorithm.UNSPECIFIED
    digit_count: DigitCount = DigitCount.UNSPECIFIED
    kind: OtpKind = OtpKind.TOTP
    counter: int = 0


@dataclass(frozen=True)
class MigrationPayload:
    """
    Decoded authenticator migration payload (one QR code worth of records).

    Deutsch:
        Dekodierte Migrations-Nutzlast eines einzelnen QR-Codes.
    """

    version: int = 0
    batch_size: int = 0
    batch_index: int = 0
    batch_id: int = 0
    records: Tuple[RawOtpRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Account:
    """
    Canonical, immutable account. ``uri`` and ``fingerprint`` are derived
    by the normalizer; an edit is always a replacement.

    Deutsch:
        Kanonisches, unveränderliches Konto.
    """

    name: str
    issuer: str
    secret: bytes
    kind: OtpKind
    counter: int
    digit_count: DigitCount
    algorithm: Algorithm
    uri: str
    fingerprint: str

    @property
    def secret_base32(self) -> str:
        return base64.b32encode(self.secret).decode("ascii").rstrip("=")

    @property
    def label(self) -> str:
        return f"{self.issuer}: {self.name}" if self.issuer else self.name

    @property
    def kind_name(self) -> str:
        # Anything that is not explicitly TOTP is treated as counter based.
        return "totp" if self.kind == OtpKind.TOTP else "hotp"

    @property
    def digits(self) -> int:
        return DIGITS_BY_COUNT[self.digit_count]

    @property
    def algorithm_name(self) -> str:
        if self.algorithm == Algorithm.UNSPECIFIED:
            return Algorithm.SHA1.name
        return self.algorithm.name


@dataclass(frozen=True)
class AccountSetMutation:
    action: str
    fingerprints: Tuple[str, ...]


class AccountSet:
    """
    Session-owned, insertion-ordered collection of accounts plus selection.

    Every change is appended to ``history``. A single caller owns mutation;
    membership checks and inserts are not atomic as a pair.

    Deutsch:
        Sitzungsweite Kontensammlung mit Auswahl und Änderungsprotokoll.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None) -> None:
        self._accounts: Dict[str, Account] = {}
        self._selected: Set[str] = set()
        self.history: List[AccountSetMutation] = []
        if accounts is not None:
            self.merge(accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(list(self._accounts.values()))

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._accounts

    def get(self, fingerprint: str) -> Optional[Account]:
        return self._accounts.get(fingerprint)

    def fingerprints(self) -> Set[str]:
        return set(self._accounts)

    @property
    def selected(self) -> Set[str]:
        return set(self._selected)

    def merge(self, accounts: Iterable[Account]) -> List[Account]:
        """Insert accounts whose fingerprint is not present yet; first seen wins."""

        merged: List[Account] = []
        for account in accounts:
            if account.fingerprint in self._accounts:
                continue
            self._accounts[account.fingerprint] = account
            merged.append(account)
        if merged:
            self._record("merge", (account.fingerprint for account in merged))
        return merged

    def remove(self, fingerprints: Iterable[str]) -> None:
        removed = [fp for fp in fingerprints if fp in self._accounts]
        for fp in removed:
            del self._accounts[fp]
            self._selected.discard(fp)
        if removed:
            self._record("remove", removed)

    def replace(self, old_fingerprint: str, account: Account) -> None:
        """Swap one account for another, keeping its position and selection."""

        if old_fingerprint not in self._accounts:
            raise KeyError(old_fingerprint)
        if account.fingerprint != old_fingerprint and account.fingerprint in self._accounts:
            raise ValueError(f"account {account.fingerprint} already present")
        was_selected = old_fingerprint in self._selected
        self._accounts = {
            (account.fingerprint if fp == old_fingerprint else fp): (account if fp == old_fingerprint else existing)
            for fp, existing in self._accounts.items()
        }
        self._selected.discard(old_fingerprint)
        if was_selected:
            self._selected.add(account.fingerprint)
        self._record("replace", (old_fingerprint, account.fingerprint))

    def clear(self) -> None:
        self._accounts.clear()
        self._selected.clear()
        self._record("clear", ())

    def select(self, fingerprints: Iterable[str]) -> None:
        requested = list(fingerprints)
        wanted = [fp for fp in requested if fp in self._accounts]
        unknown = set(requested) - set(wanted)
        if unknown:
            raise KeyError(f"unknown fingerprints: {', '.join(sorted(unknown))}")
        self._selected.update(wanted)
        self._record("select", wanted)

    def deselect(self, fingerprints: Iterable[str]) -> None:
        dropped = [fp for fp in fingerprints if fp in self._selected]
        self._selected.difference_update(dropped)
        self._record("deselect", dropped)

    def select_all(self) -> None:
        self._selected = set(self._accounts)
        self._record("select", self._accounts.keys())

    def deselect_all(self) -> None:
        dropped = list(self._selected)
        self._selected.clear()
        self._record("deselect", dropped)

    def selected_accounts(self) -> List[Account]:
        return [account for fp, account in self._accounts.items() if fp in self._selected]

    def _record(self, action: str, fingerprints: Iterable[str]) -> None:
        self.history.append(AccountSetMutation(action=action, fingerprints=tuple(fingerprints)))


@dataclass(frozen=True)
class ExportBatch:
    """
    One unit of a multi-part authenticator export.

    Deutsch:
        Ein Teil eines mehrteiligen Exports.
    """

    accounts: Tuple[Account, ...]
    batch_index: int
    batch_size: int
    batch_id: int

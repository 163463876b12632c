"""
Fingerprint based deduplication of normalised accounts.

Deutsch:
    Duplikaterkennung für normalisierte Konten anhand des Fingerabdrucks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Set

from .models import Account

log = logging.getLogger(__name__)


@dataclass
class AddResult:
    added: List[Account] = field(default_factory=list)
    duplicates: List[Account] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)


def add(candidates: Iterable[Account], existing_fingerprints: AbstractSet[str]) -> AddResult:
    """
    Split candidates into new accounts and duplicates.

    A candidate is a duplicate when its fingerprint is in
    ``existing_fingerprints`` or was added earlier in the same call. The
    first occurrence wins; existing entries are never overwritten.
    ``existing_fingerprints`` is not modified, merging ``added`` into the
    session's account set is up to the caller.
    """

    seen: Set[str] = set(existing_fingerprints)
    result = AddResult()
    for account in candidates:
        if account.fingerprint in seen:
            log.debug("dropping duplicate account %s", account.fingerprint[:12])
            result.duplicates.append(account)
            continue
        seen.add(account.fingerprint)
        result.added.append(account)
    return result

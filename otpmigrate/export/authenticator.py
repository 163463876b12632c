"""
Re-encode accounts into authenticator migration QR codes.

A selection larger than one code's capacity is split into contiguous
batches sharing one random batch id.

Deutsch:
    Export in das Migrationsformat der Authenticator-App, ggf. in Teilen.
"""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional, Sequence

from ..codec import build_migration_uri, encode_payload
from ..models import Account, ExportBatch
from ..normalizer import to_record
from ..settings import AuthenticatorSettings
from .selection import require_selection

log = logging.getLogger(__name__)


class AuthenticatorExporter:
    name = "authenticator"

    def __init__(
        self,
        settings: Optional[AuthenticatorSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or AuthenticatorSettings()
        if self.settings.capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._rng = rng or random.SystemRandom()

    def plan_batches(self, selection: Sequence[Account]) -> List[ExportBatch]:
        require_selection(selection)
        capacity = self.settings.capacity
        batch_size = math.ceil(len(selection) / capacity)
        batch_id = self._rng.randint(1, 2**31 - 1)
        return [
            ExportBatch(
                accounts=tuple(selection[start : start + capacity]),
                batch_index=index,
                batch_size=batch_size,
                batch_id=batch_id,
            )
            for index, start in enumerate(range(0, len(selection), capacity))
        ]

    def encode_batch(self, batch: ExportBatch) -> str:
        data = encode_payload(
            (to_record(account) for account in batch.accounts),
            batch.batch_index,
            batch.batch_size,
            batch.batch_id,
            version=self.settings.version,
        )
        return build_migration_uri(data)

    def export_all(self, selection: Sequence[Account]) -> List[str]:
        """Return one independently scannable URI per batch."""

        batches = self.plan_batches(selection)
        uris = [self.encode_batch(batch) for batch in batches]
        log.info("exported %d account(s) into %d migration code(s)", len(selection), len(uris))
        return uris

    def export(self, selection: Sequence[Account]) -> str:
        """Return the first batch's URI; use :meth:`export_all` for every batch."""

        return self.export_all(selection)[0]

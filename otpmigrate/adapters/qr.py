"""
Adapter for scanned authenticator migration QR codes.

Input is the decoded text of one QR code, or a text file holding one
scanned code per line.

Deutsch:
    Adapter für gescannte Migrations-QR-Codes.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..codec import decode_migration_uri
from ..models import RawOtpRecord
from . import BaseAdapter, register

log = logging.getLogger(__name__)


class QrPayloadAdapter(BaseAdapter):
    name = "qr"
    suffixes = (".txt", ".uri", "")

    def adapt(self, text: str) -> Optional[List[RawOtpRecord]]:
        found = False
        records: List[RawOtpRecord] = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            payload = decode_migration_uri(line)
            if payload is None:
                log.debug("line %d carries no migration URI", line_no)
                continue
            found = True
            if payload.batch_size > 1:
                log.info(
                    "migration code is part %d of %d (batch %d)",
                    payload.batch_index + 1,
                    payload.batch_size,
                    payload.batch_id,
                )
            records.extend(payload.records)
        if not found:
            return None
        return records


register(QrPayloadAdapter())

"""
Adapter for structured-text (JSON) account backups.

Deutsch:
    Adapter für JSON-Backups von Konten.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from ..errors import MalformedPayload
from ..models import RawOtpRecord
from . import BaseAdapter, register
from .records import build_record

log = logging.getLogger(__name__)


class JsonBackupAdapter(BaseAdapter):
    name = "json"
    suffixes = (".json",)

    def adapt(self, text: str) -> Optional[List[RawOtpRecord]]:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(f"invalid JSON: {exc}", self.name) from exc
        items = _unwrap(payload)
        records = [build_record(item, idx, self.name) for idx, item in enumerate(items, start=1)]
        log.debug("json backup yielded %d record(s)", len(records))
        return records


def _unwrap(payload: Any) -> List[Any]:
    if not isinstance(payload, list):
        raise MalformedPayload("top level of a JSON backup must be a list", "json")
    return payload


register(JsonBackupAdapter())

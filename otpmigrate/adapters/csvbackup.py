"""
Adapter for delimited-text (CSV) account backups.

Deutsch:
    Adapter für CSV-Backups von Konten.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Dict, Iterator, List, Optional

from ..errors import MalformedPayload
from ..models import RawOtpRecord
from . import BaseAdapter, register
from .records import REQUIRED_FIELDS, build_record, strip_blank_optionals

log = logging.getLogger(__name__)


class CsvBackupAdapter(BaseAdapter):
    name = "csv"
    suffixes = (".csv",)

    def adapt(self, text: str) -> Optional[List[RawOtpRecord]]:
        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
        header = _read_header(reader)
        records: List[RawOtpRecord] = []
        try:
            for idx, row in enumerate(reader, start=1):
                if not any(cell.strip() for cell in row):
                    continue
                item: Dict[str, Optional[str]] = {
                    column: (row[pos] if pos < len(row) else None) for pos, column in enumerate(header)
                }
                records.append(build_record(strip_blank_optionals(item), idx, self.name))
        except csv.Error as exc:
            raise MalformedPayload(f"invalid CSV: {exc}", self.name) from exc
        log.debug("csv backup yielded %d record(s)", len(records))
        return records


def _read_header(reader: Iterator[List[str]]) -> List[str]:
    try:
        raw = next(reader)
    except StopIteration:
        raise MalformedPayload("CSV backup has no header row", "csv") from None
    except csv.Error as exc:
        raise MalformedPayload(f"invalid CSV: {exc}", "csv") from exc
    header = [column.strip().lower() for column in raw]
    missing = [column for column in REQUIRED_FIELDS if column not in header]
    if missing:
        raise MalformedPayload(f"CSV header lacks required column(s): {', '.join(missing)}", "csv")
    return header


register(CsvBackupAdapter())

"""
JSON and CSV backup writers, in the shape the backup adapters read back.

Deutsch:
    JSON- und CSV-Backups, die wieder importiert werden können.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Union

from ..models import Account, OtpKind
from .selection import require_selection

log = logging.getLogger(__name__)

COLUMNS = ("name", "issuer", "secret", "type", "counter", "algorithm", "digits", "uri")


def _kind_value(account: Account) -> str:
    # read back by adapters.records as UNSPECIFIED, not hotp
    if account.kind == OtpKind.UNSPECIFIED:
        return "unspecified"
    return account.kind_name


def _row(account: Account) -> Dict[str, Union[str, int]]:
    return {
        "name": account.name,
        "issuer": account.issuer,
        "secret": account.secret_base32,
        "type": _kind_value(account),
        "counter": account.counter,
        "algorithm": account.algorithm_name,
        "digits": account.digits,
        "uri": account.uri,
    }


def to_json(selection: Sequence[Account]) -> str:
    require_selection(selection)
    rows: List[Dict[str, Union[str, int]]] = [_row(account) for account in selection]
    return json.dumps(rows, indent=2, ensure_ascii=False) + "\n"


def to_csv(selection: Sequence[Account]) -> str:
    require_selection(selection)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=COLUMNS, lineterminator="\n")
    writer.writeheader()
    for account in selection:
        writer.writerow(_row(account))
    return buffer.getvalue()


def write_backup(selection: Sequence[Account], path: Path) -> Path:
    """Write a JSON or CSV backup, chosen by the file suffix."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        content = to_json(selection)
    elif suffix == ".csv":
        content = to_csv(selection)
    else:
        raise ValueError(f"unsupported backup format: {path.name}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    log.info("wrote %d account(s) to %s", len(selection), path)
    return path

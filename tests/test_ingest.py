from __future__ import annotations

import json
from pathlib import Path

from otpmigrate.codec import build_migration_uri, encode_payload
from otpmigrate.errors import MalformedPayload, NoRelevantContent, UnsupportedInput
from otpmigrate.ingest import InputUnit, process_units, read_units, uri_unit
from otpmigrate.models import AccountSet, RawOtpRecord

SECRET_B32 = "JBSWY3DPEHPK3PXP"


def _backup(*names: str) -> str:
    return json.dumps([{"secret": SECRET_B32, "name": name, "issuer": "Example"} for name in names])


def test_same_backup_twice_reports_duplicates() -> None:
    account_set = AccountSet()
    units = [InputUnit("a.json", _backup("alice", "bob")), InputUnit("b.json", _backup("alice", "bob"))]

    first, second = process_units(units, account_set)

    assert first.status == "ok"
    assert first.added_count == 2
    assert second.status == "duplicates"
    assert second.added_count == 0
    assert second.duplicate_count == 2
    assert len(account_set) == 2


def test_failures_do_not_discard_other_units() -> None:
    account_set = AccountSet()
    uri = build_migration_uri(encode_payload([RawOtpRecord(secret=b"qr-secret", name="carol")], 0, 1, 1))
    units = [
        InputUnit("good.json", _backup("alice")),
        InputUnit("broken.csv", "secret,issuer\nX,Y\n"),
        InputUnit("photo.png", ""),
        InputUnit("notes.txt", "just some text"),
        InputUnit("empty.json", "[]"),
        uri_unit(uri),
    ]

    outcomes = process_units(units, account_set)

    assert [outcome.status for outcome in outcomes] == ["ok", "error", "error", "no-content", "empty", "ok"]
    assert isinstance(outcomes[1].error, MalformedPayload)
    assert isinstance(outcomes[2].error, UnsupportedInput)
    assert isinstance(outcomes[3].error, NoRelevantContent)
    assert [account.name for account in account_set] == ["alice", "carol"]
    assert "1 account(s) added" in outcomes[0].describe()
    assert outcomes[3].describe() == "notes.txt: no migration QR code found"


def test_read_units_loads_files(tmp_path: Path) -> None:
    path = tmp_path / "accounts.json"
    path.write_text(_backup("alice"), encoding="utf-8")

    (unit,) = read_units([path])

    assert unit.name == "accounts.json"
    assert unit.adapter is None
    assert json.loads(unit.text)[0]["name"] == "alice"

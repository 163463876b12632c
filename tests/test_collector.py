from __future__ import annotations

import pytest

from otpmigrate.collector import add
from otpmigrate.models import Account, AccountSet, OtpKind, RawOtpRecord
from otpmigrate.normalizer import normalize


def _account(name: str, *, issuer: str = "Example", counter: int = 0, kind: OtpKind = OtpKind.TOTP) -> Account:
    return normalize(RawOtpRecord(secret=f"secret-{name}".encode(), name=name, issuer=issuer, kind=kind, counter=counter))


def test_add_is_idempotent() -> None:
    accounts = [_account("alice"), _account("bob"), _account("carol")]

    first = add(accounts, set())
    second = add(first.added, {account.fingerprint for account in first.added})

    assert first.added == accounts
    assert first.duplicate_count == 0
    assert second.added == []
    assert second.duplicate_count == len(accounts)


def test_add_drops_duplicates_within_one_call_first_seen_wins() -> None:
    original = _account("alice", counter=1)
    same_identity = _account("alice", counter=99)

    result = add([original, _account("bob"), same_identity], set())

    assert [account.name for account in result.added] == ["alice", "bob"]
    assert result.added[0].counter == 1
    assert result.duplicates == [same_identity]


def test_add_does_not_touch_existing_fingerprints() -> None:
    existing = {_account("alice").fingerprint}
    frozen = frozenset(existing)

    result = add([_account("alice"), _account("bob")], existing)

    assert existing == set(frozen)
    assert [account.name for account in result.added] == ["bob"]
    assert result.duplicate_count == 1


def test_account_set_merge_keeps_first_and_order() -> None:
    account_set = AccountSet()
    alice, bob = _account("alice"), _account("bob")

    assert account_set.merge([alice, bob]) == [alice, bob]
    assert account_set.merge([_account("alice", counter=5)]) == []

    assert [account.name for account in account_set] == ["alice", "bob"]
    assert account_set.get(alice.fingerprint).counter == 0
    assert alice.fingerprint in account_set
    assert len(account_set) == 2


def test_account_set_selection_invariants() -> None:
    alice, bob, carol = _account("alice"), _account("bob"), _account("carol")
    account_set = AccountSet([alice, bob, carol])

    account_set.select([carol.fingerprint, alice.fingerprint])
    assert [account.name for account in account_set.selected_accounts()] == ["alice", "carol"]

    with pytest.raises(KeyError):
        account_set.select(["unknown"])

    account_set.remove([alice.fingerprint])
    assert account_set.selected == {carol.fingerprint}

    account_set.select_all()
    assert account_set.selected == {bob.fingerprint, carol.fingerprint}
    account_set.deselect([bob.fingerprint])
    assert account_set.selected == {carol.fingerprint}
    account_set.deselect_all()
    assert account_set.selected_accounts() == []

    account_set.clear()
    assert len(account_set) == 0
    assert account_set.selected == set()


def test_account_set_replace_keeps_position_and_selection() -> None:
    alice, bob = _account("alice"), _account("bob")
    account_set = AccountSet([alice, bob])
    account_set.select([alice.fingerprint])

    renamed = _account("alicia")
    account_set.replace(alice.fingerprint, renamed)

    assert [account.name for account in account_set] == ["alicia", "bob"]
    assert account_set.selected == {renamed.fingerprint}
    with pytest.raises(ValueError):
        account_set.replace(renamed.fingerprint, bob)


def test_account_set_records_history() -> None:
    alice = _account("alice")
    account_set = AccountSet()

    account_set.merge([alice])
    account_set.select([alice.fingerprint])
    account_set.clear()

    assert [entry.action for entry in account_set.history] == ["merge", "select", "clear"]
    assert account_set.history[0].fingerprints == (alice.fingerprint,)

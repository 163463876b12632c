from __future__ import annotations

from otpmigrate.models import Algorithm, DigitCount, OtpKind, RawOtpRecord
from otpmigrate.normalizer import fingerprint, normalize, to_record

SECRET = b"Hello!\xde\xad\xbe\xef"


def _record(**overrides) -> RawOtpRecord:
    values = dict(
        secret=SECRET,
        name="alice@example.com",
        issuer="Example Co",
        algorithm=Algorithm.SHA1,
        digit_count=DigitCount.SIX,
        kind=OtpKind.TOTP,
        counter=0,
    )
    values.update(overrides)
    return RawOtpRecord(**values)


def test_totp_uri_uses_issuer_prefixed_label() -> None:
    account = normalize(_record())

    assert account.uri == (
        "otpauth://totp/Example%20Co:alice%40example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example%20Co&algorithm=SHA1&digits=6"
    )
    assert account.secret_base32 == "JBSWY3DPEHPK3PXP"
    assert account.label == "Example Co: alice@example.com"


def test_hotp_uri_carries_counter() -> None:
    account = normalize(_record(kind=OtpKind.HOTP, counter=42, algorithm=Algorithm.SHA256, digit_count=DigitCount.EIGHT))

    assert account.uri.startswith("otpauth://hotp/")
    assert account.uri.endswith("algorithm=SHA256&digits=8&counter=42")


def test_unspecified_values_fall_back_to_otpauth_defaults() -> None:
    account = normalize(
        _record(issuer="", algorithm=Algorithm.UNSPECIFIED, digit_count=DigitCount.UNSPECIFIED, kind=OtpKind.UNSPECIFIED)
    )

    assert account.uri == "otpauth://hotp/alice%40example.com?secret=JBSWY3DPEHPK3PXP&algorithm=SHA1&digits=6&counter=0"
    assert account.digits == 6
    assert account.algorithm_name == "SHA1"
    assert account.kind_name == "hotp"


def test_fingerprint_ignores_counter_digits_and_algorithm() -> None:
    first = normalize(_record())
    second = normalize(_record(counter=7, digit_count=DigitCount.EIGHT, algorithm=Algorithm.SHA512))

    assert first.fingerprint == second.fingerprint
    assert first.uri != second.uri
    assert len(first.fingerprint) == 64


def test_fingerprint_distinguishes_identity_fields() -> None:
    base = normalize(_record()).fingerprint

    assert normalize(_record(kind=OtpKind.HOTP)).fingerprint != base
    assert normalize(_record(name="bob")).fingerprint != base
    assert normalize(_record(issuer="Other")).fingerprint != base
    assert normalize(_record(secret=b"other-secret")).fingerprint != base
    # field boundaries matter
    assert fingerprint(b"", "ab", "c", OtpKind.TOTP) != fingerprint(b"", "a", "bc", OtpKind.TOTP)


def test_to_record_inverts_normalize() -> None:
    record = _record(kind=OtpKind.HOTP, counter=3)
    assert to_record(normalize(record)) == record

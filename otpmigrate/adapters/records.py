"""
Field coercion shared by the JSON and CSV backup adapters.

Deutsch:
    Gemeinsame Feldkonvertierung für JSON- und CSV-Backups.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, Mapping, Optional

from jsonschema import Draft7Validator

from ..errors import MalformedPayload
from ..models import Algorithm, DigitCount, OtpKind, RawOtpRecord
from ..schemas import load_schema

FIELDS = ("secret", "name", "issuer", "algorithm", "digits", "type", "counter")
REQUIRED_FIELDS = ("secret", "name")

_ACCOUNT_SCHEMA = load_schema("account.schema.json")
_ACCOUNT_VALIDATOR = Draft7Validator(_ACCOUNT_SCHEMA)

_DIGITS = {6: DigitCount.SIX, 8: DigitCount.EIGHT}
_KINDS = {"totp": OtpKind.TOTP, "hotp": OtpKind.HOTP, "unspecified": OtpKind.UNSPECIFIED}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def build_record(item: Mapping[str, Any], index: int, source: str) -> RawOtpRecord:
    """
    Validate one backup entry and convert it into a raw record.

    Missing optional fields fall back to SHA1 / 6 digits / TOTP / counter 0;
    unrecognised values become UNSPECIFIED.
    """

    _validate_item(item, index, source)
    return RawOtpRecord(
        secret=decode_base32(str(item["secret"]), index, source),
        name=str(item["name"]).strip(),
        issuer=str(item.get("issuer") or "").strip(),
        algorithm=_coerce_algorithm(item.get("algorithm")),
        digit_count=_coerce_digits(item.get("digits")),
        kind=_coerce_kind(item.get("type")),
        counter=_coerce_counter(item.get("counter"), index, source),
    )


def decode_base32(value: str, index: int, source: str) -> bytes:
    cleaned = "".join(value.split()).upper().rstrip("=")
    cleaned += "=" * (-len(cleaned) % 8)
    try:
        return base64.b32decode(cleaned)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayload(f"entry {index}: secret is not valid base32", source) from exc


def _validate_item(item: Mapping[str, Any], index: int, source: str) -> None:
    if not isinstance(item, Mapping):
        raise MalformedPayload(f"entry {index} is not an object", source)
    errors = sorted(_ACCOUNT_VALIDATOR.iter_errors(dict(item)), key=lambda err: list(err.path))
    if errors:
        raise MalformedPayload(f"entry {index} invalid: {errors[0].message}", source)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_algorithm(value: Any) -> Algorithm:
    if _blank(value):
        return Algorithm.SHA1
    key = str(value).strip().upper().replace("-", "")
    return Algorithm.__members__.get(key, Algorithm.UNSPECIFIED)


def _coerce_digits(value: Any) -> DigitCount:
    if _blank(value):
        return DigitCount.SIX
    try:
        return _DIGITS.get(int(str(value).strip()), DigitCount.UNSPECIFIED)
    except ValueError:
        return DigitCount.UNSPECIFIED


def _coerce_kind(value: Any) -> OtpKind:
    if _blank(value):
        return OtpKind.TOTP
    return _KINDS.get(str(value).strip().lower(), OtpKind.UNSPECIFIED)


def _coerce_counter(value: Any, index: int, source: str) -> int:
    if _blank(value):
        return 0
    try:
        counter = int(str(value).strip())
    except ValueError as exc:
        raise MalformedPayload(f"entry {index}: counter {value!r} is not an integer", source) from exc
    if not INT64_MIN <= counter <= INT64_MAX:
        raise MalformedPayload(f"entry {index}: counter {value!r} is outside the 64-bit range", source)
    return counter


def strip_blank_optionals(row: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """Drop empty optional cells so they pick up their defaults."""

    return {
        key: value
        for key, value in row.items()
        if key in REQUIRED_FIELDS or not _blank(value)
    }

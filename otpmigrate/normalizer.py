"""
Normalisation of raw adapter records into canonical accounts.

Deutsch:
    Normalisierung von Rohdatensätzen zu kanonischen Konten.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable, List
from urllib.parse import quote, urlencode

from .models import DIGITS_BY_COUNT, Account, Algorithm, OtpKind, RawOtpRecord


def fingerprint(secret: bytes, name: str, issuer: str, kind: OtpKind) -> str:
    """
    Stable identity of an account across imports.

    Counter, digits and algorithm are not part of the identity.
    """

    digest = hashlib.sha256()
    for part in (secret, name.encode("utf-8"), issuer.encode("utf-8"), str(int(kind)).encode("ascii")):
        digest.update(len(part).to_bytes(4, "big"))
        digest.update(part)
    return digest.hexdigest()


def build_uri(record: RawOtpRecord) -> str:
    kind = "totp" if record.kind == OtpKind.TOTP else "hotp"
    if record.issuer:
        label = f"{quote(record.issuer, safe='')}:{quote(record.name, safe='')}"
    else:
        label = quote(record.name, safe="")

    algorithm = record.algorithm if record.algorithm != Algorithm.UNSPECIFIED else Algorithm.SHA1
    params = [("secret", base64.b32encode(record.secret).decode("ascii").rstrip("="))]
    if record.issuer:
        params.append(("issuer", record.issuer))
    params.append(("algorithm", algorithm.name))
    params.append(("digits", str(DIGITS_BY_COUNT[record.digit_count])))
    if kind == "hotp":
        params.append(("counter", str(record.counter)))
    return f"otpauth://{kind}/{label}?{urlencode(params, quote_via=quote)}"


def normalize(record: RawOtpRecord) -> Account:
    """Build the canonical account for a raw record. Pure, no I/O."""

    return Account(
        name=record.name,
        issuer=record.issuer,
        secret=record.secret,
        kind=record.kind,
        counter=record.counter,
        digit_count=record.digit_count,
        algorithm=record.algorithm,
        uri=build_uri(record),
        fingerprint=fingerprint(record.secret, record.name, record.issuer, record.kind),
    )


def normalize_all(records: Iterable[RawOtpRecord]) -> List[Account]:
    return [normalize(record) for record in records]


def to_record(account: Account) -> RawOtpRecord:
    """Inverse of :func:`normalize`, used by the exporters."""

    return RawOtpRecord(
        secret=account.secret,
        name=account.name,
        issuer=account.issuer,
        algorithm=account.algorithm,
        digit_count=account.digit_count,
        kind=account.kind,
        counter=account.counter,
    )

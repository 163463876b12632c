"""
Codec for the authenticator migration payload (protobuf wire format).

The payload is a flat sequence of tagged fields. Top level:

    1: repeated OtpParameters (length-delimited)
    2: version        (varint, int32)
    3: batch_size     (varint, int32)
    4: batch_index    (varint, int32)
    5: batch_id       (varint, int64)

OtpParameters:

    1: secret (bytes)  2: name (string)  3: issuer (string)
    4: algorithm       5: digits         6: type       7: counter (int64)

Deutsch:
    Kodierung/Dekodierung der Migrations-Nutzlast im Protobuf-Wire-Format.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union
from urllib.parse import parse_qs, quote, urlsplit

from .errors import MalformedPayload
from .models import Algorithm, DigitCount, MigrationPayload, OtpKind, RawOtpRecord

log = logging.getLogger(__name__)

MIGRATION_SCHEME = "otpauth-migration"
MIGRATION_URI_PREFIX = f"{MIGRATION_SCHEME}://offline"

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_FIXED32 = 5

_MAX_VARINT_BYTES = 10
_UINT64_MASK = (1 << 64) - 1

# field number -> attribute name, expected wire type
_PAYLOAD_FIELDS: Dict[int, Tuple[str, int]] = {
    1: ("records", WIRE_LENGTH_DELIMITED),
    2: ("version", WIRE_VARINT),
    3: ("batch_size", WIRE_VARINT),
    4: ("batch_index", WIRE_VARINT),
    5: ("batch_id", WIRE_VARINT),
}

_PARAMETER_FIELDS: Dict[int, Tuple[str, int]] = {
    1: ("secret", WIRE_LENGTH_DELIMITED),
    2: ("name", WIRE_LENGTH_DELIMITED),
    3: ("issuer", WIRE_LENGTH_DELIMITED),
    4: ("algorithm", WIRE_VARINT),
    5: ("digit_count", WIRE_VARINT),
    6: ("kind", WIRE_VARINT),
    7: ("counter", WIRE_VARINT),
}

_INT32_FIELDS = {"version", "batch_size", "batch_index"}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


@dataclass
class _Reader:
    data: bytes
    pos: int = 0
    end: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.end < 0:
            self.end = len(self.data)

    def at_end(self) -> bool:
        return self.pos >= self.end

    def read_varint(self) -> int:
        value = 0
        for index in range(_MAX_VARINT_BYTES):
            if self.pos >= self.end:
                raise MalformedPayload(f"stream ends inside varint at offset {self.pos}")
            byte = self.data[self.pos]
            self.pos += 1
            value |= (byte & 0x7F) << (7 * index)
            if not byte & 0x80:
                if value > _UINT64_MASK:
                    raise MalformedPayload("varint exceeds 64 bits")
                return value
        raise MalformedPayload(f"varint longer than {_MAX_VARINT_BYTES} bytes")

    def read_bytes(self, length: int) -> bytes:
        if length > self.end - self.pos:
            raise MalformedPayload(
                f"field length {length} exceeds remaining {self.end - self.pos} bytes at offset {self.pos}"
            )
        chunk = self.data[self.pos : self.pos + length]
        self.pos += length
        return chunk

    def read_length_delimited(self) -> bytes:
        return self.read_bytes(self.read_varint())

    def read_tag(self) -> Tuple[int, int]:
        key = self.read_varint()
        number, wire_type = key >> 3, key & 0x07
        if number == 0:
            raise MalformedPayload(f"invalid field number 0 at offset {self.pos}")
        return number, wire_type

    def skip(self, wire_type: int) -> None:
        if wire_type == WIRE_VARINT:
            self.read_varint()
        elif wire_type == WIRE_FIXED64:
            self.read_bytes(8)
        elif wire_type == WIRE_LENGTH_DELIMITED:
            self.read_length_delimited()
        elif wire_type == WIRE_FIXED32:
            self.read_bytes(4)
        else:
            raise MalformedPayload(f"unsupported wire type {wire_type} at offset {self.pos}")


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _iter_fields(
    reader: _Reader, known: Dict[int, Tuple[str, int]], scope: str
) -> Iterator[Tuple[str, Union[int, bytes]]]:
    """Yield ``(name, raw value)`` for known fields, skipping unknown ones."""

    while not reader.at_end():
        number, wire_type = reader.read_tag()
        entry = known.get(number)
        if entry is None:
            log.debug("skipping unknown %s field %d (wire type %d)", scope, number, wire_type)
            reader.skip(wire_type)
            continue
        name, expected = entry
        if wire_type != expected:
            raise MalformedPayload(f"{scope} field {name} has wire type {wire_type}, expected {expected}")
        if wire_type == WIRE_VARINT:
            yield name, reader.read_varint()
        else:
            yield name, reader.read_length_delimited()


def _decode_parameter(chunk: bytes) -> RawOtpRecord:
    chunks: Dict[str, bytes] = {}
    numbers: Dict[str, int] = {}
    for name, raw in _iter_fields(_Reader(chunk), _PARAMETER_FIELDS, "OtpParameters"):
        if isinstance(raw, bytes):
            chunks[name] = raw
        else:
            numbers[name] = raw

    return RawOtpRecord(
        secret=chunks.get("secret", b""),
        name=_decode_text(chunks.get("name", b"")),
        issuer=_decode_text(chunks.get("issuer", b"")),
        algorithm=Algorithm.coerce(_to_signed(numbers.get("algorithm", 0), 32)),
        digit_count=DigitCount.coerce(_to_signed(numbers.get("digit_count", 0), 32)),
        kind=OtpKind.coerce(_to_signed(numbers.get("kind", 0), 32)),
        counter=_to_signed(numbers.get("counter", 0), 64),
    )


def _decode_text(raw: bytes) -> str:
    # invalid UTF-8 is replaced, not rejected
    return raw.decode("utf-8", errors="replace")


def decode_payload(data: bytes) -> MigrationPayload:
    """
    Decode a migration payload.

    Unknown fields are skipped, unknown enum values become UNSPECIFIED.
    An empty byte string yields an empty payload.

    Raises:
        MalformedPayload: on truncated fields, oversized lengths or varints,
            mismatching wire types, or a non-empty payload without records.
    """

    if not data:
        return MigrationPayload()

    records: List[RawOtpRecord] = []
    scalars: Dict[str, int] = {}
    saw_records = False
    for name, raw in _iter_fields(_Reader(bytes(data)), _PAYLOAD_FIELDS, "MigrationPayload"):
        if isinstance(raw, bytes):
            saw_records = True
            records.append(_decode_parameter(raw))
        else:
            scalars[name] = _to_signed(raw, 32 if name in _INT32_FIELDS else 64)

    if not saw_records:
        raise MalformedPayload("migration payload carries no OTP parameters")

    payload = MigrationPayload(
        version=scalars.get("version", 0),
        batch_size=scalars.get("batch_size", 0),
        batch_index=scalars.get("batch_index", 0),
        batch_id=scalars.get("batch_id", 0),
        records=tuple(records),
    )
    if payload.batch_size > 0 and not 0 <= payload.batch_index < payload.batch_size:
        raise MalformedPayload(f"batch index {payload.batch_index} outside batch size {payload.batch_size}")
    log.debug(
        "decoded migration payload v%d with %d record(s), batch %d/%d",
        payload.version,
        len(payload.records),
        payload.batch_index + 1,
        payload.batch_size,
    )
    return payload


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _encode_varint(value: int) -> bytes:
    value &= _UINT64_MASK
    out = bytearray()
    while True:
        to_write = value & 0x7F
        value >>= 7
        if value:
            out.append(to_write | 0x80)
        else:
            out.append(to_write)
            return bytes(out)


def _tag(number: int, wire_type: int) -> bytes:
    return _encode_varint((number << 3) | wire_type)


def _varint_field(number: int, value: int) -> bytes:
    if not value:
        return b""
    return _tag(number, WIRE_VARINT) + _encode_varint(value)


def _bytes_field(number: int, payload: bytes, *, keep_empty: bool = False) -> bytes:
    if not payload and not keep_empty:
        return b""
    return _tag(number, WIRE_LENGTH_DELIMITED) + _encode_varint(len(payload)) + payload


def encode_record(record: RawOtpRecord) -> bytes:
    return b"".join(
        [
            _bytes_field(1, record.secret),
            _bytes_field(2, record.name.encode("utf-8")),
            _bytes_field(3, record.issuer.encode("utf-8")),
            _varint_field(4, int(record.algorithm)),
            _varint_field(5, int(record.digit_count)),
            _varint_field(6, int(record.kind)),
            _varint_field(7, record.counter),
        ]
    )


def encode_payload(
    records: Iterable[RawOtpRecord],
    batch_index: int,
    batch_size: int,
    batch_id: int,
    *,
    version: int = 1,
) -> bytes:
    """
    Encode records into a migration payload.

    Fields are written in ascending field number order; zero/default values
    are omitted the way the exporting app omits them.
    """

    parts = [_bytes_field(1, encode_record(record), keep_empty=True) for record in records]
    parts.append(_varint_field(2, version))
    parts.append(_varint_field(3, batch_size))
    parts.append(_varint_field(4, batch_index))
    parts.append(_varint_field(5, batch_id))
    return b"".join(parts)


def encode_migration_payload(payload: MigrationPayload) -> bytes:
    return encode_payload(
        payload.records,
        payload.batch_index,
        payload.batch_size,
        payload.batch_id,
        version=payload.version,
    )


# ---------------------------------------------------------------------------
# URI transport
# ---------------------------------------------------------------------------


def is_migration_uri(text: str) -> bool:
    return text.strip().lower().startswith(f"{MIGRATION_SCHEME}://")


def build_migration_uri(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"{MIGRATION_URI_PREFIX}?data={quote(encoded, safe='')}"


def extract_migration_data(uri: str) -> bytes:
    """
    Return the raw payload bytes carried by an ``otpauth-migration`` URI.

    Raises:
        MalformedPayload: when the ``data`` parameter is missing or not base64.
    """

    parts = urlsplit(uri.strip())
    params = parse_qs(parts.query)
    values = params.get("data")
    if not values or not values[0]:
        raise MalformedPayload("migration URI has no 'data' parameter")
    return _decode_base64(values[0])


def _decode_base64(text: str) -> bytes:
    # parse_qs turns an unescaped '+' into a space
    cleaned = text.replace(" ", "+").strip().replace("-", "+").replace("_", "/")
    cleaned = cleaned.rstrip("=")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayload(f"migration data is not valid base64: {exc}") from exc


def decode_migration_uri(uri: str) -> Optional[MigrationPayload]:
    """Decode a scanned QR text; ``None`` when it is not a migration URI."""

    if not is_migration_uri(uri):
        return None
    return decode_payload(extract_migration_data(uri))

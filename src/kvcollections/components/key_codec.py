"""Order-preserving binary encoding for store keys.

A key is a tuple of key parts. Each part is encoded as a type tag followed
by a payload that sorts correctly under byte-wise comparison, so comparing
two encoded keys gives the same result as comparing the keys part by part.

Encoding rules:
  BYTES   -> 0x01 + payload, 0x00 escaped as 0x00 0xFF, terminated by 0x00
  STRING  -> 0x02 + UTF-8 payload, escaped and terminated as BYTES
  NUMBER  -> 0x21 + IEEE 754 sortable transform of the float64 value (8 bytes)
             int and float share this tag, so 2 and 2.0 are the same key part.
             Ints must be exactly representable as a float64. NaN is not
             encodable. +0 and -0 normalize to the same encoding.
  BOOLEAN -> 0x26 (False) / 0x27 (True), no payload

Cross-type order is therefore bytes < str < number < bool.
Every part is self-delimiting, so the encoding of a key prefix is a byte
prefix of the encoding of every key that extends it.
"""

from __future__ import annotations

import math
import struct
from collections.abc import Sequence

from ..core.errors import KeyEncodingError
from ..core.types import Key, KeyPart

TAG_BYTES = 0x01
TAG_STRING = 0x02
TAG_NUMBER = 0x21
TAG_FALSE = 0x26
TAG_TRUE = 0x27

# Greater than every tag byte: upper bound for "anything under this prefix"
_PREFIX_END = b"\xff"

# Integral floats up to this magnitude decode back to int
_EXACT_INT_MAX = 1 << 53


# ─── Encode ─────────────────────────────────────────────────────────────────

def encode_key(key: Sequence[KeyPart]) -> bytes:
    """Encode a key (sequence of parts) to order-preserving bytes."""
    out = bytearray()
    for part in key:
        out += encode_part(part)
    return bytes(out)


def encode_part(part: KeyPart) -> bytes:
    """Encode a single key part, tag included.

    Raises KeyEncodingError for None, NaN, ints that a float64 cannot hold
    exactly and unsupported types.
    """
    # bool first: it is a subclass of int
    if isinstance(part, bool):
        return bytes([TAG_TRUE if part else TAG_FALSE])
    if isinstance(part, (bytes, bytearray, memoryview)):
        return bytes([TAG_BYTES]) + _escape(bytes(part))
    if isinstance(part, str):
        return bytes([TAG_STRING]) + _escape(part.encode("utf-8"))
    if isinstance(part, int):
        return bytes([TAG_NUMBER]) + _encode_float(_int_to_float(part))
    if isinstance(part, float):
        if math.isnan(part):
            raise KeyEncodingError("NaN cannot be used as a key part")
        return bytes([TAG_NUMBER]) + _encode_float(part)
    raise KeyEncodingError(f"Unsupported key part type: {type(part).__name__}")


def _escape(payload: bytes) -> bytes:
    """Escape embedded 0x00 as 0x00 0xFF and append the 0x00 terminator."""
    return payload.replace(b"\x00", b"\x00\xff") + b"\x00"


def _int_to_float(val: int) -> float:
    try:
        converted = float(val)
    except OverflowError:
        raise KeyEncodingError(f"Integer key part too large: {val}") from None
    if converted != val:
        raise KeyEncodingError(f"Integer key part not exactly representable as float64: {val}")
    return converted


def _encode_float(val: float) -> bytes:
    """IEEE 754 sortable transform.

    Positive values get the sign bit flipped, negative values get all bits
    flipped, so more negative means smaller bytes.
    """
    if val == 0.0:
        val = 0.0
    raw = bytearray(struct.pack(">d", val))
    if raw[0] & 0x80:
        for i in range(8):
            raw[i] ^= 0xFF
    else:
        raw[0] ^= 0x80
    return bytes(raw)


# ─── Decode ─────────────────────────────────────────────────────────────────

def decode_key(data: bytes) -> Key:
    """Decode bytes produced by encode_key back into a key tuple."""
    parts: list[KeyPart] = []
    offset = 0
    while offset < len(data):
        part, offset = decode_part(data, offset)
        parts.append(part)
    return tuple(parts)


def decode_part(data: bytes, offset: int) -> tuple[KeyPart, int]:
    """Decode one key part at offset. Returns (part, new_offset)."""
    tag = data[offset]
    offset += 1
    if tag == TAG_BYTES:
        return _unescape(data, offset)
    if tag == TAG_STRING:
        payload, offset = _unescape(data, offset)
        return payload.decode("utf-8"), offset
    if tag == TAG_NUMBER:
        return _decode_number(_fixed(data, offset, 8)), offset + 8
    if tag == TAG_FALSE:
        return False, offset
    if tag == TAG_TRUE:
        return True, offset
    raise KeyEncodingError(f"Unknown key part tag 0x{tag:02X} at offset {offset - 1}")


def _fixed(data: bytes, offset: int, size: int) -> bytes:
    chunk = data[offset:offset + size]
    if len(chunk) != size:
        raise KeyEncodingError(f"Truncated key part at offset {offset}")
    return chunk


def _unescape(data: bytes, offset: int) -> tuple[bytes, int]:
    """Read an escaped payload up to its terminator.

    0x00 0xFF -> literal 0x00
    0x00 (anything else or end) -> end of payload
    """
    result = bytearray()
    i = offset
    while i < len(data):
        b = data[i]
        if b == 0x00:
            if i + 1 < len(data) and data[i + 1] == 0xFF:
                result.append(0x00)
                i += 2
                continue
            return bytes(result), i + 1
        result.append(b)
        i += 1
    raise KeyEncodingError(f"Unterminated key part starting at offset {offset}")


def _decode_number(raw: bytes) -> int | float:
    """Decode a number, giving back an int when the value is integral."""
    value = _decode_float(raw)
    if value.is_integer() and abs(value) <= _EXACT_INT_MAX:
        return int(value)
    return value


def _decode_float(raw: bytes) -> float:
    b = bytearray(raw)
    if b[0] & 0x80:
        b[0] ^= 0x80
    else:
        for i in range(8):
            b[i] ^= 0xFF
    return struct.unpack(">d", bytes(b))[0]


# ─── Ranges ─────────────────────────────────────────────────────────────────

def prefix_range(prefix: Sequence[KeyPart]) -> tuple[bytes, bytes]:
    """Return [start, end) byte bounds of all keys strictly extending prefix.

    The prefix key itself is excluded: every key under it carries at least
    one more tagged part, and tags are > 0x00 and < 0xFF.
    """
    encoded = encode_key(prefix)
    return encoded + b"\x00", encoded + _PREFIX_END

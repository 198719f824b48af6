"""
asset_sdk.tier2_codec.wire
───────────────────────────
Low-level wire primitives: varints, field keys, fixed-width values and a
bounds-checked reader.

Frame layout (protobuf-compatible):

    ┌───────────────────────────────┬──────────────────────────────┐
    │ key = varint(tag << 3 | type) │ payload                      │
    ├───────────────────────────────┼──────────────────────────────┤
    │ VARINT (0)                    │ base-128 varint              │
    │ I64    (1)                    │ 8 bytes, little-endian       │
    │ LEN    (2)                    │ varint(length) + bytes       │
    │ I32    (5)                    │ 4 bytes, little-endian       │
    └───────────────────────────────┴──────────────────────────────┘

Group wire types (3, 4) are not supported and are treated as malformed.
Integers travel as 64-bit two's complement, so the encoding is identical on
every host.
"""
from __future__ import annotations

import struct
from enum import IntEnum

from asset_sdk.tier0_core.errors import MalformedInput

MAX_VARINT_BYTES = 10
_MASK64 = (1 << 64) - 1

INT32_MIN, INT32_MAX = -(1 << 31), (1 << 31) - 1
INT64_MIN, INT64_MAX = -(1 << 63), (1 << 63) - 1

_DOUBLE = struct.Struct("<d")


class WireType(IntEnum):
    VARINT = 0
    I64 = 1
    LEN = 2
    SGROUP = 3
    EGROUP = 4
    I32 = 5


# ── Encoding ──────────────────────────────────────────────────────────────────

def encode_varint(value: int) -> bytes:
    """Encode an unsigned 64-bit value as a base-128 varint."""
    if value < 0 or value > _MASK64:
        raise ValueError(f"varint out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_signed(value: int) -> bytes:
    """Encode a signed integer as a 64-bit two's complement varint."""
    return encode_varint(value & _MASK64)


def make_key(tag: int, wire_type: WireType) -> bytes:
    return encode_varint((tag << 3) | int(wire_type))


def encode_double(value: float) -> bytes:
    return _DOUBLE.pack(value)


def encode_len(tag: int, payload: bytes) -> bytes:
    """A complete LEN frame: key, length prefix and payload."""
    return make_key(tag, WireType.LEN) + encode_varint(len(payload)) + payload


def to_signed64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >> 63 else value


def to_signed32(value: int) -> int:
    """Truncate to 32 bits the way int32 readers do."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >> 31 else value


# ── Reader ────────────────────────────────────────────────────────────────────

class Reader:
    """
    Cursor over ``data[start:end]``. Every read is bounds-checked and raises
    MalformedInput with the absolute byte offset on truncation.
    """

    def __init__(self, data: bytes, start: int = 0, end: int | None = None) -> None:
        self.data = data
        self.pos = start
        self.end = len(data) if end is None else end

    def at_end(self) -> bool:
        return self.pos >= self.end

    def read_varint(self) -> int:
        start = self.pos
        result = 0
        shift = 0
        for _ in range(MAX_VARINT_BYTES):
            if self.pos >= self.end:
                raise MalformedInput("truncated varint", offset=start)
            byte = self.data[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result & _MASK64
            shift += 7
        raise MalformedInput("varint longer than 10 bytes", offset=start)

    def read_key(self) -> tuple[int, WireType]:
        start = self.pos
        key = self.read_varint()
        tag, raw_type = key >> 3, key & 0x07
        if tag == 0:
            raise MalformedInput("field tag 0 is not allowed", offset=start)
        if raw_type not in (0, 1, 2, 5):
            raise MalformedInput(f"unsupported wire type {raw_type} for tag {tag}", offset=start)
        return tag, WireType(raw_type)

    def _take(self, size: int, what: str) -> int:
        start = self.pos
        if size < 0 or start + size > self.end:
            raise MalformedInput(f"truncated {what}", offset=start)
        self.pos = start + size
        return start

    def read_fixed64(self) -> bytes:
        start = self._take(8, "64-bit value")
        return bytes(self.data[start:self.pos])

    def read_fixed32(self) -> bytes:
        start = self._take(4, "32-bit value")
        return bytes(self.data[start:self.pos])

    def read_double(self) -> float:
        return _DOUBLE.unpack(self.read_fixed64())[0]

    def read_len(self) -> tuple[int, int]:
        """Read a length prefix; return the (start, end) offsets of the payload."""
        length_at = self.pos
        length = self.read_varint()
        if length > self.end - self.pos:
            raise MalformedInput(
                f"length-delimited field of {length} bytes overruns input",
                offset=length_at,
            )
        start = self._take(length, "length-delimited payload")
        return start, self.pos

    def skip(self, wire_type: WireType) -> None:
        """Skip one payload of the given wire type."""
        if wire_type is WireType.VARINT:
            self.read_varint()
        elif wire_type is WireType.I64:
            self.read_fixed64()
        elif wire_type is WireType.LEN:
            self.read_len()
        elif wire_type is WireType.I32:
            self.read_fixed32()
        else:
            raise MalformedInput(f"cannot skip wire type {int(wire_type)}", offset=self.pos)


__all__ = [
    "WireType", "Reader", "encode_varint", "encode_signed", "make_key",
    "encode_double", "encode_len", "to_signed64", "to_signed32",
    "INT32_MIN", "INT32_MAX", "INT64_MIN", "INT64_MAX",
]

"""
asset_sdk.tier2_codec.codec
────────────────────────────
Registry-driven encode/decode between records and tag-framed bytes.

encode:
  - fields in ascending tag order, defaults and empty collections omitted
  - deprecated fields are never written
  - unknown fields are appended verbatim, ascending by tag
  - assumes a validated record: oneof exclusivity is not re-checked

decode:
  - unknown tags are kept as raw frames in ``unknown_fields``, except inside
    a map entry, where they are skipped and not re-emitted
  - deprecated tags populate the record's ``legacy`` sub-record
  - any framing error raises MalformedInput; no partial record escapes
"""
from __future__ import annotations

import math
import struct
from typing import Any, Iterable, Iterator, Type, TypeVar

from asset_sdk.tier0_core.config import get_config
from asset_sdk.tier0_core.errors import EncodeError, MalformedInput
from asset_sdk.tier0_core.logging import get_logger
from asset_sdk.tier1_schema.catalog import get_registry
from asset_sdk.tier1_schema.enums import coerce_enum
from asset_sdk.tier1_schema.registry import (
    FieldDescriptor,
    FieldType,
    MessageSchema,
    SchemaRegistry,
)
from asset_sdk.tier2_codec.wire import (
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    Reader,
    WireType,
    encode_double,
    encode_len,
    encode_signed,
    encode_varint,
    make_key,
    to_signed32,
    to_signed64,
)

R = TypeVar("R")

logger = get_logger(__name__)

_SCALAR_WIRE_TYPES = {
    FieldType.STRING: WireType.LEN,
    FieldType.MESSAGE: WireType.LEN,
    FieldType.INT32: WireType.VARINT,
    FieldType.INT64: WireType.VARINT,
    FieldType.ENUM: WireType.VARINT,
    FieldType.DOUBLE: WireType.I64,
}

_INT_RANGES = {
    FieldType.INT32: (INT32_MIN, INT32_MAX),
    FieldType.ENUM: (INT32_MIN, INT32_MAX),
    FieldType.INT64: (INT64_MIN, INT64_MAX),
}


# ── Encode ────────────────────────────────────────────────────────────────────

def encode(record: Any, registry: SchemaRegistry | None = None) -> bytes:
    """
    Serialize a record to bytes.

    Usage:
        data = encode(asset)
    """
    registry = registry or get_registry()
    schema = registry.schema_for(record)
    return _encode_message(record, schema, registry, schema.name)


def _encode_message(record: Any, schema: MessageSchema, registry: SchemaRegistry, path: str) -> bytes:
    out = bytearray()
    for desc in schema.active_fields():
        value = getattr(record, desc.name)
        field_path = f"{path}.{desc.name}"
        if desc.is_map:
            out += _encode_map(desc, value, registry, field_path)
        elif desc.packed:
            out += _encode_packed(desc, value, field_path)
        elif desc.is_repeated:
            for i, item in enumerate(value):
                out += _encode_single(desc, item, registry, f"{field_path}[{i}]", always=True)
        else:
            out += _encode_single(desc, value, registry, field_path)
    for tag in sorted(record.unknown_fields):
        out += record.unknown_fields[tag]
    return bytes(out)


def _encode_single(
    desc: FieldDescriptor,
    value: Any,
    registry: SchemaRegistry,
    path: str,
    always: bool = False,
) -> bytes:
    """One frame for a singular value; empty when the value is the default."""
    if desc.is_message:
        if value is None:
            if always:
                raise EncodeError("repeated message entry is None", field_path=path)
            return b""
        schema = registry.get(desc.message_type)
        if not isinstance(value, schema.record_type):
            raise EncodeError(
                f"expected {schema.record_type.__name__}, got {type(value).__name__}",
                field_path=path,
            )
        return encode_len(desc.tag, _encode_message(value, schema, registry, path))

    if desc.type is FieldType.STRING:
        if not isinstance(value, str):
            raise EncodeError(f"expected str, got {type(value).__name__}", field_path=path)
        if not value and not always:
            return b""
        try:
            return encode_len(desc.tag, value.encode("utf-8"))
        except UnicodeEncodeError as exc:
            raise EncodeError(f"not encodable as UTF-8: {exc.reason}", field_path=path) from exc

    if desc.type is FieldType.DOUBLE:
        number = _check_double(value, path)
        if number == 0.0 and math.copysign(1.0, number) > 0 and not always:
            return b""
        return make_key(desc.tag, WireType.I64) + encode_double(number)

    number = _check_int(desc, value, path)
    if number == 0 and not always:
        return b""
    return make_key(desc.tag, WireType.VARINT) + encode_signed(number)


def _encode_packed(desc: FieldDescriptor, values: Iterable[Any], path: str) -> bytes:
    values = tuple(values)
    if not values:
        return b""
    if desc.type is FieldType.DOUBLE:
        numbers = [_check_double(v, f"{path}[{i}]") for i, v in enumerate(values)]
        payload = struct.pack(f"<{len(numbers)}d", *numbers)
    else:
        payload = b"".join(
            encode_signed(_check_int(desc, v, f"{path}[{i}]")) for i, v in enumerate(values)
        )
    return encode_len(desc.tag, payload)


def _encode_map(desc: FieldDescriptor, entries: Any, registry: SchemaRegistry, path: str) -> bytes:
    out = bytearray()
    value_desc = FieldDescriptor(
        name="value", tag=2, type=desc.type,
        message_type=desc.message_type, enum_type=desc.enum_type,
    )
    key_desc = FieldDescriptor(name="key", tag=1, type=desc.map_key_type)
    for key in sorted(entries):
        entry_path = f"{path}[{key}]"
        entry = _encode_single(key_desc, key, registry, entry_path, always=True)
        entry += _encode_single(value_desc, entries[key], registry, entry_path, always=True)
        out += encode_len(desc.tag, entry)
    return bytes(out)


def _check_int(desc: FieldDescriptor, value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"expected int, got {type(value).__name__}", field_path=path)
    low, high = _INT_RANGES[desc.type]
    if not low <= value <= high:
        raise EncodeError(f"{value} does not fit {desc.type.value}", field_path=path)
    return int(value)


def _check_double(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EncodeError(f"expected float, got {type(value).__name__}", field_path=path)
    return float(value)


# ── Decode ────────────────────────────────────────────────────────────────────

def decode(
    data: bytes | bytearray | memoryview,
    record_type: Type[R] | str,
    registry: SchemaRegistry | None = None,
) -> R:
    """
    Parse bytes into a record of record_type (a record class or a registered
    type name). Raises MalformedInput on any framing error.

    Usage:
        asset = decode(raw_bytes, Asset)
    """
    registry = registry or get_registry()
    schema = registry.resolve(record_type)
    config = get_config()
    buf = bytes(data)
    try:
        if len(buf) > config.max_message_bytes:
            raise MalformedInput(
                f"input of {len(buf)} bytes exceeds limit of {config.max_message_bytes}"
            )
        decoder = _Decoder(buf, registry, config.max_decode_depth)
        return decoder.message(schema, 0, len(buf), depth=0)
    except MalformedInput as exc:
        logger.debug(
            "codec.decode_failed",
            record_type=schema.name,
            offset=exc.offset,
            reason=exc.reason,
            size=len(buf),
        )
        raise


class _Decoder:
    """Decodes nested messages out of one immutable buffer."""

    def __init__(self, data: bytes, registry: SchemaRegistry, max_depth: int) -> None:
        self.data = data
        self.registry = registry
        self.max_depth = max_depth

    def message(self, schema: MessageSchema, start: int, end: int, depth: int) -> Any:
        if depth > self.max_depth:
            raise MalformedInput(
                f"nesting deeper than {self.max_depth} levels in {schema.name}",
                offset=start,
            )
        reader = Reader(self.data, start, end)
        values: dict[str, Any] = {}
        legacy: dict[str, Any] = {}
        unknown: dict[int, bytearray] = {}
        oneofs = {d.name: d.oneof for d in schema.fields if d.oneof}

        while not reader.at_end():
            frame_start = reader.pos
            tag, wire_type = reader.read_key()
            desc = schema.by_tag(tag)
            if desc is None:
                reader.skip(wire_type)
                unknown.setdefault(tag, bytearray()).extend(self.data[frame_start:reader.pos])
                continue

            target = legacy if desc.deprecated else values
            self.field(desc, wire_type, reader, target, frame_start, depth)
            group = oneofs.get(desc.name)
            if group:
                for other, other_group in oneofs.items():
                    if other_group == group and other != desc.name:
                        values.pop(other, None)

        kwargs = {name: _finish(value) for name, value in values.items()}
        if legacy:
            kwargs["legacy"] = schema.legacy_type(
                **{name: _finish(value) for name, value in legacy.items()}
            )
        if unknown:
            kwargs["unknown_fields"] = {tag: bytes(raw) for tag, raw in unknown.items()}
        return schema.record_type(**kwargs)

    def field(
        self,
        desc: FieldDescriptor,
        wire_type: WireType,
        reader: Reader,
        target: dict[str, Any],
        frame_start: int,
        depth: int,
    ) -> None:
        if desc.is_map:
            self._expect(desc, wire_type, WireType.LEN, frame_start)
            key, value = self.map_entry(desc, *reader.read_len(), depth)
            target.setdefault(desc.name, {})[key] = value
            return

        if desc.packed and wire_type is WireType.LEN:
            target.setdefault(desc.name, []).extend(self.packed(desc, *reader.read_len()))
            return

        self._expect(desc, wire_type, _SCALAR_WIRE_TYPES[desc.type], frame_start)
        value = self.scalar(desc, reader, depth)
        if desc.is_repeated:
            target.setdefault(desc.name, []).append(value)
        else:
            target[desc.name] = value

    def scalar(self, desc: FieldDescriptor, reader: Reader, depth: int) -> Any:
        if desc.type is FieldType.MESSAGE:
            start, end = reader.read_len()
            return self.message(self.registry.get(desc.message_type), start, end, depth + 1)
        if desc.type is FieldType.STRING:
            start, end = reader.read_len()
            try:
                return self.data[start:end].decode("utf-8")
            except UnicodeDecodeError:
                raise MalformedInput(f"invalid UTF-8 in {desc.name}", offset=start) from None
        if desc.type is FieldType.DOUBLE:
            return reader.read_double()
        return self._int_value(desc, reader.read_varint())

    def packed(self, desc: FieldDescriptor, start: int, end: int) -> list[Any]:
        if desc.type is FieldType.DOUBLE:
            if (end - start) % 8:
                raise MalformedInput(
                    f"packed doubles in {desc.name} are not a multiple of 8 bytes",
                    offset=start,
                )
            count = (end - start) // 8
            return list(struct.unpack_from(f"<{count}d", self.data, start))
        reader = Reader(self.data, start, end)
        items = []
        while not reader.at_end():
            items.append(self._int_value(desc, reader.read_varint()))
        return items

    def map_entry(self, desc: FieldDescriptor, start: int, end: int, depth: int) -> tuple[int, Any]:
        reader = Reader(self.data, start, end)
        key = 0
        value = None
        while not reader.at_end():
            frame_start = reader.pos
            tag, wire_type = reader.read_key()
            if tag == 1:
                self._expect(desc, wire_type, WireType.VARINT, frame_start)
                key = to_signed32(reader.read_varint())
            elif tag == 2:
                self._expect(desc, wire_type, WireType.LEN, frame_start)
                v_start, v_end = reader.read_len()
                value = self.message(
                    self.registry.get(desc.message_type), v_start, v_end, depth + 1
                )
            else:
                reader.skip(wire_type)
        if value is None:
            value = self.registry.get(desc.message_type).record_type()
        return key, value

    def _int_value(self, desc: FieldDescriptor, raw: int) -> Any:
        if desc.type is FieldType.INT64:
            return to_signed64(raw)
        value = to_signed32(raw)
        if desc.type is FieldType.ENUM:
            return coerce_enum(desc.enum_type, value)
        return value

    @staticmethod
    def _expect(desc: FieldDescriptor, actual: WireType, expected: WireType, offset: int) -> None:
        if actual is not expected:
            raise MalformedInput(
                f"field {desc.name} (tag {desc.tag}) has wire type {actual.name}, "
                f"expected {expected.name}",
                offset=offset,
            )


def _finish(value: Any) -> Any:
    return tuple(value) if isinstance(value, list) else value


# ── Length-delimited streams ──────────────────────────────────────────────────

def encode_framed(records: Iterable[Any], registry: SchemaRegistry | None = None) -> bytes:
    """Concatenate records as varint(length) + encoded record."""
    out = bytearray()
    for record in records:
        payload = encode(record, registry)
        out += encode_varint(len(payload))
        out += payload
    return bytes(out)


def iter_decode_framed(
    data: bytes | bytearray | memoryview,
    record_type: Type[R] | str,
    registry: SchemaRegistry | None = None,
) -> Iterator[R]:
    """Yield records from a length-delimited stream written by encode_framed."""
    buf = bytes(data)
    reader = Reader(buf)
    while not reader.at_end():
        start, end = reader.read_len()
        try:
            yield decode(buf[start:end], record_type, registry)
        except MalformedInput as exc:
            inner = exc.offset or 0
            raise MalformedInput(
                f"framed record at byte {start}: {exc.reason}", offset=start + inner
            ) from exc


def decode_framed(
    data: bytes | bytearray | memoryview,
    record_type: Type[R] | str,
    registry: SchemaRegistry | None = None,
) -> list[R]:
    return list(iter_decode_framed(data, record_type, registry))


__sdk_export__ = {
    "exports": ["encode", "decode", "encode_framed", "decode_framed", "iter_decode_framed"],
    "description": "Tag-framed binary codec with unknown-field passthrough",
    "tier": "tier2_codec",
    "module": "codec",
}

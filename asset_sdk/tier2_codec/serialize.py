"""
asset_sdk.tier2_codec.serialize
────────────────────────────────
Format dispatch between the binary wire codec and a JSON view of records.
The JSON view is for inspection, fixtures and debugging tools; storage and
transport collaborators should use the wire format.

JSON conventions:
  - keys are field names; default/empty fields are omitted
  - enums render by name when known, as ints otherwise
  - map keys render as decimal strings
  - deprecated fields appear under "legacy"
  - unknown fields appear under "unknown_fields" as base64, keyed by tag
  - NaN and infinite doubles have no JSON form and raise EncodeError

Configure via: ASSET_SERIALIZE_FORMAT=wire|json
"""
from __future__ import annotations

import base64
import binascii
import json
import math
from typing import Any, Type, TypeVar

from asset_sdk.tier0_core.config import get_config
from asset_sdk.tier0_core.errors import EncodeError, MalformedInput
from asset_sdk.tier1_schema.catalog import get_registry
from asset_sdk.tier1_schema.enums import coerce_enum, is_known
from asset_sdk.tier1_schema.registry import (
    FieldDescriptor,
    FieldType,
    MessageSchema,
    SchemaRegistry,
)
from asset_sdk.tier2_codec.codec import decode, encode

R = TypeVar("R")


def serialize(record: Any, format: str | None = None) -> bytes:
    """
    Serialize a record to bytes in the configured format.

    Usage:
        data = serialize(asset)           # wire bytes
        data = serialize(asset, "json")   # → b'{"asset_id": "...", ...}'
    """
    fmt = (format or get_config().serialize_format).lower()
    if fmt == "wire":
        return encode(record)
    if fmt == "json":
        try:
            return json.dumps(to_dict(record), sort_keys=False, allow_nan=False).encode()
        except ValueError as exc:
            raise EncodeError(f"{type(record).__name__}: {exc}") from exc
    raise ValueError(f"Unsupported serialize format: {fmt!r}. Supported: wire, json")


def deserialize(data: bytes | str, record_type: Type[R] | str, format: str | None = None) -> R:
    """
    Deserialize bytes/str into a record.

    Usage:
        asset = deserialize(raw_bytes, Asset)
    """
    fmt = (format or get_config().serialize_format).lower()
    if fmt == "wire":
        if isinstance(data, str):
            raise ValueError("wire format expects bytes, not str")
        return decode(data, record_type)
    if fmt == "json":
        try:
            parsed = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedInput(f"invalid JSON: {exc}") from exc
        return from_dict(parsed, record_type)
    raise ValueError(f"Unsupported deserialize format: {fmt!r}. Supported: wire, json")


# ── Record → dict ─────────────────────────────────────────────────────────────

def to_dict(record: Any, registry: SchemaRegistry | None = None) -> dict[str, Any]:
    """Convert a record to a JSON-compatible dict."""
    registry = registry or get_registry()
    schema = registry.schema_for(record)
    out: dict[str, Any] = {}
    for desc in schema.active_fields():
        value = getattr(record, desc.name)
        if not _is_default(desc, value):
            out[desc.name] = _dump_value(desc, value, registry)

    legacy = getattr(record, "legacy", None)
    if legacy is not None:
        dumped = {}
        for desc in schema.deprecated_fields():
            value = getattr(legacy, desc.name)
            if not _is_default(desc, value):
                dumped[desc.name] = _dump_value(desc, value, registry)
        out["legacy"] = dumped

    if record.unknown_fields:
        out["unknown_fields"] = {
            str(tag): base64.b64encode(raw).decode("ascii")
            for tag, raw in sorted(record.unknown_fields.items())
        }
    return out


def _is_default(desc: FieldDescriptor, value: Any) -> bool:
    if desc.is_map or desc.is_repeated:
        return not value
    if desc.is_message:
        return value is None
    if desc.type is FieldType.DOUBLE:
        return value == 0.0 and math.copysign(1.0, value) > 0
    return value == desc.default()


def _dump_value(desc: FieldDescriptor, value: Any, registry: SchemaRegistry) -> Any:
    if desc.is_map:
        return {str(key): _dump_scalar(desc, item, registry) for key, item in sorted(value.items())}
    if desc.is_repeated:
        return [_dump_scalar(desc, item, registry) for item in value]
    return _dump_scalar(desc, value, registry)


def _dump_scalar(desc: FieldDescriptor, value: Any, registry: SchemaRegistry) -> Any:
    if desc.is_message:
        return to_dict(value, registry)
    if desc.type is FieldType.ENUM:
        return desc.enum_type(value).name if is_known(desc.enum_type, value) else int(value)
    return value


# ── dict → record ─────────────────────────────────────────────────────────────

def from_dict(data: Any, record_type: Type[R] | str, registry: SchemaRegistry | None = None) -> R:
    """Build a record from the dict shape produced by to_dict."""
    registry = registry or get_registry()
    schema = registry.resolve(record_type)
    if not isinstance(data, dict):
        raise MalformedInput(f"{schema.name} must be a JSON object, got {type(data).__name__}")

    kwargs: dict[str, Any] = {}
    for name, raw in data.items():
        if name == "legacy":
            if schema.legacy_type is None:
                raise MalformedInput(f"{schema.name} has no legacy fields")
            kwargs["legacy"] = schema.legacy_type(**{
                legacy_name: _load_value(_legacy_field(schema, legacy_name), value, registry)
                for legacy_name, value in _require_dict(raw, "legacy").items()
            })
        elif name == "unknown_fields":
            kwargs["unknown_fields"] = _load_unknown(_require_dict(raw, name))
        else:
            desc = _field(schema, name)
            if desc.deprecated:
                raise MalformedInput(f"{schema.name}.{name} is deprecated; nest it under 'legacy'")
            kwargs[name] = _load_value(desc, raw, registry)
    return schema.record_type(**kwargs)


def _field(schema: MessageSchema, name: str) -> FieldDescriptor:
    desc = schema.find(name)
    if desc is None:
        raise MalformedInput(f"{schema.name} has no field {name!r}")
    return desc


def _legacy_field(schema: MessageSchema, name: str) -> FieldDescriptor:
    desc = _field(schema, name)
    if not desc.deprecated:
        raise MalformedInput(f"{schema.name}.{name} is not a legacy field")
    return desc


def _require_dict(raw: Any, what: str) -> dict:
    if not isinstance(raw, dict):
        raise MalformedInput(f"{what} must be a JSON object")
    return raw


def _load_unknown(raw: dict) -> dict[int, bytes]:
    try:
        return {int(tag): base64.b64decode(value, validate=True) for tag, value in raw.items()}
    except (ValueError, TypeError, binascii.Error) as exc:
        raise MalformedInput(f"invalid unknown_fields entry: {exc}") from exc


def _load_value(desc: FieldDescriptor, raw: Any, registry: SchemaRegistry) -> Any:
    if desc.is_map:
        entries = _require_dict(raw, desc.name)
        try:
            return {int(key): _load_scalar(desc, item, registry) for key, item in entries.items()}
        except ValueError as exc:
            raise MalformedInput(f"{desc.name}: map keys must be integers") from exc
    if desc.is_repeated:
        if not isinstance(raw, list):
            raise MalformedInput(f"{desc.name} must be a JSON array")
        return tuple(_load_scalar(desc, item, registry) for item in raw)
    return _load_scalar(desc, raw, registry)


def _load_scalar(desc: FieldDescriptor, raw: Any, registry: SchemaRegistry) -> Any:
    if desc.is_message:
        return from_dict(raw, desc.message_type, registry)
    if desc.type is FieldType.ENUM:
        if isinstance(raw, str):
            try:
                return desc.enum_type[raw]
            except KeyError:
                raise MalformedInput(
                    f"{desc.name}: {raw!r} is not a {desc.enum_type.__name__} name"
                ) from None
        if isinstance(raw, int) and not isinstance(raw, bool):
            return coerce_enum(desc.enum_type, raw)
        raise MalformedInput(f"{desc.name} must be an enum name or int")
    if desc.type is FieldType.STRING:
        if not isinstance(raw, str):
            raise MalformedInput(f"{desc.name} must be a string")
        return raw
    if desc.type is FieldType.DOUBLE:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise MalformedInput(f"{desc.name} must be a number")
        return float(raw)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise MalformedInput(f"{desc.name} must be an integer")
    return raw


__sdk_export__ = {
    "exports": ["serialize", "deserialize", "to_dict", "from_dict"],
    "description": "Wire/JSON format dispatch and a JSON view of records",
    "tier": "tier2_codec",
    "module": "serialize",
}

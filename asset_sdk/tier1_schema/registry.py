"""
asset_sdk.tier1_schema.registry
────────────────────────────────
Schema registry: the canonical definition of each record type: field tags,
semantic types, cardinality, deprecation and oneof groups. The codec and the
validator read everything they need from here.

A registry is populated once and then frozen. After ``freeze()`` it is
read-only and can be shared freely between threads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Iterator

from asset_sdk.tier0_core.errors import SchemaError

MAX_TAG = (1 << 29) - 1


class FieldType(str, Enum):
    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    DOUBLE = "double"
    ENUM = "enum"
    MESSAGE = "message"


class Cardinality(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"
    MAP = "map"


_SCALAR_DEFAULTS: dict[FieldType, Any] = {
    FieldType.STRING: "",
    FieldType.INT32: 0,
    FieldType.INT64: 0,
    FieldType.DOUBLE: 0.0,
    FieldType.ENUM: 0,
}


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Description of one field of a record type.

    ``name`` is both the wire-level field name and the attribute on the
    record (on ``record.legacy`` for deprecated fields). Map fields carry a
    ``map_key_type``; their ``type``/``message_type`` describe the value.
    """
    name: str
    tag: int
    type: FieldType
    cardinality: Cardinality = Cardinality.OPTIONAL
    deprecated: bool = False
    oneof: str | None = None
    message_type: str | None = None
    enum_type: type[IntEnum] | None = None
    map_key_type: FieldType | None = None
    map_key_enum: type[IntEnum] | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.tag <= MAX_TAG:
            raise SchemaError(f"Field {self.name!r} has out-of-range tag {self.tag}")
        if self.type is FieldType.MESSAGE and not self.message_type:
            raise SchemaError(f"Message field {self.name!r} needs a message_type")
        if self.type is FieldType.ENUM and self.enum_type is None:
            raise SchemaError(f"Enum field {self.name!r} needs an enum_type")
        if (self.cardinality is Cardinality.MAP) != (self.map_key_type is not None):
            raise SchemaError(f"Field {self.name!r}: map_key_type is only valid on map fields")
        if self.oneof and (self.type is not FieldType.MESSAGE
                           or self.cardinality is not Cardinality.OPTIONAL):
            raise SchemaError(f"Oneof member {self.name!r} must be an optional message field")

    @property
    def is_message(self) -> bool:
        return self.type is FieldType.MESSAGE

    @property
    def is_repeated(self) -> bool:
        return self.cardinality is Cardinality.REPEATED

    @property
    def is_map(self) -> bool:
        return self.cardinality is Cardinality.MAP

    @property
    def packed(self) -> bool:
        """Repeated numeric scalars are emitted in a single packed frame."""
        return self.is_repeated and self.type in (
            FieldType.INT32, FieldType.INT64, FieldType.DOUBLE, FieldType.ENUM,
        )

    def default(self) -> Any:
        """Value of the field when absent from the wire."""
        if self.is_map:
            return {}
        if self.is_repeated:
            return ()
        if self.is_message:
            return None
        if self.type is FieldType.ENUM:
            return self.enum_type(0)
        return _SCALAR_DEFAULTS[self.type]


@dataclass(frozen=True)
class MessageSchema:
    """All field descriptors of one record type, indexed by tag and by name."""
    name: str
    record_type: type
    fields: tuple[FieldDescriptor, ...]
    legacy_type: type | None = None
    _by_tag: dict[int, FieldDescriptor] = field(init=False, repr=False, compare=False)
    _by_name: dict[str, FieldDescriptor] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.fields, key=lambda f: f.tag))
        by_tag: dict[int, FieldDescriptor] = {}
        by_name: dict[str, FieldDescriptor] = {}
        for desc in ordered:
            if desc.tag in by_tag:
                raise SchemaError(f"{self.name}: duplicate tag {desc.tag}")
            if desc.name in by_name:
                raise SchemaError(f"{self.name}: duplicate field name {desc.name!r}")
            by_tag[desc.tag] = desc
            by_name[desc.name] = desc
        if any(d.deprecated for d in ordered) and self.legacy_type is None:
            raise SchemaError(f"{self.name}: deprecated fields need a legacy_type")
        object.__setattr__(self, "fields", ordered)
        object.__setattr__(self, "_by_tag", by_tag)
        object.__setattr__(self, "_by_name", by_name)

    def by_tag(self, tag: int) -> FieldDescriptor | None:
        return self._by_tag.get(tag)

    def find(self, name: str) -> FieldDescriptor | None:
        return self._by_name.get(name)

    def by_name(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise SchemaError(f"{self.name} has no field {name!r}") from None

    def active_fields(self) -> Iterator[FieldDescriptor]:
        """Fields that new encodes write (everything not deprecated)."""
        return (d for d in self.fields if not d.deprecated)

    def deprecated_fields(self) -> Iterator[FieldDescriptor]:
        return (d for d in self.fields if d.deprecated)

    def oneof_groups(self) -> dict[str, tuple[FieldDescriptor, ...]]:
        groups: dict[str, list[FieldDescriptor]] = {}
        for desc in self.fields:
            if desc.oneof:
                groups.setdefault(desc.oneof, []).append(desc)
        return {name: tuple(members) for name, members in groups.items()}


class SchemaRegistry:
    """Type name → MessageSchema. Populate, then freeze."""

    def __init__(self) -> None:
        self._schemas: dict[str, MessageSchema] = {}
        self._by_record_type: dict[type, MessageSchema] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, schema: MessageSchema) -> MessageSchema:
        if self._frozen:
            raise SchemaError(f"Cannot register {schema.name!r}: registry is frozen")
        if schema.name in self._schemas:
            raise SchemaError(f"Type already registered: {schema.name!r}")
        if schema.record_type in self._by_record_type:
            raise SchemaError(
                f"Record class {schema.record_type.__name__} already registered"
            )
        self._schemas[schema.name] = schema
        self._by_record_type[schema.record_type] = schema
        return schema

    def freeze(self) -> "SchemaRegistry":
        """Check that every referenced message type exists and lock the registry."""
        for schema in self._schemas.values():
            for desc in schema.fields:
                if desc.is_message and desc.message_type not in self._schemas:
                    raise SchemaError(
                        f"{schema.name}.{desc.name} references unknown type "
                        f"{desc.message_type!r}"
                    )
        self._frozen = True
        return self

    def get(self, type_name: str) -> MessageSchema:
        try:
            return self._schemas[type_name]
        except KeyError:
            raise SchemaError(f"Unknown type: {type_name!r}") from None

    def describe(self, type_name: str) -> tuple[FieldDescriptor, ...]:
        """Field descriptors of type_name in ascending tag order."""
        return self.get(type_name).fields

    def schema_for(self, record: Any) -> MessageSchema:
        """Schema of a record instance or record class."""
        record_type = record if isinstance(record, type) else type(record)
        try:
            return self._by_record_type[record_type]
        except KeyError:
            raise SchemaError(f"Unregistered record type: {record_type.__name__}") from None

    def resolve(self, record_type: type | str) -> MessageSchema:
        """Accept either a record class or a registered type name."""
        if isinstance(record_type, str):
            return self.get(record_type)
        return self.schema_for(record_type)

    def type_names(self) -> tuple[str, ...]:
        return tuple(self._schemas)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._schemas


__all__ = [
    "FieldType", "Cardinality", "FieldDescriptor", "MessageSchema",
    "SchemaRegistry",
]

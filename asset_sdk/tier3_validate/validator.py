"""
asset_sdk.tier3_validate.validator
───────────────────────────────────
Pure structural validation of catalog records. Returns every violation found,
never stopping at the first, in a fixed order so results are stable and
diffable:

  1. required-field presence
  2. oneof exclusivity
  3. enum membership (UnknownEnumValue is informational)
  4. range / sanity checks
  5. reference shape (not existence: that needs an external store)
  6. legacy fields (conflicts; DeprecatedFieldSet in strict mode)

Within a phase, violations follow a pre-order walk of the record in
ascending tag order. Validation never mutates its input and performs no I/O.
"""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Iterable, Iterator, Sequence

from asset_sdk.tier0_core.config import get_config
from asset_sdk.tier0_core.errors import ValidationError
from asset_sdk.tier0_core.logging import get_logger
from asset_sdk.tier1_schema.catalog import get_registry
from asset_sdk.tier1_schema.enums import BaseUnit, is_known
from asset_sdk.tier1_schema.records import (
    Account,
    Asset,
    CameraParams,
    Format,
    FormatComplexity,
    FormatScale,
    RemixInfo,
    Timestamp,
)
from asset_sdk.tier1_schema.registry import (
    Cardinality,
    FieldDescriptor,
    FieldType,
    MessageSchema,
    SchemaRegistry,
)
from asset_sdk.tier3_validate.violations import Violation, ViolationKind

logger = get_logger(__name__)

Node = tuple[str, MessageSchema, Any]
Check = Callable[[str, MessageSchema, Any], Iterable[Violation]]

_IDENTIFIER = re.compile(r"\S+")

MATRIX_SIZE = 16
TARGET_VECTOR_SIZE = 3
MAX_FIELD_OF_VIEW = 180.0
NANOS_PER_SECOND = 1_000_000_000


# ── Public API ────────────────────────────────────────────────────────────────

def validate(
    record: Any,
    *,
    strict: bool | None = None,
    registry: SchemaRegistry | None = None,
) -> list[Violation]:
    """
    Check a record and return the complete list of violations.

    Usage:
        violations = validate(asset)
        if not is_valid(violations):
            ...
    """
    registry = registry or get_registry()
    if strict is None:
        strict = get_config().strict_validation
    schema = registry.schema_for(record)
    nodes = list(_walk(record, schema, schema.name, registry))

    phases: list[Check] = [
        _check_required,
        _check_oneofs,
        _check_enums,
        _check_ranges,
        _check_references,
        _check_legacy_conflicts,
    ]
    if strict:
        phases.append(_check_deprecated_set)

    violations: list[Violation] = []
    for phase in phases:
        for path, node_schema, node in nodes:
            violations.extend(phase(path, node_schema, node))

    logger.debug(
        "validator.completed",
        record_type=schema.name,
        strict=strict,
        violations=len(violations),
    )
    return violations


def require_valid(record: Any, *, strict: bool | None = None) -> Any:
    """
    Return record unchanged, or raise ValidationError listing every fatal
    violation (path → kind).
    """
    fatal = [v for v in validate(record, strict=strict) if v.fatal]
    if fatal:
        fields: dict[str, str] = {}
        for v in fatal:
            kinds = fields.get(v.field_path)
            fields[v.field_path] = f"{kinds}, {v.kind.value}" if kinds else v.kind.value
        raise ValidationError(
            user_message="Record failed validation.",
            fields=fields,
        )
    return record


_PRIMARY_KEYS = {
    "Account": "account_id",
    "Asset": "asset_id",
    "Element": "element_id",
}


def validate_batch(
    records: Sequence[Any],
    *,
    strict: bool | None = None,
) -> list[Violation]:
    """
    Validate several records and report primary keys used more than once.
    Paths are prefixed with the record's index: ``[2].Account.account_id``.
    """
    registry = get_registry()
    violations: list[Violation] = []
    seen: dict[tuple[str, str], int] = {}
    duplicates: list[Violation] = []

    for index, record in enumerate(records):
        for v in validate(record, strict=strict, registry=registry):
            violations.append(Violation(f"[{index}].{v.field_path}", v.kind, v.detail))

        type_name = registry.schema_for(record).name
        key_field = _PRIMARY_KEYS.get(type_name)
        if key_field is None:
            continue
        key = getattr(record, key_field)
        if not key:
            continue
        first = seen.setdefault((type_name, key), index)
        if first != index:
            duplicates.append(Violation(
                f"[{index}].{type_name}.{key_field}",
                ViolationKind.DUPLICATE_IDENTIFIER,
                f"{key!r} is already used by record [{first}]",
            ))

    return violations + duplicates


# ── Tree walk ─────────────────────────────────────────────────────────────────

def _walk(record: Any, schema: MessageSchema, path: str, registry: SchemaRegistry) -> Iterator[Node]:
    yield path, schema, record
    for desc in schema.active_fields():
        if not desc.is_message:
            continue
        child_schema = registry.get(desc.message_type)
        value = getattr(record, desc.name)
        field_path = f"{path}.{desc.name}"
        if desc.is_map:
            for key in sorted(value):
                if value[key] is not None:
                    yield from _walk(value[key], child_schema, f"{field_path}[{key}]", registry)
        elif desc.is_repeated:
            for i, item in enumerate(value):
                if item is not None:
                    yield from _walk(item, child_schema, f"{field_path}[{i}]", registry)
        elif value is not None:
            yield from _walk(value, child_schema, field_path, registry)


# ── Phase 1: required fields ──────────────────────────────────────────────────

def _is_unset(desc: FieldDescriptor, value: Any) -> bool:
    if desc.is_message:
        return value is None
    if desc.type is FieldType.STRING:
        return value == ""
    return value == 0


def _empty_entries(desc: FieldDescriptor, value: Any) -> Iterator[str]:
    """Index/key suffixes of None entries in a repeated or map message field."""
    if desc.is_map:
        return (f"[{key}]" for key in sorted(value) if value[key] is None)
    return (f"[{i}]" for i, item in enumerate(value) if item is None)


def _check_required(path: str, schema: MessageSchema, record: Any) -> Iterator[Violation]:
    for desc in schema.active_fields():
        value = getattr(record, desc.name)
        if desc.cardinality is Cardinality.REQUIRED and _is_unset(desc, value):
            yield Violation(
                f"{path}.{desc.name}",
                ViolationKind.MISSING_REQUIRED_FIELD,
                f"{schema.name}.{desc.name} is required",
            )
        elif desc.is_message and (desc.is_repeated or desc.is_map):
            for suffix in _empty_entries(desc, value):
                yield Violation(
                    f"{path}.{desc.name}{suffix}",
                    ViolationKind.MISSING_REQUIRED_FIELD,
                    f"{schema.name}.{desc.name} entries must be set",
                )


# ── Phase 2: oneof exclusivity ────────────────────────────────────────────────

def _check_oneofs(path: str, schema: MessageSchema, record: Any) -> Iterator[Violation]:
    for group, members in schema.oneof_groups().items():
        populated = [d.name for d in members if getattr(record, d.name) is not None]
        if len(populated) == 1:
            continue
        if populated:
            detail = f"oneof '{group}' has several branches set: {', '.join(populated)}"
        else:
            detail = f"oneof '{group}' has no branch set"
        yield Violation(f"{path}.{group}", ViolationKind.ONEOF_EXCLUSIVITY, detail)


# ── Phase 3: enum membership ──────────────────────────────────────────────────

def _check_enums(path: str, schema: MessageSchema, record: Any) -> Iterator[Violation]:
    for desc in schema.active_fields():
        value = getattr(record, desc.name)
        field_path = f"{path}.{desc.name}"
        if desc.is_map and desc.map_key_enum is not None:
            for key in sorted(value):
                if not is_known(desc.map_key_enum, key):
                    yield _unknown_enum(f"{field_path}[{key}]", desc.map_key_enum, key)
        elif desc.type is FieldType.ENUM:
            if desc.is_repeated:
                for i, item in enumerate(value):
                    if not is_known(desc.enum_type, item):
                        yield _unknown_enum(f"{field_path}[{i}]", desc.enum_type, item)
            elif not is_known(desc.enum_type, value):
                yield _unknown_enum(field_path, desc.enum_type, value)


def _unknown_enum(path: str, enum_type: type, value: int) -> Violation:
    return Violation(
        path,
        ViolationKind.UNKNOWN_ENUM_VALUE,
        f"{int(value)} is not a declared {enum_type.__name__} value",
    )


# ── Phase 4: ranges ───────────────────────────────────────────────────────────

def _range(path: str, detail: str) -> Violation:
    return Violation(path, ViolationKind.RANGE, detail)


def _complexity_ranges(path: str, complexity: FormatComplexity) -> Iterator[Violation]:
    for name in ("triangle_count", "texel_count", "shader_count", "lod_hint"):
        value = getattr(complexity, name)
        if value < 0:
            yield _range(f"{path}.{name}", f"{name} must be >= 0, got {value}")


def _scale_ranges(path: str, scale: FormatScale) -> Iterator[Violation]:
    if scale.base_unit == BaseUnit.UNKNOWN:
        return
    scaler = scale.effective_scaler
    if not math.isfinite(scaler) or scaler == 0.0:
        yield _range(f"{path}.scaler", f"scaler must be finite and non-zero, got {scaler!r}")


def _timestamp_ranges(path: str, stamp: Timestamp) -> Iterator[Violation]:
    if not 0 <= stamp.nanos < NANOS_PER_SECOND:
        yield _range(f"{path}.nanos", f"nanos must be in [0, 1e9), got {stamp.nanos}")


def _asset_ranges(path: str, asset: Asset) -> Iterator[Violation]:
    created, updated = asset.create_time, asset.update_time
    if created is not None and updated is not None and updated.sort_key() < created.sort_key():
        yield _range(f"{path}.update_time", "update_time is earlier than create_time")


def _camera_ranges(path: str, camera: CameraParams) -> Iterator[Violation]:
    for name, size in (("matrix_4x4", MATRIX_SIZE), ("target_vector", TARGET_VECTOR_SIZE)):
        values = getattr(camera, name)
        if len(values) not in (0, size):
            yield _range(f"{path}.{name}", f"{name} needs {size} entries, got {len(values)}")
        for i, value in enumerate(values):
            if not math.isfinite(value):
                yield _range(f"{path}.{name}[{i}]", f"{name} entries must be finite")
    fov = camera.field_of_view
    if not math.isfinite(fov) or not 0.0 <= fov < MAX_FIELD_OF_VIEW:
        yield _range(f"{path}.field_of_view", f"field_of_view must be in [0, 180), got {fov!r}")


_RANGE_CHECKS: dict[type, Callable[[str, Any], Iterable[Violation]]] = {
    FormatComplexity: _complexity_ranges,
    FormatScale: _scale_ranges,
    Timestamp: _timestamp_ranges,
    Asset: _asset_ranges,
    CameraParams: _camera_ranges,
}


def _check_ranges(path: str, schema: MessageSchema, record: Any) -> Iterable[Violation]:
    check = _RANGE_CHECKS.get(schema.record_type)
    return check(path, record) if check else ()


# ── Phase 5: reference shape ──────────────────────────────────────────────────

def _malformed_reference(path: str, value: str, what: str) -> Violation:
    return Violation(
        path,
        ViolationKind.MALFORMED_REFERENCE,
        f"{what} {value!r} is not a well-formed identifier",
    )


def _well_formed(value: str) -> bool:
    return bool(_IDENTIFIER.fullmatch(value))


def _asset_references(path: str, asset: Asset) -> Iterator[Violation]:
    if asset.account_id and not _well_formed(asset.account_id):
        yield _malformed_reference(f"{path}.account_id", asset.account_id, "account id")
    if asset.published_asset_id and not _well_formed(asset.published_asset_id):
        yield _malformed_reference(
            f"{path}.published_asset_id", asset.published_asset_id, "published asset id"
        )


def _account_references(path: str, account: Account) -> Iterator[Violation]:
    if account.person_id and not _well_formed(account.person_id):
        yield _malformed_reference(f"{path}.person_id", account.person_id, "person id")


def _remix_references(path: str, remix: RemixInfo) -> Iterator[Violation]:
    for i, source in enumerate(remix.source_asset):
        if not _well_formed(source):
            yield _malformed_reference(f"{path}.source_asset[{i}]", source, "source asset id")


def _format_references(path: str, fmt: Format) -> Iterator[Violation]:
    seen: set[str] = set()
    located = []
    if fmt.root is not None:
        located.append((f"{path}.root", fmt.root))
    located.extend(
        (f"{path}.resource[{i}]", e) for i, e in enumerate(fmt.resource) if e is not None
    )
    for element_path, element in located:
        if not element.element_id:
            continue
        if element.element_id in seen:
            yield Violation(
                f"{element_path}.element_id",
                ViolationKind.MALFORMED_REFERENCE,
                f"element id {element.element_id!r} appears more than once in the format",
            )
        seen.add(element.element_id)


_REFERENCE_CHECKS: dict[type, Callable[[str, Any], Iterable[Violation]]] = {
    Asset: _asset_references,
    Account: _account_references,
    RemixInfo: _remix_references,
    Format: _format_references,
}


def _check_references(path: str, schema: MessageSchema, record: Any) -> Iterable[Violation]:
    check = _REFERENCE_CHECKS.get(schema.record_type)
    return check(path, record) if check else ()


# ── Phase 6: legacy fields ────────────────────────────────────────────────────

def _asset_legacy(path: str, asset: Asset) -> Iterator[Violation]:
    for key in sorted(asset.legacy.format):
        current = asset.format_list.get(key)
        legacy_format = asset.legacy.format[key]
        if current is None or legacy_format is None:
            continue
        legacy_id = legacy_format.format_id
        if legacy_id not in {f.format_id for f in current.format if f is not None}:
            yield Violation(
                f"{path}.format[{key}]",
                ViolationKind.LEGACY_FIELD_CONFLICT,
                f"legacy format {legacy_id!r} is not in format_list[{key}]; format_list wins",
            )


def _complexity_legacy(path: str, complexity: FormatComplexity) -> Iterator[Violation]:
    legacy_count = complexity.legacy.texture_count
    if complexity.texel_count and legacy_count and legacy_count != complexity.texel_count:
        yield Violation(
            f"{path}.texture_count",
            ViolationKind.LEGACY_FIELD_CONFLICT,
            f"legacy texture_count {legacy_count} differs from texel_count "
            f"{complexity.texel_count}; texel_count wins",
        )


_LEGACY_CHECKS: dict[type, Callable[[str, Any], Iterable[Violation]]] = {
    Asset: _asset_legacy,
    FormatComplexity: _complexity_legacy,
}


def _check_legacy_conflicts(path: str, schema: MessageSchema, record: Any) -> Iterable[Violation]:
    check = _LEGACY_CHECKS.get(schema.record_type)
    if check is None or getattr(record, "legacy", None) is None:
        return ()
    return check(path, record)


def _check_deprecated_set(path: str, schema: MessageSchema, record: Any) -> Iterator[Violation]:
    legacy = getattr(record, "legacy", None)
    if legacy is None:
        return
    for desc in schema.deprecated_fields():
        value = getattr(legacy, desc.name)
        if value is None or value == 0 or (desc.is_map and not value):
            continue
        yield Violation(
            f"{path}.{desc.name}",
            ViolationKind.DEPRECATED_FIELD_SET,
            f"{schema.name}.{desc.name} is deprecated and must not be written",
        )


__sdk_export__ = {
    "exports": ["validate", "validate_batch", "require_valid"],
    "description": "Deterministic, non-short-circuiting structural validation",
    "tier": "tier3_validate",
    "module": "validator",
}

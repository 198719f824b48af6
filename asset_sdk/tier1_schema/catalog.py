"""
asset_sdk.tier1_schema.catalog
───────────────────────────────
Declarations of every record type in the asset catalog. Field tags are part
of the wire contract with already-encoded data and must never change;
retired fields stay declared (deprecated) so old records keep decoding.
"""
from __future__ import annotations

from functools import lru_cache

from asset_sdk.tier1_schema import records as r
from asset_sdk.tier1_schema.enums import (
    AccessLevel,
    AssetLicense,
    BaseUnit,
    ElementType,
    Privilege,
)
from asset_sdk.tier1_schema.registry import (
    Cardinality,
    FieldDescriptor as F,
    FieldType as T,
    MessageSchema,
    SchemaRegistry,
)

REQUIRED = Cardinality.REQUIRED
REPEATED = Cardinality.REPEATED
MAP = Cardinality.MAP


def _message(name: str, record_type: type, *fields: F, legacy_type: type | None = None) -> MessageSchema:
    return MessageSchema(name=name, record_type=record_type, fields=fields, legacy_type=legacy_type)


def build_registry() -> SchemaRegistry:
    """Declare the catalog types and return a frozen registry."""
    registry = SchemaRegistry()
    register = registry.register

    register(_message(
        "Timestamp", r.Timestamp,
        F("seconds", 1, T.INT64),
        F("nanos", 2, T.INT32),
    ))

    register(_message(
        "Account", r.Account,
        F("account_id", 1, T.STRING, REQUIRED),
        F("privilege", 2, T.ENUM, enum_type=Privilege),
        F("display_name", 3, T.STRING),
        F("family_name", 4, T.STRING),
        F("given_name", 5, T.STRING),
        F("photo_url", 6, T.STRING),
        F("description", 7, T.STRING),
        F("location", 8, T.STRING),
        F("person_id", 9, T.STRING, REQUIRED),
    ))

    # ── Element ──────────────────────────────────────────────────────────────
    register(_message("TypeInfo.ModelInfo", r.ModelInfo))
    register(_message(
        "TypeInfo.ImageInfo", r.ImageInfo,
        F("fife_url", 1, T.STRING),
    ))
    register(_message("TypeInfo.MaterialInfo", r.MaterialInfo))
    register(_message("TypeInfo.OtherInfo", r.OtherInfo))
    register(_message(
        "TypeInfo", r.TypeInfo,
        F("model_info", 1, T.MESSAGE, oneof="info", message_type="TypeInfo.ModelInfo"),
        F("image_info", 2, T.MESSAGE, oneof="info", message_type="TypeInfo.ImageInfo"),
        F("material_info", 3, T.MESSAGE, oneof="info", message_type="TypeInfo.MaterialInfo"),
        F("other_info", 4, T.MESSAGE, oneof="info", message_type="TypeInfo.OtherInfo"),
    ))
    register(_message(
        "Element", r.Element,
        F("element_id", 1, T.STRING, REQUIRED),
        F("file_path", 2, T.STRING, REQUIRED),
        F("data_url", 3, T.STRING, REQUIRED),
        F("create_time", 4, T.MESSAGE, deprecated=True, message_type="Timestamp"),
        F("element_type", 5, T.ENUM, REQUIRED, enum_type=ElementType),
        F("type_info", 6, T.MESSAGE, REQUIRED, message_type="TypeInfo"),
        legacy_type=r.ElementLegacy,
    ))

    # ── Format ───────────────────────────────────────────────────────────────
    register(_message(
        "FormatComplexity", r.FormatComplexity,
        F("triangle_count", 1, T.INT64),
        F("texel_count", 2, T.INT64),
        F("shader_count", 3, T.INT64),
        F("lod_hint", 4, T.INT32),
        F("texture_count", 1000, T.INT64, deprecated=True),
        legacy_type=r.FormatComplexityLegacy,
    ))
    register(_message(
        "FormatScale", r.FormatScale,
        F("base_unit", 1, T.ENUM, enum_type=BaseUnit),
        F("scaler", 2, T.DOUBLE),
    ))
    register(_message(
        "Format", r.Format,
        F("root", 1, T.MESSAGE, REQUIRED, message_type="Element"),
        F("resource", 2, T.MESSAGE, REPEATED, message_type="Element"),
        F("format_id", 3, T.STRING),
        F("format_complexity", 4, T.MESSAGE, message_type="FormatComplexity"),
        F("format_scale", 5, T.MESSAGE, message_type="FormatScale"),
    ))
    register(_message(
        "FormatList", r.FormatList,
        F("format", 1, T.MESSAGE, REPEATED, message_type="Format"),
    ))

    # ── Asset ────────────────────────────────────────────────────────────────
    register(_message(
        "AdminData", r.AdminData,
        F("tag", 1, T.STRING, REPEATED),
    ))
    register(_message(
        "Asset.RemixInfo", r.RemixInfo,
        F("source_asset", 1, T.STRING, REPEATED),
    ))
    register(_message(
        "Asset.CameraParams", r.CameraParams,
        F("matrix_4x4", 1, T.DOUBLE, REPEATED),
        F("target_vector", 2, T.DOUBLE, REPEATED),
        F("field_of_view", 3, T.DOUBLE),
    ))
    register(_message(
        "Asset", r.Asset,
        F("asset_id", 1, T.STRING, REQUIRED),
        F("display_name", 2, T.STRING),
        F("description", 3, T.STRING),
        F("tag", 4, T.STRING, REPEATED),
        F("create_time", 5, T.MESSAGE, message_type="Timestamp"),
        F("update_time", 6, T.MESSAGE, message_type="Timestamp"),
        F("format", 7, T.MESSAGE, MAP, deprecated=True, message_type="Format",
          map_key_type=T.INT32, map_key_enum=ElementType),
        F("thumbnail", 8, T.MESSAGE, REPEATED, message_type="Element"),
        F("account_id", 9, T.STRING),
        F("access_level", 10, T.ENUM, enum_type=AccessLevel),
        F("admin_data", 11, T.MESSAGE, message_type="AdminData"),
        F("remix_info", 12, T.MESSAGE, message_type="Asset.RemixInfo"),
        F("published_asset_id", 13, T.STRING),
        F("format_list", 14, T.MESSAGE, MAP, message_type="FormatList",
          map_key_type=T.INT32, map_key_enum=ElementType),
        F("license", 15, T.ENUM, enum_type=AssetLicense),
        F("camera_params", 16, T.MESSAGE, message_type="Asset.CameraParams"),
        legacy_type=r.AssetLegacy,
    ))

    return registry.freeze()


@lru_cache(maxsize=1)
def get_registry() -> SchemaRegistry:
    """Return the process-wide catalog registry. Built once, read-only."""
    return build_registry()


def describe(type_name: str):
    """Field descriptors of a catalog type, e.g. ``describe("Format")``."""
    return get_registry().describe(type_name)


__sdk_export__ = {
    "exports": ["get_registry", "describe", "build_registry"],
    "description": "Static schema registry for the asset catalog record types",
    "tier": "tier1_schema",
    "module": "catalog",
}

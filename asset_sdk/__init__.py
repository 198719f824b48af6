"""
asset_sdk
─────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from asset_sdk.tier0_core.errors import (
    AssetSDKError,
    MalformedInput,
    EncodeError,
    SchemaError,
    ValidationError,
    ConfigurationError,
)
from asset_sdk.tier0_core.config import get_config, AssetSDKConfig
from asset_sdk.tier0_core.logging import get_logger

from asset_sdk.tier1_schema.enums import (
    AccessLevel,
    AssetLicense,
    BaseUnit,
    ElementType,
    Privilege,
)
from asset_sdk.tier1_schema.records import (
    Account,
    AdminData,
    Asset,
    CameraParams,
    Element,
    Format,
    FormatComplexity,
    FormatList,
    FormatScale,
    ImageInfo,
    MaterialInfo,
    ModelInfo,
    OtherInfo,
    RemixInfo,
    Timestamp,
    TypeInfo,
    new_asset,
    new_element,
    touch,
)
from asset_sdk.tier1_schema.registry import FieldDescriptor, Cardinality, FieldType
from asset_sdk.tier1_schema.catalog import describe, get_registry

from asset_sdk.tier2_codec.codec import encode, decode, encode_framed, decode_framed
from asset_sdk.tier2_codec.serialize import serialize, deserialize, to_dict, from_dict

from asset_sdk.tier3_validate.violations import Violation, ViolationKind, is_valid
from asset_sdk.tier3_validate.validator import validate, validate_batch, require_valid
from asset_sdk.tier3_validate.references import collect_references, find_dangling

__version__ = "0.1.0"
__all__ = [
    # errors
    "AssetSDKError", "MalformedInput", "EncodeError", "SchemaError",
    "ValidationError", "ConfigurationError",
    # config / logging
    "get_config", "AssetSDKConfig", "get_logger",
    # enums
    "AccessLevel", "AssetLicense", "BaseUnit", "ElementType", "Privilege",
    # records
    "Account", "AdminData", "Asset", "CameraParams", "Element", "Format",
    "FormatComplexity", "FormatList", "FormatScale", "ImageInfo",
    "MaterialInfo", "ModelInfo", "OtherInfo", "RemixInfo", "Timestamp",
    "TypeInfo", "new_asset", "new_element", "touch",
    # schema registry
    "describe", "get_registry", "FieldDescriptor", "Cardinality", "FieldType",
    # codec
    "encode", "decode", "encode_framed", "decode_framed",
    "serialize", "deserialize", "to_dict", "from_dict",
    # validation
    "validate", "validate_batch", "require_valid", "is_valid",
    "Violation", "ViolationKind",
    # references
    "collect_references", "find_dangling",
]

"""
asset_sdk.tier1_schema.enums
─────────────────────────────
Enumerations used by the asset catalog records. The zero member of every
enum is the wire default, so an unset field decodes to it.

Enum-typed record fields hold either a member of the enum or a plain int:
values minted by a newer sender are kept as ints and reported by the
validator as UnknownEnumValue rather than rejected.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Type, TypeVar

E = TypeVar("E", bound=IntEnum)


class Privilege(IntEnum):
    """Administrative privilege granted to an account."""
    NONE = 0
    MODERATOR = 1
    ADMIN = 2


class AccessLevel(IntEnum):
    """Who may see an asset. PRIVATE is the zero value: unset means owner-only."""
    PRIVATE = 0
    UNLISTED = 1
    PUBLIC = 2


class AssetLicense(IntEnum):
    UNKNOWN = 0
    CREATIVE_COMMONS_BY = 1
    ALL_RIGHTS_RESERVED = 2
    CREATIVE_COMMONS_BY_ND = 3
    CREATIVE_COMMONS_0 = 4


class ElementType(IntEnum):
    """File type of an element. Also the key of Asset.format_list."""
    UNKNOWN = 0
    TILT = 1
    BLOCKS = 2
    OBJ = 3
    MTL = 4
    FBX = 5
    GLTF = 6
    GLTF2 = 7
    GLB = 8
    PNG = 9
    JPEG = 10
    GIF = 11
    WEBP = 12
    USDZ = 13
    OTHER = 14


class BaseUnit(IntEnum):
    """Base of a unit system, combined with FormatScale.scaler."""
    UNKNOWN = 0
    METER = 1
    FOOT = 2
    NAUTICAL_MILE = 3


def coerce_enum(enum_type: Type[E], value: int) -> E | int:
    """Return the enum member for value, or value itself when not declared."""
    try:
        return enum_type(value)
    except ValueError:
        return int(value)


def is_known(enum_type: Type[IntEnum], value: int) -> bool:
    return value in enum_type._value2member_map_


__all__ = [
    "Privilege", "AccessLevel", "AssetLicense", "ElementType", "BaseUnit",
    "coerce_enum", "is_known",
]

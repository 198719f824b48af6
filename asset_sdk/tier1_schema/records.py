"""
asset_sdk.tier1_schema.records
───────────────────────────────
Immutable in-memory records for the 3D asset catalog: accounts, assets,
their formats and elements.

Conventions shared by every record:
- frozen dataclasses; "mutation" is ``dataclasses.replace``
- repeated fields are tuples, map fields are read-only mappings
- scalar defaults ("", 0, 0.0) mean "unset", message fields use None
- ``unknown_fields`` maps wire tag → raw frame bytes the schema did not
  recognise; the codec re-emits them verbatim
- deprecated fields live in a ``legacy`` sub-record filled only by decode
- records hash by value; map fields and ``unknown_fields`` are left out of
  the hash but still take part in equality

Cross-record identifiers (account_id, published_asset_id, remix sources) are
plain strings resolved by an external store, never embedded records.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from asset_sdk.tier0_core.clock import get_clock
from asset_sdk.tier0_core.ids import new_id
from asset_sdk.tier1_schema.enums import (
    AccessLevel,
    AssetLicense,
    BaseUnit,
    ElementType,
    Privilege,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _freeze(record: Any, *, repeated: tuple[str, ...] = (), maps: tuple[str, ...] = ()) -> None:
    """Coerce list/dict arguments into tuples and read-only mappings."""
    for name in repeated:
        value = getattr(record, name)
        if not isinstance(value, tuple):
            object.__setattr__(record, name, tuple(value))
    for name in maps + ("unknown_fields",):
        value = getattr(record, name)
        if not isinstance(value, MappingProxyType):
            object.__setattr__(record, name, MappingProxyType(dict(value)))


# ── Shared ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Timestamp:
    """Point in time as seconds + nanos since the Unix epoch (UTC)."""
    seconds: int = 0
    nanos: int = 0
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Timestamp":
        """Naive datetimes are taken to be UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        delta = dt - _EPOCH
        return cls(
            seconds=delta.days * 86400 + delta.seconds,
            nanos=delta.microseconds * 1000,
        )

    def to_datetime(self) -> datetime:
        """Convert to an aware UTC datetime (sub-microsecond nanos are dropped)."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def sort_key(self) -> tuple[int, int]:
        return (self.seconds, self.nanos)


# ── Account ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Account:
    """Identity/profile record of an account holder."""
    account_id: str = ""
    privilege: Privilege | int = Privilege.NONE
    display_name: str = ""
    family_name: str = ""
    given_name: str = ""
    photo_url: str = ""
    description: str = ""
    location: str = ""
    person_id: str = ""
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


# ── Element type info (oneof) ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ModelInfo:
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


@dataclass(frozen=True)
class ImageInfo:
    fife_url: str = ""
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


@dataclass(frozen=True)
class MaterialInfo:
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


@dataclass(frozen=True)
class OtherInfo:
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


TYPE_INFO_BRANCHES = ("model_info", "image_info", "material_info", "other_info")


@dataclass(frozen=True)
class TypeInfo:
    """
    Type-specific information of an element: exactly one branch is meant to
    be populated. Use the builders (``TypeInfo.image(...)`` etc.); direct
    construction can set several branches, which the validator reports.
    """
    model_info: ModelInfo | None = None
    image_info: ImageInfo | None = None
    material_info: MaterialInfo | None = None
    other_info: OtherInfo | None = None
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)

    @classmethod
    def model(cls) -> "TypeInfo":
        return cls(model_info=ModelInfo())

    @classmethod
    def image(cls, fife_url: str = "") -> "TypeInfo":
        return cls(image_info=ImageInfo(fife_url=fife_url))

    @classmethod
    def material(cls) -> "TypeInfo":
        return cls(material_info=MaterialInfo())

    @classmethod
    def other(cls) -> "TypeInfo":
        return cls(other_info=OtherInfo())

    def active_branches(self) -> tuple[str, ...]:
        return tuple(name for name in TYPE_INFO_BRANCHES if getattr(self, name) is not None)

    @property
    def which(self) -> str | None:
        """Name of the populated branch, or None when zero or several are set."""
        active = self.active_branches()
        return active[0] if len(active) == 1 else None


# ── Element ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ElementLegacy:
    """Deprecated Element fields, kept for reading old records."""
    create_time: Timestamp | None = None


@dataclass(frozen=True)
class Element:
    """
    A primitive used to compose an asset: a mesh, texture or opaque blob.
    Elements are never edited in place; dependents that need different data
    reference a new Element.
    """
    element_id: str = ""
    file_path: str = ""
    data_url: str = ""
    element_type: ElementType | int = ElementType.UNKNOWN
    type_info: TypeInfo | None = None
    legacy: ElementLegacy | None = None
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)


# ── Format ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FormatComplexityLegacy:
    texture_count: int = 0


@dataclass(frozen=True)
class FormatComplexity:
    """Sizing hints reported by the creating client. lod_hint 0 is most detailed."""
    triangle_count: int = 0
    texel_count: int = 0
    shader_count: int = 0
    lod_hint: int = 0
    legacy: FormatComplexityLegacy | None = None
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)

    @property
    def effective_texel_count(self) -> int:
        """texel_count, falling back to the legacy texture_count when unset."""
        if self.texel_count or self.legacy is None:
            return self.texel_count
        return self.legacy.texture_count


@dataclass(frozen=True)
class FormatScale:
    """Real-world scale: one format unit is ``effective_scaler`` base units."""
    base_unit: BaseUnit | int = BaseUnit.UNKNOWN
    scaler: float = 0.0
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self)

    @property
    def effective_scaler(self) -> float:
        return self.scaler if self.scaler != 0.0 else 1.0


@dataclass(frozen=True)
class Format:
    """One encoding of an asset: a root element plus its resource dependencies."""
    root: Element | None = None
    resource: tuple[Element, ...] = ()
    format_id: str = ""
    format_complexity: FormatComplexity | None = None
    format_scale: FormatScale | None = None
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("resource",))

    def elements(self) -> Iterator[Element]:
        if self.root is not None:
            yield self.root
        yield from self.resource


@dataclass(frozen=True)
class FormatList:
    """Interchangeable formats of the same element type."""
    format: tuple[Format, ...] = ()
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("format",))


# ── Asset ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AdminData:
    """Moderator-applied tags, kept apart from user-authored tags."""
    tag: tuple[str, ...] = ()
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("tag",))


@dataclass(frozen=True)
class RemixInfo:
    """Ids of the assets this asset was remixed from (provenance, not ownership)."""
    source_asset: tuple[str, ...] = ()
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("source_asset",))


@dataclass(frozen=True)
class CameraParams:
    """Camera used to render the asset: row-major 4x4 matrix, orbit target, fov."""
    matrix_4x4: tuple[float, ...] = ()
    target_vector: tuple[float, ...] = ()
    field_of_view: float = 0.0
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("matrix_4x4", "target_vector"))


@dataclass(frozen=True)
class AssetLegacy:
    """Deprecated single-Format mapping, superseded by Asset.format_list."""
    format: Mapping[int, Format] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.format, MappingProxyType):
            object.__setattr__(self, "format", MappingProxyType(dict(self.format)))


@dataclass(frozen=True)
class Asset:
    """Aggregate root: formats, metadata and access control for one piece of content."""
    asset_id: str = ""
    display_name: str = ""
    description: str = ""
    tag: tuple[str, ...] = ()
    create_time: Timestamp | None = None
    update_time: Timestamp | None = None
    thumbnail: tuple[Element, ...] = ()
    account_id: str = ""
    access_level: AccessLevel | int = AccessLevel.PRIVATE
    admin_data: AdminData | None = None
    remix_info: RemixInfo | None = None
    published_asset_id: str = ""
    format_list: Mapping[int, FormatList] = field(default_factory=dict, hash=False)
    license: AssetLicense | int = AssetLicense.UNKNOWN
    camera_params: CameraParams | None = None
    legacy: AssetLegacy | None = None
    unknown_fields: Mapping[int, bytes] = field(default_factory=dict, repr=False, hash=False)

    def __post_init__(self) -> None:
        _freeze(self, repeated=("tag", "thumbnail"), maps=("format_list",))

    def effective_format_lists(self) -> dict[int, FormatList]:
        """
        Format lists keyed by element type, folding in the legacy ``format``
        map. Where both carry a key, the format_list entry wins.
        """
        merged: dict[int, FormatList] = {}
        if self.legacy is not None:
            for key, fmt in self.legacy.format.items():
                merged[key] = FormatList(format=(fmt,))
        merged.update(self.format_list)
        return merged


# ── Builders ──────────────────────────────────────────────────────────────────

def new_element(
    file_path: str,
    data_url: str,
    element_type: ElementType | int,
    type_info: TypeInfo,
    element_id: str | None = None,
) -> Element:
    """Create an element with a freshly generated id."""
    return Element(
        element_id=element_id or new_id("element"),
        file_path=file_path,
        data_url=data_url,
        element_type=element_type,
        type_info=type_info,
    )


def new_asset(
    display_name: str,
    account_id: str,
    asset_id: str | None = None,
    **fields: Any,
) -> Asset:
    """
    Create an asset owned by account_id with create/update times set to now.
    Access level defaults to PRIVATE unless passed explicitly.
    """
    stamp = Timestamp.from_datetime(get_clock().now())
    return Asset(
        asset_id=asset_id or new_id("asset"),
        display_name=display_name,
        account_id=account_id,
        create_time=stamp,
        update_time=stamp,
        **fields,
    )


def touch(asset: Asset) -> Asset:
    """Return a copy of asset with update_time set to now."""
    return replace(asset, update_time=Timestamp.from_datetime(get_clock().now()))


__all__ = [
    "Timestamp", "Account", "ModelInfo", "ImageInfo", "MaterialInfo",
    "OtherInfo", "TypeInfo", "TYPE_INFO_BRANCHES", "ElementLegacy", "Element",
    "FormatComplexityLegacy", "FormatComplexity", "FormatScale", "Format",
    "FormatList", "AdminData", "RemixInfo", "CameraParams", "AssetLegacy",
    "Asset", "new_element", "new_asset", "touch",
]

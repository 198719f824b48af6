"""Tests for tier1_schema: records, enums and the schema registry."""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone
from types import MappingProxyType

import pytest

from asset_sdk.tier0_core.errors import SchemaError
from asset_sdk.tier1_schema.catalog import build_registry, describe, get_registry
from asset_sdk.tier1_schema.enums import (
    AccessLevel,
    AssetLicense,
    BaseUnit,
    ElementType,
    Privilege,
    coerce_enum,
    is_known,
)
from asset_sdk.tier1_schema.records import (
    Account,
    Asset,
    AssetLegacy,
    Element,
    Format,
    FormatComplexity,
    FormatComplexityLegacy,
    FormatList,
    FormatScale,
    ImageInfo,
    ModelInfo,
    TypeInfo,
    Timestamp,
    new_asset,
    new_element,
    touch,
)
from asset_sdk.tier1_schema.registry import (
    Cardinality,
    FieldDescriptor,
    FieldType,
    MessageSchema,
    SchemaRegistry,
)


def _tags(type_name: str) -> dict[str, int]:
    return {d.name: d.tag for d in describe(type_name)}


# ── enums ──────────────────────────────────────────────────────────────────

class TestEnums:
    def test_zero_members_are_defaults(self):
        assert Privilege(0) is Privilege.NONE
        assert AccessLevel(0) is AccessLevel.PRIVATE
        assert AssetLicense(0) is AssetLicense.UNKNOWN
        assert ElementType(0) is ElementType.UNKNOWN
        assert BaseUnit(0) is BaseUnit.UNKNOWN

    def test_coerce_known_value(self):
        assert coerce_enum(ElementType, 8) is ElementType.GLB

    def test_coerce_unknown_value_keeps_int(self):
        value = coerce_enum(AccessLevel, 9)
        assert value == 9
        assert not isinstance(value, AccessLevel)

    def test_is_known(self):
        assert is_known(BaseUnit, 3)
        assert not is_known(BaseUnit, 4)


# ── records ────────────────────────────────────────────────────────────────

class TestRecords:
    def test_records_are_frozen(self):
        account = Account(account_id="a1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            account.account_id = "a2"  # type: ignore[misc]

    def test_lists_become_tuples(self, make_element):
        fmt = Format(root=make_element(), resource=[make_element("el-2")])
        assert isinstance(fmt.resource, tuple)
        assert Asset(tag=["a", "b"]).tag == ("a", "b")

    def test_maps_are_read_only(self):
        asset = Asset(format_list={ElementType.OBJ: FormatList()})
        assert isinstance(asset.format_list, MappingProxyType)
        with pytest.raises(TypeError):
            asset.format_list[ElementType.GLB] = FormatList()  # type: ignore[index]

    def test_unknown_fields_are_read_only(self):
        account = Account(account_id="a1", unknown_fields={42: b"\xd2\x02\x00"})
        assert isinstance(account.unknown_fields, MappingProxyType)
        assert account.unknown_fields[42] == b"\xd2\x02\x00"

    def test_replace_produces_new_record(self):
        account = Account(account_id="a1")
        renamed = dataclasses.replace(account, display_name="Ada")
        assert account.display_name == ""
        assert renamed.display_name == "Ada"

    def test_equality_ignores_container_kind(self):
        assert Asset(tag=["x"]) == Asset(tag=("x",))

    def test_records_with_maps_are_hashable(self, sample_asset):
        assert hash(Timestamp()) == hash(Timestamp())
        assert isinstance(hash(Account(account_id="a1", unknown_fields={42: b"\xd2\x02\x00"})), int)
        assert hash(sample_asset) == hash(dataclasses.replace(sample_asset))

    def test_equal_records_hash_equal(self, sample_asset):
        from asset_sdk.tier2_codec.codec import decode, encode

        copy = decode(encode(sample_asset), Asset)
        assert copy == sample_asset
        assert hash(copy) == hash(sample_asset)
        assert len({copy, sample_asset}) == 1

    def test_records_differing_only_in_maps_stay_unequal(self):
        a = Asset(asset_id="a1", format_list={ElementType.OBJ: FormatList()})
        b = Asset(asset_id="a1")
        assert a != b
        assert len({a, b}) == 2

    def test_format_elements_iterates_root_then_resources(self, sample_format):
        ids = [e.element_id for e in sample_format.elements()]
        assert ids == ["el-root", "el-mtl", "el-tex"]

    def test_format_without_root_yields_resources_only(self, make_element):
        fmt = Format(resource=(make_element("el-2"),))
        assert [e.element_id for e in fmt.elements()] == ["el-2"]


class TestTypeInfo:
    def test_builders_set_exactly_one_branch(self):
        assert TypeInfo.model().which == "model_info"
        assert TypeInfo.material().which == "material_info"
        assert TypeInfo.other().which == "other_info"
        info = TypeInfo.image("https://fife.example.com/x")
        assert info.which == "image_info"
        assert info.image_info.fife_url == "https://fife.example.com/x"

    def test_which_is_none_without_branch(self):
        assert TypeInfo().which is None
        assert TypeInfo().active_branches() == ()

    def test_direct_construction_can_set_two_branches(self):
        info = TypeInfo(model_info=ModelInfo(), image_info=ImageInfo())
        assert info.which is None
        assert info.active_branches() == ("model_info", "image_info")


class TestTimestamp:
    def test_from_datetime_round_trip(self):
        dt = datetime(2021, 3, 4, 5, 6, 7, 123456, tzinfo=timezone.utc)
        stamp = Timestamp.from_datetime(dt)
        assert stamp.nanos == 123_456_000
        assert stamp.to_datetime() == dt

    def test_naive_datetime_taken_as_utc(self):
        naive = datetime(2021, 3, 4, 5, 6, 7)
        assert Timestamp.from_datetime(naive) == Timestamp.from_datetime(
            naive.replace(tzinfo=timezone.utc)
        )

    def test_epoch_is_zero(self):
        assert Timestamp.from_datetime(datetime(1970, 1, 1, tzinfo=timezone.utc)) == Timestamp()

    def test_pre_epoch(self):
        stamp = Timestamp.from_datetime(datetime(1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        assert stamp.seconds == -1
        assert stamp.nanos == 0

    def test_sort_key_orders_by_seconds_then_nanos(self):
        assert Timestamp(10, 5).sort_key() < Timestamp(10, 6).sort_key() < Timestamp(11, 0).sort_key()


class TestFormatScale:
    def test_absent_scaler_means_one(self):
        assert FormatScale(base_unit=BaseUnit.METER).effective_scaler == 1.0

    def test_explicit_scaler(self):
        assert FormatScale(base_unit=BaseUnit.FOOT, scaler=0.5).effective_scaler == 0.5


class TestFormatComplexity:
    def test_texel_count_used_when_set(self):
        complexity = FormatComplexity(texel_count=10, legacy=FormatComplexityLegacy(texture_count=99))
        assert complexity.effective_texel_count == 10

    def test_legacy_texture_count_fills_unset_texel_count(self):
        complexity = FormatComplexity(legacy=FormatComplexityLegacy(texture_count=7))
        assert complexity.effective_texel_count == 7

    def test_no_legacy(self):
        assert FormatComplexity().effective_texel_count == 0


class TestEffectiveFormatLists:
    def test_without_legacy(self, sample_asset):
        assert sample_asset.effective_format_lists() == dict(sample_asset.format_list)

    def test_legacy_fills_missing_keys(self, sample_format):
        asset = Asset(asset_id="a1", legacy=AssetLegacy(format={ElementType.GLB: sample_format}))
        merged = asset.effective_format_lists()
        assert merged == {ElementType.GLB: FormatList(format=(sample_format,))}

    def test_format_list_wins_over_legacy(self, sample_format):
        current = FormatList(format=(dataclasses.replace(sample_format, format_id="fmt-new"),))
        asset = Asset(
            asset_id="a1",
            format_list={ElementType.OBJ: current},
            legacy=AssetLegacy(format={ElementType.OBJ: sample_format}),
        )
        assert asset.effective_format_lists()[ElementType.OBJ] is current


class TestBuilders:
    def test_new_asset_stamps_times(self, frozen_now):
        asset = new_asset("Crane", "acct-1")
        assert asset.asset_id.startswith("asset-")
        assert asset.account_id == "acct-1"
        assert asset.create_time == asset.update_time
        assert asset.create_time.to_datetime() == frozen_now

    def test_new_asset_defaults_to_private(self, frozen_now):
        assert new_asset("Crane", "acct-1").access_level is AccessLevel.PRIVATE

    def test_new_asset_accepts_fields(self, frozen_now):
        asset = new_asset("Crane", "acct-1", asset_id="a1", access_level=AccessLevel.PUBLIC)
        assert asset.asset_id == "a1"
        assert asset.access_level is AccessLevel.PUBLIC

    def test_touch_moves_update_time_only(self, frozen_now):
        from asset_sdk.tier0_core.clock import Clock, set_clock

        asset = new_asset("Crane", "acct-1")
        later = frozen_now + timedelta(hours=1)
        set_clock(Clock().freeze(later))
        touched = touch(asset)
        assert touched.create_time == asset.create_time
        assert touched.update_time.to_datetime() == later
        assert asset.update_time.to_datetime() == frozen_now

    def test_new_element_generates_id(self):
        element = new_element("a.obj", "https://blobs/a", ElementType.OBJ, TypeInfo.model())
        assert element.element_id.startswith("element-")
        assert isinstance(element, Element)


# ── catalog ────────────────────────────────────────────────────────────────

class TestCatalog:
    def test_account_tags(self):
        assert _tags("Account") == {
            "account_id": 1, "privilege": 2, "display_name": 3, "family_name": 4,
            "given_name": 5, "photo_url": 6, "description": 7, "location": 8,
            "person_id": 9,
        }

    def test_element_tags(self):
        assert _tags("Element") == {
            "element_id": 1, "file_path": 2, "data_url": 3, "create_time": 4,
            "element_type": 5, "type_info": 6,
        }

    def test_format_tags(self):
        assert _tags("Format") == {
            "root": 1, "resource": 2, "format_id": 3,
            "format_complexity": 4, "format_scale": 5,
        }

    def test_asset_tags(self):
        assert _tags("Asset") == {
            "asset_id": 1, "display_name": 2, "description": 3, "tag": 4,
            "create_time": 5, "update_time": 6, "format": 7, "thumbnail": 8,
            "account_id": 9, "access_level": 10, "admin_data": 11,
            "remix_info": 12, "published_asset_id": 13, "format_list": 14,
            "license": 15, "camera_params": 16,
        }

    def test_complexity_and_scale_tags(self):
        assert _tags("FormatComplexity") == {
            "triangle_count": 1, "texel_count": 2, "shader_count": 3,
            "lod_hint": 4, "texture_count": 1000,
        }
        assert _tags("FormatScale") == {"base_unit": 1, "scaler": 2}

    def test_describe_is_in_tag_order(self):
        tags = [d.tag for d in describe("Asset")]
        assert tags == sorted(tags)

    def test_deprecated_fields(self):
        deprecated = {
            name: [d.name for d in get_registry().get(name).deprecated_fields()]
            for name in get_registry().type_names()
        }
        assert deprecated["Element"] == ["create_time"]
        assert deprecated["FormatComplexity"] == ["texture_count"]
        assert deprecated["Asset"] == ["format"]
        assert sum(len(names) for names in deprecated.values()) == 3

    def test_format_maps_are_keyed_by_element_type(self):
        schema = get_registry().get("Asset")
        for name in ("format", "format_list"):
            desc = schema.by_name(name)
            assert desc.is_map
            assert desc.map_key_type is FieldType.INT32
            assert desc.map_key_enum is ElementType

    def test_type_info_oneof_group(self):
        groups = get_registry().get("TypeInfo").oneof_groups()
        assert list(groups) == ["info"]
        assert [d.name for d in groups["info"]] == [
            "model_info", "image_info", "material_info", "other_info",
        ]

    def test_required_fields(self):
        def required(type_name):
            return [d.name for d in describe(type_name) if d.cardinality is Cardinality.REQUIRED]

        assert required("Account") == ["account_id", "person_id"]
        assert required("Format") == ["root"]
        assert required("Asset") == ["asset_id"]
        assert "access_level" not in required("Asset")

    def test_registry_is_frozen_and_cached(self):
        registry = get_registry()
        assert registry.frozen
        assert registry is get_registry()

    def test_resolve_by_name_and_type(self):
        registry = get_registry()
        assert registry.resolve("Asset") is registry.resolve(Asset)
        assert "Asset.CameraParams" in registry

    def test_unknown_type(self):
        with pytest.raises(SchemaError, match="Unknown type"):
            describe("Teapot")

    def test_unregistered_record_type(self):
        @dataclasses.dataclass(frozen=True)
        class Teapot:
            pass

        with pytest.raises(SchemaError, match="Unregistered record type"):
            get_registry().schema_for(Teapot())

    def test_unknown_field_name(self):
        with pytest.raises(SchemaError, match="no field"):
            get_registry().get("Asset").by_name("owner")


# ── registry contract ─────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class _Probe:
    value: int = 0


class TestRegistryContract:
    def test_tag_zero_rejected(self):
        with pytest.raises(SchemaError, match="out-of-range tag"):
            FieldDescriptor("value", 0, FieldType.INT32)

    def test_message_field_needs_type(self):
        with pytest.raises(SchemaError, match="message_type"):
            FieldDescriptor("child", 1, FieldType.MESSAGE)

    def test_enum_field_needs_type(self):
        with pytest.raises(SchemaError, match="enum_type"):
            FieldDescriptor("kind", 1, FieldType.ENUM)

    def test_oneof_only_on_optional_messages(self):
        with pytest.raises(SchemaError, match="Oneof member"):
            FieldDescriptor("value", 1, FieldType.INT32, oneof="choice")

    def test_map_key_only_on_maps(self):
        with pytest.raises(SchemaError, match="map_key_type"):
            FieldDescriptor("value", 1, FieldType.INT32, map_key_type=FieldType.INT32)

    def test_duplicate_tag_rejected(self):
        with pytest.raises(SchemaError, match="duplicate tag"):
            MessageSchema("Probe", _Probe, (
                FieldDescriptor("value", 1, FieldType.INT32),
                FieldDescriptor("other", 1, FieldType.STRING),
            ))

    def test_deprecated_field_needs_legacy_type(self):
        with pytest.raises(SchemaError, match="legacy_type"):
            MessageSchema("Probe", _Probe, (
                FieldDescriptor("value", 1, FieldType.INT32, deprecated=True),
            ))

    def test_register_after_freeze_rejected(self):
        registry = SchemaRegistry().freeze()
        with pytest.raises(SchemaError, match="frozen"):
            registry.register(MessageSchema("Probe", _Probe, ()))

    def test_duplicate_registration_rejected(self):
        registry = SchemaRegistry()
        registry.register(MessageSchema("Probe", _Probe, ()))
        with pytest.raises(SchemaError, match="already registered"):
            registry.register(MessageSchema("Probe", _Probe, ()))

    def test_freeze_checks_message_references(self):
        registry = SchemaRegistry()
        registry.register(MessageSchema("Probe", _Probe, (
            FieldDescriptor("value", 1, FieldType.MESSAGE, message_type="Missing"),
        )))
        with pytest.raises(SchemaError, match="unknown type 'Missing'"):
            registry.freeze()

    def test_fields_sorted_by_tag(self):
        schema = MessageSchema("Probe", _Probe, (
            FieldDescriptor("b", 5, FieldType.INT32),
            FieldDescriptor("a", 2, FieldType.INT32),
        ))
        assert [d.tag for d in schema.fields] == [2, 5]

    def test_field_defaults(self):
        registry = build_registry()
        asset = registry.get("Asset")
        assert asset.by_name("access_level").default() is AccessLevel.PRIVATE
        assert asset.by_name("tag").default() == ()
        assert asset.by_name("format_list").default() == {}
        assert asset.by_name("camera_params").default() is None
        assert registry.get("FormatScale").by_name("scaler").default() == 0.0

    def test_packed_only_for_repeated_numerics(self):
        registry = get_registry()
        camera = registry.get("Asset.CameraParams")
        assert camera.by_name("matrix_4x4").packed
        assert not camera.by_name("field_of_view").packed
        assert not registry.get("Asset").by_name("tag").packed

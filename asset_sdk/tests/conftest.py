"""
asset_sdk test configuration.

Tests never touch the network or the filesystem; every ASSET_* setting is
pinned here so a developer's .env cannot change results.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

# ── Pin configuration ─────────────────────────────────────────────────────
# These must be set before any asset_sdk modules are imported.

os.environ.setdefault("ASSET_LOG_LEVEL", "WARNING")
os.environ.setdefault("ASSET_LOG_FORMAT", "json")
os.environ["ASSET_STRICT_VALIDATION"] = "false"
os.environ["ASSET_SERIALIZE_FORMAT"] = "wire"


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_module_singletons():
    """
    Reset cached config and the global clock between tests so env changes
    made with monkeypatch never leak into the next test.
    """
    from asset_sdk.tier0_core import clock as _clock
    from asset_sdk.tier0_core.config import _reset_config

    orig_clock = _clock.get_clock()
    _reset_config()

    yield

    _clock.set_clock(orig_clock)
    _reset_config()


@pytest.fixture
def frozen_now():
    """Freeze the global clock at a fixed instant and return it."""
    from asset_sdk.tier0_core.clock import Clock, set_clock

    instant = datetime(2017, 6, 1, 12, 30, 0, tzinfo=timezone.utc)
    set_clock(Clock().freeze(instant))
    return instant


@pytest.fixture
def make_element():
    """Factory for a complete, valid Element."""
    from asset_sdk.tier1_schema.enums import ElementType
    from asset_sdk.tier1_schema.records import Element, TypeInfo

    def _make(element_id: str = "el-1", element_type=ElementType.OBJ, **overrides):
        fields = dict(
            element_id=element_id,
            file_path=f"models/{element_id}.obj",
            data_url=f"https://blobs.example.com/{element_id}",
            element_type=element_type,
            type_info=TypeInfo.model(),
        )
        fields.update(overrides)
        return Element(**fields)

    return _make


@pytest.fixture
def sample_format(make_element):
    """An OBJ format with a material resource, complexity and scale."""
    from asset_sdk.tier1_schema.enums import BaseUnit, ElementType
    from asset_sdk.tier1_schema.records import (
        Format,
        FormatComplexity,
        FormatScale,
        TypeInfo,
    )

    return Format(
        root=make_element("el-root"),
        resource=(
            make_element("el-mtl", ElementType.MTL, type_info=TypeInfo.material()),
            make_element(
                "el-tex", ElementType.PNG,
                type_info=TypeInfo.image("https://fife.example.com/tex"),
            ),
        ),
        format_id="fmt-obj",
        format_complexity=FormatComplexity(
            triangle_count=12000, texel_count=1 << 22, shader_count=2, lod_hint=0,
        ),
        format_scale=FormatScale(base_unit=BaseUnit.FOOT, scaler=0.083),
    )


@pytest.fixture
def sample_asset(sample_format, make_element):
    """A fully populated, valid Asset."""
    from asset_sdk.tier1_schema.enums import AccessLevel, AssetLicense, ElementType
    from asset_sdk.tier1_schema.records import (
        AdminData,
        Asset,
        CameraParams,
        FormatList,
        RemixInfo,
        Timestamp,
        TypeInfo,
    )

    return Asset(
        asset_id="asset-1",
        display_name="Paper Crane",
        description="A folded crane",
        tag=("origami", "bird"),
        create_time=Timestamp(seconds=1_496_000_000, nanos=500),
        update_time=Timestamp(seconds=1_496_100_000, nanos=0),
        thumbnail=(make_element("el-thumb", ElementType.PNG, type_info=TypeInfo.image()),),
        account_id="acct-42",
        access_level=AccessLevel.PUBLIC,
        admin_data=AdminData(tag=("featured",)),
        remix_info=RemixInfo(source_asset=("asset-0", "asset-00")),
        published_asset_id="asset-1-pub",
        format_list={ElementType.OBJ: FormatList(format=(sample_format,))},
        license=AssetLicense.CREATIVE_COMMONS_BY,
        camera_params=CameraParams(
            matrix_4x4=(1.0, 0.0, 0.0, 0.0,
                        0.0, 1.0, 0.0, 0.0,
                        0.0, 0.0, 1.0, 0.0,
                        0.5, -2.25, 10.0, 1.0),
            target_vector=(0.0, 1.5, 0.0),
            field_of_view=30.0,
        ),
    )

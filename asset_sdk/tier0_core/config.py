"""
asset_sdk.tier0_core.config
────────────────────────────
Typed configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic; invalid values surface as
ConfigurationError on first access, not in the middle of a decode.

Minimal stack: pydantic-settings + python-dotenv
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from asset_sdk.tier0_core.errors import ConfigurationError


class AssetSDKConfig(BaseSettings):
    """
    Typed configuration for the asset core.
    All env vars are prefixed with ASSET_.
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # ── Validation ────────────────────────────────────────────────────────────
    strict_validation: bool = Field(default=False)

    # ── Codec limits ──────────────────────────────────────────────────────────
    max_message_bytes: int = Field(default=64 * 1024 * 1024, gt=0)
    max_decode_depth: int = Field(default=64, gt=0)

    # ── Serialization ─────────────────────────────────────────────────────────
    serialize_format: str = Field(default="wire")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "console"}
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v.lower()

    @field_validator("serialize_format")
    @classmethod
    def validate_serialize_format(cls, v: str) -> str:
        allowed = {"wire", "json"}
        if v.lower() not in allowed:
            raise ValueError(f"serialize_format must be one of {allowed}, got {v!r}")
        return v.lower()


@lru_cache(maxsize=1)
def get_config() -> AssetSDKConfig:
    """
    Return the singleton config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    try:
        return AssetSDKConfig()
    except PydanticValidationError as exc:
        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ConfigurationError(
            user_message="Invalid asset_sdk configuration.",
            detail=f"Invalid ASSET_* settings: {fields}",
            fields=fields,
        ) from exc


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()


__sdk_export__ = {
    "exports": ["get_config", "AssetSDKConfig"],
    "description": "Typed ASSET_* configuration via pydantic-settings",
    "tier": "tier0_core",
    "module": "config",
}

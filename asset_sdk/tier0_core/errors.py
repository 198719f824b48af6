"""
asset_sdk.tier0_core.errors
────────────────────────────
Standard error taxonomy for the asset core. Every error carries a stable
machine-readable code and a user-safe message; internal context lives in
``detail`` and ``metadata``.

Validation problems are *not* raised from here by default; the validator
returns Violation values. ``ValidationError`` exists for callers that opt in
to exception-style rejection via ``require_valid``.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class AssetSDKError(Exception):
    """
    Base class for all asset_sdk errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to surface to end users
    - detail: internal context, never shown to users
    - metadata: structured extras (offsets, type names, ...)
    """

    code: str = "internal_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "An unexpected error occurred.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }


# ── Typed error classes ───────────────────────────────────────────────────────

class MalformedInput(AssetSDKError):
    """Decode-time framing or truncation error. Fatal to that decode call only."""
    code = "malformed_input"

    def __init__(
        self,
        detail: str,
        offset: int | None = None,
        user_message: str = "Encoded record is malformed.",
        **metadata: Any,
    ) -> None:
        self.offset = offset
        self.reason = detail
        if offset is not None:
            detail = f"{detail} (at byte {offset})"
        super().__init__(None, user_message, detail, offset=offset, **metadata)

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.offset is not None:
            d["error"]["offset"] = self.offset
        return d


class EncodeError(AssetSDKError):
    """A record holds a value that cannot be represented on the wire."""
    code = "encode_error"

    def __init__(
        self,
        detail: str,
        field_path: str | None = None,
        user_message: str = "Record could not be encoded.",
        **metadata: Any,
    ) -> None:
        self.field_path = field_path
        if field_path:
            detail = f"{field_path}: {detail}"
        super().__init__(None, user_message, detail, field_path=field_path, **metadata)


class SchemaError(AssetSDKError):
    """Schema registry misuse: unknown type, duplicate tag, mutation after freeze."""
    code = "schema_error"

    def __init__(self, detail: str, **metadata: Any) -> None:
        super().__init__(None, "Schema definition error.", detail, **metadata)


class ValidationError(AssetSDKError):
    """Record failed validation and the caller asked for rejection."""
    code = "validation_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Validation failed.",
        fields: dict | None = None,
        **metadata: Any,
    ) -> None:
        self.fields = fields or {}
        super().__init__(code, user_message, **metadata)

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.fields:
            d["error"]["fields"] = self.fields
        return d


class ConfigurationError(AssetSDKError):
    """Misconfiguration detected at startup."""
    code = "configuration_error"


__sdk_export__ = {
    "exports": [
        "AssetSDKError", "MalformedInput", "EncodeError", "SchemaError",
        "ValidationError", "ConfigurationError",
    ],
    "description": "Error taxonomy for the asset schema/codec/validator core",
    "tier": "tier0_core",
    "module": "errors",
}

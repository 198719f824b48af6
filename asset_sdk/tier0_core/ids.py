"""
asset_sdk.tier0_core.ids
─────────────────────────
Identifier generation for new assets and elements. Identifiers are opaque
strings; nothing in the core parses them.
"""
from __future__ import annotations

import uuid
from typing import Literal


def new_id(kind: Literal["asset", "element"] | None = None) -> str:
    """
    Generate a new identifier. With a kind, the id is prefixed
    (``asset-…``, ``element-…``) to make logs and fixtures easier to read.
    """
    raw = uuid.uuid4().hex
    if kind is None:
        return raw
    if kind not in ("asset", "element"):
        raise ValueError(f"Unknown ID kind: {kind!r}. Use 'asset' or 'element'.")
    return f"{kind}-{raw}"


__all__ = ["new_id"]

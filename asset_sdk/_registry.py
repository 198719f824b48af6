"""
asset_sdk._registry
────────────────────
Internal module registry: the single source of truth for which modules make
up the SDK and what each one exports.

Adding a new module:
  1. Implement it in the right tier (a tier only imports from lower tiers)
  2. Add ``__sdk_export__`` to the module: ``exports``, ``description``,
     ``tier``, ``module``
  3. Add one tuple to TIER_MODULES below

``collect_exports()`` then reports it, and the test suite checks that every
listed name actually exists on the module.
"""
from __future__ import annotations

import importlib
from typing import Any

# ---------------------------------------------------------------------------
# Ordered list of (tier_path, module_name) for all modules that declare
# ``__sdk_export__``.
# ---------------------------------------------------------------------------
TIER_MODULES: list[tuple[str, str]] = [
    # tier0_core: ambient stack
    ("tier0_core", "errors"),
    ("tier0_core", "config"),
    ("tier0_core", "logging"),
    # tier1_schema: data model and schema registry
    ("tier1_schema", "catalog"),
    # tier2_codec: wire and JSON encodings
    ("tier2_codec", "codec"),
    ("tier2_codec", "serialize"),
    # tier3_validate: structural validation
    ("tier3_validate", "validator"),
    ("tier3_validate", "references"),
]


def collect_exports() -> dict[str, dict[str, Any]]:
    """
    Import every registered module and return its ``__sdk_export__`` keyed by
    qualified module name.

    Raises ImportError if a registered module cannot be imported and
    LookupError if it lacks ``__sdk_export__``; both are packaging bugs.
    """
    exports: dict[str, dict[str, Any]] = {}
    for tier_path, module_name in TIER_MODULES:
        qualified = f"asset_sdk.{tier_path}.{module_name}"
        mod = importlib.import_module(qualified)
        export_meta: dict[str, Any] | None = getattr(mod, "__sdk_export__", None)
        if not export_meta:
            raise LookupError(f"{qualified} does not declare __sdk_export__")
        exports[qualified] = export_meta
    return exports


def missing_exports() -> list[str]:
    """Qualified names listed in ``__sdk_export__`` that the module lacks."""
    missing: list[str] = []
    for qualified, meta in collect_exports().items():
        mod = importlib.import_module(qualified)
        missing.extend(
            f"{qualified}.{name}" for name in meta["exports"] if not hasattr(mod, name)
        )
    return missing

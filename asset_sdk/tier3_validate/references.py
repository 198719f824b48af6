"""
asset_sdk.tier3_validate.references
────────────────────────────────────
Weak references: identifiers that point at records held elsewhere (owning
account, published copy, remix sources, the People API person). The core
never resolves them; it lists them so a store can, and reports the ones the
store cannot find. A dangling reference is expected in a distributed store
and is never treated as corruption.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from asset_sdk.tier1_schema.records import Account, Asset


class ReferenceKind(str, Enum):
    ACCOUNT = "account"
    PUBLISHED_ASSET = "published_asset"
    REMIX_SOURCE = "remix_source"
    PERSON = "person"


@dataclass(frozen=True)
class WeakReference:
    kind: ReferenceKind
    field_path: str
    target_id: str


def collect_references(record: Any) -> list[WeakReference]:
    """List the weak references held by an Asset or Account, in field order."""
    refs: list[WeakReference] = []
    if isinstance(record, Asset):
        if record.account_id:
            refs.append(WeakReference(ReferenceKind.ACCOUNT, "Asset.account_id", record.account_id))
        if record.remix_info is not None:
            refs.extend(
                WeakReference(
                    ReferenceKind.REMIX_SOURCE,
                    f"Asset.remix_info.source_asset[{i}]",
                    source,
                )
                for i, source in enumerate(record.remix_info.source_asset)
                if source
            )
        if record.published_asset_id:
            refs.append(WeakReference(
                ReferenceKind.PUBLISHED_ASSET,
                "Asset.published_asset_id",
                record.published_asset_id,
            ))
    elif isinstance(record, Account):
        if record.person_id:
            refs.append(WeakReference(ReferenceKind.PERSON, "Account.person_id", record.person_id))
    return refs


def find_dangling(
    references: Iterable[WeakReference],
    exists: Callable[[WeakReference], bool],
) -> list[WeakReference]:
    """
    Return the references for which ``exists`` is False. ``exists`` is the
    caller's lookup against its own store.

    Usage:
        dangling = find_dangling(collect_references(asset), store.has)
    """
    return [ref for ref in references if not exists(ref)]


__sdk_export__ = {
    "exports": ["collect_references", "find_dangling", "WeakReference", "ReferenceKind"],
    "description": "Enumerate and check weak cross-record references",
    "tier": "tier3_validate",
    "module": "references",
}

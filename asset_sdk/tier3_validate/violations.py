"""
asset_sdk.tier3_validate.violations
────────────────────────────────────
Violation values returned by the validator. Violations are data: callers
decide whether to reject, log or quarantine a record.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ViolationKind(str, Enum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    ONEOF_EXCLUSIVITY = "OneofExclusivityViolation"
    UNKNOWN_ENUM_VALUE = "UnknownEnumValue"
    RANGE = "RangeViolation"
    MALFORMED_REFERENCE = "MalformedReference"
    DEPRECATED_FIELD_SET = "DeprecatedFieldSet"
    LEGACY_FIELD_CONFLICT = "LegacyFieldConflict"
    DUPLICATE_IDENTIFIER = "DuplicateIdentifier"


# Informational kinds: a record carrying only these is still acceptable.
NON_FATAL_KINDS = frozenset({
    ViolationKind.UNKNOWN_ENUM_VALUE,
    ViolationKind.LEGACY_FIELD_CONFLICT,
})


@dataclass(frozen=True)
class Violation:
    field_path: str
    kind: ViolationKind
    detail: str = ""

    @property
    def fatal(self) -> bool:
        return self.kind not in NON_FATAL_KINDS

    def to_dict(self) -> dict:
        return {
            "field_path": self.field_path,
            "kind": self.kind.value,
            "detail": self.detail,
        }


def is_valid(violations: Iterable[Violation]) -> bool:
    """True when no fatal violation is present."""
    return not any(v.fatal for v in violations)


__all__ = ["ViolationKind", "NON_FATAL_KINDS", "Violation", "is_valid"]

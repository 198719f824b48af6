"""
asset_sdk.tier0_core.clock
───────────────────────────
Mockable UTC time source used by the record builders when they stamp
create_time/update_time. Encode, decode and validate never read the clock.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable


class Clock:
    """Mockable clock. Pass now_fn to control time in tests."""

    def __init__(self, now_fn: Callable[[], datetime] | None = None) -> None:
        self._now_fn = now_fn or (lambda: datetime.now(tz=timezone.utc))

    def now(self) -> datetime:
        """Return the current UTC datetime."""
        return self._now_fn()

    def freeze(self, dt: datetime) -> "Clock":
        """Return a new Clock frozen at the given datetime."""
        return Clock(now_fn=lambda: dt)


# ── Module-level singleton ─────────────────────────────────────────────────

_clock = Clock()


def get_clock() -> Clock:
    return _clock


def set_clock(clock: Clock) -> None:
    """Replace the global clock (use in tests)."""
    global _clock
    _clock = clock


__all__ = ["Clock", "get_clock", "set_clock"]

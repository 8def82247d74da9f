from __future__ import annotations

from datetime import datetime, timedelta


def should_skip(last_fired_at: datetime | None, cooldown: timedelta, now: datetime) -> bool:
    """True while the rule's most recent firing is still inside the cooldown."""
    if last_fired_at is None:
        return False
    return last_fired_at > now - cooldown


class CooldownGate:
    """Uniform cooldown applied to every rule before it is evaluated."""

    def __init__(self, cooldown_minutes: int) -> None:
        if cooldown_minutes < 0:
            raise ValueError("cooldown_minutes must be >= 0")
        self.cooldown = timedelta(minutes=cooldown_minutes)

    def should_skip(self, last_fired_at: datetime | None, now: datetime) -> bool:
        return should_skip(last_fired_at, self.cooldown, now)

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for an ``HH:MM`` string."""
    match = _HHMM.match(value.strip())
    if match is None:
        raise ValueError(f"invalid time of day {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


@dataclass(frozen=True)
class QuietTimeConfig:
    start: str
    end: str
    timezone: str

    @classmethod
    def from_user_fields(
        cls,
        enabled: bool | None,
        start: str | None,
        end: str | None,
        tz: str | None,
    ) -> "QuietTimeConfig | None":
        """Collapse the user's four nullable columns into one optional value."""
        if not enabled or not start or not end or not tz:
            return None
        return cls(start=start, end=end, timezone=tz)


def is_quiet_time(config: QuietTimeConfig | None, now: datetime) -> bool:
    """Return True when ``now`` falls inside the user's local quiet window.

    The start boundary is inclusive and the end boundary exclusive. A window
    whose start equals its end is empty. Any problem with the configuration
    (unknown zone, malformed time) is logged and treated as "not quiet" so a
    bad setting never swallows alerts.
    """
    if config is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        local = now.astimezone(ZoneInfo(config.timezone))
        start = parse_hhmm(config.start)
        end = parse_hhmm(config.end)
    except Exception as exc:
        logger.warning(
            "quiet time check failed for tz=%r start=%r end=%r: %s",
            config.timezone,
            config.start,
            config.end,
            exc,
        )
        return False

    now_minutes = local.hour * 60 + local.minute
    if start == end:
        return False
    if start < end:
        return start <= now_minutes < end
    # Overnight, e.g. 22:00-07:00
    return now_minutes >= start or now_minutes < end

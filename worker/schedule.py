from __future__ import annotations

from datetime import timedelta
from typing import Callable, Dict, Iterator, Mapping, Optional

from celery.schedules import schedule as sched

EVALUATE_TASK = "evaluate_rules"


def build_beat_schedule(every_seconds: int) -> Dict[str, dict]:
    """Build a Celery beat schedule running one evaluation pass every N seconds.

    Passes are not expected to overlap; `expires` drops a queued pass once the
    next one is due so a backed-up broker does not replay stale ticks.
    """
    seconds = max(1, int(every_seconds))
    return {
        EVALUATE_TASK: {
            "task": EVALUATE_TASK,
            "schedule": sched(timedelta(seconds=seconds)),
            "options": {"expires": seconds},
        }
    }


class LazyBeatSchedule(Mapping[str, dict]):
    """A mapping that builds the beat schedule on first access.

    The factory reads the environment, so building is deferred until the
    schedule is actually read.
    """

    def __init__(self, factory: Callable[[], Dict[str, dict]]):
        self._factory = factory
        self._cache: Optional[Dict[str, dict]] = None

    def _entries(self) -> Dict[str, dict]:
        if self._cache is None:
            self._cache = self._factory()
        return self._cache

    def refresh(self) -> None:
        """Clear the cache so the next access recomputes the schedule."""
        self._cache = None

    def __getitem__(self, key: str) -> dict:
        return self._entries()[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries())

    def __len__(self) -> int:
        return len(self._entries())

    def __contains__(self, key: object) -> bool:  # type: ignore[override]
        return key in self._entries()

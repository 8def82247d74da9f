from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from pricealert.cooldown import CooldownGate, should_skip

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_never_fired_is_not_skipped() -> None:
    assert should_skip(None, timedelta(minutes=60), NOW) is False


def test_recent_firing_is_skipped() -> None:
    assert should_skip(NOW - timedelta(minutes=30), timedelta(minutes=60), NOW) is True


def test_old_firing_is_not_skipped() -> None:
    assert should_skip(NOW - timedelta(minutes=90), timedelta(minutes=60), NOW) is False


def test_firing_exactly_at_cooldown_edge_is_not_skipped() -> None:
    assert should_skip(NOW - timedelta(minutes=60), timedelta(minutes=60), NOW) is False


def test_gate_uses_configured_minutes() -> None:
    gate = CooldownGate(15)
    assert gate.should_skip(NOW - timedelta(minutes=10), NOW) is True
    assert gate.should_skip(NOW - timedelta(minutes=20), NOW) is False


def test_gate_rejects_negative_cooldown() -> None:
    with pytest.raises(ValueError):
        CooldownGate(-1)

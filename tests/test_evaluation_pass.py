from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Sequence

from prometheus_client import generate_latest
from pytest import MonkeyPatch
from sqlalchemy import select
from sqlalchemy.orm import Session

from pricealert.notifications import DispatchResult
from pricealert.rules import NotificationFiringEvent


class _RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list[NotificationFiringEvent] = []

    def dispatch(self, events: Sequence[NotificationFiringEvent]) -> list[DispatchResult]:
        self.events.extend(events)
        return [DispatchResult(e.rule_id, "test", True) for e in events]


def _setup_db(monkeypatch: MonkeyPatch, tmp_path: Path, name: str) -> Session:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}/{name}.db")
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    from pricealert.db import create_all, get_engine

    create_all()
    return Session(bind=get_engine())


def _seed(
    session: Session,
    now: datetime,
    quiet: bool,
    last_fired_at: datetime | None = None,
) -> int:
    from pricealert.models import (
        Asset,
        NotificationRule,
        PriceHistory,
        RuleKind,
        TrackedAsset,
        TriggeredAlert,
        User,
    )

    user = User(
        email="bob@example.com",
        quiet_time_enabled=quiet,
        quiet_time_start="09:00",
        quiet_time_end="17:00",
        quiet_time_zone="America/New_York",
    )
    asset = Asset(coingecko_id="bitcoin", symbol="btc", name="Bitcoin")
    session.add_all([user, asset])
    session.flush()
    tracked = TrackedAsset(user_id=user.id, asset_id=asset.id)
    session.add(tracked)
    session.flush()
    rule = NotificationRule(
        tracked_asset_id=tracked.id,
        kind=RuleKind.PCT_INCREASE,
        value=10.0,
        time_window_hours=24,
    )
    session.add(rule)
    session.add_all(
        [
            PriceHistory(asset_id=asset.id, ts=now - timedelta(hours=24), price=100.0),
            PriceHistory(asset_id=asset.id, ts=now - timedelta(minutes=1), price=115.0),
        ]
    )
    session.flush()
    if last_fired_at is not None:
        session.add(TriggeredAlert(rule_id=rule.id, triggered_at=last_fired_at, triggering_price=1.0))
    session.commit()
    return rule.id


def test_pass_records_and_notifies(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    session = _setup_db(monkeypatch, tmp_path, "pass_notify")
    from pricealert.evaluator import RuleOutcome, run_evaluation_pass
    from pricealert.models import TriggeredAlert

    # 14:00 in New York, inside the 09:00-17:00 window but quiet time is off
    now = datetime(2024, 1, 15, 19, 0, tzinfo=timezone.utc)
    rule_id = _seed(session, now, quiet=False)
    dispatcher = _RecordingDispatcher()

    summary = run_evaluation_pass(session, dispatcher=dispatcher, cooldown_minutes=60, clock=lambda: now)

    assert summary.outcomes == {rule_id: RuleOutcome.MET_NOTIFIED}
    rows = session.execute(select(TriggeredAlert)).scalars().all()
    assert [(r.rule_id, r.triggering_price, r.triggered_at) for r in rows] == [(rule_id, 115.0, now)]
    assert [e.rule_id for e in dispatcher.events] == [rule_id]
    assert dispatcher.events[0].asset_symbol == "BTC"
    session.close()


def test_pass_during_quiet_time_records_without_notifying(
    monkeypatch: MonkeyPatch, tmp_path: Path
) -> None:
    session = _setup_db(monkeypatch, tmp_path, "pass_quiet")
    from pricealert.evaluator import RuleOutcome, run_evaluation_pass
    from pricealert.models import TriggeredAlert

    now = datetime(2024, 1, 15, 19, 0, tzinfo=timezone.utc)
    rule_id = _seed(session, now, quiet=True)
    dispatcher = _RecordingDispatcher()

    summary = run_evaluation_pass(session, dispatcher=dispatcher, cooldown_minutes=60, clock=lambda: now)

    assert summary.outcomes == {rule_id: RuleOutcome.MET_SUPPRESSED}
    assert len(session.execute(select(TriggeredAlert)).scalars().all()) == 1
    assert dispatcher.events == []
    session.close()


def test_second_pass_within_cooldown_is_skipped(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    session = _setup_db(monkeypatch, tmp_path, "pass_cooldown")
    from pricealert.evaluator import RuleOutcome, run_evaluation_pass
    from pricealert.models import TriggeredAlert

    now = datetime(2024, 1, 15, 19, 0, tzinfo=timezone.utc)
    rule_id = _seed(session, now, quiet=False, last_fired_at=now - timedelta(minutes=30))
    dispatcher = _RecordingDispatcher()

    summary = run_evaluation_pass(session, dispatcher=dispatcher, cooldown_minutes=60, clock=lambda: now)

    assert summary.outcomes == {rule_id: RuleOutcome.SKIPPED_COOLDOWN}
    assert len(session.execute(select(TriggeredAlert)).scalars().all()) == 1
    assert dispatcher.events == []
    session.close()


def test_evaluate_rules_task(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    session = _setup_db(monkeypatch, tmp_path, "task")
    monkeypatch.setenv("RULE_COOLDOWN_MINUTES", "60")
    from pricealert.models import TriggeredAlert
    from worker.tasks.evaluation import evaluate_rules

    _seed(session, datetime.now(timezone.utc), quiet=False)

    result = evaluate_rules.run()

    assert result["met_notified"] == 1
    assert result["records_written"] == 1
    # No RESEND_API_KEY: delivery fails but the firing stays recorded
    assert result["notifications_failed"] == 1
    assert len(session.execute(select(TriggeredAlert)).scalars().all()) == 1

    metrics_text = generate_latest().decode()
    assert 'rule_evaluations_total{outcome="met_notified"}' in metrics_text
    assert "evaluation_pass_seconds" in metrics_text
    session.close()

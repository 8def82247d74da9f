from __future__ import annotations

from datetime import timedelta

from pytest import MonkeyPatch


def test_builds_schedule_from_env(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLE_WORKER_METRICS", "false")
    monkeypatch.setenv("ENABLE_BEAT", "true")
    monkeypatch.setenv("EVALUATION_INTERVAL_SECONDS", "120")

    from worker.worker_app import celery_app

    schedule = celery_app.conf.beat_schedule
    schedule.refresh()
    assert "evaluate_rules" in schedule
    entry = schedule["evaluate_rules"]
    assert entry["task"] == "evaluate_rules"
    assert entry["schedule"].run_every == timedelta(seconds=120)
    assert entry["options"] == {"expires": 120}


def test_schedule_empty_when_beat_disabled(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLE_WORKER_METRICS", "false")
    monkeypatch.setenv("ENABLE_BEAT", "false")

    from worker.worker_app import celery_app

    schedule = celery_app.conf.beat_schedule
    schedule.refresh()
    assert len(schedule) == 0


def test_evaluate_task_is_registered() -> None:
    from worker.worker_app import celery_app

    assert "evaluate_rules" in celery_app.tasks

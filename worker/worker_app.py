from __future__ import annotations

import logging
import os
from typing import Final

from celery import Celery, signals
from prometheus_client import start_http_server

from pricealert.config import Settings, flag
from worker.schedule import LazyBeatSchedule, build_beat_schedule

# Default local-stack broker URL; production is provided via env.
DEFAULT_BROKER: Final[str] = "redis://redis:6379/0"

celery_app = Celery("pricealert_worker")
broker_url = os.getenv("REDIS_URL", DEFAULT_BROKER)
celery_app.conf.broker_url = broker_url
celery_app.conf.result_backend = broker_url


def _start_metrics_server() -> None:
    """Run `prometheus_client`'s basic HTTP server for worker metrics."""
    port = int(os.getenv("WORKER_METRICS_PORT", "8001"))
    start_http_server(port)


@signals.worker_ready.connect
def _on_worker_ready(sender: object | None = None, **kwargs: object) -> None:  # type: ignore[no-redef]
    """Start metrics HTTP server only in actual worker processes.

    Avoids binding the port when running celery CLI commands like `call` or in
    non-worker processes (e.g., Beat), which only import the module.
    """
    if flag("ENABLE_WORKER_METRICS", default=True):
        try:
            _start_metrics_server()
        except OSError as exc:
            logging.getLogger(__name__).warning("metrics server not started: %s", exc)


def _build_schedule_from_env() -> dict[str, dict]:
    if not flag("ENABLE_BEAT"):
        return {}
    return build_beat_schedule(Settings.from_env().evaluation_interval_seconds)


# Use a lazy schedule so tests that set env after an earlier import
# still see the correct configuration when accessing the schedule.
celery_app.conf.beat_schedule = LazyBeatSchedule(_build_schedule_from_env)

# Register tasks with the app; imported last because tasks import celery_app
import worker.tasks.evaluation  # noqa: E402,F401

from __future__ import annotations

import logging

from pricealert.db import new_session
from pricealert.evaluator import run_evaluation_pass
from worker.worker_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="evaluate_rules")
def evaluate_rules(self: object, cooldown_minutes: int | None = None) -> dict[str, int]:
    """Run one evaluation pass and return its outcome counts.

    A load failure propagates so Celery marks the task failed; the next
    scheduled pass starts from scratch.
    """
    session = new_session()
    try:
        summary = run_evaluation_pass(session, cooldown_minutes=cooldown_minutes)
        return summary.as_dict()
    finally:
        session.close()

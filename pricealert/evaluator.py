"""Evaluation pass over all enabled alert rules.

One pass loads every enabled rule with its owner and last firing, bulk-loads
the latest price per asset, and then decides each rule on its own:

    cooldown -> condition -> quiet time -> record (always) -> notify (if not quiet)

Every rule is independent. A rule that raises is logged and treated as not
met; only a failure to load the rules or prices aborts the pass.
"""

from __future__ import annotations

import enum
import json
import logging
from collections import Counter as Tally
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .conditions import evaluate
from .config import Settings
from .cooldown import CooldownGate
from .metrics import FIRINGS, PASS_FAILURES, PASS_SECONDS, RULE_ERRORS, RULE_EVALUATIONS
from .notifications import Dispatcher, build_dispatcher_from_env
from .quiet_time import is_quiet_time
from .rules import FiringRecord, NotificationFiringEvent, PricePoint, RuleContext
from .stores import (
    FiringRecorder,
    PriceStore,
    RuleStore,
    SqlFiringRecorder,
    SqlPriceStore,
    SqlRuleStore,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class RuleOutcome(str, enum.Enum):
    SKIPPED_NO_PRICE = "skipped_no_price"
    SKIPPED_COOLDOWN = "skipped_cooldown"
    NOT_MET = "not_met"
    MET_SUPPRESSED = "met_suppressed"
    MET_NOTIFIED = "met_notified"


@dataclass
class PassSummary:
    outcomes: dict[int, RuleOutcome] = field(default_factory=dict)
    errors: int = 0
    records_written: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0

    def as_dict(self) -> dict[str, int]:
        tally = Tally(o.value for o in self.outcomes.values())
        data = {o.value: tally.get(o.value, 0) for o in RuleOutcome}
        data.update(
            rules=len(self.outcomes),
            errors=self.errors,
            records_written=self.records_written,
            notifications_sent=self.notifications_sent,
            notifications_failed=self.notifications_failed,
        )
        return data


@dataclass(frozen=True)
class _Decision:
    outcome: RuleOutcome
    record: Optional[FiringRecord] = None
    event: Optional[NotificationFiringEvent] = None


class RuleEvaluator:
    def __init__(
        self,
        rule_store: RuleStore,
        price_store: PriceStore,
        recorder: FiringRecorder,
        dispatcher: Dispatcher,
        cooldown: CooldownGate,
        clock: Clock = utc_clock,
    ) -> None:
        self.rule_store = rule_store
        self.price_store = price_store
        self.recorder = recorder
        self.dispatcher = dispatcher
        self.cooldown = cooldown
        self.clock = clock

    def run_pass(self) -> PassSummary:
        with PASS_SECONDS.time():
            return self._run_pass()

    def _run_pass(self) -> PassSummary:
        summary = PassSummary()
        try:
            contexts = self.rule_store.enabled_rules_with_context()
            if not contexts:
                logger.info("no enabled rules to evaluate")
            asset_ids = {c.asset_id for c in contexts}
            latest = self.price_store.latest_prices(asset_ids) if asset_ids else {}
        except Exception:
            PASS_FAILURES.inc()
            logger.exception("evaluation pass aborted: could not load rules or prices")
            raise

        # One instant for the whole pass keeps cooldown and quiet-time decisions consistent
        now = self.clock()
        records: list[FiringRecord] = []
        events: list[NotificationFiringEvent] = []

        for ctx in contexts:
            price = latest.get(ctx.asset_id)
            if price is None:
                decision = _Decision(RuleOutcome.SKIPPED_NO_PRICE)
            else:
                try:
                    decision = self._decide(ctx, price, now)
                except Exception:
                    summary.errors += 1
                    RULE_ERRORS.inc()
                    logger.exception("error evaluating rule %s", ctx.rule.id)
                    decision = _Decision(RuleOutcome.NOT_MET)

            summary.outcomes[ctx.rule.id] = decision.outcome
            RULE_EVALUATIONS.labels(outcome=decision.outcome.value).inc()
            if decision.record is not None:
                records.append(decision.record)
            if decision.event is not None:
                events.append(decision.event)

        if records:
            try:
                summary.records_written = self.recorder.record_firings(records)
            except Exception:
                logger.exception("failed to record %d firings", len(records))

        if events:
            try:
                results = self.dispatcher.dispatch(events)
            except Exception:
                summary.notifications_failed = len(events)
                logger.exception("notification dispatch failed for %d events", len(events))
            else:
                summary.notifications_sent = sum(1 for r in results if r.success)
                summary.notifications_failed = len(results) - summary.notifications_sent
                logger.info(
                    "notifications dispatched: success=%d failed=%d",
                    summary.notifications_sent,
                    summary.notifications_failed,
                )

        logger.info(
            json.dumps(
                {
                    "ts": now.isoformat(),
                    "lvl": "info",
                    "event": "evaluation_pass_finished",
                    **summary.as_dict(),
                }
            )
        )
        return summary

    def _decide(self, ctx: RuleContext, price: PricePoint, now: datetime) -> _Decision:
        if self.cooldown.should_skip(ctx.last_fired_at, now):
            return _Decision(RuleOutcome.SKIPPED_COOLDOWN)

        result = evaluate(ctx.rule, price, self.price_store.earliest_price_at_or_after)
        if not result.met:
            return _Decision(RuleOutcome.NOT_MET)

        suppressed = is_quiet_time(ctx.quiet_time, now)
        FIRINGS.labels(suppressed=str(suppressed).lower()).inc()
        logger.info(
            json.dumps(
                {
                    "ts": now.isoformat(),
                    "lvl": "info",
                    "event": "rule_fired",
                    "rule_id": ctx.rule.id,
                    "user_id": ctx.user_id,
                    "asset": ctx.asset_symbol.upper(),
                    "kind": ctx.rule.kind.value,
                    "threshold": ctx.rule.threshold,
                    "price": result.triggering_price,
                    "change_pct": result.change_pct,
                    "suppressed": suppressed,
                }
            )
        )

        record = FiringRecord(ctx.rule.id, result.triggering_price, now)
        if suppressed:
            return _Decision(RuleOutcome.MET_SUPPRESSED, record=record)
        event = NotificationFiringEvent.from_context(ctx, result.triggering_price)
        return _Decision(RuleOutcome.MET_NOTIFIED, record=record, event=event)


def run_evaluation_pass(
    session: Session,
    dispatcher: Dispatcher | None = None,
    cooldown_minutes: int | None = None,
    clock: Clock | None = None,
) -> PassSummary:
    """Run one pass against the database bound to ``session``."""
    if cooldown_minutes is None:
        cooldown_minutes = Settings.from_env().cooldown_minutes
    evaluator = RuleEvaluator(
        rule_store=SqlRuleStore(session),
        price_store=SqlPriceStore(session),
        recorder=SqlFiringRecorder(session),
        dispatcher=dispatcher if dispatcher is not None else build_dispatcher_from_env(),
        cooldown=CooldownGate(cooldown_minutes),
        clock=clock or utc_clock,
    )
    return evaluator.run_pass()

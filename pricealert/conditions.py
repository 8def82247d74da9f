from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .models.notification_rule import RuleKind
from .rules import InvalidRuleError, PercentChangeRule, PricePoint, PriceTargetRule, Rule

HistoricalLookup = Callable[[int, datetime], Optional[PricePoint]]


@dataclass(frozen=True)
class ConditionResult:
    met: bool
    triggering_price: float
    change_pct: float | None = None


def percent_change(historical: float, latest: float) -> float | None:
    """Percentage move from ``historical`` to ``latest``; None for a zero base."""
    if historical == 0.0:
        return None
    return (latest - historical) / historical * 100.0


def evaluate(rule: Rule, latest: PricePoint, lookup: HistoricalLookup) -> ConditionResult:
    """Decide whether ``rule`` holds for the latest price point.

    Percentage rules compare against the earliest sample at or after
    ``latest.ts - window_hours``; no such sample, or a zero price there, means
    there is not enough data and the rule is not met.
    """
    price = float(latest.price)

    if isinstance(rule, PriceTargetRule):
        if rule.kind is RuleKind.PRICE_ABOVE:
            return ConditionResult(price > rule.threshold, price)
        return ConditionResult(price < rule.threshold, price)

    if not isinstance(rule, PercentChangeRule):
        raise InvalidRuleError(f"rule {rule.id}: unsupported rule type {type(rule).__name__}")
    since = latest.ts - timedelta(hours=rule.window_hours)
    start = lookup(latest.asset_id, since)
    if start is None:
        return ConditionResult(False, price)
    pct = percent_change(float(start.price), price)
    if pct is None:
        return ConditionResult(False, price)

    if rule.kind is RuleKind.PCT_INCREASE:
        met = pct >= rule.threshold
    else:
        met = pct <= -abs(rule.threshold)
    return ConditionResult(met, price, pct)

"""Domain value types shared by the evaluation core.

These are plain frozen dataclasses, decoupled from the ORM rows so the pure
helpers can be exercised without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from .models.notification_rule import RuleKind
from .quiet_time import QuietTimeConfig

MIN_WINDOW_HOURS = 1
MAX_WINDOW_HOURS = 72

_PRICE_TARGET_KINDS = frozenset({RuleKind.PRICE_ABOVE, RuleKind.PRICE_BELOW})
_PERCENT_KINDS = frozenset({RuleKind.PCT_INCREASE, RuleKind.PCT_DECREASE})


class InvalidRuleError(ValueError):
    """Raised when a stored rule cannot be turned into a valid Rule."""


@dataclass(frozen=True)
class PricePoint:
    asset_id: int
    price: float
    ts: datetime


@dataclass(frozen=True)
class PriceTargetRule:
    id: int
    kind: RuleKind
    threshold: float

    def __post_init__(self) -> None:
        if self.kind not in _PRICE_TARGET_KINDS:
            raise InvalidRuleError(f"rule {self.id}: {self.kind} is not a price target kind")


@dataclass(frozen=True)
class PercentChangeRule:
    id: int
    kind: RuleKind
    threshold: float
    window_hours: int

    def __post_init__(self) -> None:
        if self.kind not in _PERCENT_KINDS:
            raise InvalidRuleError(f"rule {self.id}: {self.kind} is not a percentage kind")
        if not MIN_WINDOW_HOURS <= self.window_hours <= MAX_WINDOW_HOURS:
            raise InvalidRuleError(
                f"rule {self.id}: window_hours must be in "
                f"[{MIN_WINDOW_HOURS}, {MAX_WINDOW_HOURS}], got {self.window_hours}"
            )
        # Stored as a magnitude; older rows may carry a signed decrease value
        object.__setattr__(self, "threshold", abs(self.threshold))


Rule = Union[PriceTargetRule, PercentChangeRule]


def rule_from_row(
    rule_id: int, kind: RuleKind | str, value: float, window_hours: int | None
) -> Rule:
    """Build the right Rule variant from stored columns."""
    try:
        kind_e = RuleKind(kind)
    except ValueError as exc:
        raise InvalidRuleError(f"rule {rule_id}: unknown kind {kind!r}") from exc
    if kind_e.is_percentage:
        if window_hours is None:
            raise InvalidRuleError(f"rule {rule_id}: percentage rule without a window")
        return PercentChangeRule(
            id=rule_id, kind=kind_e, threshold=float(value), window_hours=int(window_hours)
        )
    return PriceTargetRule(id=rule_id, kind=kind_e, threshold=float(value))


@dataclass(frozen=True)
class RuleContext:
    """An enabled rule together with what the evaluator needs about its owner."""

    rule: Rule
    user_id: int
    email: str
    phone_number: str | None
    quiet_time: QuietTimeConfig | None
    asset_id: int
    asset_symbol: str
    asset_name: str
    last_fired_at: datetime | None = None


@dataclass(frozen=True)
class FiringRecord:
    rule_id: int
    triggering_price: float
    fired_at: datetime


@dataclass(frozen=True)
class NotificationFiringEvent:
    rule_id: int
    user_id: int
    asset_symbol: str
    asset_name: str
    rule_kind: RuleKind
    rule_value: float
    triggering_price: float
    email: str
    phone_number: str | None = None

    @classmethod
    def from_context(cls, ctx: RuleContext, triggering_price: float) -> "NotificationFiringEvent":
        return cls(
            rule_id=ctx.rule.id,
            user_id=ctx.user_id,
            asset_symbol=ctx.asset_symbol.upper(),
            asset_name=ctx.asset_name,
            rule_kind=ctx.rule.kind,
            rule_value=ctx.rule.threshold,
            triggering_price=triggering_price,
            email=ctx.email,
            phone_number=ctx.phone_number,
        )

"""Storage collaborators of the evaluator, with SQLAlchemy implementations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Asset, NotificationRule, PriceHistory, TrackedAsset, TriggeredAlert, User
from .quiet_time import QuietTimeConfig
from .rules import FiringRecord, InvalidRuleError, PricePoint, RuleContext, rule_from_row

logger = logging.getLogger(__name__)


class PriceStore(Protocol):
    def latest_prices(self, asset_ids: Iterable[int]) -> dict[int, PricePoint]: ...

    def earliest_price_at_or_after(
        self, asset_id: int, since: datetime
    ) -> Optional[PricePoint]: ...


class RuleStore(Protocol):
    def enabled_rules_with_context(self) -> list[RuleContext]: ...


class FiringRecorder(Protocol):
    def record_firings(self, records: Sequence[FiringRecord]) -> int: ...


def _point(row: PriceHistory) -> PricePoint:
    return PricePoint(asset_id=row.asset_id, price=float(row.price), ts=row.ts)


class SqlPriceStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def latest_prices(self, asset_ids: Iterable[int]) -> dict[int, PricePoint]:
        ids = sorted(set(asset_ids))
        if not ids:
            return {}
        # Rank each asset's samples newest first; ties on ts go to the highest id
        ranked = (
            select(
                PriceHistory.id.label("id"),
                func.row_number()
                .over(
                    partition_by=PriceHistory.asset_id,
                    order_by=(PriceHistory.ts.desc(), PriceHistory.id.desc()),
                )
                .label("rn"),
            )
            .where(PriceHistory.asset_id.in_(ids))
            .subquery()
        )
        rows = (
            self.session.execute(
                select(PriceHistory)
                .join(ranked, ranked.c.id == PriceHistory.id)
                .where(ranked.c.rn == 1)
            )
            .scalars()
            .all()
        )
        return {row.asset_id: _point(row) for row in rows}

    def earliest_price_at_or_after(
        self, asset_id: int, since: datetime
    ) -> Optional[PricePoint]:
        row = (
            self.session.execute(
                select(PriceHistory)
                .where(PriceHistory.asset_id == asset_id, PriceHistory.ts >= since)
                .order_by(PriceHistory.ts.asc(), PriceHistory.id.asc())
                .limit(1)
            )
            .scalars()
            .first()
        )
        return _point(row) if row is not None else None


class SqlRuleStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def enabled_rules_with_context(self) -> list[RuleContext]:
        last_fired = (
            select(
                TriggeredAlert.rule_id.label("rule_id"),
                func.max(TriggeredAlert.triggered_at).label("last_fired_at"),
            )
            .group_by(TriggeredAlert.rule_id)
            .subquery()
        )
        stmt = (
            select(NotificationRule, TrackedAsset, Asset, User, last_fired.c.last_fired_at)
            .join(TrackedAsset, NotificationRule.tracked_asset_id == TrackedAsset.id)
            .join(Asset, TrackedAsset.asset_id == Asset.id)
            .join(User, TrackedAsset.user_id == User.id)
            .outerjoin(last_fired, last_fired.c.rule_id == NotificationRule.id)
            .where(NotificationRule.is_enabled.is_(True))
            .order_by(NotificationRule.id)
        )

        contexts: list[RuleContext] = []
        for rule_row, _tracked, asset, user, last_fired_at in self.session.execute(stmt):
            try:
                rule = rule_from_row(
                    rule_row.id, rule_row.kind, rule_row.value, rule_row.time_window_hours
                )
            except InvalidRuleError as exc:
                logger.warning("skipping invalid rule %s: %s", rule_row.id, exc)
                continue
            contexts.append(
                RuleContext(
                    rule=rule,
                    user_id=user.id,
                    email=user.email,
                    phone_number=user.phone_number,
                    quiet_time=QuietTimeConfig.from_user_fields(
                        user.quiet_time_enabled,
                        user.quiet_time_start,
                        user.quiet_time_end,
                        user.quiet_time_zone,
                    ),
                    asset_id=asset.id,
                    asset_symbol=asset.symbol,
                    asset_name=asset.name,
                    last_fired_at=last_fired_at,
                )
            )
        return contexts


class SqlFiringRecorder:
    """Writes firing records one commit at a time.

    A failed insert is rolled back and logged; the remaining records are still
    written. Returns how many rows were stored.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def record_firings(self, records: Sequence[FiringRecord]) -> int:
        written = 0
        for record in records:
            self.session.add(
                TriggeredAlert(
                    rule_id=record.rule_id,
                    triggering_price=record.triggering_price,
                    triggered_at=record.fired_at,
                )
            )
            try:
                self.session.commit()
                written += 1
            except Exception as exc:
                self.session.rollback()
                logger.error("failed to record firing for rule %s: %s", record.rule_id, exc)
        return written

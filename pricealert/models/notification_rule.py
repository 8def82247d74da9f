from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .types import UTCDateTime, utcnow


class RuleKind(str, enum.Enum):
    PRICE_ABOVE = "PRICE_ABOVE"
    PRICE_BELOW = "PRICE_BELOW"
    PCT_INCREASE = "PCT_INCREASE"
    PCT_DECREASE = "PCT_DECREASE"

    @property
    def is_percentage(self) -> bool:
        return self in (RuleKind.PCT_INCREASE, RuleKind.PCT_DECREASE)


class NotificationRule(Base):
    __tablename__ = "notification_rules"

    id: Mapped[int] = mapped_column(primary_key=True)
    tracked_asset_id: Mapped[int] = mapped_column(
        ForeignKey("tracked_assets.id", ondelete="CASCADE"), index=True
    )
    kind: Mapped[RuleKind] = mapped_column(Enum(RuleKind, name="rule_kind"))
    value: Mapped[float] = mapped_column()
    # Required for percentage kinds only
    time_window_hours: Mapped[int | None] = mapped_column(default=None)
    is_enabled: Mapped[bool] = mapped_column(default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    if TYPE_CHECKING:  # only for type checkers/linters
        from .tracked_asset import TrackedAsset

    tracked_asset: Mapped["TrackedAsset"] = relationship(backref="rules")

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .types import UTCDateTime


class TriggeredAlert(Base):
    """One row per firing, written whether or not the user was notified."""

    __tablename__ = "triggered_alerts"

    id: Mapped[int] = mapped_column(primary_key=True)
    rule_id: Mapped[int] = mapped_column(
        ForeignKey("notification_rules.id", ondelete="CASCADE")
    )
    triggered_at: Mapped[datetime] = mapped_column(UTCDateTime())
    triggering_price: Mapped[float] = mapped_column()

    __table_args__ = (
        Index("ix_triggered_alerts_rule_triggered_at", "rule_id", "triggered_at"),
    )

    if TYPE_CHECKING:  # only for type checkers/linters
        from .notification_rule import NotificationRule

    rule: Mapped["NotificationRule"] = relationship(backref="triggered_alerts")

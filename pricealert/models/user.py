from __future__ import annotations

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .types import UTCDateTime, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    phone_number: Mapped[str | None] = mapped_column(
        String(32), unique=True, default=None
    )
    # Quiet time is only honoured when enabled and all three fields are set
    quiet_time_enabled: Mapped[bool] = mapped_column(default=False)
    quiet_time_start: Mapped[str | None] = mapped_column(String(5), default=None)
    quiet_time_end: Mapped[str | None] = mapped_column(String(5), default=None)
    quiet_time_zone: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

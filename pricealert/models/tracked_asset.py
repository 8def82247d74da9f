from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .types import UTCDateTime, utcnow


class TrackedAsset(Base):
    """A user's subscription to an asset; rules hang off this row."""

    __tablename__ = "tracked_assets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    asset_id: Mapped[int] = mapped_column(
        ForeignKey("assets.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "asset_id", name="uq_tracked_assets_user_asset"),
    )

    if TYPE_CHECKING:  # only for type checkers/linters
        from .asset import Asset
        from .user import User

    user: Mapped["User"] = relationship(backref="tracked_assets")
    asset: Mapped["Asset"] = relationship(backref="tracked_by")

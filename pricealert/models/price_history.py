from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .types import UTCDateTime


class PriceHistory(Base):
    __tablename__ = "price_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    asset_id: Mapped[int] = mapped_column(
        ForeignKey("assets.id", ondelete="CASCADE"), index=True
    )
    # Store timezone-aware timestamps (UTC) and coerce to aware on read
    ts: Mapped[datetime] = mapped_column(UTCDateTime(), index=True)
    price: Mapped[float] = mapped_column(Numeric(18, 8))

    __table_args__ = (Index("ix_price_history_asset_ts", "asset_id", "ts"),)

    # define relationship to Asset lazily (string ref) to avoid circular import
    if TYPE_CHECKING:  # only for type checkers/linters
        from .asset import Asset

    asset: Mapped["Asset"] = relationship(backref="prices")

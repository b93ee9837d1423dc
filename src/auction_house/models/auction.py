"""Auction model for time-boxed listings."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auction_house.core.database import Base
from auction_house.models.base import CreatedAtMixin

if TYPE_CHECKING:
    from auction_house.models.bid import Bid
    from auction_house.models.user import User


class AuctionStatus(str, enum.Enum):
    """Stored lifecycle status. OPEN -> CLOSED happens once and is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Auction(Base, CreatedAtMixin):
    """Auction model representing one listed item and its bidding window."""

    __tablename__ = "auctions"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AuctionStatus.OPEN.value,
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="auctions")
    bids: Mapped[List["Bid"]] = relationship("Bid", back_populates="auction")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="chk_auction_time"),
        CheckConstraint("status IN ('OPEN', 'CLOSED')", name="chk_auction_status"),
        # Closer claim: WHERE end_time <= now AND status <> 'CLOSED' ORDER BY end_time
        Index("idx_auctions_status_end", "status", "end_time"),
        Index("idx_auctions_time", "start_time", "end_time"),
    )

    @property
    def is_closed(self) -> bool:
        return self.status == AuctionStatus.CLOSED.value

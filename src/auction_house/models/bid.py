"""Bid model. Bids are an append-only audit trail and outlive their auction's window."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from auction_house.core.database import Base

if TYPE_CHECKING:
    from auction_house.models.auction import Auction
    from auction_house.models.user import User


class Bid(Base):
    """Bid model representing one accepted offer on an auction."""

    __tablename__ = "bids"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    auction_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("auctions.id"),
        nullable=False,
    )
    bidder_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # Relationships
    auction: Mapped["Auction"] = relationship("Auction", back_populates="bids")
    bidder: Mapped["User"] = relationship("User", back_populates="bids")

    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_bid_amount_positive"),
        Index("idx_bids_bidder", "bidder_id"),
    )


# Top-bid lookup: WHERE auction_id = ? ORDER BY amount DESC LIMIT n
Index("idx_bids_auction_amount", Bid.auction_id, Bid.amount.desc())

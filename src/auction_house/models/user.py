"""User model. Rows are owned by the registration flow; this service only reads them."""

from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auction_house.core.database import Base
from auction_house.models.base import CreatedAtMixin

if TYPE_CHECKING:
    from auction_house.models.auction import Auction
    from auction_house.models.bid import Bid


class User(Base, CreatedAtMixin):
    """A person who lists items or bids on them."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    display_name: Mapped[str | None] = mapped_column(
        String(80),
        nullable=True,
    )

    # Relationships
    auctions: Mapped[List["Auction"]] = relationship("Auction", back_populates="owner")
    bids: Mapped[List["Bid"]] = relationship("Bid", back_populates="bidder")

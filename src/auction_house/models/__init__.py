"""SQLAlchemy ORM models."""

from auction_house.models.auction import Auction, AuctionStatus
from auction_house.models.base import CreatedAtMixin
from auction_house.models.bid import Bid
from auction_house.models.user import User

__all__ = [
    "CreatedAtMixin",
    "User",
    "Auction",
    "AuctionStatus",
    "Bid",
]

"""Business logic services."""

from auction_house.services.auction_service import AuctionService
from auction_house.services.auction_store import AuctionStore, SqlAuctionStore
from auction_house.services.bid_service import BidService
from auction_house.services.closing_service import AuctionCloser
from auction_house.services.notifier import LoggingNotifier, Notifier
from auction_house.services.ws_manager import ConnectionManager, manager

__all__ = [
    "AuctionService",
    "AuctionStore",
    "SqlAuctionStore",
    "BidService",
    "AuctionCloser",
    "Notifier",
    "LoggingNotifier",
    "ConnectionManager",
    "manager",
]

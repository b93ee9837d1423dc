"""API v1 routers."""

from auction_house.api.v1 import auctions, bids, ws

__all__ = ["auctions", "bids", "ws"]

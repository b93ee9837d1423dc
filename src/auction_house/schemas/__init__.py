"""Pydantic schemas for request/response validation."""

from auction_house.schemas.auction import AuctionCreate, AuctionView
from auction_house.schemas.bid import BidCreate, BidResponse
from auction_house.schemas.ws import (
    AuctionClosedEvent,
    ClientMessage,
    NewBidEvent,
    OutbidEvent,
    WSEvent,
)

__all__ = [
    "AuctionCreate",
    "AuctionView",
    "BidCreate",
    "BidResponse",
    "NewBidEvent",
    "OutbidEvent",
    "AuctionClosedEvent",
    "ClientMessage",
    "WSEvent",
]

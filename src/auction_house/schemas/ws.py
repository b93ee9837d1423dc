"""WebSocket event schemas for real-time communication."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from auction_house.schemas.bid import BidResponse


class NewBidData(BaseModel):
    """Data payload for new bid event."""

    bid: BidResponse


class NewBidEvent(BaseModel):
    """New bid event pushed to every subscriber of an auction topic."""

    event: Literal["NEW_BID"] = "NEW_BID"
    data: NewBidData


class OutbidData(BaseModel):
    """Data payload for outbid event."""

    auction_id: int
    new_amount: float
    your_previous_amount: float
    message: str = "You have been outbid"


class OutbidEvent(BaseModel):
    """Outbid event pushed to the previous top bidder only."""

    event: Literal["OUTBID"] = "OUTBID"
    data: OutbidData


class AuctionClosedData(BaseModel):
    """Data payload for auction closed event."""

    auction_id: int
    title: str
    winner_id: int | None = None
    final_amount: float | None = None
    closed_at: datetime
    message: str


class AuctionClosedEvent(BaseModel):
    """Auction closed event pushed to the auction topic by the closer."""

    event: Literal["AUCTION_CLOSED"] = "AUCTION_CLOSED"
    data: AuctionClosedData


class ClientMessage(BaseModel):
    """Control message sent by a client over the socket."""

    type: Literal["AUTH", "JOIN_AUCTION", "LEAVE_AUCTION"]
    user_id: int | None = None
    auction_id: int | None = None


# Type alias for all server-pushed events
WSEvent = NewBidEvent | OutbidEvent | AuctionClosedEvent

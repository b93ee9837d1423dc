"""Bid schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BidCreate(BaseModel):
    """Schema for bid submission request."""

    bidder_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class BidResponse(BaseModel):
    """Schema for an accepted bid."""

    id: int
    auction_id: int
    bidder_id: int
    amount: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}

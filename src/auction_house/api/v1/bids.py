"""Bidding API endpoints."""

from fastapi import APIRouter, status

from auction_house.api.deps import BidServiceDep, to_http_error
from auction_house.schemas.bid import BidCreate, BidResponse
from auction_house.services.errors import AuctionError

router = APIRouter()


@router.post(
    "/{auction_id}/bids",
    response_model=BidResponse,
    status_code=status.HTTP_201_CREATED,
)
async def place_bid(
    auction_id: int,
    bid_data: BidCreate,
    bid_service: BidServiceDep,
):
    """Submit a bid.

    Rules (checked under the auction's row lock):
    - Auction must be active by server time
    - Owner cannot bid
    - First bid >= 5, later bids >= current + 1
    """
    try:
        bid = await bid_service.place_bid(auction_id, bid_data.bidder_id, bid_data.amount)
    except AuctionError as e:
        raise to_http_error(e)

    return BidResponse.model_validate(bid)

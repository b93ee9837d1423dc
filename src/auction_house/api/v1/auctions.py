"""Auction listing API endpoints."""

from fastapi import APIRouter, Query, status

from auction_house.api.deps import AuctionServiceDep, to_http_error
from auction_house.schemas.auction import AuctionCreate, AuctionView
from auction_house.services.errors import AuctionError

router = APIRouter()


@router.post("", response_model=AuctionView, status_code=status.HTTP_201_CREATED)
async def create_auction(
    auction_data: AuctionCreate,
    auction_service: AuctionServiceDep,
):
    """List a new item. The auction starts OPEN."""
    try:
        return await auction_service.create_auction(auction_data)
    except AuctionError as e:
        raise to_http_error(e)


@router.get("", response_model=list[AuctionView])
async def list_auctions(
    auction_service: AuctionServiceDep,
    status_filter: str = Query("active", alias="status"),
):
    """List active or closed auctions with derived state and current top bid."""
    try:
        return await auction_service.list_auctions(status_filter)
    except AuctionError as e:
        raise to_http_error(e)


@router.get("/{auction_id}", response_model=AuctionView)
async def get_auction(
    auction_id: int,
    auction_service: AuctionServiceDep,
):
    """Get one auction by ID."""
    try:
        return await auction_service.get_auction(auction_id)
    except AuctionError as e:
        raise to_http_error(e)

"""API dependencies for store and service access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from auction_house.core.database import async_session_maker
from auction_house.services.auction_service import AuctionService
from auction_house.services.auction_store import SqlAuctionStore
from auction_house.services.bid_service import BidService
from auction_house.services.errors import (
    AuctionError,
    BidTooLowError,
    EndedError,
    NotFoundError,
    NotStartedError,
    OwnerForbiddenError,
    TransientStoreError,
    ValidationError,
)
from auction_house.services.ws_manager import ConnectionManager, manager

# One store per process; it opens a session per operation
auction_store = SqlAuctionStore(async_session_maker)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotStartedError: status.HTTP_409_CONFLICT,
    EndedError: status.HTTP_409_CONFLICT,
    OwnerForbiddenError: status.HTTP_403_FORBIDDEN,
    BidTooLowError: 422,
    TransientStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_error(error: AuctionError) -> HTTPException:
    """Translate a domain error into an HTTPException with a {code, message} detail."""
    detail = {"code": error.code, "message": error.message}
    if isinstance(error, BidTooLowError):
        detail["minimum"] = str(error.minimum)
    return HTTPException(
        status_code=ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=detail,
    )


def get_auction_store() -> SqlAuctionStore:
    return auction_store


def get_broadcaster() -> ConnectionManager:
    return manager


async def get_bid_service(
    store: Annotated[SqlAuctionStore, Depends(get_auction_store)],
    broadcaster: Annotated[ConnectionManager, Depends(get_broadcaster)],
) -> BidService:
    """Get BidService instance with injected dependencies."""
    return BidService(store, broadcaster)


async def get_auction_service(
    store: Annotated[SqlAuctionStore, Depends(get_auction_store)],
) -> AuctionService:
    """Get AuctionService instance with injected dependencies."""
    return AuctionService(store)


# Type aliases for cleaner dependency injection
BidServiceDep = Annotated[BidService, Depends(get_bid_service)]
AuctionServiceDep = Annotated[AuctionService, Depends(get_auction_service)]

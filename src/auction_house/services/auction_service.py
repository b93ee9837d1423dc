"""Auction service for listing and reading auctions."""

from datetime import datetime

from auction_house.core.clock import Clock, system_clock
from auction_house.schemas.auction import AuctionCreate, AuctionView
from auction_house.services.auction_state import derive_state
from auction_house.services.auction_store import AuctionRow, AuctionStore
from auction_house.services.errors import NotFoundError, ValidationError

LIST_FILTERS = ("active", "closed")


def to_view(row: AuctionRow, now: datetime) -> AuctionView:
    """Build the read model, deriving state and countdown at ``now``."""
    auction = row.auction
    derived = derive_state(auction.status, auction.start_time, auction.end_time, now)
    return AuctionView(
        id=auction.id,
        owner_id=auction.owner_id,
        title=auction.title,
        description=auction.description,
        image_url=auction.image_url,
        start_time=auction.start_time,
        end_time=auction.end_time,
        status=auction.status,
        state=derived.state,
        seconds_remaining=derived.seconds_remaining,
        current_bid=row.current_bid,
        highest_bidder_id=row.highest_bidder_id,
    )


class AuctionService:
    """Read-only views plus the listing flow. Never takes row locks."""

    def __init__(self, store: AuctionStore, clock: Clock = system_clock):
        self.store = store
        self.clock = clock

    async def create_auction(self, data: AuctionCreate) -> AuctionView:
        if data.end_time <= data.start_time:
            raise ValidationError("End time must be after start time")
        auction = await self.store.create_auction(data)
        return to_view(AuctionRow(auction, None, None), self.clock.now())

    async def list_auctions(
        self, status_filter: str = "active", now: datetime | None = None
    ) -> list[AuctionView]:
        """List active or closed auctions with their current top bid.

        Args:
            status_filter: "active" or "closed"
            now: Reference time, defaults to the clock

        Returns:
            Views ordered by end_time (soonest first for active, latest first for closed)
        """
        status_filter = status_filter.lower()
        if status_filter not in LIST_FILTERS:
            raise ValidationError(f"Unknown status filter: {status_filter}")

        now = now or self.clock.now()
        rows = await self.store.list_auctions(status_filter, now)
        return [to_view(row, now) for row in rows]

    async def get_auction(self, auction_id: int, now: datetime | None = None) -> AuctionView:
        row = await self.store.get_auction(auction_id)
        if row is None:
            raise NotFoundError(f"Auction {auction_id} not found")
        return to_view(row, now or self.clock.now())

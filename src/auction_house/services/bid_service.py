"""Bid service: the bid-acceptance protocol."""

import logging
import time
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from auction_house.core.clock import Clock, system_clock
from auction_house.middleware.metrics import record_bid
from auction_house.models.bid import Bid
from auction_house.schemas.bid import BidResponse
from auction_house.schemas.ws import NewBidData, NewBidEvent, OutbidData, OutbidEvent
from auction_house.services.auction_state import has_ended, has_started, select_top_bid
from auction_house.services.auction_store import AuctionStore
from auction_house.services.errors import (
    AuctionError,
    BidTooLowError,
    EndedError,
    NotStartedError,
    OwnerForbiddenError,
    ValidationError,
)
from auction_house.services.ws_manager import Broadcaster

logger = logging.getLogger(__name__)

MIN_FIRST_BID = Decimal("5")
MIN_INCREMENT = Decimal("1")
AMOUNT_QUANTUM = Decimal("0.01")
MAX_AMOUNT = Decimal("10000000000")


def minimum_next_bid(current: Decimal | None) -> Decimal:
    """Smallest acceptable amount given the current top amount (None if no bids)."""
    if current is None:
        return MIN_FIRST_BID
    return current + MIN_INCREMENT


def _parse_amount(amount: Any) -> Decimal:
    if isinstance(amount, bool):
        raise ValidationError("Invalid amount")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        raise ValidationError("Invalid amount")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be a positive number")
    # Must fit the Numeric(12, 2) column without rounding
    if value >= MAX_AMOUNT:
        raise ValidationError(f"Amount must be below {MAX_AMOUNT:,}")
    if value != value.quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN):
        raise ValidationError("Amount must have at most 2 decimal places")
    return value


def _check_id(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"Invalid {name}")


class BidService:
    """Validates and commits bids against one auction at a time.

    Every check runs against state read while the auction row is locked, and
    the lock is held until the new bid commits. Bids on the same auction are
    therefore serialized into commit order; bids on different auctions never
    wait on each other.
    """

    def __init__(
        self,
        store: AuctionStore,
        broadcaster: Broadcaster,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.clock = clock

    async def place_bid(self, auction_id: int, bidder_id: int, amount: Any) -> Bid:
        """Place a bid and announce it once committed.

        Args:
            auction_id: Target auction
            bidder_id: Bidding user
            amount: Offered amount

        Returns:
            The committed bid

        Raises:
            ValidationError: Malformed ids or amount
            NotFoundError: Unknown auction
            NotStartedError: Before start_time
            EndedError: At/after end_time, or auction closed
            OwnerForbiddenError: Bidder owns the auction
            BidTooLowError: Below the first-bid floor or the increment rule
            TransientStoreError: Lock timeout or lost connectivity
        """
        _check_id("auction_id", auction_id)
        _check_id("bidder_id", bidder_id)
        value = _parse_amount(amount)

        started = time.perf_counter()
        try:
            bid, previous_top = await self._commit_bid(auction_id, bidder_id, value)
        except AuctionError as e:
            record_bid(e.code, time.perf_counter() - started)
            raise
        record_bid("accepted", time.perf_counter() - started)

        # Only reached after commit; a rolled-back bid is never announced
        await self._announce(bid, previous_top)
        return bid

    async def _commit_bid(
        self, auction_id: int, bidder_id: int, amount: Decimal
    ) -> tuple[Bid, Bid | None]:
        async with self.store.lock_for_update(auction_id) as locked:
            auction = locked.auction
            now = self.clock.now()

            if not has_started(auction.start_time, now):
                raise NotStartedError("Auction has not started yet")
            if has_ended(auction.end_time, now) or auction.is_closed:
                raise EndedError("Auction ended")
            if auction.owner_id == bidder_id:
                raise OwnerForbiddenError("Cannot bid on your own item")

            previous_top = select_top_bid(await locked.top_bids())
            if previous_top is None:
                if amount < MIN_FIRST_BID:
                    raise BidTooLowError(f"Minimum first bid is {MIN_FIRST_BID}", MIN_FIRST_BID)
            else:
                minimum = minimum_next_bid(previous_top.amount)
                if amount < minimum:
                    raise BidTooLowError(f"Bid must be >= {minimum}", minimum)

            bid = await locked.insert_bid(bidder_id, amount, now)

        return bid, previous_top

    async def _announce(self, bid: Bid, previous_top: Bid | None) -> None:
        new_bid = NewBidEvent(data=NewBidData(bid=BidResponse.model_validate(bid)))
        try:
            await self.broadcaster.publish(bid.auction_id, new_bid.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to publish NEW_BID for auction {bid.auction_id}: {e}")

        if previous_top is None or previous_top.bidder_id == bid.bidder_id:
            return

        outbid = OutbidEvent(
            data=OutbidData(
                auction_id=bid.auction_id,
                new_amount=float(bid.amount),
                your_previous_amount=float(previous_top.amount),
            )
        )
        try:
            await self.broadcaster.send_to_user(
                previous_top.bidder_id, outbid.model_dump(mode="json")
            )
        except Exception as e:
            logger.warning(f"Failed to send OUTBID to user {previous_top.bidder_id}: {e}")

"""Auction closer: finalizes auctions whose bidding window has elapsed."""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from auction_house.core.clock import Clock, system_clock
from auction_house.middleware.metrics import (
    record_auction_closed,
    record_closer_cycle,
    record_closer_skipped,
)
from auction_house.models.auction import Auction
from auction_house.models.bid import Bid
from auction_house.schemas.ws import AuctionClosedData, AuctionClosedEvent
from auction_house.services.auction_state import select_top_bid
from auction_house.services.auction_store import AuctionStore
from auction_house.services.notifier import Notifier
from auction_house.services.ws_manager import Broadcaster

logger = logging.getLogger(__name__)

WINNER_MESSAGE = "Auction finished. Winner has been notified."
NO_BIDS_MESSAGE = "Auction finished with no bids."


@dataclass
class ClosedAuction:
    """Auction snapshot taken at close time, with its winning bid if any."""

    auction: Auction
    winning_bid: Bid | None


class AuctionCloser:
    """Claims expired-but-open auctions in batches and closes each exactly once.

    A batch is one transaction: either every claimed auction closes or none
    does, and the rows come back on the next tick. Announcements and winner
    emails happen after commit and can never reopen an auction.
    """

    def __init__(
        self,
        store: AuctionStore,
        broadcaster: Broadcaster,
        notifier: Notifier,
        clock: Clock = system_clock,
        batch_size: int = 10,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.notifier = notifier
        self.clock = clock
        self.batch_size = batch_size
        self._running = asyncio.Lock()
        self._in_flight: set[asyncio.Task] = set()

    async def close_expired_auctions(self, batch_size: int, now: datetime) -> int:
        """Close up to ``batch_size`` auctions with end_time <= now.

        Returns:
            Number of auctions closed by this call

        Raises:
            Whatever the store raised; the batch is rolled back first
        """
        closed = await self._close_batch(batch_size, now)

        for entry in closed:
            await self._announce_and_notify(entry)

        return len(closed)

    async def _close_batch(self, batch_size: int, now: datetime) -> list[ClosedAuction]:
        closed: list[ClosedAuction] = []
        async with self.store.claim_expired(now, batch_size) as batch:
            for auction in batch.auctions:
                winning_bid = select_top_bid(await batch.top_bids(auction.id))
                await batch.mark_closed(auction)
                closed.append(ClosedAuction(auction=auction, winning_bid=winning_bid))
        return closed

    async def tick(self) -> int | None:
        """Run one closing cycle unless the previous one is still running.

        Returns:
            Number closed, or None if skipped or failed
        """
        # No await between the check and the acquire, so this is single-flight
        if self._running.locked():
            logger.info("Previous closing cycle still running, skipping tick")
            record_closer_skipped()
            return None

        async with self._running:
            started = time.perf_counter()
            try:
                return await self.close_expired_auctions(self.batch_size, self.clock.now())
            except Exception as e:
                logger.error(f"Auction closing cycle failed: {e}")
                return None
            finally:
                record_closer_cycle(time.perf_counter() - started)

    async def run_forever(self, interval: float) -> None:
        """Fire a tick immediately, then every ``interval`` seconds, until cancelled.

        Ticks are started on schedule rather than awaited, so a slow cycle
        makes the following ticks skip instead of piling up.
        """
        try:
            while True:
                task = asyncio.create_task(self.tick())
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Auction closer loop cancelled")
            in_flight = list(self._in_flight)
            for task in in_flight:
                task.cancel()
            # Let cancelled cycles roll back before the engine is disposed
            await asyncio.gather(*in_flight, return_exceptions=True)

    async def _announce_and_notify(self, entry: ClosedAuction) -> None:
        auction, bid = entry.auction, entry.winning_bid
        winner_id = bid.bidder_id if bid else None
        final_amount = bid.amount if bid else None

        event = AuctionClosedEvent(
            data=AuctionClosedData(
                auction_id=auction.id,
                title=auction.title,
                winner_id=winner_id,
                final_amount=float(final_amount) if final_amount is not None else None,
                closed_at=self.clock.now(),
                message=WINNER_MESSAGE if bid else NO_BIDS_MESSAGE,
            )
        )
        record_auction_closed(has_winner=bid is not None)
        logger.info(
            f"Closed auction {auction.id}: winner={winner_id}, final_amount={final_amount}"
        )

        try:
            await self.broadcaster.publish(auction.id, event.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to publish AUCTION_CLOSED for auction {auction.id}: {e}")

        if bid is not None:
            await self._notify_winner(auction, bid)

    async def _notify_winner(self, auction: Auction, bid: Bid) -> None:
        """Single best-effort attempt; failures never touch the auction."""
        try:
            email = await self.store.get_user_email(bid.bidder_id)
        except Exception as e:
            logger.warning(f"Unable to fetch email for user {bid.bidder_id}: {e}")
            return

        if not email:
            logger.warning(f"No email on file for winner {bid.bidder_id} of auction {auction.id}")
            return

        try:
            await self.notifier.send(
                to=email,
                subject=f"You won the auction: {auction.title}",
                body=(
                    f'Congratulations! You won "{auction.title}" for {bid.amount}. '
                    "Our team will reach out with the next steps shortly."
                ),
            )
        except Exception as e:
            logger.error(f"Failed to send winner email for auction {auction.id}: {e}")

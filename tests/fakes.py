"""In-process test doubles for the store, broadcaster, notifier and clock.

InMemoryAuctionStore keeps the locking contract of the SQL store: a per-row
asyncio.Lock stands in for FOR UPDATE, claims skip rows whose lock is held,
and writes only become visible when the ``async with`` block exits cleanly.
"""

import asyncio
import itertools
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from auction_house.models import Auction, AuctionStatus, Bid, User
from auction_house.services.auction_store import AuctionRow, TOP_BID_CANDIDATES
from auction_house.services.errors import NotFoundError, ValidationError


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class _FakeLockedAuction:
    def __init__(self, store: "InMemoryAuctionStore", auction: Auction):
        self.store = store
        self.auction = auction
        self.staged_bids: list[Bid] = []

    async def top_bids(self) -> list[Bid]:
        # Yield like a real round-trip so unlocked code would interleave
        await asyncio.sleep(0)
        return self.store.top_bids(self.auction.id)

    async def insert_bid(self, bidder_id: int, amount: Decimal, created_at: datetime) -> Bid:
        await asyncio.sleep(0)
        if bidder_id not in self.store.users:
            raise ValidationError(f"Bidder {bidder_id} does not exist")
        bid = Bid(
            id=next(self.store._bid_ids),
            auction_id=self.auction.id,
            bidder_id=bidder_id,
            amount=amount,
            created_at=created_at,
        )
        self.staged_bids.append(bid)
        return bid


class _FakeClaimedBatch:
    def __init__(self, store: "InMemoryAuctionStore", auctions: list[Auction]):
        self.store = store
        self.auctions = auctions
        self.staged_closed: list[Auction] = []

    async def top_bids(self, auction_id: int) -> list[Bid]:
        await asyncio.sleep(0)
        return self.store.top_bids(auction_id)

    async def mark_closed(self, auction: Auction) -> None:
        await asyncio.sleep(0)
        if auction.id in self.store.fail_on_close:
            raise RuntimeError(f"simulated failure closing auction {auction.id}")
        self.staged_closed.append(auction)


class InMemoryAuctionStore:
    def __init__(self):
        self.users: dict[int, User] = {}
        self.auctions: dict[int, Auction] = {}
        self.bids: list[Bid] = []
        self._locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._auction_ids = itertools.count(1)
        self._bid_ids = itertools.count(1)

        # Failure injection
        self.fail_on_close: set[int] = set()
        self.email_lookup_error: Exception | None = None
        self.claim_gate: asyncio.Event | None = None
        self.email_lookups: list[int] = []

    # -- seeding ---------------------------------------------------------

    def add_user(self, user_id: int, email: str | None = None) -> User:
        user = User(id=user_id, email=email or f"user{user_id}@example.com")
        self.users[user_id] = user
        return user

    def add_auction(
        self,
        owner_id: int,
        start_time: datetime,
        end_time: datetime,
        title: str = "Vintage camera",
        status: str = AuctionStatus.OPEN.value,
    ) -> Auction:
        auction = Auction(
            id=next(self._auction_ids),
            owner_id=owner_id,
            title=title,
            description="Lightly used",
            image_url=None,
            start_time=start_time,
            end_time=end_time,
            status=status,
        )
        self.auctions[auction.id] = auction
        return auction

    def top_bids(self, auction_id: int) -> list[Bid]:
        bids = [b for b in self.bids if b.auction_id == auction_id]
        bids.sort(key=lambda b: (-b.amount, b.created_at, b.id))
        return bids[:TOP_BID_CANDIDATES]

    def bids_for(self, auction_id: int) -> list[Bid]:
        """Committed bids in commit order."""
        return [b for b in self.bids if b.auction_id == auction_id]

    def is_locked(self, auction_id: int) -> bool:
        return self._locks[auction_id].locked()

    # -- AuctionStore ----------------------------------------------------

    @asynccontextmanager
    async def lock_for_update(self, auction_id: int):
        auction = self.auctions.get(auction_id)
        if auction is None:
            raise NotFoundError(f"Auction {auction_id} not found")

        async with self._locks[auction_id]:
            await asyncio.sleep(0)
            locked = _FakeLockedAuction(self, auction)
            yield locked
            # Commit
            self.bids.extend(locked.staged_bids)

    @asynccontextmanager
    async def claim_expired(self, now: datetime, limit: int):
        claimed: list[Auction] = []
        for auction in sorted(self.auctions.values(), key=lambda a: a.end_time):
            if len(claimed) >= limit:
                break
            if auction.end_time > now or auction.status == AuctionStatus.CLOSED.value:
                continue
            lock = self._locks[auction.id]
            if lock.locked():
                continue
            # Uncontended acquire completes without suspending
            await lock.acquire()
            claimed.append(auction)

        try:
            if self.claim_gate is not None:
                await self.claim_gate.wait()
            batch = _FakeClaimedBatch(self, claimed)
            yield batch
            # Commit
            for auction in batch.staged_closed:
                auction.status = AuctionStatus.CLOSED.value
        finally:
            for auction in claimed:
                self._locks[auction.id].release()

    def _row(self, auction: Auction) -> AuctionRow:
        top = self.top_bids(auction.id)
        if top:
            return AuctionRow(auction, top[0].amount, top[0].bidder_id)
        return AuctionRow(auction, None, None)

    async def list_auctions(self, status_filter: str, now: datetime) -> list[AuctionRow]:
        auctions = list(self.auctions.values())
        if status_filter == "closed":
            selected = [
                a for a in auctions
                if a.end_time <= now or a.status == AuctionStatus.CLOSED.value
            ]
            selected.sort(key=lambda a: a.end_time, reverse=True)
        else:
            selected = [
                a for a in auctions
                if a.start_time <= now < a.end_time and a.status != AuctionStatus.CLOSED.value
            ]
            selected.sort(key=lambda a: a.end_time)
        return [self._row(a) for a in selected]

    async def get_auction(self, auction_id: int) -> AuctionRow | None:
        auction = self.auctions.get(auction_id)
        return self._row(auction) if auction else None

    async def create_auction(self, data) -> Auction:
        if data.owner_id not in self.users:
            raise ValidationError(f"Owner {data.owner_id} does not exist")
        auction = self.add_auction(
            owner_id=data.owner_id,
            start_time=data.start_time,
            end_time=data.end_time,
            title=data.title,
        )
        auction.description = data.description
        auction.image_url = data.image_url
        return auction

    async def get_user_email(self, user_id: int) -> str | None:
        self.email_lookups.append(user_id)
        if self.email_lookup_error is not None:
            raise self.email_lookup_error
        user = self.users.get(user_id)
        return user.email if user else None


class RecordingBroadcaster:
    def __init__(self):
        self.published: list[tuple[int, dict]] = []
        self.direct: list[tuple[int, dict]] = []
        self.error: Exception | None = None

    async def publish(self, auction_id: int, message: dict) -> int:
        if self.error is not None:
            raise self.error
        self.published.append((auction_id, message))
        return 1

    async def send_to_user(self, user_id: int, message: dict) -> bool:
        if self.error is not None:
            raise self.error
        self.direct.append((user_id, message))
        return True

    def events(self, name: str) -> list[dict]:
        return [m for _, m in self.published + self.direct if m["event"] == name]


class RecordingNotifier:
    def __init__(self):
        self.sent: list[dict] = []
        self.error: Exception | None = None

    async def send(self, to: str, subject: str, body: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "body": body})


# Reference start time shared by the scenario tests
T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

OWNER_ID = 1
ALICE_ID = 2
BOB_ID = 3


def at(seconds: float) -> datetime:
    """T0 + seconds."""
    return T0 + timedelta(seconds=seconds)

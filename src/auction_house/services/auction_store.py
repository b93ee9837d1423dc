"""Durable auction state with row-level pessimistic locking.

Two locking primitives are exposed:
- lock_for_update: blocking SELECT ... FOR UPDATE on one auction row
- claim_expired: non-blocking claim of a batch (FOR UPDATE SKIP LOCKED)

Both yield a handle bound to a single transaction. Leaving the ``async with``
block normally commits; an exception rolls everything back.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import AsyncContextManager, AsyncIterator, NamedTuple, Protocol

from sqlalchemy import Select, or_, select, true
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auction_house.models.auction import Auction, AuctionStatus
from auction_house.models.bid import Bid
from auction_house.models.user import User
from auction_house.schemas.auction import AuctionCreate
from auction_house.services.errors import NotFoundError, TransientStoreError, ValidationError

# Fetch two so a tie on the top amount can be detected
TOP_BID_CANDIDATES = 2

_TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


class AuctionRow(NamedTuple):
    """Auction plus its top bid at read time."""

    auction: Auction
    current_bid: Decimal | None
    highest_bidder_id: int | None


class LockedAuction:
    """One auction row held under FOR UPDATE until its transaction ends."""

    def __init__(self, session: AsyncSession, auction: Auction):
        self.session = session
        self.auction = auction

    async def top_bids(self) -> list[Bid]:
        return await _top_bids(self.session, self.auction.id)

    async def insert_bid(self, bidder_id: int, amount: Decimal, created_at: datetime) -> Bid:
        bid = Bid(
            auction_id=self.auction.id,
            bidder_id=bidder_id,
            amount=amount,
            created_at=created_at,
        )
        self.session.add(bid)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ValidationError(f"Bidder {bidder_id} does not exist") from e
        return bid


class ClaimedBatch:
    """Expired auctions claimed with SKIP LOCKED, oldest end_time first."""

    def __init__(self, session: AsyncSession, auctions: list[Auction]):
        self.session = session
        self.auctions = auctions

    async def top_bids(self, auction_id: int) -> list[Bid]:
        return await _top_bids(self.session, auction_id)

    async def mark_closed(self, auction: Auction) -> None:
        auction.status = AuctionStatus.CLOSED.value
        await self.session.flush()


class AuctionStore(Protocol):
    """Storage capability consumed by the auction services."""

    def lock_for_update(self, auction_id: int) -> AsyncContextManager[LockedAuction]:
        ...

    def claim_expired(self, now: datetime, limit: int) -> AsyncContextManager[ClaimedBatch]:
        ...

    async def list_auctions(self, status_filter: str, now: datetime) -> list[AuctionRow]:
        ...

    async def get_auction(self, auction_id: int) -> AuctionRow | None:
        ...

    async def create_auction(self, data: AuctionCreate) -> Auction:
        ...

    async def get_user_email(self, user_id: int) -> str | None:
        ...


async def _top_bids(session: AsyncSession, auction_id: int) -> list[Bid]:
    result = await session.execute(
        select(Bid)
        .where(Bid.auction_id == auction_id)
        .order_by(Bid.amount.desc(), Bid.created_at.asc())
        .limit(TOP_BID_CANDIDATES)
    )
    return list(result.scalars().all())


def _auctions_with_top_bid() -> Select:
    top_bid = (
        select(Bid.amount, Bid.bidder_id)
        .where(Bid.auction_id == Auction.id)
        .order_by(Bid.amount.desc())
        .limit(1)
        .lateral("top_bid")
    )
    return select(Auction, top_bid.c.amount, top_bid.c.bidder_id).outerjoin(top_bid, true())


class SqlAuctionStore:
    """AuctionStore backed by PostgreSQL through an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except _TRANSIENT_ERRORS as e:
            raise TransientStoreError(f"Auction store unavailable: {e}") from e

    @asynccontextmanager
    async def lock_for_update(self, auction_id: int) -> AsyncIterator[LockedAuction]:
        async with self._session() as session, session.begin():
            result = await session.execute(
                select(Auction).where(Auction.id == auction_id).with_for_update()
            )
            auction = result.scalar_one_or_none()
            if auction is None:
                raise NotFoundError(f"Auction {auction_id} not found")
            yield LockedAuction(session, auction)

    @asynccontextmanager
    async def claim_expired(self, now: datetime, limit: int) -> AsyncIterator[ClaimedBatch]:
        async with self._session() as session, session.begin():
            result = await session.execute(
                select(Auction)
                .where(Auction.end_time <= now)
                .where(Auction.status != AuctionStatus.CLOSED.value)
                .order_by(Auction.end_time.asc())
                .limit(limit)
                .with_for_update(skip_locked=True)
            )
            yield ClaimedBatch(session, list(result.scalars().all()))

    async def list_auctions(self, status_filter: str, now: datetime) -> list[AuctionRow]:
        stmt = _auctions_with_top_bid()
        if status_filter == "closed":
            stmt = stmt.where(
                or_(Auction.end_time <= now, Auction.status == AuctionStatus.CLOSED.value)
            ).order_by(Auction.end_time.desc())
        else:
            stmt = (
                stmt.where(Auction.start_time <= now)
                .where(Auction.end_time > now)
                .where(Auction.status != AuctionStatus.CLOSED.value)
                .order_by(Auction.end_time.asc())
            )

        async with self._session() as session:
            result = await session.execute(stmt)
            return [AuctionRow(*row) for row in result.all()]

    async def get_auction(self, auction_id: int) -> AuctionRow | None:
        async with self._session() as session:
            result = await session.execute(
                _auctions_with_top_bid().where(Auction.id == auction_id)
            )
            row = result.first()
            return AuctionRow(*row) if row else None

    async def create_auction(self, data: AuctionCreate) -> Auction:
        auction = Auction(
            owner_id=data.owner_id,
            title=data.title,
            description=data.description,
            image_url=data.image_url,
            start_time=data.start_time,
            end_time=data.end_time,
            status=AuctionStatus.OPEN.value,
        )
        try:
            async with self._session() as session, session.begin():
                session.add(auction)
                await session.flush()
                await session.refresh(auction)
        except IntegrityError as e:
            raise ValidationError(f"Owner {data.owner_id} does not exist") from e
        return auction

    async def get_user_email(self, user_id: int) -> str | None:
        async with self._session() as session:
            result = await session.execute(select(User.email).where(User.id == user_id))
            return result.scalar_one_or_none()

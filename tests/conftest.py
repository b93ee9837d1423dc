"""Pytest configuration and fixtures for testing."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from auction_house.models import Auction
from auction_house.services.bid_service import BidService
from auction_house.services.closing_service import AuctionCloser
from fakes import (
    ALICE_ID,
    BOB_ID,
    OWNER_ID,
    FixedClock,
    InMemoryAuctionStore,
    RecordingBroadcaster,
    RecordingNotifier,
    T0,
    at,
)


# Mock Redis client fixture
@pytest.fixture
def mock_redis() -> AsyncMock:
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.register_script = MagicMock()
    return redis


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(at(1))


@pytest.fixture
def store() -> InMemoryAuctionStore:
    """Store seeded with an owner and two bidders."""
    store = InMemoryAuctionStore()
    store.add_user(OWNER_ID, "owner@example.com")
    store.add_user(ALICE_ID, "alice@example.com")
    store.add_user(BOB_ID, "bob@example.com")
    return store


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def auction(store: InMemoryAuctionStore) -> Auction:
    """OPEN auction running from T0 to T0+60s."""
    return store.add_auction(owner_id=OWNER_ID, start_time=T0, end_time=at(60))


@pytest.fixture
def bid_service(store, broadcaster, clock) -> BidService:
    return BidService(store, broadcaster, clock)


@pytest.fixture
def closer(store, broadcaster, notifier, clock) -> AuctionCloser:
    return AuctionCloser(store, broadcaster, notifier, clock=clock, batch_size=10)

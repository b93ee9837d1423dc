"""Seed data script for development and testing.

Creates:
- 1 seller + N bidders (user0001@test.com ...)
- 1 auction owned by the seller, open now, running AUCTION_DURATION_MINUTES
- 1 auction that already expired, so the closer has something to reconcile

Environment Variables:
    AUCTION_DURATION_MINUTES: Auction duration in minutes (default: 20)
    BIDDER_COUNT: Number of bidder accounts (default: 100)
    RESET_DATA: Set to "true" to clear bids/auctions before seeding (default: false)

Usage:
    python -m scripts.seed_data
    RESET_DATA=true AUCTION_DURATION_MINUTES=5 python -m scripts.seed_data
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from auction_house.core.database import async_session_maker, engine
from auction_house.models import Auction, AuctionStatus, User

# Configuration from environment variables
AUCTION_DURATION_MINUTES = int(os.getenv("AUCTION_DURATION_MINUTES", "20"))
BIDDER_COUNT = int(os.getenv("BIDDER_COUNT", "100"))
RESET_DATA = os.getenv("RESET_DATA", "false").lower() == "true"


async def reset_auction_data(session: AsyncSession) -> None:
    """Clear bids and auctions, keeping users."""
    print("Resetting auction data...")
    await session.execute(text("DELETE FROM bids"))
    await session.execute(text("DELETE FROM auctions"))
    await session.commit()
    print("  Cleared bids, auctions")


async def seed_users(session: AsyncSession) -> list[User]:
    """Create the seller and the bidder accounts.

    Users:
    - Seller: seller@test.com
    - Bidders: user0001@test.com to user{BIDDER_COUNT}@test.com
    """
    print("Seeding users...")

    result = await session.execute(select(User).limit(1))
    if result.scalar_one_or_none():
        print("  Users already exist, skipping...")
        result = await session.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    users = [User(email="seller@test.com", display_name="seller")]
    for i in range(1, BIDDER_COUNT + 1):
        users.append(User(email=f"user{i:04d}@test.com", display_name=f"user{i:04d}"))

    session.add_all(users)
    await session.commit()

    for user in users:
        await session.refresh(user)

    print(f"  Created {len(users)} users")
    return users


async def seed_auctions(session: AsyncSession, seller: User) -> list[Auction]:
    """Create one running auction and one already-expired auction."""
    print("Seeding auctions...")

    now = datetime.now(timezone.utc)
    running = Auction(
        owner_id=seller.id,
        title="Vintage film camera",
        description="Fully working, lens included",
        image_url="https://example.com/images/camera.jpg",
        start_time=now,
        end_time=now + timedelta(minutes=AUCTION_DURATION_MINUTES),
        status=AuctionStatus.OPEN.value,
    )
    # Left OPEN on purpose: the closer picks it up on its first tick
    expired = Auction(
        owner_id=seller.id,
        title="Mechanical keyboard",
        description="Brown switches",
        start_time=now - timedelta(hours=2),
        end_time=now - timedelta(hours=1),
        status=AuctionStatus.OPEN.value,
    )

    session.add_all([running, expired])
    await session.commit()
    await session.refresh(running)
    await session.refresh(expired)

    print(f"  Created auction {running.id}: {running.title}")
    print(f"    Start: {running.start_time}")
    print(f"    End: {running.end_time}")
    print(f"  Created expired auction {expired.id}: {expired.title}")
    return [running, expired]


async def main():
    """Main seed function."""
    print("=" * 60)
    print("Auction House - Seed Data Script")
    print("=" * 60)
    print(f"  RESET_DATA: {RESET_DATA}")
    print(f"  AUCTION_DURATION_MINUTES: {AUCTION_DURATION_MINUTES}")
    print(f"  BIDDER_COUNT: {BIDDER_COUNT}")
    print("=" * 60)

    async with async_session_maker() as session:
        if RESET_DATA:
            await reset_auction_data(session)

        users = await seed_users(session)
        auctions = await seed_auctions(session, users[0])

    print("=" * 60)
    print("Seed data complete!")
    print(f"  Users: {len(users)}")
    print(f"  Running auction: {auctions[0].id} (ends {auctions[0].end_time})")
    print("")
    print("Place a bid with:")
    print(f"  curl -X POST http://localhost:8000/api/v1/auctions/{auctions[0].id}/bids \\")
    print(f"    -H 'Content-Type: application/json' \\")
    print(f"    -d '{{\"bidder_id\": {users[1].id}, \"amount\": \"5.00\"}}'")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

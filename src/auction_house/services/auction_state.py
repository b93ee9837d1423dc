"""Derived auction state shared by every read path.

Listing, detail view and the bid checks all go through these helpers so
"upcoming", "active" and "closed" never disagree between components.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Sequence

from auction_house.models.auction import AuctionStatus
from auction_house.models.bid import Bid

logger = logging.getLogger(__name__)

AuctionState = Literal["upcoming", "active", "closed"]


@dataclass(frozen=True)
class DerivedState:
    state: AuctionState
    seconds_remaining: int


def has_started(start_time: datetime, now: datetime) -> bool:
    return now >= start_time


def has_ended(end_time: datetime, now: datetime) -> bool:
    return now >= end_time


def is_active(status: str, start_time: datetime, end_time: datetime, now: datetime) -> bool:
    return (
        has_started(start_time, now)
        and not has_ended(end_time, now)
        and status != AuctionStatus.CLOSED.value
    )


def seconds_until_end(end_time: datetime, now: datetime) -> int:
    """Whole seconds left before end_time, floored and clamped at zero."""
    return max(0, math.floor((end_time - now).total_seconds()))


def derive_state(
    status: str,
    start_time: datetime,
    end_time: datetime,
    now: datetime,
) -> DerivedState:
    """Compute the display state and countdown of an auction at ``now``.

    Args:
        status: Stored status (OPEN or CLOSED)
        start_time: Start of the bidding window
        end_time: End of the bidding window (exclusive)
        now: Reference time

    Returns:
        DerivedState with seconds_remaining forced to 0 once closed
    """
    if status == AuctionStatus.CLOSED.value or has_ended(end_time, now):
        return DerivedState(state="closed", seconds_remaining=0)
    if has_started(start_time, now):
        return DerivedState(state="active", seconds_remaining=seconds_until_end(end_time, now))
    return DerivedState(state="upcoming", seconds_remaining=seconds_until_end(end_time, now))


def select_top_bid(bids: Sequence[Bid]) -> Bid | None:
    """Pick the top bid from candidates ordered by amount descending.

    The increment rule makes equal top amounts impossible, so a tie is
    reported as an invariant violation instead of being broken silently.
    """
    if not bids:
        return None
    top = bids[0]
    if len(bids) > 1 and bids[1].amount == top.amount:
        logger.error(
            f"Tied top bids on auction {top.auction_id}: bids {top.id} and "
            f"{bids[1].id} both at {top.amount}"
        )
    return top

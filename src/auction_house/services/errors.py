"""Error taxonomy for auction operations.

Callers branch on the exception class (or its ``code``), never on the
message text.
"""

from decimal import Decimal


class AuctionError(Exception):
    """Base class for every domain error raised by the services."""

    code = "AUCTION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AuctionError):
    """Malformed input, rejected before any mutation."""

    code = "VALIDATION_ERROR"


class NotFoundError(AuctionError):
    """Unknown auction."""

    code = "AUCTION_NOT_FOUND"


class NotStartedError(AuctionError):
    """Bid arrived before the auction's start time."""

    code = "AUCTION_NOT_STARTED"


class EndedError(AuctionError):
    """Bid arrived at or after the end time, or the auction is closed."""

    code = "AUCTION_ENDED"


class OwnerForbiddenError(AuctionError):
    """The owner tried to bid on their own item."""

    code = "OWNER_FORBIDDEN"


class BidTooLowError(AuctionError):
    """Amount is below the next acceptable bid."""

    code = "BID_TOO_LOW"

    def __init__(self, message: str, minimum: Decimal):
        super().__init__(message)
        self.minimum = minimum


class TransientStoreError(AuctionError):
    """Lock timeout or lost connectivity. The caller may retry."""

    code = "STORE_UNAVAILABLE"


class NotificationError(AuctionError):
    """Winner notification could not be delivered. Logged, never propagated."""

    code = "NOTIFICATION_FAILED"

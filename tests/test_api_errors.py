"""Tests for mapping domain errors onto HTTP responses."""

from decimal import Decimal

import pytest

from auction_house.api.deps import to_http_error
from auction_house.services.errors import (
    BidTooLowError,
    EndedError,
    NotFoundError,
    NotStartedError,
    OwnerForbiddenError,
    TransientStoreError,
    ValidationError,
)


class TestToHttpError:
    """Each error kind maps to one status and a machine-readable code."""

    @pytest.mark.parametrize(
        "error, status_code, code",
        [
            (ValidationError("Invalid amount"), 400, "VALIDATION_ERROR"),
            (NotFoundError("Auction 9 not found"), 404, "AUCTION_NOT_FOUND"),
            (NotStartedError("Auction has not started yet"), 409, "AUCTION_NOT_STARTED"),
            (EndedError("Auction ended"), 409, "AUCTION_ENDED"),
            (OwnerForbiddenError("Cannot bid on your own item"), 403, "OWNER_FORBIDDEN"),
            (TransientStoreError("Auction store unavailable"), 503, "STORE_UNAVAILABLE"),
        ],
    )
    def test_status_and_code(self, error, status_code, code):
        http_error = to_http_error(error)

        assert http_error.status_code == status_code
        assert http_error.detail == {"code": code, "message": error.message}

    def test_bid_too_low_carries_minimum(self):
        http_error = to_http_error(BidTooLowError("Bid must be >= 11", Decimal("11")))

        assert http_error.status_code == 422
        assert http_error.detail == {
            "code": "BID_TOO_LOW",
            "message": "Bid must be >= 11",
            "minimum": "11",
        }

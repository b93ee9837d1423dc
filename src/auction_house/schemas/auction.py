"""Auction schemas for request/response validation."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

_http_url = TypeAdapter(AnyHttpUrl)


class AuctionCreate(BaseModel):
    """Schema for auction listing request."""

    owner_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field(..., min_length=1)
    image_url: str | None = None
    start_time: datetime
    end_time: datetime

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_url_is_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            try:
                _http_url.validate_python(value)
            except PydanticValidationError:
                raise ValueError("image_url must be an http(s) URL")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps from clients are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def end_after_start(self) -> "AuctionCreate":
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class AuctionView(BaseModel):
    """Auction as seen by readers, with state derived at read time."""

    id: int
    owner_id: int
    title: str
    description: str
    image_url: str | None
    start_time: datetime
    end_time: datetime
    status: str
    state: Literal["upcoming", "active", "closed"]
    seconds_remaining: int
    current_bid: Decimal | None = None
    highest_bidder_id: int | None = None

"""Canonical data model for guest reviews ingested from channel exports."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

Channel = Literal["hostaway", "airbnb", "booking", "google"]
ReviewStatus = Literal[
    "awaiting",
    "pending",
    "scheduled",
    "submitted",
    "published",
    "expired",
    "approved",
    "public",
]
SortKey = Literal["date_desc", "date_asc", "rating_desc", "rating_asc"]
Trend = Literal["up", "down", "stable"]
Granularity = Literal["day", "week", "month"]

CATEGORY_KEYS: tuple[str, ...] = (
    "cleanliness",
    "communication",
    "location",
    "accuracy",
    "checkin",
    "value",
)
REVIEW_STATUSES: tuple[str, ...] = (
    "awaiting",
    "pending",
    "scheduled",
    "submitted",
    "published",
    "expired",
    "approved",
    "public",
)
DEFAULT_STATUS: ReviewStatus = "pending"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HostawayCategoryRating(_WireModel):
    category: str
    rating: Optional[float] = None


class HostawayReview(_WireModel):
    """A review record exactly as the Hostaway channel exports it."""

    id: int
    type: str = ""
    status: str = ""
    rating: Optional[float] = Field(
        default=None, description="Overall rating; frequently null in exports."
    )
    public_review: str = ""
    review_category: list[HostawayCategoryRating] = Field(default_factory=list)
    submitted_at: str
    guest_name: str = ""
    listing_name: str = ""


class ReviewDraft(_WireModel):
    """Normalized review before the moderation overlay is applied."""

    model_config = ConfigDict(frozen=True)

    id: str
    property_name: str
    guest_name: str
    rating: float = Field(
        ..., description="0-5 scale. NaN marks a review that cannot be rated."
    )
    comment: str
    date: datetime
    channel: Channel
    categories: dict[str, Optional[int]] = Field(
        default_factory=dict,
        description="0-5 sub-ratings; None means the category was not provided.",
    )

    @field_serializer("rating", when_used="json")
    def _serialize_rating(self, value: float) -> float | None:
        return value if math.isfinite(value) else None


class NormalizedReview(ReviewDraft):
    """Canonical review shared by filtering, aggregation and timeseries code."""

    status: ReviewStatus = DEFAULT_STATUS


class ReviewFilters(_WireModel):
    """Declarative filter set; empty strings mean "no constraint"."""

    model_config = ConfigDict(frozen=True)

    property: str = ""
    channel: str = ""
    rating: str = ""
    start_date: str = ""
    end_date: str = ""
    status: str = "all"
    category: str = ""
    min_category: str = ""
    sort: str = "date_desc"

    @classmethod
    def from_query(cls, **raw: str | None) -> "ReviewFilters":
        """Build filters from raw query values, dropping ``None`` entries."""
        return cls(**{key: value for key, value in raw.items() if value is not None})


class ReviewPage(_WireModel):
    data: list[NormalizedReview]
    total: int


class PropertyStats(_WireModel):
    """Per-property rollup.

    ``recent_trend`` is only a real signal once a property has at least six
    approved reviews; below that it is always ``"stable"``.
    """

    id: str
    name: str
    total_reviews: int
    approved_reviews: int
    average_rating: float
    recent_trend: Trend = "stable"


class TimeseriesDatum(_WireModel):
    date: str
    count: int
    avg_rating: float


class ReviewSummary(_WireModel):
    total_reviews: int
    pending_reviews: int
    approved_reviews: int
    average_rating: float
    category_averages: dict[str, Optional[float]] = Field(default_factory=dict)


T = TypeVar("T")


class ApiResponse(_WireModel, Generic[T]):
    status: Literal["success", "error"]
    data: Optional[T] = None
    total: Optional[int] = None
    message: Optional[str] = None


__all__ = [
    "ApiResponse",
    "CATEGORY_KEYS",
    "Channel",
    "DEFAULT_STATUS",
    "Granularity",
    "HostawayCategoryRating",
    "HostawayReview",
    "NormalizedReview",
    "PropertyStats",
    "REVIEW_STATUSES",
    "ReviewDraft",
    "ReviewFilters",
    "ReviewPage",
    "ReviewStatus",
    "ReviewSummary",
    "SortKey",
    "TimeseriesDatum",
    "Trend",
]

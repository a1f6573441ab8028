"""Filter, sort and paginate canonical reviews.

Query values arrive as loose strings. Anything that fails to parse degrades to
"no constraint" (or to the documented default) instead of failing the request.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Iterable

from pipelines.common import parse_datetime, parse_float, parse_int
from pipelines.model import NormalizedReview, ReviewFilters, ReviewPage

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
DEFAULT_OFFSET = 0
DEFAULT_MIN_CATEGORY = 1.0
DEFAULT_SORT = "date_desc"


def rating_or_zero(review: NormalizedReview) -> float:
    return review.rating if math.isfinite(review.rating) else 0.0


def _by_date(review: NormalizedReview) -> datetime:
    return review.date


# key function, reverse
_SORTS: dict[str, tuple[Callable[[NormalizedReview], Any], bool]] = {
    "date_desc": (_by_date, True),
    "date_asc": (_by_date, False),
    "rating_desc": (rating_or_zero, True),
    "rating_asc": (rating_or_zero, False),
}


def filter_reviews(
    reviews: Iterable[NormalizedReview], filters: ReviewFilters
) -> list[NormalizedReview]:
    """Apply every active predicate of ``filters`` (logical AND)."""

    result = list(reviews)

    if filters.property:
        needle = filters.property.lower()
        result = [r for r in result if needle in r.property_name.lower()]

    if filters.channel:
        channel = filters.channel.lower()
        result = [r for r in result if r.channel.lower() == channel]

    if filters.rating:
        minimum = parse_int(filters.rating, 0)
        result = [r for r in result if rating_or_zero(r) >= minimum]

    start = parse_datetime(filters.start_date)
    if start is not None:
        result = [r for r in result if r.date >= start]
    end = parse_datetime(filters.end_date)
    if end is not None:
        result = [r for r in result if r.date <= end]

    if filters.status and filters.status != "all":
        result = [r for r in result if r.status == filters.status]

    if filters.category:
        minimum = parse_float(filters.min_category)
        if minimum is None:
            minimum = DEFAULT_MIN_CATEGORY
        result = [
            r
            for r in result
            if (sub := r.categories.get(filters.category)) is not None and sub >= minimum
        ]

    return result


def sort_reviews(reviews: Iterable[NormalizedReview], sort: str | None) -> list[NormalizedReview]:
    key, reverse = _SORTS.get(sort or DEFAULT_SORT, _SORTS[DEFAULT_SORT])
    # sorted() is stable in both directions, so ties keep their input order.
    return sorted(reviews, key=key, reverse=reverse)


def resolve_window(limit: Any = None, offset: Any = None) -> tuple[int, int]:
    limit_num = min(max(parse_int(limit, DEFAULT_LIMIT), 1), MAX_LIMIT)
    offset_num = max(parse_int(offset, DEFAULT_OFFSET), 0)
    return limit_num, offset_num


def apply_filters(
    reviews: Iterable[NormalizedReview],
    filters: ReviewFilters,
    limit: Any = None,
    offset: Any = None,
) -> ReviewPage:
    """Filter, sort and slice ``reviews``; ``total`` is the pre-slice count."""

    ordered = sort_reviews(filter_reviews(reviews, filters), filters.sort)
    limit_num, offset_num = resolve_window(limit, offset)
    return ReviewPage(data=ordered[offset_num : offset_num + limit_num], total=len(ordered))


__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "apply_filters",
    "filter_reviews",
    "rating_or_zero",
    "resolve_window",
    "sort_reviews",
]

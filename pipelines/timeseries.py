"""Calendar-bucketed review counts and mean ratings for charting."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable

from pipelines.common import round_places_half_up
from pipelines.model import NormalizedReview, TimeseriesDatum

GRANULARITIES = ("day", "week", "month")


def bucket_key(moment: datetime, granularity: str) -> str:
    """Return the ISO date of the day, week (Monday) or month containing ``moment``."""
    day: date = moment.date()
    if granularity == "week":
        day -= timedelta(days=day.isoweekday() - 1)
    elif granularity == "month":
        day = day.replace(day=1)
    return day.isoformat()


def build_timeseries(
    reviews: Iterable[NormalizedReview],
    *,
    statuses: Iterable[str] | None = None,
    granularity: str = "day",
) -> list[TimeseriesDatum]:
    """Group reviews into buckets, optionally restricted to ``statuses``.

    Ratings that are not finite count towards ``count`` but are left out of
    ``avg_rating`` entirely.
    """

    allowed = set(statuses or ())
    if granularity not in GRANULARITIES:
        granularity = "day"

    # key -> [count, rating sum, rated count]
    buckets: dict[str, list[float]] = {}
    for review in reviews:
        if allowed and review.status not in allowed:
            continue
        bucket = buckets.setdefault(bucket_key(review.date, granularity), [0, 0.0, 0])
        bucket[0] += 1
        if math.isfinite(review.rating):
            bucket[1] += review.rating
            bucket[2] += 1

    return [
        TimeseriesDatum(
            date=key,
            count=int(count),
            avg_rating=round_places_half_up(total / rated) if rated else 0.0,
        )
        for key, (count, total, rated) in sorted(buckets.items())
    ]


__all__ = ["GRANULARITIES", "bucket_key", "build_timeseries"]

"""Per-property rollups and dashboard summaries over canonical reviews."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from pipelines.filters import rating_or_zero
from pipelines.model import CATEGORY_KEYS, NormalizedReview, PropertyStats, ReviewSummary, Trend

logger = logging.getLogger(__name__)

TREND_WINDOW = 3
TREND_THRESHOLD = 0.05
# decimal places kept on the mean difference before it is compared to the threshold
_TREND_PRECISION = 9

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def _mean_rating(reviews: Sequence[NormalizedReview], divisor: int | None = None) -> float:
    if not reviews:
        return 0.0
    return sum(rating_or_zero(r) for r in reviews) / (divisor or len(reviews))


def recent_trend(approved: Sequence[NormalizedReview]) -> Trend:
    """Compare the three newest approved ratings against the three before them.

    Fewer than six approved reviews always yields ``"stable"``.
    """

    if len(approved) < TREND_WINDOW * 2:
        return "stable"
    newest = sorted(approved, key=lambda r: r.date, reverse=True)
    last = _mean_rating(newest[:TREND_WINDOW], TREND_WINDOW)
    previous = _mean_rating(newest[TREND_WINDOW : TREND_WINDOW * 2], TREND_WINDOW)
    delta = round(last - previous, _TREND_PRECISION)
    if delta > TREND_THRESHOLD:
        return "up"
    if delta < -TREND_THRESHOLD:
        return "down"
    return "stable"


def group_by_property(reviews: Iterable[NormalizedReview]) -> dict[str, list[NormalizedReview]]:
    grouped: dict[str, list[NormalizedReview]] = {}
    for review in reviews:
        grouped.setdefault(review.property_name, []).append(review)
    return grouped


def aggregate_properties(reviews: Iterable[NormalizedReview]) -> list[PropertyStats]:
    """Roll reviews up per property name, in first-seen order.

    Counts cover the normalized reviews only; records dropped by the
    normalizer for an unparsable timestamp are not part of ``total_reviews``.
    """

    stats: list[PropertyStats] = []
    seen_slugs: dict[str, str] = {}
    for name, group in group_by_property(reviews).items():
        slug = slugify(name)
        if slug in seen_slugs:
            logger.warning(
                "Property %r shares slug %r with %r; ids are ambiguous.",
                name,
                slug,
                seen_slugs[slug],
            )
        else:
            seen_slugs[slug] = name

        approved = [r for r in group if r.status == "approved"]
        stats.append(
            PropertyStats(
                id=slug,
                name=name,
                total_reviews=len(group),
                approved_reviews=len(approved),
                average_rating=_mean_rating(approved),
                recent_trend=recent_trend(approved),
            )
        )
    return stats


def category_averages(reviews: Iterable[NormalizedReview]) -> dict[str, float | None]:
    """Mean of provided sub-ratings per category, one decimal; ``None`` when unrated."""

    reviews = list(reviews)
    averages: dict[str, float | None] = {}
    for key in CATEGORY_KEYS:
        values = [r.categories[key] for r in reviews if r.categories.get(key) is not None]
        averages[key] = round(sum(values) / len(values), 1) if values else None
    return averages


def summarize_reviews(reviews: Iterable[NormalizedReview]) -> ReviewSummary:
    reviews = list(reviews)
    approved = [r for r in reviews if r.status == "approved"]
    return ReviewSummary(
        total_reviews=len(reviews),
        pending_reviews=sum(1 for r in reviews if r.status == "pending"),
        approved_reviews=len(approved),
        average_rating=_mean_rating(approved),
        category_averages=category_averages(reviews),
    )


__all__ = [
    "TREND_THRESHOLD",
    "aggregate_properties",
    "category_averages",
    "group_by_property",
    "recent_trend",
    "slugify",
    "summarize_reviews",
]

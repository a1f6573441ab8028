"""Hostaway review normalizer.

Turns channel-shaped ``HostawayReview`` records into ``ReviewDraft`` objects.
Hostaway scores categories out of 10 while the canonical shape is out of 5,
so every sub-rating is halved and rounded half up.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from pipelines.common import coerce_finite, parse_datetime, round_half_up
from pipelines.model import CATEGORY_KEYS, HostawayCategoryRating, HostawayReview, ReviewDraft

logger = logging.getLogger(__name__)

HOSTAWAY_CHANNEL = "hostaway"


def fallback_rating(categories: Iterable[HostawayCategoryRating]) -> int:
    """Average the 10-point category ratings onto the 5-point scale."""
    categories = list(categories)
    total = sum(coerce_finite(cat.rating) or 0.0 for cat in categories)
    return round_half_up(total / max(1, len(categories)) / 2)


def _sub_rating(categories: list[HostawayCategoryRating], key: str) -> int | None:
    match = next((cat for cat in categories if cat.category == key), None)
    if match is None:
        return None
    raw = coerce_finite(match.rating)
    # A zero score is indistinguishable from "not rated" in Hostaway exports.
    if not raw:
        return None
    return round_half_up(raw / 2)


def normalize_review(record: HostawayReview) -> ReviewDraft | None:
    """Normalize one record; returns ``None`` when its timestamp is unusable."""
    submitted = parse_datetime(record.submitted_at)
    if submitted is None:
        logger.warning(
            "Skipping Hostaway review %s: unparsable submittedAt %r.",
            record.id,
            record.submitted_at,
        )
        return None

    overall = coerce_finite(record.rating)
    rating = overall if overall is not None else float(fallback_rating(record.review_category))

    return ReviewDraft(
        id=str(record.id),
        property_name=record.listing_name,
        guest_name=record.guest_name,
        rating=rating,
        comment=record.public_review,
        date=submitted,
        channel=HOSTAWAY_CHANNEL,
        categories={key: _sub_rating(record.review_category, key) for key in CATEGORY_KEYS},
    )


def normalize_reviews(records: Iterable[HostawayReview]) -> list[ReviewDraft]:
    """Normalize every usable record.

    Records with an unparsable ``submittedAt`` are dropped here, so they never
    reach the list, timeseries or ``total_reviews`` counts downstream.
    """

    drafts: list[ReviewDraft] = []
    for record in records:
        draft = normalize_review(record)
        if draft is not None:
            drafts.append(draft)
    return drafts


def parse_hostaway_records(payload: Any) -> list[HostawayReview]:
    """Validate a raw export payload into ``HostawayReview`` records.

    Accepts a bare list or the API envelope (``{"result": [...]}``). Entries
    that are not objects or fail validation are logged and dropped.
    """

    if isinstance(payload, Mapping):
        payload = payload.get("result", payload.get("data", []))
    if not isinstance(payload, list):
        logger.warning("Hostaway payload is not a list of reviews; ignoring it.")
        return []

    records: list[HostawayReview] = []
    for index, item in enumerate(payload):
        if not isinstance(item, Mapping):
            logger.warning("Skipping Hostaway entry #%s: not an object.", index)
            continue
        try:
            records.append(HostawayReview.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping Hostaway entry #%s: %s validation error(s).",
                index,
                exc.error_count(),
            )
    return records


__all__ = [
    "HOSTAWAY_CHANNEL",
    "fallback_rating",
    "normalize_review",
    "normalize_reviews",
    "parse_hostaway_records",
]

"""Loads the overlaid canonical review collection for one request."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from pipelines.model import NormalizedReview, ReviewStatus
from pipelines.normalize import normalize_reviews
from pipelines.overlay import ApprovalStore, attach_status
from pipelines.sources.hostaway import ReviewSource

logger = logging.getLogger(__name__)


async def load_reviews(source: ReviewSource, store: ApprovalStore) -> list[NormalizedReview]:
    """Fetch records, normalize them and apply the current moderation overlay."""

    records = await source.fetch_records()
    drafts = normalize_reviews(records)
    status_map = await run_in_threadpool(store.get_status_map, [d.id for d in drafts])
    logger.debug(
        "Normalized %s of %s records (%s with stored status).",
        len(drafts),
        len(records),
        len(status_map),
    )
    return attach_status(drafts, status_map)


async def update_status(store: ApprovalStore, review_id: str, status: ReviewStatus) -> None:
    await run_in_threadpool(store.set_status, review_id, status)
    logger.info("Review %s marked %s.", review_id, status)


__all__ = ["load_reviews", "update_status"]

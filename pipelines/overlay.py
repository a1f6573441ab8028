"""Moderation overlay applied on top of normalized reviews."""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from pipelines.model import DEFAULT_STATUS, NormalizedReview, ReviewDraft, ReviewStatus


class ApprovalStore(Protocol):
    """Durable review-id -> status mapping owned outside the pipeline."""

    def get_status_map(self, review_ids: Sequence[str]) -> dict[str, ReviewStatus]:
        ...

    def set_status(self, review_id: str, status: ReviewStatus) -> None:
        ...


def attach_status(
    drafts: Iterable[ReviewDraft], status_map: Mapping[str, ReviewStatus]
) -> list[NormalizedReview]:
    return [
        NormalizedReview(**draft.model_dump(), status=status_map.get(draft.id, DEFAULT_STATUS))
        for draft in drafts
    ]


__all__ = ["ApprovalStore", "attach_status"]

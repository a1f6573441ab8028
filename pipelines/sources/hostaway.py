"""Hostaway review sources.

Both sources expose ``fetch_records()`` returning validated ``HostawayReview``
records; the pipeline never cares whether they came from a file export or the
live API.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from httpx import HTTPStatusError
from starlette.concurrency import run_in_threadpool

from pipelines.common import fetch_json
from pipelines.model import HostawayReview
from pipelines.normalize import parse_hostaway_records

HOSTAWAY_BASE_URL = "https://api.hostaway.com/v1"
DEFAULT_REVIEWS_PATH = Path("data/hostaway_reviews.json")

logger = logging.getLogger(__name__)


class HostawayError(RuntimeError):
    """Raised when the Hostaway API answers with an error envelope."""


class ReviewSource(Protocol):
    async def fetch_records(self) -> list[HostawayReview]:
        ...


class JsonFileReviewSource:
    """Reads a Hostaway review export saved as JSON."""

    def __init__(self, path: str | os.PathLike[str] = DEFAULT_REVIEWS_PATH) -> None:
        self.path = Path(path)

    def _read_payload(self) -> Any:
        with self.path.open(encoding="utf-8") as handle:
            return json.load(handle)

    async def fetch_records(self) -> list[HostawayReview]:
        payload = await run_in_threadpool(self._read_payload)
        records = parse_hostaway_records(payload)
        logger.debug("Loaded %s Hostaway reviews from %s.", len(records), self.path)
        return records


class HostawayApiReviewSource:
    """Pulls reviews from the Hostaway public API using client credentials."""

    def __init__(
        self,
        account_id: str | None = None,
        api_key: str | None = None,
        *,
        base_url: str = HOSTAWAY_BASE_URL,
    ) -> None:
        self.account_id = account_id or os.getenv("HOSTAWAY_ACCOUNT_ID")
        self.api_key = api_key or os.getenv("HOSTAWAY_API_KEY")
        self.base_url = base_url.rstrip("/")

    async def _access_token(self) -> str:
        payload = await fetch_json(
            f"{self.base_url}/accessTokens",
            method="POST",
            data={
                "grant_type": "client_credentials",
                "client_id": self.account_id,
                "client_secret": self.api_key,
                "scope": "general",
            },
        )
        return payload["access_token"]

    async def fetch_records(self) -> list[HostawayReview]:
        if not self.account_id or not self.api_key:
            logger.warning(
                "Hostaway credentials missing. Set HOSTAWAY_ACCOUNT_ID and HOSTAWAY_API_KEY."
            )
            return []

        token = await self._access_token()
        try:
            payload = await fetch_json(
                f"{self.base_url}/reviews",
                headers={"Authorization": f"Bearer {token}", "Cache-Control": "no-cache"},
            )
        except HTTPStatusError as exc:
            logger.error(
                "Hostaway reviews request failed for account %s (status=%s).",
                self.account_id,
                exc.response.status_code,
            )
            raise

        if isinstance(payload, dict) and payload.get("status") not in (None, "success"):
            raise HostawayError(f"Hostaway returned status={payload.get('status')!r}")
        return parse_hostaway_records(payload)


__all__ = [
    "DEFAULT_REVIEWS_PATH",
    "HOSTAWAY_BASE_URL",
    "HostawayApiReviewSource",
    "HostawayError",
    "JsonFileReviewSource",
    "ReviewSource",
]

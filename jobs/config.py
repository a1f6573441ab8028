"""Runtime configuration resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from pipelines.sources.hostaway import (
    DEFAULT_REVIEWS_PATH,
    HOSTAWAY_BASE_URL,
    HostawayApiReviewSource,
    JsonFileReviewSource,
    ReviewSource,
)
from storage.db import DuckDBApprovalStore, get_database_path

load_dotenv()

SOURCE_FILE = "file"
SOURCE_HOSTAWAY = "hostaway"


@dataclass(frozen=True)
class Settings:
    """Where reviews come from and where moderation decisions are kept."""

    reviews_source: str = SOURCE_FILE
    reviews_path: Path = DEFAULT_REVIEWS_PATH
    hostaway_account_id: str | None = None
    hostaway_api_key: str | None = None
    hostaway_base_url: str = HOSTAWAY_BASE_URL
    db_path: Path | None = None
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_origins = os.getenv("API_CORS_ORIGINS", "*")
        origins = tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())
        return cls(
            reviews_source=os.getenv("REVIEWS_SOURCE", SOURCE_FILE).strip().lower(),
            reviews_path=Path(os.getenv("HOSTAWAY_REVIEWS_PATH", str(DEFAULT_REVIEWS_PATH))),
            hostaway_account_id=os.getenv("HOSTAWAY_ACCOUNT_ID"),
            hostaway_api_key=os.getenv("HOSTAWAY_API_KEY"),
            hostaway_base_url=os.getenv("HOSTAWAY_BASE_URL", HOSTAWAY_BASE_URL),
            db_path=get_database_path(),
            cors_origins=origins or ("*",),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def build_source(settings: Settings) -> ReviewSource:
    if settings.reviews_source == SOURCE_HOSTAWAY:
        return HostawayApiReviewSource(
            settings.hostaway_account_id,
            settings.hostaway_api_key,
            base_url=settings.hostaway_base_url,
        )
    if settings.reviews_source != SOURCE_FILE:
        raise ValueError(
            f"REVIEWS_SOURCE must be '{SOURCE_FILE}' or '{SOURCE_HOSTAWAY}', "
            f"got '{settings.reviews_source}'."
        )
    return JsonFileReviewSource(settings.reviews_path)


def build_store(settings: Settings) -> DuckDBApprovalStore:
    return DuckDBApprovalStore(settings.db_path)


__all__ = ["Settings", "SOURCE_FILE", "SOURCE_HOSTAWAY", "build_source", "build_store"]

"""DuckDB persistence for the review moderation overlay."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import duckdb

from pipelines.model import ReviewStatus

DB_ENV_VAR = "REVIEWS_DB_PATH"
DEFAULT_DB_PATH = Path("data/review_approvals.duckdb")

REVIEW_APPROVALS_TABLE = "review_approvals"


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def get_database_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Resolve the DuckDB file path from an explicit override or environment variable."""

    if override is not None:
        return Path(override)
    env_value = os.getenv(DB_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_DB_PATH


def connect(path: str | os.PathLike[str] | None = None) -> duckdb.DuckDBPyConnection:
    """Open the overlay database, creating the file and table on first use."""

    db_path = get_database_path(path)
    _ensure_parent_dir(db_path)
    conn = duckdb.connect(str(db_path))
    ensure_review_approvals_table(conn)
    return conn


def ensure_review_approvals_table(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {REVIEW_APPROVALS_TABLE} (
            review_id TEXT PRIMARY KEY,
            status TEXT NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
        """
    )


def get_status_map(
    conn: duckdb.DuckDBPyConnection, review_ids: Sequence[str]
) -> dict[str, ReviewStatus]:
    """Return the stored status for each known id; unknown ids are simply absent."""

    if not review_ids:
        return {}
    rows = conn.execute(
        f"SELECT review_id, status FROM {REVIEW_APPROVALS_TABLE} "
        "WHERE list_contains(?, review_id)",
        [list(review_ids)],
    ).fetchall()
    return {review_id: status for review_id, status in rows}


def set_status(conn: duckdb.DuckDBPyConnection, review_id: str, status: ReviewStatus) -> None:
    conn.execute(
        f"INSERT OR REPLACE INTO {REVIEW_APPROVALS_TABLE} (review_id, status, updated_at) "
        "VALUES (?, ?, ?)",
        [review_id, status, datetime.now(timezone.utc).replace(tzinfo=None)],
    )


class DuckDBApprovalStore:
    """``ApprovalStore`` backed by a DuckDB file; one connection per call."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = get_database_path(path)

    def get_status_map(self, review_ids: Sequence[str]) -> dict[str, ReviewStatus]:
        conn = connect(self.path)
        try:
            return get_status_map(conn, review_ids)
        finally:
            conn.close()

    def set_status(self, review_id: str, status: ReviewStatus) -> None:
        conn = connect(self.path)
        try:
            set_status(conn, review_id, status)
        finally:
            conn.close()


__all__ = [
    "DuckDBApprovalStore",
    "REVIEW_APPROVALS_TABLE",
    "connect",
    "ensure_review_approvals_table",
    "get_database_path",
    "get_status_map",
    "set_status",
]

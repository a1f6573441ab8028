"""Command-line entrypoint for moderation and reporting jobs."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from jobs.config import Settings, build_source, build_store
from jobs.reviews import load_reviews, update_status
from pipelines.aggregate import aggregate_properties
from pipelines.model import PropertyStats, TimeseriesDatum
from pipelines.timeseries import GRANULARITIES, build_timeseries


def _format_property(stats: PropertyStats) -> str:
    return (
        f"{stats.id}: name='{stats.name}' reviews={stats.total_reviews} "
        f"approved={stats.approved_reviews} avg={stats.average_rating:.2f} "
        f"trend={stats.recent_trend}"
    )


def _format_datum(datum: TimeseriesDatum) -> str:
    return f"{datum.date} count={datum.count} avg={datum.avg_rating:.2f}"


def _run_properties(settings: Settings) -> int:
    reviews = asyncio.run(load_reviews(build_source(settings), build_store(settings)))
    for stats in aggregate_properties(reviews):
        print(_format_property(stats))
    return 0


def _run_timeseries(settings: Settings, granularity: str, statuses: list[str] | None) -> int:
    reviews = asyncio.run(load_reviews(build_source(settings), build_store(settings)))
    for datum in build_timeseries(reviews, statuses=statuses, granularity=granularity):
        print(_format_datum(datum))
    return 0


def _run_set_status(settings: Settings, review_id: str, status: str) -> int:
    if not review_id.strip():
        raise SystemExit("review_id must be a non-empty string")
    asyncio.run(update_status(build_store(settings), review_id, status))
    return 0


def _run_serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Guest review moderation job runner")
    parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    approve_parser = subparsers.add_parser("approve", help="Mark a review as approved")
    approve_parser.add_argument("review_id")
    reset_parser = subparsers.add_parser("reset", help="Move a review back to pending")
    reset_parser.add_argument("review_id")

    subparsers.add_parser("properties", help="Show per-property review statistics")

    series_parser = subparsers.add_parser("timeseries", help="Show bucketed review counts")
    series_parser.add_argument("--granularity", choices=GRANULARITIES, default="day")
    series_parser.add_argument(
        "--status",
        action="append",
        help="Only include reviews with this status (repeatable)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level.upper())

    if args.command == "approve":
        return _run_set_status(settings, args.review_id, "approved")
    if args.command == "reset":
        return _run_set_status(settings, args.review_id, "pending")
    if args.command == "properties":
        return _run_properties(settings)
    if args.command == "timeseries":
        return _run_timeseries(settings, args.granularity, args.status)
    if args.command == "serve":
        return _run_serve(args.host, args.port)

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

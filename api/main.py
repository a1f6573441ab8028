"""FastAPI service exposing moderated guest reviews and property analytics."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobs.config import Settings, build_source, build_store
from jobs.reviews import load_reviews, update_status
from pipelines.aggregate import aggregate_properties, summarize_reviews
from pipelines.filters import apply_filters, filter_reviews
from pipelines.model import ApiResponse, ReviewFilters, ReviewStatus
from pipelines.overlay import ApprovalStore
from pipelines.sources.hostaway import ReviewSource
from pipelines.timeseries import build_timeseries

logger = logging.getLogger(__name__)

app = FastAPI(title="Guest Review Insights API", version="0.1.0")


def _configure_cors() -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(Settings.from_env().cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )


_configure_cors()


def get_settings() -> Settings:
    return Settings.from_env()


def get_source(settings: Settings = Depends(get_settings)) -> ReviewSource:
    try:
        return build_source(settings)
    except ValueError as exc:
        logger.error("Review source misconfigured: %s", exc)
        raise HTTPException(status_code=500, detail="Review source is misconfigured") from exc


def get_store(settings: Settings = Depends(get_settings)) -> ApprovalStore:
    return build_store(settings)


def _envelope(status: str, **fields: Any) -> dict[str, Any]:
    return ApiResponse[Any](status=status, **fields).model_dump(
        mode="json", by_alias=True, exclude_unset=True
    )


def _success(data: Any, total: int | None = None) -> dict[str, Any]:
    fields: dict[str, Any] = {"data": jsonable_encoder(data)}
    if total is not None:
        fields["total"] = total
    return _envelope("success", **fields)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=_envelope("error", message=message))


@app.exception_handler(StarletteHTTPException)
async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def _filters(
    property: str | None = Query(None, description="Case-insensitive substring of the property name"),
    channel: str | None = Query(None, description="Channel tag, e.g. hostaway"),
    rating: str | None = Query(None, description="Minimum overall rating (inclusive)"),
    start_date: str | None = Query(None, alias="startDate", description="Inclusive lower date bound"),
    end_date: str | None = Query(None, alias="endDate", description="Inclusive upper date bound"),
    status: str | None = Query(None, description="Moderation status, or 'all'"),
    category: str | None = Query(None, description="Category whose sub-rating is filtered"),
    min_category: str | None = Query(None, alias="minCategory", description="Minimum sub-rating"),
    sort: str | None = Query(None, description="date_desc, date_asc, rating_desc or rating_asc"),
) -> ReviewFilters:
    return ReviewFilters.from_query(
        property=property,
        channel=channel,
        rating=rating,
        start_date=start_date,
        end_date=end_date,
        status=status,
        category=category,
        min_category=min_category,
        sort=sort,
    )


@app.get("/reviews/hostaway")
async def list_reviews(
    filters: ReviewFilters = Depends(_filters),
    limit: str | None = Query(None, description="Page size, clamped to 1..200 (default 50)"),
    offset: str | None = Query(None, description="Items to skip (default 0)"),
    source: ReviewSource = Depends(get_source),
    store: ApprovalStore = Depends(get_store),
):
    try:
        reviews = await load_reviews(source, store)
        page = apply_filters(reviews, filters, limit=limit, offset=offset)
    except Exception:
        logger.exception("GET /reviews/hostaway failed")
        return _error(500, "Failed to fetch reviews")
    return JSONResponse(
        content=_success(page.data, page.total),
        headers={"Cache-Control": "max-age=30, s-maxage=60"},
    )


@app.get("/reviews/summary")
async def review_summary(
    filters: ReviewFilters = Depends(_filters),
    source: ReviewSource = Depends(get_source),
    store: ApprovalStore = Depends(get_store),
):
    try:
        reviews = await load_reviews(source, store)
        summary = summarize_reviews(filter_reviews(reviews, filters))
    except Exception:
        logger.exception("GET /reviews/summary failed")
        return _error(500, "Failed to summarize reviews")
    return _success(summary)


@app.get("/reviews/timeseries")
async def review_timeseries(
    granularity: str = Query("day", description="day, week or month"),
    status: list[str] | None = Query(None, description="Statuses to include (repeatable)"),
    source: ReviewSource = Depends(get_source),
    store: ApprovalStore = Depends(get_store),
):
    try:
        reviews = await load_reviews(source, store)
        series = build_timeseries(reviews, statuses=status, granularity=granularity)
    except Exception:
        logger.exception("GET /reviews/timeseries failed")
        return _error(500, "Failed to build review timeseries")
    return _success(series, len(series))


@app.get("/properties")
async def list_properties(
    source: ReviewSource = Depends(get_source),
    store: ApprovalStore = Depends(get_store),
):
    try:
        stats = aggregate_properties(await load_reviews(source, store))
    except Exception:
        logger.exception("GET /properties failed")
        return _error(500, "Failed to compute property stats")
    return _success(stats, len(stats))


@app.get("/properties/{property_id}")
async def get_property(
    property_id: str,
    source: ReviewSource = Depends(get_source),
    store: ApprovalStore = Depends(get_store),
):
    try:
        stats = aggregate_properties(await load_reviews(source, store))
    except Exception:
        logger.exception("GET /properties/%s failed", property_id)
        return _error(500, "Failed to compute property stats")
    match = next((item for item in stats if item.id == property_id), None)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Unknown property '{property_id}'")
    return _success(match)


async def _review_id_from(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError:
        body = None
    review_id = body.get("reviewId") if isinstance(body, dict) else None
    if not isinstance(review_id, str) or not review_id.strip():
        raise HTTPException(status_code=400, detail="Invalid reviewId")
    return review_id


async def _write_status(request: Request, store: ApprovalStore, status: ReviewStatus):
    review_id = await _review_id_from(request)
    try:
        await update_status(store, review_id, status)
    except Exception:
        logger.exception("Failed to set review %s to %s", review_id, status)
        return _error(500, "Internal server error")
    return _success({"reviewId": review_id, "status": status})


@app.post("/reviews/approve")
async def approve_review(request: Request, store: ApprovalStore = Depends(get_store)):
    return await _write_status(request, store, "approved")


@app.post("/reviews/reset")
async def reset_review(request: Request, store: ApprovalStore = Depends(get_store)):
    return await _write_status(request, store, "pending")

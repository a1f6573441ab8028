"""Shared helpers for fetching channel payloads and coercing loose values."""

from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, MutableMapping

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_WAIT = wait_exponential(min=1, max=16)
_DEFAULT_STOP = stop_after_attempt(5)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


Headers = Mapping[str, str] | None
Params = Mapping[str, Any] | None
Data = MutableMapping[str, Any] | bytes | str | None
JsonData = Any


@retry(
    wait=_DEFAULT_WAIT,
    stop=_DEFAULT_STOP,
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)
async def fetch_json(
    url: str,
    *,
    headers: Headers = None,
    params: Params = None,
    method: str = "GET",
    data: Data = None,
    json: JsonData = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """Execute an HTTP request and return the decoded JSON payload.

    Connection-level failures are retried with exponential backoff; HTTP error
    statuses are raised immediately as ``httpx.HTTPStatusError`` so callers can
    decide whether the channel is misconfigured or merely unavailable.
    """

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.request(
            method.upper(),
            url,
            headers=headers,
            params=params,
            data=data,
            json=json,
        )

    response.raise_for_status()
    return response.json()


def coerce_finite(value: Any) -> float | None:
    """Return ``value`` as a float when it is a finite number, else ``None``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    numeric = float(value)
    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def round_half_up(value: float) -> int:
    # 4.5 -> 5, -4.5 -> -4
    return math.floor(value + 0.5)


def round_places_half_up(value: float, places: int = 2) -> float:
    """Round to ``places`` decimals with ties going up: 4.125 -> 4.13."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def parse_int(raw: Any, fallback: int) -> int:
    """Lenient integer parsing: ``"12abc"`` -> 12, ``"abc"`` -> fallback."""
    if isinstance(raw, bool):
        return fallback
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return fallback
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else fallback


def parse_float(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        numeric = float(raw)
    except (TypeError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None


def parse_datetime(raw: str | None) -> datetime | None:
    """Parse an ISO-ish timestamp into a naive local ``datetime``."""
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "coerce_finite",
    "fetch_json",
    "parse_datetime",
    "parse_float",
    "parse_int",
    "round_half_up",
    "round_places_half_up",
]

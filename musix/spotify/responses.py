"""
Helpers for reading Spotify's raw HTTP responses.

Shared by the token manager and the request pipeline: both need to pull
a message out of Spotify's error bodies and to interpret Retry-After.

Spotify error body shapes:
    Web API:         {"error": {"status": 404, "message": "Non existing id"}}
    Accounts (token): {"error": "invalid_client", "error_description": "Invalid client"}
"""

import json
import math
from typing import Any

from musix.core.http import HttpResponse

DEFAULT_RETRY_AFTER = 1


def parse_json_object(text: str) -> dict[str, Any] | None:
    """
    Parse a JSON object body.

    Returns:
        The decoded dict, {} for an empty body, or None if the body is not
        valid JSON or not a JSON object.
    """
    if not text or not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def provider_message(response: HttpResponse) -> str:
    """
    Extract the most specific error message Spotify sent.

    Falls back to the raw body, then to the HTTP reason phrase.
    """
    payload = parse_json_object(response.text)
    if payload is None:
        # Not JSON (e.g. an HTML error page from a proxy)
        return response.text.strip()[:200] or response.reason or f"HTTP {response.status}"

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if payload.get("error_description"):
        return str(payload["error_description"])
    if isinstance(error, str) and error:
        return error
    if payload.get("message"):
        return str(payload["message"])
    return response.reason or f"HTTP {response.status}"


def parse_retry_after(value: str | None) -> int:
    """
    Interpret a Retry-After header as a positive number of seconds.

    Fractional values are rounded up. Missing, non-numeric (including the
    HTTP-date form) and non-positive values fall back to 1.

    Example:
        parse_retry_after("30")   # 30
        parse_retry_after("0")    # 1
        parse_retry_after(None)   # 1
    """
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        seconds = float(value.strip())
    except (ValueError, AttributeError):
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(seconds) or seconds <= 0:
        return DEFAULT_RETRY_AFTER
    return max(DEFAULT_RETRY_AFTER, math.ceil(seconds))

"""Turning arbitrary failures into one user-facing sentence."""

from typing import Any

import httpx

SUMMARY_UNAVAILABLE = "AI summary unavailable."
URL_UNRESOLVABLE = "Unable to resolve that URL."
READER_UNAVAILABLE = "Failed to load reader view"


def _structured_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_error_message(error: object, default: str = SUMMARY_UNAVAILABLE) -> str:
    """Extract the message to show for a failure.

    Looks for an explicit structured error field first (a JSON ``error`` body
    or an exception ``reason``), then a generic message, then falls back to
    ``default``.
    """
    if error is None:
        return default
    if isinstance(error, str):
        return error.strip() or default
    if isinstance(error, dict):
        return _structured_message(error) or default

    if isinstance(error, httpx.HTTPStatusError):
        try:
            message = _structured_message(error.response.json())
        except ValueError:
            message = None
        if message:
            return message

    reason = getattr(error, "reason", None)
    if isinstance(reason, str) and reason.strip():
        return reason.strip()

    if isinstance(error, BaseException):
        return str(error).strip() or default
    return default

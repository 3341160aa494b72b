"""Translate internal failures into user-facing HTTP error payloads."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from folderchat.errors import IndexUnavailable, JobInputError, SourceError

AUTH_MARKERS = ("insufficient authentication", "invalid authentication credentials")
NOT_FOUND_MARKERS = ("File not found",)
API_KEY_MARKERS = ("api key", "api_key")

JOB_AUTH_MESSAGE = "Authentication failed. Please sign in again."
JOB_NOT_FOUND_MESSAGE = (
    "Folder not found or not accessible. Please check the folder URL and permissions."
)
JOB_API_KEY_MESSAGE = (
    "Language model API key not configured. Set OPENAI_API_KEY to enable indexing."
)
JOB_GENERIC_MESSAGE = "An unexpected error occurred while processing the folder."

CHAT_API_KEY_MESSAGE = "OpenAI API configuration error. Please check your API key."
CHAT_GENERIC_MESSAGE = "An error occurred while processing your question. Please try again."
INDEX_NOT_FOUND_MESSAGE = (
    "Your folder index was not found. This can happen when the server restarts. "
    "Please process your folder again to continue chatting."
)

ErrorPayload = Tuple[int, Dict[str, Any]]


def _mentions(text: str, markers: Tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers)


def classify_job_error(exc: Exception) -> ErrorPayload:
    if isinstance(exc, JobInputError):
        return 400, {"error": str(exc)}

    text = str(exc)
    status = exc.status_code if isinstance(exc, SourceError) else None
    if status == 401 or _mentions(text, AUTH_MARKERS):
        return 401, {"error": JOB_AUTH_MESSAGE}
    if status == 404 or _mentions(text, NOT_FOUND_MARKERS):
        return 404, {"error": JOB_NOT_FOUND_MESSAGE}
    if _mentions(text, API_KEY_MARKERS):
        return 500, {"error": JOB_API_KEY_MESSAGE}
    return 500, {"error": JOB_GENERIC_MESSAGE}


def index_not_found_payload() -> Dict[str, Any]:
    return {
        "error": INDEX_NOT_FOUND_MESSAGE,
        "code": IndexUnavailable.code,
        "needsReprocessing": True,
    }


def classify_chat_error(exc: Exception) -> ErrorPayload:
    if isinstance(exc, IndexUnavailable):
        return 404, index_not_found_payload()
    if _mentions(str(exc), API_KEY_MARKERS):
        return 500, {"error": CHAT_API_KEY_MESSAGE}
    return 500, {"error": CHAT_GENERIC_MESSAGE}

"""JSON response rendering helpers for s3signer."""

import json
from typing import Any

from fastapi.responses import Response

from s3signer.errors import ErrorCategory
from s3signer.handler import RequestOutcome, Signed

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def render_error(category: ErrorCategory, message: str | None = None) -> dict[str, str]:
    """Render an error response body.

    Args:
        category: The error category.
        message: Detail message; defaults to the category's generic message.

    Returns:
        A dict with ``error`` (short label) and ``message`` keys.
    """
    return {
        "error": category.label,
        "message": message or category.default_message,
    }


def render_signed(outcome: Signed) -> dict[str, Any]:
    """Render a success response body."""
    return {
        "signedUrl": outcome.url,
        "bucket": outcome.bucket,
        "key": outcome.key,
        "expiresIn": outcome.expires_in,
    }


def json_response(
    body: dict[str, Any], status: int = 200, headers: dict[str, str] | None = None
) -> Response:
    """Wrap a body dict in a FastAPI Response with JSON content type and CORS header.

    Args:
        body: The response body.
        status: HTTP status code.
        headers: Extra headers.

    Returns:
        A FastAPI Response with media_type application/json.
    """
    all_headers = dict(CORS_HEADERS)
    if headers:
        all_headers.update(headers)
    return Response(
        content=json.dumps(body),
        status_code=status,
        headers=all_headers,
        media_type="application/json",
    )


def error_response(category: ErrorCategory, message: str | None = None) -> Response:
    """Render an error category straight to a Response."""
    return json_response(render_error(category, message), status=category.http_status)


def outcome_response(outcome: RequestOutcome) -> Response:
    """Serialize a RequestOutcome.

    Rate-limit rejections carry a ``Retry-After`` header.
    """
    if isinstance(outcome, Signed):
        return json_response(render_signed(outcome), status=200)

    headers = None
    if outcome.retry_after is not None:
        headers = {"Retry-After": str(outcome.retry_after)}
    return json_response(
        render_error(outcome.category, outcome.message),
        status=outcome.http_status,
        headers=headers,
    )

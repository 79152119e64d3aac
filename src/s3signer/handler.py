"""Sign request handler for s3signer.

Turns one request body into a ``RequestOutcome``:

    body -> JSON object -> locator (s3Path, or bucket + key) -> signer

Every check on client input completes before the signer is called, so a bad
bucket name or a missing field never costs an upstream round trip.  The
handler holds no per-request state and never raises for client input; only
the transport layer in ``s3signer.responses`` knows about HTTP.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from s3signer.errors import ErrorCategory, SigningError
from s3signer.locator import (
    Locator,
    ParseFailure,
    format_locator_path,
    parse_locator_path,
    validate_bucket_name,
    validate_object_key,
)
from s3signer.signing.backend import UrlSigner

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600
DEFAULT_RETRY_AFTER = 60


@dataclass(frozen=True)
class Signed:
    """A successfully signed URL.

    Attributes:
        url: The signed URL.
        bucket: The bucket it grants access to.
        key: The object key it grants access to.
        expires_in: URL lifetime in seconds.
    """

    url: str
    bucket: str
    key: str
    expires_in: int
    http_status = 200


@dataclass(frozen=True)
class Rejected:
    """A rejected request.

    Attributes:
        category: The error category; determines the HTTP status.
        message: Human-readable detail safe to return to the caller.
        retry_after: Seconds the caller should wait, for rate-limit rejections.
    """

    category: ErrorCategory
    message: str
    retry_after: int | None = None

    @property
    def http_status(self) -> int:
        return self.category.http_status


RequestOutcome = Union[Signed, Rejected]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _present(value: Any) -> bool:
    """Return True unless ``value`` is null, false, zero or the empty string.

    Empty lists and objects count as present.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return value != ""


def _reject(category: ErrorCategory, message: str | None = None) -> Rejected:
    return Rejected(category, message or category.default_message)


def decode_body(body: bytes | str | None) -> dict[str, Any] | None:
    """Decode a JSON request body.

    An empty body is treated as an empty object.

    Returns:
        The decoded object, or None if the body is not a JSON object.
    """
    if not body:
        return {}
    try:
        payload = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def resolve_locator(payload: dict[str, Any]) -> Locator | Rejected:
    """Pick a locator out of a decoded request body.

    ``s3Path`` wins when present; otherwise both ``bucket`` and ``key`` are
    required.  Null, false, zero and empty strings count as absent.

    Args:
        payload: The decoded JSON body.

    Returns:
        The validated Locator, or the Rejected outcome.
    """
    s3_path = payload.get("s3Path")
    bucket = payload.get("bucket")
    key = payload.get("key")

    if _present(s3_path):
        outcome = parse_locator_path(s3_path)
        if isinstance(outcome, ParseFailure):
            return Rejected(outcome.category, outcome.message)
        return outcome.locator

    if _present(bucket) and _present(key):
        if not validate_bucket_name(bucket):
            return _reject(ErrorCategory.INVALID_BUCKET_NAME)
        if not validate_object_key(key):
            return _reject(ErrorCategory.INVALID_OBJECT_KEY)
        return Locator(bucket=bucket, key=key)

    return _reject(ErrorCategory.MISSING_PARAMETERS)


class SignRequestHandler:
    """Handles signed-URL requests.

    Attributes:
        signer: The URL signing capability.
        expires_in: Lifetime of issued URLs in seconds, fixed at construction.
        retry_after: Retry hint in seconds returned with rate-limit rejections.
    """

    def __init__(
        self,
        signer: UrlSigner,
        expires_in: int = DEFAULT_EXPIRES_IN,
        retry_after: int = DEFAULT_RETRY_AFTER,
    ) -> None:
        self.signer = signer
        self.expires_in = expires_in
        self.retry_after = retry_after

    async def handle(self, body: bytes | str | None) -> RequestOutcome:
        """Handle one sign request.

        Args:
            body: The raw request body.

        Returns:
            Signed on success, otherwise Rejected with its category.
        """
        payload = decode_body(body)
        if payload is None:
            resolved: Locator | Rejected = _reject(ErrorCategory.INVALID_REQUEST_BODY)
        else:
            resolved = resolve_locator(payload)

        if isinstance(resolved, Rejected):
            logger.info(
                "Rejected sign request: %s",
                resolved.category.value,
                extra={"category": resolved.category.value},
            )
            return resolved

        return await self.sign(resolved)

    async def sign(self, locator: Locator) -> RequestOutcome:
        """Invoke the signer for a validated locator and classify failures.

        Upstream diagnostics are logged; callers only receive the category's
        generic message.
        """
        try:
            url = await self.signer.sign(locator.bucket, locator.key, self.expires_in)
        except SigningError as exc:
            category = exc.category
            logger.error(
                "Error generating signed URL: name=%s code=%s status=%s",
                exc.__class__.__name__,
                exc.code or "-",
                exc.http_status if exc.http_status is not None else "-",
                extra={"category": category.value, "bucket": locator.bucket},
            )
        except Exception:
            category = ErrorCategory.INTERNAL_ERROR
            logger.exception(
                "Unexpected error generating signed URL",
                extra={"category": category.value, "bucket": locator.bucket},
            )
        else:
            logger.debug("Signed %s", format_locator_path(locator.bucket, locator.key))
            return Signed(
                url=url,
                bucket=locator.bucket,
                key=locator.key,
                expires_in=self.expires_in,
            )

        if category is ErrorCategory.TOO_MANY_REQUESTS:
            return Rejected(category, category.default_message, retry_after=self.retry_after)
        return _reject(category)

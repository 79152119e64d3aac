"""S3 locator parsing and validation for s3signer.

A *locator* is a validated ``(bucket, key)`` pair.  Clients either send a
composite ``s3://bucket/key`` path or the two parts separately; both shapes
are checked against the same naming rules here, independently of any HTTP
handling, so the rules can be unit-tested in isolation.

All functions are pure: they never raise on bad input and hold no state.
"""

import re
from dataclasses import dataclass
from typing import Any, Union

from s3signer.errors import ErrorCategory

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# S3 bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits, hyphens, and periods
#   - must start and end with a letter or digit
#   - no consecutive periods ("..") allowed
#   - must not be formatted as an IP address

_BUCKET_CHARS_RE = re.compile(r"[a-z0-9.\-]+", re.ASCII)
_BUCKET_EDGE_RE = re.compile(r"[a-z0-9]", re.ASCII)
_IP_RE = re.compile(r"\d+\.\d+\.\d+\.\d+", re.ASCII)

_MIN_BUCKET_LEN = 3
_MAX_BUCKET_LEN = 63
_MAX_KEY_BYTES = 1024

SCHEME = "s3://"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Locator:
    """A validated bucket/key pair.

    Attributes:
        bucket: The bucket name.
        key: The object key, exactly as supplied (not trimmed).
    """

    bucket: str
    key: str


@dataclass(frozen=True)
class ParseSuccess:
    """A composite path that decomposed into a valid locator."""

    locator: Locator


@dataclass(frozen=True)
class ParseFailure:
    """A composite path that was rejected.

    Attributes:
        category: One of InvalidInput, InvalidFormat, InvalidBucketName,
            InvalidObjectKey.
        message: Human-readable reason.
    """

    category: ErrorCategory
    message: str


ParseOutcome = Union[ParseSuccess, ParseFailure]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_bucket_name(candidate: Any) -> bool:
    """Check a bucket name against the S3 naming rules.

    Args:
        candidate: The candidate bucket name. Non-strings are never valid.

    Returns:
        True if the name satisfies every rule.
    """
    if not isinstance(candidate, str) or not candidate:
        return False

    if len(candidate) < _MIN_BUCKET_LEN or len(candidate) > _MAX_BUCKET_LEN:
        return False

    if not _BUCKET_CHARS_RE.fullmatch(candidate):
        return False

    if not _BUCKET_EDGE_RE.fullmatch(candidate[0]) or not _BUCKET_EDGE_RE.fullmatch(candidate[-1]):
        return False

    if ".." in candidate:
        return False

    if _IP_RE.fullmatch(candidate):
        return False

    return True


def validate_object_key(candidate: Any) -> bool:
    """Check an object key.

    Whitespace is only trimmed to detect blank keys; a valid key is used
    verbatim, surrounding whitespace included.

    Args:
        candidate: The candidate object key. Non-strings are never valid.

    Returns:
        True if the key is non-blank and at most 1024 bytes as UTF-8.
    """
    if not isinstance(candidate, str) or not candidate:
        return False

    if not candidate.strip():
        return False

    # surrogatepass: JSON bodies may carry lone surrogates
    return len(candidate.encode("utf-8", "surrogatepass")) <= _MAX_KEY_BYTES


def parse_locator_path(path: Any) -> ParseOutcome:
    """Decompose an ``s3://bucket/key`` path into a validated locator.

    Checks run in a fixed order and stop at the first failure: input type,
    blank input, scheme, bucket/key separator, bucket rules, key rules.
    Only the first ``/`` after the scheme separates bucket from key; any
    further slashes belong to the key.

    Args:
        path: The composite path supplied by the client.

    Returns:
        ParseSuccess with the locator, or ParseFailure with its category.
    """
    if not isinstance(path, str) or not path:
        return ParseFailure(ErrorCategory.INVALID_INPUT, "S3 path must be a non-empty string")

    trimmed = path.strip()
    if not trimmed:
        return ParseFailure(
            ErrorCategory.INVALID_INPUT, "S3 path cannot be empty or only whitespace"
        )

    if not trimmed.startswith(SCHEME):
        return ParseFailure(ErrorCategory.INVALID_FORMAT, "S3 path must start with s3:// protocol")

    remainder = trimmed[len(SCHEME):]
    slash = remainder.find("/")

    if slash == -1:
        return ParseFailure(
            ErrorCategory.INVALID_FORMAT,
            "S3 path must include object key after bucket name (s3://bucket-name/key)",
        )

    if slash == 0:
        return ParseFailure(ErrorCategory.INVALID_FORMAT, "Bucket name cannot be empty")

    bucket = remainder[:slash]
    key = remainder[slash + 1:]

    if not validate_bucket_name(bucket):
        category = ErrorCategory.INVALID_BUCKET_NAME
        return ParseFailure(category, category.default_message)

    if not validate_object_key(key):
        category = ErrorCategory.INVALID_OBJECT_KEY
        return ParseFailure(category, category.default_message)

    return ParseSuccess(Locator(bucket=bucket, key=key))


def format_locator_path(bucket: str, key: str) -> str:
    """Join a bucket and key into an ``s3://`` path for display.

    No validation is done. The result is not guaranteed to parse back to
    the same pair, since parsing splits on the first ``/``.
    """
    return f"{SCHEME}{bucket}/{key}"

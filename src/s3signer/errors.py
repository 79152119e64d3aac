"""Error taxonomy for the s3signer service."""

from enum import Enum


class ErrorCategory(str, Enum):
    """A categorized request failure.

    Each member carries the HTTP status, the short wire label returned in the
    ``error`` field, and the default human-readable message.
    """

    def __new__(cls, value: str, http_status: int, label: str, default_message: str):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.http_status = http_status
        obj.label = label
        obj.default_message = default_message
        return obj

    INVALID_REQUEST_BODY = (
        "InvalidRequestBody",
        400,
        "Invalid request body",
        "Request body must be valid JSON",
    )
    INVALID_INPUT = (
        "InvalidInput",
        400,
        "Invalid input",
        "S3 path must be a non-empty string",
    )
    INVALID_FORMAT = (
        "InvalidFormat",
        400,
        "Invalid S3 path format",
        "S3 path must start with s3:// protocol",
    )
    INVALID_BUCKET_NAME = (
        "InvalidBucketName",
        400,
        "Invalid bucket name",
        "Bucket name must be 3-63 characters, contain only lowercase letters, "
        "numbers, hyphens, and dots, and follow AWS S3 naming rules",
    )
    INVALID_OBJECT_KEY = (
        "InvalidObjectKey",
        400,
        "Invalid object key",
        "Object key cannot be empty and must not exceed 1024 bytes",
    )
    MISSING_PARAMETERS = (
        "MissingParameters",
        400,
        "Missing required parameters",
        "Must provide either s3Path (format: s3://bucket-name/key) "
        "or both bucket and key parameters",
    )
    # A nonexistent bucket is treated as bad client input, hence 400.
    BUCKET_NOT_FOUND = (
        "BucketNotFound",
        400,
        "Bucket not found",
        "The specified S3 bucket does not exist",
    )
    ACCESS_DENIED = (
        "AccessDenied",
        403,
        "Access denied",
        "Insufficient permissions to access the specified S3 bucket",
    )
    TOO_MANY_REQUESTS = (
        "TooManyRequests",
        429,
        "Too many requests",
        "Request rate limit exceeded. Please try again later",
    )
    INTERNAL_ERROR = (
        "InternalError",
        500,
        "Internal server error",
        "Failed to generate signed URL. Please try again later",
    )


class SigningError(Exception):
    """A failure reported by the URL signing capability.

    Attributes:
        category: The request error category this failure maps to.
        code: The upstream error code (e.g. "AccessDenied"), if known.
        http_status: The upstream HTTP status code, if known.
    """

    category = ErrorCategory.INTERNAL_ERROR

    def __init__(self, message: str = "", code: str = "", http_status: int | None = None) -> None:
        """Initialize the signing error.

        Args:
            message: Diagnostic description (never sent to callers).
            code: Upstream error code.
            http_status: Upstream HTTP status code.
        """
        super().__init__(message or code or self.__class__.__name__)
        self.code = code
        self.http_status = http_status


class SigningAccessDenied(SigningError):
    """The credentials are not permitted to access the bucket."""

    category = ErrorCategory.ACCESS_DENIED


class SigningNotFound(SigningError):
    """The bucket (or object) does not exist."""

    category = ErrorCategory.BUCKET_NOT_FOUND


class SigningThrottled(SigningError):
    """The storage service rate-limited the request."""

    category = ErrorCategory.TOO_MANY_REQUESTS


class SigningFailed(SigningError):
    """Any other signing failure."""

    category = ErrorCategory.INTERNAL_ERROR

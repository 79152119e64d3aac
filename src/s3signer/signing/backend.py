"""URL signing capability protocol for s3signer."""

from typing import Protocol


class UrlSigner(Protocol):
    """Protocol defining the URL signing capability.

    A signer turns a validated bucket/key pair into a time-limited GET URL.
    Failures are reported by raising a ``SigningError`` subclass
    (``SigningAccessDenied``, ``SigningNotFound``, ``SigningThrottled`` or
    ``SigningFailed``).
    """

    async def init(self) -> None:
        """Initialize the signer (create clients, load credentials, etc.)."""
        ...

    async def close(self) -> None:
        """Release resources held by the signer."""
        ...

    def is_ready(self) -> bool:
        """Return True once the signer can serve requests."""
        ...

    async def sign(self, bucket: str, key: str, expires_in: int) -> str:
        """Generate a signed GET URL for an object.

        Args:
            bucket: The bucket name.
            key: The object key.
            expires_in: URL lifetime in seconds.

        Returns:
            The signed URL.
        """
        ...

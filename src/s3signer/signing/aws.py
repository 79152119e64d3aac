"""AWS S3 URL signer for s3signer.

Generates SigV4 presigned GET URLs via aiobotocore using a fixed
access-key/secret-key pair.  Presigning is computed locally, so most
upstream failures surface only through the client's error responses;
those are translated into ``SigningError`` subclasses here so callers
never deal with botocore types.
"""

import logging

from aiobotocore.session import AioSession
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3signer.errors import (
    SigningAccessDenied,
    SigningError,
    SigningFailed,
    SigningNotFound,
    SigningThrottled,
)

logger = logging.getLogger(__name__)

_ACCESS_DENIED_CODES = {
    "AccessDenied",
    "Forbidden",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
}
_NOT_FOUND_CODES = {"NoSuchBucket", "NotFound", "NoSuchKey"}
_THROTTLE_CODES = {
    "ThrottlingException",
    "Throttling",
    "SlowDown",
    "TooManyRequests",
    "RequestLimitExceeded",
}


def classify_client_error(exc: ClientError) -> SigningError:
    """Translate a botocore ClientError into a SigningError.

    The error code, the exception class name and the HTTP status from the
    response metadata are all considered, access denial first.

    Args:
        exc: The botocore client error.

    Returns:
        The matching SigningError subclass instance.
    """
    error = exc.response.get("Error", {})
    code = str(error.get("Code", ""))
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    names = {code, exc.__class__.__name__}
    message = str(error.get("Message", "")) or str(exc)

    if names & _ACCESS_DENIED_CODES or status == 403:
        return SigningAccessDenied(message, code=code, http_status=status)
    if names & _NOT_FOUND_CODES or status == 404:
        return SigningNotFound(message, code=code, http_status=status)
    if names & _THROTTLE_CODES or status == 429:
        return SigningThrottled(message, code=code, http_status=status)
    return SigningFailed(message, code=code, http_status=status)


class AWSUrlSigner:
    """Signer that presigns GetObject requests against AWS S3.

    Attributes:
        region: The AWS region used for signing.
        endpoint_url: Optional custom endpoint (S3-compatible services).
        use_path_style: Use path-style addressing instead of virtual-hosted.
    """

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        region: str = "us-east-1",
        endpoint_url: str = "",
        use_path_style: bool = False,
    ) -> None:
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region = region
        self.endpoint_url = endpoint_url
        self.use_path_style = use_path_style
        self._session = AioSession()
        self._client = None
        self._client_ctx = None

    async def init(self) -> None:
        """Create the aiobotocore S3 client with the configured credentials."""
        boto_config = BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path" if self.use_path_style else "auto"},
        )
        client_kwargs: dict = {"region_name": self.region, "config": boto_config}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        self._session.set_credentials(self.access_key_id, self.secret_access_key)
        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()

        logger.info(
            "AWS signer initialized: region=%s endpoint=%s",
            self.region,
            self.endpoint_url or "default",
        )

    async def close(self) -> None:
        """Close the aiobotocore client session."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    def is_ready(self) -> bool:
        return self._client is not None

    async def sign(self, bucket: str, key: str, expires_in: int) -> str:
        """Presign a GetObject request.

        Raises:
            SigningFailed: If the signer is not initialized or botocore fails.
            SigningAccessDenied, SigningNotFound, SigningThrottled: On the
                corresponding upstream client errors.
        """
        if self._client is None:
            raise SigningFailed("signer is not initialized")

        try:
            return await self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except ClientError as e:
            raise classify_client_error(e) from e
        except BotoCoreError as e:
            raise SigningFailed(str(e), code=e.__class__.__name__) from e

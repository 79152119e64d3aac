"""Unit tests for the AWS URL signer.

All tests use mocked aiobotocore -- no real AWS credentials or network
access required. The mock S3 client is injected directly onto
signer._client to bypass session creation.
"""

from unittest.mock import AsyncMock, patch

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from s3signer.config import CredentialsConfig, S3SignerConfig, SigningConfig
from s3signer.errors import (
    ErrorCategory,
    SigningAccessDenied,
    SigningFailed,
    SigningNotFound,
    SigningThrottled,
)
from s3signer.signing import create_signer
from s3signer.signing.aws import AWSUrlSigner, classify_client_error


def _client_error(code: str, message: str = "error", status: int | None = None) -> ClientError:
    """Create a botocore ClientError with the given error code and HTTP status."""
    response = {"Error": {"Code": code, "Message": message}}
    if status is not None:
        response["ResponseMetadata"] = {"HTTPStatusCode": status}
    return ClientError(response, "GetObject")


def _make_signer(**kwargs) -> AWSUrlSigner:
    """Create an AWSUrlSigner with a mock client (skip init)."""
    signer = AWSUrlSigner(access_key_id="AKIATEST", secret_access_key="secret", **kwargs)
    signer._client = AsyncMock()
    signer._client_ctx = AsyncMock()
    return signer


class TestClassifyClientError:
    """Tests for classify_client_error()."""

    @pytest.mark.parametrize(
        "code", ["AccessDenied", "Forbidden", "InvalidAccessKeyId", "SignatureDoesNotMatch"]
    )
    def test_access_denied_codes(self, code):
        err = classify_client_error(_client_error(code))
        assert isinstance(err, SigningAccessDenied)
        assert err.category is ErrorCategory.ACCESS_DENIED
        assert err.code == code

    def test_access_denied_by_status(self):
        err = classify_client_error(_client_error("Whatever", status=403))
        assert isinstance(err, SigningAccessDenied)
        assert err.http_status == 403

    @pytest.mark.parametrize("code", ["NoSuchBucket", "NotFound", "NoSuchKey"])
    def test_not_found_codes(self, code):
        err = classify_client_error(_client_error(code))
        assert isinstance(err, SigningNotFound)
        assert err.category is ErrorCategory.BUCKET_NOT_FOUND

    def test_not_found_by_status(self):
        assert isinstance(classify_client_error(_client_error("404", status=404)), SigningNotFound)

    @pytest.mark.parametrize(
        "code",
        [
            "ThrottlingException",
            "Throttling",
            "SlowDown",
            "TooManyRequests",
            "RequestLimitExceeded",
        ],
    )
    def test_throttle_codes(self, code):
        err = classify_client_error(_client_error(code))
        assert isinstance(err, SigningThrottled)
        assert err.category is ErrorCategory.TOO_MANY_REQUESTS

    def test_throttle_by_status(self):
        assert isinstance(classify_client_error(_client_error("X", status=429)), SigningThrottled)

    def test_access_denied_takes_priority(self):
        """An AccessDenied code with a 404 status is still access denied."""
        err = classify_client_error(_client_error("AccessDenied", status=404))
        assert isinstance(err, SigningAccessDenied)

    def test_other(self):
        err = classify_client_error(_client_error("InternalError", status=500))
        assert isinstance(err, SigningFailed)
        assert err.category is ErrorCategory.INTERNAL_ERROR
        assert err.http_status == 500

    def test_message_preserved_for_logs(self):
        err = classify_client_error(_client_error("AccessDenied", message="Nope"))
        assert str(err) == "Nope"


class TestInit:
    """Tests for init() and close()."""

    async def test_init_sets_credentials_and_creates_client(self):
        with patch("s3signer.signing.aws.AioSession") as mock_session_cls:
            mock_client = AsyncMock()
            mock_ctx = AsyncMock()
            mock_ctx.__aenter__ = AsyncMock(return_value=mock_client)
            mock_ctx.__aexit__ = AsyncMock(return_value=False)
            session = mock_session_cls.return_value
            session.create_client.return_value = mock_ctx

            signer = AWSUrlSigner(
                access_key_id="AKIATEST",
                secret_access_key="secret",
                region="eu-west-1",
                endpoint_url="http://localhost:9000",
                use_path_style=True,
            )
            assert signer.is_ready() is False
            await signer.init()

            session.set_credentials.assert_called_once_with("AKIATEST", "secret")
            args, kwargs = session.create_client.call_args
            assert args == ("s3",)
            assert kwargs["region_name"] == "eu-west-1"
            assert kwargs["endpoint_url"] == "http://localhost:9000"
            assert kwargs["config"].s3 == {"addressing_style": "path"}
            assert kwargs["config"].signature_version == "s3v4"
            assert signer.is_ready() is True

            await signer.close()
            mock_ctx.__aexit__.assert_awaited_once()

    async def test_init_without_endpoint(self):
        with patch("s3signer.signing.aws.AioSession") as mock_session_cls:
            mock_ctx = AsyncMock()
            mock_ctx.__aenter__ = AsyncMock(return_value=AsyncMock())
            session = mock_session_cls.return_value
            session.create_client.return_value = mock_ctx

            signer = AWSUrlSigner(access_key_id="a", secret_access_key="b")
            await signer.init()

            _, kwargs = session.create_client.call_args
            assert "endpoint_url" not in kwargs
            assert kwargs["region_name"] == "us-east-1"

    async def test_close_resets_state(self):
        signer = _make_signer()
        ctx_ref = signer._client_ctx
        await signer.close()
        ctx_ref.__aexit__.assert_awaited_once()
        assert signer._client is None
        assert signer.is_ready() is False

    async def test_close_noop_when_not_initialized(self):
        signer = AWSUrlSigner(access_key_id="a", secret_access_key="b")
        await signer.close()


class TestSign:
    """Tests for sign()."""

    async def test_sign_returns_presigned_url(self):
        signer = _make_signer()
        signer._client.generate_presigned_url = AsyncMock(return_value="https://signed")

        url = await signer.sign("my-bucket", "path/to/file.txt", 3600)

        assert url == "https://signed"
        signer._client.generate_presigned_url.assert_awaited_once_with(
            "get_object",
            Params={"Bucket": "my-bucket", "Key": "path/to/file.txt"},
            ExpiresIn=3600,
        )

    async def test_sign_not_initialized(self):
        signer = AWSUrlSigner(access_key_id="a", secret_access_key="b")
        with pytest.raises(SigningFailed):
            await signer.sign("my-bucket", "k", 60)

    async def test_sign_client_error_is_classified(self):
        signer = _make_signer()
        signer._client.generate_presigned_url = AsyncMock(
            side_effect=_client_error("AccessDenied", status=403)
        )
        with pytest.raises(SigningAccessDenied) as exc_info:
            await signer.sign("my-bucket", "k", 60)
        assert isinstance(exc_info.value.__cause__, ClientError)

    async def test_sign_botocore_error(self):
        signer = _make_signer()
        signer._client.generate_presigned_url = AsyncMock(side_effect=NoCredentialsError())
        with pytest.raises(SigningFailed) as exc_info:
            await signer.sign("my-bucket", "k", 60)
        assert exc_info.value.code == "NoCredentialsError"


class TestCreateSigner:
    """Tests for create_signer()."""

    def test_builds_aws_signer(self):
        config = S3SignerConfig(
            signing=SigningConfig(region="ap-south-1"),
            credentials=CredentialsConfig(access_key="AKIA", secret_key="s"),
        )
        signer = create_signer(config)
        assert isinstance(signer, AWSUrlSigner)
        assert signer.region == "ap-south-1"
        assert signer.access_key_id == "AKIA"

    @pytest.mark.parametrize(
        "creds",
        [
            CredentialsConfig(),
            CredentialsConfig(access_key="AKIA"),
            CredentialsConfig(secret_key="s"),
        ],
    )
    def test_missing_credentials(self, creds):
        with pytest.raises(ValueError, match="Missing required credentials"):
            create_signer(S3SignerConfig(credentials=creds))

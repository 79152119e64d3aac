"""Shared pytest fixtures for s3signer tests.

A single FastAPI app is created per test session to avoid duplicate
Prometheus metric registration errors (the instrumentator registers
collectors in the global prometheus_client registry).

The lifespan does not run under ASGITransport, so the signer and handler
are placed on ``app.state`` manually before each test.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from s3signer.config import (
    CredentialsConfig,
    S3SignerConfig,
    ServerConfig,
    SigningConfig,
)
from s3signer.handler import SignRequestHandler
from s3signer.server import create_app


class FakeSigner:
    """In-memory UrlSigner that records calls.

    Attributes:
        calls: (bucket, key, expires_in) tuples, one per sign() call.
        error: Exception raised by sign() instead of returning a URL.
    """

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str, int]] = []
        self.error = error
        self.ready = False

    async def init(self) -> None:
        self.ready = True

    async def close(self) -> None:
        self.ready = False

    def is_ready(self) -> bool:
        return self.ready

    async def sign(self, bucket: str, key: str, expires_in: int) -> str:
        self.calls.append((bucket, key, expires_in))
        if self.error is not None:
            raise self.error
        return f"https://{bucket}.s3.amazonaws.com/{key}?X-Amz-Expires={expires_in}"


@pytest.fixture(scope="session")
def config() -> S3SignerConfig:
    """Create a test S3SignerConfig with dummy credentials."""
    return S3SignerConfig(
        server=ServerConfig(host="127.0.0.1", port=8090),
        signing=SigningConfig(expires_in=3600, retry_after=60),
        credentials=CredentialsConfig(access_key="test", secret_key="test-secret"),
    )


@pytest.fixture(scope="session")
def app(config: S3SignerConfig):
    """Create a single test FastAPI application for the whole session."""
    return create_app(config)


@pytest.fixture
def make_signer():
    """Factory for FakeSigner instances, optionally failing with ``error``."""
    return FakeSigner


@pytest.fixture
def signer() -> FakeSigner:
    """A fresh, initialized fake signer."""
    fake = FakeSigner()
    fake.ready = True
    return fake


@pytest.fixture
async def client(app, config, signer) -> AsyncClient:
    """Create an async test client with the fake signer wired in."""
    app.state.signer = signer
    app.state.handler = SignRequestHandler(
        signer,
        expires_in=config.signing.expires_in,
        retry_after=config.signing.retry_after,
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.state.signer = None
    app.state.handler = None

"""FastAPI application factory and route setup for s3signer."""

import json
import logging
import secrets
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from s3signer import __version__
from s3signer.config import S3SignerConfig
from s3signer.errors import ErrorCategory
from s3signer.handler import Rejected, SignRequestHandler
from s3signer.responses import error_response, outcome_response
from s3signer.signing import UrlSigner, create_signer

logger = logging.getLogger(__name__)

# Module-level singleton so multiple create_app() calls (e.g. in tests)
# don't re-register the same Prometheus collectors in the global registry.
_instrumentator = None


def _get_instrumentator():
    global _instrumentator
    if _instrumentator is None:
        from prometheus_fastapi_instrumentator import Instrumentator

        _instrumentator = Instrumentator(
            should_instrument_requests_inprogress=True,
            excluded_handlers=["/metrics"],
        )
    return _instrumentator


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(config: S3SignerConfig, signer: UrlSigner | None = None) -> FastAPI:
    """Create and configure the s3signer FastAPI application.

    The lifespan context manager initializes the signer on startup and
    closes it on shutdown.  A pre-built signer may be passed in (tests,
    embedding); otherwise one is created from ``config`` at startup.

    Args:
        config: The loaded s3signer configuration.
        signer: Optional signer to use instead of building one from config.

    Returns:
        A configured FastAPI application ready to run.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan hook: build and initialize the signer."""
        active = signer if signer is not None else create_signer(config)
        await active.init()
        app.state.signer = active
        app.state.handler = SignRequestHandler(
            active,
            expires_in=config.signing.expires_in,
            retry_after=config.signing.retry_after,
        )
        logger.info(
            "Signer initialized (expires_in=%ds, region=%s)",
            config.signing.expires_in,
            config.signing.region,
        )

        yield

        await active.close()
        app.state.signer = None
        app.state.handler = None
        logger.info("Signer closed")

    app = FastAPI(
        title="s3signer",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.config = config
    app.state.signer = None
    app.state.handler = None

    _register_exception_handlers(app)
    _register_middleware(app, config)

    # /metrics is registered before the sign route so it is never shadowed.
    if config.observability.metrics:
        import s3signer.metrics as _metrics

        _metrics.init_metrics()
        _get_instrumentator().instrument(app, metric_namespace="s3signer").expose(
            app, endpoint="/metrics"
        )

    _setup_routes(app, config)

    return app


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app.

    Route errors are turned into responses by ``common_headers_middleware``;
    this handler only sees failures raised outside it.
    """

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> Response:
        """Catch unexpected exceptions and return InternalError without details."""
        logger.exception("Unhandled exception in request handler")
        return error_response(ErrorCategory.INTERNAL_ERROR)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


def _register_middleware(app: FastAPI, config: S3SignerConfig) -> None:
    """Register middleware on the FastAPI app.

    CORS preflight is answered by Starlette's CORSMiddleware; every other
    response gets a request id, a Server header and one access-log line.
    """

    # Paths to suppress from per-request logging
    _QUIET_PATHS = {"/metrics", "/health", "/healthz", "/readyz"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def common_headers_middleware(request: Request, call_next) -> Response:
        """Add x-request-id and Server headers and log the request."""
        request_id = secrets.token_hex(8).upper()
        request.state.request_id = request_id
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled exception in request handler", extra={"request_id": request_id}
            )
            response = error_response(ErrorCategory.INTERNAL_ERROR)

        duration_ms = round((time.monotonic() - start) * 1000, 2)

        response.headers["x-request-id"] = request_id
        response.headers["Server"] = "s3signer"

        if request.url.path not in _QUIET_PATHS:
            logger.info(
                "%s %s %d %.2fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "request_id": request_id,
                },
            )

        return response


# ---------------------------------------------------------------------------
# Health check helpers
# ---------------------------------------------------------------------------


def _check_signer(app: FastAPI) -> dict:
    """Report whether the signer is initialized.

    Returns a dict with ``status`` and ``latency_ms`` keys.
    """
    start = time.monotonic()
    signer = getattr(app.state, "signer", None)
    if signer is None:
        return {"status": "error", "error": "signer not initialized", "latency_ms": 0}
    try:
        ready = signer.is_ready()
    except Exception as exc:
        return {"status": "error", "error": str(exc), "latency_ms": 0}
    latency = round((time.monotonic() - start) * 1000, 1)
    if not ready:
        return {"status": "error", "error": "signer not ready", "latency_ms": latency}
    return {"status": "ok", "latency_ms": latency}


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


def _setup_routes(app: FastAPI, config: S3SignerConfig) -> None:
    """Register the sign endpoint and health probes.

    Args:
        app: The FastAPI application to attach routes to.
        config: The s3signer configuration.
    """
    health_check_enabled = config.observability.health_check

    @app.get("/health")
    async def health_check() -> Response:
        """Return health status.

        When health_check is enabled: probe the signer and return JSON with
        component checks. When disabled: return static ``{"status": "ok"}``.
        """
        if not health_check_enabled:
            return Response(
                content='{"status":"ok"}',
                media_type="application/json",
            )

        signer_check = _check_signer(app)
        all_ok = signer_check["status"] == "ok"

        body = json.dumps(
            {
                "status": "ok" if all_ok else "degraded",
                "checks": {"signer": signer_check},
            }
        )
        return Response(
            content=body,
            status_code=200 if all_ok else 503,
            media_type="application/json",
        )

    if health_check_enabled:

        @app.get("/healthz")
        async def healthz() -> Response:
            """Liveness probe. Returns 200 with empty body."""
            return Response(status_code=200)

        @app.get("/readyz")
        async def readyz() -> Response:
            """Readiness probe. Returns 200 if the signer is ready, else 503."""
            ok = _check_signer(app)["status"] == "ok"
            return Response(status_code=200 if ok else 503)

    @app.post("/")
    async def sign_url(request: Request) -> Response:
        """Handle POST / -- issue a signed GET URL.

        The raw body is handed to the handler so that malformed JSON maps to
        InvalidRequestBody rather than FastAPI's validation error.
        """
        handler: SignRequestHandler | None = getattr(app.state, "handler", None)
        if handler is None:
            logger.error("Sign request received before the signer was initialized")
            return error_response(ErrorCategory.INTERNAL_ERROR)

        body = await request.body()
        outcome = await handler.handle(body)

        if config.observability.metrics:
            import s3signer.metrics as _metrics

            if isinstance(outcome, Rejected):
                _metrics.record_outcome("rejected", outcome.category.value)
            else:
                _metrics.record_outcome("signed")

        return outcome_response(outcome)

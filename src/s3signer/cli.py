"""CLI entry point for s3signer."""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from s3signer.config import apply_env_overrides, load_config
from s3signer.logging_config import configure_logging
from s3signer.server import create_app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3signer",
        description="s3signer - issue time-limited signed URLs for S3 objects",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("s3signer.yaml"),
        help="Path to YAML configuration file (default: s3signer.yaml)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    parser.add_argument(
        "--shutdown-timeout",
        type=int,
        default=None,
        help="Graceful shutdown timeout in seconds (default: 30)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the s3signer CLI.

    Loads configuration (YAML, then environment overrides, then CLI flags),
    configures logging and serves the app with uvicorn.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    logger = logging.getLogger("s3signer")

    try:
        config = apply_env_overrides(load_config(args.config))
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(1)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    if not (config.credentials.access_key and config.credentials.secret_key):
        logger.error(
            "Missing credentials: set credentials.access_key/secret_key or "
            "S3SIGNER_ACCESS_KEY/S3SIGNER_SECRET_KEY"
        )
        sys.exit(1)

    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.log_level is not None:
        config.server.log_level = args.log_level
    if args.log_format is not None:
        config.server.log_format = args.log_format
    if args.shutdown_timeout is not None:
        config.server.shutdown_timeout = args.shutdown_timeout

    configure_logging(
        level=config.server.log_level,
        fmt=config.server.log_format,
    )

    logger.info(
        "Starting s3signer on %s:%d (expires_in=%ds)",
        config.server.host,
        config.server.port,
        config.signing.expires_in,
    )

    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
        timeout_graceful_shutdown=config.server.shutdown_timeout,
        timeout_keep_alive=5,
        # common_headers_middleware writes the access log
        access_log=False,
    )


if __name__ == "__main__":
    main()

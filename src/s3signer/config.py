"""Configuration loading and Pydantic models for s3signer."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# SigV4 presigned URLs are valid for at most 7 days.
MAX_EXPIRES_IN = 7 * 24 * 3600


class ServerConfig(BaseModel):
    """Server binding and runtime configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"
    shutdown_timeout: int = 30

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError("log_level must be one of " + ", ".join(LOG_LEVELS))
        return level


class SigningConfig(BaseModel):
    """Signed URL generation settings."""

    expires_in: int = Field(default=3600, ge=1, le=MAX_EXPIRES_IN)
    retry_after: int = Field(default=60, ge=0)
    region: str = "us-east-1"
    endpoint_url: str = ""
    use_path_style: bool = False


class CredentialsConfig(BaseModel):
    """Fixed access-key/secret-key pair used to sign URLs."""

    access_key: str = ""
    secret_key: str = ""


class ObservabilityConfig(BaseModel):
    """Metrics and health probe toggles."""

    metrics: bool = True
    health_check: bool = True


class S3SignerConfig(BaseModel):
    """Top-level s3signer configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _parse_server(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the server section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    return {
        "host": data.get("host", "0.0.0.0"),
        "port": data.get("port", 8080),
        "log_level": data.get("log_level", "INFO"),
        "log_format": data.get("log_format", "text"),
        "shutdown_timeout": data.get("shutdown_timeout", 30),
    }


def _parse_signing(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the signing section from YAML data."""
    if data is None:
        return {}
    return {
        "expires_in": data.get("expires_in", 3600),
        "retry_after": data.get("retry_after", 60),
        "region": data.get("region", "us-east-1"),
        "endpoint_url": data.get("endpoint_url", ""),
        "use_path_style": data.get("use_path_style", False),
    }


def _parse_credentials(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the credentials section from YAML data."""
    if data is None:
        return {}
    return {
        "access_key": data.get("access_key", ""),
        "secret_key": data.get("secret_key", ""),
    }


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the observability section from YAML data."""
    if data is None:
        return {}
    return {
        "metrics": data.get("metrics", True),
        "health_check": data.get("health_check", True),
    }


def _first_env(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def apply_env_overrides(
    config: S3SignerConfig, env: Mapping[str, str] | None = None
) -> S3SignerConfig:
    """Apply environment variable overrides on top of a loaded config.

    Recognized variables:
        S3SIGNER_ACCESS_KEY (or Owner_Access_Key), S3SIGNER_SECRET_KEY
        (or Owner_Secret_KEY), SIGNED_URL_EXPIRATION, S3SIGNER_REGION.

    Args:
        config: The config to start from.
        env: Environment mapping. Defaults to os.environ.

    Returns:
        A new, re-validated S3SignerConfig.

    Raises:
        pydantic.ValidationError: If an override is out of range.
    """
    if env is None:
        env = os.environ

    data = config.model_dump()

    access_key = _first_env(env, "S3SIGNER_ACCESS_KEY", "Owner_Access_Key")
    if access_key is not None:
        data["credentials"]["access_key"] = access_key

    secret_key = _first_env(env, "S3SIGNER_SECRET_KEY", "Owner_Secret_KEY")
    if secret_key is not None:
        data["credentials"]["secret_key"] = secret_key

    expiration = _first_env(env, "SIGNED_URL_EXPIRATION")
    if expiration is not None:
        data["signing"]["expires_in"] = expiration

    region = _first_env(env, "S3SIGNER_REGION")
    if region is not None:
        data["signing"]["region"] = region

    return S3SignerConfig.model_validate(data)


def load_config(path: Path) -> S3SignerConfig:
    """Load an S3SignerConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated S3SignerConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value is out of range.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return S3SignerConfig(
        server=ServerConfig(**_parse_server(raw.get("server"))),
        signing=SigningConfig(**_parse_signing(raw.get("signing"))),
        credentials=CredentialsConfig(**_parse_credentials(raw.get("credentials"))),
        observability=ObservabilityConfig(**_parse_observability(raw.get("observability"))),
    )

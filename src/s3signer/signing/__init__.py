"""URL signing backends for s3signer."""

from typing import TYPE_CHECKING

from s3signer.signing.backend import UrlSigner

if TYPE_CHECKING:
    from s3signer.config import S3SignerConfig

__all__ = [
    "create_signer",
    "UrlSigner",
]


def create_signer(config: "S3SignerConfig") -> UrlSigner:
    """Create the URL signer from configuration.

    Args:
        config: The s3signer configuration.

    Returns:
        A signer implementing the UrlSigner protocol.

    Raises:
        ValueError: If the credential pair is not configured.
    """
    creds = config.credentials
    if not creds.access_key or not creds.secret_key:
        raise ValueError(
            "Missing required credentials: credentials.access_key and "
            "credentials.secret_key must be configured"
        )

    from s3signer.signing.aws import AWSUrlSigner

    return AWSUrlSigner(
        access_key_id=creds.access_key,
        secret_access_key=creds.secret_key,
        region=config.signing.region,
        endpoint_url=config.signing.endpoint_url,
        use_path_style=config.signing.use_path_style,
    )

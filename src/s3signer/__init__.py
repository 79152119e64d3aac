"""s3signer - issue time-limited signed URLs for S3 objects."""

__version__ = "0.1.0"

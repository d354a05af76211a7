"""Object storage settings.

MinIO in development (S3_ENDPOINT_URL set), AWS S3 in production
(S3_ENDPOINT_URL empty, regional endpoint derived from S3_REGION).
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings, settings as default_settings


@dataclass(frozen=True)
class StorageConfig:
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"

    @property
    def target(self) -> str:
        return self.endpoint_url or f"AWS S3 ({self.region})"


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    settings = settings or default_settings
    return StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
    )


def validate_storage_config(config: StorageConfig) -> None:
    """Raise ValueError naming the first missing or malformed field."""
    for field_name in ("access_key", "secret_key", "bucket_name"):
        if not getattr(config, field_name):
            raise ValueError(f"Storage {field_name} is required")

    if config.endpoint_url is None:
        if not config.region:
            raise ValueError("S3_REGION is required when S3_ENDPOINT_URL is empty")
    elif not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid endpoint_url {config.endpoint_url!r}: expected an http(s) URL")

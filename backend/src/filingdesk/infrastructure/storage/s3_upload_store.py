"""boto3 adapter for UploadStorePort.

Works against AWS S3 and MinIO. DocumentVersionStore picks the keys
(``users/{owner}/{category}/{epoch_ms}_{name}``); customers and staff
download through short-lived presigned GET URLs.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...domain.documents.ports import StoredObject, UploadStoreError, UploadStorePort
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

logger = logging.getLogger(__name__)

MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "Unknown")


class S3UploadStore(UploadStorePort):
    """Upload store backed by a single bucket.

        store = S3UploadStore.from_config()
        store.put("users/u1/NID/1700000000000_nid.pdf", data, "application/pdf")
        store.url_for("users/u1/NID/1700000000000_nid.pdf", expires_in_seconds=900)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except BotoCoreError as exc:
            raise UploadStoreError(f"Failed to initialize S3 client: {exc}")
        self.bucket_name = bucket_name
        self.region = region

    @classmethod
    def from_config(cls, config: Optional[StorageConfig] = None) -> "S3UploadStore":
        """Validate ``config`` (default: from settings) and build a store.

        Raises:
            ValueError: incomplete storage settings
        """
        config = config or load_storage_config()
        validate_storage_config(config)
        logger.info(
            "Upload store ready",
            extra={"bucket": config.bucket_name, "storage_target": config.target},
        )
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    def put(self, key: str, data: bytes, mime_type: str) -> StoredObject:
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=data, ContentType=mime_type)
        except ClientError as exc:
            code = _error_code(exc)
            logger.error("S3 put failed", extra={"storage_key": key, "error_code": code})
            raise UploadStoreError(f"Failed to upload file: {code}")

        logger.info("Stored object", extra={"storage_key": key, "size": len(data), "mime_type": mime_type})
        return StoredObject(key=key, url=f"{self.s3_client.meta.endpoint_url}/{self.bucket_name}/{key}")

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            if _error_code(exc) in MISSING_CODES:
                return False
            raise UploadStoreError(f"Failed to check file: {_error_code(exc)}")
        return True

    def delete(self, key: str) -> bool:
        """Remove an object. False when there was nothing to remove."""
        if not self.exists(key):
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            raise UploadStoreError(f"Failed to delete file: {_error_code(exc)}")
        logger.info("Deleted object", extra={"storage_key": key})
        return True

    def url_for(self, key: str, expires_in_seconds: int = 900) -> str:
        """Presigned GET URL.

        Raises:
            FileNotFoundError: no object under ``key``
            UploadStoreError: signing failed
        """
        if not self.exists(key):
            raise FileNotFoundError(f"File not found: {key}")
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in_seconds,
            )
        except ClientError as exc:
            raise UploadStoreError(f"Failed to generate presigned URL: {_error_code(exc)}")

    def verify_bucket_exists(self) -> bool:
        """Startup check. Raises UploadStoreError when the bucket is absent."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as exc:
            if _error_code(exc) in MISSING_CODES:
                raise UploadStoreError(f"Bucket '{self.bucket_name}' does not exist; create it or fix S3_BUCKET_NAME")
            raise UploadStoreError(f"Failed to verify bucket: {_error_code(exc)}")
        return True

from .s3_upload_store import S3UploadStore
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

__all__ = ["S3UploadStore", "StorageConfig", "load_storage_config", "validate_storage_config"]

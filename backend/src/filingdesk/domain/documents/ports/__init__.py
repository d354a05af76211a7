from .upload_store_port import StoredObject, UploadStoreError, UploadStorePort

__all__ = ["StoredObject", "UploadStoreError", "UploadStorePort"]

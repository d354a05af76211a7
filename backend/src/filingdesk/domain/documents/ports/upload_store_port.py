"""Upload Store Port - Domain interface for binary document storage.

Adapters implement this interface to provide S3, MinIO, or other storage
backends. The port is synchronous: blob writes happen inline with the
database work of the same request, always before the row is flushed.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredObject:
    """Result of a successful put.

    Attributes:
        key: Storage key the bytes were written under
        url: Retrieval URL for the object
    """
    key: str
    url: str


class UploadStoreError(Exception):
    """Raised by adapters when the backend fails."""
    pass


class UploadStorePort(ABC):
    """Port interface for storing and resolving uploaded documents."""

    @abstractmethod
    def put(self, key: str, data: bytes, mime_type: str) -> StoredObject:
        """Write bytes under a caller-chosen key.

        Raises:
            UploadStoreError: If the write fails
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete an object. Returns False if it did not exist."""

    @abstractmethod
    def url_for(self, key: str, expires_in_seconds: int = 900) -> str:
        """Time-limited download URL for a stored object.

        Raises:
            FileNotFoundError: If the object does not exist
        """

from abc import ABC, abstractmethod
from typing import ClassVar

from pdf_ingest.storage.exceptions import StorageError
from pdf_ingest.storage.models import StoredObject


class BaseObjectStore(ABC):
    """Contract for all object storage adapters."""

    name: ClassVar[str]

    @abstractmethod
    def upload(self, buffer: bytes, file_name: str, content_type: str) -> StoredObject:
        """Write bytes under ``file_name`` and return where they landed.

        Raises:
            StorageError: on any provider failure.
        """

    @abstractmethod
    def delete(self, url: str) -> None:
        """Delete the object a URL produced by this store points at.

        Raises:
            StorageError: on any provider failure.
        """

    @abstractmethod
    def owns_url(self, url: str) -> bool:
        """Return True when ``url`` was issued by this provider."""

    @abstractmethod
    def check_connection(self) -> bool:
        """Authenticate against the provider; never raises."""

    def make_public(self, object_id: str) -> None:
        """Flag a stored object as publicly readable."""
        raise StorageError(f"{self.name} does not support public access remediation")

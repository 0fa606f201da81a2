from abc import ABC, abstractmethod

from app.storage.models import DocumentRef


class BaseDocumentStore(ABC):
    """Contract for the object stores that hold source filings."""

    @abstractmethod
    def list(self, prefix: str) -> list[DocumentRef]:
        """List PDF documents under a prefix, sorted by key.

        Raises:
            StorageError: if the listing cannot be retrieved.
        """

    @abstractmethod
    def fetch_bytes(self, key: str) -> bytes:
        """Download a document.

        Raises:
            DocumentNotFoundError: if the key does not exist.
            StorageError: for any other download failure.
        """

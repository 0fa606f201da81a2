class StorageError(Exception):
    """Base exception for document store failures."""


class DocumentNotFoundError(StorageError):
    """Raised when a key does not exist in the store."""

from pathlib import Path

from app.config.settings import Settings
from app.storage.base import BaseDocumentStore
from app.storage.local_store import LocalDocumentStore
from app.storage.s3_store import S3DocumentStore


class DocumentStoreFactory:
    """Creates the document store selected by `storage_backend`."""

    BACKENDS = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentStore:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalDocumentStore(root=Path(settings.local_documents_root))
        if backend == "s3":
            return S3DocumentStore(settings.s3_bucket_name, region=settings.aws_region)
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )

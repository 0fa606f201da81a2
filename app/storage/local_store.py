from pathlib import Path

from app.storage.base import BaseDocumentStore
from app.storage.exceptions import DocumentNotFoundError, StorageError
from app.storage.models import DocumentRef


class LocalDocumentStore(BaseDocumentStore):
    """Reads filings from a directory tree; keys are paths relative to the root."""

    DOCUMENTS_ROOT = Path("/app/files")

    def __init__(self, root: Path | None = None) -> None:
        self._root = root if root is not None else self.DOCUMENTS_ROOT

    def list(self, prefix: str) -> list[DocumentRef]:
        base = self._root / prefix if prefix else self._root
        if not base.exists():
            return []
        if not base.is_dir():
            raise StorageError(f"Prefix is not a directory: {base}")
        refs = [
            DocumentRef(key=path.relative_to(self._root).as_posix(), size=path.stat().st_size)
            for path in base.rglob("*")
            if path.is_file() and path.suffix.lower() == ".pdf"
        ]
        return sorted(refs, key=lambda ref: ref.key)

    def fetch_bytes(self, key: str) -> bytes:
        path = self._resolve_path(key)
        if not path.exists():
            raise DocumentNotFoundError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

    def _resolve_path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise StorageError(f"Key escapes the documents root: {key}")
        return path

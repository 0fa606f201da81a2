from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentRef:
    """A listed source document: its storage key and size in bytes."""

    key: str
    size: int

    @property
    def filename(self) -> str:
        return self.key.rsplit("/", 1)[-1]

from abc import ABC, abstractmethod

from app.ocr.models import OcrResult


class BaseOcrProvider(ABC):
    """Contract for OCR backends used by the cloud and local OCR tiers."""

    name: str = "ocr"

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the backend can be called in this environment."""

    @abstractmethod
    def extract_text(self, pdf_bytes: bytes) -> OcrResult:
        """Recognize text in a scanned PDF.

        Raises:
            OcrError: if recognition fails.
        """

from abc import ABC, abstractmethod

from app.pdf.models import ParsedPdf


class BasePdfExtractor(ABC):
    """Contract for the first-pass PDF text parsers."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> ParsedPdf:
        """Extract the embedded text layer from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            ParsedPdf with the page texts joined by newlines and the page count.
            Scanned documents yield an empty or near-empty text.

        Raises:
            PdfExtractionError: if the bytes cannot be parsed as a PDF.
        """

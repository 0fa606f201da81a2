import io

import pdfplumber

from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.pdf.models import ParsedPdf


class PdfPlumberAdapter(BasePdfExtractor):
    """Reads the PDF text layer using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> ParsedPdf:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return ParsedPdf(text="\n".join(pages).strip(), page_count=len(pages))
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber parse failed: {exc}") from exc

import pymupdf

from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.pdf.models import ParsedPdf


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads the PDF text layer using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> ParsedPdf:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return ParsedPdf(text="\n".join(pages).strip(), page_count=len(pages))
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf parse failed: {exc}") from exc

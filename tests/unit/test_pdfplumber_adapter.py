import pytest

from app.pdf.exceptions import PdfExtractionError
from app.pdf.pdfplumber_adapter import PdfPlumberAdapter


class TestPdfPlumberAdapter:
    def test_extract_returns_text(self, sample_pdf_bytes: bytes) -> None:
        result = PdfPlumberAdapter().extract(sample_pdf_bytes)
        assert "Postal Delivery Report" in result.text
        assert result.page_count == 1

    def test_extract_multi_page(self, multi_page_pdf_bytes: bytes) -> None:
        result = PdfPlumberAdapter().extract(multi_page_pdf_bytes)
        assert "Page one content" in result.text
        assert "Page two content" in result.text
        assert result.page_count == 2

    def test_extract_empty_pdf_returns_empty_text(self, empty_pdf_bytes: bytes) -> None:
        result = PdfPlumberAdapter().extract(empty_pdf_bytes)
        assert result.text == ""
        assert result.page_count == 1

    def test_extract_raises_on_invalid_bytes(self) -> None:
        with pytest.raises(PdfExtractionError, match="pdfplumber parse failed"):
            PdfPlumberAdapter().extract(b"not a pdf")

    def test_extract_result_is_stripped(self, sample_pdf_bytes: bytes) -> None:
        result = PdfPlumberAdapter().extract(sample_pdf_bytes)
        assert result.text == result.text.strip()

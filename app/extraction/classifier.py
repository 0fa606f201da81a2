"""Content classification from the first-pass text yield."""

import re

from app.extraction.models import ContentAnalysis, ContentType, Recommendation
from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.pdf.models import ParsedPdf

_WHITESPACE = re.compile(r"\s+")


def meaningful_text(text: str) -> str:
    """Collapse whitespace runs so layout padding does not count as text."""
    return _WHITESPACE.sub(" ", text).strip()


def classify(text_length: int, page_count: int, size_bytes: int) -> ContentAnalysis:
    """Label a document from its text yield; first matching rule wins."""
    avg_text_per_page = text_length / max(page_count, 1)
    size_kb = size_bytes / 1024
    text_density = round(text_length / size_kb, 1) if size_kb > 0 else 0.0

    if avg_text_per_page > 500 and text_density > 50:
        content_type, recommendation = ContentType.TEXT_BASED, Recommendation.GHOSTSCRIPT_ONLY
        has_images = False
    elif avg_text_per_page < 50 and text_density < 10:
        content_type, recommendation = ContentType.IMAGE_BASED, Recommendation.TEXTRACT
        has_images = True
    else:
        content_type, recommendation = ContentType.MIXED, Recommendation.BOTH
        has_images = size_kb > 1000 or text_density < 40

    return ContentAnalysis(
        content_type=content_type,
        recommendation=recommendation,
        text_length=text_length,
        page_count=page_count,
        avg_text_per_page=avg_text_per_page,
        size_kb=size_kb,
        text_density=text_density,
        has_images=has_images,
    )


def unknown_analysis(error: str) -> ContentAnalysis:
    return ContentAnalysis(
        content_type=ContentType.UNKNOWN,
        recommendation=Recommendation.BOTH,
        error=error,
    )


class ContentClassifier:
    """Runs the first-pass parse and classifies the result."""

    def __init__(self, parser: BasePdfExtractor) -> None:
        self._parser = parser

    def analyze(self, pdf_bytes: bytes) -> tuple[ContentAnalysis, ParsedPdf | None]:
        """Return the analysis and the parse it was computed from (None on parse failure)."""
        try:
            parsed = self._parser.extract(pdf_bytes)
        except PdfExtractionError as exc:
            return unknown_analysis(str(exc)), None
        analysis = classify(len(meaningful_text(parsed.text)), parsed.page_count, len(pdf_bytes))
        return analysis, parsed

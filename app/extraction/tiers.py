from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from app.commands.exceptions import CommandError
from app.contact_extraction.chunker import ChunkedDocumentExtractor
from app.contact_extraction.exceptions import ContactExtractionError
from app.extraction.classifier import meaningful_text
from app.extraction.models import ContentType, Document, ExtractionAttempt, TierName
from app.ocr.base import BaseOcrProvider
from app.ocr.exceptions import OcrError
from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.pdf.models import ParsedPdf
from app.render.base import BaseRenderOptimizer


@dataclass(slots=True)
class ExtractionContext:
    """Mutable state shared by the tiers while one document moves through the cascade."""

    document: Document
    pdf_bytes: bytes
    min_text_chars: int = 100
    parsed: ParsedPdf | None = None
    parse_error: str | None = None
    optimized_bytes: bytes | None = None
    text: str = ""
    contacts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def best_bytes(self) -> bytes:
        return self.optimized_bytes if self.optimized_bytes is not None else self.pdf_bytes

    @property
    def page_count(self) -> int:
        return self.document.page_count or 0

    def is_usable(self, text: str) -> bool:
        """Image-based documents accept any text; others need min_text_chars."""
        length = len(meaningful_text(text))
        if self.document.content_type is ContentType.IMAGE_BASED:
            return length > 0
        return length >= self.min_text_chars


def _text_attempt(
    tier: TierName, context: ExtractionContext, text: str, steps: list[str]
) -> ExtractionAttempt:
    success = context.is_usable(text)
    if success:
        context.text = text
    return ExtractionAttempt(
        tier=tier,
        success=success,
        char_count=len(meaningful_text(text)),
        steps=tuple(steps),
    )


def _failed(tier: TierName, steps: list[str], error: str) -> ExtractionAttempt:
    return ExtractionAttempt(tier=tier, success=False, steps=tuple(steps), error=error)


def _skipped(tier: TierName, step: str) -> ExtractionAttempt:
    return ExtractionAttempt(tier=tier, success=False, steps=(step,), skipped=True)


class ExtractionTier(ABC):
    """One rung of the extraction cascade."""

    name: TierName

    @abstractmethod
    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        """Try this tier. Known provider failures become a failed attempt."""
        raise NotImplementedError


class BasicTier(ExtractionTier):
    """Uses the first-pass parse the classifier already made."""

    name = TierName.BASIC

    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        if context.parsed is None:
            return _failed(self.name, ["Basic parse: failed"], context.parse_error or "parse failed")
        text = context.parsed.text
        return _text_attempt(
            self.name, context, text, [f"Basic parse: {len(meaningful_text(text))} chars"]
        )


class OptimizedTier(ExtractionTier):
    """Ghostscript recompression followed by another text-layer parse."""

    name = TierName.OPTIMIZED

    def __init__(
        self, optimizer: BaseRenderOptimizer, parser: BasePdfExtractor, *, enabled: bool = True
    ) -> None:
        self._optimizer = optimizer
        self._parser = parser
        self._enabled = enabled

    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        if not self._enabled:
            return _skipped(self.name, "Ghostscript: disabled")
        result = self._optimizer.optimize(context.pdf_bytes)
        if result.error is not None:
            return _failed(self.name, ["Ghostscript: failed"], result.error)
        if not result.was_optimized:
            return _failed(self.name, ["Ghostscript: no size reduction"], "no size reduction")

        context.optimized_bytes = result.pdf_bytes
        steps = [f"Ghostscript: {len(context.pdf_bytes)} -> {len(result.pdf_bytes)} bytes"]
        try:
            parsed = self._parser.extract(result.pdf_bytes)
        except PdfExtractionError as exc:
            steps.append("Optimized parse: failed")
            return _failed(self.name, steps, str(exc))
        steps.append(f"Optimized parse: {len(meaningful_text(parsed.text))} chars")
        return _text_attempt(self.name, context, parsed.text, steps)


class CloudOcrTier(ExtractionTier):
    """Textract, gated by byte size and page count."""

    name = TierName.CLOUD_OCR

    def __init__(
        self,
        provider: BaseOcrProvider,
        optimizer: BaseRenderOptimizer | None,
        *,
        max_bytes: int,
        max_pages: int,
        enabled: bool = True,
    ) -> None:
        self._provider = provider
        self._optimizer = optimizer
        self._max_bytes = max_bytes
        self._max_pages = max_pages
        self._enabled = enabled

    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        if not self._enabled or not self._provider.is_available():
            return _skipped(self.name, "Textract: disabled")
        if context.page_count > self._max_pages:
            return _skipped(
                self.name, f"Textract: skipped ({context.page_count} pages > {self._max_pages})"
            )

        steps: list[str] = []
        payload = context.best_bytes
        if len(payload) > self._max_bytes and self._optimizer is not None and context.optimized_bytes is None:
            result = self._optimizer.optimize(payload)
            if result.was_optimized:
                payload = result.pdf_bytes
                context.optimized_bytes = payload
                steps.append(f"Textract: compressed to {len(payload)} bytes")
        if len(payload) > self._max_bytes:
            return ExtractionAttempt(
                tier=self.name,
                success=False,
                steps=tuple([*steps, "Textract: skipped (too large)"]),
                skipped=True,
            )

        try:
            result_ocr = self._provider.extract_text(payload)
        except OcrError as exc:
            steps.append("Textract: failed")
            return _failed(self.name, steps, str(exc))
        steps.append(f"Textract: {len(meaningful_text(result_ocr.text))} chars")
        return _text_attempt(self.name, context, result_ocr.text, steps)


class LocalOcrTier(ExtractionTier):
    """Tesseract over rasterized pages."""

    name = TierName.LOCAL_OCR

    def __init__(self, provider: BaseOcrProvider, *, max_pages: int, enabled: bool = True) -> None:
        self._provider = provider
        self._max_pages = max_pages
        self._enabled = enabled

    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        if not self._enabled:
            return _skipped(self.name, "Tesseract: disabled")
        if context.page_count > self._max_pages:
            return _skipped(
                self.name, f"Tesseract: skipped ({context.page_count} pages > {self._max_pages})"
            )
        if not self._provider.is_available():
            return _skipped(self.name, "Tesseract: not available")
        try:
            result = self._provider.extract_text(context.best_bytes)
        except (OcrError, CommandError) as exc:
            return _failed(self.name, ["Tesseract: failed"], str(exc))
        return _text_attempt(
            self.name,
            context,
            result.text,
            [f"Tesseract: {len(meaningful_text(result.text))} chars"],
        )


class VisionFallbackTier(ExtractionTier):
    """Language-model vision over page images, chunked past the page limit.

    Succeeds when at least one contact comes back; it yields contacts, not text.
    """

    name = TierName.VISION_FALLBACK

    def __init__(self, extractor: ChunkedDocumentExtractor, *, enabled: bool = True) -> None:
        self._extractor = extractor
        self._enabled = enabled

    def attempt(self, context: ExtractionContext) -> ExtractionAttempt:
        if not self._enabled:
            return _skipped(self.name, "Vision: disabled")
        try:
            contacts = self._extractor.extract(context.best_bytes, context.document.filename)
        except (ContactExtractionError, PdfExtractionError) as exc:
            return _failed(self.name, ["Vision: failed"], str(exc))
        context.contacts = list(contacts)
        return ExtractionAttempt(
            tier=self.name,
            success=bool(contacts),
            steps=(f"Vision: {len(contacts)} contacts",),
            contact_count=len(contacts),
            error=None if contacts else "no contacts returned",
        )

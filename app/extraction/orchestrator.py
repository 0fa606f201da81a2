from app.commands.runner import CommandRunner
from app.config.settings import Settings
from app.contact_extraction.chunker import ChunkedDocumentExtractor
from app.extraction.classifier import ContentClassifier
from app.extraction.models import Document, ExtractionAttempt, ExtractionResult
from app.extraction.tiers import (
    BasicTier,
    CloudOcrTier,
    ExtractionContext,
    ExtractionTier,
    LocalOcrTier,
    OptimizedTier,
    VisionFallbackTier,
)
from app.logging.logger import Log
from app.ocr.tesseract_adapter import TesseractAdapter
from app.ocr.textract_adapter import TextractAdapter
from app.pdf.base import BasePdfExtractor
from app.pdf.validator import validate_pdf_bytes
from app.render.ghostscript_optimizer import GhostscriptOptimizer
from app.storage.base import BaseDocumentStore
from app.storage.models import DocumentRef


class ExtractionOrchestrator:
    """Runs a document through the tier cascade until one tier succeeds.

    Order: basic -> optimized -> cloud-ocr -> local-ocr -> vision-fallback.
    Every tier, including skipped ones, is recorded in the result.
    """

    def __init__(
        self,
        classifier: ContentClassifier,
        tiers: list[ExtractionTier],
        *,
        store: BaseDocumentStore | None = None,
        min_text_chars: int = 100,
    ) -> None:
        self._classifier = classifier
        self._tiers = tiers
        self._store = store
        self._min_text_chars = min_text_chars

    def process_document(self, ref: DocumentRef) -> ExtractionResult:
        """Fetch, validate, and extract one stored document.

        Raises:
            StorageError: if the download fails.
            DocumentFormatError: if the bytes are not a usable PDF.
        """
        if self._store is None:
            raise RuntimeError("ExtractionOrchestrator has no document store")
        pdf_bytes = self._store.fetch_bytes(ref.key)
        validate_pdf_bytes(pdf_bytes, ref.filename)
        return self.process(ref, pdf_bytes)

    def process(self, ref: DocumentRef | Document, pdf_bytes: bytes) -> ExtractionResult:
        """Run the cascade over already-downloaded bytes."""
        document = ref if isinstance(ref, Document) else Document(key=ref.key, size_bytes=len(pdf_bytes))
        analysis, parsed = self._classifier.analyze(pdf_bytes)
        document = document.classified(analysis)
        Log.info(
            f"{document.filename}: {document.content_type.value} "
            f"({analysis.text_length} chars, {document.page_count or 0} pages, "
            f"density {analysis.text_density}), recommend {document.recommended_method.value}"
        )

        context = ExtractionContext(
            document=document,
            pdf_bytes=pdf_bytes,
            min_text_chars=self._min_text_chars,
            parsed=parsed,
            parse_error=analysis.error,
        )
        attempts: list[ExtractionAttempt] = []
        for tier in self._tiers:
            attempt = tier.attempt(context)
            attempts.append(attempt)
            Log.debug(f"{document.filename}: {'; '.join(attempt.steps)}")
            if attempt.success:
                Log.info(f"{document.filename}: extracted with {tier.name.value}")
                return ExtractionResult(
                    document=document,
                    attempts=tuple(attempts),
                    winning_tier=tier.name,
                    text=context.text,
                    contacts=tuple(context.contacts),
                )

        Log.warning(f"{document.filename}: no extraction tier succeeded")
        return ExtractionResult(document=document, attempts=tuple(attempts))


def build_orchestrator(
    settings: Settings,
    *,
    parser: BasePdfExtractor,
    vision_extractor: ChunkedDocumentExtractor,
    store: BaseDocumentStore | None = None,
    runner: CommandRunner | None = None,
) -> ExtractionOrchestrator:
    """Wire the five tiers from settings."""
    runner = runner or CommandRunner(settings.command_timeout_seconds)
    optimizer = GhostscriptOptimizer(
        runner,
        quality=settings.ghostscript_quality,
        timeout_seconds=settings.command_timeout_seconds,
        work_dir=settings.work_dir,
    )
    tiers: list[ExtractionTier] = [
        BasicTier(),
        OptimizedTier(optimizer, parser, enabled=settings.use_ghostscript),
        CloudOcrTier(
            TextractAdapter(
                bucket=settings.s3_bucket_name,
                staging_prefix=settings.cloud_ocr_staging_prefix,
                region=settings.aws_region,
            ),
            optimizer if settings.use_ghostscript else None,
            max_bytes=settings.cloud_ocr_max_bytes,
            max_pages=settings.ocr_max_pages,
            enabled=settings.use_cloud_ocr,
        ),
        LocalOcrTier(
            TesseractAdapter(
                runner,
                lang=settings.tesseract_lang,
                dpi=settings.ocr_dpi,
                timeout_seconds=settings.command_timeout_seconds,
                work_dir=settings.work_dir,
            ),
            max_pages=settings.ocr_max_pages,
            enabled=settings.use_local_ocr,
        ),
        VisionFallbackTier(vision_extractor, enabled=settings.use_vision_fallback),
    ]
    return ExtractionOrchestrator(
        ContentClassifier(parser),
        tiers,
        store=store,
        min_text_chars=settings.min_text_chars,
    )

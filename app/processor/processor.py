import time

from app.config.settings import Settings
from app.contact_extraction.chunker import ChunkedDocumentExtractor
from app.contact_extraction.extractor import ContactExtractor
from app.contact_extraction.factory import ContactExtractorFactory
from app.contact_extraction.retry import OutcomeStatus, RetryController, RetryPolicy
from app.contacts.models import CanonicalContact
from app.contacts.normalizer import ContactNormalizer
from app.database.repositories.contact_repository import ContactRepository
from app.extraction.exceptions import NoTierSucceededError
from app.extraction.models import TierName
from app.extraction.orchestrator import ExtractionOrchestrator, build_orchestrator
from app.jobs.models import JobMetrics, SkipReason
from app.logging.logger import Log
from app.pdf.exceptions import DocumentFormatError
from app.pdf.factory import PdfExtractorFactory
from app.pdf.validator import validate_pdf_bytes
from app.processor.exceptions import DOCUMENT_PROCESSING_ERRORS
from app.storage.base import BaseDocumentStore
from app.storage.exceptions import StorageError
from app.storage.factory import DocumentStoreFactory
from app.storage.models import DocumentRef


class JobProcessor:
    """Processes every document under a prefix, one at a time.

    Per document: download -> validate -> extraction cascade -> contact
    extraction -> normalize -> persist. Known per-document failures are
    counted and the loop moves on; anything else aborts the job.
    """

    def __init__(
        self,
        *,
        store: BaseDocumentStore,
        orchestrator: ExtractionOrchestrator,
        contact_extractor: ContactExtractor,
        retry: RetryController,
        normalizer: ContactNormalizer,
        contact_repo: ContactRepository,
        project_origin: str,
        max_file_size_bytes: int,
        inter_document_delay_seconds: float = 3.0,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._contact_extractor = contact_extractor
        self._retry = retry
        self._normalizer = normalizer
        self._contact_repo = contact_repo
        self._project_origin = project_origin
        self._max_file_size = max_file_size_bytes
        self._delay = inter_document_delay_seconds

    def run(self, job_id: str, prefix: str, metrics: JobMetrics) -> JobMetrics:
        """Process all PDFs under `prefix`, accumulating into `metrics`."""
        refs = self._store.list(prefix)
        Log.info(f"Job {job_id}: found {len(refs)} documents under '{prefix}'")

        started = False
        for ref in refs:
            if ref.size > self._max_file_size:
                Log.warning(f"Skipping {ref.key}: {ref.size} bytes exceeds {self._max_file_size}")
                metrics.skip(ref.key, SkipReason.FILE_TOO_LARGE, f"{ref.size} bytes")
                continue
            if started:
                time.sleep(self._delay)
            started = True
            metrics.record_file()
            self._process_one(job_id, ref, metrics)

        Log.info(
            f"Job {job_id}: {metrics.successfully_processed}/{metrics.total_files} documents, "
            f"{metrics.total_contacts} contacts, {metrics.total_failures} failures"
        )
        return metrics

    def _process_one(self, job_id: str, ref: DocumentRef, metrics: JobMetrics) -> None:
        try:
            pdf_bytes = self._store.fetch_bytes(ref.key)
        except StorageError as exc:
            Log.error(f"Download failed for {ref.key}: {exc}")
            metrics.record_download_failure(ref.key, str(exc))
            return

        try:
            validate_pdf_bytes(pdf_bytes, ref.filename)
        except DocumentFormatError as exc:
            Log.warning(f"Invalid document {ref.key}: {exc}")
            metrics.record_validation_failure(ref.key, str(exc))
            return

        try:
            contacts = self.extract_contacts(ref, pdf_bytes, job_id)
            self._contact_repo.bulk_insert(contacts)
        except DOCUMENT_PROCESSING_ERRORS as exc:
            Log.error(f"Processing failed for {ref.key}: {exc}")
            metrics.record_processing_failure(ref.key, str(exc))
            return

        metrics.record_success(len(contacts))
        Log.info(f"Processed {ref.key}: {len(contacts)} contacts")

    def extract_contacts(
        self, ref: DocumentRef, pdf_bytes: bytes, job_id: str
    ) -> list[CanonicalContact]:
        """Run the cascade and turn its output into canonical contacts."""
        result = self._orchestrator.process(ref, pdf_bytes)
        if not result.success or result.winning_tier is None:
            raise NoTierSucceededError(
                f"No extraction tier succeeded ({'; '.join(result.steps)})"
            )

        if result.winning_tier is TierName.VISION_FALLBACK:
            raw_contacts = list(result.contacts)
        else:
            outcome = self._retry.execute(
                lambda: self._contact_extractor.extract_from_text(result.text, ref.filename),
                label=ref.filename,
            )
            if outcome.status is OutcomeStatus.TRANSIENT_FAILURE:
                Log.warning(f"{ref.key}: upstream still unavailable after {outcome.calls} calls, no contacts")
            raw_contacts = outcome.unwrap()

        return self._normalizer.normalize_many(
            raw_contacts,
            source_file=ref.key,
            job_id=job_id,
            project_origin=self._project_origin,
            extraction_method=result.winning_tier.value,
        )


def build_processor(
    settings: Settings,
    store: BaseDocumentStore | None = None,
) -> JobProcessor:
    """Build a JobProcessor with all adapters configured from settings."""
    store = store or DocumentStoreFactory.create(settings)
    parser = PdfExtractorFactory.create(settings)
    contact_extractor = ContactExtractorFactory.create(settings)
    retry = RetryController(RetryPolicy.from_settings(settings))
    vision = ChunkedDocumentExtractor(
        contact_extractor,
        retry,
        inter_chunk_delay_seconds=settings.inter_chunk_delay_seconds,
    )
    orchestrator = build_orchestrator(
        settings,
        parser=parser,
        vision_extractor=vision,
        store=store,
    )
    return JobProcessor(
        store=store,
        orchestrator=orchestrator,
        contact_extractor=contact_extractor,
        retry=retry,
        normalizer=ContactNormalizer(),
        contact_repo=ContactRepository(),
        project_origin=settings.project_origin,
        max_file_size_bytes=settings.max_file_size_bytes,
        inter_document_delay_seconds=settings.inter_document_delay_seconds,
    )

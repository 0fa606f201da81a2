import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.contact_extraction.exceptions import ContactExtractionError, PageLimitExceededError
from app.contact_extraction.extractor import ContactExtractor
from app.contact_extraction.retry import OutcomeStatus, RetryController
from app.logging.logger import Log
from app.pdf import pages


@dataclass(frozen=True)
class PageRange:
    """Contiguous 1-based, inclusive page span."""

    start: int
    end: int

    @property
    def page_count(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def plan_chunks(total_pages: int, max_pages_per_chunk: int) -> list[PageRange]:
    """Split `total_pages` into ceil(total/max) contiguous ranges covering every page once."""
    if max_pages_per_chunk < 1:
        raise ValueError("max_pages_per_chunk must be at least 1")
    if total_pages < 1:
        return []
    if total_pages <= max_pages_per_chunk:
        return [PageRange(1, total_pages)]
    count = math.ceil(total_pages / max_pages_per_chunk)
    return [
        PageRange(
            index * max_pages_per_chunk + 1,
            min((index + 1) * max_pages_per_chunk, total_pages),
        )
        for index in range(count)
    ]


class ChunkedDocumentExtractor:
    """Vision extraction that splits documents exceeding the provider page limit.

    The whole document is tried first. On a page-limit error the document is
    split into page ranges, each range goes through the retry controller, and
    the per-range contacts are concatenated in page order.
    """

    def __init__(
        self,
        extractor: ContactExtractor,
        retry: RetryController,
        *,
        inter_chunk_delay_seconds: float = 2.0,
        splitter: Callable[[bytes, int, int], bytes] = pages.split_page_range,
        page_counter: Callable[[bytes], int] = pages.page_count,
    ) -> None:
        self._extractor = extractor
        self._retry = retry
        self._inter_chunk_delay = inter_chunk_delay_seconds
        self._splitter = splitter
        self._page_counter = page_counter

    def extract(self, pdf_bytes: bytes, filename: str) -> list[dict[str, Any]]:
        """Return contacts for the whole document.

        Raises:
            ContactExtractionError: if the document, or every chunk of it, failed fatally.
        """
        outcome = self._retry.execute(
            lambda: self._extractor.extract_from_document(pdf_bytes, filename),
            label=filename,
        )
        if outcome.succeeded:
            return outcome.contacts
        if isinstance(outcome.error, PageLimitExceededError):
            return self._extract_in_chunks(pdf_bytes, filename, outcome.error.max_pages)
        return outcome.unwrap()

    def _extract_in_chunks(self, pdf_bytes: bytes, filename: str, max_pages: int) -> list[dict[str, Any]]:
        ranges = plan_chunks(self._page_counter(pdf_bytes), max_pages)
        Log.info(f"Splitting {filename} into {len(ranges)} chunks of up to {max_pages} pages")

        contacts: list[dict[str, Any]] = []
        last_error: ContactExtractionError | None = None
        failed = 0
        fatal = 0
        for index, page_range in enumerate(ranges):
            if index > 0:
                time.sleep(self._inter_chunk_delay)
            chunk_bytes = self._splitter(pdf_bytes, page_range.start, page_range.end)
            label = f"{filename} pages {page_range}"
            outcome = self._retry.execute(
                lambda data=chunk_bytes, name=label: self._extractor.extract_from_document(data, name),
                label=label,
            )
            if outcome.succeeded:
                contacts.extend(outcome.contacts)
                continue
            failed += 1
            if outcome.status is OutcomeStatus.FATAL_FAILURE:
                fatal += 1
                last_error = outcome.error
            Log.warning(f"Chunk {label} failed: {outcome.error}")

        if ranges and fatal == len(ranges) and last_error is not None:
            raise last_error
        Log.info(f"Chunked extraction of {filename}: {len(contacts)} contacts, {failed} failed chunks")
        return contacts

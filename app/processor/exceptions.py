from app.commands.exceptions import CommandError
from app.contact_extraction.exceptions import ContactExtractionError
from app.database.exceptions import PersistenceError
from app.extraction.exceptions import ExtractionError
from app.ocr.exceptions import OcrError
from app.pdf.exceptions import PdfExtractionError


class ProcessorError(Exception):
    """Base exception for job processor errors."""


# Per-document failures: counted as processing_failed, the job carries on.
DOCUMENT_PROCESSING_ERRORS: tuple[type[Exception], ...] = (
    ExtractionError,
    ContactExtractionError,
    PdfExtractionError,
    OcrError,
    CommandError,
    PersistenceError,
    ProcessorError,
)

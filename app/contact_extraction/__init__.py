from app.contact_extraction.chunker import ChunkedDocumentExtractor, plan_chunks
from app.contact_extraction.extractor import ContactExtractor
from app.contact_extraction.factory import ContactExtractorFactory
from app.contact_extraction.retry import RetryController, RetryPolicy

__all__ = [
    "ChunkedDocumentExtractor",
    "ContactExtractor",
    "ContactExtractorFactory",
    "RetryController",
    "RetryPolicy",
    "plan_chunks",
]

class OcrError(Exception):
    """Raised when an OCR provider cannot produce text for a document."""


class OcrUnavailableError(OcrError):
    """Raised when the OCR backend is not installed or not configured."""

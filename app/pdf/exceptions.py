class PdfExtractionError(Exception):
    """Raised when a PDF cannot be parsed, split, or rendered."""


class DocumentFormatError(Exception):
    """Raised when downloaded bytes are not a usable PDF."""

class ExtractionError(Exception):
    """Base exception for the extraction cascade."""


class NoTierSucceededError(ExtractionError):
    """Raised when every cascade tier failed or was skipped for a document."""

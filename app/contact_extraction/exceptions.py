class ContactExtractionError(Exception):
    """Base exception for language-model contact extraction."""


class TransientExtractionError(ContactExtractionError):
    """Upstream throttling that is worth retrying after a delay."""


class RateLimitedError(TransientExtractionError):
    """Raised when the provider rejects a call for exceeding its rate limit."""


class OverloadedError(TransientExtractionError):
    """Raised when the provider reports it is temporarily overloaded."""


class FatalExtractionError(ContactExtractionError):
    """Raised for failures that retrying will not fix."""


class ExtractionNetworkError(FatalExtractionError):
    """Raised when the provider cannot be reached."""


class ExtractionResponseError(FatalExtractionError):
    """Raised when the provider response is not a usable contact list."""


class PageLimitExceededError(FatalExtractionError):
    """Raised when a document has more pages than the provider accepts in one call."""

    def __init__(self, max_pages: int, message: str | None = None) -> None:
        super().__init__(message or f"Document exceeds the {max_pages}-page limit")
        self.max_pages = max_pages

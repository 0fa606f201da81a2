class ContactError(Exception):
    """Base exception for contact handling."""


class ContactValidationError(ContactError):
    """Raised when an extracted record cannot become a canonical contact."""

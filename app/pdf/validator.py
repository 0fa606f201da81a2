from app.pdf.exceptions import DocumentFormatError

PDF_HEADER = b"%PDF-"
MIN_PDF_BYTES = 1024

_KNOWN_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"<!DOCTYPE html", "HTML page"),
    (b"<html", "HTML page"),
    (b"<?xml", "XML document"),
    (b"PK\x03\x04", "ZIP archive"),
    (b"\x89PNG", "PNG image"),
    (b"\xff\xd8\xff", "JPEG image"),
    (b"II*\x00", "TIFF image"),
    (b"MM\x00*", "TIFF image"),
    (b"{", "JSON document"),
)


def detect_type(data: bytes) -> str:
    """Best-effort name of what the bytes look like, for error messages."""
    head = data[:64].lstrip()
    if head.startswith(PDF_HEADER):
        return "PDF"
    lowered = head.lower()
    for signature, label in _KNOWN_SIGNATURES:
        if head.startswith(signature) or lowered.startswith(signature.lower()):
            return label
    return "unknown data"


def validate_pdf_bytes(data: bytes, name: str = "document") -> None:
    """Reject empty, truncated, or non-PDF downloads.

    Raises:
        DocumentFormatError: with the reason and the detected content type.
    """
    if not data:
        raise DocumentFormatError(f"{name} is empty")
    if len(data) < MIN_PDF_BYTES:
        raise DocumentFormatError(
            f"{name} is too small to be a PDF ({len(data)} bytes, detected {detect_type(data)})"
        )
    if not data.startswith(PDF_HEADER):
        raise DocumentFormatError(
            f"{name} is missing the %PDF- header (detected {detect_type(data)})"
        )

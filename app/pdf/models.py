from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedPdf:
    """Text layer of a PDF together with its page count."""

    text: str
    page_count: int

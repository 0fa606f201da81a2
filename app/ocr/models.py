from dataclasses import dataclass


@dataclass(frozen=True)
class OcrResult:
    text: str
    confidence: float | None = None
    page_count: int = 0

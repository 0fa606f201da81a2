from dataclasses import dataclass


@dataclass(frozen=True)
class OptimizeResult:
    pdf_bytes: bytes
    was_optimized: bool
    error: str | None = None

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class ContentType(str, Enum):
    TEXT_BASED = "text-based"
    IMAGE_BASED = "image-based"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class Recommendation(str, Enum):
    GHOSTSCRIPT_ONLY = "ghostscript-only"
    TEXTRACT = "textract"
    BOTH = "both"


class TierName(str, Enum):
    BASIC = "basic"
    OPTIMIZED = "optimized"
    CLOUD_OCR = "cloud-ocr"
    LOCAL_OCR = "local-ocr"
    VISION_FALLBACK = "vision-fallback"


@dataclass(frozen=True)
class ContentAnalysis:
    """Classifier output for one document."""

    content_type: ContentType
    recommendation: Recommendation
    text_length: int = 0
    page_count: int = 0
    avg_text_per_page: float = 0.0
    size_kb: float = 0.0
    text_density: float = 0.0
    has_images: bool = True
    error: str | None = None


@dataclass(frozen=True)
class Document:
    """A source filing as seen by the extraction cascade."""

    key: str
    size_bytes: int
    page_count: int | None = None
    content_type: ContentType = ContentType.UNKNOWN
    recommended_method: Recommendation = Recommendation.BOTH

    @property
    def filename(self) -> str:
        return self.key.rsplit("/", 1)[-1]

    def classified(self, analysis: ContentAnalysis) -> "Document":
        return replace(
            self,
            page_count=analysis.page_count if analysis.error is None else self.page_count,
            content_type=analysis.content_type,
            recommended_method=analysis.recommendation,
        )


@dataclass(frozen=True)
class ExtractionAttempt:
    """Audit record of one cascade tier."""

    tier: TierName
    success: bool
    char_count: int = 0
    steps: tuple[str, ...] = ()
    error: str | None = None
    skipped: bool = False
    contact_count: int = 0


@dataclass(frozen=True)
class ExtractionResult:
    document: Document
    attempts: tuple[ExtractionAttempt, ...]
    winning_tier: TierName | None = None
    text: str = ""
    contacts: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        return self.winning_tier is not None

    @property
    def steps(self) -> list[str]:
        return [step for attempt in self.attempts for step in attempt.steps]

    @property
    def attempted_tiers(self) -> list[TierName]:
        return [attempt.tier for attempt in self.attempts if not attempt.skipped]

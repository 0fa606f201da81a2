from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from app.jobs.exceptions import JobMetricsError

MAX_SKIPPED_FILES = 100


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class TriggerType(str, Enum):
    CRON = "cron"
    MANUAL = "manual"
    API = "api"


class SkipReason(str, Enum):
    DOWNLOAD_FAILED = "download_failed"
    VALIDATION_FAILED = "validation_failed"
    PROCESSING_FAILED = "processing_failed"
    FILE_TOO_LARGE = "file_too_large"


@dataclass
class JobMetrics:
    """Per-run counters owned by the document loop."""

    total_files: int = 0
    download_failed: int = 0
    validation_failed: int = 0
    processing_failed: int = 0
    successfully_processed: int = 0
    total_contacts: int = 0
    skipped_files: list[dict[str, Any]] = field(default_factory=list)

    def record_file(self) -> None:
        self.total_files += 1

    def record_success(self, contact_count: int) -> None:
        self.successfully_processed += 1
        self.total_contacts += contact_count

    def record_download_failure(self, file: str, error: str) -> None:
        self.download_failed += 1
        self.skip(file, SkipReason.DOWNLOAD_FAILED, error)

    def record_validation_failure(self, file: str, error: str) -> None:
        self.validation_failed += 1
        self.skip(file, SkipReason.VALIDATION_FAILED, error)

    def record_processing_failure(self, file: str, error: str) -> None:
        self.processing_failed += 1
        self.skip(file, SkipReason.PROCESSING_FAILED, error)

    def skip(self, file: str, reason: SkipReason, error: str | None = None) -> None:
        if len(self.skipped_files) < MAX_SKIPPED_FILES:
            self.skipped_files.append({"file": file, "reason": reason.value, "error": error})

    @property
    def total_failures(self) -> int:
        return self.download_failed + self.validation_failed + self.processing_failed

    @property
    def success_rate(self) -> float:
        if self.total_files == 0:
            return 0.0
        return round(self.successfully_processed / self.total_files * 100, 2)

    def check(self) -> None:
        """Raise JobMetricsError when outcomes outnumber the files seen."""
        if self.total_failures + self.successfully_processed > self.total_files:
            raise JobMetricsError(
                f"{self.total_failures} failures + {self.successfully_processed} successes "
                f"exceed {self.total_files} files"
            )

    def snapshot(self) -> "JobMetrics":
        return JobMetrics(
            total_files=self.total_files,
            download_failed=self.download_failed,
            validation_failed=self.validation_failed,
            processing_failed=self.processing_failed,
            successfully_processed=self.successfully_processed,
            total_contacts=self.total_contacts,
            skipped_files=list(self.skipped_files[:MAX_SKIPPED_FILES]),
        )


@dataclass
class JobRun:
    """One processing run, as stored in the job_runs table."""

    job_id: str
    job_type: str
    status: JobStatus
    trigger_type: TriggerType
    started_at: datetime
    completed_at: datetime | None = None
    duration_seconds: int | None = None
    metrics: JobMetrics = field(default_factory=JobMetrics)
    error_message: str | None = None
    error_stack: str | None = None
    id: int | None = None

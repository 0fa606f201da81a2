import pytest

from app.jobs.exceptions import JobMetricsError
from app.jobs.models import MAX_SKIPPED_FILES, JobMetrics, JobStatus, SkipReason


class TestJobMetrics:
    def test_counts_outcomes(self) -> None:
        metrics = JobMetrics()
        for _ in range(4):
            metrics.record_file()
        metrics.record_success(3)
        metrics.record_success(2)
        metrics.record_download_failure("a.pdf", "timeout")
        metrics.record_validation_failure("b.pdf", "HTML page")

        assert metrics.successfully_processed == 2
        assert metrics.total_contacts == 5
        assert metrics.total_failures == 2
        assert metrics.success_rate == 50.0
        assert metrics.skipped_files == [
            {"file": "a.pdf", "reason": "download_failed", "error": "timeout"},
            {"file": "b.pdf", "reason": "validation_failed", "error": "HTML page"},
        ]
        metrics.check()

    def test_check_rejects_more_outcomes_than_files(self) -> None:
        metrics = JobMetrics()
        metrics.record_file()
        metrics.record_success(1)
        metrics.record_processing_failure("a.pdf", "boom")

        with pytest.raises(JobMetricsError):
            metrics.check()

    def test_skipped_files_are_capped(self) -> None:
        metrics = JobMetrics()
        for n in range(MAX_SKIPPED_FILES + 20):
            metrics.record_file()
            metrics.record_processing_failure(f"{n}.pdf", "boom")

        assert len(metrics.skipped_files) == MAX_SKIPPED_FILES
        assert metrics.processing_failed == MAX_SKIPPED_FILES + 20

    def test_oversized_skip_is_not_a_failure(self) -> None:
        metrics = JobMetrics()
        metrics.skip("big.pdf", SkipReason.FILE_TOO_LARGE, "120 MB")

        assert metrics.total_files == 0
        assert metrics.total_failures == 0
        assert metrics.skipped_files[0]["reason"] == "file_too_large"

    def test_success_rate_without_files(self) -> None:
        assert JobMetrics().success_rate == 0.0

    def test_snapshot_is_independent(self) -> None:
        metrics = JobMetrics()
        metrics.record_file()
        snapshot = metrics.snapshot()
        metrics.record_file()
        metrics.skip("x.pdf", SkipReason.DOWNLOAD_FAILED)

        assert snapshot.total_files == 1
        assert snapshot.skipped_files == []


class TestJobStatus:
    def test_terminal(self) -> None:
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.RUNNING.is_terminal

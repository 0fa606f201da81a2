import traceback
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from app.database.repositories.job_run_repository import JobRunRepository
from app.jobs.exceptions import InvalidJobTransitionError
from app.jobs.job_id import generate_job_id
from app.jobs.models import ALLOWED_TRANSITIONS, JobMetrics, JobRun, JobStatus, TriggerType
from app.logging.logger import Log

STALE_ERROR_MESSAGE = "Job marked as failed due to stale status (running > {hours} hours)"
STALE_ERROR_STACK = "Cleaned up on application startup"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRunTracker:
    """Lifecycle of job runs: pending -> running -> completed | failed.

    Status lives in the job_runs table, so a crashed process leaves its run
    in `running` until reclaim_stale() fails it on the next start.
    """

    def __init__(
        self,
        repo: JobRunRepository,
        *,
        stale_after_hours: int = 24,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._stale_after = timedelta(hours=stale_after_hours)
        self._stale_hours = stale_after_hours
        self._clock = clock

    def start(
        self,
        job_type: str,
        trigger_type: TriggerType | str = TriggerType.MANUAL,
        project_origin: str | None = None,
    ) -> JobRun:
        """Create a run and move it straight to running."""
        now = self._clock()
        run = JobRun(
            job_id=generate_job_id(project_origin or job_type, now),
            job_type=job_type,
            status=JobStatus.PENDING,
            trigger_type=TriggerType(trigger_type),
            started_at=now,
        )
        run = self._repo.create(run)
        self._transition(run, JobStatus.RUNNING)
        self._repo.save(run)
        Log.info(f"Job {run.job_id} started ({run.job_type}, {run.trigger_type.value})")
        return run

    def complete(self, job_id: str, metrics: JobMetrics) -> JobRun | None:
        """Finalize a run as completed with its metrics."""
        metrics.check()
        run = self._find(job_id)
        if run is None:
            return None
        self._finish(run, JobStatus.COMPLETED, metrics)
        Log.info(
            f"Job {job_id} completed in {run.duration_seconds}s: "
            f"{metrics.successfully_processed}/{metrics.total_files} files, "
            f"{metrics.total_contacts} contacts"
        )
        return run

    def fail(
        self,
        job_id: str,
        error: BaseException | str,
        partial_metrics: JobMetrics | None = None,
    ) -> JobRun | None:
        """Finalize a run as failed, keeping whatever metrics were gathered."""
        run = self._find(job_id)
        if run is None:
            return None
        if isinstance(error, BaseException):
            run.error_message = str(error) or type(error).__name__
            run.error_stack = "".join(traceback.format_exception(error))
        else:
            run.error_message = error
        self._finish(run, JobStatus.FAILED, partial_metrics)
        Log.error(f"Job {job_id} failed after {run.duration_seconds}s: {run.error_message}")
        return run

    def reclaim_stale(self, now: datetime | None = None) -> int:
        """Fail every run still `running` that started more than the stale window ago."""
        now = now or self._clock()
        cutoff = now - self._stale_after
        reclaimed = 0
        for run in self._repo.find_stale(cutoff):
            if run.status is not JobStatus.RUNNING or run.started_at >= cutoff:
                continue
            run.error_message = STALE_ERROR_MESSAGE.format(hours=self._stale_hours)
            run.error_stack = STALE_ERROR_STACK
            self._finish(run, JobStatus.FAILED, None, now=now)
            Log.warning(f"Marked stale job as failed: {run.job_id}")
            reclaimed += 1
        if reclaimed:
            Log.info(f"Cleaned up {reclaimed} stale job runs")
        return reclaimed

    def _find(self, job_id: str) -> JobRun | None:
        run = self._repo.find_by_job_id(job_id)
        if run is None:
            Log.warning(f"Job run {job_id} not found")
        return run

    def _finish(
        self,
        run: JobRun,
        status: JobStatus,
        metrics: JobMetrics | None,
        now: datetime | None = None,
    ) -> None:
        self._transition(run, status)
        run.completed_at = now or self._clock()
        run.duration_seconds = round((run.completed_at - run.started_at).total_seconds())
        if metrics is not None:
            run.metrics = metrics.snapshot()
        self._repo.save(run)

    @staticmethod
    def _transition(run: JobRun, target: JobStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[run.status]:
            raise InvalidJobTransitionError(
                f"Job {run.job_id} cannot move from {run.status.value} to {target.value}"
            )
        run.status = target

from app.config.settings import Settings
from app.jobs.models import JobMetrics, JobRun, TriggerType
from app.jobs.tracker import JobRunTracker
from app.logging.logger import Log
from app.processor.processor import JobProcessor


class JobRunner:
    """Run one job inside the tracker lifecycle; finalize it exactly once."""

    def __init__(
        self,
        processor: JobProcessor,
        tracker: JobRunTracker,
        settings: Settings,
    ) -> None:
        self._processor = processor
        self._tracker = tracker
        self._settings = settings

    def run(
        self,
        trigger_type: TriggerType | str = TriggerType.MANUAL,
        prefix: str | None = None,
    ) -> JobRun:
        """Execute a job; failures end the run as failed with partial metrics."""
        prefix = self._settings.source_prefix if prefix is None else prefix
        run = self._tracker.start(
            self._settings.job_type,
            trigger_type,
            project_origin=self._settings.project_origin,
        )
        metrics = JobMetrics()
        Log.set_job(run.job_id)
        try:
            try:
                self._processor.run(run.job_id, prefix, metrics)
                completed = self._tracker.complete(run.job_id, metrics)
            except Exception as exc:
                Log.exception(f"Job {run.job_id} aborted: {exc}")
                return self._tracker.fail(run.job_id, exc, metrics) or run
            return completed or run
        finally:
            Log.set_job(None)

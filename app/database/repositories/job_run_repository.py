from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection
from app.database.exceptions import PersistenceError
from app.jobs.models import JobMetrics, JobRun, JobStatus, TriggerType

_COLUMNS = """
    id, job_id, job_type, status, trigger_type, started_at, completed_at,
    duration_seconds, total_files, download_failed, validation_failed,
    processing_failed, successfully_processed, total_contacts, skipped_files,
    error_message, error_stack
"""


class JobRunRepository:
    """Database operations for the job_runs table."""

    def create(self, run: JobRun) -> JobRun:
        """Insert a new run and return it with its database id."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO job_runs (job_id, job_type, status, trigger_type, started_at)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        run.job_id,
                        run.job_type,
                        run.status.value,
                        run.trigger_type.value,
                        run.started_at,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise PersistenceError(f"Insert of job run {run.job_id} returned no id")
        run.id = row["id"]
        return run

    def save(self, run: JobRun) -> None:
        """Persist status, timings, metrics and errors of an existing run.

        Raises:
            PersistenceError: if the update fails.
        """
        metrics = run.metrics
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    UPDATE job_runs
                    SET status = %s, completed_at = %s, duration_seconds = %s,
                        total_files = %s, download_failed = %s, validation_failed = %s,
                        processing_failed = %s, successfully_processed = %s,
                        total_contacts = %s, skipped_files = %s,
                        error_message = %s, error_stack = %s, updated_at = NOW()
                    WHERE job_id = %s
                    """,
                    (
                        run.status.value,
                        run.completed_at,
                        run.duration_seconds,
                        metrics.total_files,
                        metrics.download_failed,
                        metrics.validation_failed,
                        metrics.processing_failed,
                        metrics.successfully_processed,
                        metrics.total_contacts,
                        Jsonb(metrics.skipped_files),
                        run.error_message,
                        run.error_stack,
                        run.job_id,
                    ),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to save job run {run.job_id}: {exc}") from exc

    def find_by_job_id(self, job_id: str) -> JobRun | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM job_runs WHERE job_id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return _row_to_run(row) if row is not None else None

    def find_stale(self, started_before: datetime) -> list[JobRun]:
        """Runs still marked running that started before the cutoff."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM job_runs
                    WHERE status = 'running' AND started_at < %s
                    ORDER BY started_at
                    """,
                    (started_before,),
                )
                rows = cur.fetchall()
        return [_row_to_run(row) for row in rows]


def _row_to_run(row: dict[str, Any]) -> JobRun:
    return JobRun(
        id=row["id"],
        job_id=row["job_id"],
        job_type=row["job_type"],
        status=JobStatus(row["status"]),
        trigger_type=TriggerType(row["trigger_type"]),
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        duration_seconds=row["duration_seconds"],
        metrics=JobMetrics(
            total_files=row["total_files"],
            download_failed=row["download_failed"],
            validation_failed=row["validation_failed"],
            processing_failed=row["processing_failed"],
            successfully_processed=row["successfully_processed"],
            total_contacts=row["total_contacts"],
            skipped_files=list(row["skipped_files"] or []),
        ),
        error_message=row["error_message"],
        error_stack=row["error_stack"],
    )

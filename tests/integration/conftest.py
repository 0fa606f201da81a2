import os
from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, ensure_schema, get_connection, init_pool
from app.database.repositories.job_run_repository import JobRunRepository
from app.jobs.job_id import generate_job_id
from app.jobs.models import JobRun, JobStatus, TriggerType

TEST_ORIGIN = "ITEST"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "filings_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run these tests")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Job ids created by a test; their runs and contacts are removed afterwards."""
    job_ids: list[str] = []
    yield job_ids
    if not job_ids:
        return
    with get_connection() as conn:
        conn.execute("DELETE FROM contacts WHERE job_id = ANY(%s)", (job_ids,))
        conn.execute("DELETE FROM job_runs WHERE job_id = ANY(%s)", (job_ids,))
        conn.commit()


@pytest.fixture
def seed_run(integration_cleanup: list[str]) -> JobRun:
    run = JobRun(
        job_id=generate_job_id(TEST_ORIGIN),
        job_type=TEST_ORIGIN,
        status=JobStatus.PENDING,
        trigger_type=TriggerType.MANUAL,
        started_at=datetime.now(timezone.utc),
    )
    JobRunRepository().create(run)
    integration_cleanup.append(run.job_id)
    return run

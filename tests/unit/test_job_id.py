import re
from datetime import datetime, timedelta, timezone

import pytest

from app.jobs.job_id import (
    generate_job_id,
    is_valid_job_id,
    parse_job_id,
    project_origin_of,
)

JOB_ID_PATTERN = re.compile(r"^OCD_CBT_\d{14}_[a-z0-9]{4}$")


class TestGenerateJobId:
    def test_format(self) -> None:
        job_id = generate_job_id("OCD_CBT", datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc))

        assert JOB_ID_PATTERN.match(job_id)
        assert job_id.startswith("OCD_CBT_20250304050607_")

    def test_converts_to_utc(self) -> None:
        local = datetime(2025, 3, 4, 12, 0, 0, tzinfo=timezone(timedelta(hours=-6)))

        assert "_20250304180000_" in generate_job_id("OCD_CBT", local)

    def test_suffix_varies(self) -> None:
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        ids = {generate_job_id("OCD_CBT", now) for _ in range(20)}

        assert len(ids) > 1

    def test_requires_origin(self) -> None:
        with pytest.raises(ValueError):
            generate_job_id("")


class TestParseJobId:
    def test_origin_with_underscores(self) -> None:
        parsed = parse_job_id("OCD_IMAGING_20250101093000_x7k2")

        assert parsed is not None
        assert parsed.project_origin == "OCD_IMAGING"
        assert parsed.timestamp == "20250101093000"
        assert parsed.random == "x7k2"
        assert parsed.date == datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)

    def test_round_trip_origin(self) -> None:
        assert project_origin_of(generate_job_id("OCD_CBT")) == "OCD_CBT"

    @pytest.mark.parametrize("value", [None, "", "nounderscores", "a_b"])
    def test_unparseable(self, value: str | None) -> None:
        assert parse_job_id(value) is None


class TestIsValidJobId:
    def test_valid(self) -> None:
        assert is_valid_job_id("OCD_CBT_20250101093000_abcd")

    @pytest.mark.parametrize(
        "value",
        [
            "OCD_CBT_2025010109300_abcd",
            "OCD_CBT_20251301093000_abcd",
            "_20250101093000_abcd",
            42,
            None,
        ],
    )
    def test_invalid(self, value: object) -> None:
        assert not is_valid_job_id(value)

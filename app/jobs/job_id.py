"""Job identifiers: {PROJECT_ORIGIN}_{YYYYMMDDHHMMSS}_{4 random chars}."""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 4


@dataclass(frozen=True)
class ParsedJobId:
    project_origin: str
    timestamp: str
    random: str
    date: datetime | None


def generate_job_id(project_origin: str, now: datetime | None = None) -> str:
    """Build a job id from the origin and the current UTC time."""
    if not project_origin:
        raise ValueError("project_origin is required")
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{project_origin}_{moment.strftime(TIMESTAMP_FORMAT)}_{suffix}"


def parse_timestamp(timestamp: str) -> datetime | None:
    if len(timestamp) != 14 or not timestamp.isdigit():
        return None
    try:
        return datetime.strptime(timestamp, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_job_id(job_id: str | None) -> ParsedJobId | None:
    """Split from the right so origins may contain underscores (OCD_IMAGING)."""
    if not job_id:
        return None
    parts = job_id.split("_")
    if len(parts) < 3:
        return None
    random = parts.pop()
    timestamp = parts.pop()
    return ParsedJobId(
        project_origin="_".join(parts),
        timestamp=timestamp,
        random=random,
        date=parse_timestamp(timestamp),
    )


def is_valid_job_id(job_id: object) -> bool:
    if not isinstance(job_id, str):
        return False
    parsed = parse_job_id(job_id)
    return parsed is not None and parsed.date is not None and bool(parsed.project_origin)


def project_origin_of(job_id: str) -> str | None:
    parsed = parse_job_id(job_id)
    return parsed.project_origin if parsed else None

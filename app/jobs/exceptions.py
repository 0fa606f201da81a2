class JobError(Exception):
    """Base exception for job run tracking."""


class InvalidJobTransitionError(JobError):
    """Raised when a job run is moved to a status its current status does not allow."""


class JobMetricsError(JobError):
    """Raised when job counters break the total_files invariant."""

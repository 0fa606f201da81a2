"""Retry/backoff control for language-model calls.

Rate-limit and overload responses are retried with exponentially growing
delays, followed by one long final wait and a last call. Every other
extraction error is fatal and returned immediately.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.config.settings import Settings
from app.contact_extraction.exceptions import (
    ContactExtractionError,
    OverloadedError,
    TransientExtractionError,
)
from app.logging.logger import Log

Contacts = list[dict[str, Any]]


def backoff_delay(attempt: int, base_delay_seconds: float) -> float:
    """Delay before retry number `attempt` (0-based): base * 2^attempt."""
    return base_delay_seconds * (2**attempt)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient-failure"
    FATAL_FAILURE = "fatal-failure"


@dataclass(frozen=True)
class RetryOutcome:
    status: OutcomeStatus
    contacts: Contacts = field(default_factory=list)
    error: ContactExtractionError | None = None
    calls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def unwrap(self) -> Contacts:
        """Contacts of the run; empty once transient retries ran out.

        Raises:
            ContactExtractionError: the fatal error that ended the run.
        """
        if self.status is OutcomeStatus.FATAL_FAILURE:
            raise self.error or ContactExtractionError("extraction failed")
        return self.contacts


@dataclass(frozen=True)
class RetryPolicy:
    base_delay_seconds: float = 2.0
    max_retries: int = 3
    overloaded_final_wait_seconds: float = 30.0
    rate_limited_final_wait_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            base_delay_seconds=settings.retry_base_delay_seconds,
            max_retries=settings.retry_max_retries,
            overloaded_final_wait_seconds=settings.overloaded_final_wait_seconds,
            rate_limited_final_wait_seconds=settings.rate_limited_final_wait_seconds,
        )


class RetryController:
    """Runs an extraction call under the retry policy."""

    def __init__(self, policy: RetryPolicy | None = None) -> None:
        self._policy = policy or RetryPolicy()

    def execute(self, operation: Callable[[], Contacts], label: str = "extraction") -> RetryOutcome:
        """Call `operation` until it succeeds, fails fatally, or retries run out."""
        calls = 0
        attempt = 0
        while True:
            calls += 1
            try:
                return RetryOutcome(OutcomeStatus.SUCCESS, operation(), calls=calls)
            except TransientExtractionError as exc:
                if attempt >= self._policy.max_retries:
                    last_error = exc
                    break
                delay = backoff_delay(attempt, self._policy.base_delay_seconds)
                Log.warning(
                    f"{label}: {exc}; retry {attempt + 1}/{self._policy.max_retries} in {delay:.0f}s"
                )
                time.sleep(delay)
                attempt += 1
            except ContactExtractionError as exc:
                return RetryOutcome(OutcomeStatus.FATAL_FAILURE, error=exc, calls=calls)

        final_wait = self._final_wait(last_error)
        Log.warning(f"{label}: retries exhausted; final attempt in {final_wait:.0f}s")
        time.sleep(final_wait)
        calls += 1
        try:
            return RetryOutcome(OutcomeStatus.SUCCESS, operation(), calls=calls)
        except TransientExtractionError as exc:
            return RetryOutcome(OutcomeStatus.TRANSIENT_FAILURE, error=exc, calls=calls)
        except ContactExtractionError as exc:
            return RetryOutcome(OutcomeStatus.FATAL_FAILURE, error=exc, calls=calls)

    def call(self, operation: Callable[[], Contacts], label: str = "extraction") -> Contacts:
        """Like execute(), but always returns a list; failures yield []."""
        outcome = self.execute(operation, label)
        if outcome.succeeded:
            return outcome.contacts
        Log.error(f"{label}: giving up after {outcome.calls} calls ({outcome.status.value}): {outcome.error}")
        return []

    def _final_wait(self, error: TransientExtractionError) -> float:
        if isinstance(error, OverloadedError):
            return self._policy.overloaded_final_wait_seconds
        return self._policy.rate_limited_final_wait_seconds

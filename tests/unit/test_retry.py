from unittest.mock import MagicMock, patch

from app.contact_extraction.exceptions import (
    ExtractionResponseError,
    OverloadedError,
    PageLimitExceededError,
    RateLimitedError,
)
from app.contact_extraction.retry import (
    OutcomeStatus,
    RetryController,
    RetryPolicy,
    backoff_delay,
)


class TestBackoffDelay:
    def test_doubles_each_attempt(self) -> None:
        assert [backoff_delay(n, 2.0) * 1000 for n in range(3)] == [2000, 4000, 8000]

    def test_uses_base_delay(self) -> None:
        assert backoff_delay(0, 0.5) == 0.5


def _controller(max_retries: int = 3) -> RetryController:
    return RetryController(
        RetryPolicy(
            base_delay_seconds=2.0,
            max_retries=max_retries,
            overloaded_final_wait_seconds=30.0,
            rate_limited_final_wait_seconds=60.0,
        )
    )


@patch("app.contact_extraction.retry.time.sleep")
class TestRetryController:
    def test_success_on_first_call(self, sleep: MagicMock) -> None:
        operation = MagicMock(return_value=[{"name": "A"}])

        outcome = _controller().execute(operation)

        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.contacts == [{"name": "A"}]
        assert outcome.calls == 1
        sleep.assert_not_called()

    def test_retries_transient_errors_with_growing_delays(self, sleep: MagicMock) -> None:
        operation = MagicMock(
            side_effect=[RateLimitedError("429"), OverloadedError("529"), RateLimitedError("429"), [{"name": "B"}]]
        )

        outcome = _controller().execute(operation)

        assert outcome.succeeded
        assert outcome.calls == 4
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0, 8.0]

    def test_final_long_wait_after_rate_limit(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=[RateLimitedError("429")] * 4 + [[{"name": "C"}]])

        outcome = _controller().execute(operation)

        assert outcome.succeeded
        assert outcome.calls == 5
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0, 8.0, 60.0]

    def test_final_long_wait_after_overload(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=[OverloadedError("busy")] * 4 + [[]])

        _controller().execute(operation)

        assert sleep.call_args_list[-1].args[0] == 30.0

    def test_gives_up_after_final_attempt(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=RateLimitedError("429"))

        outcome = _controller().execute(operation)

        assert outcome.status is OutcomeStatus.TRANSIENT_FAILURE
        assert isinstance(outcome.error, RateLimitedError)
        assert operation.call_count == 5
        assert sleep.call_count == 4

    def test_fatal_error_is_not_retried(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=ExtractionResponseError("not json"))

        outcome = _controller().execute(operation)

        assert outcome.status is OutcomeStatus.FATAL_FAILURE
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_page_limit_is_fatal_and_carries_max_pages(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=PageLimitExceededError(100))

        outcome = _controller().execute(operation)

        assert outcome.status is OutcomeStatus.FATAL_FAILURE
        assert isinstance(outcome.error, PageLimitExceededError)
        assert outcome.error.max_pages == 100
        sleep.assert_not_called()

    def test_sleep_happens_before_each_retry_only(self, sleep: MagicMock) -> None:
        events: list[str] = []
        sleep.side_effect = lambda seconds: events.append(f"sleep {seconds}")

        def operation() -> list[dict[str, str]]:
            events.append("call")
            if events.count("call") == 1:
                raise OverloadedError("busy")
            return []

        _controller().execute(operation)

        assert events == ["call", "sleep 2.0", "call"]

    def test_zero_retries_goes_straight_to_final_wait(self, sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=[RateLimitedError("429"), []])

        outcome = _controller(max_retries=0).execute(operation)

        assert outcome.succeeded
        assert [c.args[0] for c in sleep.call_args_list] == [60.0]


@patch("app.contact_extraction.retry.time.sleep")
class TestRetryCall:
    def test_returns_contacts(self, _sleep: MagicMock) -> None:
        assert _controller().call(lambda: [{"name": "A"}]) == [{"name": "A"}]

    def test_returns_empty_list_when_giving_up(self, _sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=OverloadedError("busy"))
        assert _controller().call(operation) == []

    def test_returns_empty_list_on_fatal_error(self, _sleep: MagicMock) -> None:
        operation = MagicMock(side_effect=ExtractionResponseError("bad"))
        assert _controller().call(operation) == []

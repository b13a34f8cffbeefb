import pytest

from modules import log_handler, metrics
from modules.fault_tolerance import CancellationToken, ErrorKind, Failure, OperationError, Success
from modules.retry_policy import (
    RetryPolicy,
    execute_with_retry,
    exponential_backoff,
    fixed_backoff,
    retry,
    run_network_operation,
    run_ui_operation,
)


class FlakyOperation:
    """Fails `failures` times, then returns `value`."""

    def __init__(self, failures, value="done", exc_factory=lambda: ConnectionRefusedError("refused")):
        self.failures = failures
        self.value = value
        self.exc_factory = exc_factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_factory()
        return self.value


class TestBackoff:

    def test_exponential_backoff_doubles_every_attempt(self):
        policy = RetryPolicy(max_attempts=6, base_delay=1.0)
        for attempt in range(1, policy.max_attempts):
            assert policy.delay(attempt + 1) == 2 * policy.delay(attempt)

    def test_first_waits_are_two_then_four_seconds(self):
        policy = RetryPolicy(max_attempts=3, base_delay=1.0)
        assert [policy.delay(1), policy.delay(2)] == [2.0, 4.0]

    def test_backoff_function_is_attempt_indexed_from_one(self):
        delay = exponential_backoff(0.5)
        assert delay(1) == 1.0
        assert delay(3) == 4.0

    def test_max_delay_caps_single_wait(self):
        policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=5.0)
        assert policy.delay(2) == 4.0
        assert policy.delay(3) == 5.0
        assert policy.delay(8) == 5.0

    def test_capped_delay_stays_finite_for_very_late_attempts(self):
        policy = RetryPolicy(max_attempts=5000, base_delay=1.0, max_delay=30.0)
        assert policy.delay(1024) == 30.0
        assert policy.delay(5000) == 30.0
        assert RetryPolicy(max_attempts=5000, base_delay=1.0, max_delay=0.0).delay(4999) == 0.0

    def test_fixed_backoff(self):
        policy = RetryPolicy(max_attempts=3, backoff=fixed_backoff(1.0))
        assert policy.delay(1) == policy.delay(2) == 1.0

    def test_attempt_below_one_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy().delay(0)

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True])
    def test_invalid_max_attempts_rejected(self, bad):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=bad)

    def test_negative_base_delay_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=-1)

    def test_ai_policy_follows_settings(self):
        policy = RetryPolicy.for_ai()
        assert policy.max_attempts == 3
        assert policy.delay(1) == 2.0


class TestExecuteWithRetry:

    def test_long_capped_budget_is_exhausted_not_raised(self, recording_token):
        op = FlakyOperation(failures=2000)
        policy = RetryPolicy(max_attempts=1100, base_delay=1.0, max_delay=0.0)

        outcome = execute_with_retry(op, policy, "long poll", cancel_token=recording_token)

        assert outcome.exhausted is True
        assert outcome.kind is ErrorKind.NETWORK
        assert op.calls == 1100
        assert set(recording_token.waits) == {0.0}
        assert len(recording_token.waits) == 1099

    def test_always_failing_operation_is_exhausted_after_max_attempts(self, recording_token):
        op = FlakyOperation(failures=99)
        outcome = execute_with_retry(op, RetryPolicy(max_attempts=4), "always fails", cancel_token=recording_token)

        assert isinstance(outcome, Failure)
        assert outcome.exhausted is True
        assert outcome.attempt == 4
        assert outcome.kind is ErrorKind.NETWORK
        assert "refused" in outcome.message
        assert op.calls == 4
        # no wait after the last attempt
        assert recording_token.waits == [2.0, 4.0, 8.0]

    @pytest.mark.parametrize("k", [1, 2, 3])
    def test_success_on_attempt_k_stops_immediately(self, recording_token, k):
        op = FlakyOperation(failures=k - 1, value="ok")
        outcome = execute_with_retry(op, RetryPolicy(max_attempts=3), "flaky", cancel_token=recording_token)

        assert outcome == Success("ok")
        assert op.calls == k
        assert len(recording_token.waits) == k - 1

    def test_never_raises_for_failures(self, recording_token):
        def boom():
            raise RuntimeError("unexpected")
        outcome = execute_with_retry(boom, RetryPolicy(max_attempts=2), "boom", cancel_token=recording_token)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.OTHER
        assert isinstance(outcome.error, RuntimeError)

    def test_returned_failure_counts_as_failed_attempt(self, recording_token):
        results = iter([Failure(ErrorKind.TIMEOUT, "slow"), Success(42)])
        outcome = execute_with_retry(lambda: next(results), RetryPolicy(max_attempts=3), "outcomes", cancel_token=recording_token)
        assert outcome == Success(42)
        assert recording_token.waits == [2.0]

    def test_last_error_is_reported(self, recording_token):
        errors = iter([ConnectionResetError("first"), TimeoutError("second")])

        def op():
            raise next(errors)
        outcome = execute_with_retry(op, RetryPolicy(max_attempts=2), "two errors", cancel_token=recording_token)
        assert outcome.kind is ErrorKind.TIMEOUT
        assert "second" in outcome.message

    def test_failures_are_logged_with_label_and_attempt(self, recording_token, caplog):
        caplog.set_level("WARNING", logger="modules.retry_policy")
        execute_with_retry(FlakyOperation(failures=99), RetryPolicy(max_attempts=2), "load job page", cancel_token=recording_token)

        warnings = [r.getMessage() for r in caplog.records if r.levelname == "WARNING"]
        assert any("[retry 1/2] load job page" in w for w in warnings)
        errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
        assert any("load job page failed after 2 attempts" in e for e in errors)

    def test_non_retryable_kind_returns_without_exhausting(self, recording_token):
        op = FlakyOperation(failures=99, exc_factory=lambda: OperationError("bad shape"))
        policy = RetryPolicy(max_attempts=3, retry_on=frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT}))
        outcome = execute_with_retry(op, policy, "parse", cancel_token=recording_token)
        assert op.calls == 1
        assert outcome.exhausted is False
        assert recording_token.waits == []

    def test_metrics_and_event_on_exhaustion(self, recording_token):
        events = []
        log_handler.subscribe_events(events.append)
        try:
            execute_with_retry(FlakyOperation(failures=99), RetryPolicy(max_attempts=2), "metrics", cancel_token=recording_token)
        finally:
            log_handler.unsubscribe_events(events.append)
        assert metrics.get_metric("retry_attempts") == 2
        assert metrics.get_metric("retry_exhausted") == 1
        assert events[-1]["event"] == "retry_exhausted"
        assert events[-1]["data"]["label"] == "metrics"


class TestInterruptedBackoff:
    """A stop request during the wait ends the wait; whether retrying continues is configurable."""

    def _cancelling_operation(self, token):
        calls = []

        def op():
            calls.append(1)
            token.cancel()
            raise ConnectionError("down")
        return op, calls

    def test_default_continues_with_remaining_attempts(self):
        token = CancellationToken()
        op, calls = self._cancelling_operation(token)
        outcome = execute_with_retry(op, RetryPolicy(max_attempts=3, base_delay=60.0, abort_on_cancel=False), "interrupted", cancel_token=token)

        assert len(calls) == 3
        assert outcome.exhausted is True
        assert outcome.cancelled is False
        # the stop request is still visible to the caller
        assert token.cancelled

    def test_abort_on_cancel_stops_retrying(self):
        token = CancellationToken()
        op, calls = self._cancelling_operation(token)
        outcome = execute_with_retry(op, RetryPolicy(max_attempts=3, base_delay=60.0, abort_on_cancel=True), "interrupted", cancel_token=token)

        assert len(calls) == 1
        assert outcome.cancelled is True
        assert outcome.exhausted is False
        assert token.cancelled


class TestEntryPoints:

    def test_retry_decorator_returns_outcome(self):
        calls = []

        @retry(RetryPolicy(max_attempts=2, base_delay=0.0))
        def answer(x):
            calls.append(x)
            return x * 2

        assert answer(21) == Success(42)
        assert calls == [21]

    def test_run_ui_operation_uses_fixed_waits(self, recording_token):
        op = FlakyOperation(failures=2)
        outcome = run_ui_operation(op, "click apply", cancel_token=recording_token)
        assert outcome.ok
        assert recording_token.waits == [1.0, 1.0]

    def test_run_network_operation_bounds_each_attempt(self, recording_token):
        import time

        def slow():
            time.sleep(0.5)
            return "late"

        outcome = run_network_operation(
            slow, "slow download", timeout=0.05,
            policy=RetryPolicy(max_attempts=2, base_delay=0.0), cancel_token=recording_token,
        )
        assert outcome.kind is ErrorKind.TIMEOUT
        assert outcome.exhausted is True

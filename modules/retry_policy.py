"""
Retry Policy
============
Sequential retries with exponential backoff for every network call and browser
interaction of the bot.

Delay between attempts
----------------------
    delay(attempt) = base_delay * 2 ** attempt        # attempt is 1 based

so with ``base_delay=1.0`` the waits are 2s, 4s, 8s, ...  No jitter. An optional
``max_delay`` caps a single wait.

Usage
-----
    from modules.retry_policy import RetryPolicy, execute_with_retry

    outcome = execute_with_retry(fetch_page, RetryPolicy(max_attempts=3), "fetch job page")
    if outcome.ok:
        html = outcome.value

    # Or as a decorator, calls then return outcomes:
    @retry(RetryPolicy.for_ui(), "open filters")
    def open_filters():
        ...

Nothing here raises for a failed operation. Failures come back as
``Failure(kind, message, attempt, exhausted)``.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional

from config import settings
from modules import log_handler, metrics
from modules.fault_tolerance import (
    CancellationToken,
    ErrorKind,
    Failure,
    OperationOutcome,
    as_outcome,
    call_with_timeout,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

def exponential_backoff(base_delay: float) -> Callable[[int], float]:
    """Returns ``delay(attempt) = base_delay * 2 ** attempt``."""
    def delay(attempt: int) -> float:
        return base_delay * (2 ** attempt)
    return delay


def fixed_backoff(seconds: float) -> Callable[[int], float]:
    """Same wait after every attempt. Used for browser polling."""
    def delay(attempt: int) -> float:
        return seconds
    return delay


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often to try and how long to wait in between.

    Parameters
    ----------
    max_attempts : int
        Total try count (1 = no retry).
    base_delay : float
        Seconds fed into the default exponential backoff.
    backoff : callable | None
        ``fn(attempt) -> seconds``. Default: ``exponential_backoff(base_delay)``.
    max_delay : float | None
        Upper bound on a single wait. ``None`` keeps doubling forever.
    abort_on_cancel : bool
        If a stop is requested while waiting, give up instead of trying again.
    retry_on : frozenset[ErrorKind]
        Failure kinds worth another attempt. Default: all of them.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: Optional[Callable[[int], float]] = field(default=None, compare=False)
    max_delay: Optional[float] = None
    abort_on_cancel: bool = settings.abort_retry_on_interrupt
    retry_on: FrozenSet[ErrorKind] = frozenset(ErrorKind)

    def __post_init__(self):
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise ValueError(f"max_attempts must be an integer >= 1, got {self.max_attempts!r}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay!r}")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must not be negative, got {self.max_delay!r}")
        if self.backoff is None:
            object.__setattr__(self, "backoff", exponential_backoff(self.base_delay))

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt`."""
        if attempt < 1:
            raise ValueError(f"attempt is 1 based, got {attempt}")
        if self.max_delay is None:
            return self.backoff(attempt)
        # no more doubling once the cap is reached, 2 ** attempt overflows a float past ~1023
        return min(self.backoff(min(attempt, self._capped_attempt())), self.max_delay)

    def _capped_attempt(self) -> int:
        """First attempt whose exponential delay is already at or above `max_delay`."""
        if self.base_delay <= 0 or self.max_delay <= self.base_delay:
            return 1
        ratio = self.max_delay / self.base_delay
        if math.isinf(ratio):
            return 1023
        return min(math.ceil(math.log2(ratio)) + 1, 1023)

    @classmethod
    def for_ai(cls) -> "RetryPolicy":
        return cls(max_attempts=settings.ai_max_attempts, base_delay=settings.ai_base_delay, max_delay=settings.ai_max_delay)

    @classmethod
    def for_network(cls) -> "RetryPolicy":
        return cls(max_attempts=settings.network_max_attempts, base_delay=settings.network_base_delay)

    @classmethod
    def for_ui(cls) -> "RetryPolicy":
        return cls(max_attempts=settings.ui_max_attempts, base_delay=settings.ui_retry_delay, backoff=fixed_backoff(settings.ui_retry_delay))


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

def execute_with_retry(
    operation: Callable[[], object],
    policy: Optional[RetryPolicy] = None,
    label: str = "operation",
    *,
    cancel_token: Optional[CancellationToken] = None,
) -> OperationOutcome:
    """
    Call `operation` until it succeeds or `policy.max_attempts` is used up.

    `operation` may return a value, return an outcome, or raise. Raised exceptions are
    classified, logged with `label` and the attempt number, then retried after
    ``policy.delay(attempt)``. Waiting happens on `cancel_token`: a stop request ends the
    wait at once and stays set on the token for the caller to see.
    """
    policy = policy or RetryPolicy()
    token = cancel_token or CancellationToken()
    last: Optional[Failure] = None

    for attempt in range(1, policy.max_attempts + 1):
        if attempt > 1:
            logger.info("Retrying %s (attempt %d/%d)", label, attempt, policy.max_attempts)
        metrics.inc("retry_attempts")

        outcome = as_outcome(operation)
        if outcome.ok:
            metrics.inc("retry_successes")
            if attempt > 1:
                logger.info("%s succeeded on attempt %d/%d", label, attempt, policy.max_attempts)
            return outcome

        last = dataclasses.replace(outcome, attempt=attempt)
        logger.warning(
            "[retry %d/%d] %s failed (kind=%s): %s",
            attempt, policy.max_attempts, label, last.kind.value, last.message,
        )

        if last.kind not in policy.retry_on:
            logger.error("%s failed with a %s error, not retrying", label, last.kind.value)
            return last
        if attempt >= policy.max_attempts:
            break

        delay = policy.delay(attempt)
        logger.debug("Waiting %.1fs before retrying %s", delay, label)
        if token.wait(delay):
            logger.warning("Wait before retrying %s was interrupted", label)
            if policy.abort_on_cancel:
                logger.error("%s cancelled after %d attempt(s): %s", label, attempt, last.message)
                return dataclasses.replace(last, cancelled=True)

    metrics.inc("retry_exhausted")
    logger.error("%s failed after %d attempts: %s", label, policy.max_attempts, last.message)
    log_handler.publish_event(
        "retry_exhausted",
        {"label": label, "attempts": policy.max_attempts, "kind": last.kind.value, "error": last.message},
        source="retry_policy",
    )
    return dataclasses.replace(last, exhausted=True)


def retry(policy: Optional[RetryPolicy] = None, label: Optional[str] = None):
    """Decorator form of `execute_with_retry`. The wrapped function returns an outcome."""
    def decorator(fn: Callable):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> OperationOutcome:
            return execute_with_retry(lambda: fn(*args, **kwargs), policy, label or fn.__name__)
        return wrapper
    return decorator


# ---------------------------------------------------------------------------
# Entry points for the rest of the bot
# ---------------------------------------------------------------------------

def run_network_operation(
    operation: Callable[[], object],
    label: str,
    *,
    timeout: Optional[float] = None,
    policy: Optional[RetryPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> OperationOutcome:
    """
    Run a network operation with resilience.
    * Every attempt is bounded by `timeout` seconds when given
    * Policy defaults to `RetryPolicy.for_network()`
    """
    attempt_fn = operation
    if timeout is not None:
        attempt_fn = lambda: call_with_timeout(operation, timeout, label=label)
    return execute_with_retry(attempt_fn, policy or RetryPolicy.for_network(), label, cancel_token=cancel_token)


def run_ui_operation(
    operation: Callable[[], object],
    label: str,
    *,
    policy: Optional[RetryPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> OperationOutcome:
    """Run a browser interaction with resilience. Policy defaults to `RetryPolicy.for_ui()`."""
    return execute_with_retry(operation, policy or RetryPolicy.for_ui(), label, cancel_token=cancel_token)

'''
Fault Tolerance Module
Error classification, operation outcomes and time-bounded calls.

Every failure that reaches the resilience layer ends up as one of three kinds:

NETWORK  – connection refused, DNS failure, socket level I/O error
TIMEOUT  – a wall-clock deadline was exceeded
OTHER    – everything else (bad response shape, HTTP status, element not clickable, ...)

The kind is decided by where the failure came from, i.e. its exception type or an
explicit tag set by the layer that detected it. Messages are never inspected.
'''

from __future__ import annotations

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar, Union

import requests
from selenium.common.exceptions import TimeoutException as SeleniumTimeoutException

from config.settings import worker_join_grace

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorKind(Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    OTHER = "other"


class OperationError(Exception):
    """
    Failure raised by a call site that already knows what kind of failure it is.
    The explicit `kind` always wins over type based classification.
    """
    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

# requests.ConnectTimeout is a ConnectionError too, so it lands in NETWORK.
_NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    requests.exceptions.ConnectionError,
    ConnectionError,
    socket.gaierror,
    socket.herror,
)

_TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (
    requests.exceptions.Timeout,
    TimeoutError,
    FutureTimeoutError,
    SeleniumTimeoutException,
)


def classify_error(exc: BaseException) -> ErrorKind:
    """Classify an exception as NETWORK, TIMEOUT or OTHER, in that priority order."""
    if isinstance(exc, OperationError):
        return exc.kind
    if isinstance(exc, _NETWORK_ERRORS):
        return ErrorKind.NETWORK
    if isinstance(exc, _TIMEOUT_ERRORS):
        return ErrorKind.TIMEOUT
    return ErrorKind.OTHER


def describe_error(exc: BaseException) -> str:
    """Human readable one-liner, falls back to the type name for empty messages."""
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    ok: ClassVar[bool] = True

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """
    A classified failure.
    * `attempt` is the attempt number that produced it (1 based)
    * `exhausted` is True only when the whole retry budget was used up
    * `cancelled` is True when a retry loop stopped early because of a stop request
    """
    kind: ErrorKind
    message: str
    attempt: int = 1
    exhausted: bool = False
    cancelled: bool = False
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)
    ok: ClassVar[bool] = False

    def unwrap_or(self, default: Any) -> Any:
        return default

    @classmethod
    def from_exception(cls, exc: BaseException, attempt: int = 1) -> "Failure":
        return cls(kind=classify_error(exc), message=describe_error(exc), attempt=attempt, error=exc)


OperationOutcome = Union[Success[T], Failure]


def as_outcome(operation: Callable[[], Any]) -> OperationOutcome:
    """Run `operation` once. Raised exceptions become a `Failure`, returned outcomes pass through."""
    try:
        result = operation()
    except Exception as exc:
        return Failure.from_exception(exc)
    if isinstance(result, (Success, Failure)):
        return result
    return Success(result)


# ---------------------------------------------------------------------------
# Cooperative cancellation
# ---------------------------------------------------------------------------

class CancellationToken:
    """
    Stop request shared between a caller and the code it runs.
    Nothing is ever interrupted forcefully, the running code has to poll `cancelled`.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block for up to `timeout` seconds. Returns True as soon as a stop is requested."""
        return self._event.wait(timeout)


_worker_state = threading.local()


def current_token() -> Optional[CancellationToken]:
    """Token of the bounded call running on this thread, None outside of `call_with_timeout`."""
    return getattr(_worker_state, "token", None)


def cancellation_requested() -> bool:
    """For long running operations: poll this and return early once it turns True."""
    token = current_token()
    return token is not None and token.cancelled


# ---------------------------------------------------------------------------
# Bounded-time calls
# ---------------------------------------------------------------------------

def call_with_timeout(
    operation: Callable[[], T],
    timeout: float,
    *,
    label: str = "operation",
    join_grace: Optional[float] = None,
) -> OperationOutcome:
    """
    Runs `operation` on its own worker thread and waits at most `timeout` seconds for it.

    * A new single-thread executor is created and shut down for every call
    * On timeout the worker's token is cancelled and, for up to `join_grace` seconds,
      the worker is given the chance to notice and exit before this returns
    * Never raises for failures of `operation`, they come back as `Failure`
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    if join_grace is None:
        join_grace = worker_join_grace

    token = CancellationToken()
    finished = threading.Event()

    def _run() -> T:
        _worker_state.token = token
        try:
            return operation()
        finally:
            _worker_state.token = None
            finished.set()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"bounded-{label}")
    timed_out = False
    try:
        future = executor.submit(_run)
        done, _ = wait([future], timeout=timeout)
        if not done:
            timed_out = True
            token.cancel()
            future.cancel()
            logger.error("%s did not finish within %ss, abandoning it", label, timeout)
            return Failure(
                kind=ErrorKind.TIMEOUT,
                message=f"{label} timed out after {timeout}s",
                error=TimeoutError(f"{label} timed out after {timeout}s"),
            )
        return as_outcome(future.result)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
        if timed_out and join_grace > 0 and not finished.wait(join_grace):
            logger.warning("Worker of %s is still running %ss after its deadline", label, join_grace)


# ---------------------------------------------------------------------------
# Safe execution helpers
# ---------------------------------------------------------------------------

def safe_execute(
    func: Callable[..., T],
    *args,
    default: T = None,
    label: Optional[str] = None,
    error_callback: Optional[Callable[[Exception], None]] = None,
    **kwargs
) -> T:
    """
    Safely execute a function, returning `default` on error.

    Args:
        func: Function to execute
        default: Value to return when `func` raises
        label: Name used in the log line, defaults to the function name
        error_callback: Optional callback receiving the exception
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.error("Error while executing %s: %s", label or getattr(func, "__name__", "operation"), describe_error(e), exc_info=True)
        if error_callback:
            error_callback(e)
        return default


def log_and_continue(operation: Callable[[], Any], on_error: Callable[[Exception], None], label: str) -> None:
    """Run `operation`, on failure log a warning, hand the exception to `on_error` and carry on."""
    try:
        operation()
    except Exception as e:
        logger.warning("%s failed, continuing anyway: %s", label, describe_error(e))
        on_error(e)


def handle_by_kind(
    operation: Callable[[], T],
    on_network: Callable[[Exception], T],
    on_timeout: Callable[[Exception], T],
    on_other: Callable[[Exception], T],
) -> T:
    """Run `operation` and route a failure to the handler matching its `ErrorKind`."""
    try:
        return operation()
    except Exception as e:
        kind = classify_error(e)
        logger.error("%s failure: %s", kind.value.capitalize(), describe_error(e))
        if kind is ErrorKind.NETWORK:
            return on_network(e)
        if kind is ErrorKind.TIMEOUT:
            return on_timeout(e)
        return on_other(e)


def handle_exception(
    operation: Callable[[], T],
    handler: Callable[[BaseException], T],
    exc_type: type[BaseException],
) -> T:
    """Run `operation`, pass an `exc_type` failure to `handler`. Any other exception propagates."""
    try:
        return operation()
    except exc_type as e:
        return handler(e)

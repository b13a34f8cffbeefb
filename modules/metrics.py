"""In-process counters and timing samples for retries, timeouts and AI calls.

Counters: ``retry_attempts``, ``retry_successes``, ``retry_exhausted``,
``ai_requests_total``, ``ai_requests_failed``, ``ai_tokens_total``.
Samples: ``ai_latency`` (seconds per successful AI request).
"""
import threading
from collections import defaultdict, deque
from typing import Dict

_lock = threading.RLock()
_counters: Dict[str, int] = defaultdict(int)
_samples: Dict[str, deque] = defaultdict(lambda: deque(maxlen=200))  # last 200 per series


def inc(name: str, n: int = 1) -> None:
    with _lock:
        _counters[name] += n


def get_metric(name: str, default: float = 0.0) -> float:
    """Current value of counter `name`, `default` if it was never incremented."""
    with _lock:
        if name in _counters:
            return float(_counters[name])
        return default


def append_sample(name: str, value: float) -> None:
    with _lock:
        _samples[name].append(float(value))


def get_metrics() -> dict:
    """Counters plus ``<series>_avg``, ``<series>_last`` and ``<series>_count`` per sample series."""
    with _lock:
        out = dict(_counters)
        for name, series in _samples.items():
            if series:
                out[f"{name}_avg"] = sum(series) / len(series)
                out[f"{name}_last"] = series[-1]
                out[f"{name}_count"] = len(series)
        return out


def reset_all() -> None:
    with _lock:
        _counters.clear()
        _samples.clear()

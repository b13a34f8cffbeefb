"""Publish/subscribe bus for log lines and structured events.

Anything that wants to follow the bot live (a status window, a test) subscribes
here instead of tailing ``log.txt``. Nothing is buffered: a line published while
nobody listens is only in the log file.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

_line_subscribers: list[Callable[[str], None]] = []
_event_subscribers: list[Callable[[dict], None]] = []


def _notify(subscribers: list, item) -> None:
    for callback in list(subscribers):
        try:
            callback(item)
        except Exception:
            # a broken listener must not break the bot
            pass


def publish(msg: str, tag: Optional[str] = None) -> None:
    """Send a log line to every line subscriber, prefixed with ``[TAG] `` when `tag` is given."""
    _notify(_line_subscribers, f"[{tag}] {msg}" if tag else msg)


def publish_event(event: str, data: Optional[dict] = None, source: str = "system") -> None:
    """Send a structured event, e.g. ``retry_exhausted`` with its label and attempt count."""
    _notify(_event_subscribers, {
        "ts": datetime.now().isoformat(timespec="seconds"),
        "event": event,
        "source": source,
        "data": data or {},
    })


def subscribe(callback: Callable[[str], None]) -> None:
    if callback not in _line_subscribers:
        _line_subscribers.append(callback)


def unsubscribe(callback: Callable[[str], None]) -> None:
    if callback in _line_subscribers:
        _line_subscribers.remove(callback)


def subscribe_events(callback: Callable[[dict], None]) -> None:
    if callback not in _event_subscribers:
        _event_subscribers.append(callback)


def unsubscribe_events(callback: Callable[[dict], None]) -> None:
    if callback in _event_subscribers:
        _event_subscribers.remove(callback)


class PublishingHandler(logging.Handler):
    """`logging` handler that forwards formatted records to the line subscribers, tagged with the level name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            publish(self.format(record), tag=record.levelname)
        except Exception:
            self.handleError(record)

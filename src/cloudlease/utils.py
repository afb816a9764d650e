"""Shared helpers for logging, timing and resource naming."""

from __future__ import annotations

import logging
import time
from types import TracebackType
from typing import Self

__all__: list[str] = [
    "Timer",
    "database_path",
    "format_duration",
    "get_logger",
    "get_timestamp",
    "resource_id",
    "session_path",
    "subscription_path",
    "topic_path",
]


def get_logger(*, name: str) -> logging.Logger:
    """Return a logger with the given name."""
    return logging.getLogger(name)


def get_timestamp() -> float:
    """Return a monotonic timestamp in seconds."""
    return time.perf_counter()


def format_duration(*, seconds: float) -> str:
    """Format a duration in seconds as a short human-readable string."""
    if seconds < 1e-6:
        return f"{seconds * 1e9:.0f}ns"
    if seconds < 1e-3:
        return f"{seconds * 1e6:.1f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.1f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m{secs:.1f}s"
    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h{int(minutes)}m{secs:.1f}s"


def database_path(*, project: str, instance: str, database: str) -> str:
    """Return the fully-qualified Spanner database name."""
    return f"projects/{project}/instances/{instance}/databases/{database}"


def session_path(*, project: str, instance: str, database: str, session: str) -> str:
    """Return the fully-qualified Spanner session name."""
    return f"{database_path(project=project, instance=instance, database=database)}/sessions/{session}"


def topic_path(*, project: str, topic: str) -> str:
    """Return the fully-qualified Pub/Sub topic name."""
    if topic.startswith("projects/"):
        return topic
    return f"projects/{project}/topics/{topic}"


def subscription_path(*, project: str, subscription: str) -> str:
    """Return the fully-qualified Pub/Sub subscription name."""
    if subscription.startswith("projects/"):
        return subscription
    return f"projects/{project}/subscriptions/{subscription}"


def resource_id(*, path: str) -> str:
    """Return the last segment of a resource path."""
    return path.rsplit("/", 1)[-1]


class Timer:
    """Measure and log the duration of a block of code."""

    def __init__(self, *, name: str = "timer") -> None:
        """Initialize the timer."""
        self.name = name
        self.start_time: float | None = None
        self.end_time: float | None = None

    @property
    def elapsed(self) -> float:
        """Return the elapsed time, live while the timer is running."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time

    def start(self) -> None:
        """Start the timer."""
        self.start_time = time.perf_counter()
        self.end_time = None

    def stop(self) -> float:
        """Stop the timer and return the elapsed time."""
        if self.start_time is None:
            raise RuntimeError("Timer not started")
        self.end_time = time.perf_counter()
        return self.elapsed

    def __enter__(self) -> Self:
        """Start timing on context entry."""
        self.start()
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Stop timing and log the duration."""
        elapsed = self.stop()
        get_logger(name=__name__).debug("%s took %s", self.name, format_duration(seconds=elapsed))

"""Reusable base class for periodic background monitors."""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections import deque
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar

from cloudlease.constants import DEFAULT_METRICS_MAXLEN, DEFAULT_MONITORING_INTERVAL
from cloudlease.utils import get_logger, get_timestamp

__all__: list[str] = []

T = TypeVar("T")

logger = get_logger(name=__name__)


class _BaseMonitor(ABC, Generic[T]):
    """Run a collect-then-check cycle against a target on a fixed interval."""

    _alert_source: ClassVar[str] = "Monitor"
    _collect_on_start: ClassVar[bool] = True

    def __init__(
        self,
        *,
        target: T,
        monitoring_interval: float = DEFAULT_MONITORING_INTERVAL,
        metrics_maxlen: int = DEFAULT_METRICS_MAXLEN,
        alerts_maxlen: int = 100,
    ) -> None:
        """Initialize the monitor."""
        self._target = target
        self._interval = monitoring_interval
        self._monitor_task: asyncio.Task[None] | None = None
        self._metrics_history: deque[dict[str, Any]] = deque(maxlen=metrics_maxlen)
        self._alerts: deque[dict[str, Any]] = deque(maxlen=alerts_maxlen)

    @property
    def is_monitoring(self) -> bool:
        """Return True while the background task is running."""
        return self._monitor_task is not None and not self._monitor_task.done()

    async def __aenter__(self) -> Self:
        """Enter the async context and start the background task."""
        if self._monitor_task is None:
            try:
                self._monitor_task = asyncio.create_task(self._monitor_loop())
            except RuntimeError:
                logger.error("%s could not start: no running event loop", self.__class__.__name__)
                self._monitor_task = None
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Exit the async context and stop the background task."""
        await self.stop()

    def clear_history(self) -> None:
        """Clear recorded metrics and alerts."""
        self._metrics_history.clear()
        self._alerts.clear()

    def get_alerts(self, *, limit: int = 25) -> list[dict[str, Any]]:
        """Get the most recent alerts."""
        return list(self._alerts)[-limit:]

    def get_metrics_history(self, *, limit: int = 100) -> list[dict[str, Any]]:
        """Get the most recent metric snapshots."""
        return list(self._metrics_history)[-limit:]

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        task = self._monitor_task
        if task is None:
            return
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    @abstractmethod
    def _check_for_alerts(self) -> Any:
        """Analyze the latest metrics (sync or async)."""
        raise NotImplementedError

    @abstractmethod
    def _collect_metrics(self) -> Any:
        """Collect one metrics snapshot (sync or async)."""
        raise NotImplementedError

    def _create_alert(self, *, alert_type: str, message: str) -> None:
        """Create and store a new alert, avoiding consecutive duplicates."""
        if not self._alerts or self._alerts[-1].get("message") != message:
            alert = {"type": alert_type, "message": message, "timestamp": get_timestamp()}
            self._alerts.append(alert)
            logger.warning("%s alert: %s", self._alert_source, message)

    async def _monitor_loop(self) -> None:
        """Run collection cycles until cancelled or a cycle fails."""
        try:
            if not self._collect_on_start:
                await asyncio.sleep(self._interval)
            while True:
                result = self._collect_metrics()
                if inspect.isawaitable(result):
                    await result
                result = self._check_for_alerts()
                if inspect.isawaitable(result):
                    await result
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("%s loop stopped after a critical error: %s", self.__class__.__name__, e, exc_info=True)

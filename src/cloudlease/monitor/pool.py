"""Utility for monitoring session pool health."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from cloudlease.monitor._base import _BaseMonitor
from cloudlease.utils import get_logger, get_timestamp

if TYPE_CHECKING:
    from cloudlease.pool.session import SessionPool


__all__: list[str] = ["PoolMonitor"]

logger = get_logger(name=__name__)


class PoolMonitor(_BaseMonitor["SessionPool"]):
    """Monitor session pool utilization via an async context."""

    _alert_source = "Session Pool"

    def __init__(self, pool: SessionPool, *, monitoring_interval: float = 15.0) -> None:
        """Initialize the pool monitor."""
        super().__init__(target=pool, monitoring_interval=monitoring_interval)

    def get_current_metrics(self) -> dict[str, Any] | None:
        """Get the latest collected metrics."""
        return self._metrics_history[-1] if self._metrics_history else None

    def _check_for_alerts(self) -> None:
        """Analyze the latest metrics and generate alerts if thresholds are breached."""
        metrics = self.get_current_metrics()
        if not metrics or metrics.get("is_closed"):
            return

        in_use = metrics.get("in_use", 0)
        max_size = metrics.get("max_size", 0)
        waiters = metrics.get("waiters", 0)
        if max_size and in_use >= max_size and waiters > 0:
            self._create_alert(
                alert_type="pool_saturated",
                message=f"All {max_size} sessions are leased with {waiters} caller(s) waiting",
            )

        total = metrics.get("idle", 0) + in_use + metrics.get("pinging", 0)
        min_size = metrics.get("min_size", 0)
        if total < min_size and not metrics.get("pending"):
            self._create_alert(
                alert_type="pool_below_minimum",
                message=f"Pool holds {total} session(s), below its minimum of {min_size}",
            )

    def _collect_metrics(self) -> None:
        """Collect a snapshot of the pool's current statistics."""
        try:
            timestamp = get_timestamp()
            metrics = {"timestamp": timestamp, **asdict(self._target.diagnostics())}
            self._metrics_history.append(metrics)
        except Exception as e:
            logger.error("Pool metrics collection failed: %s", e, exc_info=True)

"""Background task that keeps idle pooled sessions alive."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from cloudlease.constants import DEFAULT_KEEPALIVE_INTERVAL
from cloudlease.monitor._base import _BaseMonitor
from cloudlease.utils import get_logger, get_timestamp

if TYPE_CHECKING:
    from cloudlease.pool.session import SessionPool


__all__: list[str] = ["SessionKeepalive"]

logger = get_logger(name=__name__)


class SessionKeepalive(_BaseMonitor["SessionPool"]):
    """Periodically ping stale idle sessions so the server does not expire them."""

    _alert_source = "Keepalive"
    _collect_on_start = False

    def __init__(
        self, *, pool: SessionPool, interval: float = DEFAULT_KEEPALIVE_INTERVAL, threshold: float | None = None
    ) -> None:
        """Initialize the keepalive task."""
        super().__init__(target=pool, monitoring_interval=interval)
        self._threshold = threshold

    @property
    def interval(self) -> float:
        """Get the time between sweeps."""
        return self._interval

    def get_last_sweep(self) -> dict[str, Any] | None:
        """Get the result of the most recent sweep."""
        return self._metrics_history[-1] if self._metrics_history else None

    def _check_for_alerts(self) -> None:
        """Report sweeps that had to drop expired sessions."""
        sweep = self.get_last_sweep()
        if not sweep:
            return

        expired = sweep.get("expired", 0)
        if expired:
            self._create_alert(
                alert_type="sessions_expired",
                message=f"Keepalive dropped {expired} expired session(s), replenished {sweep.get('replenished', 0)}",
            )

    async def _collect_metrics(self) -> None:
        """Run one keepalive sweep over the pool."""
        try:
            timestamp = get_timestamp()
            result = await self._target.keepalive(threshold=self._threshold)
            self._metrics_history.append({"timestamp": timestamp, **asdict(result)})
        except Exception as e:
            logger.warning("Keepalive sweep failed: %s", e, exc_info=True)

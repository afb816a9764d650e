"""Background tasks that watch over pooled sessions."""

from .keepalive import SessionKeepalive
from .pool import PoolMonitor

__all__: list[str] = ["PoolMonitor", "SessionKeepalive"]

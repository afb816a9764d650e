"""Asyncio clients for Cloud Spanner mutations and Pub/Sub over pooled sessions."""

from .config import ClientConfig, PoolConfig
from .constants import ErrorCodes
from .exceptions import (
    CloudLeaseError,
    CommitError,
    ConfigurationError,
    PoolClosedError,
    PoolError,
    PoolExhaustedError,
    PubsubError,
    SessionError,
    SessionInvalidError,
)
from .monitor import PoolMonitor, SessionKeepalive
from .pool import SessionPool
from .pubsub import Project, ReceivedMessage, Subscription, Topic
from .session import Session
from .spanner import ALL_ROWS, Batch, Client, KeyRange, Mutations
from .types import SessionState
from .version import __version__

__all__: list[str] = [
    "ALL_ROWS",
    "Batch",
    "Client",
    "ClientConfig",
    "CloudLeaseError",
    "CommitError",
    "ConfigurationError",
    "ErrorCodes",
    "KeyRange",
    "Mutations",
    "PoolClosedError",
    "PoolConfig",
    "PoolError",
    "PoolExhaustedError",
    "PoolMonitor",
    "Project",
    "PubsubError",
    "ReceivedMessage",
    "Session",
    "SessionError",
    "SessionInvalidError",
    "SessionKeepalive",
    "SessionPool",
    "SessionState",
    "Subscription",
    "Topic",
    "__version__",
]

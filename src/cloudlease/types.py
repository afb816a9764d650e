"""Core data types and interface protocols for the library."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from google.cloud import spanner_v1
    from google.pubsub_v1 import types as pubsub_types


__all__: list[str] = [
    "DatabasePath",
    "Key",
    "PubsubGatewayProtocol",
    "Row",
    "Rows",
    "SessionName",
    "SessionState",
    "SpannerGatewayProtocol",
    "Timeout",
    "Timestamp",
]


DatabasePath: TypeAlias = str
Key: TypeAlias = Any
Row: TypeAlias = Mapping[str, Any]
Rows: TypeAlias = Row | Sequence[Row]
SessionName: TypeAlias = str
Timeout: TypeAlias = float | None
Timestamp: TypeAlias = float


@runtime_checkable
class SpannerGatewayProtocol(Protocol):
    """The remote Spanner calls the session pool and client depend on."""

    async def create_session(self, *, database: DatabasePath) -> spanner_v1.Session:
        """Create a new server-side session."""
        ...

    async def get_session(self, *, name: SessionName) -> spanner_v1.Session:
        """Fetch a session, refreshing its server-side idle timer."""
        ...

    async def commit(
        self,
        *,
        session: SessionName,
        mutations: Sequence[spanner_v1.Mutation],
        single_use_transaction: spanner_v1.TransactionOptions,
    ) -> spanner_v1.CommitResponse:
        """Commit mutations in a single-use transaction."""
        ...

    async def delete_session(self, *, name: SessionName) -> None:
        """Delete a server-side session."""
        ...

    async def close(self) -> None:
        """Release the underlying channel."""
        ...


@runtime_checkable
class PubsubGatewayProtocol(Protocol):
    """The remote Pub/Sub calls the object model depends on."""

    async def create_topic(self, *, name: str) -> pubsub_types.Topic: ...

    async def get_topic(self, *, topic: str) -> pubsub_types.Topic: ...

    async def delete_topic(self, *, topic: str) -> None: ...

    async def publish(self, *, topic: str, messages: Sequence[pubsub_types.PubsubMessage]) -> list[str]: ...

    async def create_subscription(
        self, *, name: str, topic: str, ack_deadline_seconds: int | None = None
    ) -> pubsub_types.Subscription: ...

    async def get_subscription(self, *, subscription: str) -> pubsub_types.Subscription: ...

    async def delete_subscription(self, *, subscription: str) -> None: ...

    async def pull(self, *, subscription: str, max_messages: int) -> list[pubsub_types.ReceivedMessage]: ...

    async def acknowledge(self, *, subscription: str, ack_ids: Sequence[str]) -> None: ...

    async def close(self) -> None: ...


class SessionState(StrEnum):
    """Enumeration of pooled session states."""

    IDLE = "idle"
    IN_USE = "in_use"
    PINGING = "pinging"
    INVALID = "invalid"
    CLOSED = "closed"

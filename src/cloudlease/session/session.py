"""High-level handle for a Spanner session."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from google.api_core.exceptions import GoogleAPIError, NotFound

from cloudlease.constants import SESSION_NOT_FOUND_MESSAGE
from cloudlease.exceptions import SessionInvalidError
from cloudlease.types import DatabasePath, SessionName, SessionState, SpannerGatewayProtocol, Timestamp
from cloudlease.utils import get_logger, get_timestamp

if TYPE_CHECKING:
    from google.cloud import spanner_v1


__all__: list[str] = ["Session", "SessionDiagnostics"]

logger = get_logger(name=__name__)


@dataclass(kw_only=True)
class SessionDiagnostics:
    """A snapshot of session diagnostics."""

    name: SessionName
    database: DatabasePath
    state: SessionState
    is_valid: bool
    created_at: Timestamp
    last_used_at: Timestamp
    idle_time: float
    use_count: int
    ping_count: int


class Session:
    """A handle for one server-side session owned by a pool."""

    def __init__(
        self,
        *,
        name: SessionName,
        database: DatabasePath,
        gateway: SpannerGatewayProtocol,
        created_at: Timestamp | None = None,
    ) -> None:
        """Initialize the session handle."""
        self._name = name
        self._database = database
        self._gateway = gateway
        self._created_at = created_at if created_at is not None else get_timestamp()
        self._last_used_at = self._created_at
        self._is_valid = True
        self._use_count = 0
        self._ping_count = 0
        self.state = SessionState.IDLE

        logger.debug("Session handle created for %s", self._name)

    @property
    def created_at(self) -> Timestamp:
        """Get the local time the session was created."""
        return self._created_at

    @property
    def database(self) -> DatabasePath:
        """Get the database this session belongs to."""
        return self._database

    @property
    def is_valid(self) -> bool:
        """Return False once the server has reported the session gone."""
        return self._is_valid

    @property
    def last_used_at(self) -> Timestamp:
        """Get the local time of the most recent activity on the session."""
        return self._last_used_at

    @property
    def name(self) -> SessionName:
        """Get the server-assigned session name."""
        return self._name

    async def commit(
        self, *, mutations: Sequence[spanner_v1.Mutation], transaction: spanner_v1.TransactionOptions
    ) -> spanner_v1.CommitResponse:
        """Commit mutations on this session in a single-use transaction."""
        self._last_used_at = get_timestamp()
        try:
            return await self._gateway.commit(
                session=self._name, mutations=list(mutations), single_use_transaction=transaction
            )
        except NotFound as e:
            if SESSION_NOT_FOUND_MESSAGE.lower() not in (e.message or "").lower():
                raise
            self.invalidate()
            raise SessionInvalidError(f"Session expired during commit: {e.message}", session_name=self._name) from e

    async def delete(self) -> None:
        """Delete the server-side session, ignoring failures."""
        try:
            await self._gateway.delete_session(name=self._name)
        except NotFound:
            logger.debug("Session %s was already gone on delete", self._name)
        except GoogleAPIError as e:
            logger.warning("Failed to delete session %s: %s", self._name, e)
        finally:
            self.state = SessionState.CLOSED

    def diagnostics(self) -> SessionDiagnostics:
        """Get diagnostic information about the session."""
        return SessionDiagnostics(
            name=self._name,
            database=self._database,
            state=self.state,
            is_valid=self._is_valid,
            created_at=self._created_at,
            last_used_at=self._last_used_at,
            idle_time=self.idle_time(),
            use_count=self._use_count,
            ping_count=self._ping_count,
        )

    def idle_time(self, *, now: Timestamp | None = None) -> float:
        """Return the seconds elapsed since the session was last used."""
        now = now if now is not None else get_timestamp()
        return max(0.0, now - self._last_used_at)

    def invalidate(self) -> None:
        """Mark the session as no longer existing on the server."""
        if self._is_valid:
            logger.info("Session %s invalidated", self._name)
        self._is_valid = False
        self.state = SessionState.INVALID

    async def keepalive(self) -> None:
        """Ping the session to refresh its server-side idle timer."""
        self._ping_count += 1
        try:
            await self._gateway.get_session(name=self._name)
        except NotFound as e:
            self.invalidate()
            raise SessionInvalidError(f"Session not found on keepalive: {e.message}", session_name=self._name) from e
        self._last_used_at = get_timestamp()

    def mark_used(self) -> None:
        """Record activity on the session."""
        self._use_count += 1
        self._last_used_at = get_timestamp()

    def __repr__(self) -> str:
        """Provide a developer-friendly representation."""
        return f"<Session name={self._name} state={self.state}>"

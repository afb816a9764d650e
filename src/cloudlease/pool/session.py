"""A pool of Spanner sessions with warm-up and keepalive."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Self

from cloudlease.config import PoolConfig
from cloudlease.exceptions import SessionInvalidError
from cloudlease.monitor.keepalive import SessionKeepalive
from cloudlease.pool._base import _AsyncObjectPool
from cloudlease.session.session import Session, SessionDiagnostics
from cloudlease.types import DatabasePath, SessionState, SpannerGatewayProtocol, Timeout
from cloudlease.utils import get_logger, get_timestamp

__all__: list[str] = ["KeepaliveResult", "PoolDiagnostics", "SessionPool"]

logger = get_logger(name=__name__)


@dataclass(kw_only=True)
class KeepaliveResult:
    """The outcome of one keepalive sweep."""

    pinged: int = 0
    expired: int = 0
    failed: int = 0
    replenished: int = 0


@dataclass(kw_only=True)
class PoolDiagnostics:
    """A snapshot of session pool diagnostics."""

    database: DatabasePath
    is_closed: bool
    min_size: int
    max_size: int
    idle: int
    in_use: int
    pinging: int
    pending: int
    waiters: int
    total_created: int
    total_discarded: int
    total_abandoned: int
    creation_failures: int
    acquisitions: int
    acquisition_timeouts: int


class SessionPool(_AsyncObjectPool[Session]):
    """Lease Spanner sessions to callers and keep idle ones alive."""

    def __init__(
        self, *, gateway: SpannerGatewayProtocol, database: DatabasePath, config: PoolConfig | None = None
    ) -> None:
        """Initialize the session pool."""
        self._config = config if config is not None else PoolConfig()
        super().__init__(
            max_size=self._config.max_size,
            min_size=self._config.min_size,
            factory=self._create_session,
            acquisition_timeout=self._config.acquisition_timeout,
            shutdown_timeout=self._config.shutdown_timeout,
        )
        self._gateway = gateway
        self._database = database
        self._keepalive = SessionKeepalive(
            pool=self, interval=self._config.keepalive_interval, threshold=self._config.keepalive_threshold
        )

    @property
    def config(self) -> PoolConfig:
        """Get the pool configuration."""
        return self._config

    @property
    def database(self) -> DatabasePath:
        """Get the database the pooled sessions belong to."""
        return self._database

    @property
    def keepalive_task(self) -> SessionKeepalive:
        """Get the background keepalive task owned by this pool."""
        return self._keepalive

    async def __aenter__(self) -> Self:
        """Activate the pool and start its keepalive task."""
        activating = self._condition is None
        await super().__aenter__()
        if activating:
            await self._keepalive.__aenter__()
            logger.info(
                "Session pool for %s started (min=%d, max=%d)", self._database, self._min_size, self._max_size
            )
        return self

    async def checkin(self, session: Session) -> None:
        """Return a leased session; invalid sessions are dropped and replaced."""
        await self.release(session)

    async def checkout(self, *, timeout: Timeout = None) -> Session:
        """Lease a session, waiting up to the acquisition timeout."""
        return await self.acquire(timeout=timeout)

    def diagnostics(self) -> PoolDiagnostics:
        """Get diagnostic information about the pool."""
        return PoolDiagnostics(
            database=self._database,
            is_closed=self._closed,
            min_size=self._min_size,
            max_size=self._max_size,
            idle=len(self._idle),
            in_use=len(self._in_use),
            pinging=len(self._reserved),
            pending=self._pending,
            waiters=self._waiters,
            total_created=self._stats["total_created"],
            total_discarded=self._stats["total_discarded"],
            total_abandoned=self._stats["total_abandoned"],
            creation_failures=self._stats["creation_failures"],
            acquisitions=self._stats["acquisitions"],
            acquisition_timeouts=self._stats["acquisition_timeouts"],
        )

    async def keepalive(self, *, threshold: float | None = None) -> KeepaliveResult:
        """Ping every idle session unused for at least the threshold, then top the pool up."""
        threshold = self._config.keepalive_threshold if threshold is None else threshold
        now = get_timestamp()
        stale = await self._borrow_idle(predicate=lambda session: session.idle_time(now=now) >= threshold)

        result = KeepaliveResult(pinged=len(stale))
        if stale:
            outcomes = await asyncio.gather(*(self._ping(session) for session in stale), return_exceptions=True)
            result.expired = sum(1 for outcome in outcomes if outcome == SessionState.INVALID)
            result.failed = sum(1 for outcome in outcomes if not isinstance(outcome, SessionState))
        result.replenished = await self.replenish()

        if result.pinged or result.replenished:
            logger.debug(
                "Keepalive sweep for %s: pinged=%d expired=%d failed=%d replenished=%d",
                self._database,
                result.pinged,
                result.expired,
                result.failed,
                result.replenished,
            )
        return result

    def session_diagnostics(self) -> list[SessionDiagnostics]:
        """Get diagnostics for every session the pool currently owns."""
        sessions = [*self._idle, *self._in_use, *self._reserved]
        return [session.diagnostics() for session in sessions]

    async def _create_session(self) -> Session:
        """Create a session on the server and wrap it in a handle."""
        response = await self._gateway.create_session(database=self._database)
        logger.debug("Created session %s", response.name)
        return Session(name=response.name, database=self._database, gateway=self._gateway)

    async def _dispose(self, obj: Session) -> None:
        """Delete a session on the server unless it is already gone."""
        if obj.is_valid and obj.state != SessionState.CLOSED:
            await obj.delete()
        else:
            obj.state = SessionState.CLOSED

    def _is_reusable(self, obj: Session) -> bool:
        """Return False for sessions the server no longer knows."""
        return obj.is_valid

    def _on_checkin(self, obj: Session) -> None:
        """Mark the session idle."""
        obj.state = SessionState.IDLE

    def _on_checkout(self, obj: Session) -> None:
        """Mark the session leased and record the activity."""
        obj.state = SessionState.IN_USE
        obj.mark_used()

    def _on_discarded(self, obj: Session) -> None:
        """Replace a dropped session in the background."""
        logger.info("Dropped invalid session %s from pool", obj.name)
        if self._min_size > 0:
            self._spawn(self.replenish())

    async def _ping(self, session: Session) -> SessionState | None:
        """Ping one borrowed session, then return it to the pool or drop it."""
        session.state = SessionState.PINGING
        outcome: SessionState | None = None
        try:
            await session.keepalive()
            outcome = SessionState.IDLE
        except SessionInvalidError:
            outcome = SessionState.INVALID
        except Exception as e:
            logger.warning("Keepalive ping failed for session %s: %r", session.name, e)
        finally:
            await self._return_borrowed(session, keep=outcome != SessionState.INVALID)
        return outcome

    def _start_background_tasks(self) -> None:
        """Warm the pool up to its minimum size."""
        if self._min_size > 0:
            self._spawn(self.replenish())

    async def _stop_background_tasks(self) -> None:
        """Stop the keepalive task before any other background work."""
        await self._keepalive.stop()
        await super()._stop_background_tasks()

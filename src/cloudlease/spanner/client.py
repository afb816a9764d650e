"""Transactional client that leases pooled sessions around each commit."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from types import TracebackType
from typing import Any, Self

from google.api_core.exceptions import GoogleAPIError
from google.cloud import spanner_v1

from cloudlease.config import ClientConfig
from cloudlease.constants import ErrorCodes
from cloudlease.exceptions import CommitError, SessionInvalidError
from cloudlease.pool.session import PoolDiagnostics, SessionPool
from cloudlease.spanner.batch import Batch
from cloudlease.spanner.gateway import SpannerGateway
from cloudlease.spanner.mutation import ALL_ROWS, Mutations
from cloudlease.types import DatabasePath, Rows, SpannerGatewayProtocol
from cloudlease.utils import Timer, database_path, get_logger

__all__: list[str] = ["Client"]

logger = get_logger(name=__name__)


class Client:
    """Commit mutations against one database through a pool of sessions."""

    def __init__(
        self,
        *,
        gateway: SpannerGatewayProtocol,
        database: DatabasePath,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the client and its session pool."""
        self._gateway = gateway
        self._database = database
        self._config = config if config is not None else ClientConfig()
        self._pool = SessionPool(gateway=gateway, database=database, config=self._config.pool)
        self._owns_gateway = False

    @classmethod
    def connect(
        cls,
        *,
        project: str,
        instance: str,
        database: str,
        config: ClientConfig | None = None,
        credentials: Any = None,
    ) -> Self:
        """Create a client with its own gateway to the Spanner service."""
        config = config if config is not None else ClientConfig()
        gateway = SpannerGateway(credentials=credentials, emulator_host=config.emulator_host)
        client = cls(
            gateway=gateway,
            database=database_path(project=project, instance=instance, database=database),
            config=config,
        )
        client._owns_gateway = True
        return client

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._config

    @property
    def database(self) -> DatabasePath:
        """Get the fully-qualified database name."""
        return self._database

    @property
    def pool(self) -> SessionPool:
        """Get the session pool backing this client."""
        return self._pool

    async def __aenter__(self) -> Self:
        """Enter async context, activating the session pool."""
        await self._pool.__aenter__()
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Exit async context, closing the client."""
        await self.close()

    def batch(self) -> Batch:
        """Collect mutations in an async block and commit them together on exit."""
        return Batch(client=self)

    async def close(self) -> None:
        """Close the session pool and, if owned, the gateway."""
        try:
            await self._pool.close()
        finally:
            if self._owns_gateway:
                self._owns_gateway = False
                await self._gateway.close()

    async def commit(self, mutations: Iterable[spanner_v1.Mutation]) -> datetime.datetime:
        """Commit mutations in one single-use read-write transaction and return the commit time."""
        mutation_list = list(mutations)
        if not mutation_list:
            raise ValueError("Cannot commit an empty list of mutations")

        transaction = spanner_v1.TransactionOptions(read_write=spanner_v1.TransactionOptions.ReadWrite())
        attempts = self._config.max_session_retries + 1
        last_error: SessionInvalidError | None = None

        with Timer(name=f"commit of {len(mutation_list)} mutation(s)"):
            for _ in range(attempts):
                try:
                    async with self._pool.get() as session:
                        response = await session.commit(mutations=mutation_list, transaction=transaction)
                except SessionInvalidError as e:
                    last_error = e
                    logger.info("Session %s expired during commit, retrying on another session", e.session_name)
                    continue
                except GoogleAPIError as e:
                    raise CommitError(f"Commit failed: {e}", original_exception=e) from e
                return response.commit_timestamp

        raise CommitError(
            f"Commit failed: no live session after {attempts} attempt(s)",
            session_name=last_error.session_name if last_error else None,
            original_exception=last_error,
            error_code=ErrorCodes.NOT_FOUND,
        ) from last_error

    async def delete(self, table: str, keys: Any = ALL_ROWS) -> datetime.datetime:
        """Delete rows by key, key range, or every row, and commit immediately."""
        return await self.commit(Mutations().delete(table, keys))

    def diagnostics(self) -> PoolDiagnostics:
        """Get diagnostic information about the client's session pool."""
        return self._pool.diagnostics()

    async def insert(self, table: str, rows: Rows) -> datetime.datetime:
        """Insert rows and commit immediately."""
        return await self.commit(Mutations().insert(table, rows))

    async def replace(self, table: str, rows: Rows) -> datetime.datetime:
        """Replace rows and commit immediately."""
        return await self.commit(Mutations().replace(table, rows))

    async def update(self, table: str, rows: Rows) -> datetime.datetime:
        """Update rows and commit immediately."""
        return await self.commit(Mutations().update(table, rows))

    async def upsert(self, table: str, rows: Rows) -> datetime.datetime:
        """Insert or update rows and commit immediately."""
        return await self.commit(Mutations().upsert(table, rows))

    save = upsert

    def __repr__(self) -> str:
        """Provide a developer-friendly representation."""
        return f"<Client database={self._database} closed={self._pool.is_closed}>"

"""Spanner RPC gateway backed by the generated asyncio client."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import grpc
from google.cloud import spanner_v1
from google.cloud.spanner_v1.services.spanner import SpannerAsyncClient
from google.cloud.spanner_v1.services.spanner.transports.grpc_asyncio import SpannerGrpcAsyncIOTransport

from cloudlease.constants import RESOURCE_PREFIX_HEADER, SPANNER_EMULATOR_ENV
from cloudlease.types import DatabasePath, SessionName
from cloudlease.utils import get_logger

__all__: list[str] = ["SpannerGateway"]

logger = get_logger(name=__name__)


class SpannerGateway:
    """Issue the session and commit RPCs used by the pool and client."""

    def __init__(
        self,
        *,
        credentials: Any = None,
        emulator_host: str | None = None,
        client: SpannerAsyncClient | None = None,
    ) -> None:
        """Initialize the gateway, connecting to an emulator when one is configured."""
        if client is not None:
            self._client = client
            return

        emulator_host = emulator_host or os.environ.get(SPANNER_EMULATOR_ENV)
        if emulator_host:
            logger.info("Using Spanner emulator at %s", emulator_host)
            transport = SpannerGrpcAsyncIOTransport(channel=grpc.aio.insecure_channel(emulator_host))
            self._client = SpannerAsyncClient(transport=transport)
        else:
            self._client = SpannerAsyncClient(credentials=credentials)

    async def close(self) -> None:
        """Close the underlying gRPC channel."""
        await self._client.transport.close()

    async def commit(
        self,
        *,
        session: SessionName,
        mutations: Sequence[spanner_v1.Mutation],
        single_use_transaction: spanner_v1.TransactionOptions,
    ) -> spanner_v1.CommitResponse:
        """Commit mutations in a single-use transaction."""
        request = spanner_v1.CommitRequest(
            session=session, mutations=list(mutations), single_use_transaction=single_use_transaction
        )
        return await self._client.commit(request=request, metadata=_routing_metadata(session))

    async def create_session(self, *, database: DatabasePath) -> spanner_v1.Session:
        """Create a new server-side session."""
        request = spanner_v1.CreateSessionRequest(database=database)
        return await self._client.create_session(request=request, metadata=_routing_metadata(database))

    async def delete_session(self, *, name: SessionName) -> None:
        """Delete a server-side session."""
        request = spanner_v1.DeleteSessionRequest(name=name)
        await self._client.delete_session(request=request, metadata=_routing_metadata(name))

    async def get_session(self, *, name: SessionName) -> spanner_v1.Session:
        """Fetch a session, refreshing its server-side idle timer."""
        request = spanner_v1.GetSessionRequest(name=name)
        return await self._client.get_session(request=request, metadata=_routing_metadata(name))


def _routing_metadata(resource: str) -> list[tuple[str, str]]:
    """Return the header that routes a request to its database."""
    database, _, _ = resource.partition("/sessions/")
    return [(RESOURCE_PREFIX_HEADER, database)]

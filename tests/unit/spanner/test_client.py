"""Unit tests for the cloudlease.spanner.client module."""

import datetime
import itertools
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from google.api_core.exceptions import Aborted, NotFound, RetryError
from google.cloud import spanner_v1
from pytest_mock import MockerFixture

from cloudlease import Batch, Client, ClientConfig, CommitError, ErrorCodes, PoolClosedError, PoolConfig
from cloudlease.spanner import KeyRange, Mutations

DATABASE = "projects/p/instances/i/databases/d"
COMMIT_TIME = datetime.datetime(2024, 5, 1, 12, 0, tzinfo=datetime.timezone.utc)


def operations(mutations: list[spanner_v1.Mutation]) -> list[str]:
    return [spanner_v1.Mutation.pb(mutation).WhichOneof("operation") for mutation in mutations]


class TestClient:
    @pytest.fixture
    def mock_gateway(self, mocker: MockerFixture) -> AsyncMock:
        gateway = mocker.AsyncMock()
        counter = itertools.count(1)

        async def create_session(*, database: str) -> spanner_v1.Session:
            return spanner_v1.Session(name=f"{database}/sessions/s{next(counter)}")

        gateway.create_session.side_effect = create_session
        gateway.commit.return_value = spanner_v1.CommitResponse(commit_timestamp=COMMIT_TIME)
        return gateway

    @pytest.fixture
    def config(self) -> ClientConfig:
        return ClientConfig(pool=PoolConfig(min_size=0, max_size=2, keepalive_interval=3600.0))

    @pytest_asyncio.fixture
    async def client(self, mock_gateway: AsyncMock, config: ClientConfig) -> AsyncGenerator[Client, None]:
        async with Client(gateway=mock_gateway, database=DATABASE, config=config) as client:
            yield client

    def test_initialization(self, mock_gateway: AsyncMock, config: ClientConfig) -> None:
        client = Client(gateway=mock_gateway, database=DATABASE, config=config)

        assert client.database == DATABASE
        assert client.config is config
        assert client.pool.max_size == 2
        assert repr(client) == f"<Client database={DATABASE} closed=False>"

    @pytest.mark.asyncio
    async def test_commit_returns_timestamp(self, client: Client, mock_gateway: AsyncMock) -> None:
        mutations = Mutations().insert("Users", {"id": 1})

        committed_at = await client.commit(mutations)

        assert committed_at == COMMIT_TIME
        kwargs = mock_gateway.commit.await_args.kwargs
        assert kwargs["session"] == f"{DATABASE}/sessions/s1"
        assert kwargs["mutations"] == mutations.to_list()
        assert kwargs["single_use_transaction"] == spanner_v1.TransactionOptions(
            read_write=spanner_v1.TransactionOptions.ReadWrite()
        )
        assert client.pool.in_use_count == 0
        assert client.pool.idle_count == 1

    @pytest.mark.asyncio
    async def test_commit_empty(self, client: Client, mock_gateway: AsyncMock) -> None:
        with pytest.raises(ValueError, match="empty list of mutations"):
            await client.commit([])

        mock_gateway.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batch_commits_five_mutations_once(self, client: Client, mock_gateway: AsyncMock) -> None:
        in_use_before = client.pool.in_use_count

        async with client.batch() as batch:
            batch.update("Users", [{"id": 1, "name": "a"}])
            batch.insert("Users", [{"id": 2, "name": "b"}])
            batch.upsert("Users", [{"id": 3, "name": "c"}])
            batch.replace("Users", [{"id": 4, "name": "d"}])
            batch.delete("Users", [1, 2, 3, 4, 5])

        mock_gateway.commit.assert_awaited_once()
        sent = mock_gateway.commit.await_args.kwargs["mutations"]
        assert operations(sent) == ["update", "insert", "insert_or_update", "replace", "delete"]
        assert len(spanner_v1.Mutation.pb(sent[4]).delete.key_set.keys) == 5
        assert batch.committed_at == COMMIT_TIME
        assert client.pool.in_use_count == in_use_before

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, client: Client, mock_gateway: AsyncMock) -> None:
        cause = Aborted("Transaction was aborted")
        mock_gateway.commit.side_effect = cause
        in_use_before = client.pool.in_use_count

        with pytest.raises(CommitError) as exc_info:
            await client.insert("Users", {"id": 1})

        assert exc_info.value.original_exception is cause
        assert exc_info.value.error_code == ErrorCodes.ABORTED
        assert exc_info.value.__cause__ is cause
        assert client.pool.in_use_count == in_use_before
        assert client.pool.idle_count == 1

    @pytest.mark.asyncio
    async def test_retry_deadline_is_wrapped(self, client: Client, mock_gateway: AsyncMock) -> None:
        cause = RetryError("Deadline exceeded", cause=None)
        mock_gateway.commit.side_effect = cause
        in_use_before = client.pool.in_use_count

        with pytest.raises(CommitError, match="Deadline exceeded") as exc_info:
            await client.insert("Users", {"id": 1})

        assert exc_info.value.original_exception is cause
        assert exc_info.value.error_code == ErrorCodes.DEADLINE_EXCEEDED
        assert exc_info.value.is_retriable
        assert client.pool.in_use_count == in_use_before
        assert client.pool.idle_count == 1

    @pytest.mark.asyncio
    async def test_expired_session_is_retried(self, client: Client, mock_gateway: AsyncMock) -> None:
        mock_gateway.commit.side_effect = [
            NotFound(f"Session not found: {DATABASE}/sessions/s1"),
            spanner_v1.CommitResponse(commit_timestamp=COMMIT_TIME),
        ]

        committed_at = await client.upsert("Users", {"id": 1})

        assert committed_at == COMMIT_TIME
        sessions = [call.kwargs["session"] for call in mock_gateway.commit.await_args_list]
        assert sessions == [f"{DATABASE}/sessions/s1", f"{DATABASE}/sessions/s2"]
        assert client.diagnostics().total_discarded == 1
        assert client.pool.in_use_count == 0

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, mock_gateway: AsyncMock) -> None:
        config = ClientConfig(pool=PoolConfig(min_size=0, max_size=2), max_session_retries=1)
        mock_gateway.commit.side_effect = NotFound("Session not found")

        async with Client(gateway=mock_gateway, database=DATABASE, config=config) as client:
            with pytest.raises(CommitError, match="no live session after 2 attempt") as exc_info:
                await client.update("Users", {"id": 1})

        assert exc_info.value.error_code == ErrorCodes.NOT_FOUND
        assert mock_gateway.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_table_not_found_is_not_retried(self, client: Client, mock_gateway: AsyncMock) -> None:
        mock_gateway.commit.side_effect = NotFound("Table not found: Users")

        with pytest.raises(CommitError) as exc_info:
            await client.insert("Users", {"id": 1})

        assert exc_info.value.error_code == ErrorCodes.NOT_FOUND
        mock_gateway.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_after_close(self, client: Client) -> None:
        await client.close()

        with pytest.raises(PoolClosedError):
            await client.insert("Users", {"id": 1})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, operation",
        [
            ("insert", "insert"),
            ("update", "update"),
            ("upsert", "insert_or_update"),
            ("save", "insert_or_update"),
            ("replace", "replace"),
        ],
    )
    async def test_single_write_helpers(
        self, client: Client, mock_gateway: AsyncMock, method: str, operation: str
    ) -> None:
        await getattr(client, method)("Users", [{"id": 1}, {"id": 2}])

        sent = mock_gateway.commit.await_args.kwargs["mutations"]
        assert operations(sent) == [operation]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args, expect_all, key_count, range_count",
        [
            ((), True, 0, 0),
            (([1, 2, 3],), False, 3, 0),
            ((7,), False, 1, 0),
            ((range(1, 101),), False, 0, 1),
            ((KeyRange(start=1, end=100),), False, 0, 1),
        ],
    )
    async def test_delete_forms(
        self,
        client: Client,
        mock_gateway: AsyncMock,
        args: tuple[object, ...],
        expect_all: bool,
        key_count: int,
        range_count: int,
    ) -> None:
        await client.delete("Users", *args)

        sent = mock_gateway.commit.await_args.kwargs["mutations"]
        key_set = spanner_v1.Mutation.pb(sent[0]).delete.key_set
        assert key_set.all is expect_all
        assert len(key_set.keys) == key_count
        assert len(key_set.ranges) == range_count

    @pytest.mark.asyncio
    async def test_close_deletes_sessions(self, mock_gateway: AsyncMock, config: ClientConfig) -> None:
        client = Client(gateway=mock_gateway, database=DATABASE, config=config)
        async with client:
            await client.insert("Users", {"id": 1})

        mock_gateway.delete_session.assert_awaited_once_with(name=f"{DATABASE}/sessions/s1")
        mock_gateway.close.assert_not_awaited()
        assert client.pool.is_closed

    def test_batch_factory(self, mock_gateway: AsyncMock) -> None:
        client = Client(gateway=mock_gateway, database=DATABASE)

        batch = client.batch()

        assert isinstance(batch, Batch)
        assert len(batch) == 0

    @pytest.mark.asyncio
    async def test_connect_owns_gateway(self, mocker: MockerFixture) -> None:
        mock_gateway_cls = mocker.patch("cloudlease.spanner.client.SpannerGateway")
        mock_gateway_cls.return_value.close = mocker.AsyncMock()
        config = ClientConfig(emulator_host="localhost:9010")

        client = Client.connect(project="p", instance="i", database="d", config=config)
        await client.close()

        assert client.database == DATABASE
        mock_gateway_cls.assert_called_once_with(credentials=None, emulator_host="localhost:9010")
        mock_gateway_cls.return_value.close.assert_awaited_once()

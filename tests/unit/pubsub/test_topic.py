"""Unit tests for the cloudlease.pubsub.topic module."""

from unittest.mock import AsyncMock

import pytest
from google import pubsub_v1
from google.api_core.exceptions import AlreadyExists, NotFound, RetryError, ServiceUnavailable
from pytest_mock import MockerFixture

from cloudlease import ErrorCodes, PubsubError
from cloudlease.pubsub import Subscription, Topic

TOPIC = "projects/p/topics/events"
SUBSCRIPTION = "projects/p/subscriptions/workers"


class TestTopic:
    @pytest.fixture
    def mock_gateway(self, mocker: MockerFixture) -> AsyncMock:
        gateway = mocker.AsyncMock()
        gateway.get_topic.return_value = pubsub_v1.Topic(name=TOPIC)
        gateway.publish.return_value = ["m-1"]
        gateway.create_subscription.return_value = pubsub_v1.Subscription(
            name=SUBSCRIPTION, topic=TOPIC, ack_deadline_seconds=20
        )
        return gateway

    @pytest.fixture
    def topic(self, mock_gateway: AsyncMock) -> Topic:
        return Topic.lazy(path=TOPIC, gateway=mock_gateway)

    def test_lazy_handle(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        assert topic.is_lazy
        assert topic.path == TOPIC
        assert topic.name == "events"
        assert topic.project_id == "p"
        assert repr(topic) == f"<Topic path={TOPIC} lazy=True>"
        mock_gateway.get_topic.assert_not_called()

    def test_from_resource(self, mock_gateway: AsyncMock) -> None:
        topic = Topic.from_resource(pubsub_v1.Topic(name=TOPIC), gateway=mock_gateway)

        assert not topic.is_lazy
        assert topic.path == TOPIC

    @pytest.mark.asyncio
    async def test_reload(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        result = await topic.reload()

        assert result is topic
        assert not topic.is_lazy
        mock_gateway.get_topic.assert_awaited_once_with(topic=TOPIC)

    @pytest.mark.asyncio
    async def test_reload_wraps_transport_errors(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.get_topic.side_effect = ServiceUnavailable("down")

        with pytest.raises(PubsubError, match="Failed to load"):
            await topic.reload()

    @pytest.mark.asyncio
    async def test_exists(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        assert await topic.exists()

        mock_gateway.get_topic.side_effect = NotFound("Resource not found")
        assert not await topic.exists()

    @pytest.mark.asyncio
    async def test_delete(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        await topic.delete()

        mock_gateway.delete_topic.assert_awaited_once_with(topic=TOPIC)

    @pytest.mark.asyncio
    async def test_delete_missing_topic(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.delete_topic.side_effect = NotFound("Resource not found")

        with pytest.raises(PubsubError, match=f"Failed to delete {TOPIC}"):
            await topic.delete()

    @pytest.mark.asyncio
    async def test_publish(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        message_id = await topic.publish("hello", kind="greeting")

        assert message_id == "m-1"
        kwargs = mock_gateway.publish.await_args.kwargs
        assert kwargs["topic"] == TOPIC
        assert kwargs["messages"] == [pubsub_v1.PubsubMessage(data=b"hello", attributes={"kind": "greeting"})]

    @pytest.mark.asyncio
    async def test_publish_batch(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.publish.return_value = ["m-1", "m-2"]

        message_ids = await topic.publish_batch([b"raw", ("text", {"n": 2})])

        assert message_ids == ["m-1", "m-2"]
        messages = mock_gateway.publish.await_args.kwargs["messages"]
        assert messages[0] == pubsub_v1.PubsubMessage(data=b"raw")
        assert messages[1] == pubsub_v1.PubsubMessage(data=b"text", attributes={"n": "2"})

    @pytest.mark.asyncio
    async def test_publish_batch_empty(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        assert await topic.publish_batch([]) == []

        mock_gateway.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_publish_rejects_bad_data(self, topic: Topic) -> None:
        with pytest.raises(TypeError):
            await topic.publish(123)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_publish_error(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.publish.side_effect = ServiceUnavailable("down")

        with pytest.raises(PubsubError, match=f"Failed to publish to {TOPIC}"):
            await topic.publish("hello")

    @pytest.mark.asyncio
    async def test_publish_retry_deadline(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.publish.side_effect = RetryError("Deadline exceeded", cause=None)

        with pytest.raises(PubsubError, match=f"Failed to publish to {TOPIC}") as exc_info:
            await topic.publish("hello")

        assert exc_info.value.error_code == ErrorCodes.DEADLINE_EXCEEDED

    @pytest.mark.asyncio
    async def test_subscribe(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        subscription = await topic.subscribe("workers", ack_deadline=20)

        assert isinstance(subscription, Subscription)
        assert subscription.path == SUBSCRIPTION
        assert subscription.ack_deadline == 20
        assert subscription.topic_path == TOPIC
        mock_gateway.create_subscription.assert_awaited_once_with(
            name=SUBSCRIPTION, topic=TOPIC, ack_deadline_seconds=20
        )

    @pytest.mark.asyncio
    async def test_subscribe_existing(self, topic: Topic, mock_gateway: AsyncMock) -> None:
        mock_gateway.create_subscription.side_effect = AlreadyExists("Subscription already exists")

        with pytest.raises(PubsubError, match=f"Failed to create {SUBSCRIPTION}"):
            await topic.subscribe("workers")

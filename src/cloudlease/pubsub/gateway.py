"""Pub/Sub RPC gateway backed by the generated asyncio clients."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import grpc
from google import pubsub_v1
from google.pubsub_v1.services.publisher.transports.grpc_asyncio import PublisherGrpcAsyncIOTransport
from google.pubsub_v1.services.subscriber.transports.grpc_asyncio import SubscriberGrpcAsyncIOTransport

from cloudlease.constants import PUBSUB_EMULATOR_ENV
from cloudlease.utils import get_logger

__all__: list[str] = ["PubsubGateway"]

logger = get_logger(name=__name__)


class PubsubGateway:
    """Issue topic, subscription and message RPCs."""

    def __init__(
        self,
        *,
        credentials: Any = None,
        emulator_host: str | None = None,
        publisher: pubsub_v1.PublisherAsyncClient | None = None,
        subscriber: pubsub_v1.SubscriberAsyncClient | None = None,
    ) -> None:
        """Initialize the gateway, connecting to an emulator when one is configured."""
        emulator_host = emulator_host or os.environ.get(PUBSUB_EMULATOR_ENV)
        if emulator_host and (publisher is None or subscriber is None):
            logger.info("Using Pub/Sub emulator at %s", emulator_host)
        if publisher is None:
            if emulator_host:
                publisher_transport = PublisherGrpcAsyncIOTransport(channel=grpc.aio.insecure_channel(emulator_host))
                publisher = pubsub_v1.PublisherAsyncClient(transport=publisher_transport)
            else:
                publisher = pubsub_v1.PublisherAsyncClient(credentials=credentials)
        if subscriber is None:
            if emulator_host:
                subscriber_transport = SubscriberGrpcAsyncIOTransport(channel=grpc.aio.insecure_channel(emulator_host))
                subscriber = pubsub_v1.SubscriberAsyncClient(transport=subscriber_transport)
            else:
                subscriber = pubsub_v1.SubscriberAsyncClient(credentials=credentials)
        self._publisher = publisher
        self._subscriber = subscriber

    async def acknowledge(self, *, subscription: str, ack_ids: Sequence[str]) -> None:
        """Acknowledge received messages."""
        request = pubsub_v1.AcknowledgeRequest(subscription=subscription, ack_ids=list(ack_ids))
        await self._subscriber.acknowledge(request=request)

    async def close(self) -> None:
        """Close both underlying gRPC channels."""
        await self._publisher.transport.close()
        await self._subscriber.transport.close()

    async def create_subscription(
        self, *, name: str, topic: str, ack_deadline_seconds: int | None = None
    ) -> pubsub_v1.Subscription:
        """Create a subscription attached to a topic."""
        request = pubsub_v1.Subscription(name=name, topic=topic, ack_deadline_seconds=ack_deadline_seconds or 0)
        return await self._subscriber.create_subscription(request=request)

    async def create_topic(self, *, name: str) -> pubsub_v1.Topic:
        """Create a topic."""
        return await self._publisher.create_topic(request=pubsub_v1.Topic(name=name))

    async def delete_subscription(self, *, subscription: str) -> None:
        """Delete a subscription."""
        request = pubsub_v1.DeleteSubscriptionRequest(subscription=subscription)
        await self._subscriber.delete_subscription(request=request)

    async def delete_topic(self, *, topic: str) -> None:
        """Delete a topic."""
        await self._publisher.delete_topic(request=pubsub_v1.DeleteTopicRequest(topic=topic))

    async def get_subscription(self, *, subscription: str) -> pubsub_v1.Subscription:
        """Fetch a subscription."""
        request = pubsub_v1.GetSubscriptionRequest(subscription=subscription)
        return await self._subscriber.get_subscription(request=request)

    async def get_topic(self, *, topic: str) -> pubsub_v1.Topic:
        """Fetch a topic."""
        return await self._publisher.get_topic(request=pubsub_v1.GetTopicRequest(topic=topic))

    async def publish(self, *, topic: str, messages: Sequence[pubsub_v1.PubsubMessage]) -> list[str]:
        """Publish messages and return their server-assigned IDs."""
        request = pubsub_v1.PublishRequest(topic=topic, messages=list(messages))
        response = await self._publisher.publish(request=request)
        return list(response.message_ids)

    async def pull(self, *, subscription: str, max_messages: int) -> list[pubsub_v1.ReceivedMessage]:
        """Pull up to max_messages pending messages."""
        request = pubsub_v1.PullRequest(subscription=subscription, max_messages=max_messages)
        response = await self._subscriber.pull(request=request)
        return list(response.received_messages)

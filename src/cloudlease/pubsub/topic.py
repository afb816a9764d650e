"""Object model for a Pub/Sub topic."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Self

from google import pubsub_v1
from google.api_core.exceptions import NotFound

from cloudlease.pubsub.message import ensure_bytes, translate_errors
from cloudlease.pubsub.subscription import Subscription
from cloudlease.types import PubsubGatewayProtocol
from cloudlease.utils import get_logger, resource_id, subscription_path

__all__: list[str] = ["Topic"]

logger = get_logger(name=__name__)


class Topic:
    """A topic handle, either loaded from the service or lazy."""

    def __init__(self, *, path: str, gateway: PubsubGatewayProtocol, resource: pubsub_v1.Topic | None = None) -> None:
        """Initialize the topic handle."""
        self._path = path
        self._gateway = gateway
        self._resource = resource

    @classmethod
    def from_resource(cls, resource: pubsub_v1.Topic, *, gateway: PubsubGatewayProtocol) -> Self:
        """Wrap a topic returned by the service."""
        return cls(path=resource.name, gateway=gateway, resource=resource)

    @classmethod
    def lazy(cls, *, path: str, gateway: PubsubGatewayProtocol) -> Self:
        """Reference a topic by name without contacting the service."""
        return cls(path=path, gateway=gateway)

    @property
    def is_lazy(self) -> bool:
        """Return True if the topic has not been loaded from the service."""
        return self._resource is None

    @property
    def name(self) -> str:
        """Get the short topic name."""
        return resource_id(path=self._path)

    @property
    def path(self) -> str:
        """Get the fully-qualified topic name."""
        return self._path

    @property
    def project_id(self) -> str:
        """Get the project that owns the topic."""
        return self._path.split("/")[1]

    async def delete(self) -> None:
        """Delete the topic."""
        with translate_errors(resource=self._path, action="delete"):
            await self._gateway.delete_topic(topic=self._path)
        logger.info("Deleted topic %s", self._path)

    async def exists(self) -> bool:
        """Return True if the topic exists on the service."""
        try:
            await self.reload()
        except NotFound:
            return False
        return True

    async def publish(self, data: str | bytes, **attributes: str) -> str:
        """Publish one message and return its message ID."""
        message_ids = await self.publish_batch([(data, attributes)])
        return message_ids[0]

    async def publish_batch(self, messages: Iterable[Any]) -> list[str]:
        """Publish several messages in one request.

        Each item is either the message data, or a ``(data, attributes)`` pair.
        """
        pb_messages = [_to_pubsub_message(item) for item in messages]
        if not pb_messages:
            return []
        with translate_errors(resource=self._path, action="publish to"):
            message_ids = await self._gateway.publish(topic=self._path, messages=pb_messages)
        logger.debug("Published %d message(s) to %s", len(message_ids), self._path)
        return message_ids

    async def reload(self) -> Self:
        """Load the topic from the service, raising NotFound if it is gone."""
        with translate_errors(resource=self._path, action="load", allow_not_found=True):
            self._resource = await self._gateway.get_topic(topic=self._path)
        return self

    async def subscribe(self, name: str, *, ack_deadline: int | None = None) -> Subscription:
        """Create a subscription to this topic."""
        path = subscription_path(project=self.project_id, subscription=name)
        with translate_errors(resource=path, action="create"):
            resource = await self._gateway.create_subscription(
                name=path, topic=self._path, ack_deadline_seconds=ack_deadline
            )
        return Subscription.from_resource(resource, gateway=self._gateway)

    def __repr__(self) -> str:
        """Provide a developer-friendly representation."""
        return f"<Topic path={self._path} lazy={self.is_lazy}>"


def _to_pubsub_message(item: Any) -> pubsub_v1.PubsubMessage:
    """Build a wire message from data or a (data, attributes) pair."""
    attributes: Mapping[str, str] = {}
    if isinstance(item, tuple):
        item, attributes = item
    return pubsub_v1.PubsubMessage(data=ensure_bytes(item), attributes={str(k): str(v) for k, v in attributes.items()})

"""Object model for a Pub/Sub subscription."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from google.api_core.exceptions import NotFound

from cloudlease.constants import DEFAULT_PULL_MAX_MESSAGES
from cloudlease.pubsub.message import ReceivedMessage, translate_errors
from cloudlease.types import PubsubGatewayProtocol
from cloudlease.utils import get_logger, resource_id

if TYPE_CHECKING:
    from google import pubsub_v1


__all__: list[str] = ["Subscription"]

logger = get_logger(name=__name__)


class Subscription:
    """A subscription handle, either loaded from the service or lazy."""

    def __init__(
        self, *, path: str, gateway: PubsubGatewayProtocol, resource: pubsub_v1.Subscription | None = None
    ) -> None:
        """Initialize the subscription handle."""
        self._path = path
        self._gateway = gateway
        self._resource = resource

    @classmethod
    def from_resource(cls, resource: pubsub_v1.Subscription, *, gateway: PubsubGatewayProtocol) -> Self:
        """Wrap a subscription returned by the service."""
        return cls(path=resource.name, gateway=gateway, resource=resource)

    @classmethod
    def lazy(cls, *, path: str, gateway: PubsubGatewayProtocol) -> Self:
        """Reference a subscription by name without contacting the service."""
        return cls(path=path, gateway=gateway)

    @property
    def ack_deadline(self) -> int | None:
        """Get the acknowledgement deadline in seconds, if loaded."""
        return self._resource.ack_deadline_seconds if self._resource is not None else None

    @property
    def is_lazy(self) -> bool:
        """Return True if the subscription has not been loaded from the service."""
        return self._resource is None

    @property
    def name(self) -> str:
        """Get the short subscription name."""
        return resource_id(path=self._path)

    @property
    def path(self) -> str:
        """Get the fully-qualified subscription name."""
        return self._path

    @property
    def topic_path(self) -> str | None:
        """Get the fully-qualified name of the subscribed topic, if loaded."""
        return self._resource.topic if self._resource is not None else None

    async def acknowledge(self, *messages: ReceivedMessage | str) -> None:
        """Acknowledge messages, given as ReceivedMessage objects or raw ack IDs."""
        ack_ids = [message.ack_id if isinstance(message, ReceivedMessage) else message for message in messages]
        if not ack_ids:
            return
        with translate_errors(resource=self._path, action="acknowledge messages on"):
            await self._gateway.acknowledge(subscription=self._path, ack_ids=ack_ids)

    async def delete(self) -> None:
        """Delete the subscription."""
        with translate_errors(resource=self._path, action="delete"):
            await self._gateway.delete_subscription(subscription=self._path)
        logger.info("Deleted subscription %s", self._path)

    async def exists(self) -> bool:
        """Return True if the subscription exists on the service."""
        try:
            await self.reload()
        except NotFound:
            return False
        return True

    async def pull(self, *, max_messages: int = DEFAULT_PULL_MAX_MESSAGES) -> list[ReceivedMessage]:
        """Pull pending messages."""
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")
        with translate_errors(resource=self._path, action="pull from"):
            received = await self._gateway.pull(subscription=self._path, max_messages=max_messages)
        return [ReceivedMessage.from_pb(item, subscription=self) for item in received]

    async def reload(self) -> Self:
        """Load the subscription from the service, raising NotFound if it is gone."""
        with translate_errors(resource=self._path, action="load", allow_not_found=True):
            self._resource = await self._gateway.get_subscription(subscription=self._path)
        return self

    def __repr__(self) -> str:
        """Provide a developer-friendly representation."""
        return f"<Subscription path={self._path} lazy={self.is_lazy}>"

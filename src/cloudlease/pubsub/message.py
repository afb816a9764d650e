"""Messages delivered to a subscription."""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import GoogleAPIError, NotFound

from cloudlease.exceptions import PubsubError

if TYPE_CHECKING:
    from google import pubsub_v1

    from cloudlease.pubsub.subscription import Subscription


__all__: list[str] = ["ReceivedMessage", "ensure_bytes", "translate_errors"]


@dataclass(kw_only=True)
class ReceivedMessage:
    """A message pulled from a subscription, awaiting acknowledgement."""

    ack_id: str
    message_id: str
    data: bytes
    attributes: dict[str, str] = field(default_factory=dict)
    publish_time: datetime.datetime | None = None
    subscription: Subscription | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_pb(
        cls, received: pubsub_v1.ReceivedMessage, *, subscription: Subscription | None = None
    ) -> ReceivedMessage:
        """Build a message from its wire representation."""
        message = received.message
        return cls(
            ack_id=received.ack_id,
            message_id=message.message_id,
            data=bytes(message.data),
            attributes=dict(message.attributes),
            publish_time=message.publish_time,
            subscription=subscription,
        )

    async def acknowledge(self) -> None:
        """Acknowledge this message on the subscription it came from."""
        if self.subscription is None:
            raise PubsubError("Message is not bound to a subscription", resource=self.message_id)
        await self.subscription.acknowledge(self)


def ensure_bytes(data: Any) -> bytes:
    """Return message data as bytes, encoding text as UTF-8."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Message data must be str or bytes, not {type(data).__name__}")


@contextmanager
def translate_errors(*, resource: str, action: str, allow_not_found: bool = False) -> Iterator[None]:
    """Re-raise transport errors from a Pub/Sub call as PubsubError."""
    try:
        yield
    except GoogleAPIError as e:
        if allow_not_found and isinstance(e, NotFound):
            raise
        raise PubsubError(f"Failed to {action} {resource}: {e}", resource=resource, original_exception=e) from e

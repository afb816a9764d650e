"""Pub/Sub topics, subscriptions and messages."""

from .gateway import PubsubGateway
from .message import ReceivedMessage
from .project import Project
from .subscription import Subscription
from .topic import Topic

__all__: list[str] = ["Project", "PubsubGateway", "ReceivedMessage", "Subscription", "Topic"]

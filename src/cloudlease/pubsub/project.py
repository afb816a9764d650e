"""Entry point for the Pub/Sub object model."""

from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Self

from google.api_core.exceptions import NotFound

from cloudlease.constants import PROJECT_ENV
from cloudlease.exceptions import ConfigurationError
from cloudlease.pubsub.gateway import PubsubGateway
from cloudlease.pubsub.message import translate_errors
from cloudlease.pubsub.subscription import Subscription
from cloudlease.pubsub.topic import Topic
from cloudlease.types import PubsubGatewayProtocol
from cloudlease.utils import get_logger, subscription_path, topic_path

__all__: list[str] = ["Project"]

logger = get_logger(name=__name__)


class Project:
    """Look up and create topics and subscriptions within one project."""

    def __init__(self, *, gateway: PubsubGatewayProtocol, project_id: str) -> None:
        """Initialize the project."""
        if not project_id:
            raise ConfigurationError("A project ID is required", config_key="project")
        self._gateway = gateway
        self._project_id = project_id
        self._owns_gateway = False

    @classmethod
    def connect(
        cls, *, project: Any = None, emulator_host: str | None = None, credentials: Any = None
    ) -> Self:
        """Create a project backed by its own gateway."""
        if project is None:
            project = os.environ.get(PROJECT_ENV)
        if not project:
            raise ConfigurationError(
                f"A project ID is required; pass one or set {PROJECT_ENV}", config_key="project"
            )
        gateway = PubsubGateway(credentials=credentials, emulator_host=emulator_host)
        instance = cls(gateway=gateway, project_id=str(project))
        instance._owns_gateway = True
        return instance

    @property
    def project_id(self) -> str:
        """Get the project ID."""
        return self._project_id

    async def __aenter__(self) -> Self:
        """Enter async context."""
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Exit async context and close the project."""
        await self.close()

    async def close(self) -> None:
        """Close the gateway if this project created it."""
        if self._owns_gateway:
            await self._gateway.close()

    async def create_topic(self, name: str) -> Topic:
        """Create a topic and return its handle."""
        path = topic_path(project=self._project_id, topic=name)
        with translate_errors(resource=path, action="create"):
            resource = await self._gateway.create_topic(name=path)
        logger.info("Created topic %s", path)
        return Topic.from_resource(resource, gateway=self._gateway)

    async def subscription(self, name: str, *, skip_lookup: bool = False) -> Subscription | None:
        """Return a subscription, or None if it does not exist."""
        path = subscription_path(project=self._project_id, subscription=name)
        subscription = Subscription.lazy(path=path, gateway=self._gateway)
        if skip_lookup:
            return subscription
        try:
            return await subscription.reload()
        except NotFound:
            return None

    async def topic(self, name: str, *, skip_lookup: bool = False) -> Topic | None:
        """Return a topic, or None if it does not exist."""
        path = topic_path(project=self._project_id, topic=name)
        topic = Topic.lazy(path=path, gateway=self._gateway)
        if skip_lookup:
            return topic
        try:
            return await topic.reload()
        except NotFound:
            return None

    def __repr__(self) -> str:
        """Provide a developer-friendly representation."""
        return f"<Project id={self._project_id}>"

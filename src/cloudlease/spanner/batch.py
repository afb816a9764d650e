"""Mutation batch committed as a single transaction."""

from __future__ import annotations

import datetime
from types import TracebackType
from typing import TYPE_CHECKING, Self

from cloudlease.spanner.mutation import Mutations
from cloudlease.utils import get_logger

if TYPE_CHECKING:
    from cloudlease.spanner.client import Client


__all__: list[str] = ["Batch"]

logger = get_logger(name=__name__)


class Batch(Mutations):
    """Collect mutations inside ``async with`` and commit them once on a clean exit."""

    def __init__(self, *, client: Client) -> None:
        """Initialize the batch."""
        super().__init__()
        self._client = client
        self.committed_at: datetime.datetime | None = None

    @property
    def is_committed(self) -> bool:
        """Return True once the batch has been committed."""
        return self.committed_at is not None

    async def __aenter__(self) -> Self:
        """Enter async context."""
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Commit on a clean exit, discard the mutations otherwise."""
        if exc_type is not None:
            logger.debug("Discarding batch of %d mutation(s) after %s", len(self), exc_type.__name__)
            self.clear()
            return
        if not self.is_committed:
            await self.commit()

    async def commit(self) -> datetime.datetime | None:
        """Commit the collected mutations; an empty batch is a no-op."""
        if self.is_committed:
            raise RuntimeError("Batch has already been committed")
        if not len(self):
            return None
        self.committed_at = await self._client.commit(self.to_list())
        return self.committed_at

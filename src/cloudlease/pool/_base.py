"""Generic, reusable asynchronous object pool."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable, Coroutine
from types import TracebackType
from typing import Any, AsyncContextManager, Generic, Self, TypeVar

from cloudlease.exceptions import PoolClosedError, PoolError, PoolExhaustedError
from cloudlease.types import Timeout
from cloudlease.utils import get_logger

__all__: list[str] = []

T = TypeVar("T")

logger = get_logger(name=__name__)


class _AsyncObjectPool(ABC, Generic[T]):
    """A bounded asynchronous object pool guarded by a single condition."""

    def __init__(
        self,
        *,
        max_size: int,
        factory: Callable[[], Awaitable[T]],
        min_size: int = 0,
        acquisition_timeout: Timeout = None,
        shutdown_timeout: Timeout = None,
    ) -> None:
        """Initialize the asynchronous object pool."""
        if max_size <= 0:
            raise ValueError("Pool max_size must be a positive integer.")
        if min_size < 0 or min_size > max_size:
            raise ValueError("Pool min_size must be between 0 and max_size.")

        self._factory = factory
        self._max_size = max_size
        self._min_size = min_size
        self._acquisition_timeout = acquisition_timeout
        self._shutdown_timeout = shutdown_timeout
        self._condition: asyncio.Condition | None = None
        self._idle: deque[T] = deque()
        self._in_use: set[T] = set()
        self._reserved: set[T] = set()
        self._pending = 0
        self._waiters = 0
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._stats = {
            "total_created": 0,
            "total_discarded": 0,
            "total_abandoned": 0,
            "creation_failures": 0,
            "acquisitions": 0,
            "acquisition_timeouts": 0,
        }
        self._closed = False

    @property
    def idle_count(self) -> int:
        """Get the number of objects ready to be acquired."""
        return len(self._idle)

    @property
    def in_use_count(self) -> int:
        """Get the number of objects currently leased."""
        return len(self._in_use)

    @property
    def is_closed(self) -> bool:
        """Return True once the pool has been closed."""
        return self._closed

    @property
    def max_size(self) -> int:
        """Get the maximum number of objects the pool may hold."""
        return self._max_size

    @property
    def min_size(self) -> int:
        """Get the number of objects the pool keeps warm."""
        return self._min_size

    @property
    def size(self) -> int:
        """Get the number of objects owned by the pool, leased or not."""
        return len(self._idle) + len(self._in_use) + len(self._reserved)

    async def __aenter__(self) -> Self:
        """Enter the async context and initialize async resources."""
        if self._closed:
            raise PoolClosedError("Cannot activate a closed pool.")
        if self._condition is None:
            self._condition = asyncio.Condition()
            self._start_background_tasks()
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Exit the async context and close the pool."""
        await self.close()

    async def acquire(self, *, timeout: Timeout = None) -> T:
        """Acquire an object, reusing an idle one or creating one, all within the timeout."""
        if self._closed:
            raise PoolClosedError("Cannot acquire from a closed pool.")
        condition = self._get_condition()
        wait_timeout = self._acquisition_timeout if timeout is None else timeout
        deadline = None if wait_timeout is None else asyncio.get_running_loop().time() + wait_timeout

        obj: T | None = None
        try:
            async with asyncio.timeout_at(deadline):
                async with condition:
                    while True:
                        if self._closed:
                            raise PoolClosedError("Pool was closed while waiting to acquire.")
                        if self._idle:
                            obj = self._idle.popleft()
                            self._lease_unsafe(obj)
                            break
                        if self._total_unsafe() < self._max_size:
                            self._pending += 1
                            break
                        self._waiters += 1
                        try:
                            await condition.wait()
                        finally:
                            self._waiters -= 1
        except asyncio.TimeoutError:
            raise self._exhausted(timeout=wait_timeout) from None

        if obj is not None:
            return obj
        return await self._create_leased(condition=condition, deadline=deadline, timeout=wait_timeout)

    async def close(self) -> None:
        """Close the pool, draining leased objects and disposing of the rest."""
        if self._closed:
            return

        self._closed = True
        logger.debug("Closing %s", self.__class__.__name__)
        await self._stop_background_tasks()

        objects_to_dispose: list[T] = []
        condition = self._condition
        if condition is None:
            objects_to_dispose = list(self._idle)
            self._idle.clear()
        else:
            async with condition:
                condition.notify_all()
                if self._in_use or self._pending:
                    try:
                        async with asyncio.timeout(self._shutdown_timeout):
                            await condition.wait_for(lambda: not self._in_use and not self._pending)
                    except asyncio.TimeoutError:
                        abandoned = len(self._in_use)
                        logger.warning(
                            "%s shutdown timed out; abandoning %d leased object(s)",
                            self.__class__.__name__,
                            abandoned,
                        )
                        self._stats["total_abandoned"] += abandoned
                        self._in_use.clear()
                objects_to_dispose = [*self._idle, *self._reserved]
                self._idle.clear()
                self._reserved.clear()

        if objects_to_dispose:
            try:
                async with asyncio.TaskGroup() as tg:
                    for obj in objects_to_dispose:
                        tg.create_task(coro=self._dispose(obj))
            except* Exception as eg:
                raise PoolError(f"Errors occurred during pool cleanup: {eg.exceptions}") from eg

    def get(self, *, timeout: Timeout = None) -> AsyncContextManager[T]:
        """Return an async context manager for acquiring and automatically releasing an object."""
        return _PooledObject(pool=self, timeout=timeout)

    async def get_stats(self) -> dict[str, Any]:
        """Get a consistent snapshot of pool statistics."""
        if self._condition is None:
            return {**self._stats, **self._counts_unsafe()}
        async with self._condition:
            return {**self._stats, **self._counts_unsafe()}

    async def release(self, obj: T) -> None:
        """Release an object, returning it to the pool or dropping it if unusable."""
        condition = self._condition
        if condition is None:
            if self._closed:
                await self._dispose(obj)
                return
            raise RuntimeError(
                f"{self.__class__.__name__} has not been activated. It must be used as an "
                "asynchronous context manager (`async with ...`)."
            )

        reusable = self._is_reusable(obj)
        async with condition:
            leased = obj in self._in_use
            if not leased and not self._closed:
                logger.warning("Ignoring release of an object that is not leased: %r", obj)
                return
            self._in_use.discard(obj)
            keep = reusable and not self._closed
            if keep:
                self._on_checkin(obj)
                self._idle.append(obj)
            elif not reusable:
                self._stats["total_discarded"] += 1
            condition.notify_all()

        if keep:
            return
        await self._dispose(obj)
        if not reusable and not self._closed:
            self._on_discarded(obj)

    async def replenish(self) -> int:
        """Create objects until the pool holds at least min_size, returning how many were added."""
        condition = self._condition
        if condition is None or self._closed:
            return 0

        async with condition:
            deficit = self._min_size - self._total_unsafe()
            if deficit <= 0:
                return 0
            self._pending += deficit

        try:
            results = await asyncio.gather(*(self._factory() for _ in range(deficit)), return_exceptions=True)
        except asyncio.CancelledError:
            async with condition:
                self._pending -= deficit
                condition.notify_all()
            raise

        created: list[T] = []
        for result in results:
            if isinstance(result, BaseException):
                logger.warning("Failed to create pooled object during replenish: %s", result)
            else:
                created.append(result)

        surplus: list[T] = []
        async with condition:
            self._pending -= deficit
            self._stats["total_created"] += len(created)
            self._stats["creation_failures"] += deficit - len(created)
            if self._closed:
                surplus = created
            else:
                for obj in created:
                    self._on_checkin(obj)
                    self._idle.append(obj)
            condition.notify_all()

        for obj in surplus:
            await self._dispose(obj)
        return len(created) - len(surplus)

    async def _borrow_idle(self, *, predicate: Callable[[T], bool]) -> list[T]:
        """Take matching idle objects out of circulation without leasing them."""
        condition = self._get_condition()
        async with condition:
            if self._closed:
                return []
            borrowed = [obj for obj in self._idle if predicate(obj)]
            for obj in borrowed:
                self._idle.remove(obj)
                self._reserved.add(obj)
        return borrowed

    async def _create_leased(
        self, *, condition: asyncio.Condition, deadline: float | None = None, timeout: Timeout = None
    ) -> T:
        """Create a new object against capacity already reserved by the caller."""
        scope = asyncio.timeout_at(deadline)
        try:
            async with scope:
                obj = await self._factory()
        except BaseException as e:
            async with condition:
                self._pending -= 1
                self._stats["creation_failures"] += 1
                condition.notify_all()
            if isinstance(e, asyncio.TimeoutError) and scope.expired():
                raise self._exhausted(timeout=timeout) from None
            raise

        async with condition:
            self._pending -= 1
            self._stats["total_created"] += 1
            closed = self._closed
            if not closed:
                self._lease_unsafe(obj)
            condition.notify_all()

        if closed:
            await self._dispose(obj)
            raise PoolClosedError("Pool was closed while creating an object.")
        return obj

    def _counts_unsafe(self) -> dict[str, int]:
        """Return membership counts (must be called within the lock)."""
        return {
            "idle": len(self._idle),
            "in_use": len(self._in_use),
            "reserved": len(self._reserved),
            "pending": self._pending,
            "waiters": self._waiters,
            "min_size": self._min_size,
            "max_size": self._max_size,
        }

    @abstractmethod
    async def _dispose(self, obj: T) -> None:
        """Dispose of a pooled object. Subclasses must implement this."""
        raise NotImplementedError

    def _exhausted(self, *, timeout: Timeout) -> PoolExhaustedError:
        """Count an acquisition timeout and build the error for it."""
        self._stats["acquisition_timeouts"] += 1
        return PoolExhaustedError(
            f"No pooled object available within {timeout}s", timeout=timeout, pool_size=self._max_size
        )

    def _get_condition(self) -> asyncio.Condition:
        """Return the pool condition, failing if the pool is not active."""
        if self._condition is None:
            raise RuntimeError(
                f"{self.__class__.__name__} has not been activated. It must be used as an "
                "asynchronous context manager (`async with ...`)."
            )
        return self._condition

    def _is_reusable(self, obj: T) -> bool:
        """Return False if a released object should be dropped (hook for subclasses)."""
        return True

    def _lease_unsafe(self, obj: T) -> None:
        """Mark an object as leased (must be called within the lock)."""
        self._in_use.add(obj)
        self._stats["acquisitions"] += 1
        self._on_checkout(obj)

    def _on_background_task_done(self, task: asyncio.Task[Any]) -> None:
        """Forget a finished background task and log unexpected failures."""
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.error("%s background task failed: %s", self.__class__.__name__, exc, exc_info=exc)

    def _on_checkin(self, obj: T) -> None:
        """Hook called when an object becomes idle (within the lock)."""
        pass

    def _on_checkout(self, obj: T) -> None:
        """Hook called when an object is leased (within the lock)."""
        pass

    def _on_discarded(self, obj: T) -> None:
        """Hook called after an unusable object has been dropped."""
        pass

    async def _return_borrowed(self, obj: T, *, keep: bool) -> None:
        """Return a borrowed object to the idle set, or drop it."""
        condition = self._get_condition()
        async with condition:
            if obj not in self._reserved:
                return
            self._reserved.discard(obj)
            drop = not keep or self._closed
            if not keep:
                self._stats["total_discarded"] += 1
            if not drop:
                self._on_checkin(obj)
                self._idle.append(obj)
            condition.notify_all()

        if drop:
            await self._dispose(obj)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a coroutine as a tracked background task."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_background_task_done)
        return task

    def _start_background_tasks(self) -> None:
        """Start background work on activation (hook for subclasses)."""
        pass

    async def _stop_background_tasks(self) -> None:
        """Cancel all tracked background tasks."""
        active_tasks = [task for task in self._background_tasks if not task.done()]
        if not active_tasks:
            return

        for task in active_tasks:
            task.cancel()
        await asyncio.gather(*active_tasks, return_exceptions=True)

    def _total_unsafe(self) -> int:
        """Return owned plus in-flight objects (must be called within the lock)."""
        return len(self._idle) + len(self._in_use) + len(self._reserved) + self._pending


class _PooledObject(AsyncContextManager[T]):
    """An async context manager for safely acquiring and releasing a pooled object."""

    def __init__(self, pool: _AsyncObjectPool[T], *, timeout: Timeout = None) -> None:
        """Initialize the pooled object context manager."""
        self._pool = pool
        self._timeout = timeout
        self._obj: T | None = None

    async def __aenter__(self) -> T:
        """Acquire the object from the pool."""
        self._obj = await self._pool.acquire(timeout=self._timeout)
        return self._obj

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        """Release the object back to the pool."""
        if self._obj is not None:
            obj, self._obj = self._obj, None
            await self._pool.release(obj)

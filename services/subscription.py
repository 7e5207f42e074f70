import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable async stream of live-query snapshots.

    Firestore delivers `on_snapshot` callbacks on its own watch thread, so
    `push` and `fail` hand values over to the owning event loop with
    `call_soon_threadsafe`. Every consumer must call `cancel()` (or use
    `async with`) once it stops reading, which unregisters the listener.
    A listener failure is raised to the consumer after the snapshots that
    arrived before it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._unsubscribe: Optional[Callable[[], Any]] = None
        self._cancelled = False
        self._error: Optional[BaseException] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, unsubscribe: Callable[[], Any]) -> None:
        """Attach the callable that releases the underlying listener"""
        self._unsubscribe = unsubscribe
        if self._cancelled:
            unsubscribe()

    def push(self, snapshot: Any) -> None:
        if self._cancelled:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, snapshot)

    def fail(self, error: BaseException) -> None:
        logger.error("Live query failed: %s", error)
        self._error = error
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as e:
                logger.warning("Failed to release live query listener: %s", e)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._cancelled:
            raise StopAsyncIteration
        item = await self._queue.get()
        if self._cancelled:
            raise StopAsyncIteration
        if item is _CLOSED:
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.cancel()

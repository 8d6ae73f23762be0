"""
Scoped worker pool for blocking S3 calls made from asyncio code.

One pool is shared process-wide: acquired once at start, released once at
shutdown (atexit covers paths that skip the normal release).
"""

from __future__ import annotations

import asyncio
import atexit
import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from ..core.exceptions import PoolClosedError
from ..core.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _hand_off(on_abandon: Callable[[Any], Any], fut: Future) -> None:
    if fut.cancelled() or fut.exception() is not None:
        return
    try:
        on_abandon(fut.result())
    except Exception:  # noqa: BLE001
        logger.error("Abandoned result cleanup failed", extra={"stage": "pool_abandon"}, exc_info=True)


class BlockingPool:
    """Bounded thread pool with explicit acquire/release."""

    def __init__(self, max_workers: int = 8, name: str = "s3-destination-blocking"):
        self._name = name
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._closed = False
        self._lock = threading.Lock()
        logger.info("Blocking pool acquired", extra={"stage": "pool_acquire", "status": "OK"})

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(
        self,
        fn: Callable[..., T],
        *args: Any,
        on_abandon: Optional[Callable[[T], Any]] = None,
    ) -> T:
        """
        Run a blocking callable on the pool and await its result.

        If the caller is cancelled while `fn` is already running, `on_abandon`
        receives its eventual result (e.g. to close a client nobody will use).
        Work dropped because the pool shut down raises PoolClosedError.
        """
        with self._lock:
            if self._closed:
                raise PoolClosedError(f"Pool {self._name} is closed")
            cfut = self._executor.submit(functools.partial(fn, *args))
        try:
            return await asyncio.wrap_future(cfut)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if cfut.cancelled() and self._closed and task is not None and not task.cancelling():
                raise PoolClosedError(f"Pool {self._name} closed before the work ran") from None
            if on_abandon is not None:
                cfut.add_done_callback(functools.partial(_hand_off, on_abandon))
            raise

    def close(self) -> None:
        """Release worker threads. Queued work is cancelled; safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Blocking pool released", extra={"stage": "pool_release", "status": "OK"})

    def __enter__(self) -> "BlockingPool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def __aenter__(self) -> "BlockingPool":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


_shared: Optional[BlockingPool] = None
_shared_lock = threading.Lock()


def acquire_shared_pool(settings: Optional[Settings] = None) -> BlockingPool:
    """Return the process-wide pool, creating it on first use."""
    global _shared
    with _shared_lock:
        if _shared is None or _shared.closed:
            s = settings or Settings.from_env()
            _shared = BlockingPool(max_workers=s.pool_max_workers)
            atexit.register(release_shared_pool)
        return _shared


def release_shared_pool() -> None:
    """Release the process-wide pool if held."""
    global _shared
    with _shared_lock:
        pool, _shared = _shared, None
    if pool is not None:
        atexit.unregister(release_shared_pool)
        pool.close()


@contextmanager
def shared_pool(settings: Optional[Settings] = None) -> Iterator[BlockingPool]:
    pool = acquire_shared_pool(settings)
    try:
        yield pool
    finally:
        release_shared_pool()

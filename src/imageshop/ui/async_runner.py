from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import CancelledError, Future
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRunner:
    """
    Owns one asyncio event loop running on a daemon thread.

    Every controller coroutine is submitted here, so the loop thread is the only
    one that ever mutates the session. ``post`` hands completions back to the
    caller's thread (for Tk: ``root.after(0, fn)``).
    """

    def __init__(self, post: Callable[[Callable[[], None]], Any]):
        self._post = post
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="imageshop-loop", daemon=True)
        self._started = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> "AsyncRunner":
        if not self._started:
            self._thread.start()
            self._started = True
        return self

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def submit(
        self,
        coro: Awaitable[T],
        on_done: Optional[Callable[[Optional[T], Optional[BaseException]], None]] = None,
    ) -> Future:
        fut = asyncio.run_coroutine_threadsafe(coro, self._loop)

        def _finished(f: Future) -> None:
            if f.cancelled():
                if on_done is not None:
                    self._post(lambda: on_done(None, CancelledError()))
                return
            if on_done is None:
                if f.exception() is not None:
                    logger.error("Background task failed", exc_info=f.exception())
                return
            err = f.exception()
            result = None if err is not None else f.result()
            self._post(lambda: on_done(result, err))

        fut.add_done_callback(_finished)
        return fut

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        on_done: Optional[Callable[[Optional[T], Optional[BaseException]], None]] = None,
    ) -> Future:
        """Run a plain function on the loop thread."""
        async def _call() -> T:
            return fn(*args)
        return self.submit(_call(), on_done)

    def stop(self, timeout: float = 2.0) -> None:
        if not self._started:
            self._loop.close()
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()

"""Session cancellation: an explicit token checked at every suspension point."""

import asyncio
import logging
import signal
import threading
from contextlib import contextmanager, suppress
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionCancelled(Exception):
    """Raised at a suspension point after the session was interrupted."""


class CancellationToken:
    """Set once, by an interrupt; awaited alongside every external call."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "interrupt"):
        if not self._event.is_set():
            self.reason = reason
            logger.info("Session cancelled: %s", reason)
            self._event.set()

    def raise_if_cancelled(self):
        if self.cancelled:
            raise SessionCancelled(self.reason)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first.

        Raises SessionCancelled if cancelled before or during the wait; the
        pending work is cancelled in that case.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        raise SessionCancelled(self.reason)


async def run_in_daemon_thread(func: Callable[..., T], *args, name: str = "toolchat-worker") -> T:
    """Run a blocking call on a daemon thread and await its result.

    Unlike asyncio.to_thread, an abandoned call never holds up loop or
    interpreter shutdown: cancelling the await leaves the thread to finish
    on its own, and its result is dropped.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _set(fn, value):
        if not future.done():
            fn(value)

    def _deliver(fn, value):
        try:
            loop.call_soon_threadsafe(_set, fn, value)
        except RuntimeError:
            # Loop already closed; nobody is waiting
            pass

    def worker():
        try:
            result = func(*args)
        except Exception as e:
            _deliver(future.set_exception, e)
        else:
            _deliver(future.set_result, result)

    threading.Thread(target=worker, name=name, daemon=True).start()
    return await future


@contextmanager
def interrupt_handler(token: CancellationToken):
    """Route SIGINT to `token` for the duration of the block."""
    loop = asyncio.get_running_loop()
    previous = None
    mode = None

    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        mode = "loop"
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows event loops have no add_signal_handler
        try:
            previous = signal.signal(
                signal.SIGINT,
                lambda signum, frame: loop.call_soon_threadsafe(token.cancel),
            )
            mode = "signal"
        except ValueError:
            # Not the main thread; nothing to install
            logger.debug("SIGINT handler not installed (not in main thread)")

    try:
        yield token
    finally:
        if mode == "loop":
            loop.remove_signal_handler(signal.SIGINT)
        elif mode == "signal":
            signal.signal(signal.SIGINT, previous if previous is not None else signal.default_int_handler)

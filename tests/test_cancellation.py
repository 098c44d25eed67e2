"""Tests for toolchat/core/cancellation.py — CancellationToken and SIGINT routing."""

import asyncio
import signal
import threading
import time

import pytest

from toolchat.core.cancellation import CancellationToken, SessionCancelled, interrupt_handler, run_in_daemon_thread


class TestCancellationToken:

    def test_guard_returns_result(self):
        token = CancellationToken()

        async def work():
            return 42

        assert asyncio.run(token.guard(work())) == 42

    def test_guard_propagates_errors(self):
        token = CancellationToken()

        async def work():
            raise EOFError

        with pytest.raises(EOFError):
            asyncio.run(token.guard(work()))

    def test_cancel_during_wait(self):
        token = CancellationToken()
        finished = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                finished.append("cancelled")
                raise

        async def run():
            asyncio.get_running_loop().call_later(0.02, token.cancel, "test")
            await token.guard(slow())

        with pytest.raises(SessionCancelled):
            asyncio.run(run())
        assert finished == ["cancelled"]
        assert token.reason == "test"

    def test_already_cancelled_skips_work(self):
        token = CancellationToken()
        token.cancel()
        started = []

        async def work():
            started.append(True)

        async def run():
            coro = work()
            try:
                await token.guard(coro)
            finally:
                coro.close()

        with pytest.raises(SessionCancelled):
            asyncio.run(run())
        assert started == []

    def test_first_reason_kept(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.cancelled
        assert token.reason == "first"


class TestInterruptHandler:

    def test_sigint_cancels_token_and_restores(self):
        token = CancellationToken()
        before = signal.getsignal(signal.SIGINT)

        async def run():
            with interrupt_handler(token):
                signal.raise_signal(signal.SIGINT)
                await asyncio.sleep(0.05)

        asyncio.run(run())

        assert token.cancelled
        assert token.reason == "interrupt"
        assert signal.getsignal(signal.SIGINT) in (before, signal.default_int_handler)


class TestRunInDaemonThread:

    def test_returns_result_from_daemon_thread(self):
        seen = []

        def work(a, b):
            seen.append(threading.current_thread())
            return a + b

        assert asyncio.run(run_in_daemon_thread(work, 15, 27)) == 42
        assert seen[0].daemon
        assert seen[0] is not threading.main_thread()

    def test_propagates_errors(self):
        def work():
            raise ValueError("bad reply")

        with pytest.raises(ValueError, match="bad reply"):
            asyncio.run(run_in_daemon_thread(work))

    def test_abandoned_call_does_not_block_shutdown(self):
        token = CancellationToken()

        async def run():
            asyncio.get_running_loop().call_later(0.1, token.cancel)
            await token.guard(run_in_daemon_thread(time.sleep, 2))

        started = time.monotonic()
        with pytest.raises(SessionCancelled):
            asyncio.run(run())
        assert time.monotonic() - started < 1.0

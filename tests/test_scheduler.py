"""Tests for the playback tick schedulers."""

import asyncio

from simdive.scheduler import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    def test_starts_at_given_time(self):
        assert ManualScheduler().now() == 0.0
        assert ManualScheduler(start=5.0).now() == 5.0

    def test_fires_in_due_order(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2.0, lambda: calls.append("b"))
        scheduler.call_later(1.0, lambda: calls.append("a"))
        scheduler.call_later(2.0, lambda: calls.append("c"))

        assert scheduler.advance(5.0) == 3
        assert calls == ["a", "b", "c"]
        assert scheduler.now() == 5.0

    def test_not_due_yet(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(3.0, lambda: calls.append(scheduler.now()))
        assert scheduler.advance(2.0) == 0
        assert scheduler.pending == 1
        scheduler.advance(1.0)
        assert calls == [3.0]

    def test_cancel(self):
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.call_later(1.0, lambda: calls.append(1))
        handle.cancel()
        assert handle.cancelled()
        assert scheduler.pending == 0
        assert scheduler.advance(10.0) == 0
        assert calls == []

    def test_rescheduling_callback(self):
        """A callback that reschedules itself keeps firing inside the window."""
        scheduler = ManualScheduler()
        times = []

        def tick():
            times.append(scheduler.now())
            scheduler.call_later(1.0, tick)

        scheduler.call_later(1.0, tick)
        assert scheduler.advance(3.5) == 3
        assert times == [1.0, 2.0, 3.0]
        assert scheduler.pending == 1


class TestAsyncioScheduler:
    def test_call_later_runs_on_loop(self):
        async def run():
            scheduler = AsyncioScheduler()
            calls = []
            scheduler.call_later(0.01, lambda: calls.append(scheduler.now()))
            cancelled = scheduler.call_later(0.01, lambda: calls.append("cancelled"))
            cancelled.cancel()
            await asyncio.sleep(0.05)
            return calls

        calls = asyncio.run(run())
        assert len(calls) == 1
        assert calls[0] > 0

"""Tests for debouncing and scheduling."""

import asyncio

from config import settings
from timing import AsyncioScheduler, Debouncer, make_debouncer, next_frame


class TestDebouncer:
    """Tests for Debouncer with a virtual clock."""

    def test_burst_fires_once_with_last_value(self, scheduler):
        fired = []
        debounce = Debouncer(300, fired.append, scheduler)
        for size in [(100, 100), (200, 200), (300, 300)]:
            debounce(size)
            scheduler.advance(0.1)
        assert fired == []
        assert debounce.pending

        scheduler.advance(0.15)
        assert fired == []

        scheduler.advance(0.1)
        assert fired == [(300, 300)]
        assert not debounce.pending

    def test_never_fires_before_delay(self, scheduler):
        fired = []
        debounce = Debouncer(300, fired.append, scheduler)
        debounce("x")
        scheduler.advance(0.299)
        assert fired == []
        scheduler.advance(0.002)
        assert fired == ["x"]

    def test_separate_bursts_fire_separately(self, scheduler):
        fired = []
        debounce = Debouncer(100, fired.append, scheduler)
        debounce(1)
        scheduler.advance(0.2)
        debounce(2)
        scheduler.advance(0.2)
        assert fired == [1, 2]

    def test_cancel_drops_pending_and_later_calls(self, scheduler):
        fired = []
        debounce = Debouncer(300, fired.append, scheduler)
        debounce(1)
        debounce.cancel()
        debounce(2)
        scheduler.advance(1.0)
        assert fired == []
        assert debounce.cancelled
        assert not debounce.pending

    def test_debouncers_are_independent(self, scheduler):
        fired = []
        first = Debouncer(300, lambda v: fired.append(("first", v)), scheduler)
        second = Debouncer(300, lambda v: fired.append(("second", v)), scheduler)
        first(1)
        second(2)
        first.cancel()
        scheduler.advance(0.5)
        assert fired == [("second", 2)]

    def test_make_debouncer_default_delay(self, scheduler):
        debounce = make_debouncer(None, print, scheduler)
        assert debounce.delay_ms == settings.RESIZE_DEBOUNCE_MS


class TestAsyncioScheduler:
    """Debouncing on a real event loop."""

    def test_fires_on_loop(self):
        fired = []

        async def run():
            debounce = Debouncer(10, fired.append, AsyncioScheduler())
            debounce("a")
            debounce("b")
            await asyncio.sleep(0.05)

        asyncio.run(run())
        assert fired == ["b"]

    def test_next_frame(self):
        asyncio.run(next_frame(0))

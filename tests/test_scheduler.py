"""
Tests for the virtual-clock scheduler and per-state timer groups.
"""

import asyncio

import pytest

from polygraph.shared.scheduler import AsyncioScheduler, ManualScheduler, TimerGroup


class TestManualScheduler:

    @pytest.mark.asyncio
    async def test_call_later_fires_once(self, clock):
        fired = []
        handle = clock.call_later(1.0, fired.append, "x")

        await clock.advance(0.5)
        assert fired == []
        await clock.advance(0.5)
        assert fired == ["x"]
        await clock.advance(5)
        assert fired == ["x"]
        assert handle.cancelled  # spent
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_call_every_repeats(self, clock):
        ticks = []
        clock.call_every(0.2, lambda: ticks.append(clock.time()))
        await clock.advance(1.0)
        assert len(ticks) == 5
        assert ticks[0] == pytest.approx(0.2)
        assert ticks[-1] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_cancel_stops_repeating(self, clock):
        ticks = []
        handle = clock.call_every(0.5, ticks.append, 1)
        await clock.advance(1.0)
        handle.cancel()
        await clock.advance(5.0)
        assert len(ticks) == 2
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_callback_can_cancel_itself(self, clock):
        ticks = []

        def tick():
            ticks.append(clock.time())
            if len(ticks) == 3:
                handle.cancel()

        handle = clock.call_every(1.0, tick)
        await clock.advance(10)
        assert len(ticks) == 3
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_fires_in_time_then_insertion_order(self, clock):
        order = []
        clock.call_later(2.0, order.append, "late")
        clock.call_later(1.0, order.append, "first")
        clock.call_later(1.0, order.append, "second")
        await clock.advance(3)
        assert order == ["first", "second", "late"]

    @pytest.mark.asyncio
    async def test_clock_reads_timer_time_inside_callback(self, clock):
        seen = []
        clock.call_later(1.25, lambda: seen.append(clock.time()))
        await clock.advance(4)
        assert seen == [1.25]
        assert clock.time() == 4

    @pytest.mark.asyncio
    async def test_spawned_task_runs_between_timers(self, clock):
        events = []

        async def job():
            events.append("task")

        clock.call_later(1.0, lambda: clock.spawn(job()))
        clock.call_later(1.0, events.append, "timer")
        await clock.advance(1.0)
        assert events == ["task", "timer"]


class TestTimerGroup:

    @pytest.mark.asyncio
    async def test_cancel_all(self, clock):
        fired = []
        group = TimerGroup(clock, "recording")
        group.call_later(1.0, fired.append, "a")
        group.call_every(0.1, fired.append, "b")
        assert len(group.active) == 2

        group.cancel_all()
        await clock.advance(5)
        assert fired == []
        assert clock.pending == 0
        assert group.closed

    @pytest.mark.asyncio
    async def test_closed_group_rejects_new_timers(self, clock):
        fired = []
        group = TimerGroup(clock, "analyzing")
        group.cancel_all()

        handle = group.call_later(0.1, fired.append, "late")
        await clock.advance(1)
        assert handle.cancelled
        assert fired == []

    @pytest.mark.asyncio
    async def test_active_drops_spent_timers(self, clock):
        group = TimerGroup(clock, "idle")
        group.call_later(0.1, lambda: None)
        await clock.advance(0.2)
        assert group.active == []


class TestAsyncioScheduler:

    @pytest.mark.asyncio
    async def test_real_timer(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()
        scheduler.call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), 1.0)

    @pytest.mark.asyncio
    async def test_cancelled_real_timer_never_fires(self):
        scheduler = AsyncioScheduler()
        fired = []
        handle = scheduler.call_every(0.01, fired.append, 1)
        handle.cancel()
        await asyncio.sleep(0.05)
        assert fired == []

    @pytest.mark.asyncio
    async def test_time_tracks_loop(self):
        scheduler = AsyncioScheduler()
        assert scheduler.time() == pytest.approx(asyncio.get_running_loop().time(), abs=0.1)


def test_manual_scheduler_start_time():
    assert ManualScheduler(start=3.0).time() == 3.0

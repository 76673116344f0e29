"""
Unit tests for the refresh scheduler.
"""
import asyncio

import pytest

from sheetboard.models import RefreshPolicy
from sheetboard.scheduler import RefreshScheduler


class TestShouldTick:
    """Test the gating conditions without a running loop."""

    def test_allowed_by_default(self):
        scheduler = RefreshScheduler(lambda: None, RefreshPolicy())
        assert scheduler.should_tick()

    def test_blocked_when_policy_disabled(self):
        policy = RefreshPolicy(auto_refresh_enabled=False)
        scheduler = RefreshScheduler(lambda: None, policy)
        assert not scheduler.should_tick()

    def test_blocked_after_manual_override(self):
        policy = RefreshPolicy()
        scheduler = RefreshScheduler(lambda: None, policy)
        policy.commit_manual_override()
        assert not scheduler.should_tick()

    def test_blocked_while_paused(self):
        paused = {"value": True}
        scheduler = RefreshScheduler(
            lambda: None, RefreshPolicy(), is_paused=lambda: paused["value"]
        )
        assert not scheduler.should_tick()
        paused["value"] = False
        assert scheduler.should_tick()

    def test_blocked_after_teardown(self):
        scheduler = RefreshScheduler(lambda: None, RefreshPolicy())
        scheduler.teardown()
        assert scheduler.torn_down
        assert not scheduler.should_tick()


class TestTick:
    """Test single manual ticks."""

    def test_tick_runs_refresh(self):
        calls = []

        async def refresh():
            calls.append(1)

        scheduler = RefreshScheduler(refresh, RefreshPolicy())

        assert asyncio.run(scheduler.tick()) is True
        assert calls == [1]
        assert scheduler.ticks_run == 1

    def test_tick_skipped_when_disallowed(self):
        calls = []

        async def refresh():
            calls.append(1)

        policy = RefreshPolicy()
        policy.commit_manual_override()
        scheduler = RefreshScheduler(refresh, policy)

        assert asyncio.run(scheduler.tick()) is False
        assert calls == []
        assert scheduler.ticks_skipped == 1

    def test_refresh_exception_is_logged_not_raised(self, caplog):
        async def refresh():
            raise RuntimeError("boom")

        scheduler = RefreshScheduler(refresh, RefreshPolicy())

        assert asyncio.run(scheduler.tick()) is True
        assert "Refresh failed unexpectedly" in caplog.text


@pytest.mark.timing
class TestRecurringTimer:
    """Test the timer task on a real event loop with short intervals."""

    def test_start_refreshes_immediately_and_repeats(self):
        async def scenario():
            calls = []

            async def refresh():
                calls.append(1)

            scheduler = RefreshScheduler(refresh, RefreshPolicy(), interval=0.01)
            scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            first = len(calls)
            await asyncio.sleep(0.06)
            scheduler.stop()
            return first, len(calls), scheduler

        first, total, scheduler = asyncio.run(scenario())
        assert first == 1
        assert total >= 3
        assert not scheduler.running

    def test_overlapping_tick_skipped(self):
        """While a refresh is in flight, later ticks do not start another."""

        async def scenario():
            gate = asyncio.Event()
            calls = []

            async def refresh():
                calls.append(1)
                await gate.wait()

            scheduler = RefreshScheduler(refresh, RefreshPolicy(), interval=0.01)
            scheduler.start()
            await asyncio.sleep(0.05)
            in_flight = scheduler.in_flight
            gate.set()
            await scheduler.wait_idle()
            scheduler.stop()
            return calls, in_flight, scheduler.ticks_skipped

        calls, in_flight, skipped = asyncio.run(scenario())
        assert calls == [1]
        assert in_flight
        assert skipped >= 1

    def test_teardown_stops_timer_permanently(self):
        async def scenario():
            calls = []

            async def refresh():
                calls.append(1)

            scheduler = RefreshScheduler(refresh, RefreshPolicy(), interval=0.01)
            scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            scheduler.teardown()
            before = len(calls)
            scheduler.start()
            await asyncio.sleep(0.05)
            return before, len(calls), scheduler.running

        before, after, running = asyncio.run(scenario())
        assert before == after == 1
        assert not running

    def test_teardown_leaves_in_flight_refresh_running(self):
        async def scenario():
            gate = asyncio.Event()
            finished = []

            async def refresh():
                await gate.wait()
                finished.append(1)

            scheduler = RefreshScheduler(refresh, RefreshPolicy(), interval=10)
            scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            scheduler.teardown()
            gate.set()
            await scheduler.wait_idle()
            return finished

        assert asyncio.run(scenario()) == [1]

    def test_stop_cancels_in_flight_refresh(self):
        async def scenario():
            gate = asyncio.Event()
            finished = []

            async def refresh():
                await gate.wait()
                finished.append(1)

            scheduler = RefreshScheduler(refresh, RefreshPolicy(), interval=10)
            scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            scheduler.stop()
            gate.set()
            await asyncio.sleep(0)
            return finished, scheduler.in_flight

        finished, in_flight = asyncio.run(scenario())
        assert finished == []
        assert not in_flight

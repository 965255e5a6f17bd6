"""Unit tests for the convergence poller.

Time is simulated with FakeClock; no test sleeps for real.
"""

from __future__ import annotations

import asyncio

import pytest

from kubevirt_infra.errors import WaitTimeoutError
from kubevirt_infra.polling import Poller, PollState
from tests.fakes import FakeClock


def scripted(*results):
    """Condition returning (or raising) each result in turn, recording sample times."""
    calls: list[int] = []
    items = list(results)

    async def condition() -> bool:
        calls.append(len(calls))
        result = items.pop(0) if len(items) > 1 else items[0]
        if isinstance(result, Exception):
            raise result
        return result

    condition.calls = calls
    return condition


class TestPoller:
    @pytest.mark.asyncio
    async def test_converges(self):
        clock = FakeClock()
        poller = Poller(interval=1.0, timeout=10.0, clock=clock, sleep=clock.sleep)

        await poller.run(scripted(False, False, True))

        assert poller.state is PollState.CONVERGED
        assert poller.attempts == 3
        assert clock.now == 3.0

    @pytest.mark.asyncio
    async def test_first_sample_after_one_interval(self):
        """Polling starts after a delay, not instantaneously."""
        clock = FakeClock()
        sample_times: list[float] = []

        async def condition() -> bool:
            sample_times.append(clock())
            return True

        poller = Poller(interval=1.0, timeout=10.0, clock=clock, sleep=clock.sleep)
        await poller.run(condition)

        assert sample_times == [1.0]

    @pytest.mark.asyncio
    async def test_times_out(self):
        clock = FakeClock()
        condition = scripted(False)
        poller = Poller(interval=1.0, timeout=5.0, clock=clock, sleep=clock.sleep)

        with pytest.raises(WaitTimeoutError) as exc_info:
            await poller.run(condition)

        assert poller.state is PollState.TIMED_OUT
        assert exc_info.value.details["timeout"] == 5.0
        # Samples at t=1..4; t=5 is the deadline, no fetch there
        assert poller.attempts == 4
        assert len(condition.calls) == 4
        assert clock.now == 5.0

    @pytest.mark.asyncio
    async def test_no_sample_after_deadline(self):
        """Last sleep is clipped to the deadline and nothing is fetched afterwards."""
        clock = FakeClock()
        condition = scripted(False)
        poller = Poller(interval=2.0, timeout=3.0, clock=clock, sleep=clock.sleep)

        with pytest.raises(WaitTimeoutError):
            await poller.run(condition)

        assert clock.sleeps == [2.0, 1.0]
        assert len(condition.calls) == 1

    @pytest.mark.asyncio
    async def test_zero_timeout_never_samples(self):
        clock = FakeClock()
        condition = scripted(True)
        poller = Poller(interval=1.0, timeout=0, clock=clock, sleep=clock.sleep)

        with pytest.raises(WaitTimeoutError):
            await poller.run(condition)

        assert condition.calls == []
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_condition_error_fails_immediately(self):
        """A failing fetch is not retried."""
        clock = FakeClock()
        boom = ConnectionError("api unreachable")
        condition = scripted(False, boom, True)
        poller = Poller(interval=1.0, timeout=10.0, clock=clock, sleep=clock.sleep)

        with pytest.raises(ConnectionError) as exc_info:
            await poller.run(condition)

        assert exc_info.value is boom
        assert poller.state is PollState.FAILED
        assert poller.attempts == 2

    @pytest.mark.asyncio
    async def test_cannot_rerun(self):
        clock = FakeClock()
        poller = Poller(interval=1.0, timeout=10.0, clock=clock, sleep=clock.sleep)
        await poller.run(scripted(True))

        with pytest.raises(RuntimeError, match="already finished"):
            await poller.run(scripted(True))

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            Poller(interval=0, timeout=10.0)

    @pytest.mark.asyncio
    async def test_cancellation_stops_loop(self):
        """Cancelling the caller's task stops polling with real asyncio sleep."""
        condition = scripted(False)
        poller = Poller(interval=0.01, timeout=60.0)

        task = asyncio.create_task(poller.run(condition))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        calls_at_cancel = len(condition.calls)
        await asyncio.sleep(0.05)
        assert len(condition.calls) == calls_at_cancel
        assert poller.state is PollState.POLLING

    @pytest.mark.asyncio
    async def test_caller_timeout_cancels_poll(self):
        condition = scripted(False)
        poller = Poller(interval=0.01, timeout=60.0)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(poller.run(condition), timeout=0.05)

        assert poller.state is PollState.POLLING

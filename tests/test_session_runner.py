"""Unit tests for SessionRunner, the asyncio tick driver."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from tests.helpers import FakeClock, make_phases

from interval_session import TICK_INTERVAL, IntervalSession, RunStatus, SessionRunner

_real_sleep = asyncio.sleep


def make_runner(*durations):
    clock = FakeClock()
    return SessionRunner(IntervalSession(make_phases(*durations), clock=clock)), clock


def fake_sleep(clock):
    """asyncio.sleep replacement that advances the fake clock and yields once."""

    async def mock_sleep(duration):
        clock.advance(int(duration * 1000))
        await _real_sleep(0)

    return mock_sleep


def sent(on_update):
    return [c.args[0] for c in on_update.call_args_list]


class TestRun:
    @pytest.mark.asyncio
    async def test_runs_to_finish(self):
        runner, clock = make_runner(1, 2)
        on_update = AsyncMock()

        with patch("asyncio.sleep", side_effect=fake_sleep(clock)):
            await runner.start(on_update)
            await asyncio.wait_for(runner.wait(), timeout=2.0)

        assert runner.ui.status == RunStatus.FINISHED
        snapshots = sent(on_update)
        assert snapshots[0].status == RunStatus.RUNNING
        assert snapshots[0].phase_index == 0
        assert snapshots[-1].status == RunStatus.FINISHED
        assert [s.remaining_sec for s in snapshots if s.phase_index == 1][0] == 2
        # Unchanged snapshots are not re-sent
        assert all(a != b for a, b in zip(snapshots, snapshots[1:]))
        assert clock() == 3000

    @pytest.mark.asyncio
    async def test_tick_interval(self):
        runner, clock = make_runner(1)
        durations = []

        async def mock_sleep(duration):
            durations.append(duration)
            clock.advance(int(duration * 1000))

        with patch("asyncio.sleep", side_effect=mock_sleep):
            await runner.start(AsyncMock())
            await asyncio.wait_for(runner.wait(), timeout=2.0)

        assert set(durations) == {TICK_INTERVAL}
        assert len(durations) == 10

    @pytest.mark.asyncio
    async def test_start_without_phases_is_noop(self):
        runner, _ = make_runner()
        on_update = AsyncMock()
        await runner.start(on_update)
        assert runner._task is None
        assert runner.ui.status == RunStatus.IDLE
        await runner.wait()

    @pytest.mark.asyncio
    async def test_works_without_callback(self):
        runner, clock = make_runner(1)
        with patch("asyncio.sleep", side_effect=fake_sleep(clock)):
            await runner.start()
            await asyncio.wait_for(runner.wait(), timeout=2.0)
        assert runner.ui.status == RunStatus.FINISHED


class TestCommands:
    @pytest.mark.asyncio
    async def test_pause_holds_time(self):
        runner, clock = make_runner(2)
        on_update = AsyncMock()

        with patch("asyncio.sleep", side_effect=fake_sleep(clock)):
            await runner.start(on_update)
            await runner.pause()
            count = on_update.await_count
            for _ in range(5):
                await _real_sleep(0)
            assert clock() > 0
            assert on_update.await_count == count
            assert runner.ui.status == RunStatus.PAUSED
            assert runner.ui.remaining_sec == 2

            await runner.resume()
            assert runner.ui.status == RunStatus.RUNNING
            await asyncio.wait_for(runner.wait(), timeout=2.0)

        assert runner.ui.status == RunStatus.FINISHED

    @pytest.mark.asyncio
    async def test_toggle_pause(self):
        runner, _ = make_runner(5)
        await runner.start(AsyncMock())
        await runner.toggle_pause()
        assert runner.ui.status == RunStatus.PAUSED
        await runner.toggle_pause()
        assert runner.ui.status == RunStatus.RUNNING
        await runner.stop()

    @pytest.mark.asyncio
    async def test_skip_to_finish(self):
        runner, _ = make_runner(5, 5)
        on_update = AsyncMock()
        await runner.start(on_update)
        await runner.skip()
        assert runner.ui.phase_index == 1
        await runner.skip()
        assert runner.ui.status == RunStatus.FINISHED
        await asyncio.wait_for(runner.wait(), timeout=2.0)
        assert sent(on_update)[-1].status == RunStatus.FINISHED

    @pytest.mark.asyncio
    async def test_stop_cancels_loop(self):
        runner, clock = make_runner(60)
        on_update = AsyncMock()

        with patch("asyncio.sleep", side_effect=fake_sleep(clock)):
            await runner.start(on_update)
            task = runner._task
            for _ in range(3):
                await _real_sleep(0)
            await runner.stop()
            await asyncio.gather(task, return_exceptions=True)

        assert task.done()
        assert runner._task is None
        assert runner.ui.status == RunStatus.IDLE
        assert sent(on_update)[-1].status == RunStatus.IDLE
        await runner.wait()

    @pytest.mark.asyncio
    async def test_restart_after_finish(self):
        runner, clock = make_runner(1)
        on_update = AsyncMock()
        with patch("asyncio.sleep", side_effect=fake_sleep(clock)):
            await runner.start(on_update)
            await asyncio.wait_for(runner.wait(), timeout=2.0)
            await runner.start(on_update)
            assert runner.ui.status == RunStatus.RUNNING
            await asyncio.wait_for(runner.wait(), timeout=2.0)
        assert runner.ui.status == RunStatus.FINISHED

"""Unit tests for RoundTimerManager in isolation."""

import asyncio

import pytest

from game.session.timer_manager import RoundTimerManager


@pytest.fixture
async def timer_manager():
    manager = RoundTimerManager()
    yield manager
    await manager.shutdown()


class TestRoundTimerManagerArm:
    async def test_callback_runs_after_delay(self, timer_manager):
        fired = asyncio.Event()

        async def callback():
            fired.set()

        timer_manager.arm("g1", callback, delay=0.01)
        assert timer_manager.has_pending("g1")
        await asyncio.wait_for(fired.wait(), 1)

    async def test_rearming_replaces_pending_timer(self, timer_manager):
        """Only the latest timer for a game fires."""
        log = []

        async def first():
            log.append("first")

        async def second():
            log.append("second")

        timer_manager.arm("g1", first, delay=0.05)
        timer_manager.arm("g1", second, delay=0.01)
        await asyncio.sleep(0.1)
        assert log == ["second"]

    async def test_games_are_independent(self, timer_manager):
        log = []

        async def make(name):
            log.append(name)

        timer_manager.arm("g1", lambda: make("g1"), delay=0.01)
        timer_manager.arm("g2", lambda: make("g2"), delay=0.01)
        await asyncio.sleep(0.05)
        assert sorted(log) == ["g1", "g2"]

    async def test_callback_can_arm_its_successor(self, timer_manager):
        """A callback that re-arms the same game is not cancelled by doing so."""
        log = []
        done = asyncio.Event()

        async def follow_up():
            log.append("follow_up")
            done.set()

        async def first():
            timer_manager.arm("g1", follow_up, delay=0.01)
            log.append("first finished")

        timer_manager.arm("g1", first)
        await asyncio.wait_for(done.wait(), 1)
        assert log == ["first finished", "follow_up"]

    async def test_failing_callback_is_logged_not_raised(self, timer_manager, caplog):
        async def broken():
            raise RuntimeError("boom")

        timer_manager.arm("g1", broken)
        await asyncio.sleep(0.02)
        assert "round timer callback failed" in caplog.text
        assert not timer_manager.has_pending("g1")


class TestRoundTimerManagerCancel:
    async def test_cancel_prevents_callback(self, timer_manager):
        log = []

        async def callback():
            log.append("fired")

        timer_manager.arm("g1", callback, delay=0.02)
        timer_manager.cancel("g1")
        await asyncio.sleep(0.05)
        assert log == []
        assert not timer_manager.has_pending("g1")

    async def test_cancel_unknown_game_is_noop(self, timer_manager):
        timer_manager.cancel("unknown")
        assert timer_manager.pending_count == 0

    async def test_cleanup_game(self, timer_manager):
        async def callback():
            pass

        timer_manager.arm("g1", callback, delay=1)
        timer_manager.arm("g2", callback, delay=1)
        timer_manager.cleanup_game("g1")
        assert not timer_manager.has_pending("g1")
        assert timer_manager.has_pending("g2")

    async def test_finished_timer_is_forgotten(self, timer_manager):
        async def callback():
            pass

        timer_manager.arm("g1", callback)
        await asyncio.sleep(0.01)
        assert timer_manager.pending_count == 0

    async def test_shutdown_cancels_everything(self):
        timer_manager = RoundTimerManager()
        log = []

        async def callback():
            log.append("fired")

        for game_id in ("g1", "g2", "g3"):
            timer_manager.arm(game_id, callback, delay=0.05)
        await timer_manager.shutdown()
        await asyncio.sleep(0.08)
        assert log == []
        assert timer_manager.pending_count == 0

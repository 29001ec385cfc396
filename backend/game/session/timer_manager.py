"""Per-game scheduled tasks for round orchestration."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()

TimerCallback = Callable[[], Awaitable[None]]


class RoundTimerManager:
    """Hold at most one pending timer task per game.

    Arming a timer for a game cancels whatever was pending for it, so a
    stale countdown can never fire alongside its replacement. A callback
    that arms the next timer from inside its own task is not cancelled by
    doing so.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def arm(self, game_id: str, callback: TimerCallback, delay: float = 0) -> None:
        """Run ``callback`` after ``delay`` seconds, replacing any pending timer for the game."""
        self.cancel(game_id)
        task = asyncio.create_task(self._run(game_id, delay, callback), name=f"round-timer-{game_id}")
        self._tasks[game_id] = task
        task.add_done_callback(lambda t, gid=game_id: self._forget(gid, t))

    def cancel(self, game_id: str) -> None:
        """Cancel the game's pending timer, if any."""
        task = self._tasks.pop(game_id, None)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def cleanup_game(self, game_id: str) -> None:
        """Cancel timers for a game that has been removed."""
        self.cancel(game_id)

    def has_pending(self, game_id: str) -> bool:
        task = self._tasks.get(game_id)
        return task is not None and not task.done()

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def shutdown(self) -> None:
        """Cancel every pending timer and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, game_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(game_id) is task:
            del self._tasks[game_id]

    async def _run(self, game_id: str, delay: float, callback: TimerCallback) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            await callback()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("round timer callback failed", game_id=game_id)

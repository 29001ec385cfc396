"""
Round orchestration state machine.

A playing game cycles through these phases for every round::

    ANNOUNCING -> INPUT -> AGGREGATING -> INTERMISSION -> ANNOUNCING ...
                                       \\-> IDLE (game over)

INPUT ends either when every active player has submitted (early path) or
when the countdown reaches zero (expiry path). Both paths converge on
``_finish_round``, which only runs for a game whose current round and phase
still match what the timer was armed for. A timer that wakes up after the
game moved on, or after the game was deleted, does nothing.

Public ``on_*``/``begin_game`` methods must be called with the game's lock
held. Timer callbacks acquire the lock themselves and always re-fetch the
game from the registry.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field

from game.logic.enums import GameStatus, RoundPhase
from game.logic.game import all_active_submitted, end, should_end, start_round, sweep_unsubmitted
from game.logic.ranking import (
    build_game_stats,
    build_leaderboard,
    build_round_results,
    eliminated_player_ids,
    get_winner,
)
from game.messaging.event_payload import message_payload
from game.messaging.types import (
    AllSubmittedMessage,
    GameEndMessage,
    NextRoundStartingMessage,
    RoundEndMessage,
    RoundStartMessage,
    TimeUpdateMessage,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.logic.models import Game
    from game.session.registry import GameRegistry
    from game.session.timer_manager import RoundTimerManager

    Broadcast = Callable[[Game, dict[str, Any]], Awaitable[None]]
    LockLookup = Callable[[str], asyncio.Lock | None]

logger = structlog.get_logger()


class OrchestratorTiming(BaseModel):
    """Delays (seconds) between orchestration steps."""

    announcement_delay_seconds: float = Field(default=1.0, ge=0)
    tick_seconds: float = Field(default=1.0, gt=0)
    all_submitted_delay_seconds: float = Field(default=1.0, ge=0)
    leaderboard_display_seconds: float = Field(default=7.0, ge=0)
    # counted down in ticks
    next_round_countdown: int = Field(default=3, ge=0)


class RoundOrchestrator:
    def __init__(
        self,
        registry: GameRegistry,
        timers: RoundTimerManager,
        broadcast: Broadcast,
        lock_for: LockLookup,
        timing: OrchestratorTiming | None = None,
    ) -> None:
        self._registry = registry
        self._timers = timers
        self._broadcast = broadcast
        self._lock_for = lock_for
        self._timing = timing or OrchestratorTiming()

    @property
    def timing(self) -> OrchestratorTiming:
        return self._timing

    # --- entry points (caller holds the game lock) ---

    def begin_game(self, game: Game) -> None:
        """Schedule round one for a game that was just started or restarted."""
        game.round_phase = RoundPhase.ANNOUNCING
        self._timers.arm(
            game.id,
            partial(self._start_round, game.id, game.current_round),
            delay=self._timing.announcement_delay_seconds,
        )

    async def on_submission(self, game: Game) -> None:
        """Take the early path if the submission completed the active set."""
        await self._maybe_close_early(game)

    async def on_player_removed(self, game: Game) -> None:
        """Re-check the early path, since a departure can complete the active set."""
        if game.is_empty:
            self.cancel(game.id)
            return
        await self._maybe_close_early(game)

    def cancel(self, game_id: str) -> None:
        """Drop any pending timer for the game (reset, deletion)."""
        self._timers.cancel(game_id)

    # --- internals ---

    def _live_game(self, game_id: str, round_number: int, phase: RoundPhase) -> Game | None:
        game = self._registry.get_by_id(game_id)
        if game is None or game.status != GameStatus.PLAYING:
            return None
        if game.current_round != round_number or game.round_phase != phase:
            return None
        return game

    async def _maybe_close_early(self, game: Game) -> None:
        if game.status != GameStatus.PLAYING or game.round_phase != RoundPhase.INPUT:
            return
        if not all_active_submitted(game):
            return
        game.round_phase = RoundPhase.AGGREGATING
        self._timers.cancel(game.id)
        logger.info("all active players submitted", game_id=game.id, round=game.current_round)
        await self._broadcast(game, message_payload(AllSubmittedMessage()))
        self._timers.arm(
            game.id,
            partial(self._complete_round, game.id, game.current_round),
            delay=self._timing.all_submitted_delay_seconds,
        )

    async def _start_round(self, game_id: str, previous_round: int) -> None:
        lock = self._lock_for(game_id)
        if lock is None:
            return
        async with lock:
            game = self._live_game(game_id, previous_round, RoundPhase.ANNOUNCING)
            if game is None:
                return
            round_start = start_round(game)
            game.round_phase = RoundPhase.INPUT
            logger.info(
                "round started",
                game_id=game_id,
                round=round_start.round,
                time_limit=round_start.time_limit,
            )
            await self._broadcast(
                game,
                message_payload(
                    RoundStartMessage(
                        round=round_start.round,
                        sequence=round_start.sequence,
                        time_limit=round_start.time_limit,
                    ),
                ),
            )
            self._timers.arm(game_id, partial(self._run_countdown, game_id, round_start.round, round_start.time_limit))

    async def _run_countdown(self, game_id: str, round_number: int, time_limit: int) -> None:
        """Broadcast the remaining time once per tick; sweep and close the round at zero."""
        for remaining in range(time_limit, -1, -1):
            lock = self._lock_for(game_id)
            if lock is None:
                return
            async with lock:
                game = self._live_game(game_id, round_number, RoundPhase.INPUT)
                if game is None:
                    return
                await self._broadcast(game, message_payload(TimeUpdateMessage(remaining=remaining)))
                if remaining == 0:
                    swept = sweep_unsubmitted(game)
                    if swept:
                        logger.info("round timer expired", game_id=game_id, round=round_number, swept=swept)
                    game.round_phase = RoundPhase.AGGREGATING
                    await self._finish_round(game)
                    return
            await asyncio.sleep(self._timing.tick_seconds)

    async def _complete_round(self, game_id: str, round_number: int) -> None:
        lock = self._lock_for(game_id)
        if lock is None:
            return
        async with lock:
            game = self._live_game(game_id, round_number, RoundPhase.AGGREGATING)
            if game is None:
                return
            await self._finish_round(game)

    async def _finish_round(self, game: Game) -> None:
        """Broadcast round results, then either end the game or schedule the next round."""
        round_number = game.current_round
        await self._broadcast(
            game,
            message_payload(
                RoundEndMessage(
                    round=round_number,
                    results=build_round_results(game),
                    leaderboard=build_leaderboard(game),
                    eliminated_players=eliminated_player_ids(game),
                ),
            ),
        )
        logger.info("round ended", game_id=game.id, round=round_number)

        if should_end(game):
            end(game)
            winner = get_winner(game)
            logger.info("game ended", game_id=game.id, rounds=round_number, winner=winner.id if winner else None)
            await self._broadcast(
                game,
                message_payload(
                    GameEndMessage(
                        final_leaderboard=build_leaderboard(game),
                        winner=winner,
                        stats=build_game_stats(game),
                    ),
                ),
            )
            return

        game.round_phase = RoundPhase.INTERMISSION
        self._timers.arm(
            game.id,
            partial(self._announce_next_round, game.id, round_number),
            delay=self._timing.leaderboard_display_seconds,
        )

    async def _announce_next_round(self, game_id: str, round_number: int) -> None:
        lock = self._lock_for(game_id)
        if lock is None:
            return
        async with lock:
            game = self._live_game(game_id, round_number, RoundPhase.INTERMISSION)
            if game is None:
                return
            countdown = self._timing.next_round_countdown
            game.round_phase = RoundPhase.ANNOUNCING
            await self._broadcast(game, message_payload(NextRoundStartingMessage(countdown=countdown)))
            self._timers.arm(
                game_id,
                partial(self._start_round, game_id, round_number),
                delay=countdown * self._timing.tick_seconds,
            )

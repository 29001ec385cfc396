from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from game.logic.enums import GameErrorCode, GameStatus, RoundPhase
from game.logic.exceptions import AuthorizationError, GameValidationError, NotFoundError, StateError
from game.logic.game import (
    add_player,
    record_submission,
    refresh_colors,
    remove_player,
    reset_for_replay,
    reset_to_lobby,
    start,
)
from game.logic.models import MAX_PLAYERS, MIN_PLAYERS_TO_START
from game.logic.validation import is_valid_join_code, require_player_name, validate_settings
from game.messaging.event_payload import message_payload
from game.messaging.types import (
    ColorsRefreshedMessage,
    GameCreatedMessage,
    GameStartedMessage,
    GameStateMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    PongMessage,
    SubmissionReceivedMessage,
)
from game.session.broadcast import broadcast_to_connections
from game.session.models import Binding
from game.session.orchestrator import OrchestratorTiming, RoundOrchestrator
from game.session.registry import GameRegistry
from game.session.timer_manager import RoundTimerManager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from game.logic.models import Game, Player
    from game.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """
    Map connections to (player, game) bindings and apply client operations.

    Every operation on an existing game runs under that game's own lock and
    re-fetches the game from the registry once the lock is held. Rejections
    are raised as GameRuleError before anything is mutated or broadcast; the
    message router reports them to the sender.
    """

    def __init__(
        self,
        registry: GameRegistry | None = None,
        timing: OrchestratorTiming | None = None,
        max_players: int = MAX_PLAYERS,
    ) -> None:
        self._registry = registry or GameRegistry()
        self._max_players = max_players
        self._connections: dict[str, ConnectionProtocol] = {}
        self._bindings: dict[str, Binding] = {}  # connection_id -> Binding
        self._game_locks: dict[str, asyncio.Lock] = {}  # game_id -> Lock
        self._timer_manager = RoundTimerManager()
        self._orchestrator = RoundOrchestrator(
            registry=self._registry,
            timers=self._timer_manager,
            broadcast=self._broadcast_to_game,
            lock_for=self._get_game_lock,
            timing=timing,
        )

    @property
    def registry(self) -> GameRegistry:
        return self._registry

    @property
    def game_count(self) -> int:
        return self._registry.game_count

    def _get_game_lock(self, game_id: str) -> asyncio.Lock | None:
        """Get the per-game lock, or None once the game has been cleaned up."""
        return self._game_locks.get(game_id)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)

    def resolve_binding(self, connection_id: str) -> Binding | None:
        """Return the (player, game) pair a connection is bound to, if any."""
        return self._bindings.get(connection_id)

    def get_game(self, game_id: str) -> Game | None:
        return self._registry.get_by_id(game_id)

    async def shutdown(self) -> None:
        await self._timer_manager.shutdown()

    # --- helpers ---

    def _require_unbound(self, connection: ConnectionProtocol) -> None:
        if connection.connection_id in self._bindings:
            raise StateError("You are already in a game", code=GameErrorCode.ALREADY_IN_GAME)

    def _require_binding(self, connection: ConnectionProtocol, game_id: str) -> Binding:
        binding = self._bindings.get(connection.connection_id)
        if binding is None or binding.game_id != game_id:
            raise NotFoundError("You are not in this game", code=GameErrorCode.NOT_IN_GAME)
        return binding

    @contextlib.asynccontextmanager
    async def _locked_game(self, connection: ConnectionProtocol, game_id: str) -> AsyncIterator[tuple[Game, Player]]:
        """Hold the game's lock and yield the freshly fetched game and the sender's player."""
        binding = self._require_binding(connection, game_id)
        lock = self._get_game_lock(game_id)
        if lock is None:
            raise NotFoundError("Game not found")
        async with lock:
            game = self._registry.get_by_id(game_id)
            player = game.get_player(binding.player_id) if game is not None else None
            if game is None or player is None:
                raise NotFoundError("Game not found")
            structlog.contextvars.bind_contextvars(game_id=game_id, player_id=player.id)
            yield game, player

    @staticmethod
    def _require_host(player: Player, action: str) -> None:
        if not player.is_host:
            raise AuthorizationError(f"Only the host can {action}")

    async def _broadcast_to_game(
        self,
        game: Game,
        message: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        connections = [
            self._connections[p.connection_id] for p in game.players if p.connection_id in self._connections
        ]
        await broadcast_to_connections(connections, message, exclude_connection_id)

    # --- client operations ---

    async def create_game(
        self,
        connection: ConnectionProtocol,
        host_name: str,
        raw_settings: dict[str, Any],
        requested_player_id: str | None = None,
    ) -> Game:
        self._require_unbound(connection)
        name = require_player_name(host_name)
        settings = validate_settings(raw_settings)

        game, player_id = self._registry.create(settings, name, connection.connection_id, requested_player_id)
        self._game_locks[game.id] = asyncio.Lock()
        self._bindings[connection.connection_id] = Binding(player_id=player_id, game_id=game.id)
        structlog.contextvars.bind_contextvars(game_id=game.id, player_id=player_id)
        logger.info("game created", code=game.join_code, mode=settings.mode, difficulty=settings.difficulty)

        async with self._game_locks[game.id]:
            await connection.send_message(
                message_payload(
                    GameCreatedMessage(
                        game_id=game.id,
                        code=game.join_code,
                        player_id=player_id,
                        settings=game.settings,
                    ),
                ),
            )
            await connection.send_message(message_payload(GameStateMessage(game=game)))
        return game

    async def join_game(
        self,
        connection: ConnectionProtocol,
        code: str,
        player_name: str,
        requested_player_id: str | None = None,
    ) -> Player:
        self._require_unbound(connection)
        if not is_valid_join_code(code):
            raise GameValidationError("Invalid game code format", code=GameErrorCode.INVALID_CODE)
        name = require_player_name(player_name)

        game = self._registry.get_by_code(code)
        lock = self._get_game_lock(game.id) if game is not None else None
        if game is None or lock is None:
            raise NotFoundError("Game not found. The game may have ended or the code is incorrect.")

        async with lock:
            game = self._registry.get_by_id(game.id)
            if game is None:
                raise NotFoundError("Game not found. The game may have ended or the code is incorrect.")
            player = add_player(game, name, connection.connection_id, requested_player_id, self._max_players)
            self._bindings[connection.connection_id] = Binding(player_id=player.id, game_id=game.id)
            structlog.contextvars.bind_contextvars(game_id=game.id, player_id=player.id)
            logger.info("player joined game", player_count=game.player_count)

            await self._broadcast_to_game(
                game,
                message_payload(PlayerJoinedMessage(player=player)),
                exclude_connection_id=connection.connection_id,
            )
            await connection.send_message(message_payload(GameStateMessage(game=game)))
        return player

    async def refresh_colors(self, connection: ConnectionProtocol, game_id: str) -> None:
        async with self._locked_game(connection, game_id) as (game, player):
            self._require_host(player, "refresh colors")
            colors = refresh_colors(game)
            await self._broadcast_to_game(game, message_payload(ColorsRefreshedMessage(colors=colors)))

    async def start_game(self, connection: ConnectionProtocol, game_id: str) -> None:
        async with self._locked_game(connection, game_id) as (game, player):
            self._require_host(player, "start the game")
            if game.status != GameStatus.LOBBY:
                raise StateError("Game has already started", code=GameErrorCode.GAME_ALREADY_STARTED)
            if not start(game):
                raise StateError(
                    f"Cannot start game. Need at least {MIN_PLAYERS_TO_START} players.",
                    code=GameErrorCode.NOT_ENOUGH_PLAYERS,
                )
            logger.info("game started", player_count=game.player_count)
            await self._broadcast_to_game(game, message_payload(GameStartedMessage()))
            self._orchestrator.begin_game(game)

    async def submit_sequence(
        self,
        connection: ConnectionProtocol,
        game_id: str,
        sequence: list[str],
        reaction_time_ms: int,
    ) -> None:
        async with self._locked_game(connection, game_id) as (game, player):
            if game.status != GameStatus.PLAYING or game.round_phase != RoundPhase.INPUT:
                raise StateError("No round is accepting submissions", code=GameErrorCode.INVALID_SUBMISSION)
            result = record_submission(game, player.id, sequence, reaction_time_ms)
            if not result.recorded:
                raise StateError("Your submission was not accepted this round", code=GameErrorCode.INVALID_SUBMISSION)
            logger.debug(
                "submission recorded",
                round=game.current_round,
                is_correct=result.is_correct,
                eliminated=result.eliminated,
            )
            await connection.send_message(message_payload(SubmissionReceivedMessage(is_correct=result.is_correct)))
            await self._orchestrator.on_submission(game)

    async def play_again(self, connection: ConnectionProtocol, game_id: str) -> None:
        async with self._locked_game(connection, game_id) as (game, player):
            self._require_host(player, "restart the game")
            if game.status != GameStatus.FINISHED:
                raise StateError("Game can only be restarted once it has finished")
            if game.player_count < MIN_PLAYERS_TO_START:
                raise StateError(
                    f"Cannot start game. Need at least {MIN_PLAYERS_TO_START} players.",
                    code=GameErrorCode.NOT_ENOUGH_PLAYERS,
                )
            self._orchestrator.cancel(game.id)
            reset_for_replay(game)
            logger.info("game restarted", player_count=game.player_count)
            await self._broadcast_to_game(game, message_payload(GameStateMessage(game=game)))
            await self._broadcast_to_game(game, message_payload(GameStartedMessage()))
            self._orchestrator.begin_game(game)

    async def new_game(self, connection: ConnectionProtocol, game_id: str) -> None:
        async with self._locked_game(connection, game_id) as (game, player):
            self._require_host(player, "create a new game")
            if game.status == GameStatus.LOBBY:
                raise StateError("Game is already in the lobby")
            self._orchestrator.cancel(game.id)
            reset_to_lobby(game)
            logger.info("game returned to lobby")
            await self._broadcast_to_game(game, message_payload(GameStateMessage(game=game)))

    async def leave_game(self, connection: ConnectionProtocol, game_id: str | None = None) -> None:
        """
        Detach the connection's player from its game.

        ``game_id`` is None on disconnect; an explicit leave must name the
        game the connection is bound to.
        """
        if game_id is not None:
            self._require_binding(connection, game_id)
        binding = self._bindings.pop(connection.connection_id, None)
        if binding is None:
            return

        lock = self._get_game_lock(binding.game_id)
        if lock is None:
            return
        async with lock:
            game = self._registry.get_by_id(binding.game_id)
            if game is None or not remove_player(game, binding.player_id):
                return
            structlog.contextvars.bind_contextvars(game_id=game.id, player_id=binding.player_id)
            logger.info("player left game", player_count=game.player_count)

            if game.is_empty:
                await self._orchestrator.on_player_removed(game)
                self._cleanup_empty_game(game.id)
                return

            await self._broadcast_to_game(
                game,
                message_payload(PlayerLeftMessage(player_id=binding.player_id, host_id=game.host_id)),
            )
            await self._orchestrator.on_player_removed(game)

    def _cleanup_empty_game(self, game_id: str) -> None:
        """Remove an empty game from the registry and drop its lock and timers."""
        if self._registry.delete(game_id):
            logger.info("game is empty, cleaning up")
            self._timer_manager.cleanup_game(game_id)
            self._game_locks.pop(game_id, None)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(message_payload(PongMessage()))

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Treat a dropped connection as leaving its game, then forget it."""
        await self.leave_game(connection)
        self.unregister_connection(connection)

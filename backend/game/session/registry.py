"""In-memory index of live games by id and by join code."""

from collections.abc import Callable

import structlog

from game.logic.codes import generate_game_id, generate_join_code
from game.logic.enums import GameErrorCode
from game.logic.exceptions import CapacityError
from game.logic.game import create_game
from game.logic.models import Game
from game.logic.settings import GameSettings

logger = structlog.get_logger()

DEFAULT_MAX_GAMES = 100


class GameRegistry:
    """
    Own the set of live games.

    Both indices are plain dicts mutated synchronously on the event loop, so
    inserts and deletes are atomic with respect to other coroutines. Join
    codes are stored upper-case and looked up case-insensitively.
    """

    def __init__(
        self,
        max_games: int = DEFAULT_MAX_GAMES,
        code_generator: Callable[[], str] = generate_join_code,
        id_generator: Callable[[], str] = generate_game_id,
    ) -> None:
        self._max_games = max_games
        self._generate_code = code_generator
        self._generate_id = id_generator
        self._games: dict[str, Game] = {}  # game_id -> Game
        self._codes: dict[str, str] = {}  # join code -> game_id

    @property
    def game_count(self) -> int:
        return len(self._games)

    @property
    def max_games(self) -> int:
        return self._max_games

    @property
    def is_full(self) -> bool:
        return len(self._games) >= self._max_games

    def _unique_code(self) -> str:
        code = self._generate_code().upper()
        while code in self._codes:
            logger.debug("join code collision, retrying", code=code)
            code = self._generate_code().upper()
        return code

    def _unique_id(self) -> str:
        game_id = self._generate_id()
        while game_id in self._games:
            game_id = self._generate_id()
        return game_id

    def create(
        self,
        settings: GameSettings,
        host_name: str,
        connection_id: str,
        requested_player_id: str | None = None,
    ) -> tuple[Game, str]:
        """Register a new lobby hosted by ``host_name``. Returns the game and the host's player id."""
        if self.is_full:
            raise CapacityError(
                "Server is at capacity, try again later",
                code=GameErrorCode.SERVER_AT_CAPACITY,
            )
        game = create_game(
            game_id=self._unique_id(),
            join_code=self._unique_code(),
            settings=settings,
            host_name=host_name,
            connection_id=connection_id,
            requested_player_id=requested_player_id,
        )
        self._games[game.id] = game
        self._codes[game.join_code] = game.id
        return game, game.host_id

    def get_by_id(self, game_id: str) -> Game | None:
        return self._games.get(game_id)

    def get_by_code(self, code: str) -> Game | None:
        game_id = self._codes.get(code.upper())
        return self._games.get(game_id) if game_id is not None else None

    def delete(self, game_id: str) -> bool:
        """Remove a game from both indices. Returns False if it was already gone."""
        game = self._games.pop(game_id, None)
        if game is None:
            return False
        self._codes.pop(game.join_code, None)
        return True

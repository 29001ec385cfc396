from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from game.logic.colors import GameColor
from game.logic.enums import GameErrorCode
from game.logic.models import Game, GameStats, LeaderboardEntry, Player, RoundResult
from game.logic.settings import GameSettings

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

MAX_REACTION_TIME_MS = 10 * 60 * 1000

_GAME_ID_FIELD = Field(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
_PLAYER_ID_FIELD = Field(default=None, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")


class ClientMessageType(StrEnum):
    CREATE_GAME = "createGame"
    JOIN_GAME = "joinGame"
    REFRESH_COLORS = "refreshColors"
    START_GAME = "startGame"
    SUBMIT_SEQUENCE = "submitSequence"
    PLAY_AGAIN = "playAgain"
    NEW_GAME = "newGame"
    LEAVE_GAME = "leaveGame"
    PING = "ping"


class ServerMessageType(StrEnum):
    GAME_CREATED = "game:created"
    GAME_STATE = "game:state"
    PLAYER_JOINED = "player:joined"
    PLAYER_LEFT = "player:left"
    COLORS_REFRESHED = "colors:refreshed"
    GAME_STARTED = "game:started"
    ROUND_START = "round:start"
    TIME_UPDATE = "time:update"
    SUBMISSION_RECEIVED = "submission:received"
    ALL_SUBMITTED = "all:submitted"
    ROUND_END = "round:end"
    NEXT_ROUND_STARTING = "next:round:starting"
    GAME_END = "game:end"
    JOIN_ERROR = "join:error"
    ERROR = "error"
    PONG = "pong"


class _Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_printable(value: str) -> str:
    if any((ord(c) < _SPACE_ORD and c not in ("\t", "\n", "\r")) or ord(c) == _DEL_ORD for c in value):
        raise ValueError("text must not contain control characters")
    return value


# --- Client -> server ---


class CreateGameMessage(_Message):
    type: Literal[ClientMessageType.CREATE_GAME] = ClientMessageType.CREATE_GAME
    # length is bounded by the decoder; the session layer truncates names
    host_name: str
    # validated into GameSettings by the session layer so errors carry invalid_settings
    settings: dict[str, Any]
    player_id: str | None = _PLAYER_ID_FIELD

    @field_validator("host_name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _check_printable(v)


class JoinGameMessage(_Message):
    type: Literal[ClientMessageType.JOIN_GAME] = ClientMessageType.JOIN_GAME
    code: str
    player_name: str
    player_id: str | None = _PLAYER_ID_FIELD

    @field_validator("player_name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _check_printable(v)


class RefreshColorsMessage(_Message):
    type: Literal[ClientMessageType.REFRESH_COLORS] = ClientMessageType.REFRESH_COLORS
    game_id: str = _GAME_ID_FIELD


class StartGameMessage(_Message):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    game_id: str = _GAME_ID_FIELD


class SubmitSequenceMessage(_Message):
    type: Literal[ClientMessageType.SUBMIT_SEQUENCE] = ClientMessageType.SUBMIT_SEQUENCE
    game_id: str = _GAME_ID_FIELD
    sequence: list[Annotated[str, Field(max_length=32)]] = Field(max_length=256)
    reaction_time: float = Field(ge=0, le=MAX_REACTION_TIME_MS)


class PlayAgainMessage(_Message):
    type: Literal[ClientMessageType.PLAY_AGAIN] = ClientMessageType.PLAY_AGAIN
    game_id: str = _GAME_ID_FIELD


class NewGameMessage(_Message):
    type: Literal[ClientMessageType.NEW_GAME] = ClientMessageType.NEW_GAME
    game_id: str = _GAME_ID_FIELD


class LeaveGameMessage(_Message):
    type: Literal[ClientMessageType.LEAVE_GAME] = ClientMessageType.LEAVE_GAME
    game_id: str = _GAME_ID_FIELD


class PingMessage(_Message):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = (
    CreateGameMessage
    | JoinGameMessage
    | RefreshColorsMessage
    | StartGameMessage
    | SubmitSequenceMessage
    | PlayAgainMessage
    | NewGameMessage
    | LeaveGameMessage
    | PingMessage
)

_client_message_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage, discriminated by ``type``."""
    return _client_message_adapter.validate_python(data)


# --- Server -> client ---


class GameCreatedMessage(_Message):
    type: Literal[ServerMessageType.GAME_CREATED] = ServerMessageType.GAME_CREATED
    game_id: str
    code: str
    player_id: str
    settings: GameSettings


class GameStateMessage(_Message):
    type: Literal[ServerMessageType.GAME_STATE] = ServerMessageType.GAME_STATE
    game: Game


class PlayerJoinedMessage(_Message):
    type: Literal[ServerMessageType.PLAYER_JOINED] = ServerMessageType.PLAYER_JOINED
    player: Player


class PlayerLeftMessage(_Message):
    type: Literal[ServerMessageType.PLAYER_LEFT] = ServerMessageType.PLAYER_LEFT
    player_id: str
    host_id: str | None = None


class ColorsRefreshedMessage(_Message):
    type: Literal[ServerMessageType.COLORS_REFRESHED] = ServerMessageType.COLORS_REFRESHED
    colors: list[GameColor]


class GameStartedMessage(_Message):
    type: Literal[ServerMessageType.GAME_STARTED] = ServerMessageType.GAME_STARTED


class RoundStartMessage(_Message):
    type: Literal[ServerMessageType.ROUND_START] = ServerMessageType.ROUND_START
    round: int
    sequence: list[str]
    time_limit: int


class TimeUpdateMessage(_Message):
    type: Literal[ServerMessageType.TIME_UPDATE] = ServerMessageType.TIME_UPDATE
    remaining: int


class SubmissionReceivedMessage(_Message):
    type: Literal[ServerMessageType.SUBMISSION_RECEIVED] = ServerMessageType.SUBMISSION_RECEIVED
    is_correct: bool


class AllSubmittedMessage(_Message):
    type: Literal[ServerMessageType.ALL_SUBMITTED] = ServerMessageType.ALL_SUBMITTED


class RoundEndMessage(_Message):
    type: Literal[ServerMessageType.ROUND_END] = ServerMessageType.ROUND_END
    round: int
    results: list[RoundResult]
    leaderboard: list[LeaderboardEntry]
    eliminated_players: list[str]


class NextRoundStartingMessage(_Message):
    type: Literal[ServerMessageType.NEXT_ROUND_STARTING] = ServerMessageType.NEXT_ROUND_STARTING
    countdown: int


class GameEndMessage(_Message):
    type: Literal[ServerMessageType.GAME_END] = ServerMessageType.GAME_END
    final_leaderboard: list[LeaderboardEntry]
    winner: Player | None
    stats: GameStats


class JoinErrorMessage(_Message):
    type: Literal[ServerMessageType.JOIN_ERROR] = ServerMessageType.JOIN_ERROR
    code: GameErrorCode
    message: str


class ErrorMessage(_Message):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: GameErrorCode
    message: str


class PongMessage(_Message):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG

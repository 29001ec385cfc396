"""
Game aggregate data model.

The aggregate is mutable: mutators in ``game.logic.game`` change it in place
under the owning game's lock. Field names are snake_case in Python and
camelCase on the wire (``model_dump(by_alias=True)``).
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from game.logic.enums import GameStatus, PlayerStatus, RoundPhase
from game.logic.settings import GameSettings

MAX_PLAYERS = 10
MIN_PLAYERS_TO_START = 2


def _now() -> datetime:
    return datetime.now(tz=UTC)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerStats(_WireModel):
    mistakes: int = 0
    rounds_survived: int = 0
    rounds_submitted: int = 0
    total_reaction_time_ms: int = Field(default=0, alias="totalReactionTime")
    average_reaction_time_ms: float = Field(default=0, alias="averageReactionTime")
    last_round_time_ms: int | None = Field(default=None, alias="lastRoundTime")
    placement: int | None = None

    def recompute_average(self) -> None:
        """Average over submitted rounds; zero before the first submission."""
        if self.rounds_submitted > 0:
            self.average_reaction_time_ms = self.total_reaction_time_ms / self.rounds_submitted
        else:
            self.average_reaction_time_ms = 0


class Player(_WireModel):
    id: str
    connection_id: str = Field(exclude=True)
    name: str
    is_host: bool = False
    status: PlayerStatus = PlayerStatus.WAITING
    stats: PlayerStats = Field(default_factory=PlayerStats)
    finished_current_round: bool = False
    current_round_time_ms: int | None = Field(default=None, alias="currentRoundTime")
    eliminated_in_round: int | None = None

    @property
    def is_eliminated(self) -> bool:
        return self.status == PlayerStatus.ELIMINATED


class PlayerInput(_WireModel):
    """A player's submission for the current round. One per player per round."""

    player_id: str
    submitted_sequence: list[str] = Field(alias="sequence")
    is_correct: bool
    reaction_time_ms: int = Field(alias="reactionTime")
    submitted_at: datetime = Field(default_factory=_now)


class Game(_WireModel):
    """
    Authoritative state of one game.

    ``players`` keeps join order, which is also the final tie-breaker in
    every ranking. ``player_inputs`` and ``round_phase`` are server-side only
    and never serialized to clients.
    """

    id: str
    join_code: str = Field(alias="gameCode")
    host_id: str
    settings: GameSettings
    players: list[Player] = Field(default_factory=list)
    status: GameStatus = GameStatus.LOBBY
    current_round: int = 0
    sequence: list[str] = Field(default_factory=list)
    player_inputs: dict[str, PlayerInput] = Field(default_factory=dict, exclude=True)
    round_timer_seconds: int = Field(default=0, alias="roundTimer")
    created_at: datetime = Field(default_factory=_now)
    started_at: datetime | None = Field(default=None, exclude=True)
    round_phase: RoundPhase = Field(default=RoundPhase.IDLE, exclude=True)

    def get_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def active_players(self) -> list[Player]:
        """Players still in contention (not eliminated)."""
        return [p for p in self.players if not p.is_eliminated]


class RoundStart(_WireModel):
    round: int
    sequence: list[str]
    time_limit: int


class SubmissionResult(_WireModel):
    is_correct: bool = False
    eliminated: bool = False
    recorded: bool = False


class RoundResult(_WireModel):
    """Per-player outcome of one round, sent in ``round:end``."""

    player_id: str
    player_name: str
    is_correct: bool
    reaction_time_ms: int | None = Field(default=None, alias="reactionTime")
    mistakes: int
    is_eliminated: bool
    eliminated_this_round: bool


class LeaderboardEntry(_WireModel):
    player_id: str
    player_name: str
    rank: int
    mistakes: int
    average_time_ms: float = Field(alias="averageTime")
    rounds_survived: int
    status: PlayerStatus
    placement: int | None = None


class GameStats(_WireModel):
    total_rounds: int
    total_players: int
    game_duration_ms: int = Field(alias="gameDuration")

"""
Game aggregate mutators.

All functions here are synchronous and mutate the Game in place. They never
await, so a caller holding the game's lock observes each mutation as atomic.
Rule violations raise GameRuleError subclasses before any state changes.
"""

import random
from datetime import UTC, datetime

from game.logic.codes import generate_player_id
from game.logic.colors import GameColor, calculate_time_limit, generate_sequence, select_random_colors
from game.logic.enums import GameErrorCode, GameMode, GameStatus, PlayerStatus, RoundPhase
from game.logic.exceptions import CapacityError, StateError
from game.logic.models import (
    MAX_PLAYERS,
    MIN_PLAYERS_TO_START,
    Game,
    Player,
    PlayerInput,
    PlayerStats,
    RoundStart,
    SubmissionResult,
)
from game.logic.ranking import rank_players
from game.logic.settings import GameSettings
from game.logic.validation import sequences_match


def create_game(
    game_id: str,
    join_code: str,
    settings: GameSettings,
    host_name: str,
    connection_id: str,
    requested_player_id: str | None = None,
) -> Game:
    """Build a new lobby with its host as the only player."""
    host = Player(
        id=requested_player_id or generate_player_id(),
        connection_id=connection_id,
        name=host_name,
        is_host=True,
    )
    return Game(id=game_id, join_code=join_code, host_id=host.id, settings=settings, players=[host])


def add_player(
    game: Game,
    name: str,
    connection_id: str,
    requested_player_id: str | None = None,
    max_players: int = MAX_PLAYERS,
) -> Player:
    """
    Append a waiting player to a lobby.

    A requested id that is already taken in this game is replaced with a
    freshly generated one.
    """
    if game.status != GameStatus.LOBBY:
        raise CapacityError("Game has already started", code=GameErrorCode.GAME_ALREADY_STARTED)
    if len(game.players) >= max_players:
        raise CapacityError("Game is full", code=GameErrorCode.GAME_FULL)

    player_id = requested_player_id
    if not player_id or game.get_player(player_id) is not None:
        player_id = generate_player_id()
        while game.get_player(player_id) is not None:
            player_id = generate_player_id()

    player = Player(id=player_id, connection_id=connection_id, name=name)
    game.players.append(player)
    return player


def remove_player(game: Game, player_id: str) -> bool:
    """
    Remove a player and hand the host role to the first remaining player.

    Returns False when the player is not in the game. The caller deletes the
    game from the registry once ``game.is_empty``.
    """
    player = game.get_player(player_id)
    if player is None:
        return False
    game.players.remove(player)
    game.player_inputs.pop(player_id, None)

    if player.is_host and game.players:
        new_host = game.players[0]
        new_host.is_host = True
        game.host_id = new_host.id
    return True


def refresh_colors(game: Game, rng: random.Random | None = None) -> list[GameColor]:
    """Redraw the lobby palette, keeping the configured difficulty."""
    if game.status != GameStatus.LOBBY:
        raise StateError("Colors can only be refreshed in the lobby")
    colors = select_random_colors(game.settings.difficulty, rng)
    game.settings = game.settings.model_copy(update={"selected_colors": tuple(colors)})
    return colors


def start(game: Game) -> bool:
    """Move a lobby with enough players into play. Returns False otherwise."""
    if game.status != GameStatus.LOBBY or len(game.players) < MIN_PLAYERS_TO_START:
        return False
    game.status = GameStatus.PLAYING
    game.current_round = 0
    game.started_at = datetime.now(tz=UTC)
    for player in game.players:
        player.status = PlayerStatus.PLAYING
    return True


def start_round(game: Game, rng: random.Random | None = None) -> RoundStart:
    """Advance to the next round with a freshly drawn sequence one color longer."""
    game.current_round += 1
    game.sequence = generate_sequence(game.settings.selected_colors, game.current_round, rng)
    game.player_inputs.clear()
    game.round_timer_seconds = calculate_time_limit(game.current_round)
    for player in game.players:
        player.finished_current_round = False
        player.current_round_time_ms = None
    return RoundStart(round=game.current_round, sequence=list(game.sequence), time_limit=game.round_timer_seconds)


def _revert_input(game: Game, player: Player, previous: PlayerInput) -> None:
    stats = player.stats
    if not previous.is_correct:
        stats.mistakes -= 1
    stats.rounds_submitted -= 1
    stats.total_reaction_time_ms -= previous.reaction_time_ms
    if player.eliminated_in_round == game.current_round:
        player.status = PlayerStatus.PLAYING
        player.eliminated_in_round = None


def record_submission(
    game: Game,
    player_id: str,
    sequence: list[str],
    reaction_time_ms: int,
) -> SubmissionResult:
    """
    Store a player's answer for the current round.

    A second submission in the same round replaces the first: the earlier
    answer's mistake, reaction time, and elimination are undone before the
    new answer is applied. Submissions from unknown players, players
    eliminated in an earlier round, or players who timed out this round are
    ignored.
    """
    player = game.get_player(player_id)
    if player is None or game.status != GameStatus.PLAYING or game.current_round == 0:
        return SubmissionResult()
    if player.eliminated_in_round is not None and player.eliminated_in_round < game.current_round:
        return SubmissionResult()

    previous = game.player_inputs.get(player_id)
    if previous is None and player.finished_current_round:
        # swept at expiry
        return SubmissionResult()
    if previous is not None:
        _revert_input(game, player, previous)

    is_correct = sequences_match(sequence, game.sequence)
    game.player_inputs[player_id] = PlayerInput(
        player_id=player_id,
        submitted_sequence=list(sequence),
        is_correct=is_correct,
        reaction_time_ms=reaction_time_ms,
    )

    stats = player.stats
    player.finished_current_round = True
    player.current_round_time_ms = reaction_time_ms
    if not is_correct:
        stats.mistakes += 1
    stats.rounds_submitted += 1
    stats.rounds_survived = game.current_round
    stats.total_reaction_time_ms += reaction_time_ms
    stats.last_round_time_ms = reaction_time_ms
    stats.recompute_average()

    eliminated = False
    if game.settings.mode == GameMode.LAST_MAN_STANDING and not is_correct:
        player.status = PlayerStatus.ELIMINATED
        player.eliminated_in_round = game.current_round
        eliminated = True

    return SubmissionResult(is_correct=is_correct, eliminated=eliminated, recorded=True)


def sweep_unsubmitted(game: Game) -> list[str]:
    """Count every active player who has not answered as having failed the round."""
    swept = []
    for player in game.players:
        if player.is_eliminated or player.finished_current_round:
            continue
        player.stats.mistakes += 1
        player.finished_current_round = True
        if game.settings.mode == GameMode.LAST_MAN_STANDING:
            player.status = PlayerStatus.ELIMINATED
            player.eliminated_in_round = game.current_round
        swept.append(player.id)
    return swept


def all_active_submitted(game: Game) -> bool:
    return all(p.finished_current_round for p in game.players if not p.is_eliminated)


def should_end(game: Game) -> bool:
    if game.settings.mode == GameMode.LAST_MAN_STANDING:
        return len(game.active_players) <= 1
    return game.current_round >= (game.settings.rounds or 0)


def end(game: Game) -> list[Player]:
    """Finish the game and assign placements 1..N. Returns players best-first."""
    ranked = rank_players(game)
    game.status = GameStatus.FINISHED
    game.round_phase = RoundPhase.IDLE
    for placement, player in enumerate(ranked, start=1):
        player.stats.placement = placement
        player.status = PlayerStatus.FINISHED
    return ranked


def _reset_players(game: Game, status: PlayerStatus) -> None:
    for player in game.players:
        player.stats = PlayerStats()
        player.status = status
        player.finished_current_round = False
        player.current_round_time_ms = None
        player.eliminated_in_round = None


def _clear_rounds(game: Game) -> None:
    game.current_round = 0
    game.sequence = []
    game.player_inputs.clear()
    game.round_timer_seconds = 0
    game.round_phase = RoundPhase.IDLE


def reset_for_replay(game: Game) -> None:
    """Restart play with the same roster and settings."""
    _clear_rounds(game)
    _reset_players(game, PlayerStatus.PLAYING)
    game.status = GameStatus.PLAYING
    game.started_at = datetime.now(tz=UTC)


def reset_to_lobby(game: Game) -> None:
    """Return the roster to the lobby so the host can reconfigure."""
    _clear_rounds(game)
    _reset_players(game, PlayerStatus.WAITING)
    game.status = GameStatus.LOBBY
    game.started_at = None

"""
Standings for leaderboards and final placement.

One ordering is used for both the between-rounds leaderboard and the final
placements:

- lastManStanding: players still standing first, fastest average reaction
  time first; eliminated players after them, longest survivor first.
- bestOfX: fewest mistakes first, then fastest average reaction time.

A player with no recorded answer has no average yet and sorts after every
player who has one when reaction time decides.

Python's sort is stable, so exact ties keep join order.
"""

import math
from datetime import UTC, datetime

from game.logic.enums import GameMode, GameStatus
from game.logic.models import Game, GameStats, LeaderboardEntry, Player, RoundResult


def _average_time(player: Player) -> float:
    if player.stats.rounds_submitted == 0:
        return math.inf
    return player.stats.average_reaction_time_ms


def _last_man_standing_key(player: Player) -> tuple[int, float]:
    if player.is_eliminated or player.eliminated_in_round is not None:
        return (1, -player.stats.rounds_survived)
    return (0, _average_time(player))


def _best_of_x_key(player: Player) -> tuple[int, float]:
    return (player.stats.mistakes, _average_time(player))


def rank_players(game: Game) -> list[Player]:
    """Return players best-first according to the game's mode."""
    if game.status == GameStatus.FINISHED and all(p.stats.placement is not None for p in game.players):
        return sorted(game.players, key=lambda p: p.stats.placement or 0)
    key = _last_man_standing_key if game.settings.mode == GameMode.LAST_MAN_STANDING else _best_of_x_key
    return sorted(game.players, key=key)


def build_leaderboard(game: Game) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            player_id=player.id,
            player_name=player.name,
            rank=index,
            mistakes=player.stats.mistakes,
            average_time_ms=player.stats.average_reaction_time_ms,
            rounds_survived=player.stats.rounds_survived,
            status=player.status,
            placement=player.stats.placement,
        )
        for index, player in enumerate(rank_players(game), start=1)
    ]


def build_round_results(game: Game) -> list[RoundResult]:
    """Outcome of the current round for every player, in join order."""
    results = []
    for player in game.players:
        player_input = game.player_inputs.get(player.id)
        results.append(
            RoundResult(
                player_id=player.id,
                player_name=player.name,
                is_correct=player_input.is_correct if player_input else False,
                reaction_time_ms=player.current_round_time_ms,
                mistakes=player.stats.mistakes,
                is_eliminated=player.is_eliminated,
                eliminated_this_round=player.eliminated_in_round == game.current_round,
            ),
        )
    return results


def eliminated_player_ids(game: Game) -> list[str]:
    """Ids of every player eliminated so far, in join order."""
    return [p.id for p in game.players if p.eliminated_in_round is not None]


def get_winner(game: Game) -> Player | None:
    """The first-placed player of a finished game, or None while it is running."""
    if game.status != GameStatus.FINISHED:
        return None
    return next((p for p in game.players if p.stats.placement == 1), None)


def build_game_stats(game: Game, now: datetime | None = None) -> GameStats:
    started = game.started_at or game.created_at
    elapsed = (now or datetime.now(tz=UTC)) - started
    return GameStats(
        total_rounds=game.current_round,
        total_players=game.player_count,
        game_duration_ms=max(0, int(elapsed.total_seconds() * 1000)),
    )

"""
String enum definitions for game concepts.
"""

from enum import StrEnum


class GameSpeed(StrEnum):
    """Playback speed of the sequence on clients."""

    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"


class GameMode(StrEnum):
    """Win condition of a game."""

    LAST_MAN_STANDING = "lastManStanding"
    BEST_OF_X = "bestOfX"


class GameStatus(StrEnum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


class PlayerStatus(StrEnum):
    WAITING = "waiting"
    PLAYING = "playing"
    ELIMINATED = "eliminated"
    FINISHED = "finished"


class RoundPhase(StrEnum):
    """Position of a game in the round orchestration state machine."""

    IDLE = "idle"  # lobby or finished, no round in flight
    ANNOUNCING = "announcing"  # waiting to start the next round
    INPUT = "input"  # countdown running, accepting submissions
    AGGREGATING = "aggregating"  # round closed, results pending
    INTERMISSION = "intermission"  # leaderboard display between rounds


class GameErrorCode(StrEnum):
    """Error codes sent to clients alongside rejection messages."""

    INVALID_MESSAGE = "invalid_message"
    INVALID_SETTINGS = "invalid_settings"
    INVALID_NAME = "invalid_name"
    INVALID_CODE = "invalid_code"
    INVALID_SUBMISSION = "invalid_submission"
    GAME_NOT_FOUND = "game_not_found"
    NOT_IN_GAME = "not_in_game"
    ALREADY_IN_GAME = "already_in_game"
    NOT_HOST = "not_host"
    GAME_FULL = "game_full"
    GAME_ALREADY_STARTED = "game_already_started"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    INVALID_STATE = "invalid_state"
    SERVER_AT_CAPACITY = "server_at_capacity"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"

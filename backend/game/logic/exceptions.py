"""Typed domain exceptions for rejected game operations.

Every rejection raised by the aggregate, the registry, or the validators is a
subclass of GameRuleError. The session boundary catches GameRuleError and
reports it to the originating connection only; nothing is broadcast and no
state is mutated.
"""

from game.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for rejected game operations.

    Attributes:
        message: Human-readable explanation sent to the client.
        code: Machine-readable error code sent alongside the message.

    """

    default_code = GameErrorCode.INVALID_STATE

    def __init__(self, message: str, code: GameErrorCode | None = None) -> None:
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class GameValidationError(GameRuleError):
    """Malformed settings, name, join code, or submission."""

    default_code = GameErrorCode.INVALID_MESSAGE


class NotFoundError(GameRuleError):
    """Unknown game or player."""

    default_code = GameErrorCode.GAME_NOT_FOUND


class AuthorizationError(GameRuleError):
    """A non-host attempted a host-only action."""

    default_code = GameErrorCode.NOT_HOST


class CapacityError(GameRuleError):
    """Game is full, already started, or the server has no room for another game."""

    default_code = GameErrorCode.GAME_FULL


class StateError(GameRuleError):
    """Operation is not valid in the game's current state."""

    default_code = GameErrorCode.INVALID_STATE

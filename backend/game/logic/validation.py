"""Input validation for settings, player names, join codes, and submissions."""

from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from game.logic.codes import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from game.logic.enums import GameErrorCode
from game.logic.exceptions import GameValidationError
from game.logic.settings import GameSettings

MAX_PLAYER_NAME_LENGTH = 20
_STRIPPED_NAME_CHARS = str.maketrans("", "", "<>")


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def validate_settings(raw: Any) -> GameSettings:
    """Parse raw client settings, raising GameValidationError on any violation."""
    if isinstance(raw, GameSettings):
        return raw
    try:
        return GameSettings.model_validate(raw)
    except ValidationError as exc:
        raise GameValidationError(
            f"Invalid game settings ({_describe(exc)})",
            code=GameErrorCode.INVALID_SETTINGS,
        ) from exc


def sanitize_player_name(name: str) -> str:
    """
    Normalize a display name: trim, truncate to 20 characters, strip angle brackets.

    The result may be empty; callers reject empty names.
    """
    return name.strip()[:MAX_PLAYER_NAME_LENGTH].translate(_STRIPPED_NAME_CHARS)


def require_player_name(name: str) -> str:
    """Sanitize a display name, raising GameValidationError if nothing usable remains."""
    cleaned = sanitize_player_name(name).strip()
    if not cleaned:
        raise GameValidationError("Invalid player name", code=GameErrorCode.INVALID_NAME)
    return cleaned


def is_valid_join_code(code: str) -> bool:
    """Check a join code against the restricted alphabet, ignoring case."""
    if len(code) != JOIN_CODE_LENGTH:
        return False
    return all(ch in JOIN_CODE_ALPHABET for ch in code.upper())


def sequences_match(submitted: Sequence[str], target: Sequence[str]) -> bool:
    """Element-wise equality with matching length."""
    return len(submitted) == len(target) and all(a == b for a, b in zip(submitted, target, strict=True))

"""Join codes and internal identifiers.

Join codes are short and human-shareable; the alphabet leaves out 0/O and
1/I so codes read back unambiguously. Game and player ids are URL-safe
tokens from the secrets module.
"""

import secrets

JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6

_GAME_ID_BYTES = 12
_PLAYER_ID_BYTES = 9


def generate_join_code() -> str:
    """Return a random 6-character join code from the restricted alphabet."""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def generate_game_id() -> str:
    return f"game_{secrets.token_urlsafe(_GAME_ID_BYTES)}"


def generate_player_id() -> str:
    return secrets.token_urlsafe(_PLAYER_ID_BYTES)

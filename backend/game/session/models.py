from dataclasses import dataclass


@dataclass(frozen=True)
class Binding:
    """The (player, game) pair a connection is currently attached to."""

    player_id: str
    game_id: str

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from game.logic.enums import GameMode
from game.tests.helpers.builders import settings_payload
from game.tests.mocks import MockConnection

if TYPE_CHECKING:
    from game.logic.models import Game
    from game.session.manager import SessionManager


async def create_lobby(
    manager: SessionManager,
    num_players: int = 2,
    mode: GameMode = GameMode.LAST_MAN_STANDING,
    rounds: int | None = None,
) -> tuple[Game, list[MockConnection]]:
    """Create a game hosted by connections[0] and join the rest. Message history is cleared."""
    connections = [MockConnection() for _ in range(num_players)]
    for conn in connections:
        manager.register_connection(conn)

    game = await manager.create_game(connections[0], "Player0", settings_payload(mode=mode, rounds=rounds))
    for i, conn in enumerate(connections[1:], start=1):
        await manager.join_game(conn, game.join_code, f"Player{i}")

    for conn in connections:
        conn._outbox.clear()
    return game, connections


async def create_started_game(
    manager: SessionManager,
    num_players: int = 2,
    mode: GameMode = GameMode.LAST_MAN_STANDING,
    rounds: int | None = None,
) -> tuple[Game, list[MockConnection]]:
    """Create and start a game, then wait until round one accepts input."""
    game, connections = await create_lobby(manager, num_players, mode, rounds)
    await manager.start_game(connections[0], game.id)
    await wait_for_message(connections[0], "round:start")
    return game, connections


async def wait_for_message(
    connection: MockConnection,
    message_type: str,
    count: int = 1,
    timeout: float = 2.0,
) -> dict[str, Any]:
    """Wait until ``connection`` has received ``count`` messages of a type. Returns the latest."""

    async def _poll() -> dict[str, Any]:
        while len(connection.messages_of_type(message_type)) < count:
            await asyncio.sleep(0.005)
        return connection.messages_of_type(message_type)[-1]

    return await asyncio.wait_for(_poll(), timeout)


def player_id_of(game: Game, connection: MockConnection) -> str:
    player = next((p for p in game.players if p.connection_id == connection.connection_id), None)
    assert player is not None
    return player.id


def wrong_sequence(game: Game) -> list[str]:
    """A sequence of the right length that differs from the target in the first position."""
    other = next(c for c in game.settings.color_ids if c != game.sequence[0])
    return [other, *game.sequence[1:]]

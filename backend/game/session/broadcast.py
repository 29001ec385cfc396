"""Shared broadcast utility for sending messages to a game's connections."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from game.messaging.protocol import ConnectionProtocol


async def broadcast_to_connections(
    connections: Iterable[ConnectionProtocol],
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Send a message to every connection, skipping one if excluded.

    Connections are sent to one at a time in the given order, so every
    recipient sees a game's messages in emission order. A connection that
    fails mid-send is skipped; its disconnect handler removes the player.
    """
    for connection in list(connections):
        if connection.connection_id != exclude_connection_id:
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(message)

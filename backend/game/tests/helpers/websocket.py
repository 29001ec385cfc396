"""Shared WebSocket test helpers for game integration tests."""

from typing import Any

from game.messaging.encoder import decode, encode
from game.tests.helpers.builders import settings_payload


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def recv_until(ws, message_type: str, limit: int = 200) -> list[dict]:
    """Receive messages until one of ``message_type`` arrives. Returns all received, that one last."""
    messages = []
    for _ in range(limit):
        msg = recv_ws(ws)
        messages.append(msg)
        if msg["type"] == message_type:
            return messages
    raise AssertionError(f"no {message_type!r} within {limit} messages")


def create_game_ws(ws, host_name: str = "Host", **settings: Any) -> dict:
    """Create a game over the socket. Returns the ``game:created`` payload."""
    send_ws(ws, {"type": "createGame", "hostName": host_name, "settings": settings_payload(**settings)})
    created = recv_ws(ws)
    assert created["type"] == "game:created"
    state = recv_ws(ws)
    assert state["type"] == "game:state"
    return created


def join_game_ws(ws, code: str, player_name: str = "Guest") -> dict:
    """Join a game over the socket. Returns the ``game:state`` snapshot sent to the joiner."""
    send_ws(ws, {"type": "joinGame", "code": code, "playerName": player_name})
    state = recv_ws(ws)
    assert state["type"] == "game:state", state
    return state

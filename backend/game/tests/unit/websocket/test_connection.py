"""Unit tests for WebSocketConnection wrapper class."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketDisconnect

from game.messaging.encoder import decode
from game.server.websocket import WebSocketConnection


class TestWebSocketConnection:
    """Test error handling and delegation in WebSocketConnection wrapper."""

    async def test_send_bytes_converts_disconnect_to_connection_error(self):
        """Verify that WebSocketDisconnect is converted to ConnectionError on send."""
        mock_ws = MagicMock()
        mock_ws.send_bytes = AsyncMock(side_effect=WebSocketDisconnect())
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        with pytest.raises(ConnectionError, match="WebSocket already disconnected"):
            await conn.send_bytes(b"data")

    async def test_close_suppresses_disconnect(self):
        """Closing an already-disconnected WebSocket completes without error."""
        mock_ws = MagicMock()
        mock_ws.close = AsyncMock(side_effect=WebSocketDisconnect())
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        await conn.close()

    async def test_close_suppresses_runtime_error(self):
        mock_ws = MagicMock()
        mock_ws.close = AsyncMock(side_effect=RuntimeError("already closed"))
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        await conn.close(code=4004, reason="bye")
        mock_ws.close.assert_awaited_once_with(code=4004, reason="bye")

    async def test_receive_bytes_converts_disconnect_to_connection_error(self):
        """Verify that WebSocketDisconnect is converted to ConnectionError on receive."""
        mock_ws = MagicMock()
        mock_ws.receive_bytes = AsyncMock(side_effect=WebSocketDisconnect())
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        with pytest.raises(ConnectionError, match="WebSocket already disconnected"):
            await conn.receive_bytes()

    async def test_text_frame_reads_as_empty_bytes(self):
        """Starlette raises KeyError for a text frame on receive_bytes; it becomes an undecodable frame."""
        mock_ws = MagicMock()
        mock_ws.receive_bytes = AsyncMock(side_effect=KeyError("bytes"))
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        assert await conn.receive_bytes() == b""

    async def test_send_message_encodes_msgpack(self):
        mock_ws = MagicMock()
        mock_ws.send_bytes = AsyncMock()
        conn = WebSocketConnection(mock_ws)

        await conn.send_message({"type": "pong"})

        sent = mock_ws.send_bytes.await_args.args[0]
        assert decode(sent) == {"type": "pong"}

    def test_generates_connection_id(self):
        first = WebSocketConnection(MagicMock())
        second = WebSocketConnection(MagicMock())
        assert first.connection_id
        assert first.connection_id != second.connection_id

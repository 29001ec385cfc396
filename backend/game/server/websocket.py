from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from game.logic.enums import GameErrorCode
from game.messaging.encoder import DecodeError, decode
from game.messaging.event_payload import message_payload
from game.messaging.protocol import ConnectionProtocol
from game.messaging.types import ErrorMessage
from game.server.rate_limit import ConnectionLimits

logger = structlog.get_logger()

if TYPE_CHECKING:
    from game.messaging.router import MessageRouter


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            data = await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None
        except KeyError:
            # text frame; counts as an undecodable frame
            return b""
        return data or b""

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def _send_error(connection: ConnectionProtocol, code: GameErrorCode, message: str) -> None:
    await connection.send_message(message_payload(ErrorMessage(code=code, message=message)))


async def websocket_endpoint(
    websocket: WebSocket,
    router: MessageRouter,
    limits: ConnectionLimits | None = None,
) -> None:
    limits = limits or ConnectionLimits()
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    bucket = limits.new_bucket()
    decode_errors = 0

    try:
        while True:
            raw = await connection.receive_bytes()

            # Always decode to maintain the malformed-message strike counter.
            try:
                data = decode(raw)
            except DecodeError as e:
                decode_errors += 1
                logger.warning("decode error", error=str(e), strikes=decode_errors)
                await _send_error(connection, GameErrorCode.INVALID_MESSAGE, str(e))
                if decode_errors >= limits.max_decode_errors:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=4004, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0

            if not bucket.consume():
                await _send_error(connection, GameErrorCode.RATE_LIMITED, "Too many messages")
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()

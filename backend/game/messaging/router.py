from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from game.logic.enums import GameErrorCode
from game.logic.exceptions import GameRuleError
from game.messaging.event_payload import message_payload
from game.messaging.types import (
    ClientMessageType,
    CreateGameMessage,
    ErrorMessage,
    JoinErrorMessage,
    JoinGameMessage,
    LeaveGameMessage,
    NewGameMessage,
    PingMessage,
    PlayAgainMessage,
    RefreshColorsMessage,
    StartGameMessage,
    SubmitSequenceMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from game.messaging.protocol import ConnectionProtocol
    from game.messaging.types import ClientMessage
    from game.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Route incoming messages to the session manager.

    This is the boundary where rejected operations are reported to the sender
    only. Malformed messages and GameRuleError become ``error`` frames, or
    ``join:error`` when the frame is a ``joinGame``. Anything unexpected is
    logged and answered with a generic error.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            if raw_message.get("type") == ClientMessageType.JOIN_GAME:
                await connection.send_message(
                    message_payload(JoinErrorMessage(code=GameErrorCode.INVALID_MESSAGE, message=_describe_invalid(e))),
                )
            else:
                await self._send_error(connection, GameErrorCode.INVALID_MESSAGE, _describe_invalid(e))
            return

        try:
            await self._dispatch(connection, message)
        except GameRuleError as e:
            logger.info("operation rejected", message_type=message.type, error_code=e.code, error_message=e.message)
            if isinstance(message, JoinGameMessage):
                await connection.send_message(message_payload(JoinErrorMessage(code=e.code, message=e.message)))
            else:
                await self._send_error(connection, e.code, e.message)
        except Exception:
            logger.exception("unexpected error handling message", message_type=message.type)
            await self._send_error(connection, GameErrorCode.INTERNAL_ERROR, "Something went wrong, please try again")

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:
        manager = self._session_manager
        if isinstance(message, CreateGameMessage):
            await manager.create_game(connection, message.host_name, message.settings, message.player_id)
        elif isinstance(message, JoinGameMessage):
            await manager.join_game(connection, message.code, message.player_name, message.player_id)
        elif isinstance(message, RefreshColorsMessage):
            await manager.refresh_colors(connection, message.game_id)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(connection, message.game_id)
        elif isinstance(message, SubmitSequenceMessage):
            await manager.submit_sequence(
                connection,
                message.game_id,
                message.sequence,
                round(message.reaction_time),
            )
        elif isinstance(message, PlayAgainMessage):
            await manager.play_again(connection, message.game_id)
        elif isinstance(message, NewGameMessage):
            await manager.new_game(connection, message.game_id)
        elif isinstance(message, LeaveGameMessage):
            await manager.leave_game(connection, message.game_id)
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    async def _send_error(self, connection: ConnectionProtocol, code: GameErrorCode, message: str) -> None:
        await connection.send_message(message_payload(ErrorMessage(code=code, message=message)))

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)


def _describe_invalid(error: Exception) -> str:
    if isinstance(error, ValidationError) and error.errors():
        first = error.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return f"Invalid message ({location}: {first['msg']})" if location else f"Invalid message ({first['msg']})"
    return "Invalid message"

"""Connection interface shared by the WebSocket transport and session tests."""

from abc import ABC, abstractmethod
from typing import Any

from game.messaging.encoder import encode


class ConnectionProtocol(ABC):
    """
    A single client connection carrying MessagePack frames.

    The session manager and broadcaster only see this interface; the
    WebSocket adapter and the in-memory test connection implement it.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Identifier bound to a player while the connection is in a game."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None:
        """Write one encoded frame. Raises ConnectionError once the peer is gone."""
        ...

    @abstractmethod
    async def receive_bytes(self) -> bytes:
        """Read the next raw frame."""
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

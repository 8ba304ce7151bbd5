"""Transport-neutral view of one client channel."""

from abc import ABC, abstractmethod
from typing import Any

from trivia.messaging.encoder import encode


class ConnectionProtocol(ABC):
    """
    One duplex message channel (a host display or a player).

    Game and session code only ever talk to this interface, so they can be
    exercised with in-memory connections in tests.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """False once either side has closed the channel."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))


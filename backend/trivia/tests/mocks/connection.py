import asyncio
from typing import Any
from uuid import uuid4

from trivia.messaging.encoder import decode, encode
from trivia.messaging.protocol import ConnectionProtocol


class MockConnection(ConnectionProtocol):
    def __init__(self, connection_id: str | None = None) -> None:
        self._connection_id = connection_id or str(uuid4())
        self._inbox: asyncio.Queue[bytes] = asyncio.Queue()
        self._outbox: list[dict[str, Any]] = []
        self._closed = False
        self._close_code: int | None = None

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def is_open(self) -> bool:
        return not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def sent_messages(self) -> list[dict[str, Any]]:
        return self._outbox.copy()

    def messages_of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self._outbox if m.get("type") == message_type]

    def last_of_type(self, message_type: str) -> dict[str, Any] | None:
        matching = self.messages_of_type(message_type)
        return matching[-1] if matching else None

    def clear(self) -> None:
        self._outbox.clear()

    async def send_bytes(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Connection is closed")
        # decode and store for test inspection
        self._outbox.append(decode(data))

    async def receive_bytes(self) -> bytes:
        if self._closed:
            raise RuntimeError("Connection is closed")
        return await self._inbox.get()

    async def close(self, code: int = 1000, reason: str = "") -> None:  # noqa: ARG002
        self._closed = True
        self._close_code = code

    def drop(self) -> None:
        """Simulate the client vanishing without a close handshake."""
        self._closed = True

    async def simulate_receive(self, data: dict[str, Any]) -> None:
        await self._inbox.put(encode(data))

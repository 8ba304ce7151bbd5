from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from trivia.messaging.encoder import DecodeError, decode
from trivia.messaging.protocol import ConnectionProtocol
from trivia.server.rate_limit import TokenBucket

logger = structlog.get_logger()

if TYPE_CHECKING:
    from trivia.messaging.router import MessageRouter

# A player taps a handful of buttons per phase; anything faster is a script.
_RATE_LIMIT_RATE = 10.0
_RATE_LIMIT_BURST = 20


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())
        self._closed = False

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            self._closed = True
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        """Next binary frame. A text frame raises DecodeError and leaves the channel open."""
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            self._closed = True
            raise ConnectionError("WebSocket already disconnected")
        frame = message.get("bytes")
        if frame is None:
            raise DecodeError("expected a binary frame")
        return frame

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self._closed = True
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)

    try:
        while True:
            try:
                data = decode(await connection.receive_bytes())
            except DecodeError as e:
                logger.warning("dropping undecodable frame", error=str(e))
                continue

            if not bucket.allow():
                logger.debug("rate limited, message dropped")
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        connection.mark_closed()
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()

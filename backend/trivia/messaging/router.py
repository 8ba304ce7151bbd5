from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from trivia.logic.enums import GameAction
from trivia.messaging.types import (
    CreateRoomMessage,
    HostJoinMessage,
    JoinRoomMessage,
    PlayAgainMessage,
    StartGameMessage,
    SubmitLieMessage,
    SubmitVoteMessage,
    VoteCategoryMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from trivia.messaging.protocol import ConnectionProtocol
    from trivia.messaging.types import GameActionMessage
    from trivia.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to the session manager.

    Malformed messages are dropped without a reply; the connection stays open.
    This class contains pure dispatch logic and can be tested without real
    WebSocket connections.
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
            logger.warning("dropping invalid message from %s: %s", connection.connection_id, e)
            return

        if isinstance(message, CreateRoomMessage):
            await self._session_manager.create_room(connection)
        elif isinstance(message, JoinRoomMessage):
            await self._session_manager.join_room(connection, message.code, message.name)
        elif isinstance(message, HostJoinMessage):
            await self._session_manager.host_join(connection, message.code)
        elif isinstance(message, StartGameMessage):
            await self._session_manager.start_game(connection)
        elif isinstance(message, PlayAgainMessage):
            await self._session_manager.play_again(connection)
        elif isinstance(message, (VoteCategoryMessage, SubmitLieMessage, SubmitVoteMessage)):
            await self._handle_game_action(connection, message)

    async def _handle_game_action(self, connection: ConnectionProtocol, message: GameActionMessage) -> None:
        """Forward a gameplay action; an unexpected failure is logged and confined to this message."""
        action = GameAction(message.type.value)
        data = message.model_dump(exclude={"type"})
        try:
            await self._session_manager.handle_game_action(connection=connection, action=action, data=data)
        except Exception:
            logger.exception("error handling %s from %s", action, connection.connection_id)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)

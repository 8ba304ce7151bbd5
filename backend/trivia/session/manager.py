from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from trivia.logic.enums import RoomState
from trivia.logic.exceptions import InvalidActionError
from trivia.logic.state import DECOY_AUTHOR, Player
from trivia.messaging.event_payload import wire_payload
from trivia.messaging.types import (
    ErrorMessage,
    HostJoinedMessage,
    JoinedMessage,
    PlayerListMessage,
    RoomCreatedMessage,
    SessionErrorCode,
)
from trivia.session.broadcast import broadcast_to_room, deliver_events, send_safe
from trivia.session.models import ConnectionBinding
from trivia.session.registry import RoomLimitError, RoomRegistry, random_room_code
from trivia.session.sync import resync_events
from trivia.session.timer_manager import TimerManager

if TYPE_CHECKING:
    from collections.abc import Callable

    from trivia.logic.enums import GameAction, TimerAction
    from trivia.logic.phases import PhaseStep
    from trivia.logic.service import TriviaGameService
    from trivia.logic.state import Room
    from trivia.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """
    Bind connections to rooms and serialize everything that happens in a room.

    Every mutation of a room (player messages, timer expiry, disconnects)
    runs under that room's lock, and every PhaseStep returned by the game
    service is applied here: the pending timer is replaced or cancelled,
    then the step's events are delivered in order.
    """

    def __init__(
        self,
        game_service: TriviaGameService,
        *,
        sweep_interval_seconds: float = 300,
        max_rooms: int | None = None,
        code_factory: Callable[[], str] = random_room_code,
    ) -> None:
        self._game_service = game_service
        self._timer_manager = TimerManager(on_timeout=self._handle_timeout)
        self._registry = RoomRegistry(
            sweep_interval_seconds=sweep_interval_seconds,
            max_rooms=max_rooms,
            on_remove=self._timer_manager.cleanup_room,
            code_factory=code_factory,
        )
        self._connections: dict[str, ConnectionProtocol] = {}
        self._bindings: dict[str, ConnectionBinding] = {}  # connection_id -> binding

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def timer_manager(self) -> TimerManager:
        return self._timer_manager

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def get_room(self, code: str) -> Room | None:
        return self._registry.get_room(code)

    def get_binding(self, connection_id: str) -> ConnectionBinding | None:
        return self._bindings.get(connection_id)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)

    # --- Lifecycle ---

    def start(self) -> None:
        self._registry.start_sweeper()

    async def shutdown(self) -> None:
        await self._registry.stop_sweeper()
        self._timer_manager.cancel_all()

    # --- Identification ---

    async def create_room(self, connection: ConnectionProtocol) -> None:
        """Open a new room with this connection as its host display."""
        await self._detach(connection)
        try:
            room = self._registry.create_room(host_connection=connection)
        except RoomLimitError:
            logger.warning("room creation refused", rooms=self._registry.room_count)
            await self._send_error(connection, SessionErrorCode.SERVER_FULL, "Server is full, try again later")
            return
        self._bindings[connection.connection_id] = ConnectionBinding(room_code=room.code)
        structlog.contextvars.bind_contextvars(room=room.code)
        logger.info("room created")
        await send_safe(connection, wire_payload(RoomCreatedMessage(code=room.code)))

    async def host_join(self, connection: ConnectionProtocol, code: str) -> None:
        """Re-attach a host display to an existing room."""
        lock = self._registry.get_lock(code)
        if lock is None:
            await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room not found")
            return
        await self._detach(connection, keep_room=code)
        async with lock:
            room = self._registry.get_room(code)
            if room is None:
                await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room not found")
                return
            room.host_connection = connection
            self._bindings[connection.connection_id] = ConnectionBinding(room_code=code)
            structlog.contextvars.bind_contextvars(room=code)
            logger.info(
                "host attached",
                phase=room.phase,
                state=room.state,
                pending_timer=self._timer_manager.pending_action(code),
            )
            await send_safe(
                connection,
                wire_payload(
                    HostJoinedMessage(code=code, players=room.player_list(), phase=room.phase, state=room.state),
                ),
            )

    async def join_room(self, connection: ConnectionProtocol, code: str, name: str) -> None:
        """
        Join (or rejoin) a room as a named player.

        A name whose previous channel is closed is a rejoin: the new channel is
        swapped in and the player keeps their score. While that channel is
        still open, the name is taken.
        """
        settings = self._game_service.settings
        name = name.strip()[: settings.max_name_length]
        lock = self._registry.get_lock(code)
        if lock is None:
            await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room not found")
            return

        # a refused join keeps whatever seat the connection already holds
        async with lock:
            if await self._validate_join(self._registry.get_room(code), name, connection):
                return
        await self._detach(connection, keep_room=code, keep_name=name)
        async with lock:
            room = self._registry.get_room(code)
            if await self._validate_join(room, name, connection):
                return

            existing = room.players.get(name)
            if existing is not None:
                existing.connection = connection
                player = existing
            else:
                player = Player(name=name, connection=connection)
                room.players[name] = player
            self._bindings[connection.connection_id] = ConnectionBinding(room_code=code, player_name=name)
            structlog.contextvars.bind_contextvars(room=code, player=name)
            logger.info("player joined", rejoin=existing is not None, phase=room.phase)

            await send_safe(
                connection,
                wire_payload(JoinedMessage(code=code, name=name, score=player.score, phase=room.phase)),
            )
            await broadcast_to_room(room, wire_payload(PlayerListMessage(players=room.player_list())))
            if room.state != RoomState.LOBBY:
                await deliver_events(room, resync_events(room, name, settings))

    # --- Host actions ---

    async def start_game(self, connection: ConnectionProtocol) -> None:
        binding = self._bindings.get(connection.connection_id)
        if binding is None or not binding.is_host:
            return
        lock = self._registry.get_lock(binding.room_code)
        if lock is None:
            return
        async with lock:
            room = self._registry.get_room(binding.room_code)
            if room is None or room.host_connection is not connection or room.state != RoomState.LOBBY:
                return
            if not self._game_service.can_start(room):
                await self._send_error(
                    connection,
                    SessionErrorCode.NOT_ENOUGH_PLAYERS,
                    f"Need at least {self._game_service.settings.min_players} players",
                )
                return
            await self._apply_step(room, self._game_service.start_game(room))

    async def play_again(self, connection: ConnectionProtocol) -> None:
        binding = self._bindings.get(connection.connection_id)
        if binding is None or not binding.is_host:
            return
        lock = self._registry.get_lock(binding.room_code)
        if lock is None:
            return
        async with lock:
            room = self._registry.get_room(binding.room_code)
            if room is None or room.host_connection is not connection:
                return
            await self._apply_step(room, self._game_service.reset_to_lobby(room))

    # --- Player actions ---

    async def handle_game_action(
        self,
        connection: ConnectionProtocol,
        action: GameAction,
        data: dict[str, Any],
    ) -> None:
        """Route a gameplay action from a bound player. Anything invalid is a silent no-op."""
        binding = self._bindings.get(connection.connection_id)
        if binding is None or binding.player_name is None:
            return
        lock = self._registry.get_lock(binding.room_code)
        if lock is None:
            return
        async with lock:
            room = self._registry.get_room(binding.room_code)
            if room is None:
                return
            player = room.players.get(binding.player_name)
            if player is None or player.connection is not connection:
                return
            try:
                step = self._game_service.handle_action(room, binding.player_name, action, data)
            except InvalidActionError as e:
                logger.debug("action ignored", action=action, reason=e.reason)
                return
            await self._apply_step(room, step)

    # --- Disconnect ---

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._detach(connection)
        self.unregister_connection(connection)
        structlog.contextvars.clear_contextvars()

    # --- Timers ---

    async def _handle_timeout(self, room_code: str, action: TimerAction) -> None:
        lock = self._registry.get_lock(room_code)
        if lock is None:
            return
        async with lock:
            room = self._registry.get_room(room_code)
            if room is None:
                return
            structlog.contextvars.bind_contextvars(room=room_code)
            try:
                step = self._game_service.handle_timeout(room, action)
            except InvalidActionError as e:
                logger.debug("stale timer ignored", action=action, reason=e.reason)
                return
            await self._apply_step(room, step)

    # --- Internal helpers ---

    async def _apply_step(self, room: Room, step: PhaseStep) -> None:
        """Replace or cancel the room timer, then deliver the step's events. Caller holds the room lock."""
        if step.deadline is not None:
            self._timer_manager.schedule(room.code, step.deadline.seconds, step.deadline.action)
        elif step.cancel_timer:
            self._timer_manager.cancel(room.code)
        await deliver_events(room, step.events)

    async def _detach(
        self,
        connection: ConnectionProtocol,
        *,
        keep_room: str | None = None,
        keep_name: str | None = None,
    ) -> None:
        """Unhook a connection from whatever room role it currently holds.

        The Player entry stays; only its channel is cleared. The remaining
        players may now form a complete quorum, so the phase is re-checked.
        Re-identifying with the same room and name keeps the binding as is.
        """
        binding = self._bindings.pop(connection.connection_id, None)
        if binding is None:
            return
        if binding.room_code == keep_room and binding.player_name == keep_name:
            self._bindings[connection.connection_id] = binding
            return
        lock = self._registry.get_lock(binding.room_code)
        if lock is None:
            return
        async with lock:
            room = self._registry.get_room(binding.room_code)
            if room is None:
                return
            if binding.is_host:
                if room.host_connection is connection:
                    room.host_connection = None
                    logger.info("host detached", room=room.code)
                return
            player = room.players.get(binding.player_name)
            if player is None or player.connection is not connection:
                return
            player.connection = None
            await broadcast_to_room(room, wire_payload(PlayerListMessage(players=room.player_list())))
            await self._apply_step(room, self._game_service.player_disconnected(room, player.name))

    async def _validate_join(self, room: Room | None, name: str, connection: ConnectionProtocol) -> bool:
        """Check join preconditions under the room lock.

        Returns True if the join was refused (error already sent).
        """
        if room is None:
            await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room not found")
            return True
        settings = self._game_service.settings
        existing = room.players.get(name)
        if room.state != RoomState.LOBBY and existing is None:
            await self._send_error(connection, SessionErrorCode.GAME_IN_PROGRESS, "Game already in progress")
            return True
        if existing is None and room.player_count >= settings.max_players:
            await self._send_error(
                connection,
                SessionErrorCode.ROOM_FULL,
                f"Room is full (max {settings.max_players})",
            )
            return True
        if not name:
            await self._send_error(connection, SessionErrorCode.NAME_REQUIRED, "Name required")
            return True
        taken = existing is not None and existing.is_connected and existing.connection is not connection
        if name == DECOY_AUTHOR or taken:
            logger.info("join refused, name taken", player=name)
            await self._send_error(connection, SessionErrorCode.NAME_TAKEN, "Name already taken! Pick another.")
            return True
        return False

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await send_safe(connection, wire_payload(ErrorMessage(code=code, message=message)))

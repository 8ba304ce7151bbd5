"""Deliver messages and routed gameplay events to a room's connections."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

from trivia.logic.events import BroadcastTarget, HostTarget, PlayerTarget
from trivia.messaging.event_payload import service_event_payload

if TYPE_CHECKING:
    from trivia.logic.events import ServiceEvent
    from trivia.logic.state import Room
    from trivia.messaging.protocol import ConnectionProtocol

# a dead socket must never abort delivery to the rest of the room
_SEND_ERRORS = (RuntimeError, OSError, ConnectionError)


async def send_safe(connection: ConnectionProtocol | None, message: dict[str, Any]) -> None:
    if connection is None or not connection.is_open:
        return
    with contextlib.suppress(*_SEND_ERRORS):
        await connection.send_message(message)


async def broadcast_to_room(room: Room, message: dict[str, Any]) -> None:
    """Send to the host display and every connected player.

    Snapshot the players via list() so a join landing while we yield on a
    send cannot change the dict under iteration.
    """
    await send_safe(room.host_connection, message)
    for player in list(room.players.values()):
        await send_safe(player.connection, message)


async def deliver_events(room: Room, events: list[ServiceEvent]) -> None:
    """Send each event to its target, in order."""
    for event in events:
        payload = service_event_payload(event)
        target = event.target
        if isinstance(target, BroadcastTarget):
            await broadcast_to_room(room, payload)
        elif isinstance(target, HostTarget):
            await send_safe(room.host_connection, payload)
        elif isinstance(target, PlayerTarget):
            player = room.players.get(target.name)
            if player is not None:
                await send_safe(player.connection, payload)

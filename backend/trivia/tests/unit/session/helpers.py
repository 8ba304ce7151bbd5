from __future__ import annotations

from typing import TYPE_CHECKING

from trivia.logic.enums import GameAction
from trivia.tests.mocks import MockConnection

if TYPE_CHECKING:
    from trivia.session.manager import SessionManager


async def create_room(manager: SessionManager) -> tuple[MockConnection, str]:
    """Open a room from a fresh host display and return it with the room code."""
    host = MockConnection()
    manager.register_connection(host)
    await manager.create_room(host)
    return host, host.last_of_type("room-created")["code"]


async def join(manager: SessionManager, code: str, name: str) -> MockConnection:
    connection = MockConnection()
    manager.register_connection(connection)
    await manager.join_room(connection, code, name)
    return connection


async def create_started_room(
    manager: SessionManager,
    names: tuple[str, ...] = ("p1", "p2", "p3"),
) -> tuple[MockConnection, str, dict[str, MockConnection]]:
    """Create a room, join `names` and start the game. Message history is cleared."""
    host, code = await create_room(manager)
    players = {name: await join(manager, code, name) for name in names}
    await manager.start_game(host)
    host.clear()
    for connection in players.values():
        connection.clear()
    return host, code, players


async def fire_timer(manager: SessionManager, code: str) -> None:
    """Run the room's pending transition now instead of waiting for it."""
    action = manager.timer_manager.pending_action(code)
    assert action is not None, f"room {code} has no pending timer"
    await manager._handle_timeout(code, action)


async def act(manager: SessionManager, connection: MockConnection, action: GameAction, **data) -> None:
    await manager.handle_game_action(connection, action, data)

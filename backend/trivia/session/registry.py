"""Process-wide room table: code generation, lookup, locks and idle sweeping."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from collections.abc import Callable
from typing import TYPE_CHECKING

from trivia.logic.rng import generate_seed
from trivia.logic.state import Room

if TYPE_CHECKING:
    from trivia.messaging.protocol import ConnectionProtocol

logger = logging.getLogger(__name__)

# no O or I: they read as 0 and 1 on a TV across the room
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"
ROOM_CODE_LENGTH = 4


def random_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class RoomLimitError(Exception):
    """The registry already holds the maximum number of live rooms."""


class RoomRegistry:
    """Own every live Room and the lock that serializes work on it.

    Rooms are inserted by create_room and only removed by the idle sweep (or
    an explicit remove_room). `on_remove` runs before a room leaves the table
    so its pending timer can be cancelled first.
    """

    def __init__(
        self,
        *,
        sweep_interval_seconds: float = 300,
        max_rooms: int | None = None,
        on_remove: Callable[[str], None] | None = None,
        code_factory: Callable[[], str] = random_room_code,
    ) -> None:
        self._sweep_interval_seconds = sweep_interval_seconds
        self._max_rooms = max_rooms
        self._on_remove = on_remove
        self._code_factory = code_factory
        self._rooms: dict[str, Room] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    # --- Public API ---

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def max_rooms(self) -> int | None:
        return self._max_rooms

    def get_room(self, code: str) -> Room | None:
        return self._rooms.get(code)

    def get_lock(self, code: str) -> asyncio.Lock | None:
        return self._locks.get(code)

    def generate_code(self) -> str:
        """Draw codes until one is not used by a live room."""
        while True:
            code = self._code_factory()
            if code not in self._rooms:
                return code
            logger.debug("room code collision on %s, retrying", code)

    def create_room(self, host_connection: ConnectionProtocol | None = None, seed: str | None = None) -> Room:
        if self._max_rooms is not None and len(self._rooms) >= self._max_rooms:
            raise RoomLimitError(f"room limit reached ({self._max_rooms})")
        code = self.generate_code()
        room = Room(code=code, seed=seed or generate_seed(), host_connection=host_connection)
        self._rooms[code] = room
        self._locks[code] = asyncio.Lock()
        logger.info("room %s created", code)
        return room

    def remove_room(self, code: str) -> Room | None:
        """Drop a room, running the removal hook first. Caller holds the room lock if it exists."""
        if code not in self._rooms:
            return None
        if self._on_remove is not None:
            self._on_remove(code)
        return self._rooms.pop(code)

    # --- Idle sweep ---

    def start_sweeper(self) -> None:
        """Start the periodic idle-room sweep. Idempotent."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_seconds)
            try:
                await self.sweep_idle_rooms()
            except Exception:
                logger.exception("room sweep encountered an error")

    async def sweep_idle_rooms(self) -> list[str]:
        """Remove every room whose host and players are all disconnected.

        Idleness is re-checked under each room's lock so a rejoin that lands
        between the scan and the removal keeps the room alive.
        """
        candidates = [room.code for room in list(self._rooms.values()) if room.is_idle]
        removed: list[str] = []
        for code in candidates:
            lock = self._locks.get(code)
            if lock is None:
                continue
            async with lock:
                room = self._rooms.get(code)
                if room is None or not room.is_idle:
                    continue
                self.remove_room(code)
                removed.append(code)
            # Drop the lock outside the async with block so it is not deleted while held.
            self._locks.pop(code, None)
            logger.info("room %s swept (idle)", code)
        return removed

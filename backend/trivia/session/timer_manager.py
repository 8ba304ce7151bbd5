"""Own the single pending phase timer of every room."""

import logging
from collections.abc import Awaitable, Callable

from trivia.logic.enums import TimerAction
from trivia.logic.timer import PhaseTimer

logger = logging.getLogger(__name__)

# Callback type: (room_code, timer_action) -> Awaitable[None]
TimeoutCallback = Callable[[str, TimerAction], Awaitable[None]]


class TimerManager:
    """Schedule, replace and cancel room timers.

    This class does not know what a timer action means; it only guarantees
    that a room never has more than one timer outstanding and hands expired
    actions back to the owner through `on_timeout`.
    """

    def __init__(self, on_timeout: TimeoutCallback) -> None:
        self._timers: dict[str, PhaseTimer] = {}
        self._on_timeout = on_timeout

    def schedule(self, room_code: str, seconds: float, action: TimerAction) -> None:
        """Replace the room's pending timer (if any) with a new one."""
        timer = self._timers.setdefault(room_code, PhaseTimer())
        timer.start(seconds, action, lambda a, code=room_code: self._on_timeout(code, a))
        logger.debug("room %s timer set: %s in %.1fs", room_code, action, seconds)

    def cancel(self, room_code: str) -> None:
        timer = self._timers.get(room_code)
        if timer is not None:
            timer.cancel()

    def cleanup_room(self, room_code: str) -> None:
        """Cancel the room's timer and forget it."""
        timer = self._timers.pop(room_code, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def pending_action(self, room_code: str) -> TimerAction | None:
        timer = self._timers.get(room_code)
        return timer.pending_action if timer else None

    @property
    def pending_count(self) -> int:
        return sum(1 for timer in self._timers.values() if timer.is_pending)

"""
Server-side phase timer.

A room has at most one pending transition. PhaseTimer wraps a single asyncio
task that sleeps for the phase deadline and then runs the timeout callback;
starting a new deadline always cancels the previous one first.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from trivia.logic.enums import TimerAction


class PhaseTimer:
    """Single-slot deadline for one room."""

    def __init__(self) -> None:
        self._active_task: asyncio.Task[None] | None = None
        self._action: TimerAction | None = None

    @property
    def is_pending(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    @property
    def pending_action(self) -> TimerAction | None:
        """Action the pending timer will run, or None when idle."""
        return self._action if self.is_pending else None

    def start(
        self,
        seconds: float,
        action: TimerAction,
        on_timeout: Callable[[TimerAction], Awaitable[None]],
    ) -> None:
        """Replace any pending deadline with a new one."""
        self.cancel()
        self._action = action
        self._active_task = asyncio.create_task(self._run_timer(seconds, action, on_timeout))

    def cancel(self) -> None:
        """Drop the pending deadline.

        A callback running inside the timer task may schedule the next phase,
        which calls cancel() on its own task; that task is left to finish.
        """
        task = self._active_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._active_task = None
        self._action = None

    async def _run_timer(
        self,
        seconds: float,
        action: TimerAction,
        on_timeout: Callable[[TimerAction], Awaitable[None]],
    ) -> None:
        try:
            await asyncio.sleep(seconds)
            await on_timeout(action)
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("timer callback failed", action=action)

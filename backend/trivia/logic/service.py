"""
Game service: the single entry point from the session layer into room logic.

The service owns the question bank and the gameplay settings, routes player
actions to the matching phase handler and turns content errors into events
for the sender. It never schedules anything itself; callers act on the
returned PhaseStep.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from trivia.logic import phases
from trivia.logic.enums import GameAction
from trivia.logic.events import LieRejectedEvent, to_player
from trivia.logic.exceptions import InvalidActionError, LieRejectedError
from trivia.logic.phases import PhaseStep
from trivia.logic.settings import GameSettings

if TYPE_CHECKING:
    from trivia.logic.enums import TimerAction
    from trivia.logic.questions import QuestionBank
    from trivia.logic.state import Room

logger = structlog.get_logger()


class TriviaGameService:
    """Stateless facade over the phase functions; all state lives on the Room."""

    def __init__(self, bank: QuestionBank, settings: GameSettings | None = None) -> None:
        self._bank = bank
        self._settings = settings or GameSettings()

    @property
    def settings(self) -> GameSettings:
        return self._settings

    @property
    def bank(self) -> QuestionBank:
        return self._bank

    def can_start(self, room: Room) -> bool:
        return room.player_count >= self._settings.min_players

    def start_game(self, room: Room) -> PhaseStep:
        return phases.start_game(room, self._bank, self._settings)

    def reset_to_lobby(self, room: Room) -> PhaseStep:
        return phases.reset_to_lobby(room)

    def handle_action(
        self,
        room: Room,
        player_name: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> PhaseStep:
        """
        Apply one player action.

        Raises InvalidActionError for out-of-phase or unauthorized input.
        A rejected lie is answered with a lie-rejected event to the sender.
        """
        try:
            if action == GameAction.VOTE_CATEGORY:
                return phases.vote_category(room, player_name, str(data.get("category", "")), self._settings)
            if action == GameAction.SUBMIT_LIE:
                return phases.submit_lie(room, player_name, str(data.get("lie", "")), self._settings)
            if action == GameAction.SUBMIT_VOTE:
                return phases.submit_vote(room, player_name, int(data["answer_id"]), self._settings)
        except LieRejectedError as e:
            logger.info("lie rejected", player=player_name, reason=e.message)
            return PhaseStep(events=[to_player(player_name, LieRejectedEvent(message=e.message))])
        raise InvalidActionError(action=str(action), reason="unknown action", player=player_name)

    def handle_timeout(self, room: Room, action: TimerAction) -> PhaseStep:
        """Run a scheduled transition. Raises InvalidActionError if the timer is stale."""
        return phases.run_timer_action(room, action, self._settings)

    def player_disconnected(self, room: Room, player_name: str) -> PhaseStep:
        """A player's channel went away; the rest of the room may now be complete."""
        logger.info("player disconnected", player=player_name, phase=room.phase)
        return phases.recheck_quorum(room, self._settings)

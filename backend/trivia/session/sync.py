"""
Phase resynchronization for players who (re)join a running game.

A rejoining player only gets what their screen needs for the current phase,
never a replay of what they missed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trivia.logic.answers import player_choices
from trivia.logic.enums import Phase, RoomState
from trivia.logic.events import GameOverEvent, ScoreboardEvent, WaitEvent, YourChoicesEvent, to_player
from trivia.logic.phases import category_select_event, lie_phase_event

if TYPE_CHECKING:
    from trivia.logic.events import ServiceEvent
    from trivia.logic.settings import GameSettings
    from trivia.logic.state import Room

REVEAL_WAIT_MESSAGE = "Revealing answers..."


def resync_events(room: Room, name: str, settings: GameSettings) -> list[ServiceEvent]:
    """Events that put player `name` back on the room's current screen."""
    if room.state == RoomState.ENDED:
        return [to_player(name, GameOverEvent(players=room.ranked_players()))]
    if room.state != RoomState.PLAYING:
        return []

    if room.phase == Phase.CATEGORY_SELECT:
        event = category_select_event(room, settings, settings.category_resync_seconds)
    elif room.phase in (Phase.SHOW_QUESTION, Phase.LIE):
        event = lie_phase_event(room, settings.lie_resync_seconds)
    elif room.phase == Phase.VOTE:
        event = YourChoicesEvent(answers=player_choices(room.answer_list, name))
    elif room.phase == Phase.REVEAL:
        event = WaitEvent(message=REVEAL_WAIT_MESSAGE)
    elif room.phase == Phase.SCOREBOARD:
        event = ScoreboardEvent(players=room.ranked_players(), round=room.round)
    else:
        return []
    return [to_player(name, event)]

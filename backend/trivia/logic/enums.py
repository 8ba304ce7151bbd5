"""
String enum definitions for room lifecycle, phases and actions.
"""

from enum import StrEnum


class RoomState(StrEnum):
    """Coarse room lifecycle."""

    LOBBY = "lobby"
    PLAYING = "playing"
    ENDED = "ended"


class Phase(StrEnum):
    """Fine-grained step of a room. Everything except LOBBY happens while playing."""

    LOBBY = "lobby"
    CATEGORY_SELECT = "category-select"
    SHOW_QUESTION = "show-question"
    LIE = "lie"
    VOTE = "vote"
    REVEAL = "reveal"
    SCOREBOARD = "scoreboard"
    GAME_OVER = "game-over"


class GameAction(StrEnum):
    """Player actions dispatched from the session layer to the game service."""

    VOTE_CATEGORY = "vote-category"
    SUBMIT_LIE = "submit-lie"
    SUBMIT_VOTE = "submit-vote"


class TimerAction(StrEnum):
    """Scheduled transition a room's single pending timer will perform."""

    SELECT_CATEGORY = "select-category"
    START_LIE = "start-lie"
    START_VOTE = "start-vote"
    REVEAL = "reveal"
    SCOREBOARD = "scoreboard"
    NEXT_QUESTION = "next-question"


class AnswerKind(StrEnum):
    """Origin of an entry in the vote answer list."""

    TRUTH = "truth"
    LIE = "lie"
    DECOY = "decoy"

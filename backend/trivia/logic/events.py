"""Gameplay event models and the service event transport container.

Event classes are the closed set of outbound gameplay messages. Each is
tagged with its wire `type` and serialized with camelCase field names.
ServiceEvent wraps an event with a typed routing target so the session
layer knows who receives it without inspecting the payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from trivia.logic.types import AnswerOption, PlayerInfo, RevealEntry, WireModel

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event goes to the host display and every connected player."""


@dataclass(frozen=True)
class HostTarget:
    """Event goes to the host display only."""


@dataclass(frozen=True)
class PlayerTarget:
    """Event goes to one named player."""

    name: str


EventTarget = BroadcastTarget | HostTarget | PlayerTarget


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    """Wire types of gameplay events."""

    GAME_START = "game-start"
    NEW_ROUND = "new-round"
    CATEGORY_SELECT = "category-select"
    SHOW_QUESTION = "show-question"
    ALL_LIES_IN = "all-lies-in"
    LIE_PHASE = "lie-phase"
    LIE_ACCEPTED = "lie-accepted"
    LIE_REJECTED = "lie-rejected"
    LIE_COUNT = "lie-count"
    VOTE_PHASE = "vote-phase"
    YOUR_CHOICES = "your-choices"
    VOTE_ACCEPTED = "vote-accepted"
    VOTE_COUNT = "vote-count"
    REVEAL = "reveal"
    SCOREBOARD = "scoreboard"
    BACK_TO_LOBBY = "back-to-lobby"
    GAME_OVER = "game-over"
    WAIT = "wait"


# ---------------------------------------------------------------------------
# Gameplay event models
# ---------------------------------------------------------------------------


class GameEvent(WireModel):
    """Base class for all gameplay events."""

    model_config = ConfigDict(frozen=True)

    type: EventType


class GameStartEvent(GameEvent):
    type: Literal[EventType.GAME_START] = EventType.GAME_START
    players: list[PlayerInfo]


class NewRoundEvent(GameEvent):
    """Broadcast when play moves into round 2 or the final round."""

    type: Literal[EventType.NEW_ROUND] = EventType.NEW_ROUND
    round: int


class CategorySelectEvent(GameEvent):
    """Offer of categories for the next question."""

    type: Literal[EventType.CATEGORY_SELECT] = EventType.CATEGORY_SELECT
    categories: list[str]
    round: int
    question_num: int
    total_questions: int
    time_ms: int


class ShowQuestionEvent(GameEvent):
    type: Literal[EventType.SHOW_QUESTION] = EventType.SHOW_QUESTION
    question: str
    category: str
    round: int
    time_ms: int


class AllLiesInEvent(GameEvent):
    type: Literal[EventType.ALL_LIES_IN] = EventType.ALL_LIES_IN


class LiePhaseEvent(GameEvent):
    """Prompt to write a lie for the current question."""

    type: Literal[EventType.LIE_PHASE] = EventType.LIE_PHASE
    question: str
    time_ms: int


class LieAcceptedEvent(GameEvent):
    type: Literal[EventType.LIE_ACCEPTED] = EventType.LIE_ACCEPTED


class LieRejectedEvent(GameEvent):
    """Lie failed validation; the player may try again."""

    type: Literal[EventType.LIE_REJECTED] = EventType.LIE_REJECTED
    message: str


class LieCountEvent(GameEvent):
    type: Literal[EventType.LIE_COUNT] = EventType.LIE_COUNT
    count: int
    total: int


class VotePhaseEvent(GameEvent):
    """Full answer list; players additionally receive their own YourChoicesEvent."""

    type: Literal[EventType.VOTE_PHASE] = EventType.VOTE_PHASE
    question: str
    answers: list[AnswerOption]
    time_ms: int


class YourChoicesEvent(GameEvent):
    """A player's personalized answer list with their own lie removed."""

    type: Literal[EventType.YOUR_CHOICES] = EventType.YOUR_CHOICES
    answers: list[AnswerOption]


class VoteAcceptedEvent(GameEvent):
    type: Literal[EventType.VOTE_ACCEPTED] = EventType.VOTE_ACCEPTED


class VoteCountEvent(GameEvent):
    type: Literal[EventType.VOTE_COUNT] = EventType.VOTE_COUNT
    count: int
    total: int


class RevealEvent(GameEvent):
    """Outcome of a question: every slot disclosed plus the score deltas."""

    type: Literal[EventType.REVEAL] = EventType.REVEAL
    reveals: list[RevealEntry]
    truth: str
    score_changes: dict[str, int]
    players: list[PlayerInfo]


class ScoreboardEvent(GameEvent):
    type: Literal[EventType.SCOREBOARD] = EventType.SCOREBOARD
    players: list[PlayerInfo]
    round: int


class BackToLobbyEvent(GameEvent):
    type: Literal[EventType.BACK_TO_LOBBY] = EventType.BACK_TO_LOBBY
    players: list[PlayerInfo]


class GameOverEvent(GameEvent):
    """Final standings, highest score first."""

    type: Literal[EventType.GAME_OVER] = EventType.GAME_OVER
    players: list[PlayerInfo]


class WaitEvent(GameEvent):
    type: Literal[EventType.WAIT] = EventType.WAIT
    message: str


# ---------------------------------------------------------------------------
# Service event transport container
# ---------------------------------------------------------------------------


class ServiceEvent(BaseModel):
    """Event transport container for the game service layer."""

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event.value != self.data.type.value:
            raise ValueError(
                f"ServiceEvent.event '{self.event.value}' does not match data.type '{self.data.type.value}'",
            )
        return self


def broadcast(event: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=event.type, data=event, target=BroadcastTarget())


def to_host(event: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=event.type, data=event, target=HostTarget())


def to_player(name: str, event: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=event.type, data=event, target=PlayerTarget(name=name))


def seconds_to_ms(seconds: float) -> int:
    return round(seconds * 1000)

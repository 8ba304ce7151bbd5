"""
Mutable per-room game state.

A Room is owned by exactly one registry entry and is only mutated while the
session layer holds that room's lock, so none of these types synchronize
internally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from trivia.logic.enums import AnswerKind, Phase, RoomState
from trivia.logic.rng import create_rng
from trivia.logic.types import PlayerInfo

if TYPE_CHECKING:
    import random

    from trivia.logic.questions import Question
    from trivia.messaging.protocol import ConnectionProtocol

# author shown to clients for machine-generated decoys
DECOY_AUTHOR = "__GAME__"


@dataclass
class Player:
    """A named participant. Survives disconnects; only the connection toggles."""

    name: str
    score: int = 0
    connection: ConnectionProtocol | None = None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and self.connection.is_open

    def info(self) -> PlayerInfo:
        return PlayerInfo(name=self.name, score=self.score, connected=self.is_connected)


@dataclass(frozen=True)
class AnswerEntry:
    """One slot of the vote answer list, fixed for the whole voting phase."""

    text: str
    kind: AnswerKind
    author: str | None = None  # player name for lies, None otherwise

    @property
    def is_true(self) -> bool:
        return self.kind == AnswerKind.TRUTH

    @property
    def wire_author(self) -> str | None:
        if self.kind == AnswerKind.DECOY:
            return DECOY_AUTHOR
        return self.author

    def is_authored_by(self, name: str) -> bool:
        return self.kind == AnswerKind.LIE and self.author == name


@dataclass
class Room:
    """One live game instance, identified by its immutable 4-character code."""

    code: str
    seed: str
    host_connection: ConnectionProtocol | None = None
    state: RoomState = RoomState.LOBBY
    phase: Phase = Phase.LOBBY
    round: int = 0
    question_number: int = 0
    players: dict[str, Player] = field(default_factory=dict)  # name -> Player, insertion = join order
    question_pool: list[Question] = field(default_factory=list)
    current_question: Question | None = None
    categories: list[str] = field(default_factory=list)
    category_votes: dict[str, str] = field(default_factory=dict)  # player name -> category
    lies: dict[str, str] = field(default_factory=dict)  # player name -> lie text
    votes: dict[str, int] = field(default_factory=dict)  # player name -> answer slot index
    answer_list: list[AnswerEntry] = field(default_factory=list)
    settling: bool = False  # an early-exit transition is already armed for this phase
    rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.rng = create_rng(self.seed)

    @property
    def host_connected(self) -> bool:
        return self.host_connection is not None and self.host_connection.is_open

    @property
    def connected_players(self) -> list[Player]:
        return [p for p in self.players.values() if p.is_connected]

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_idle(self) -> bool:
        """True when neither the host nor any player has a live connection."""
        return not self.host_connected and not self.connected_players

    def player_list(self) -> list[PlayerInfo]:
        """Players in join order."""
        return [p.info() for p in self.players.values()]

    def ranked_players(self) -> list[PlayerInfo]:
        """Players by score, highest first; ties keep join order."""
        return sorted(self.player_list(), key=lambda p: p.score, reverse=True)

    def clear_question_state(self) -> None:
        self.current_question = None
        self.categories = []
        self.category_votes = {}
        self.lies = {}
        self.votes = {}
        self.answer_list = []
        self.settling = False

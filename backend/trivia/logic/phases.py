"""
Room phase sequencer.

Every function here takes a room, mutates it for exactly one transition or
accepted input, and returns a PhaseStep describing what to send and which
single timer (if any) should replace the room's pending one. Nothing here
touches the scheduler or the network.

Phase order for each question:
    category-select -> show-question -> lie -> vote -> reveal -> scoreboard
and after the last scoreboard of the final round, game-over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from trivia.logic.answers import build_answer_list, display_answers, player_choices, reveal_entries
from trivia.logic.enums import GameAction, Phase, RoomState, TimerAction
from trivia.logic.events import (
    AllLiesInEvent,
    BackToLobbyEvent,
    CategorySelectEvent,
    GameOverEvent,
    GameStartEvent,
    LieAcceptedEvent,
    LieCountEvent,
    LiePhaseEvent,
    NewRoundEvent,
    RevealEvent,
    ScoreboardEvent,
    ServiceEvent,
    ShowQuestionEvent,
    VoteAcceptedEvent,
    VoteCountEvent,
    VotePhaseEvent,
    YourChoicesEvent,
    broadcast,
    seconds_to_ms,
    to_host,
    to_player,
)
from trivia.logic.exceptions import InvalidActionError, LieRejectedError
from trivia.logic.questions import offer_categories, take_question
from trivia.logic.scoring import apply_score_changes, compute_score_changes
from trivia.logic.similarity import is_too_similar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from trivia.logic.questions import Question, QuestionBank
    from trivia.logic.settings import GameSettings
    from trivia.logic.state import Room

logger = structlog.get_logger()

LIE_EMPTY_MESSAGE = "Your lie can't be empty."
LIE_TOO_CLOSE_MESSAGE = "Too close to the real answer! Try again."


@dataclass(frozen=True)
class Deadline:
    """A transition to run after `seconds` unless something replaces it first."""

    seconds: float
    action: TimerAction


@dataclass
class PhaseStep:
    """Result of one transition: events to deliver and the next timer request.

    `deadline` replaces whatever timer the room has pending. `cancel_timer`
    asks for the pending timer to be dropped with nothing scheduled after it.
    A step with neither leaves the pending timer alone.
    """

    events: list[ServiceEvent] = field(default_factory=list)
    deadline: Deadline | None = None
    cancel_timer: bool = False

    def then(self, other: PhaseStep) -> PhaseStep:
        """Append a follow-up step; the later step decides the timer."""
        return PhaseStep(
            events=[*self.events, *other.events],
            deadline=other.deadline,
            cancel_timer=other.cancel_timer,
        )


# ---------------------------------------------------------------------------
# Host-driven transitions
# ---------------------------------------------------------------------------


def start_game(room: Room, bank: QuestionBank, settings: GameSettings) -> PhaseStep:
    """Leave the lobby: reset scores, draw a question pool and offer the first categories."""
    if room.state != RoomState.LOBBY:
        raise InvalidActionError(action="start-game", reason=f"room is {room.state}")
    if room.player_count < settings.min_players:
        raise InvalidActionError(action="start-game", reason="not enough players")

    room.state = RoomState.PLAYING
    room.round = 1
    room.question_number = 0
    for player in room.players.values():
        player.score = 0
    room.question_pool = bank.draw_pool(room.rng, settings.question_pool_size)
    logger.info("game started", players=room.player_count, pool=len(room.question_pool))

    step = PhaseStep(events=[broadcast(GameStartEvent(players=room.player_list()))])
    return step.then(next_question(room, settings))


def reset_to_lobby(room: Room) -> PhaseStep:
    """Return to the lobby from any state. Players stay; scores go back to zero."""
    room.state = RoomState.LOBBY
    room.phase = Phase.LOBBY
    room.round = 0
    room.question_number = 0
    room.question_pool = []
    room.clear_question_state()
    for player in room.players.values():
        player.score = 0
    logger.info("room reset to lobby")
    return PhaseStep(
        events=[broadcast(BackToLobbyEvent(players=room.player_list()))],
        cancel_timer=True,
    )


# ---------------------------------------------------------------------------
# Timer-driven transitions
# ---------------------------------------------------------------------------


def next_question(room: Room, settings: GameSettings) -> PhaseStep:
    """Advance the question counter (and round, when the quota is used up) and offer categories."""
    events: list[ServiceEvent] = []
    room.question_number += 1
    if room.question_number > settings.questions_in_round(room.round):
        room.round += 1
        room.question_number = 1
        if room.round > settings.max_rounds:
            return end_game(room)
        events.append(broadcast(NewRoundEvent(round=room.round)))

    room.clear_question_state()
    room.categories = offer_categories(room.question_pool, room.rng, settings.categories_offered)
    if not room.categories:
        logger.warning("question pool exhausted", round=room.round, question=room.question_number)
        return PhaseStep(events=events).then(end_game(room))

    room.phase = Phase.CATEGORY_SELECT
    logger.info("phase changed", phase=room.phase, round=room.round, question=room.question_number)
    events.append(broadcast(category_select_event(room, settings, settings.category_select_seconds)))
    return PhaseStep(
        events=events,
        deadline=Deadline(settings.category_select_seconds, TimerAction.SELECT_CATEGORY),
    )


def select_category(room: Room, settings: GameSettings) -> PhaseStep:
    """Resolve the category vote, take a question from the pool and show it."""
    chosen = resolve_category(room)
    question = take_question(room.question_pool, chosen)
    if question is None:
        logger.warning("question pool exhausted", round=room.round, question=room.question_number)
        return end_game(room)

    room.current_question = question
    room.lies = {}
    room.votes = {}
    room.settling = False
    room.phase = Phase.SHOW_QUESTION
    logger.info("phase changed", phase=room.phase, category=question.category, question_id=question.id)
    event = ShowQuestionEvent(
        question=question.question,
        category=question.category,
        round=room.round,
        time_ms=seconds_to_ms(settings.show_question_seconds),
    )
    return PhaseStep(
        events=[broadcast(event)],
        deadline=Deadline(settings.show_question_seconds, TimerAction.START_LIE),
    )


def start_lie(room: Room, settings: GameSettings) -> PhaseStep:
    room.phase = Phase.LIE
    room.settling = False
    logger.info("phase changed", phase=room.phase)
    return PhaseStep(
        events=[broadcast(lie_phase_event(room, settings.lie_seconds))],
        deadline=Deadline(settings.lie_seconds, TimerAction.START_VOTE),
    )


def start_vote(room: Room, settings: GameSettings) -> PhaseStep:
    """Freeze the answer list and send every connected player their own view of it."""
    question = _require_question(room)
    room.answer_list = build_answer_list(question, room.lies, room.rng, settings.min_answer_options)
    room.votes = {}
    room.settling = False
    room.phase = Phase.VOTE
    logger.info("phase changed", phase=room.phase, answers=len(room.answer_list), lies=len(room.lies))

    events = [
        broadcast(
            VotePhaseEvent(
                question=question.question,
                answers=display_answers(room.answer_list),
                time_ms=seconds_to_ms(settings.vote_seconds),
            ),
        ),
    ]
    events.extend(
        to_player(player.name, YourChoicesEvent(answers=player_choices(room.answer_list, player.name)))
        for player in room.connected_players
    )
    return PhaseStep(events=events, deadline=Deadline(settings.vote_seconds, TimerAction.REVEAL))


def reveal(room: Room, settings: GameSettings) -> PhaseStep:
    """Score the question once and disclose every answer slot."""
    question = _require_question(room)
    room.phase = Phase.REVEAL
    room.settling = False
    changes = compute_score_changes(
        room.answer_list,
        room.votes,
        room.players.keys(),
        settings.multiplier(room.round),
        settings,
    )
    apply_score_changes(room.players, changes)
    logger.info("phase changed", phase=room.phase, votes=len(room.votes), score_changes=changes)

    event = RevealEvent(
        reveals=reveal_entries(room.answer_list, room.votes),
        truth=question.answer,
        score_changes=changes,
        players=room.player_list(),
    )
    return PhaseStep(
        events=[broadcast(event)],
        deadline=Deadline(settings.reveal_seconds(len(room.answer_list)), TimerAction.SCOREBOARD),
    )


def show_scoreboard(room: Room, settings: GameSettings) -> PhaseStep:
    room.phase = Phase.SCOREBOARD
    logger.info("phase changed", phase=room.phase)
    return PhaseStep(
        events=[broadcast(ScoreboardEvent(players=room.ranked_players(), round=room.round))],
        deadline=Deadline(settings.scoreboard_seconds, TimerAction.NEXT_QUESTION),
    )


def end_game(room: Room) -> PhaseStep:
    room.phase = Phase.GAME_OVER
    room.state = RoomState.ENDED
    room.settling = False
    logger.info("game over", standings=[(p.name, p.score) for p in room.ranked_players()])
    return PhaseStep(events=[broadcast(GameOverEvent(players=room.ranked_players()))], cancel_timer=True)


# phase a timer action may fire from; anything else means the timer is stale
TIMER_ACTION_PHASES: dict[TimerAction, Phase] = {
    TimerAction.SELECT_CATEGORY: Phase.CATEGORY_SELECT,
    TimerAction.START_LIE: Phase.SHOW_QUESTION,
    TimerAction.START_VOTE: Phase.LIE,
    TimerAction.REVEAL: Phase.VOTE,
    TimerAction.SCOREBOARD: Phase.REVEAL,
    TimerAction.NEXT_QUESTION: Phase.SCOREBOARD,
}


def run_timer_action(room: Room, action: TimerAction, settings: GameSettings) -> PhaseStep:
    """Perform a scheduled transition, refusing one that no longer matches the room's phase."""
    expected = TIMER_ACTION_PHASES[action]
    if room.state != RoomState.PLAYING or room.phase != expected:
        raise InvalidActionError(action=action, reason=f"timer fired in phase {room.phase}")
    return _TIMER_HANDLERS[action](room, settings)


_TIMER_HANDLERS: dict[TimerAction, Callable[[Room, GameSettings], PhaseStep]] = {
    TimerAction.SELECT_CATEGORY: select_category,
    TimerAction.START_LIE: start_lie,
    TimerAction.START_VOTE: start_vote,
    TimerAction.REVEAL: reveal,
    TimerAction.SCOREBOARD: show_scoreboard,
    TimerAction.NEXT_QUESTION: next_question,
}


# ---------------------------------------------------------------------------
# Player input
# ---------------------------------------------------------------------------


def vote_category(room: Room, name: str, category: str, settings: GameSettings) -> PhaseStep:
    """Record (or change) a player's category vote."""
    _require_phase(room, Phase.CATEGORY_SELECT, GameAction.VOTE_CATEGORY, name)
    _require_player(room, name, GameAction.VOTE_CATEGORY)
    if category not in room.categories:
        raise InvalidActionError(action=GameAction.VOTE_CATEGORY, reason="category not offered", player=name)

    room.category_votes[name] = category
    if _quorum_reached(room, room.category_votes):
        return _settle(room, Deadline(settings.category_settle_seconds, TimerAction.SELECT_CATEGORY))
    return PhaseStep()


def submit_lie(room: Room, name: str, text: str, settings: GameSettings) -> PhaseStep:
    """
    Validate and store a player's lie.

    The first accepted lie is final: a repeat submission is acknowledged
    again but never replaces it. Rejections raise LieRejectedError and leave
    the player free to resubmit.
    """
    _require_phase(room, Phase.LIE, GameAction.SUBMIT_LIE, name)
    _require_player(room, name, GameAction.SUBMIT_LIE)
    question = _require_question(room)

    if name in room.lies:
        return PhaseStep(events=[to_player(name, LieAcceptedEvent())])

    lie = text.strip()
    if not lie:
        raise LieRejectedError(LIE_EMPTY_MESSAGE)
    if len(lie) > settings.max_lie_length:
        raise LieRejectedError(f"Keep it under {settings.max_lie_length} characters.")
    if is_too_similar(lie, question.answer, question.alternate_answers):
        raise LieRejectedError(LIE_TOO_CLOSE_MESSAGE)

    room.lies[name] = lie
    events = [
        to_player(name, LieAcceptedEvent()),
        to_host(LieCountEvent(count=len(room.lies), total=room.player_count)),
    ]
    step = PhaseStep(events=events)
    if _quorum_reached(room, room.lies):
        step = step.then(_all_lies_in(room, settings))
    return step


def submit_vote(room: Room, name: str, answer_id: int, settings: GameSettings) -> PhaseStep:
    """Record (or change) a player's vote for an answer slot."""
    _require_phase(room, Phase.VOTE, GameAction.SUBMIT_VOTE, name)
    _require_player(room, name, GameAction.SUBMIT_VOTE)
    if not 0 <= answer_id < len(room.answer_list):
        raise InvalidActionError(action=GameAction.SUBMIT_VOTE, reason="answer out of range", player=name)
    if room.answer_list[answer_id].is_authored_by(name):
        raise InvalidActionError(action=GameAction.SUBMIT_VOTE, reason="voted for own lie", player=name)

    room.votes[name] = answer_id
    step = PhaseStep(
        events=[
            to_player(name, VoteAcceptedEvent()),
            to_host(VoteCountEvent(count=len(room.votes), total=room.player_count)),
        ],
    )
    if _quorum_reached(room, room.votes):
        step = step.then(_settle(room, Deadline(settings.votes_settle_seconds, TimerAction.REVEAL)))
    return step


def recheck_quorum(room: Room, settings: GameSettings) -> PhaseStep:
    """Re-evaluate early exit after the set of connected players shrank."""
    if room.state != RoomState.PLAYING:
        return PhaseStep()
    if room.phase == Phase.CATEGORY_SELECT and _quorum_reached(room, room.category_votes):
        return _settle(room, Deadline(settings.category_settle_seconds, TimerAction.SELECT_CATEGORY))
    if room.phase == Phase.LIE and _quorum_reached(room, room.lies):
        return _all_lies_in(room, settings)
    if room.phase == Phase.VOTE and _quorum_reached(room, room.votes):
        return _settle(room, Deadline(settings.votes_settle_seconds, TimerAction.REVEAL))
    return PhaseStep()


# ---------------------------------------------------------------------------
# Views shared with resync
# ---------------------------------------------------------------------------


def category_select_event(room: Room, settings: GameSettings, seconds: float) -> CategorySelectEvent:
    return CategorySelectEvent(
        categories=list(room.categories),
        round=room.round,
        question_num=room.question_number,
        total_questions=settings.questions_in_round(room.round),
        time_ms=seconds_to_ms(seconds),
    )


def lie_phase_event(room: Room, seconds: float) -> LiePhaseEvent:
    question = _require_question(room)
    return LiePhaseEvent(question=question.question, time_ms=seconds_to_ms(seconds))


def resolve_category(room: Room) -> str:
    """Most-voted offered category; ties and silence are broken uniformly at random."""
    tally: dict[str, int] = {}
    for category in room.category_votes.values():
        if category in room.categories:
            tally[category] = tally.get(category, 0) + 1
    if not tally:
        return room.rng.choice(room.categories)
    best = max(tally.values())
    leaders = [category for category in room.categories if tally.get(category) == best]
    if len(leaders) == 1:
        return leaders[0]
    return room.rng.choice(leaders)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _all_lies_in(room: Room, settings: GameSettings) -> PhaseStep:
    step = _settle(room, Deadline(settings.lies_settle_seconds, TimerAction.START_VOTE))
    if step.deadline is None:
        return step
    return PhaseStep(events=[broadcast(AllLiesInEvent())], deadline=step.deadline)


def _settle(room: Room, deadline: Deadline) -> PhaseStep:
    """Arm the early-exit transition once per phase."""
    if room.settling:
        return PhaseStep()
    room.settling = True
    logger.info("quorum reached", phase=room.phase, settle_seconds=deadline.seconds)
    return PhaseStep(deadline=deadline)


def _quorum_reached(room: Room, submitted: Iterable[str]) -> bool:
    """True when every connected player (and at least one) has a submission."""
    connected = room.connected_players
    if not connected:
        return False
    names = set(submitted)
    return all(player.name in names for player in connected)


def _require_phase(room: Room, phase: Phase, action: GameAction, name: str) -> None:
    if room.phase != phase:
        raise InvalidActionError(action=action, reason=f"not accepted during {room.phase}", player=name)


def _require_player(room: Room, name: str, action: GameAction) -> None:
    if name not in room.players:
        raise InvalidActionError(action=action, reason="not a player in this room", player=name)


def _require_question(room: Room) -> Question:
    if room.current_question is None:
        raise InvalidActionError(action="phase", reason=f"no active question during {room.phase}")
    return room.current_question

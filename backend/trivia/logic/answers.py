"""
Vote answer list assembly and per-viewer projections.

The answer list is built once when voting opens. Slot indices into it are
the only thing clients ever vote with, so the list must not change until
the next question.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trivia.logic.enums import AnswerKind
from trivia.logic.similarity import normalize
from trivia.logic.state import AnswerEntry
from trivia.logic.types import AnswerOption, RevealEntry

if TYPE_CHECKING:
    import random
    from collections.abc import Mapping

    from trivia.logic.questions import Question


def build_answer_list(
    question: Question,
    lies: Mapping[str, str],
    rng: random.Random,
    min_options: int,
) -> list[AnswerEntry]:
    """
    Combine the truth, every submitted lie and enough decoys, then shuffle.

    Decoys only pad the list up to `min_options` and are skipped when their
    normalized text repeats the truth, a lie or an earlier decoy. Player lies
    are never deduplicated: two players who wrote the same lie each own a slot.
    """
    entries = [AnswerEntry(text=question.answer, kind=AnswerKind.TRUTH)]
    entries.extend(AnswerEntry(text=text, kind=AnswerKind.LIE, author=name) for name, text in lies.items())

    used = {normalize(entry.text) for entry in entries}
    for decoy in question.decoys:
        if len(entries) >= min_options:
            break
        key = normalize(decoy)
        if key in used:
            continue
        used.add(key)
        entries.append(AnswerEntry(text=decoy, kind=AnswerKind.DECOY))

    rng.shuffle(entries)
    return entries


def display_answers(answer_list: list[AnswerEntry]) -> list[AnswerOption]:
    """Full answer list as shown on the host display."""
    return [AnswerOption(id=index, text=entry.text) for index, entry in enumerate(answer_list)]


def player_choices(answer_list: list[AnswerEntry], viewer: str) -> list[AnswerOption]:
    """Answer list as seen by one player: every slot except the ones they wrote.

    Slot ids keep their shared-list index so votes stay unambiguous.
    """
    return [
        AnswerOption(id=index, text=entry.text)
        for index, entry in enumerate(answer_list)
        if not entry.is_authored_by(viewer)
    ]


def reveal_entries(answer_list: list[AnswerEntry], votes: Mapping[str, int]) -> list[RevealEntry]:
    """Disclose every slot with its author and the players who picked it."""
    picked_by: dict[int, list[str]] = {index: [] for index in range(len(answer_list))}
    for name, slot in votes.items():
        if slot in picked_by:
            picked_by[slot].append(name)
    return [
        RevealEntry(
            id=index,
            text=entry.text,
            is_true=entry.is_true,
            author=entry.wire_author,
            picked_by=picked_by[index],
        )
        for index, entry in enumerate(answer_list)
    ]

"""
Reveal-time scoring.

Score changes are accumulated per player across every answer slot and only
then applied, so the order slots are processed in never affects the totals.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from trivia.logic.enums import AnswerKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from trivia.logic.settings import GameSettings
    from trivia.logic.state import AnswerEntry, Player


def group_votes(votes: Mapping[str, int]) -> dict[int, list[str]]:
    """Map answer slot -> names of the players who voted for it."""
    grouped: dict[int, list[str]] = defaultdict(list)
    for name, slot in votes.items():
        grouped[slot].append(name)
    return dict(grouped)


def compute_score_changes(
    answer_list: list[AnswerEntry],
    votes: Mapping[str, int],
    player_names: Iterable[str],
    multiplier: int,
    settings: GameSettings,
) -> dict[str, int]:
    """
    Compute per-player score deltas for one question.

    - Truth voters gain `truth_points * multiplier` each.
    - A lie's author gains `fool_points * multiplier` per voter it fooled.
    - Decoy voters lose `decoy_penalty * multiplier` each.

    Every player name gets an entry, zero when nothing happened to them.
    Authors who are not (or no longer) in `player_names` are ignored.
    """
    changes = dict.fromkeys(player_names, 0)
    for slot, voters in group_votes(votes).items():
        if not 0 <= slot < len(answer_list):
            continue
        entry = answer_list[slot]
        if entry.kind == AnswerKind.TRUTH:
            for voter in voters:
                if voter in changes:
                    changes[voter] += settings.truth_points * multiplier
        elif entry.kind == AnswerKind.DECOY:
            for voter in voters:
                if voter in changes:
                    changes[voter] -= settings.decoy_penalty * multiplier
        elif entry.author in changes:
            changes[entry.author] += settings.fool_points * multiplier * len(voters)
    return changes


def apply_score_changes(players: Mapping[str, Player], changes: Mapping[str, int]) -> None:
    for name, delta in changes.items():
        player = players.get(name)
        if player is not None:
            player.score += delta

"""
Anti-cheat similarity check for submitted lies.

A lie that is (nearly) the real answer would hand free points to everyone
who picks it, so candidates are compared against the truth and every
accepted alternate after normalization.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_NON_ALNUM = re.compile(r"[^a-z0-9]")

# edit distance is only meaningful once both strings are longer than this
_MIN_FUZZY_LENGTH = 2
_DISTANCE_RATIO = 0.3


def normalize(text: str) -> str:
    """Lower-case and drop every character that is not an ASCII letter or digit."""
    return _NON_ALNUM.sub("", text.lower())


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def max_distance(target_length: int) -> int:
    """Largest edit distance still considered 'too close' for a target of this length."""
    return max(1, int(target_length * _DISTANCE_RATIO))


def _matches(candidate: str, target: str) -> bool:
    if candidate == target:
        return True
    if candidate in target or target in candidate:
        return True
    if len(candidate) > _MIN_FUZZY_LENGTH and len(target) > _MIN_FUZZY_LENGTH:
        return levenshtein(candidate, target) <= max_distance(len(target))
    return False


def is_too_similar(candidate: str, truth: str, alternates: Iterable[str] = ()) -> bool:
    """Return True if the candidate is unacceptably close to the truth or any alternate.

    Rejects on exact match, containment in either direction, or a small
    edit distance relative to the target's length. Any single match rejects,
    so the order of targets does not matter.
    """
    normalized = normalize(candidate)
    return any(_matches(normalized, normalize(target)) for target in (truth, *alternates))

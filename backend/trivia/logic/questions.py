"""
Question supply: the static trivia bank and per-room question pools.

The bank is loaded once per process. Each room draws its own shuffled,
duplicate-free pool from it and consumes questions without replacement.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from trivia.logic.exceptions import QuestionBankError

if TYPE_CHECKING:
    import random
    from collections.abc import Iterable

logger = structlog.get_logger()

DEFAULT_QUESTION_FILE = Path(__file__).resolve().parent.parent / "data" / "questions.json"


class Question(BaseModel):
    """One trivia item. The question text carries a blank for the missing fact."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | int
    category: str = Field(min_length=1)
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    alternate_answers: tuple[str, ...] = Field(default=(), alias="alternateAnswers")
    decoys: tuple[str, ...] = ()


_question_list_adapter = TypeAdapter(list[Question])


class QuestionBank:
    """Read-only collection of questions shared by every room."""

    def __init__(self, questions: Iterable[Question]) -> None:
        self._questions: tuple[Question, ...] = tuple(questions)

    @classmethod
    def from_file(cls, path: Path | str = DEFAULT_QUESTION_FILE) -> QuestionBank:
        """Load and validate a JSON array of question objects."""
        try:
            raw = Path(path).read_text(encoding="utf-8")
            questions = _question_list_adapter.validate_python(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise QuestionBankError(f"failed to load question bank from {path}: {e}") from e
        logger.info("question bank loaded", path=str(path), questions=len(questions))
        return cls(questions)

    def __len__(self) -> int:
        return len(self._questions)

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(q.category for q in self._questions))

    def draw_pool(self, rng: random.Random, size: int) -> list[Question]:
        """Return up to `size` shuffled questions with no repeated id."""
        shuffled = list(self._questions)
        rng.shuffle(shuffled)
        seen: set[str | int] = set()
        pool: list[Question] = []
        for question in shuffled:
            if len(pool) >= size:
                break
            if question.id not in seen:
                seen.add(question.id)
                pool.append(question)
        return pool


def offer_categories(pool: list[Question], rng: random.Random, count: int) -> list[str]:
    """Pick up to `count` distinct categories still present in the pool."""
    categories = list(dict.fromkeys(q.category for q in pool))
    rng.shuffle(categories)
    return categories[:count]


def take_question(pool: list[Question], category: str) -> Question | None:
    """Remove and return the first pool question in `category`.

    Falls back to the first remaining question of any category, and returns
    None only when the pool is empty.
    """
    for index, question in enumerate(pool):
        if question.category == category:
            return pool.pop(index)
    if pool:
        return pool.pop(0)
    return None

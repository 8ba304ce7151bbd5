"""Centralized game settings - every gameplay constant in one frozen model."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GameSettings(BaseModel):
    """
    Configuration for room limits, round structure, scoring and phase timings.

    Durations are in seconds; events convert them to milliseconds on the wire.
    """

    model_config = ConfigDict(frozen=True)

    # --- Room limits ---
    min_players: int = Field(default=2, ge=1)
    max_players: int = Field(default=8, ge=1)
    max_name_length: int = Field(default=16, ge=1)
    max_lie_length: int = Field(default=80, ge=1)

    # --- Round structure ---
    questions_per_round: tuple[int, ...] = (3, 3, 1)
    round_multipliers: tuple[int, ...] = (1, 2, 3)
    question_pool_size: int = Field(default=20, ge=1)
    categories_offered: int = Field(default=3, ge=1)
    min_answer_options: int = Field(default=6, ge=1)

    # --- Scoring ---
    truth_points: int = 1000
    fool_points: int = 500
    decoy_penalty: int = 500

    # --- Phase timings ---
    category_select_seconds: float = 15
    category_resync_seconds: float = 5
    category_settle_seconds: float = 1
    show_question_seconds: float = 3
    lie_seconds: float = 45
    lie_resync_seconds: float = 15
    lies_settle_seconds: float = 3
    vote_seconds: float = 30
    votes_settle_seconds: float = 1.5
    reveal_seconds_per_answer: float = 3
    min_reveal_seconds: float = 3
    scoreboard_seconds: float = 5

    @model_validator(mode="after")
    def _validate_round_structure(self) -> Self:
        if not self.questions_per_round:
            raise ValueError("questions_per_round must not be empty")
        if len(self.questions_per_round) != len(self.round_multipliers):
            raise ValueError("questions_per_round and round_multipliers must have the same length")
        if any(count < 1 for count in self.questions_per_round):
            raise ValueError("every round needs at least one question")
        if self.question_pool_size < self.total_questions:
            raise ValueError("question_pool_size must cover every question of the game")
        if self.min_players > self.max_players:
            raise ValueError("min_players must not exceed max_players")
        return self

    @property
    def max_rounds(self) -> int:
        return len(self.questions_per_round)

    @property
    def total_questions(self) -> int:
        return sum(self.questions_per_round)

    def questions_in_round(self, round_number: int) -> int:
        """Question quota for a 1-based round; rounds past the last reuse the final quota."""
        index = min(max(round_number, 1), self.max_rounds) - 1
        return self.questions_per_round[index]

    def multiplier(self, round_number: int) -> int:
        """Point multiplier for a 1-based round (1x, 2x, then the final round's 3x)."""
        index = min(max(round_number, 1), self.max_rounds) - 1
        return self.round_multipliers[index]

    def reveal_seconds(self, answer_count: int) -> float:
        """Reveal dwell grows with the number of answer slots, never below the floor."""
        return max(self.min_reveal_seconds, answer_count * self.reveal_seconds_per_answer)

"""
Scoring for finished puzzles.

score = base_score x time_multiplier x moves_multiplier, where base_score is
the cell count x 100 and each multiplier steps down from 2.0 to 0.5 as the
player falls further behind the tier's ideal time and move count.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from net_types import DIFFICULTY_CONFIG, Difficulty

PERFECT_MULTIPLIER = 2.0


@dataclass(frozen=True)
class ScoreResult:
    """Final score with its breakdown."""

    score: int
    base_score: int
    time_multiplier: float
    moves_multiplier: float
    time_seconds: float
    moves: int
    is_new_record: bool


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2
    return math.floor(value + 0.5)


class ScoreCalculator:
    def calculate(
        self,
        difficulty: Difficulty,
        time_seconds: float,
        moves: int,
        current_high_score: int | None = None,
    ) -> ScoreResult:
        """
        Score a solved puzzle.

        Args:
            difficulty: Tier the puzzle was generated for
            time_seconds: Elapsed play time
            moves: Rotations the player made
            current_high_score: Previous best, if any

        Returns:
            ScoreResult. is_new_record is only True when a previous best was
            given and the new score beats it.
        """
        config = DIFFICULTY_CONFIG[difficulty]
        base_score = config.width * config.height * 100
        time_multiplier = self.time_multiplier(time_seconds, config.ideal_time)
        moves_multiplier = self.moves_multiplier(moves, config.ideal_moves)

        score = _round_half_up(base_score * time_multiplier * moves_multiplier)

        return ScoreResult(
            score=score,
            base_score=base_score,
            time_multiplier=time_multiplier,
            moves_multiplier=moves_multiplier,
            time_seconds=time_seconds,
            moves=moves,
            is_new_record=current_high_score is not None and score > current_high_score,
        )

    @staticmethod
    def time_multiplier(time_seconds: float, ideal_time: int) -> float:
        if time_seconds < ideal_time:
            return 2.0
        if time_seconds < ideal_time * 2:
            return 1.5
        if time_seconds < ideal_time * 3:
            return 1.0
        return 0.5

    @staticmethod
    def moves_multiplier(moves: int, ideal_moves: int) -> float:
        if moves < ideal_moves:
            return 2.0
        if moves < ideal_moves * 1.5:
            return 1.5
        if moves < ideal_moves * 2:
            return 1.0
        return 0.5

    def get_max_score(self, difficulty: Difficulty) -> int:
        """Score for beating both the ideal time and the ideal move count."""
        config = DIFFICULTY_CONFIG[difficulty]
        base_score = config.width * config.height * 100
        return int(base_score * PERFECT_MULTIPLIER * PERFECT_MULTIPLIER)

    def get_rating(self, time_multiplier: float, moves_multiplier: float) -> int:
        """Star rating 0-3 from the mean of the two multipliers."""
        average = (time_multiplier + moves_multiplier) / 2
        if average >= 2.0:
            return 3
        if average >= 1.5:
            return 2
        if average >= 1.0:
            return 1
        return 0

    def format_time(self, seconds: float) -> str:
        """Whole seconds as mm:ss (minutes are not capped at 59)."""
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes:02d}:{secs:02d}"

    def format_score(self, score: int) -> str:
        return f"{score:,}"

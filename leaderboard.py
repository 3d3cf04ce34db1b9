"""
In-memory leaderboard (top scores per difficulty) and play statistics.

Serializes to and from plain dicts. Where those dicts are stored is up to
the caller.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date
from typing import Any

from net_types import Difficulty, GameStatistics, LeaderboardEntry

logger = logging.getLogger(__name__)

MAX_ENTRIES_PER_DIFFICULTY = 10
LEADERBOARD_DATA_VERSION = 1


class Leaderboard:
    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self.today = today
        self.entries: dict[Difficulty, list[LeaderboardEntry]] = {d: [] for d in Difficulty}
        self.statistics = GameStatistics()

    def add_entry(self, difficulty: Difficulty, score: int, moves: int, time: int) -> bool:
        """
        Record a finished game.

        The list is re-sorted by score (highest first) and cut to the top 10.

        Returns:
            True if the new entry made the cut
        """
        entry = LeaderboardEntry(
            id=str(uuid.uuid4()),
            difficulty=difficulty,
            score=score,
            moves=moves,
            time=time,
            date=self.today().isoformat(),
        )
        # Stable sort, so an equal score ranks below the ones already there
        ranked = sorted(self.entries[difficulty] + [entry], key=lambda e: e.score, reverse=True)
        ranked = ranked[:MAX_ENTRIES_PER_DIFFICULTY]

        kept = any(e.id == entry.id for e in ranked)
        if kept:
            self.entries[difficulty] = ranked
            logger.debug("add_entry(%s): score %d kept", difficulty.value, score)
        return kept

    def get_top_scores(
        self, difficulty: Difficulty, limit: int = MAX_ENTRIES_PER_DIFFICULTY
    ) -> list[LeaderboardEntry]:
        return list(self.entries[difficulty][:limit])

    def is_new_record(self, difficulty: Difficulty, score: int) -> bool:
        """True if the score would make the board: a free slot, or beating the lowest."""
        entries = self.entries[difficulty]
        if len(entries) < MAX_ENTRIES_PER_DIFFICULTY:
            return True
        return score > entries[-1].score

    def high_score(self, difficulty: Difficulty) -> int | None:
        entries = self.entries[difficulty]
        return entries[0].score if entries else None

    def increment_games_played(self) -> None:
        self.statistics.games_played += 1

    def increment_games_won(self) -> None:
        self.statistics.games_won += 1

    def add_time(self, seconds: int) -> None:
        self.statistics.total_time += seconds

    def add_moves(self, moves: int) -> None:
        self.statistics.total_moves += moves

    def reset_statistics(self) -> None:
        self.statistics = GameStatistics()

    def reset_leaderboard(self) -> None:
        self.entries = {d: [] for d in Difficulty}

    def to_data(self) -> dict[str, Any]:
        return {
            "version": LEADERBOARD_DATA_VERSION,
            "entries": {
                d.value: [e.to_data() for e in self.entries[d]] for d in Difficulty
            },
            "statistics": self.statistics.to_data(),
        }

    @staticmethod
    def from_data(data: dict[str, Any], today: Callable[[], date] = date.today) -> Leaderboard:
        """
        Rebuild a leaderboard from to_data output.

        Missing tiers load as empty. Unknown versions raise ValueError.
        """
        version = data.get("version", LEADERBOARD_DATA_VERSION)
        if version != LEADERBOARD_DATA_VERSION:
            raise ValueError(
                f"Unsupported leaderboard data version {version} "
                f"(expected {LEADERBOARD_DATA_VERSION})"
            )

        board = Leaderboard(today=today)
        raw_entries = data.get("entries", {})
        for difficulty in Difficulty:
            entries = [LeaderboardEntry.from_data(e) for e in raw_entries.get(difficulty.value, [])]
            entries.sort(key=lambda e: e.score, reverse=True)
            board.entries[difficulty] = entries[:MAX_ENTRIES_PER_DIFFICULTY]
        board.statistics = GameStatistics.from_data(data.get("statistics", {}))
        return board

"""Tests for leaderboard module."""

from datetime import date

import pytest

from leaderboard import MAX_ENTRIES_PER_DIFFICULTY, Leaderboard
from net_types import Difficulty, GameStatistics


def fixed_day() -> date:
    return date(2024, 3, 9)


class TestEntries:
    """Tests for leaderboard entries."""

    def test_add_entry(self) -> None:
        """A new entry gets an id and today's date."""
        board = Leaderboard(today=fixed_day)
        assert board.add_entry(Difficulty.EASY, score=5000, moves=30, time=70)

        [entry] = board.get_top_scores(Difficulty.EASY)
        assert entry.score == 5000
        assert entry.moves == 30
        assert entry.time == 70
        assert entry.date == "2024-03-09"
        assert len(entry.id) == 36
        assert board.get_top_scores(Difficulty.HARD) == []

    def test_sorted_highest_first(self) -> None:
        """Entries are ordered by score, highest first."""
        board = Leaderboard(today=fixed_day)
        for score in (300, 900, 100, 600):
            board.add_entry(Difficulty.MEDIUM, score, 10, 10)
        assert [e.score for e in board.get_top_scores(Difficulty.MEDIUM)] == [900, 600, 300, 100]
        assert [e.score for e in board.get_top_scores(Difficulty.MEDIUM, limit=2)] == [900, 600]
        assert board.high_score(Difficulty.MEDIUM) == 900
        assert board.high_score(Difficulty.EASY) is None

    def test_truncated_to_top_ten(self) -> None:
        """Only the best ten survive, and a low score is rejected."""
        board = Leaderboard(today=fixed_day)
        for score in range(100, 1200, 100):
            board.add_entry(Difficulty.HARD, score, 10, 10)

        scores = [e.score for e in board.get_top_scores(Difficulty.HARD)]
        assert len(scores) == MAX_ENTRIES_PER_DIFFICULTY
        assert scores[-1] == 200

        assert not board.add_entry(Difficulty.HARD, 50, 10, 10)
        assert not board.add_entry(Difficulty.HARD, 200, 10, 10)
        assert board.add_entry(Difficulty.HARD, 250, 10, 10)
        assert [e.score for e in board.get_top_scores(Difficulty.HARD)][-2:] == [300, 250]

    def test_is_new_record(self) -> None:
        """Any score qualifies until the board is full, then it must beat the lowest."""
        board = Leaderboard(today=fixed_day)
        assert board.is_new_record(Difficulty.EASY, 0)
        for score in range(1, 11):
            board.add_entry(Difficulty.EASY, score * 100, 10, 10)
        assert not board.is_new_record(Difficulty.EASY, 100)
        assert board.is_new_record(Difficulty.EASY, 101)

    def test_reset_leaderboard(self) -> None:
        """reset_leaderboard empties every tier."""
        board = Leaderboard(today=fixed_day)
        board.add_entry(Difficulty.EASY, 1, 1, 1)
        board.reset_leaderboard()
        assert all(board.get_top_scores(d) == [] for d in Difficulty)


class TestStatistics:
    """Tests for cumulative statistics."""

    def test_counters(self) -> None:
        """Counters accumulate and reset."""
        board = Leaderboard()
        board.increment_games_played()
        board.increment_games_played()
        board.increment_games_won()
        board.add_time(90)
        board.add_moves(40)
        board.add_moves(2)
        assert board.statistics == GameStatistics(
            games_played=2, games_won=1, total_time=90, total_moves=42
        )
        board.reset_statistics()
        assert board.statistics == GameStatistics()


class TestSerialization:
    """Tests for to_data/from_data."""

    def test_round_trip(self) -> None:
        """A board survives to_data/from_data."""
        board = Leaderboard(today=fixed_day)
        board.add_entry(Difficulty.EASY, 800, 20, 50)
        board.add_entry(Difficulty.HARD, 300, 200, 900)
        board.increment_games_played()

        data = board.to_data()
        assert data["version"] == 1
        assert set(data["entries"]) == {"easy", "medium", "hard"}

        restored = Leaderboard.from_data(data)
        for d in Difficulty:
            assert restored.get_top_scores(d) == board.get_top_scores(d)
        assert restored.statistics == board.statistics

    def test_missing_sections(self) -> None:
        """Missing tiers and statistics load as empty."""
        restored = Leaderboard.from_data({"version": 1})
        assert all(restored.get_top_scores(d) == [] for d in Difficulty)
        assert restored.statistics == GameStatistics()

    def test_unknown_version(self) -> None:
        """Other data versions are rejected."""
        with pytest.raises(ValueError, match="Unsupported leaderboard data version 7"):
            Leaderboard.from_data({"version": 7})

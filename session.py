"""
One puzzle in play: rotations, undo, the clock and completion.

The session owns a live Grid and keeps game_state.grid as a snapshot of it,
refreshed after every change so collaborators can read plain data.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from level_generator import LevelGenerator
from net_types import (
    SAVED_GAME_VERSION,
    Difficulty,
    GameState,
    SavedGame,
    ValidationResult,
)
from netwalk import ConnectionValidator, Grid
from scoring import ScoreCalculator, ScoreResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    x: int
    y: int
    previous_rotation: int


class GameSession:
    def __init__(
        self,
        generator: LevelGenerator | None = None,
        validator: ConnectionValidator | None = None,
        calculator: ScoreCalculator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.validator = validator if validator is not None else ConnectionValidator()
        self.generator = (
            generator
            if generator is not None
            else LevelGenerator(validator=self.validator, clock=clock)
        )
        self.calculator = calculator if calculator is not None else ScoreCalculator()
        self.clock = clock

        self.game_state: GameState | None = None
        self.grid: Grid | None = None
        self.history: list[HistoryEntry] = []
        self.last_score: ScoreResult | None = None

    @property
    def is_playing(self) -> bool:
        """True while a game is loaded, unfinished and not paused."""
        state = self.game_state
        return state is not None and not state.is_completed and not state.is_paused

    def new_game(self, difficulty: Difficulty) -> GameState:
        """Generate a fresh puzzle and make it the current game."""
        state = self.generator.generate(difficulty)
        self.game_state = state
        self.grid = Grid.from_data(state.grid)
        self.validator.update_connection_state(self.grid)
        self._sync_grid()
        self.history = []
        self.last_score = None
        logger.info("new_game(%s): started at %.3f", difficulty.value, state.start_time)
        return state

    def rotate_cell(self, x: int, y: int, clockwise: bool = True) -> bool:
        """
        Rotate one cell as a player move.

        Returns False (and changes nothing) with no game, a finished or paused
        game, an out-of-bounds coordinate, or a cell that cannot rotate.
        On a solve the game is marked completed, the clock stops and
        last_score is computed.
        """
        state = self.game_state
        grid = self.grid
        if state is None or grid is None or state.is_completed or state.is_paused:
            return False

        cell = grid.get_cell(x, y)
        if cell is None or not cell.can_rotate():
            return False

        self.history.append(HistoryEntry(x, y, cell.rotation))
        cell.rotate(clockwise)
        state.moves += 1

        if self.validator.is_solved(grid):
            state.is_completed = True
            state.elapsed_time = self._elapsed(state)
            self.last_score = self.calculator.calculate(
                state.difficulty, state.elapsed_time, state.moves
            )
            logger.info(
                "Solved %s in %ds with %d moves, score %d",
                state.difficulty.value,
                state.elapsed_time,
                state.moves,
                self.last_score.score,
            )

        self._sync_grid()
        return True

    def undo(self) -> bool:
        """Revert the last rotation. Completed games cannot be undone."""
        state = self.game_state
        grid = self.grid
        if state is None or grid is None or state.is_completed or not self.history:
            return False

        entry = self.history.pop()
        grid.get_cell_safe(entry.x, entry.y).set_rotation(entry.previous_rotation)
        state.moves = max(0, state.moves - 1)

        self.validator.update_connection_state(grid)
        self._sync_grid()
        return True

    def pause(self) -> bool:
        state = self.game_state
        if state is None or state.is_completed:
            return False
        if not state.is_paused:
            state.elapsed_time = self._elapsed(state)
        state.is_paused = True
        return True

    def resume(self) -> bool:
        """Unpause, rebasing start_time so the clock picks up where it stopped."""
        state = self.game_state
        if state is None or state.is_completed or not state.is_paused:
            return False
        state.is_paused = False
        state.start_time = self.clock() - state.elapsed_time
        return True

    def tick(self) -> None:
        state = self.game_state
        if state is None or state.is_completed or state.is_paused:
            return
        state.elapsed_time = self._elapsed(state)

    def reset(self) -> None:
        self.game_state = None
        self.grid = None
        self.history = []
        self.last_score = None

    def load_game(self, state: GameState) -> None:
        """
        Resume a previously stored game.

        Connectivity flags are recomputed from the rotations, the clock is
        rebased to the stored elapsed time and the game is unpaused. Undo
        history and the last score do not survive a load.
        """
        grid = Grid.from_data(state.grid)
        if (grid.width, grid.height) != (state.width, state.height):
            logger.warning(
                "load_game: grid is %dx%d but state says %dx%d",
                grid.width,
                grid.height,
                state.width,
                state.height,
            )
        self.validator.update_connection_state(grid)

        self.grid = grid
        self.game_state = state
        state.start_time = self.clock() - state.elapsed_time
        state.is_paused = False
        self._sync_grid()
        self.history = []
        self.last_score = None

    def validation(self) -> ValidationResult | None:
        """Current connectivity report, or None without a game."""
        if self.grid is None:
            return None
        result = self.validator.validate(self.grid)
        self._sync_grid()
        return result

    def to_saved_game(self) -> SavedGame | None:
        state = self.game_state
        if state is None:
            return None
        if not state.is_paused and not state.is_completed:
            state.elapsed_time = self._elapsed(state)
        saved_at = datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat()
        return SavedGame(
            version=SAVED_GAME_VERSION,
            saved_at=saved_at,
            game_state=GameState.from_data(state.to_data()),
        )

    def load_saved_game(self, saved: SavedGame) -> None:
        if saved.version != SAVED_GAME_VERSION:
            raise ValueError(
                f"Unsupported saved game version {saved.version} "
                f"(expected {SAVED_GAME_VERSION})"
            )
        self.load_game(GameState.from_data(saved.game_state.to_data()))

    def _elapsed(self, state: GameState) -> int:
        return max(0, math.floor(self.clock() - state.start_time))

    def _sync_grid(self) -> None:
        if self.game_state is not None and self.grid is not None:
            self.game_state.grid = self.grid.to_data()

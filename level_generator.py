"""
Procedural generation of solvable NetWalk puzzles.

Phases:
1. Randomized depth-first spanning tree over every coordinate, rooted at the
   server in the middle of the board. Every cell is reachable by construction.
2. Optional extra edges (per difficulty) that introduce cycles.
3. Endpoint selection among the tree's leaves.
4. Shape and rotation assignment from each cell's edge set (the solution).
5. Scrambling, repeated while the board still happens to be solved.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from net_types import (
    DIFFICULTY_CONFIG,
    CellType,
    Difficulty,
    DifficultyConfig,
    Direction,
    GameState,
    Position,
    opposite,
)
from netwalk import (
    Cell,
    ConnectionValidator,
    Grid,
    calculate_rotation,
    determine_cell_type,
)

logger = logging.getLogger(__name__)

EdgeMap = dict[Position, set[Direction]]


@dataclass(frozen=True)
class GeneratorRules:
    """Knobs for the scramble phase."""

    max_scramble_attempts: int = 100  # Re-scrambles allowed while still solved
    min_scramble_turns: int = 1  # Never 0, so every scrambled cell visibly changes
    max_scramble_turns: int = 3


@dataclass
class Solution:
    """A generated board in its solved orientation."""

    grid: Grid
    config: DifficultyConfig
    server_position: Position
    computer_positions: list[Position]
    edges: EdgeMap


class LevelGenerator:
    """
    Builds puzzles that are guaranteed solvable and never start solved.

    Pass a seeded random.Random to reproduce a level exactly.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        validator: ConnectionValidator | None = None,
        rules: GeneratorRules = GeneratorRules(),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.validator = validator if validator is not None else ConnectionValidator()
        self.rules = rules
        self.clock = clock

    def generate(self, difficulty: Difficulty) -> GameState:
        """
        Generate a new scrambled puzzle.

        Args:
            difficulty: Tier selecting grid size, endpoint count and extra edges

        Returns:
            A fresh GameState (no moves, not completed, not paused)
        """
        solution = self.build_solution(difficulty)
        grid = solution.grid

        self.scramble(grid)
        attempts = 0
        while self.validator.is_solved(grid):
            if attempts >= self.rules.max_scramble_attempts:
                logger.warning(
                    "generate(%s): still solved after %d re-scrambles, accepting as is",
                    difficulty.value,
                    attempts,
                )
                break
            self.scramble(grid)
            attempts += 1

        config = solution.config
        logger.info(
            "generate(%s): %dx%d, %d computers, %d re-scrambles",
            difficulty.value,
            config.width,
            config.height,
            len(solution.computer_positions),
            attempts,
        )

        return GameState(
            grid=grid.to_data(),
            width=config.width,
            height=config.height,
            difficulty=difficulty,
            moves=0,
            start_time=self.clock(),
            elapsed_time=0,
            is_completed=False,
            is_paused=False,
            server_position=solution.server_position,
            computer_positions=list(solution.computer_positions),
        )

    def build_solution(self, difficulty: Difficulty) -> Solution:
        """Build the unscrambled board: every cell rotated into its solved orientation."""
        config = DIFFICULTY_CONFIG[difficulty]
        width, height = config.width, config.height

        edges: EdgeMap = {Position(x, y): set() for y in range(height) for x in range(width)}
        server_pos = Position(width // 2, height // 2)

        self.build_spanning_tree(width, height, server_pos, edges)
        self.add_extra_edges(width, height, edges, config.extra_edge_probability)

        leaves = find_leaves(edges, server_pos)
        if len(leaves) >= config.min_computers:
            count = self.rng.randint(
                config.min_computers, min(config.max_computers, len(leaves))
            )
            computers = self.rng.sample(leaves, count)
        else:
            # Minimum is a target, not a guarantee
            computers = list(leaves)
        logger.debug(
            "build_solution(%s): %d leaves, %d selected as computers",
            difficulty.value,
            len(leaves),
            len(computers),
        )

        grid = create_grid(width, height, edges, server_pos, computers)
        return Solution(grid, config, server_pos, computers, edges)

    def build_spanning_tree(
        self, width: int, height: int, start: Position, edges: EdgeMap
    ) -> None:
        """
        Randomized iterative DFS from start over the full board.

        Records a bidirectional edge each time an unvisited neighbor is
        reached, and backtracks when the top of the stack has none left.
        """
        visited = {start}
        stack = [start]

        while stack:
            current = stack[-1]
            candidates: list[tuple[Direction, Position]] = []
            for direction in Direction:
                neighbor = current.step(direction)
                if _in_bounds(neighbor, width, height) and neighbor not in visited:
                    candidates.append((direction, neighbor))
            if not candidates:
                stack.pop()
                continue

            direction, neighbor = self.rng.choice(candidates)
            edges[current].add(direction)
            edges[neighbor].add(opposite(direction))
            visited.add(neighbor)
            stack.append(neighbor)

    def add_extra_edges(
        self, width: int, height: int, edges: EdgeMap, probability: float
    ) -> None:
        """Add missing east/south edges with the given probability (creates cycles)."""
        if probability <= 0:
            return

        added = 0
        for y in range(height):
            for x in range(width):
                current = Position(x, y)
                # East and south only, so each pair is considered once
                for direction in (Direction.EAST, Direction.SOUTH):
                    neighbor = current.step(direction)
                    if not _in_bounds(neighbor, width, height):
                        continue
                    if direction in edges[current]:
                        continue
                    if self.rng.random() < probability:
                        edges[current].add(direction)
                        edges[neighbor].add(opposite(direction))
                        added += 1
        logger.debug("add_extra_edges: added %d edges (p=%.3f)", added, probability)

    def scramble(self, grid: Grid) -> None:
        """Give every rotatable piece 1-3 clockwise quarter turns."""
        for cell in grid.iter_cells():
            if cell.is_server() or cell.is_empty() or cell.type == CellType.CROSS or cell.is_locked:
                continue
            turns = self.rng.randint(self.rules.min_scramble_turns, self.rules.max_scramble_turns)
            for _ in range(turns):
                cell.rotate(clockwise=True)


def _in_bounds(pos: Position, width: int, height: int) -> bool:
    return 0 <= pos.x < width and 0 <= pos.y < height


def find_leaves(edges: EdgeMap, server_pos: Position) -> list[Position]:
    """Non-server positions with exactly one edge, in row-major order."""
    return sorted(
        (pos for pos, dirs in edges.items() if pos != server_pos and len(dirs) == 1),
        key=lambda p: (p.y, p.x),
    )


def create_grid(
    width: int,
    height: int,
    edges: EdgeMap,
    server_pos: Position,
    computer_positions: list[Position],
) -> Grid:
    """
    Materialize an edge map as a grid of shaped, correctly rotated cells.

    The server is locked and keeps rotation 0. Every other cell gets the shape
    matching its edge count and the rotation that lines it up with its edges.
    """
    grid = Grid(width, height)
    computers = set(computer_positions)

    for y in range(height):
        for x in range(width):
            pos = Position(x, y)
            dirs = edges.get(pos, set())
            rotation = 0

            if pos == server_pos:
                cell_type = CellType.SERVER
            elif pos in computers:
                cell_type = CellType.COMPUTER
                rotation = calculate_rotation(cell_type, dirs)
            else:
                cell_type = determine_cell_type(dirs)
                rotation = calculate_rotation(cell_type, dirs)

            grid.set_cell(
                x,
                y,
                Cell(
                    x,
                    y,
                    type=cell_type,
                    rotation=rotation,
                    is_locked=cell_type == CellType.SERVER,
                ),
            )

    return grid

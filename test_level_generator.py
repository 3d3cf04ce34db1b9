"""Tests for level_generator module."""

import logging
import random

import pytest

from level_generator import GeneratorRules, LevelGenerator, create_grid, find_leaves
from net_types import DIFFICULTY_CONFIG, CellType, Difficulty, Direction, Position
from netwalk import ConnectionValidator, Grid


def make_generator(seed: int) -> LevelGenerator:
    return LevelGenerator(rng=random.Random(seed), clock=lambda: 1000.0)


class AlwaysSolved(ConnectionValidator):
    """Validator that reports every grid as solved."""

    def is_solved(self, grid: Grid) -> bool:
        return True


class TestBuildSolution:
    """Tests for the unscrambled solution."""

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_solution_is_solved(self, difficulty: Difficulty) -> None:
        """Every cell in its recorded orientation gives a solved board."""
        validator = ConnectionValidator()
        for seed in range(10):
            solution = make_generator(seed).build_solution(difficulty)
            result = validator.validate(solution.grid)
            assert result.is_valid, f"seed {seed}: {result}"
            assert result.disconnected_computers == []

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_every_cell_reachable(self, difficulty: Difficulty) -> None:
        """The spanning tree covers the whole board."""
        config = DIFFICULTY_CONFIG[difficulty]
        solution = make_generator(3).build_solution(difficulty)
        connected = ConnectionValidator().find_connected_cells(solution.grid)
        assert len(connected) == config.width * config.height

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_edge_count_lower_bound(self, difficulty: Difficulty) -> None:
        """Edge endpoints are at least 2 x (non-empty cells - 1)."""
        for seed in range(5):
            grid = make_generator(seed).build_solution(difficulty).grid
            non_empty = [c for c in grid.iter_cells() if not c.is_empty()]
            endpoints = sum(len(c.open_directions()) for c in non_empty)
            assert endpoints >= 2 * (len(non_empty) - 1)

    def test_easy_is_a_tree(self) -> None:
        """With no extra edges the board has exactly n - 1 edges."""
        solution = make_generator(11).build_solution(Difficulty.EASY)
        endpoints = sum(len(dirs) for dirs in solution.edges.values())
        assert endpoints == 2 * (5 * 5 - 1)

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_server_at_center_and_locked(self, difficulty: Difficulty) -> None:
        """The server sits at (width // 2, height // 2) and is locked."""
        config = DIFFICULTY_CONFIG[difficulty]
        solution = make_generator(5).build_solution(difficulty)
        center = Position(config.width // 2, config.height // 2)
        assert solution.server_position == center

        server = solution.grid.find_source()
        assert server is not None
        assert server.position == center
        assert server.is_locked
        assert server.rotation == 0
        assert solution.grid.find_cells_by_type(CellType.SERVER) == [center]

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_computer_selection(self, difficulty: Difficulty) -> None:
        """Selected endpoints are leaves, counted within the tier's range when possible."""
        config = DIFFICULTY_CONFIG[difficulty]
        for seed in range(10):
            solution = make_generator(seed).build_solution(difficulty)
            leaves = find_leaves(solution.edges, solution.server_position)
            selected = solution.computer_positions

            assert len(set(selected)) == len(selected)
            assert set(selected) <= set(leaves)
            if len(leaves) >= config.min_computers:
                assert config.min_computers <= len(selected) <= min(config.max_computers, len(leaves))
            else:
                assert sorted(selected) == sorted(leaves)

    def test_all_leaves_become_computers(self) -> None:
        """Unselected leaves still get the single-edge COMPUTER shape."""
        solution = make_generator(2).build_solution(Difficulty.HARD)
        leaves = find_leaves(solution.edges, solution.server_position)
        computers = solution.grid.find_cells_by_type(CellType.COMPUTER)
        assert sorted(computers) == sorted(leaves)

    def test_cells_match_edges(self) -> None:
        """Every non-server cell opens exactly its recorded edges."""
        solution = make_generator(9).build_solution(Difficulty.MEDIUM)
        for cell in solution.grid.iter_cells():
            if cell.is_server():
                continue
            assert cell.open_directions() == solution.edges[cell.position]
            assert (cell.x, cell.y) == (cell.position.x, cell.position.y)


class TestGenerate:
    """Tests for full level generation."""

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_never_starts_solved(self, difficulty: Difficulty) -> None:
        """Ten consecutive levels all start unsolved."""
        generator = make_generator(1234)
        validator = ConnectionValidator()
        for _ in range(10):
            state = generator.generate(difficulty)
            assert not validator.is_solved(Grid.from_data(state.grid))

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_fresh_state(self, difficulty: Difficulty) -> None:
        """A new level has no moves, no elapsed time and the injected start time."""
        config = DIFFICULTY_CONFIG[difficulty]
        state = make_generator(8).generate(difficulty)
        assert state.difficulty == difficulty
        assert (state.width, state.height) == (config.width, config.height)
        assert len(state.grid) == config.height
        assert all(len(row) == config.width for row in state.grid)
        assert state.moves == 0
        assert state.elapsed_time == 0
        assert state.start_time == 1000.0
        assert not state.is_completed
        assert not state.is_paused
        assert state.server_position == Position(config.width // 2, config.height // 2)

    def test_cell_data_consistent(self) -> None:
        """Cell coordinates match their slots and rotations are 0-3."""
        state = make_generator(21).generate(Difficulty.HARD)
        for y, row in enumerate(state.grid):
            for x, cell in enumerate(row):
                assert (cell["x"], cell["y"]) == (x, y)
                assert 0 <= cell["rotation"] <= 3

    def test_deterministic_with_seed(self) -> None:
        """The same seed gives the same level."""
        assert make_generator(77).generate(Difficulty.MEDIUM) == make_generator(77).generate(
            Difficulty.MEDIUM
        )

    def test_guard_gives_up(self, caplog: pytest.LogCaptureFixture) -> None:
        """A board that keeps reading as solved is accepted after the attempt limit."""
        generator = LevelGenerator(
            rng=random.Random(0),
            validator=AlwaysSolved(),
            rules=GeneratorRules(max_scramble_attempts=3),
        )
        with caplog.at_level(logging.WARNING, logger="level_generator"):
            state = generator.generate(Difficulty.EASY)
        assert state.moves == 0
        assert "still solved after 3 re-scrambles" in caplog.text


class TestScramble:
    """Tests for the scramble phase."""

    def test_rotatable_cells_change(self) -> None:
        """Every rotatable cell moves 1-3 quarter turns away from its solution."""
        generator = make_generator(4)
        solution = generator.build_solution(Difficulty.HARD)
        scrambled = solution.grid.clone()
        generator.scramble(scrambled)

        for cell in solution.grid.iter_cells():
            after = scrambled.get_cell_safe(cell.x, cell.y)
            if cell.can_rotate():
                assert after.rotation != cell.rotation
            else:
                assert after.rotation == cell.rotation

    def test_turn_count_from_rules(self) -> None:
        """Exactly one turn per cell when the rules pin the range to 1."""
        generator = LevelGenerator(
            rng=random.Random(0), rules=GeneratorRules(min_scramble_turns=1, max_scramble_turns=1)
        )
        solution = generator.build_solution(Difficulty.EASY)
        scrambled = solution.grid.clone()
        generator.scramble(scrambled)
        for cell in solution.grid.iter_cells():
            if cell.can_rotate():
                assert scrambled.get_cell_safe(cell.x, cell.y).rotation == (cell.rotation + 1) % 4


class TestEdgeHelpers:
    """Tests for the edge-map helpers."""

    def test_extra_edges_at_probability_one(self) -> None:
        """Probability 1 connects every adjacent pair."""
        generator = make_generator(0)
        edges = {Position(x, y): set() for y in range(3) for x in range(3)}
        generator.add_extra_edges(3, 3, edges, 1.0)  # type: ignore[arg-type]
        assert edges[Position(1, 1)] == set(Direction)
        assert edges[Position(0, 0)] == {Direction.EAST, Direction.SOUTH}
        assert sum(len(d) for d in edges.values()) == 2 * 12

    def test_extra_edges_at_probability_zero(self) -> None:
        """Probability 0 adds nothing."""
        generator = make_generator(0)
        edges = {Position(x, y): set() for y in range(2) for x in range(2)}
        generator.add_extra_edges(2, 2, edges, 0.0)  # type: ignore[arg-type]
        assert all(not d for d in edges.values())

    def test_create_grid_small(self) -> None:
        """A hand-built edge map becomes server, straight and computer."""
        edges = {
            Position(0, 0): {Direction.EAST},
            Position(1, 0): {Direction.EAST, Direction.WEST},
            Position(2, 0): {Direction.WEST},
        }
        grid = create_grid(3, 1, edges, Position(0, 0), [Position(2, 0)])  # type: ignore[arg-type]
        types = [c.type for c in grid.iter_cells()]
        assert types == [CellType.SERVER, CellType.STRAIGHT, CellType.COMPUTER]
        assert ConnectionValidator().is_solved(grid)

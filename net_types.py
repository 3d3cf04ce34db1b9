"""
Shared type definitions for the NetWalk engine.

Directions, cell shapes, difficulty profiles, positions and the plain records
exchanged with collaborators (validation results, game state, leaderboard).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class Direction(IntEnum):
    """Cardinal direction, ordinals increasing clockwise from north."""

    NORTH = 0  # Up (decreasing y)
    EAST = 1  # Right (increasing x)
    SOUTH = 2  # Down (increasing y)
    WEST = 3  # Left (decreasing x)


class CellType(Enum):
    """Shape of a grid cell. Values are the serialized form."""

    EMPTY = "empty"
    STRAIGHT = "straight"  # Two opposite sides (| or -)
    CORNER = "corner"  # Two adjacent sides (L-shape)
    T_JUNCTION = "t_junction"  # Three sides
    CROSS = "cross"  # All four sides (+)
    COMPUTER = "computer"  # Endpoint with one connection
    SERVER = "server"  # Network source


class Difficulty(Enum):
    """Difficulty tier."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultyConfig:
    """Grid size, endpoint range and scoring targets for one tier."""

    width: int
    height: int
    min_computers: int
    max_computers: int
    extra_edge_probability: float
    ideal_time: int  # seconds
    ideal_moves: int


DIFFICULTY_CONFIG: dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(
        width=5,
        height=5,
        min_computers=4,
        max_computers=6,
        extra_edge_probability=0.0,
        ideal_time=60,
        ideal_moves=25,
    ),
    Difficulty.MEDIUM: DifficultyConfig(
        width=7,
        height=7,
        min_computers=8,
        max_computers=12,
        extra_edge_probability=0.125,
        ideal_time=180,
        ideal_moves=60,
    ),
    Difficulty.HARD: DifficultyConfig(
        width=9,
        height=9,
        min_computers=12,
        max_computers=18,
        extra_edge_probability=0.25,
        ideal_time=360,
        ideal_moves=120,
    ),
}


# =============================================================================
# Geometry
# =============================================================================


BASE_DIRECTIONS: dict[CellType, tuple[Direction, ...]] = {
    CellType.EMPTY: (),
    CellType.STRAIGHT: (Direction.NORTH, Direction.SOUTH),
    CellType.CORNER: (Direction.NORTH, Direction.EAST),
    CellType.T_JUNCTION: (Direction.NORTH, Direction.EAST, Direction.WEST),
    CellType.CROSS: (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST),
    CellType.COMPUTER: (Direction.NORTH,),
    CellType.SERVER: (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST),
}

# Direction deltas: (dx, dy)
_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}


def opposite(direction: Direction) -> Direction:
    """Return the direction facing the other way."""
    return Direction((direction + 2) % 4)


def delta(direction: Direction) -> tuple[int, int]:
    """Return the (dx, dy) step for moving one cell in a direction."""
    return _DELTAS[direction]


def rotate_direction(direction: Direction, turns: int) -> Direction:
    """Advance a direction clockwise by a number of quarter turns."""
    return Direction((direction + turns) % 4)


def open_directions(cell_type: CellType, rotation: int) -> frozenset[Direction]:
    """Open edges of a cell type at the given rotation."""
    return frozenset(rotate_direction(d, rotation) for d in BASE_DIRECTIONS[cell_type])


def are_opposite(d1: Direction, d2: Direction) -> bool:
    """True if the two directions point away from each other (STRAIGHT shape)."""
    return (d1 - d2) % 4 == 2


def are_adjacent(d1: Direction, d2: Direction) -> bool:
    """True if the two directions are a quarter turn apart (CORNER shape)."""
    return (d1 - d2) % 4 in (1, 3)


# =============================================================================
# Positions
# =============================================================================


@dataclass(frozen=True, order=True)
class Position:
    """An (x, y) grid coordinate."""

    x: int
    y: int

    def step(self, direction: Direction) -> Position:
        """The position one cell away in a direction (may be out of bounds)."""
        dx, dy = delta(direction)
        return Position(self.x + dx, self.y + dy)

    def to_data(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_data(data: dict[str, Any]) -> Position:
        return Position(int(data["x"]), int(data["y"]))


def direction_between(p1: Position, p2: Position) -> Direction | None:
    """Direction from p1 to an orthogonally adjacent p2, or None if not adjacent."""
    step = (p2.x - p1.x, p2.y - p1.y)
    for direction, d in _DELTAS.items():
        if d == step:
            return direction
    return None


def position_key(pos: Position) -> str:
    """External string key for a position: "x,y"."""
    return f"{pos.x},{pos.y}"


def parse_position_key(key: str) -> Position:
    """Inverse of position_key."""
    parts = key.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid position key: '{key}' (expected 'x,y')")
    try:
        return Position(int(parts[0]), int(parts[1]))
    except ValueError:
        raise ValueError(f"Invalid position key: '{key}' (coordinates must be integers)") from None


# =============================================================================
# Validation Records
# =============================================================================


@dataclass(frozen=True)
class HangingEnd:
    """An open edge with no matching edge on the neighbor (or no neighbor)."""

    position: Position
    direction: Direction


@dataclass
class ValidationResult:
    """Outcome of one validation pass. Rebuilt from scratch on every call."""

    is_valid: bool
    connected_cells: set[Position]
    disconnected_computers: list[Position]
    hanging_ends: list[HangingEnd]

    def connected_keys(self) -> set[str]:
        return {position_key(p) for p in self.connected_cells}


@dataclass(frozen=True)
class GridStats:
    """Counts summarizing a validation pass."""

    total_cells: int
    connected_cells: int
    total_computers: int
    connected_computers: int
    hanging_end_count: int


# =============================================================================
# Game Records
# =============================================================================


CellData = dict[str, Any]


@dataclass
class GameState:
    """A puzzle in play, as handed to presentation and persistence."""

    grid: list[list[CellData]]
    width: int
    height: int
    difficulty: Difficulty
    moves: int
    start_time: float  # epoch seconds
    elapsed_time: int  # whole seconds
    is_completed: bool
    is_paused: bool
    server_position: Position
    computer_positions: list[Position] = field(default_factory=list)

    def to_data(self) -> dict[str, Any]:
        return {
            "grid": [[dict(cell) for cell in row] for row in self.grid],
            "width": self.width,
            "height": self.height,
            "difficulty": self.difficulty.value,
            "moves": self.moves,
            "start_time": self.start_time,
            "elapsed_time": self.elapsed_time,
            "is_completed": self.is_completed,
            "is_paused": self.is_paused,
            "server_position": self.server_position.to_data(),
            "computer_positions": [p.to_data() for p in self.computer_positions],
        }

    @staticmethod
    def from_data(data: dict[str, Any]) -> GameState:
        return GameState(
            grid=[[dict(cell) for cell in row] for row in data["grid"]],
            width=data["width"],
            height=data["height"],
            difficulty=Difficulty(data["difficulty"]),
            moves=data["moves"],
            start_time=data["start_time"],
            elapsed_time=data["elapsed_time"],
            is_completed=data["is_completed"],
            is_paused=data["is_paused"],
            server_position=Position.from_data(data["server_position"]),
            computer_positions=[Position.from_data(p) for p in data["computer_positions"]],
        )


SAVED_GAME_VERSION = 1


@dataclass
class SavedGame:
    """Versioned wrapper around a GameState."""

    version: int
    saved_at: str  # ISO timestamp
    game_state: GameState

    def to_data(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "saved_at": self.saved_at,
            "game_state": self.game_state.to_data(),
        }

    @staticmethod
    def from_data(data: dict[str, Any]) -> SavedGame:
        return SavedGame(
            version=data["version"],
            saved_at=data["saved_at"],
            game_state=GameState.from_data(data["game_state"]),
        )


@dataclass
class LeaderboardEntry:
    """One finished game on the leaderboard."""

    id: str
    difficulty: Difficulty
    score: int
    moves: int
    time: int  # seconds
    date: str  # YYYY-MM-DD

    def to_data(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "difficulty": self.difficulty.value,
            "score": self.score,
            "moves": self.moves,
            "time": self.time,
            "date": self.date,
        }

    @staticmethod
    def from_data(data: dict[str, Any]) -> LeaderboardEntry:
        return LeaderboardEntry(
            id=data["id"],
            difficulty=Difficulty(data["difficulty"]),
            score=data["score"],
            moves=data["moves"],
            time=data["time"],
            date=data["date"],
        )


@dataclass
class GameStatistics:
    """Cumulative play statistics."""

    games_played: int = 0
    games_won: int = 0
    total_time: int = 0
    total_moves: int = 0

    def to_data(self) -> dict[str, int]:
        return {
            "games_played": self.games_played,
            "games_won": self.games_won,
            "total_time": self.total_time,
            "total_moves": self.total_moves,
        }

    @staticmethod
    def from_data(data: dict[str, Any]) -> GameStatistics:
        return GameStatistics(
            games_played=data.get("games_played", 0),
            games_won=data.get("games_won", 0),
            total_time=data.get("total_time", 0),
            total_moves=data.get("total_moves", 0),
        )

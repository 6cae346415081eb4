"""
Constants for the Hexaequo game.

This module defines the game constants used throughout the Hexaequo implementation,
including colors, piece kinds, board geometry, supplies and victory conditions.

The board uses axial hex coordinates: every cell is addressed by (row, col) on a
10x10 grid, and the six neighbours of a cell are found by adding one of the
HEX_DIRECTIONS offsets.
"""
from enum import Enum
from typing import Dict, List, Tuple, Final


class Color(Enum):
    """The two sides of a Hexaequo game."""
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        """The other color."""
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(Enum):
    """Enum representing the two kinds of movable pieces."""
    DISC = "disc"
    RING = "ring"


# Board geometry
BOARD_SIZE: Final[int] = 10
NUM_CELLS: Final[int] = BOARD_SIZE * BOARD_SIZE

# The six axial directions, in encoding order: N, NE, E, S, SW, W
HEX_DIRECTIONS: Final[List[Tuple[int, int]]] = [
    (-1, 0),
    (-1, 1),
    (0, 1),
    (1, 0),
    (1, -1),
    (0, -1),
]

DIRECTION_NAMES: Final[List[str]] = ["N", "NE", "E", "S", "SW", "W"]
NUM_DIRECTIONS: Final[int] = len(HEX_DIRECTIONS)

# Cells at hex distance exactly two, reachable by a ring in one move
RING_OFFSETS: Final[List[Tuple[int, int]]] = [
    (-2, 0), (-2, 1), (-2, 2),
    (-1, -1), (-1, 2),
    (0, -2), (0, 2),
    (1, -2), (1, 1),
    (2, -2), (2, -1), (2, 0),
]

# Supplies per color at the start of a game (before the setup pieces)
TILES_PER_COLOR: Final[int] = 9
DISCS_PER_COLOR: Final[int] = 6
RINGS_PER_COLOR: Final[int] = 3

# Victory conditions
DISCS_TO_WIN: Final[int] = 6  # Captured enemy discs needed to win
RINGS_TO_WIN: Final[int] = 3  # Captured enemy rings needed to win

# Tiles may be placed anywhere until this many are on the board
FREE_TILE_PLACEMENTS: Final[int] = 4

# A reversible move may be repeated at most this many times
MAX_REPETITIONS: Final[int] = 3

# Intermediate reward weights
DISC_CAPTURE_REWARD: Final[float] = 0.1
RING_CAPTURE_REWARD: Final[float] = 0.2

# Action space: tiles, discs, rings on every cell, then moves by origin and direction
ACTION_SPACE_SIZE: Final[int] = 3 * NUM_CELLS + NUM_CELLS * NUM_DIRECTIONS

FIRST_PLAYER: Final[Color] = Color.BLACK

# Standard setup: two tiles per color with one disc on each side
STARTING_TILES: Final[Dict[Color, List[Tuple[int, int]]]] = {
    Color.WHITE: [(5, 4), (5, 5)],
    Color.BLACK: [(4, 4), (4, 5)],
}

STARTING_DISCS: Final[Dict[Color, List[Tuple[int, int]]]] = {
    Color.WHITE: [(5, 4)],
    Color.BLACK: [(4, 5)],
}

# Symbols for terminal display
PIECE_SYMBOLS: Final[Dict[Tuple[Color, PieceKind], str]] = {
    (Color.WHITE, PieceKind.DISC): "w",
    (Color.WHITE, PieceKind.RING): "W",
    (Color.BLACK, PieceKind.DISC): "b",
    (Color.BLACK, PieceKind.RING): "B",
}

TILE_SYMBOLS: Final[Dict[Color, str]] = {
    Color.WHITE: "o",
    Color.BLACK: "x",
}

# AI and search defaults
DEFAULT_MCTS_SIMULATIONS: Final[int] = 400
DEFAULT_MCTS_EXPLORATION: Final[float] = 2.0

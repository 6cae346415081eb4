"""
Board representation for Hexaequo.

This module defines the cell coordinates, pieces and the Board container.
A Board maps cells to the tile lying there and to the piece resting on that tile.

Boards reachable from a GameState are never mutated: rules code copies the board
first and only mutates its private working copy.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Any

from hexaequo_ai.core.constants import (
    Color, PieceKind, BOARD_SIZE, HEX_DIRECTIONS,
    PIECE_SYMBOLS, TILE_SYMBOLS
)


class Position(NamedTuple):
    """A cell on the board in axial (row, col) coordinates."""
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> "Position":
        """Return the cell displaced by (d_row, d_col)."""
        return Position(self.row + d_row, self.col + d_col)

    def in_bounds(self, board_size: int = BOARD_SIZE) -> bool:
        """Check whether this cell lies on a board of the given size."""
        return 0 <= self.row < board_size and 0 <= self.col < board_size

    @property
    def notation(self) -> str:
        """
        Algebraic name of the cell.

        Columns are lettered from A on the left, rows are numbered from
        BOARD_SIZE at the top down to 1 at the bottom.
        """
        return f"{chr(ord('A') + self.col)}{BOARD_SIZE - self.row}"

    @classmethod
    def from_notation(cls, text: str) -> "Position":
        """
        Parse an algebraic cell name such as ``"E6"``.

        Args:
            text: Column letter followed by row number

        Returns:
            The corresponding Position

        Raises:
            ValueError: If the text is not a cell on the board
        """
        text = text.strip().upper()
        if len(text) < 2 or not text[0].isalpha() or not text[1:].isdigit():
            raise ValueError(f"Invalid cell notation: {text!r}")

        position = cls(BOARD_SIZE - int(text[1:]), ord(text[0]) - ord('A'))
        if not position.in_bounds():
            raise ValueError(f"Cell {text!r} is off the board")
        return position

    def __str__(self) -> str:
        return self.notation


@dataclass(frozen=True)
class Piece:
    """A disc or ring owned by one color."""
    color: Color
    kind: PieceKind

    @property
    def symbol(self) -> str:
        return PIECE_SYMBOLS[(self.color, self.kind)]

    def __str__(self) -> str:
        return f"{self.color.value} {self.kind.value}"


class Board:
    """
    Tiles and pieces on the hex grid.

    A piece only ever rests on a tile; tiles are never removed once placed.
    """

    def __init__(
        self,
        tiles: Optional[Dict[Position, Color]] = None,
        pieces: Optional[Dict[Position, Piece]] = None,
        size: int = BOARD_SIZE,
    ):
        self.size = size
        self.tiles: Dict[Position, Color] = dict(tiles) if tiles else {}
        self.pieces: Dict[Position, Piece] = dict(pieces) if pieces else {}

    def copy(self) -> "Board":
        """Return an independent copy of this board."""
        return Board(self.tiles, self.pieces, self.size)

    # Queries

    def in_bounds(self, position: Position) -> bool:
        return position.in_bounds(self.size)

    def tile_at(self, position: Position) -> Optional[Color]:
        """Color of the tile on a cell, or None."""
        return self.tiles.get(position)

    def piece_at(self, position: Position) -> Optional[Piece]:
        """Piece on a cell, or None."""
        return self.pieces.get(position)

    def has_tile(self, position: Position) -> bool:
        return position in self.tiles

    def has_piece(self, position: Position) -> bool:
        return position in self.pieces

    def is_empty(self, position: Position) -> bool:
        """True if the cell holds neither a tile nor a piece."""
        return position not in self.tiles and position not in self.pieces

    def is_vacant_tile(self, position: Position) -> bool:
        """True if the cell has a tile with no piece on it."""
        return position in self.tiles and position not in self.pieces

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    def cells(self) -> Iterator[Position]:
        """All cells of the board in row-major order."""
        for row in range(self.size):
            for col in range(self.size):
                yield Position(row, col)

    def neighbors(self, position: Position) -> List[Position]:
        """On-board neighbours of a cell, in direction order."""
        result = []
        for d_row, d_col in HEX_DIRECTIONS:
            neighbor = position.offset(d_row, d_col)
            if self.in_bounds(neighbor):
                result.append(neighbor)
        return result

    def is_adjacent_to_tile(self, position: Position) -> bool:
        return any(neighbor in self.tiles for neighbor in self.neighbors(position))

    def pieces_of(self, color: Color) -> List[Position]:
        """Cells holding pieces of a color, in row-major order."""
        return sorted(pos for pos, piece in self.pieces.items() if piece.color == color)

    def count_tiles(self, color: Color) -> int:
        return sum(1 for owner in self.tiles.values() if owner == color)

    def count_pieces(self, color: Color, kind: PieceKind) -> int:
        return sum(
            1 for piece in self.pieces.values()
            if piece.color == color and piece.kind == kind
        )

    # Mutation (working copies only)

    def place_tile(self, position: Position, color: Color) -> None:
        self.tiles[position] = color

    def place_piece(self, position: Position, piece: Piece) -> None:
        self.pieces[position] = piece

    def remove_piece(self, position: Position) -> Piece:
        return self.pieces.pop(position)

    def move_piece(self, origin: Position, target: Position) -> None:
        self.pieces[target] = self.pieces.pop(origin)

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the board to a dictionary for serialization.

        Returns:
            Dictionary with lists of tiles and pieces
        """
        return {
            "size": self.size,
            "tiles": [
                {"row": pos.row, "col": pos.col, "color": color.value}
                for pos, color in sorted(self.tiles.items())
            ],
            "pieces": [
                {
                    "row": pos.row,
                    "col": pos.col,
                    "color": piece.color.value,
                    "kind": piece.kind.value,
                }
                for pos, piece in sorted(self.pieces.items())
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        """
        Create a board from its dictionary representation.

        Args:
            data: Dictionary produced by to_dict

        Returns:
            Board object
        """
        tiles = {
            Position(item["row"], item["col"]): Color(item["color"])
            for item in data.get("tiles", [])
        }
        pieces = {
            Position(item["row"], item["col"]): Piece(Color(item["color"]), PieceKind(item["kind"]))
            for item in data.get("pieces", [])
        }
        return cls(tiles, pieces, data.get("size", BOARD_SIZE))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.size == other.size
            and self.tiles == other.tiles
            and self.pieces == other.pieces
        )

    def __str__(self) -> str:
        """
        Render the board as text, one row per line.

        Each cell shows a piece symbol, a tile symbol or '.' for an empty cell.
        Rows are shifted right as they go down to suggest the hex layout.
        """
        lines = ["   " + " ".join(chr(ord('A') + col) for col in range(self.size))]
        for row in range(self.size):
            cells = []
            for col in range(self.size):
                pos = Position(row, col)
                if pos in self.pieces:
                    cells.append(self.pieces[pos].symbol)
                elif pos in self.tiles:
                    cells.append(TILE_SYMBOLS[self.tiles[pos]])
                else:
                    cells.append(".")
            lines.append(f"{self.size - row:>2} " + " " * row + " ".join(cells))
        return "\n".join(lines)

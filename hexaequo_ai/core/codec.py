"""
Fixed-size integer encoding of Hexaequo actions.

The index space is laid out in four blocks over a board of N cells:

    [0, N)          place tile on cell
    [N, 2N)         place disc on cell
    [2N, 3N)        place ring on cell
    [3N, 3N + 6N)   move from cell in one of the six hex directions

where ``cell = row * board_size + col``. With the standard 10x10 board this
gives 900 indices. Only single-step moves have an index; jumps and ring hops
raise UnknownDirectionError from encode().
"""
from __future__ import annotations
from typing import Optional

from hexaequo_ai.core.constants import BOARD_SIZE, HEX_DIRECTIONS, NUM_DIRECTIONS
from hexaequo_ai.core.board import Position
from hexaequo_ai.core.actions import (
    Action, ActionType, PlaceTile, PlaceDisc, PlaceRing, Move
)
from hexaequo_ai.core.exceptions import UnknownDirectionError


_PLACEMENT_BLOCKS = {
    ActionType.PLACE_TILE: 0,
    ActionType.PLACE_DISC: 1,
    ActionType.PLACE_RING: 2,
}

_PLACEMENT_CLASSES = [PlaceTile, PlaceDisc, PlaceRing]


class ActionCodec:
    """
    Bijection between actions and indices in ``[0, size)``.

    Args:
        board_size: Side length of the square board
    """

    def __init__(self, board_size: int = BOARD_SIZE):
        if board_size <= 0:
            raise ValueError("board_size must be positive")
        self.board_size = board_size
        self.num_cells = board_size * board_size
        self.move_offset = 3 * self.num_cells
        self.size = self.move_offset + self.num_cells * NUM_DIRECTIONS

    def __len__(self) -> int:
        return self.size

    def _cell_index(self, position: Position) -> int:
        if not position.in_bounds(self.board_size):
            raise ValueError(f"Position {tuple(position)} is off the board")
        return position.row * self.board_size + position.col

    def _cell_position(self, cell: int) -> Position:
        return Position(cell // self.board_size, cell % self.board_size)

    def encode(self, action: Action) -> int:
        """
        Encode an action as an integer index.

        Args:
            action: Action to encode

        Returns:
            Index in ``[0, size)``

        Raises:
            UnknownDirectionError: If a move is not a single step in one of the
                six hex directions
            ValueError: If a cell is off the board
        """
        if action.action_type in _PLACEMENT_BLOCKS:
            block = _PLACEMENT_BLOCKS[action.action_type]
            return block * self.num_cells + self._cell_index(action.position)

        if action.action_type == ActionType.MOVE:
            delta = action.delta
            try:
                direction = HEX_DIRECTIONS.index(delta)
            except ValueError:
                raise UnknownDirectionError(delta) from None
            return self.move_offset + self._cell_index(action.origin) * NUM_DIRECTIONS + direction

        raise ValueError(f"Cannot encode {action!r}")

    def try_encode(self, action: Action) -> Optional[int]:
        """
        Encode an action, returning None for moves with no index.

        Args:
            action: Action to encode

        Returns:
            Index, or None for jumps and ring hops
        """
        try:
            return self.encode(action)
        except UnknownDirectionError:
            return None

    def decode(self, index: int) -> Action:
        """
        Decode an index back into an action.

        A decoded move may point off the board; such a move is never legal.

        Args:
            index: Index in ``[0, size)``

        Returns:
            Action object

        Raises:
            ValueError: If the index is out of range
        """
        if not 0 <= index < self.size:
            raise ValueError(f"Action index {index} out of range [0, {self.size})")

        if index < self.move_offset:
            block, cell = divmod(index, self.num_cells)
            return _PLACEMENT_CLASSES[block](self._cell_position(cell))

        cell, direction = divmod(index - self.move_offset, NUM_DIRECTIONS)
        origin = self._cell_position(cell)
        d_row, d_col = HEX_DIRECTIONS[direction]
        return Move(origin, origin.offset(d_row, d_col))


DEFAULT_CODEC = ActionCodec(BOARD_SIZE)


def encode_action(action: Action) -> int:
    """Encode an action with the standard 10x10 codec."""
    return DEFAULT_CODEC.encode(action)


def decode_action(index: int) -> Action:
    """Decode an index with the standard 10x10 codec."""
    return DEFAULT_CODEC.decode(index)

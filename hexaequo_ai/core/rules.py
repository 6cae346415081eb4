"""
Rules of Hexaequo as pure functions.

Movement:
- A disc steps to an adjacent empty tile, or jumps over an adjacent piece of
  either color onto the empty tile directly beyond it. Jumping over an enemy
  piece captures it. After a capturing jump the same disc must keep jumping
  while it has further captures available. Older rule sets let the player
  stop or keep jumping freely after a jump; here the chain is compulsory and
  limited to captures, since there is no action for ending a turn early.
- A ring hops to any tile at hex distance exactly two that does not hold a
  friendly piece. An enemy piece on the landing tile is captured.

Placement:
- Tiles go on empty cells; once FREE_TILE_PLACEMENTS tiles are on the board a
  new tile must touch an existing one.
- Discs and rings go on empty tiles of the mover's color. A ring costs one
  captured disc, which returns to the opponent's supply.

None of the functions here modify their arguments, except the apply_* helpers
which operate on a working copy owned by the caller.
"""
from __future__ import annotations
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from hexaequo_ai.core.constants import (
    Color, PieceKind, HEX_DIRECTIONS, RING_OFFSETS,
    FREE_TILE_PLACEMENTS, MAX_REPETITIONS
)
from hexaequo_ai.core.board import Board, Piece, Position
from hexaequo_ai.core.inventory import Inventory
from hexaequo_ai.core.actions import (
    Action, ActionType, PlaceTile, PlaceDisc, PlaceRing, Move
)


class Destination(NamedTuple):
    """A cell a piece can move to, and the cell of the piece it would capture."""
    target: Position
    captured: Optional[Position] = None


def disc_destinations(board: Board, origin: Position) -> List[Destination]:
    """
    Enumerate the moves of the disc on ``origin``.

    Steps come first in direction order, then jumps in direction order.

    Args:
        board: Current board
        origin: Cell holding a disc

    Returns:
        List of destinations
    """
    mover = board.piece_at(origin)
    steps = []
    jumps = []

    for d_row, d_col in HEX_DIRECTIONS:
        adjacent = origin.offset(d_row, d_col)
        if not board.in_bounds(adjacent):
            continue
        if board.is_vacant_tile(adjacent):
            steps.append(Destination(adjacent))
            continue

        jumped = board.piece_at(adjacent)
        if jumped is None:
            continue
        landing = adjacent.offset(d_row, d_col)
        if board.in_bounds(landing) and board.is_vacant_tile(landing):
            captured = adjacent if mover is not None and jumped.color != mover.color else None
            jumps.append(Destination(landing, captured))

    return steps + jumps


def ring_destinations(board: Board, origin: Position) -> List[Destination]:
    """
    Enumerate the moves of the ring on ``origin``, in RING_OFFSETS order.

    Args:
        board: Current board
        origin: Cell holding a ring

    Returns:
        List of destinations
    """
    mover = board.piece_at(origin)
    result = []

    for d_row, d_col in RING_OFFSETS:
        target = origin.offset(d_row, d_col)
        if not board.in_bounds(target) or not board.has_tile(target):
            continue
        occupant = board.piece_at(target)
        if occupant is None:
            result.append(Destination(target))
        elif mover is not None and occupant.color != mover.color:
            result.append(Destination(target, target))

    return result


def piece_destinations(board: Board, origin: Position) -> List[Destination]:
    """Dispatch on the kind of piece standing on ``origin``."""
    piece = board.piece_at(origin)
    if piece is None:
        return []
    if piece.kind == PieceKind.DISC:
        return disc_destinations(board, origin)
    return ring_destinations(board, origin)


def capturing_jumps(board: Board, origin: Position) -> List[Destination]:
    """Jumps from ``origin`` that capture an enemy piece."""
    piece = board.piece_at(origin)
    if piece is None or piece.kind != PieceKind.DISC:
        return []
    return [dest for dest in disc_destinations(board, origin) if dest.captured is not None]


def tile_placements(board: Board, inventory: Inventory) -> List[Position]:
    """Cells where a tile may be placed, in row-major order."""
    if inventory.tiles < 1:
        return []

    needs_neighbor = board.tile_count >= FREE_TILE_PLACEMENTS
    return [
        pos for pos in board.cells()
        if board.is_empty(pos) and (not needs_neighbor or board.is_adjacent_to_tile(pos))
    ]


def piece_placements(
    board: Board,
    color: Color,
    inventory: Inventory,
    kind: PieceKind
) -> List[Position]:
    """
    Cells where a disc or ring of ``color`` may be placed.

    Args:
        board: Current board
        color: Color placing the piece
        inventory: That color's inventory
        kind: Piece kind to place

    Returns:
        Empty tiles of the color, in row-major order, or an empty list when
        the supply does not allow the placement
    """
    if kind == PieceKind.DISC and inventory.discs < 1:
        return []
    if kind == PieceKind.RING and (inventory.rings < 1 or inventory.captured_discs < 1):
        return []

    return sorted(
        pos for pos, owner in board.tiles.items()
        if owner == color and not board.has_piece(pos)
    )


def repetition_count(move_history: Sequence[Move], move: Move) -> int:
    """Number of times ``move`` has been played since the last irreversible action."""
    return sum(1 for played in move_history if played == move)


def generate_legal_actions(
    board: Board,
    inventories: Dict[Color, Inventory],
    color: Color,
    must_continue_jump_from: Optional[Position] = None,
    move_history: Sequence[Move] = (),
) -> List[Action]:
    """
    Generate every legal action for ``color``.

    Order: tile placements, disc placements, ring placements, moves. While a
    chain of captures is in progress only the capturing jumps of the jumping
    disc are legal.

    Args:
        board: Current board
        inventories: Inventory per color
        color: Color to move
        must_continue_jump_from: Cell of a disc that must keep capturing
        move_history: Reversible moves played since the last placement or capture

    Returns:
        List of legal actions
    """
    if must_continue_jump_from is not None:
        return [
            Move(must_continue_jump_from, dest.target)
            for dest in capturing_jumps(board, must_continue_jump_from)
        ]

    inventory = inventories[color]
    actions: List[Action] = []
    actions.extend(PlaceTile(pos) for pos in tile_placements(board, inventory))
    actions.extend(PlaceDisc(pos) for pos in piece_placements(board, color, inventory, PieceKind.DISC))
    actions.extend(PlaceRing(pos) for pos in piece_placements(board, color, inventory, PieceKind.RING))

    for origin in board.pieces_of(color):
        for dest in piece_destinations(board, origin):
            move = Move(origin, dest.target)
            if dest.captured is None and repetition_count(move_history, move) >= MAX_REPETITIONS:
                continue
            actions.append(move)

    return actions


def apply_action_to(
    board: Board,
    inventories: Dict[Color, Inventory],
    color: Color,
    action: Action
) -> Tuple[Optional[Piece], Optional[Position]]:
    """
    Apply an action to a working copy of the board and inventories.

    The action must already be known to be legal. ``board`` and
    ``inventories`` are modified in place.

    Args:
        board: Board to modify
        inventories: Inventory mapping to modify
        color: Color performing the action
        action: Legal action

    Returns:
        Tuple of (captured piece or None, cell the moved piece landed on or None)
    """
    opponent = color.opponent

    if action.action_type == ActionType.PLACE_TILE:
        board.place_tile(action.position, color)
        inventories[color] = inventories[color].adjust(tiles=-1)
        return None, None

    if action.action_type == ActionType.PLACE_DISC:
        board.place_piece(action.position, Piece(color, PieceKind.DISC))
        inventories[color] = inventories[color].adjust(discs=-1)
        return None, None

    if action.action_type == ActionType.PLACE_RING:
        board.place_piece(action.position, Piece(color, PieceKind.RING))
        inventories[color] = inventories[color].adjust(rings=-1, captured_discs=-1)
        inventories[opponent] = inventories[opponent].adjust(discs=1)
        return None, None

    captured_at = None
    for dest in piece_destinations(board, action.origin):
        if dest.target == action.target:
            captured_at = dest.captured
            break

    captured = None
    if captured_at is not None:
        captured = board.remove_piece(captured_at)
        if captured.kind == PieceKind.DISC:
            inventories[color] = inventories[color].adjust(captured_discs=1)
        else:
            inventories[color] = inventories[color].adjust(captured_rings=1)

    board.move_piece(action.origin, action.target)
    return captured, action.target

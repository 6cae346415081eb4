"""
Actions for the Hexaequo game.

This module defines the four kinds of action a player can take:
- Placing a tile of their color on an empty cell
- Placing a disc on one of their own empty tiles
- Placing a ring on one of their own empty tiles (paid for with a captured disc)
- Moving a disc or ring from one cell to another

Actions are immutable, hashable values carrying exactly the fields their kind
needs. Legality is decided by the rules module, not by the actions themselves.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, ClassVar, Dict, Tuple

from hexaequo_ai.core.board import Position


class ActionType(Enum):
    """Enum representing the different types of actions in Hexaequo."""
    PLACE_TILE = auto()
    PLACE_DISC = auto()
    PLACE_RING = auto()
    MOVE = auto()


class Action(ABC):
    """
    Abstract base class for all Hexaequo actions.

    Concrete actions are frozen dataclasses, so they compare by value and can
    be used as dictionary keys.
    """
    action_type: ClassVar[ActionType]

    @property
    def is_placement(self) -> bool:
        return self.action_type != ActionType.MOVE

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the action to a dictionary for serialization.

        Returns:
            Dictionary representation of the action
        """

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> Action:
        """
        Create an action from a dictionary representation.

        Args:
            data: Dictionary representation of the action

        Returns:
            Action object
        """


@dataclass(frozen=True)
class _Placement(Action):
    """Shared shape of the three placement actions."""
    position: Position

    def __post_init__(self):
        # Accept plain (row, col) tuples
        if not isinstance(self.position, Position):
            object.__setattr__(self, "position", Position(*self.position))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_type": self.action_type.name,
            "row": self.position.row,
            "col": self.position.col,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Action:
        return cls(Position(data["row"], data["col"]))

    def __str__(self) -> str:
        kind = self.action_type.name.split("_")[1].lower()
        return f"Place {kind} at {self.position.notation}"


@dataclass(frozen=True)
class PlaceTile(_Placement):
    """Place a tile of the mover's color on an empty cell."""
    action_type: ClassVar[ActionType] = ActionType.PLACE_TILE


@dataclass(frozen=True)
class PlaceDisc(_Placement):
    """Place a disc on an empty tile of the mover's color."""
    action_type: ClassVar[ActionType] = ActionType.PLACE_DISC


@dataclass(frozen=True)
class PlaceRing(_Placement):
    """Place a ring on an empty tile of the mover's color."""
    action_type: ClassVar[ActionType] = ActionType.PLACE_RING


@dataclass(frozen=True)
class Move(Action):
    """
    Move a piece from one cell to another.

    Captures are implied by the geometry: a disc jumping over an enemy piece
    removes it, and a ring landing on an enemy piece removes it.
    """
    action_type: ClassVar[ActionType] = ActionType.MOVE
    origin: Position
    target: Position

    def __post_init__(self):
        if not isinstance(self.origin, Position):
            object.__setattr__(self, "origin", Position(*self.origin))
        if not isinstance(self.target, Position):
            object.__setattr__(self, "target", Position(*self.target))

    @property
    def delta(self) -> Tuple[int, int]:
        """Displacement (d_row, d_col) of the move."""
        return (self.target.row - self.origin.row, self.target.col - self.origin.col)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_type": self.action_type.name,
            "from": {"row": self.origin.row, "col": self.origin.col},
            "to": {"row": self.target.row, "col": self.target.col},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Move:
        return cls(
            Position(data["from"]["row"], data["from"]["col"]),
            Position(data["to"]["row"], data["to"]["col"]),
        )

    def __str__(self) -> str:
        return f"Move {self.origin.notation} -> {self.target.notation}"


_ACTION_CLASSES = {
    ActionType.PLACE_TILE: PlaceTile,
    ActionType.PLACE_DISC: PlaceDisc,
    ActionType.PLACE_RING: PlaceRing,
    ActionType.MOVE: Move,
}


def create_action_from_dict(data: Dict[str, Any]) -> Action:
    """
    Create an action from a dictionary representation.

    Args:
        data: Dictionary representation of an action

    Returns:
        Action object
    """
    try:
        action_type = ActionType[data["action_type"]]
    except KeyError:
        raise ValueError(f"Unknown action type: {data.get('action_type')!r}")

    return _ACTION_CLASSES[action_type].from_dict(data)


def parse_action(text: str) -> Action:
    """
    Parse an action typed in algebraic notation.

    Accepted forms are ``tile E6``, ``disc E6``, ``ring E6`` and
    ``move E6 F6`` (``E6-F6`` is also accepted for moves).

    Args:
        text: User input

    Returns:
        Action object

    Raises:
        ValueError: If the text cannot be parsed
    """
    words = text.replace("-", " ").split()
    if not words:
        raise ValueError("Empty action")

    verb = words[0].lower()
    if verb in ("tile", "disc", "ring"):
        if len(words) != 2:
            raise ValueError(f"Expected '{verb} <cell>'")
        cls = {"tile": PlaceTile, "disc": PlaceDisc, "ring": PlaceRing}[verb]
        return cls(Position.from_notation(words[1]))

    if verb == "move":
        words = words[1:]
    if len(words) == 2:
        return Move(Position.from_notation(words[0]), Position.from_notation(words[1]))

    raise ValueError(f"Cannot parse action: {text!r}")

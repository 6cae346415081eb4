"""
Per-color inventory for Hexaequo.

An Inventory counts the pieces a color still has in its supply and the enemy
pieces it has captured. Inventories are frozen; rules code builds a new one
with dataclasses.replace for every change.
"""
from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Dict

from hexaequo_ai.core.constants import (
    TILES_PER_COLOR, DISCS_PER_COLOR, RINGS_PER_COLOR
)


@dataclass(frozen=True)
class Inventory:
    """
    Supply and capture counts for one color.

    All counts are non-negative integers.
    """
    tiles: int = TILES_PER_COLOR
    """Tiles not yet placed"""

    discs: int = DISCS_PER_COLOR
    """Discs not yet placed"""

    rings: int = RINGS_PER_COLOR
    """Rings not yet placed"""

    captured_discs: int = 0
    """Enemy discs captured by this color"""

    captured_rings: int = 0
    """Enemy rings captured by this color"""

    def __post_init__(self):
        """Validate the counts."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{f.name} must be a non-negative integer, got {value!r}")

    def adjust(self, **deltas: int) -> "Inventory":
        """
        Return a copy with the given counts changed by the given amounts.

        Args:
            **deltas: Field name to signed change

        Returns:
            New Inventory

        Raises:
            ValueError: If a count would become negative
        """
        changes = {name: getattr(self, name) + delta for name, delta in deltas.items()}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "Inventory":
        valid = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid)

    def __str__(self) -> str:
        return (f"tiles={self.tiles} discs={self.discs} rings={self.rings} "
                f"captured discs={self.captured_discs} rings={self.captured_rings}")

"""
Shared coordinate and direction types for beamgrid.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

__all__ = ["Coord", "CoordLike", "Direction", "Direction4", "Direction8", "Relative"]


class Relative(Enum):
    """Relative direction for turning."""

    LEFT = "left"
    RIGHT = "right"
    BACK = "back"


_D = TypeVar("_D", bound="_Compass")


class _Compass(Enum):
    """
    Behavior shared by every direction set.

    Members carry their (row_delta, col_delta) as their value and must be
    declared in clockwise order starting from North.
    """

    @property
    def delta(self) -> tuple[int, int]:
        return self.value

    def turn(self: _D, relative: Relative, steps: int = 1) -> _D:
        """
        Rotate within the clockwise ordering of this direction set.

        BACK is always a half turn; steps is ignored for it.
        """
        members = list(type(self))
        arity = len(members)
        if relative is Relative.RIGHT:
            offset = steps
        elif relative is Relative.LEFT:
            offset = arity - (steps % arity)
        else:
            offset = arity // 2
        return members[(members.index(self) + offset) % arity]

    def opposite(self: _D) -> _D:
        return self.turn(Relative.BACK)


class Direction4(_Compass):
    """Cardinal directions."""

    N = (-1, 0)  # Up (decreasing row)
    E = (0, 1)  # Right (increasing col)
    S = (1, 0)  # Down (increasing row)
    W = (0, -1)  # Left (decreasing col)


class Direction8(_Compass):
    """Cardinal and diagonal directions."""

    N = (-1, 0)
    NE = (-1, 1)
    E = (0, 1)
    SE = (1, 1)
    S = (1, 0)
    SW = (1, -1)
    W = (0, -1)
    NW = (-1, -1)

    def to_direction4(self) -> Direction4 | None:
        """Cardinal members map onto Direction4; diagonals have no counterpart."""
        try:
            return Direction4[self.name]
        except KeyError:
            return None

    @classmethod
    def from_direction4(cls, direction: Direction4) -> Direction8:
        return cls[direction.name]


Direction = Direction4 | Direction8


@dataclass(frozen=True)
class Coord:
    """A position in a grid. Signed, so off-grid probes are representable."""

    row: int
    col: int

    @classmethod
    def of(cls, value: CoordLike) -> Coord:
        if isinstance(value, Coord):
            return value
        row, col = value
        return cls(row, col)

    def step(self, direction: Direction, steps: int = 1) -> Coord:
        """Move in a direction by the given number of steps."""
        dr, dc = direction.delta
        return Coord(self.row + dr * steps, self.col + dc * steps)

    def as_unsigned(self) -> tuple[int, int] | None:
        """The (row, col) pair if both components are non-negative."""
        if self.row >= 0 and self.col >= 0:
            return (self.row, self.col)
        return None

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


CoordLike = Coord | tuple[int, int]

"""
Dense, bounds-checked 2D grid.

Cells are stored in a single row-major list of width * height slots, with
None marking an empty slot. No accessor ever raises for an out-of-range
coordinate: reads return None and mutators report failure instead.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterable, Iterator, Sequence, TypeVar

from grid_types import Coord, CoordLike, Direction, Direction4, Direction8

__all__ = ["Grid"]

T = TypeVar("T")


class Grid(Generic[T]):
    """A rectangular grid with optional cell contents."""

    def __init__(self, width: int, height: int) -> None:
        self._width = width
        self._height = height
        self._cells: list[T | None] = [None] * (width * height)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[T]]) -> Grid[T]:
        """
        Build a grid from a list of rows (row-major order).

        Width is taken from the first row. Rows are assumed to be the same
        length; callers validate that before getting here.
        """
        height = len(rows)
        width = len(rows[0]) if rows else 0
        grid: Grid[T] = cls(width, height)
        grid._cells = [value for row in rows for value in row]
        return grid

    @classmethod
    def filled(cls, width: int, height: int, value: T) -> Grid[T]:
        grid: Grid[T] = cls(width, height)
        grid._cells = [value] * (width * height)
        return grid

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    # =========================================================================
    # Indexing
    # =========================================================================

    def in_bounds(self, coord: CoordLike) -> bool:
        coord = Coord.of(coord)
        return 0 <= coord.row < self._height and 0 <= coord.col < self._width

    def _index(self, coord: CoordLike) -> int | None:
        coord = Coord.of(coord)
        if not self.in_bounds(coord):
            return None
        return coord.row * self._width + coord.col

    # =========================================================================
    # Access and mutation
    # =========================================================================

    def get(self, coord: CoordLike) -> T | None:
        """Cell contents, or None if the cell is empty or out of range."""
        idx = self._index(coord)
        if idx is None:
            return None
        return self._cells[idx]

    def update(self, coord: CoordLike, fn: Callable[[T], T]) -> T | None:
        """Replace a present value with fn(value). Returns the new value."""
        idx = self._index(coord)
        if idx is None or self._cells[idx] is None:
            return None
        value = fn(self._cells[idx])  # type: ignore[arg-type]
        self._cells[idx] = value
        return value

    def set(self, coord: CoordLike, value: T) -> T | None:
        """Set the cell contents, returning the old value. No-op out of range."""
        idx = self._index(coord)
        if idx is None:
            return None
        previous = self._cells[idx]
        self._cells[idx] = value
        return previous

    def take(self, coord: CoordLike) -> T | None:
        """Remove and return the cell contents, leaving the cell empty."""
        idx = self._index(coord)
        if idx is None:
            return None
        value = self._cells[idx]
        self._cells[idx] = None
        return value

    def clear(self, coord: CoordLike) -> T | None:
        return self.take(coord)

    def swap(self, a: CoordLike, b: CoordLike) -> bool:
        """Swap the contents of two cells. False if either is out of range."""
        idx_a = self._index(a)
        idx_b = self._index(b)
        if idx_a is None or idx_b is None:
            return False
        self._cells[idx_a], self._cells[idx_b] = self._cells[idx_b], self._cells[idx_a]
        return True

    def move(self, src: CoordLike, dst: CoordLike) -> bool:
        """
        Move the contents of src into dst, overwriting dst and emptying src.

        Nothing changes (and False is returned) if either coordinate is out of
        range or src is empty.
        """
        idx_src = self._index(src)
        idx_dst = self._index(dst)
        if idx_src is None or idx_dst is None or self._cells[idx_src] is None:
            return False
        value = self._cells[idx_src]
        self._cells[idx_src] = None
        self._cells[idx_dst] = value
        return True

    # =========================================================================
    # Iteration
    # =========================================================================

    def coords(self) -> Iterator[Coord]:
        """All coordinates in row-major order."""
        for row in range(self._height):
            for col in range(self._width):
                yield Coord(row, col)

    def enumerate(self) -> Iterator[tuple[Coord, T | None]]:
        """Every coordinate paired with its (possibly empty) contents."""
        for idx, value in enumerate(self._cells):
            yield Coord(idx // self._width, idx % self._width), value

    def iter_filled(self) -> Iterator[tuple[Coord, T]]:
        for coord, value in self.enumerate():
            if value is not None:
                yield coord, value

    def find(self, predicate: Callable[[T], bool]) -> tuple[Coord, T] | None:
        """First filled cell (row-major) whose contents satisfy predicate."""
        return next(
            ((coord, value) for coord, value in self.iter_filled() if predicate(value)),
            None,
        )

    def __iter__(self) -> Iterator[T | None]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    # =========================================================================
    # Neighborhoods
    # =========================================================================

    def coord_in_dir(self, coord: CoordLike, direction: Direction, steps: int = 1) -> Coord | None:
        """The coordinate `steps` away in `direction`, if it's in bounds."""
        target = Coord.of(coord).step(direction, steps)
        return target if self.in_bounds(target) else None

    def _neighbors(self, coord: CoordLike, directions: Iterable[Direction]) -> Iterator[Coord]:
        origin = Coord.of(coord)
        for direction in directions:
            neighbor = self.coord_in_dir(origin, direction)
            if neighbor is not None:
                yield neighbor

    def neighbors4(self, coord: CoordLike) -> Iterator[Coord]:
        """In-bounds cardinal neighbors, clockwise from North."""
        return self._neighbors(coord, Direction4)

    def neighbors8(self, coord: CoordLike) -> Iterator[Coord]:
        """In-bounds cardinal and diagonal neighbors, clockwise from North."""
        return self._neighbors(coord, Direction8)

    # =========================================================================
    # Misc
    # =========================================================================

    def copy(self) -> Grid[T]:
        grid: Grid[T] = Grid(self._width, self._height)
        grid._cells = list(self._cells)
        return grid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self._width == other._width
            and self._height == other._height
            and self._cells == other._cells
        )

    def __repr__(self) -> str:
        lines = [f"Grid {self._width}x{self._height} {{"]
        for row in range(self._height):
            start = row * self._width
            cells = self._cells[start : start + self._width]
            lines.append("  " + " ".join("." if c is None else repr(c) for c in cells))
        lines.append("}")
        return "\n".join(lines)

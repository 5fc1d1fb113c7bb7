"""
Tachyon manifold: beam propagation through a field of splitters.

Two consumers share one Grid[Component]:
- the tick simulator (Manifold.run) pushes beams through the grid, splitting
  them at splitters and marking the cells they pass through;
- the path counter (Manifold.count_quantum_manifolds) counts the distinct
  terminal branches reachable from a coordinate, memoized by coordinate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from grid import Grid
from grid_types import Coord, CoordLike, Direction4, Relative

__all__ = [
    "Beam",
    "Component",
    "Manifold",
    "ManifoldParseError",
    "ManifoldRules",
    "parse_manifold",
]

logger = logging.getLogger(__name__)


class Component(Enum):
    """Grid cell contents, valued by their text symbol."""

    EMPTY = "."
    ENTRANCE = "S"
    SPLITTER = "^"
    BEAM = "|"  # Occupancy mark, written by the simulator only


# Characters accepted in input text. BEAM is output-only.
INPUT_SYMBOLS: dict[str, Component] = {
    c.value: c for c in (Component.EMPTY, Component.ENTRANCE, Component.SPLITTER)
}


class ManifoldParseError(ValueError):
    """Raised when manifold text (or a hand-built grid) is malformed."""


@dataclass(frozen=True)
class ManifoldRules:
    """Rules governing beam propagation."""

    propagation: Direction4 = Direction4.S

    @property
    def split_directions(self) -> tuple[Direction4, Direction4]:
        """Where a splitter places its two children, in spawn order."""
        return (
            self.propagation.turn(Relative.RIGHT),
            self.propagation.turn(Relative.LEFT),
        )


@dataclass
class Beam:
    """
    A beam advancing one cell per tick.

    A beam stops being active either by hitting a splitter (end is set) or by
    its next step leaving the grid (out_of_bounds is set). The two terminal
    states are kept distinct.
    """

    start: Coord
    current: Coord = field(init=False)
    end: Coord | None = None
    split: bool = False
    out_of_bounds: bool = False

    def __post_init__(self) -> None:
        self.current = self.start

    @property
    def is_active(self) -> bool:
        return self.end is None and not self.out_of_bounds

    @property
    def is_split_terminal(self) -> bool:
        return self.end is not None


# =============================================================================
# Parsing
# =============================================================================


def parse_manifold(text: str) -> Grid[Component]:
    """
    Parse manifold text into a grid.

    Format:
    - One row per line; blank lines and surrounding whitespace are ignored
    - '.' = empty, 'S' = entrance (exactly one), '^' = splitter

    Raises:
        ManifoldParseError: On unknown characters, ragged rows, empty input,
            or anything other than exactly one entrance.
    """
    lines = [line.strip() for line in text.strip().split("\n") if line.strip()]
    if not lines:
        raise ManifoldParseError("Empty manifold definition")

    rows: list[list[Component]] = []
    for row_idx, line in enumerate(lines):
        cells: list[Component] = []
        for col_idx, char in enumerate(line):
            component = INPUT_SYMBOLS.get(char)
            if component is None:
                raise ManifoldParseError(
                    f"Invalid character '{char}'\n"
                    f"  Row {row_idx}: \"{line}\"\n"
                    f"  Position: column {col_idx}\n"
                    f"  Valid characters: '.' (empty), 'S' (entrance), '^' (splitter)"
                )
            cells.append(component)
        rows.append(cells)

    width = len(rows[0])
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != width]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths\n"
            f"  Expected: {width} columns (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{lines[row_idx]}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ManifoldParseError(error_msg)

    grid = Grid.from_rows(rows)
    locate_entrance(grid)
    return grid


def locate_entrance(grid: Grid[Component]) -> Coord:
    """The single entrance coordinate. Raises if there isn't exactly one."""
    entrances = [coord for coord, c in grid.iter_filled() if c is Component.ENTRANCE]
    if not entrances:
        raise ManifoldParseError("Manifold has no entrance ('S')")
    if len(entrances) > 1:
        found = ", ".join(str(coord) for coord in entrances)
        raise ManifoldParseError(
            f"Manifold has {len(entrances)} entrances, expected exactly one\n"
            f"  Found at: {found}"
        )
    return entrances[0]


# =============================================================================
# Manifold
# =============================================================================


class Manifold:
    """A grid of components, the beams moving through it, and a path-count cache."""

    def __init__(self, grid: Grid[Component], rules: ManifoldRules | None = None) -> None:
        self.grid = grid
        self.rules = rules or ManifoldRules()
        self.beams: list[Beam] = []
        self.cache: dict[Coord, int] = {}
        self.ticks = 0
        self._start = locate_entrance(grid)

    @classmethod
    def from_input(cls, text: str, rules: ManifoldRules | None = None) -> Manifold:
        return cls(parse_manifold(text), rules)

    @property
    def start(self) -> Coord:
        return self._start

    # =========================================================================
    # Beam population
    # =========================================================================

    def insert_beam(self, beam: Beam) -> bool:
        """Track a beam unless one already sits on its current coordinate."""
        if any(b.current == beam.current for b in self.beams):
            logger.debug("Dropping duplicate beam at %s", beam.current)
            return False
        self.beams.append(beam)
        return True

    def inactive_beams(self) -> list[Beam]:
        """Beams terminated by a splitter. Beams that left the grid are not included."""
        return [b for b in self.beams if b.is_split_terminal]

    def active_beams(self) -> list[Beam]:
        return [b for b in self.beams if b.is_active]

    def out_of_bounds_beams(self) -> list[Beam]:
        return [b for b in self.beams if b.out_of_bounds and not b.is_split_terminal]

    # =========================================================================
    # Simulation
    # =========================================================================

    def seed(self) -> None:
        """Place the initial beam at the entrance, once."""
        if not self.beams:
            self.insert_beam(Beam(self.start))

    def tick(self) -> int:
        """
        Advance every beam that is active at the start of the tick by one cell.

        Transitions are computed against the grid as it stood when the tick
        began. Occupancy marks and spawned beams are applied afterwards, so a
        beam spawned this tick first moves on the next one.

        Returns the number of beams that moved or split.
        """
        advanced = 0
        marks: list[Coord] = []
        spawned: list[Beam] = []
        propagation = self.rules.propagation

        for beam in self.beams:
            if not beam.is_active:
                continue

            next_coord = beam.current.step(propagation)
            if not self.grid.in_bounds(next_coord):
                beam.out_of_bounds = True
                continue

            if self.grid.get(next_coord) is Component.SPLITTER:
                beam.current = next_coord
                beam.end = next_coord
                beam.split = True
                for direction in self.rules.split_directions:
                    side = self.grid.coord_in_dir(next_coord, direction)
                    if side is not None:
                        spawned.append(Beam(side))
                        marks.append(side)
            else:
                marks.append(next_coord)
                beam.current = next_coord

            advanced += 1

        for coord in marks:
            # Unlike a plain occupancy write, a side spawn onto a splitter keeps
            # the splitter, so a path count taken after run() matches one
            # taken before it
            if self.grid.get(coord) is not Component.SPLITTER:
                self.grid.set(coord, Component.BEAM)

        for beam in spawned:
            self.insert_beam(beam)

        self.ticks += 1
        logger.debug(
            "Tick %d: %d advanced, %d spawned, %d tracked",
            self.ticks, advanced, len(spawned), len(self.beams),
        )
        return advanced

    def run(self) -> int:
        """Tick until no beam moves. Returns the number of ticks executed."""
        self.seed()
        ticks = 0
        while True:
            ticks += 1
            if self.tick() == 0:
                break
        logger.info(
            "Simulation settled after %d ticks: %d beams, %d split, %d left the grid",
            ticks, len(self.beams), len(self.inactive_beams()), len(self.out_of_bounds_beams()),
        )
        return ticks

    # =========================================================================
    # Path counting
    # =========================================================================

    def count_quantum_manifolds(self, pos: CoordLike) -> int:
        """
        Number of distinct terminal branches reachable from pos.

        A branch ends when its next step leaves the grid. At a splitter the
        count is the sum over both sides. Results are cached by coordinate,
        since the same cell is reached by many different split histories.

        Uses an explicit work stack rather than recursion, so grid height is
        not limited by the interpreter's recursion limit. Every branch moves
        one step along the propagation axis, so the work always terminates.
        """
        pos = Coord.of(pos)
        stack = [pos]
        while stack:
            current = stack[-1]
            if current in self.cache:
                stack.pop()
                continue

            branches = self._branches(current)
            if branches is None:
                # Base case: one terminal branch, never cached
                stack.pop()
                continue

            pending = [
                b for b in branches if b not in self.cache and self._branches(b) is not None
            ]
            if pending:
                stack.extend(pending)
                continue

            self.cache[current] = sum(self._known_count(b) for b in branches)
            stack.pop()

        return self._known_count(pos)

    def _branches(self, pos: Coord) -> list[Coord] | None:
        """Coordinates a path from pos continues from, or None if it ends here."""
        next_coord = pos.step(self.rules.propagation)
        if not self.grid.in_bounds(next_coord):
            return None
        if self.grid.get(next_coord) is Component.SPLITTER:
            # An off-grid side is kept: it ends immediately as one branch
            return [next_coord.step(direction) for direction in self.rules.split_directions]
        return [next_coord]

    def _known_count(self, pos: Coord) -> int:
        # Anything resolved but uncached is a base case
        return self.cache.get(pos, 1)

"""
Tests for beam propagation and quantum path counting.
"""

import pytest

from ascii_render import render_manifold_plain
from grid import Grid
from grid_types import Coord, Direction4
from manifold import (
    Beam,
    Component,
    Manifold,
    ManifoldParseError,
    ManifoldRules,
    parse_manifold,
)

FIXTURE = """
.......S.......
...............
.......^.......
...............
......^.^......
...............
.....^.^.^.....
...............
....^.^...^....
...............
...^.^...^.^...
...............
..^...^.....^..
...............
.^.^.^.^.^...^.
...............
"""

# Two splitters whose inner children land on the same cell in the same tick
CONVERGING = """
..S..
.....
..^..
.....
.^.^.
.....
"""


# =============================================================================
# Parsing
# =============================================================================


class TestParseManifold:
    """Tests for manifold text parsing."""

    def test_parse_fixture(self) -> None:
        grid = parse_manifold(FIXTURE)
        assert grid.width == 15
        assert grid.height == 16
        assert grid.get((0, 7)) is Component.ENTRANCE
        assert grid.get((2, 7)) is Component.SPLITTER
        assert grid.get((1, 7)) is Component.EMPTY

    def test_surrounding_whitespace_ignored(self) -> None:
        grid = parse_manifold("\n\n   S.\n   ..  \n\n")
        assert grid.width == 2
        assert grid.height == 2

    def test_invalid_character(self) -> None:
        with pytest.raises(ManifoldParseError, match="Invalid character '#'"):
            parse_manifold("S.\n.#")

    def test_beam_symbol_not_accepted_as_input(self) -> None:
        with pytest.raises(ManifoldParseError, match="Invalid character"):
            parse_manifold("S|")

    def test_ragged_rows(self) -> None:
        with pytest.raises(ManifoldParseError, match="Inconsistent row lengths"):
            parse_manifold("S..\n..\n...")

    def test_empty_input(self) -> None:
        with pytest.raises(ManifoldParseError, match="Empty"):
            parse_manifold("  \n\n")

    def test_missing_entrance(self) -> None:
        with pytest.raises(ManifoldParseError, match="no entrance"):
            parse_manifold("...\n.^.")

    def test_multiple_entrances(self) -> None:
        with pytest.raises(ManifoldParseError, match="2 entrances"):
            parse_manifold("S.S\n...")

    def test_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_manifold("?")

    def test_manifold_rejects_grid_without_entrance(self) -> None:
        grid = Grid.filled(2, 2, Component.EMPTY)
        with pytest.raises(ManifoldParseError):
            Manifold(grid)


# =============================================================================
# Beams
# =============================================================================


class TestBeam:
    """Tests for beam lifecycle flags."""

    def test_new_beam_is_active(self) -> None:
        beam = Beam(Coord(1, 2))
        assert beam.current == Coord(1, 2)
        assert beam.is_active
        assert not beam.is_split_terminal

    def test_split_beam(self) -> None:
        beam = Beam(Coord(0, 0))
        beam.end = Coord(1, 0)
        assert not beam.is_active
        assert beam.is_split_terminal

    def test_out_of_bounds_beam(self) -> None:
        beam = Beam(Coord(0, 0))
        beam.out_of_bounds = True
        assert not beam.is_active
        assert not beam.is_split_terminal


# =============================================================================
# Simulation
# =============================================================================


class TestSimulation:
    """Tests for the tick simulator."""

    def test_fixture_split_count(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.run()
        assert len(manifold.inactive_beams()) == 21

    def test_fixture_every_beam_terminal(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.run()
        assert manifold.active_beams() == []
        assert all(b.split or b.out_of_bounds for b in manifold.beams)

    def test_out_of_bounds_beams_not_counted_as_inactive(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.run()
        left = manifold.out_of_bounds_beams()
        assert left
        assert not any(b in manifold.inactive_beams() for b in left)
        assert len(left) + len(manifold.inactive_beams()) == len(manifold.beams)

    def test_no_splitters(self) -> None:
        manifold = Manifold.from_input(".S.\n...\n...")
        ticks = manifold.run()
        assert manifold.inactive_beams() == []
        assert len(manifold.beams) == 1
        assert manifold.beams[0].out_of_bounds
        assert manifold.beams[0].current == Coord(2, 1)
        # Two moves, then a tick where nothing moves
        assert ticks == 3

    def test_entrance_on_last_row(self) -> None:
        manifold = Manifold.from_input("...\n.S.")
        assert manifold.run() == 1
        assert manifold.beams[0].out_of_bounds

    def test_converging_beams_deduplicated(self) -> None:
        """Two children spawned onto one cell in the same tick yield one beam."""
        manifold = Manifold.from_input(CONVERGING)
        manifold.run()

        at_center = [b for b in manifold.beams if b.start == Coord(4, 2)]
        assert len(at_center) == 1
        assert len(manifold.beams) == 6
        assert len(manifold.inactive_beams()) == 3

    def test_insert_beam_rejects_occupied_coordinate(self) -> None:
        manifold = Manifold.from_input("S.\n..")
        assert manifold.insert_beam(Beam(Coord(1, 1)))
        assert not manifold.insert_beam(Beam(Coord(1, 1)))
        assert len(manifold.beams) == 1

    def test_spawned_beams_wait_for_next_tick(self) -> None:
        manifold = Manifold.from_input(".S.\n.^.\n...")
        manifold.seed()

        assert manifold.tick() == 1
        seed = manifold.beams[0]
        assert seed.is_split_terminal
        assert seed.end == Coord(1, 1)
        children = manifold.beams[1:]
        assert [b.current for b in children] == [Coord(1, 0), Coord(1, 2)]

        assert manifold.tick() == 2
        assert [b.current for b in children] == [Coord(2, 0), Coord(2, 2)]

    def test_splitter_on_edge_spawns_one_child(self) -> None:
        manifold = Manifold.from_input("S.\n..\n^.\n..")
        manifold.run()
        assert len(manifold.inactive_beams()) == 1
        assert [b.start for b in manifold.beams[1:]] == [Coord(2, 1)]

    def test_active_beams_stay_in_bounds(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.seed()
        while manifold.tick():
            for beam in manifold.active_beams():
                assert manifold.grid.in_bounds(beam.current)

    def test_seed_only_once(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.run()
        beams = len(manifold.beams)
        manifold.run()
        assert len(manifold.beams) == beams

    def test_occupancy_marks(self) -> None:
        manifold = Manifold.from_input(".S.\n...\n.^.\n...")
        manifold.run()
        assert render_manifold_plain(manifold) == ".S.\n.|.\n|^|\n|.|"

    def test_marks_do_not_overwrite_splitters(self) -> None:
        manifold = Manifold.from_input("..S.\n....\n..^^\n....")
        manifold.run()
        assert manifold.grid.get((2, 3)) is Component.SPLITTER
        assert manifold.grid.get((2, 2)) is Component.SPLITTER

    def test_propagation_north(self) -> None:
        manifold = Manifold.from_input(
            "...\n.^.\n...\n.S.", rules=ManifoldRules(propagation=Direction4.N)
        )
        manifold.run()
        assert len(manifold.inactive_beams()) == 1
        # Turning right from North is East, so the east child spawns first
        assert [b.start for b in manifold.beams[1:]] == [Coord(1, 2), Coord(1, 0)]


# =============================================================================
# Path counting
# =============================================================================


class TestQuantumPathCounter:
    """Tests for memoized path counting."""

    def test_fixture_path_count(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        assert manifold.count_quantum_manifolds(manifold.start) == 40

    def test_fixture_path_count_after_simulation(self) -> None:
        """Running the simulator first does not change the count."""
        manifold = Manifold.from_input(FIXTURE)
        manifold.run()
        assert manifold.count_quantum_manifolds(manifold.start) == 40

    def test_no_splitters(self) -> None:
        manifold = Manifold.from_input("S..\n...\n...")
        assert manifold.count_quantum_manifolds(manifold.start) == 1

    def test_converging_paths(self) -> None:
        manifold = Manifold.from_input(CONVERGING)
        assert manifold.count_quantum_manifolds(manifold.start) == 4

    def test_off_grid_side_counts_as_branch(self) -> None:
        """A splitter on the edge still yields two branches."""
        manifold = Manifold.from_input("S.\n..\n^.\n..")
        assert manifold.count_quantum_manifolds(manifold.start) == 2

    def test_accepts_tuple(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        assert manifold.count_quantum_manifolds((0, 7)) == 40

    def test_idempotent(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        first = manifold.count_quantum_manifolds(manifold.start)
        entries = len(manifold.cache)
        assert entries > 0

        second = manifold.count_quantum_manifolds(manifold.start)
        assert second == first
        assert len(manifold.cache) == entries

    def test_cache_shared_across_starts(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        manifold.count_quantum_manifolds(manifold.start)
        entries = len(manifold.cache)
        # Everything below the entrance is already cached
        manifold.count_quantum_manifolds((1, 7))
        assert len(manifold.cache) == entries

    def test_last_row_is_single_branch(self) -> None:
        manifold = Manifold.from_input(FIXTURE)
        assert manifold.count_quantum_manifolds((15, 0)) == 1
        assert Coord(15, 0) not in manifold.cache

    def test_doubling_cascade(self) -> None:
        """Counts double per fully-split layer; the cache keeps this cheap."""
        rows = ["." * 41 for _ in range(40)]
        rows[0] = "." * 20 + "S" + "." * 20
        # Splitter rows at every other row, splitters on alternating columns
        for layer in range(1, 20):
            r = layer * 2
            rows[r] = "".join("^" if (c + layer) % 2 == 0 and 0 < c < 40 else "." for c in range(41))
        manifold = Manifold.from_input("\n".join(rows))
        count = manifold.count_quantum_manifolds(manifold.start)
        assert count > 2**10
        assert len(manifold.cache) <= 41 * 40

    def test_tall_grid(self) -> None:
        """Grid height is not bounded by the interpreter's recursion limit."""
        rows = [".S."] + ["..."] * 2500 + [".^.", "..."]
        manifold = Manifold.from_input("\n".join(rows))
        assert manifold.count_quantum_manifolds(manifold.start) == 2
        entries = len(manifold.cache)
        assert manifold.count_quantum_manifolds(manifold.start) == 2
        assert len(manifold.cache) == entries

    def test_adjacent_splitters_survive_simulation(self) -> None:
        """A beam spawned onto a splitter leaves it in place for later counts."""
        text = "...S...\n...^...\n..^....\n...^^..\n......."
        manifold = Manifold.from_input(text)
        assert manifold.count_quantum_manifolds(manifold.start) == 5

        simulated = Manifold.from_input(text)
        simulated.run()
        assert simulated.grid.get((3, 4)) is Component.SPLITTER
        assert simulated.count_quantum_manifolds(simulated.start) == 5

"""
Run the beam simulation on an input file and print both results.

Usage:
    python demo.py [-v] <input-file>
    python demo.py [-v] example
"""

from __future__ import annotations

import logging
import sys

from ascii_render import render_manifold
from manifold import Manifold, ManifoldParseError

logger = logging.getLogger(__name__)

EXAMPLE = """
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


def solve(text: str) -> tuple[int, int]:
    """Split-terminated beam count and quantum path count for manifold text."""
    manifold = Manifold.from_input(text)
    manifold.run()
    print(render_manifold(manifold))
    return len(manifold.inactive_beams()), manifold.count_quantum_manifolds(manifold.start)


def main(argv: list[str]) -> int:
    args = [a for a in argv if a != "-v"]
    logging.basicConfig(
        level=logging.DEBUG if "-v" in argv else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if len(args) != 1:
        print(__doc__.strip())
        return 2

    try:
        if args[0] == "example":
            text = EXAMPLE
        else:
            logger.info("Reading %s", args[0])
            with open(args[0]) as f:
                text = f.read()
        part1, part2 = solve(text)
    except (OSError, ManifoldParseError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Part 1: {part1}")
    print(f"Part 2: {part2}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

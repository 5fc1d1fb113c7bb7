"""
ASCII rendering for beamgrid structures.

Provides:
1. A generic one-character-per-cell renderer for any Grid
2. A manifold renderer that colors components and beam marks
"""

from __future__ import annotations

from typing import Callable, TypeVar

import simple_chalk as chalk  # type: ignore[import-untyped]

from grid import Grid
from grid_types import Coord
from manifold import Component, Manifold

__all__ = ["render_grid", "render_manifold", "render_manifold_plain"]

T = TypeVar("T")

Colorizer = Callable[[str], str]


def _plain(s: str) -> str:
    return s


def render_grid(
    grid: Grid[T],
    symbol_fn: Callable[[T | None], str],
    color_fn: Callable[[T | None], Colorizer] | None = None,
    highlight: Coord | None = None,
    title: str | None = None,
) -> str:
    """
    Render a grid one character per cell.

    Args:
        grid: The grid to render
        symbol_fn: Maps cell contents (None for empty) to a single character
        color_fn: Optional function returning a colorizer for cell contents
        highlight: Optional coordinate to draw with a white background
        title: Optional title; when given the grid is drawn inside a box

    Returns:
        Rendered string, rows separated by newlines
    """
    lines: list[str] = []
    for row in range(grid.height):
        parts: list[str] = []
        for col in range(grid.width):
            value = grid.get((row, col))
            char = symbol_fn(value)
            if highlight is not None and highlight == Coord(row, col):
                parts.append(chalk.bgWhite.black(char))
            elif color_fn is not None:
                parts.append(color_fn(value)(char))
            else:
                parts.append(char)
        lines.append("".join(parts))

    if title is None:
        return "\n".join(lines)

    # Top border with title centered in it
    inner = max(grid.width, len(title) + 2)
    label = f" {title} "
    left = (inner - len(label)) // 2
    boxed = ["┌" + "─" * left + label + "─" * (inner - left - len(label)) + "┐"]
    pad = " " * (inner - grid.width)
    boxed.extend("│" + line + pad + "│" for line in lines)
    boxed.append("└" + "─" * inner + "┘")
    return "\n".join(boxed)


def _component_symbol(component: Component | None) -> str:
    return " " if component is None else component.value


COMPONENT_COLORS: dict[Component, Colorizer] = {
    Component.EMPTY: chalk.white,
    Component.ENTRANCE: chalk.greenBright,
    Component.SPLITTER: chalk.red,
    Component.BEAM: chalk.yellowBright,
}


def _component_color(component: Component | None) -> Colorizer:
    if component is None:
        return _plain
    return COMPONENT_COLORS.get(component, _plain)


def render_manifold(
    manifold: Manifold,
    highlight: Coord | None = None,
    title: str | None = "manifold",
) -> str:
    """Render a manifold's grid with colored components."""
    return render_grid(
        manifold.grid, _component_symbol, _component_color, highlight=highlight, title=title
    )


def render_manifold_plain(manifold: Manifold) -> str:
    """Render a manifold's grid without color codes or border."""
    return render_grid(manifold.grid, _component_symbol)

"""
Interactive tick-by-tick viewer for the beam simulation.
Display the manifold and advance it with keyboard commands.
"""

import logging
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_manifold
from demo import EXAMPLE
from manifold import Manifold, ManifoldParseError


class InteractiveDemo:
    """Interactive viewer for beam propagation."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.manifold = Manifold.from_input(text)
        self.manifold.seed()
        self.settled = False
        self.console = Console()
        self.status_message = "Ready"

    def generate_display(self) -> Panel:
        """Generate the current display with grid and status."""
        manifold = self.manifold
        grid_text = render_manifold(manifold, title=None)

        status = Text()
        status.append("Tick: ", style="bold")
        status.append(f"{manifold.ticks}\n")
        status.append("Beams: ", style="bold")
        status.append(
            f"{len(manifold.beams)} tracked, {len(manifold.active_beams())} active, "
            f"{len(manifold.inactive_beams())} split, "
            f"{len(manifold.out_of_bounds_beams())} out of bounds\n\n"
        )

        # Convert ANSI-colored grid text to Rich Text properly
        status.append(Text.from_ansi(grid_text))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  N / Space - Advance one tick\n")
        status.append("  P - Run until settled\n")
        status.append("  C - Count quantum paths from the entrance\n")
        status.append("  R - Reset\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="Beam Manifold", border_style="green")

    def step(self) -> None:
        if self.settled:
            self.status_message = "Simulation already settled"
            return
        advanced = self.manifold.tick()
        if advanced == 0:
            self.settled = True
            self.status_message = f"Settled: {len(self.manifold.inactive_beams())} beams split"
        else:
            self.status_message = f"{advanced} beams advanced"

    def run_to_end(self) -> None:
        while not self.settled:
            self.step()

    def count_paths(self) -> None:
        count = self.manifold.count_quantum_manifolds(self.manifold.start)
        self.status_message = f"Quantum paths from {self.manifold.start}: {count}"

    def reset(self) -> None:
        self.manifold = Manifold.from_input(self.text)
        self.manifold.seed()
        self.settled = False
        self.status_message = "Reset to original manifold"

    def run(self) -> None:
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())
                    key = readchar.readkey()

                    if key.lower() == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() == "n" or key == " ":
                        self.step()
                    elif key.lower() == "p":
                        self.run_to_end()
                    elif key.lower() == "c":
                        self.count_paths()
                    elif key.lower() == "r":
                        self.reset()
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if len(sys.argv) > 1:
        with open(sys.argv[1]) as f:
            source = f.read()
    else:
        source = EXAMPLE

    try:
        demo = InteractiveDemo(source)
    except ManifoldParseError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    demo.run()

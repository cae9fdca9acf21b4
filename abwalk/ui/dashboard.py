from typing import Optional
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text
from abwalk.ui.state import UIState

class Dashboard:
    """Live terminal view: outcome feed, current file, batch progress bar."""

    def __init__(self, state: UIState, console: Optional[Console] = None, clear_screen: bool = False, refresh_per_second: int = 4):
        self.state = state
        self.console = console or Console()
        self.clear_screen = clear_screen
        self.refresh_per_second = refresh_per_second
        self._live: Optional[Live] = None

    # --- Formatters ---

    def format_elapsed(self, seconds: float) -> str:
        """Format elapsed time as HH:MM:SS."""
        seconds = int(max(0, seconds))
        return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"

    def format_eta(self, seconds: Optional[float]) -> str:
        """Format ETA: 59s, 01m 01s, 1h 01m."""
        if seconds is None:
            return "--:--"
        if seconds < 60:
            return f"{int(seconds)}s"
        if seconds < 3600:
            return f"{int(seconds // 60):02d}m {int(seconds % 60):02d}s"
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60):02d}m"

    # --- Render Logic ---

    def _render_activity(self) -> RenderableType:
        with self.state._lock:
            items = list(self.state.activity)
        # Feed is newest-first; print oldest on top so the newest sits above the bar
        lines = [Text(message, style=style) for style, message in reversed(items)]
        return Group(*lines)

    def _render_current(self) -> RenderableType:
        with self.state._lock:
            current = self.state.current_file
            quality = self.state.current_quality
            attempt = self.state.current_attempt
            discovery_finished = self.state.discovery_finished
            finished = self.state.finished
            aborted = self.state.aborted
            reason = self.state.abort_reason

        if aborted:
            return Text(f"ABORTED: {reason}", style="bold red")
        if finished:
            return Text("FINISHED", style="bold green")
        if not discovery_finished:
            return Text("Scanning folder...", style="dim")
        if current is None:
            return Text("")
        text = Text("Encoding ", style="bold")
        text.append(current.name, style="bold white")
        if quality is not None:
            text.append(f" @ VMAF {quality}", style="cyan")
        if attempt > 1:
            text.append(f" (attempt {attempt})", style="dim")
        return text

    def _render_progress(self) -> RenderableType:
        with self.state._lock:
            position = self.state.position
            total = self.state.total
            percent = self.state.percent
            elapsed = self.state.elapsed_seconds()
            eta = self.state.eta_seconds()

        grid = Table.grid(padding=(0, 1), expand=True)
        grid.add_column(no_wrap=True)
        grid.add_column(ratio=1)
        grid.add_column(no_wrap=True, justify="right")
        grid.add_row(
            Text(f"[file_count][{self.format_elapsed(elapsed)}]"),
            ProgressBar(total=max(total, 1), completed=position, complete_style="green", finished_style="green", style="white"),
            Text(f"{percent:3.0f}% {position:>7}/{total:<7} files       eta: {self.format_eta(eta):<7}"),
        )
        return grid

    def create_display(self) -> RenderableType:
        return Group(self._render_activity(), self._render_current(), self._render_progress())

    def start(self):
        if self.clear_screen:
            self.console.clear()
        self._live = Live(
            console=self.console,
            refresh_per_second=self.refresh_per_second,
            get_renderable=self.create_display,
        )
        self._live.start()
        return self

    def stop(self):
        if self._live:
            self._live.refresh()
            self._live.stop()
            self._live = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

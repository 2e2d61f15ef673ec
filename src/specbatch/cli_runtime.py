"""Runtime data structures and console helpers shared between Click wiring and the scheduler."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn, TimeElapsedColumn

from .counters import Outcome
from .media import WorkItem
from .request import RunRequest
from .scheduler import ItemOutcome
from .summary import RunSummary, format_summary_lines
from .timespec import to_display

__all__ = ["CLIAppError", "ConsoleReporter"]

_OUTCOME_STYLES = {
    Outcome.GENERATED: ("green", "generated"),
    Outcome.SKIPPED: ("yellow", "skipped"),
    Outcome.FAILED: ("red", "failed"),
}


def _color_text(text: str, style: Optional[str]) -> str:
    """Wrap *text* with a Rich style tag when *style* is provided."""
    if style:
        return f"[{style}]{text}[/]"
    return text


def _format_kv(
    label: str,
    value: object,
    *,
    label_style: Optional[str] = "dim",
    value_style: Optional[str] = "bright_white",
    sep: str = "=",
) -> str:
    """Format a label/value pair as a single string with optional Rich styling."""
    label_text = escape(str(label))
    value_text = escape(str(value))
    return f"{_color_text(label_text, label_style)}{sep}{_color_text(value_text, value_style)}"


class CLIAppError(RuntimeError):
    """Raised when the CLI cannot complete its work."""

    def __init__(self, message: str, *, code: int = 1, rich_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.rich_message = rich_message or message


class ConsoleReporter:
    """
    Console presentation for a batch run.

    In quiet mode only errors and the final summary are printed. Per-item lines
    are emitted from the thread that drains the pool, never from workers.
    """

    def __init__(self, *, quiet: bool = False, console: Console | None = None) -> None:
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    def request_header(self, request: RunRequest) -> None:
        if self.quiet:
            return
        start_text, duration_text = request.window.display()
        parts = [
            _format_kv("input", request.root),
            _format_kv("workers", request.workers if not request.single_file else 1),
            _format_kv("window", f"{start_text}+{duration_text}"),
            _format_kv("axes", f"{request.axes.x}x{request.axes.y} z{request.axes.z}"),
        ]
        if request.recursive:
            parts.append(_format_kv("recursive", "yes"))
        if request.force:
            parts.append(_format_kv("force", "yes"))
        self.console.print("  ".join(parts))

    def discovered(self, items: Sequence[WorkItem]) -> None:
        if self.quiet:
            return
        if not items:
            self.console.print(_color_text("No supported audio files found.", "yellow"))
            return
        self.console.print(f"{_color_text('Files found:', 'green')} {len(items)}")
        if self._progress is not None:
            self._task = self._progress.add_task("spectrograms", total=len(items))

    def item_done(self, result: ItemOutcome) -> None:
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)
        if self.quiet and result.outcome is not Outcome.FAILED:
            return
        style, label = _OUTCOME_STYLES[result.outcome]
        line = f"{_color_text(label.ljust(9), style)} {escape(result.item.name)}"
        if result.adjusted and result.window is not None:
            line += _color_text(
                f" (adjusted to {to_display(result.window.start)}+{to_display(result.window.duration)})",
                "cyan",
            )
        if result.error:
            line += f" {_color_text(escape(result.error), 'dim')}"
        self.console.print(line)

    @contextmanager
    def progress(self) -> Iterator[None]:
        """Show a progress bar for the duration of the block unless quiet."""

        if self.quiet:
            yield
            return
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress = progress
        try:
            with progress:
                yield
        finally:
            self._progress = None
            self._task = None

    def summary(self, summary: RunSummary) -> None:
        title = "Run cancelled" if summary.cancelled else "Summary"
        style = "yellow" if summary.cancelled or summary.failed else "green"
        self.console.print(_color_text(title, f"bold {style}"))
        for line in format_summary_lines(summary):
            label, _, value = line.partition("=")
            self.console.print(f"  {_format_kv(label, value)}")

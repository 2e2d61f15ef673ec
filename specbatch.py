"""CLI entry point and orchestration logic for batch spectrogram runs."""

from __future__ import annotations

import os
import threading
from typing import Callable, Optional, Sequence, cast

import click
from rich.console import Console
from rich.markup import escape

from src.config_loader import ConfigError, default_config, load_config
from src.datatypes import AppConfig
from src.specbatch import __version__
from src.specbatch.cli_runtime import CLIAppError, ConsoleReporter
from src.specbatch.counters import OutcomeCounters
from src.specbatch.env_flags import QUIET_ENV_VAR, config_path_from_env, env_flag_enabled
from src.specbatch.errors import DiscoveryError, RunCancelled
from src.specbatch.planner import DurationProbe
from src.specbatch.request import RunRequest, build_request
from src.specbatch.scheduler import Renderer, run_request
from src.specbatch.sox import require_tools
from src.specbatch.summary import RunSummary

__all__ = (
    "run_cli",
    "main",
    "RunRequest",
    "RunSummary",
    "CLIAppError",
    "ConfigError",
    "DiscoveryError",
)

_ARGS_METAVAR = "[INPUT] [THREADS] [START_TIME] [DURATION]"


def _load_app_config(config_path: str | None) -> AppConfig:
    path = config_path or config_path_from_env(os.environ)
    if path is None:
        return default_config()
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise CLIAppError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise CLIAppError(f"Unable to read config {path}: {exc}") from exc
    except ConfigError as exc:
        raise CLIAppError(f"Invalid config {path}: {exc}") from exc


def run_cli(
    args: Sequence[str] = (),
    *,
    recursive: bool = False,
    force: bool = False,
    quiet: bool = False,
    x_axis: Optional[str] = None,
    y_axis: Optional[str] = None,
    z_axis: Optional[str] = None,
    config_path: str | None = None,
    console: Console | None = None,
    probe: DurationProbe | None = None,
    render: Renderer | None = None,
    cancel_event: threading.Event | None = None,
) -> RunSummary:
    """
    Resolve the request, run the batch and print the summary.

    Injected *probe*/*render* collaborators bypass the SoX availability check.

    Raises:
        CLIAppError: For configuration, discovery and interruption failures.
    """

    cfg = _load_app_config(config_path)
    quiet = quiet or env_flag_enabled(os.environ.get(QUIET_ENV_VAR))
    try:
        request = build_request(
            args,
            config=cfg,
            recursive=recursive,
            force=force,
            quiet=quiet,
            x_axis=x_axis,
            y_axis=y_axis,
            z_axis=z_axis,
        )
        if probe is None or render is None:
            require_tools(request)
    except ConfigError as exc:
        raise CLIAppError(str(exc)) from exc

    reporter = ConsoleReporter(quiet=request.quiet, console=console)
    reporter.request_header(request)
    try:
        with reporter.progress():
            summary = run_request(
                request,
                OutcomeCounters(),
                probe=probe,
                render=render,
                on_discovered=reporter.discovered,
                on_outcome=reporter.item_done,
                cancel_event=cancel_event,
            )
    except DiscoveryError as exc:
        raise CLIAppError(str(exc)) from exc
    except RunCancelled as exc:
        if isinstance(exc.summary, RunSummary):
            reporter.summary(exc.summary)
        raise CLIAppError("Interrupted by user", code=130) from exc
    except KeyboardInterrupt as exc:
        raise CLIAppError("Interrupted by user", code=130) from exc
    except OSError as exc:
        raise CLIAppError(f"Unable to prepare output or log directory: {exc}") from exc

    reporter.summary(summary)
    return summary


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("args", nargs=-1, metavar=_ARGS_METAVAR)
@click.option("-r", "--recursive", is_flag=True, help="Also process audio files in all subdirectories.")
@click.option("-f", "--force", is_flag=True, help="Re-render even when both spectrograms already exist.")
@click.option("-q", "--quiet", is_flag=True, help="Only print failures and the final summary.")
@click.option(
    "--x-axis",
    "x_axis",
    default=None,
    metavar="INT",
    help="Zoomed render time resolution (100-10000). Default 3000.",
)
@click.option(
    "--y-axis",
    "y_axis",
    default=None,
    metavar="INT",
    help="Zoomed render frequency bins (100-32768). Default 513.",
)
@click.option(
    "--z-axis",
    "z_axis",
    default=None,
    metavar="INT",
    help="Zoomed render dynamic range in dB (1-240). Default 120.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to a TOML config file. Defaults to SPECBATCH_CONFIG when set.",
)
@click.version_option(__version__, "-V", "--version", prog_name="specbatch")
def main(
    args: tuple[str, ...],
    recursive: bool,
    force: bool,
    quiet: bool,
    x_axis: Optional[str],
    y_axis: Optional[str],
    z_axis: Optional[str],
    config_path: Optional[str],
) -> None:
    """
    Render zoomed and full spectrograms for every audio file in INPUT.

    INPUT is a file or directory (default: current directory). THREADS is the
    number of parallel workers (default: CPU count). START_TIME and DURATION
    select the zoomed window as MM:SS or HH:MM:SS (default: 1:00 and 0:02).
    Images are written to a specs/ folder next to each input file.
    """

    try:
        run_cli(
            args,
            recursive=recursive,
            force=force,
            quiet=quiet,
            x_axis=x_axis,
            y_axis=y_axis,
            z_axis=z_axis,
            config_path=config_path,
        )
    except CLIAppError as exc:
        Console(stderr=True, highlight=False).print(f"[bold red]Error:[/] {escape(exc.rich_message)}")
        raise click.exceptions.Exit(exc.code) from exc


if __name__ == "__main__":
    _entry_point = cast(Callable[[], None], main)
    _entry_point()

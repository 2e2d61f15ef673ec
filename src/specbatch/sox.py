"""SoX adapters: media duration queries and spectrogram rendering."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from src.config_loader import ConfigError

from .errors import DurationUnavailable, RenderError
from .request import AxisResolution, RunRequest
from .runlog import LOGGER_NAME
from .subproc import run_checked, stderr_tail
from .timespec import TimeWindow, to_display

logger = logging.getLogger(f"{LOGGER_NAME}.sox")

__all__ = [
    "build_spectrogram_command",
    "query_duration",
    "render_spectrogram",
    "require_tools",
]


def require_tools(request: RunRequest) -> None:
    """
    Ensure the configured ``sox`` and ``soxi`` executables can be found.

    Raises:
        ConfigError: Naming every missing executable.
    """

    missing = [
        exe for exe in (request.sox_path, request.soxi_path) if shutil.which(exe) is None
    ]
    if missing:
        raise ConfigError(
            f"Required executable(s) not found in PATH: {', '.join(missing)}. Install SoX first."
        )


def query_duration(
    path: Path,
    *,
    soxi_path: str = "soxi",
    timeout: Optional[float] = 30.0,
) -> float:
    """
    Return the duration of *path* in seconds as reported by ``soxi -D``.

    Raises:
        DurationUnavailable: If the tool fails, times out, or prints nothing usable.
    """

    try:
        completed = run_checked([soxi_path, "-D", str(path)], timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise DurationUnavailable(f"soxi timed out for {path.name}") from exc
    except OSError as exc:
        raise DurationUnavailable(f"Unable to run {soxi_path}: {exc}") from exc

    if completed.returncode != 0:
        message = stderr_tail(completed.stderr) or f"exit code {completed.returncode}"
        raise DurationUnavailable(f"soxi failed for {path.name}: {message}")

    output = completed.stdout.strip()
    if not output:
        raise DurationUnavailable(f"soxi returned no duration for {path.name}")
    try:
        seconds = float(output.splitlines()[0])
    except ValueError as exc:
        raise DurationUnavailable(f"Unparseable duration for {path.name}: {output!r}") from exc
    if seconds < 0:
        raise DurationUnavailable(f"Negative duration for {path.name}: {seconds}")
    return seconds


def build_spectrogram_command(
    path: Path,
    output_path: Path,
    axes: AxisResolution,
    window: Optional[TimeWindow] = None,
    *,
    sox_path: str = "sox",
    window_function: str = "Kaiser",
    title: Optional[str] = None,
) -> List[str]:
    """Return the ``sox`` argv that renders *path* into *output_path*."""

    cmd = [
        sox_path,
        str(path),
        "-n",
        "remix",
        "1",
        "spectrogram",
        "-x",
        str(axes.x),
        "-y",
        str(axes.y),
        "-z",
        str(axes.z),
        "-w",
        window_function,
    ]
    if window is not None:
        start_text, duration_text = window.display()
        cmd.extend(["-S", start_text, "-d", duration_text])
    cmd.extend(["-t", title or path.name])
    if window is not None:
        cmd.extend(["-c", f"{to_display(window.start)} +{to_display(window.duration)}"])
    cmd.extend(["-o", str(output_path)])
    return cmd


def render_spectrogram(
    path: Path,
    output_path: Path,
    axes: AxisResolution,
    window: Optional[TimeWindow] = None,
    *,
    sox_path: str = "sox",
    window_function: str = "Kaiser",
    timeout: Optional[float] = None,
    title: Optional[str] = None,
) -> None:
    """
    Render a spectrogram PNG of *path* to *output_path*.

    When *window* is ``None`` the whole file is rendered.

    Raises:
        RenderError: If SoX cannot be launched, times out, exits non-zero, or
            leaves no image behind.
    """

    cmd = build_spectrogram_command(
        path,
        output_path,
        axes,
        window,
        sox_path=sox_path,
        window_function=window_function,
        title=title,
    )
    logger.debug("Running %s", " ".join(cmd))
    try:
        completed = run_checked(cmd, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        duration = timeout if timeout is not None else 0.0
        raise RenderError(f"SoX timed out after {duration:.1f}s for {path.name}") from exc
    except OSError as exc:
        raise RenderError(f"Unable to run {sox_path}: {exc}") from exc

    if completed.returncode != 0:
        message = stderr_tail(completed.stderr) or "unknown error"
        raise RenderError(f"SoX failed for {path.name}: {message}")
    if not output_path.is_file():
        raise RenderError(f"SoX reported success but {output_path.name} was not written")

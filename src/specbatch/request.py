"""Resolution of command-line input into a validated :class:`RunRequest`."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Final, Iterable, Optional, Sequence

from src.config_loader import ConfigError, check_axis, default_config
from src.datatypes import AppConfig

from .media import DEFAULT_OUTPUT_DIR
from .timespec import InvalidTimeFormat, TimeWindow, is_clock, parse_clock

__all__ = [
    "ArgumentKind",
    "AxisResolution",
    "ClassifiedArguments",
    "RunRequest",
    "build_request",
    "classify_arguments",
    "default_workers",
]


@dataclass(frozen=True)
class AxisResolution:
    """x (time steps), y (frequency bins) and z (dynamic range in dB)."""

    x: int
    y: int
    z: int


@dataclass
class RunRequest:
    root: Path
    window: TimeWindow
    axes: AxisResolution
    workers: int = 1
    recursive: bool = False
    force: bool = False
    quiet: bool = False
    full_axes: AxisResolution = field(default_factory=lambda: AxisResolution(3000, 513, 120))
    output_dir_name: str = DEFAULT_OUTPUT_DIR
    extensions: tuple[str, ...] = (".flac", ".wav")
    sox_path: str = "sox"
    soxi_path: str = "soxi"
    window_function: str = "Kaiser"
    timeout_seconds: float = 300.0
    log_file_name: str = "specbatch.log"
    log_level: str = "INFO"

    @property
    def single_file(self) -> bool:
        return self.root.is_file()

    @property
    def base_dir(self) -> Path:
        """Directory that owns the run log: the root itself or a file's parent."""

        return self.root.parent if self.root.is_file() else self.root

    @property
    def log_path(self) -> Optional[Path]:
        if not self.log_file_name:
            return None
        return self.base_dir / self.output_dir_name / self.log_file_name


class ArgumentKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    THREADS = "threads"
    START = "start"
    DURATION = "duration"


@dataclass
class ClassifiedArguments:
    input_path: Optional[Path] = None
    threads: Optional[str] = None
    start: Optional[str] = None
    duration: Optional[str] = None

    def slot(self, kind: ArgumentKind) -> Optional[object]:
        if kind in (ArgumentKind.FILE, ArgumentKind.DIRECTORY):
            return self.input_path
        if kind is ArgumentKind.THREADS:
            return self.threads
        if kind is ArgumentKind.START:
            return self.start
        return self.duration

    def assign(self, kind: ArgumentKind, token: str) -> None:
        if kind in (ArgumentKind.FILE, ArgumentKind.DIRECTORY):
            self.input_path = Path(token)
        elif kind is ArgumentKind.THREADS:
            self.threads = token
        elif kind is ArgumentKind.START:
            self.start = token
        else:
            self.duration = token


_Rule = tuple[ArgumentKind, Callable[[str], bool]]

# Evaluated top to bottom; the first rule whose slot is still empty and whose
# predicate matches claims the token.
_DECISION_TABLE: Final[tuple[_Rule, ...]] = (
    (ArgumentKind.FILE, lambda token: Path(token).is_file()),
    (ArgumentKind.DIRECTORY, lambda token: Path(token).is_dir()),
    (ArgumentKind.THREADS, lambda token: token.strip().isdigit()),
    (ArgumentKind.START, is_clock),
    (ArgumentKind.DURATION, is_clock),
)


def classify_arguments(tokens: Iterable[str]) -> ClassifiedArguments:
    """
    Sort loosely typed positional tokens into input, thread count and time pair.

    Precedence is file, directory, thread count, start time, duration.

    Raises:
        ConfigError: If a token matches no free slot.
    """

    classified = ClassifiedArguments()
    for token in tokens:
        for kind, predicate in _DECISION_TABLE:
            if classified.slot(kind) is None and predicate(token):
                classified.assign(kind, token)
                break
        else:
            raise ConfigError(_describe_unclaimed(token, classified))
    return classified


def _describe_unclaimed(token: str, classified: ClassifiedArguments) -> str:
    if token.strip().isdigit():
        return f"Unexpected extra thread count '{token}'"
    if is_clock(token):
        return f"Unexpected extra time value '{token}'"
    if classified.input_path is not None and (Path(token).exists()):
        return f"Only one input may be given (already using {classified.input_path})"
    return f"Input not found or argument not understood: '{token}'"


def default_workers() -> int:
    return max(1, os.cpu_count() or 1)


def _resolve_workers(raw: Optional[str], configured: int) -> int:
    if raw is None:
        return configured if configured > 0 else default_workers()
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Thread count must be a positive integer (got '{raw}')") from exc
    if value < 1:
        raise ConfigError(f"Thread count must be a positive integer (got '{raw}')")
    return value


def _resolve_time(raw: str, label: str) -> int:
    try:
        return parse_clock(raw)
    except InvalidTimeFormat as exc:
        raise ConfigError(f"{label}: {exc}") from exc


def build_request(
    args: Sequence[str],
    *,
    config: AppConfig | None = None,
    recursive: bool = False,
    force: bool = False,
    quiet: bool = False,
    x_axis: Optional[str] = None,
    y_axis: Optional[str] = None,
    z_axis: Optional[str] = None,
) -> RunRequest:
    """
    Build a fully validated request from positional tokens, flags and config.

    Flags only ever enable behaviour on top of the configured defaults; axis
    values given on the command line replace the configured ones.

    Raises:
        ConfigError: On any invalid input, before any work starts.
    """

    cfg = config or default_config()
    classified = classify_arguments(args)

    root = classified.input_path or Path(".")
    if not root.exists():
        raise ConfigError(f"Input not found: {root}")
    if not (root.is_file() or root.is_dir()):
        raise ConfigError(f"Input must be a file or directory: {root}")

    workers = _resolve_workers(classified.threads, cfg.runner.workers)
    start = _resolve_time(classified.start or cfg.window.start, "start time")
    duration = _resolve_time(classified.duration or cfg.window.duration, "duration")

    axes = AxisResolution(
        x=check_axis("x", x_axis if x_axis is not None else cfg.axes.x, "--x-axis"),
        y=check_axis("y", y_axis if y_axis is not None else cfg.axes.y, "--y-axis"),
        z=check_axis("z", z_axis if z_axis is not None else cfg.axes.z, "--z-axis"),
    )
    full = cfg.render.full

    return RunRequest(
        root=root.resolve(),
        window=TimeWindow(start=start, duration=duration),
        axes=axes,
        workers=workers,
        recursive=recursive or cfg.runner.recursive,
        force=force or cfg.runner.force,
        quiet=quiet or cfg.runner.quiet,
        full_axes=AxisResolution(x=full.x, y=full.y, z=full.z),
        output_dir_name=cfg.render.output_dir_name,
        extensions=tuple(cfg.render.extensions),
        sox_path=cfg.render.sox_path,
        soxi_path=cfg.render.soxi_path,
        window_function=cfg.render.window_function,
        timeout_seconds=float(cfg.render.timeout_seconds),
        log_file_name=cfg.logging.file_name,
        log_level=cfg.logging.level,
    )

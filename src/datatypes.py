"""Configuration dataclasses for the spectrogram batch tool."""
from dataclasses import dataclass, field
from typing import List

DEFAULT_EXTENSIONS = (
    ".flac",
    ".wav",
    ".mp3",
    ".ogg",
    ".aiff",
    ".aif",
    ".opus",
    ".wv",
)


@dataclass
class RunnerConfig:
    """Scheduler defaults applied when the command line does not override them."""

    workers: int = 0
    recursive: bool = False
    force: bool = False
    quiet: bool = False


@dataclass
class WindowConfig:
    """Default zoomed-window start and length in clock notation."""

    start: str = "1:00"
    duration: str = "0:02"


@dataclass
class AxesConfig:
    """Axis resolutions for the zoomed render."""

    x: int = 3000
    y: int = 513
    z: int = 120


@dataclass
class FullRenderConfig:
    """Fixed wide axis resolutions for the whole-file render."""

    x: int = 3000
    y: int = 513
    z: int = 120


@dataclass
class RenderConfig:
    """External renderer invocation and output layout."""

    sox_path: str = "sox"
    soxi_path: str = "soxi"
    window_function: str = "Kaiser"
    timeout_seconds: float = 300.0
    output_dir_name: str = "specs"
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    full: FullRenderConfig = field(default_factory=FullRenderConfig)


@dataclass
class LoggingConfig:
    """Run-scoped log file settings."""

    file_name: str = "specbatch.log"
    level: str = "INFO"


@dataclass
class AppConfig:
    """Aggregated configuration loaded from the user-provided TOML file."""

    runner: RunnerConfig = field(default_factory=RunnerConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    axes: AxesConfig = field(default_factory=AxesConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

"""Media discovery helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

from natsort import os_sorted

from src.datatypes import DEFAULT_EXTENSIONS

from .errors import DiscoveryError
from .runlog import LOGGER_NAME

logger = logging.getLogger(f"{LOGGER_NAME}.media")

DEFAULT_OUTPUT_DIR = "specs"

__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "WorkItem",
    "discover_items",
    "output_paths",
]


def output_paths(path: Path, output_dir_name: str = DEFAULT_OUTPUT_DIR) -> tuple[Path, Path]:
    """Return the ``(zoomed, full)`` PNG paths for the audio file at *path*."""

    out_dir = path.parent / output_dir_name
    return out_dir / f"{path.stem}.zoomed.png", out_dir / f"{path.stem}.full.png"


@dataclass(frozen=True)
class WorkItem:
    """
    One discovered input file and the artefacts derived from it.

    Attributes:
        path (Path): Source audio file.
        output_dir_name (str): Name of the per-directory output folder.
        output_zoomed_path (Path): Destination of the windowed render.
        output_full_path (Path): Destination of the whole-file render.
    """

    path: Path
    output_dir_name: str = DEFAULT_OUTPUT_DIR
    output_zoomed_path: Path = field(init=False)
    output_full_path: Path = field(init=False)

    def __post_init__(self) -> None:
        zoomed, full = output_paths(self.path, self.output_dir_name)
        object.__setattr__(self, "output_zoomed_path", zoomed)
        object.__setattr__(self, "output_full_path", full)

    @property
    def output_dir(self) -> Path:
        return self.output_zoomed_path.parent

    @property
    def name(self) -> str:
        return self.path.name

    def outputs_exist(self) -> bool:
        return self.output_zoomed_path.is_file() and self.output_full_path.is_file()


def _is_candidate(path: Path, extensions: Sequence[str]) -> bool:
    return path.suffix.lower() in extensions and path.is_file()


def _walk_files(root: Path, output_dir_name: str) -> Iterable[Path]:
    def _on_error(exc: OSError) -> None:
        if Path(getattr(exc, "filename", "") or "") == root:
            raise DiscoveryError(f"Unable to read input directory {root}: {exc}") from exc
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = [name for name in dirnames if name != output_dir_name]
        for name in filenames:
            yield Path(dirpath) / name


def discover_items(
    root: Path,
    *,
    recursive: bool = False,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    output_dir_name: str = DEFAULT_OUTPUT_DIR,
) -> List[WorkItem]:
    """
    Enumerate supported audio files under *root*, sorted naturally.

    Only *root* itself is scanned unless *recursive* is set, in which case every
    subdirectory is visited except the per-directory output folders. Each file
    appears at most once even when symlinks point at the same target; the
    naturally first alias is the one kept.

    Raises:
        DiscoveryError: If *root* is not a readable directory.
    """

    if not root.is_dir():
        raise DiscoveryError(f"Input directory not found: {root}")
    exts = tuple(ext.lower() for ext in extensions)

    if recursive:
        candidates: Iterable[Path] = _walk_files(root, output_dir_name)
    else:
        try:
            candidates = list(root.iterdir())
        except OSError as exc:
            raise DiscoveryError(f"Unable to read input directory {root}: {exc}") from exc

    seen: set[Path] = set()
    files: List[Path] = []
    for candidate in os_sorted(path for path in candidates if _is_candidate(path, exts)):
        resolved = candidate.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        files.append(candidate)

    return [WorkItem(path=path, output_dir_name=output_dir_name) for path in files]

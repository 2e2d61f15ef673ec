"""Per-item planning: skip decisions and time-window clamping."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

from .errors import DurationUnavailable
from .media import WorkItem
from .request import RunRequest
from .timespec import TimeWindow

DurationProbe = Callable[[Path], float]

__all__ = [
    "DurationProbe",
    "PlanResult",
    "RenderPlan",
    "SkipPlan",
    "clamp_window",
    "plan_item",
]


@dataclass(frozen=True)
class SkipPlan:
    """Both outputs already exist and overwriting was not requested."""

    item: WorkItem


@dataclass(frozen=True)
class RenderPlan:
    """
    Render instructions for one item.

    Attributes:
        item (WorkItem): The item to render.
        window (TimeWindow): Window clamped to the media duration.
        adjusted (bool): ``True`` when the requested window had to change.
        media_seconds (int): Truncated media duration used for clamping.
    """

    item: WorkItem
    window: TimeWindow
    adjusted: bool
    media_seconds: int


PlanResult = Union[SkipPlan, RenderPlan]


def clamp_window(window: TimeWindow, media_seconds: int) -> tuple[TimeWindow, bool]:
    """
    Fit *window* inside a file that is *media_seconds* long.

    The start is corrected first, then the duration is re-checked against the
    corrected start. Either correction marks the result as adjusted; the flag is
    a single boolean regardless of how many corrections fired.
    """

    media = max(0, int(media_seconds))
    start = window.start
    duration = window.duration
    adjusted = False

    if start >= media:
        start = max(0, media - duration)
        adjusted = True
    if start + duration > media:
        duration = media - start
        adjusted = True

    if not adjusted:
        return window, False
    return TimeWindow(start=start, duration=duration), True


def plan_item(item: WorkItem, request: RunRequest, probe_duration: DurationProbe) -> PlanResult:
    """
    Decide whether *item* is skipped and, if not, which window to render.

    The skip check runs before any duration query so cached items never touch
    the external probe.

    Raises:
        DurationUnavailable: If *probe_duration* fails; the planner never retries.
    """

    if not request.force and item.outputs_exist():
        return SkipPlan(item=item)

    try:
        raw_seconds = probe_duration(item.path)
    except DurationUnavailable:
        raise
    except (OSError, ValueError, subprocess.SubprocessError) as exc:
        raise DurationUnavailable(f"Duration query failed for {item.name}: {exc}") from exc

    try:
        media_seconds = int(float(raw_seconds))
    except (TypeError, ValueError, OverflowError) as exc:
        raise DurationUnavailable(f"Invalid duration for {item.name}: {raw_seconds!r}") from exc
    if media_seconds < 0:
        raise DurationUnavailable(f"Negative duration for {item.name}: {raw_seconds!r}")

    window, adjusted = clamp_window(request.window, media_seconds)
    return RenderPlan(item=item, window=window, adjusted=adjusted, media_seconds=media_seconds)

"""Clock-style time values used for spectrogram windows."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

__all__ = [
    "ClockValue",
    "InvalidTimeFormat",
    "TimeWindow",
    "is_clock",
    "parse_clock",
    "parse_clock_value",
    "to_display",
    "to_seconds",
]

_CLOCK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:(?P<hours>\d{1,2}):)?(?P<minutes>\d{1,2}):(?P<seconds>\d{1,2})$"
)
_SHAPE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(?::\d+){1,2}$")


class InvalidTimeFormat(ValueError):
    """Raised when a value is not a valid ``MM:SS`` or ``HH:MM:SS`` clock."""


@dataclass(frozen=True)
class ClockValue:
    """Parsed clock components."""

    hours: int
    minutes: int
    seconds: int


@dataclass(frozen=True)
class TimeWindow:
    """
    Start/duration pair expressed in whole seconds.

    Attributes:
        start (int): Offset into the media where the window begins.
        duration (int): Length of the window.
    """

    start: int
    duration: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.duration < 0:
            raise ValueError("TimeWindow values must be non-negative")

    @property
    def end(self) -> int:
        return self.start + self.duration

    def display(self) -> tuple[str, str]:
        """Return the ``(start, duration)`` pair in clock notation."""

        return to_display(self.start), to_display(self.duration)


def is_clock(raw: str) -> bool:
    """Return ``True`` when *raw* has the colon-separated shape of a clock value.

    Range checks are left to :func:`parse_clock`, so ``"1:75"`` still counts as a
    clock-shaped token and is rejected there with a precise message.
    """

    return bool(_SHAPE_PATTERN.match(raw.strip()))


def parse_clock_value(raw: str) -> ClockValue:
    """
    Parse ``MM:SS`` or ``HH:MM:SS`` into its components.

    Raises:
        InvalidTimeFormat: If the shape is wrong or any component is out of range.
    """

    text = raw.strip()
    match = _CLOCK_PATTERN.match(text)
    if match is None:
        raise InvalidTimeFormat(f"Invalid time '{raw}': expected MM:SS or HH:MM:SS")
    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes"))
    seconds = int(match.group("seconds"))
    if hours > 23:
        raise InvalidTimeFormat(f"Invalid time '{raw}': hours must be <= 23")
    if minutes > 59:
        raise InvalidTimeFormat(f"Invalid time '{raw}': minutes must be <= 59")
    if seconds > 59:
        raise InvalidTimeFormat(f"Invalid time '{raw}': seconds must be <= 59")
    return ClockValue(hours=hours, minutes=minutes, seconds=seconds)


def to_seconds(value: ClockValue) -> int:
    return value.hours * 3600 + value.minutes * 60 + value.seconds


def parse_clock(raw: str) -> int:
    """Parse a clock string straight to whole seconds."""

    return to_seconds(parse_clock_value(raw))


def to_display(seconds: int) -> str:
    """Render *seconds* as ``HH:MM:SS`` from one hour upwards, else ``MM:SS``."""

    total = int(seconds)
    if total < 0:
        raise ValueError("Cannot display a negative duration")
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if total >= 3600:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"

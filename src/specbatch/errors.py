from __future__ import annotations

__all__ = [
    "DiscoveryError",
    "DurationUnavailable",
    "ItemError",
    "MissingInputError",
    "RenderError",
    "RunCancelled",
]


class DiscoveryError(RuntimeError):
    """Raised when the input root cannot be enumerated."""


class ItemError(RuntimeError):
    """Base class for failures scoped to a single work item."""


class MissingInputError(ItemError):
    """Raised when a discovered file vanished before it could be processed."""


class DurationUnavailable(ItemError):
    """Raised when the media duration of an item cannot be determined."""


class RenderError(ItemError):
    """Raised when the external renderer fails to produce an image."""


class RunCancelled(RuntimeError):
    """Raised after an interrupted run has released its worker pool."""

    def __init__(self, message: str, summary: object | None = None) -> None:
        super().__init__(message)
        self.summary = summary

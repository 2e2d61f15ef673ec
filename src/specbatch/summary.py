"""End-of-run summary snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .counters import CounterSnapshot

__all__ = ["RunSummary", "format_summary_lines"]


@dataclass(frozen=True)
class RunSummary:
    """
    Immutable report produced once the last item has drained.

    ``adjusted`` is a side tally and is not part of ``processed``.
    """

    total: int
    generated: int
    skipped: int
    failed: int
    adjusted: int
    elapsed_seconds: float
    cancelled: bool = False

    @classmethod
    def from_counters(
        cls,
        total: int,
        snapshot: CounterSnapshot,
        elapsed_seconds: float,
        *,
        cancelled: bool = False,
    ) -> "RunSummary":
        return cls(
            total=int(total),
            generated=snapshot.generated,
            skipped=snapshot.skipped,
            failed=snapshot.failed,
            adjusted=snapshot.adjusted,
            elapsed_seconds=max(0.0, float(elapsed_seconds)),
            cancelled=cancelled,
        )

    @property
    def processed(self) -> int:
        return self.generated + self.skipped + self.failed

    @property
    def is_consistent(self) -> bool:
        return self.processed == self.total


def _format_elapsed(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    return f"{minutes}m{secs:02d}s"


def format_summary_lines(summary: RunSummary) -> List[str]:
    """Return plain ``label=value`` lines describing *summary*."""

    lines = [
        f"files={summary.total}",
        f"generated={summary.generated}",
        f"skipped={summary.skipped}",
        f"failed={summary.failed}",
        f"adjusted={summary.adjusted}",
        f"elapsed={_format_elapsed(summary.elapsed_seconds)}",
    ]
    if summary.cancelled:
        lines.append("status=cancelled")
    return lines

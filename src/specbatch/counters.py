"""Thread-safe outcome tallies shared by scheduler workers."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict

__all__ = ["CounterSnapshot", "Outcome", "OutcomeCounters"]


class Outcome(str, Enum):
    """Terminal outcomes recorded per work item."""

    GENERATED = "generated"
    SKIPPED = "skipped"
    FAILED = "failed"
    ADJUSTED = "adjusted"


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time copy of the counters."""

    generated: int = 0
    skipped: int = 0
    failed: int = 0
    adjusted: int = 0

    @property
    def processed(self) -> int:
        return self.generated + self.skipped + self.failed


class OutcomeCounters:
    """
    Tally of per-item outcomes guarded by a single lock.

    Workers must only mutate the tallies through :meth:`increment`; there is no
    public setter.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[Outcome, int] = {outcome: 0 for outcome in Outcome}

    def increment(self, kind: Outcome | str) -> None:
        """Add one to the counter named by *kind*.

        Raises:
            ValueError: If *kind* does not name a known outcome.
        """

        outcome = Outcome(kind)
        with self._lock:
            self._values[outcome] += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            values = dict(self._values)
        return CounterSnapshot(
            generated=values[Outcome.GENERATED],
            skipped=values[Outcome.SKIPPED],
            failed=values[Outcome.FAILED],
            adjusted=values[Outcome.ADJUSTED],
        )

    def __repr__(self) -> str:
        snap = self.snapshot()
        return (
            f"OutcomeCounters(generated={snap.generated}, skipped={snap.skipped}, "
            f"failed={snap.failed}, adjusted={snap.adjusted})"
        )

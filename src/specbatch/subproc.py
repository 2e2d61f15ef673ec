"""
Helper utilities for invoking the external audio tools with consistent safeguards.

`run_checked` wraps `subprocess.run` so callers get predictable defaults:
argv lists only, `shell=False`, stdin detached and text mode. Non-zero exits are
returned to the caller rather than raised. `stderr_tail` trims noisy tool output
down to something loggable.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence

Argv = Sequence[str]

__all__ = ["run_checked", "stderr_tail"]


def run_checked(
    argv: Argv,
    *,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """
    Run *argv* via `subprocess.run`, capturing stdout/stderr as text.

    A *timeout* of ``None`` or ``<= 0`` waits indefinitely.

    Raises:
        ValueError: if *argv* is empty.
        TypeError: if *argv* is a plain string.
        subprocess.TimeoutExpired: when the child outlives *timeout*.
        OSError: when the executable cannot be launched.
    """

    if isinstance(argv, (str, bytes)):
        raise TypeError("run_checked expects a sequence of arguments, not a string.")
    if not argv:
        raise ValueError("run_checked requires at least one argv entry.")

    command: list[str] = [str(part) for part in argv]
    effective_timeout = timeout if timeout is not None and timeout > 0 else None
    return subprocess.run(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        timeout=effective_timeout,
        text=True,
        errors="replace",
        shell=False,
        check=False,
    )


def stderr_tail(text: str | None, *, max_lines: int = 3) -> str:
    """Return the last *max_lines* non-empty lines of *text* joined with ``" | "``."""

    if not text:
        return ""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return " | ".join(lines[-max_lines:])

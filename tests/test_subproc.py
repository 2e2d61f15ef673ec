from __future__ import annotations

import subprocess
import sys
from typing import Any, Dict

import pytest

from src.specbatch import subproc
from src.specbatch.subproc import run_checked, stderr_tail


def test_run_checked_rejects_string_argv() -> None:
    with pytest.raises(TypeError):
        run_checked("sox --version")  # type: ignore[arg-type]


def test_run_checked_rejects_empty_argv() -> None:
    with pytest.raises(ValueError):
        run_checked([])


def test_run_checked_passes_safe_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: Dict[str, Any] = {}

    def _fake_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        captured["cmd"] = cmd
        captured.update(kwargs)
        return subprocess.CompletedProcess(cmd, 0, stdout="ok", stderr="")

    monkeypatch.setattr(subproc.subprocess, "run", _fake_run)

    completed = run_checked(["soxi", "-D", 3], timeout=0)  # type: ignore[list-item]

    assert completed.stdout == "ok"
    assert captured["cmd"] == ["soxi", "-D", "3"]
    assert captured["shell"] is False
    assert captured["stdin"] is subprocess.DEVNULL
    assert captured["timeout"] is None
    assert captured["text"] is True


def test_run_checked_returns_non_zero_exit_without_raising(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        assert kwargs["check"] is False
        return subprocess.CompletedProcess(cmd, 2, stdout="", stderr="bad")

    monkeypatch.setattr(subproc.subprocess, "run", _fake_run)

    completed = run_checked(["sox"])

    assert completed.returncode == 2
    assert completed.stderr == "bad"


def test_run_checked_runs_real_process() -> None:
    completed = run_checked([sys.executable, "-c", "import sys; sys.stderr.write('warn\\n'); print('42')"])
    assert completed.returncode == 0
    assert completed.stdout.strip() == "42"
    assert completed.stderr.strip() == "warn"


def test_stderr_tail_keeps_last_non_empty_lines() -> None:
    text = "one\n\ntwo\nthree\n  \nfour\n"
    assert stderr_tail(text) == "two | three | four"
    assert stderr_tail(text, max_lines=1) == "four"
    assert stderr_tail(None) == ""
    assert stderr_tail("") == ""

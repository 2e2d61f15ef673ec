from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner

from src.specbatch.request import AxisResolution, RunRequest
from src.specbatch.timespec import TimeWindow
from tests.helpers.collaborators import FakeProbe, FakeRenderer


@pytest.fixture
def runner() -> CliRunner:
    """Provide a Click runner configured for CLI smoke tests."""

    return CliRunner()


@pytest.fixture
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def make_request(tmp_path: Path) -> Callable[..., RunRequest]:
    """Build RunRequests rooted at ``tmp_path`` with test-friendly defaults."""

    def _factory(**overrides: object) -> RunRequest:
        values: dict[str, object] = {
            "root": tmp_path,
            "window": TimeWindow(start=60, duration=2),
            "axes": AxisResolution(x=3000, y=513, z=120),
            "workers": 2,
            "extensions": (".flac", ".wav"),
            "log_file_name": "",
        }
        values.update(overrides)
        return RunRequest(**values)  # type: ignore[arg-type]

    return _factory

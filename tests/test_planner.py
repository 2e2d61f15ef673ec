from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from src.specbatch.errors import DurationUnavailable
from src.specbatch.media import WorkItem
from src.specbatch.planner import RenderPlan, SkipPlan, clamp_window, plan_item
from src.specbatch.request import RunRequest
from src.specbatch.timespec import TimeWindow
from tests.helpers.collaborators import FakeProbe, make_audio_files, make_existing_outputs


def _item(tmp_path: Path, name: str = "track.flac") -> WorkItem:
    (path,) = make_audio_files(tmp_path, name)
    return WorkItem(path=path)


def test_clamp_window_leaves_fitting_window_untouched() -> None:
    window = TimeWindow(start=60, duration=2)
    clamped, adjusted = clamp_window(window, 300)
    assert clamped is window
    assert adjusted is False


def test_clamp_window_window_ending_exactly_at_media_end_is_not_adjusted() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=58, duration=2), 60)
    assert clamped == TimeWindow(start=58, duration=2)
    assert adjusted is False


def test_clamp_window_moves_start_back_from_media_end() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=60, duration=2), 5)
    assert clamped == TimeWindow(start=3, duration=2)
    assert adjusted is True


def test_clamp_window_start_equal_to_media_length_is_corrected() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=30, duration=2), 30)
    assert clamped == TimeWindow(start=28, duration=2)
    assert adjusted is True


def test_clamp_window_trims_duration_past_end() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=50, duration=20), 60)
    assert clamped == TimeWindow(start=50, duration=10)
    assert adjusted is True


def test_clamp_window_short_media_shrinks_start_and_duration() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=60, duration=10), 4)
    assert clamped == TimeWindow(start=0, duration=4)
    assert adjusted is True


def test_clamp_window_zero_length_media() -> None:
    clamped, adjusted = clamp_window(TimeWindow(start=60, duration=2), 0)
    assert clamped == TimeWindow(start=0, duration=0)
    assert adjusted is True


@pytest.mark.parametrize("media", [0, 1, 2, 5, 59, 60, 61, 3600])
@pytest.mark.parametrize(("start", "duration"), [(0, 2), (60, 2), (3, 100), (120, 30)])
def test_clamped_window_always_fits_media(media: int, start: int, duration: int) -> None:
    clamped, _ = clamp_window(TimeWindow(start=start, duration=duration), media)
    assert clamped.start >= 0
    assert clamped.duration >= 0
    assert clamped.end <= media


def test_plan_item_skips_without_probing_when_outputs_exist(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    make_existing_outputs(item.path)
    probe = FakeProbe()

    plan = plan_item(item, make_request(), probe)

    assert isinstance(plan, SkipPlan)
    assert probe.calls == []


def test_plan_item_with_only_one_output_renders(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    item.output_dir.mkdir()
    item.output_zoomed_path.write_bytes(b"old")

    plan = plan_item(item, make_request(), FakeProbe())

    assert isinstance(plan, RenderPlan)


def test_plan_item_force_ignores_existing_outputs(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    make_existing_outputs(item.path)
    probe = FakeProbe()

    plan = plan_item(item, make_request(force=True), probe)

    assert isinstance(plan, RenderPlan)
    assert probe.calls == ["track.flac"]


def test_plan_item_five_second_file_gets_single_adjustment(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    plan = plan_item(item, make_request(), FakeProbe({"track.flac": 5.0}))

    assert isinstance(plan, RenderPlan)
    assert plan.window == TimeWindow(start=3, duration=2)
    assert plan.adjusted is True
    assert plan.media_seconds == 5


def test_plan_item_truncates_fractional_duration(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    plan = plan_item(item, make_request(), FakeProbe({"track.flac": 61.9}))

    assert isinstance(plan, RenderPlan)
    assert plan.media_seconds == 61
    assert plan.window == TimeWindow(start=60, duration=1)
    assert plan.adjusted is True


def test_plan_item_propagates_probe_failure(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)
    probe = FakeProbe(failing={"track.flac"})

    with pytest.raises(DurationUnavailable):
        plan_item(item, make_request(), probe)
    assert probe.calls == ["track.flac"]


def test_plan_item_wraps_os_errors_from_probe(
    tmp_path: Path, make_request: Callable[..., RunRequest]
) -> None:
    item = _item(tmp_path)

    def _broken(path: Path) -> float:
        raise OSError("soxi vanished")

    with pytest.raises(DurationUnavailable, match="soxi vanished"):
        plan_item(item, make_request(), _broken)


@pytest.mark.parametrize("raw", [float("nan"), float("inf"), -3.0, "abc"])
def test_plan_item_rejects_unusable_durations(
    tmp_path: Path, make_request: Callable[..., RunRequest], raw: object
) -> None:
    item = _item(tmp_path)

    with pytest.raises(DurationUnavailable):
        plan_item(item, make_request(), lambda _path: raw)  # type: ignore[arg-type,return-value]

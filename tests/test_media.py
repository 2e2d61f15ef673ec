from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from src.specbatch.errors import DiscoveryError
from src.specbatch.media import WorkItem, discover_items, output_paths
from src.specbatch.runlog import run_log
from tests.helpers.collaborators import make_audio_files, make_existing_outputs


def test_output_paths_live_in_sibling_specs_folder(tmp_path: Path) -> None:
    zoomed, full = output_paths(tmp_path / "album" / "01 Intro.flac")
    assert zoomed == tmp_path / "album" / "specs" / "01 Intro.zoomed.png"
    assert full == tmp_path / "album" / "specs" / "01 Intro.full.png"


def test_work_item_outputs_exist_requires_both(tmp_path: Path) -> None:
    (audio,) = make_audio_files(tmp_path, "a.flac")
    item = WorkItem(audio)
    assert not item.outputs_exist()
    make_existing_outputs(audio)
    assert item.outputs_exist()
    item.output_full_path.unlink()
    assert not item.outputs_exist()


def test_discover_items_filters_and_sorts_naturally(tmp_path: Path) -> None:
    make_audio_files(tmp_path, "track10.flac", "track2.FLAC", "track1.wav", "cover.jpg", "notes.txt")
    (tmp_path / "folder.flac").mkdir()

    items = discover_items(tmp_path, extensions=(".flac", ".wav"))

    assert [item.name for item in items] == ["track1.wav", "track2.FLAC", "track10.flac"]


def test_discover_items_top_level_only_by_default(tmp_path: Path) -> None:
    make_audio_files(tmp_path, "top.flac")
    make_audio_files(tmp_path / "disc2", "nested.flac")

    assert [item.name for item in discover_items(tmp_path)] == ["top.flac"]


def test_discover_items_recursive_skips_output_folders(tmp_path: Path) -> None:
    make_audio_files(tmp_path, "top.flac")
    make_audio_files(tmp_path / "disc2", "nested.flac")
    make_audio_files(tmp_path / "specs", "stray.flac")
    make_audio_files(tmp_path / "disc2" / "specs", "stray2.flac")

    items = discover_items(tmp_path, recursive=True)

    assert sorted(item.name for item in items) == ["nested.flac", "top.flac"]
    nested = next(item for item in items if item.name == "nested.flac")
    assert nested.output_dir == tmp_path / "disc2" / "specs"


def test_discover_items_custom_output_dir_name(tmp_path: Path) -> None:
    make_audio_files(tmp_path / "spectra", "old.flac")
    make_audio_files(tmp_path / "specs", "kept.flac")

    items = discover_items(tmp_path, recursive=True, output_dir_name="spectra")

    assert [item.name for item in items] == ["kept.flac"]
    assert items[0].output_zoomed_path.parent.name == "spectra"


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_discover_items_deduplicates_symlinks_keeping_first_alias(tmp_path: Path) -> None:
    (audio,) = make_audio_files(tmp_path, "m_real.flac")
    try:
        (tmp_path / "z_alias.flac").symlink_to(audio)
        (tmp_path / "a_alias.flac").symlink_to(audio)
    except OSError:
        pytest.skip("cannot create symlinks here")

    for _ in range(3):
        items = discover_items(tmp_path)
        assert [item.name for item in items] == ["a_alias.flac"]
        assert items[0].output_zoomed_path.name == "a_alias.zoomed.png"


def test_discover_items_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError, match="not found"):
        discover_items(tmp_path / "missing")


def test_discover_items_rejects_file_root(tmp_path: Path) -> None:
    (audio,) = make_audio_files(tmp_path, "a.flac")
    with pytest.raises(DiscoveryError):
        discover_items(audio)


def test_discover_items_unreadable_subdirectory_is_logged_to_run_log(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    make_audio_files(tmp_path, "top.flac")
    locked = tmp_path / "locked"
    make_audio_files(locked, "hidden.flac")
    real_scandir = os.scandir

    def _scandir(path: Any = ".") -> Any:
        if os.fspath(path) == str(locked):
            raise PermissionError(13, "Permission denied", str(locked))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)
    log_path = tmp_path / "logs" / "run.log"

    with run_log(log_path, "INFO"):
        items = discover_items(tmp_path, recursive=True)

    assert [item.name for item in items] == ["top.flac"]
    assert "Skipping unreadable directory" in log_path.read_text(encoding="utf-8")

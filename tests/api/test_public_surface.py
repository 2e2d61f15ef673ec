from __future__ import annotations

import specbatch as sb

EXPECTED_EXPORTS = (
    "run_cli",
    "main",
    "RunRequest",
    "RunSummary",
    "CLIAppError",
    "ConfigError",
    "DiscoveryError",
)


def test_public_surface_matches_curated_exports() -> None:
    assert hasattr(sb, "__all__")
    assert tuple(sb.__all__) == EXPECTED_EXPORTS


def test_curated_exports_are_available_without_privates() -> None:
    for name in EXPECTED_EXPORTS:
        assert hasattr(sb, name), f"{name} missing from module globals"
    assert all(not name.startswith("_") for name in sb.__all__)


def test_importing_core_types() -> None:
    from specbatch import RunRequest, RunSummary
    from src.specbatch.request import RunRequest as CoreRequest
    from src.specbatch.summary import RunSummary as CoreSummary

    assert RunRequest is CoreRequest
    assert RunSummary is CoreSummary

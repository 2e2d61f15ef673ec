from __future__ import annotations

from click.testing import CliRunner

import specbatch

STABLE_FLAGS = (
    "--recursive",
    "--force",
    "--quiet",
    "--x-axis",
    "--y-axis",
    "--z-axis",
    "--config",
    "--version",
    "--help",
)


def test_help_lists_stable_flags() -> None:
    runner = CliRunner()
    result = runner.invoke(specbatch.main, ["--help"])
    assert result.exit_code == 0, result.output
    for flag in STABLE_FLAGS:
        assert flag in result.output

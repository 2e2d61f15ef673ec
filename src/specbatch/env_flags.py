"""Environment variables understood by the command-line entry point."""

from __future__ import annotations

from typing import Any, Final, Mapping, Optional

CONFIG_ENV_VAR: Final[str] = "SPECBATCH_CONFIG"
QUIET_ENV_VAR: Final[str] = "SPECBATCH_QUIET"

_TRUE_VALUES = {"1", "true", "yes", "on"}

__all__ = ["CONFIG_ENV_VAR", "QUIET_ENV_VAR", "config_path_from_env", "env_flag_enabled"]


def env_flag_enabled(value: Any) -> bool:
    """Return ``True`` when *value* represents an enabled environment flag."""
    if value is None:
        return False
    if isinstance(value, bytes):
        text = value.decode(errors="ignore")
    else:
        text = str(value)
    return text.strip().lower() in _TRUE_VALUES


def config_path_from_env(environ: Mapping[str, str]) -> Optional[str]:
    """Return the config path named by ``SPECBATCH_CONFIG``, ignoring blank values."""

    raw = environ.get(CONFIG_ENV_VAR)
    if raw is None or not raw.strip():
        return None
    return raw.strip()

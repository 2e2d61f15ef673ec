"""Configuration loader that parses and validates user-provided TOML."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Final, Mapping

from .datatypes import (
    AppConfig,
    AxesConfig,
    LoggingConfig,
    RenderConfig,
    RunnerConfig,
    WindowConfig,
)
from .specbatch.timespec import InvalidTimeFormat, parse_clock

AXIS_LIMITS: Final[Mapping[str, tuple[int, int]]] = {
    "x": (100, 10000),
    "y": (100, 32768),
    "z": (1, 240),
}
"""Inclusive ranges accepted for the x/y/z axis resolutions."""


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


def _coerce_bool(value: Any, dotted_key: str) -> bool:
    """Return a bool, coercing simple 0/1 representations when necessary."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"0", "1"}:
            return normalized == "1"
        if normalized in {"true", "false"}:
            return normalized == "true"
    raise ConfigError(f"{dotted_key} must be a boolean (use true/false).")


def _sanitize_section(raw: dict[str, Any], name: str, cls):
    """
    Coerce a raw TOML table into an instance of ``cls`` with cleaned booleans.

    Parameters:
        raw (dict[str, Any]): Raw TOML section data.
        name (str): Section name used when reporting validation errors.
        cls: Dataclass type used to construct the section object.

    Returns:
        Any: Instantiated dataclass populated with values from ``raw``.

    Raises:
        ConfigError: If the section is not a table or contains invalid keys or values.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    cleaned: Dict[str, Any] = {}
    cls_fields = {field.name: field for field in fields(cls)}
    bool_fields = {name for name, field in cls_fields.items() if field.type is bool}
    nested_fields = {
        name: field.type
        for name, field in cls_fields.items()
        if is_dataclass(field.type)
    }
    for key, value in raw.items():
        if key in bool_fields:
            cleaned[key] = _coerce_bool(value, f"{name}.{key}")
        elif key in nested_fields:
            if not isinstance(value, dict):
                raise ConfigError(f"[{name}.{key}] must be a table")
            cleaned[key] = _sanitize_section(value, f"{name}.{key}", nested_fields[key])
        else:
            cleaned[key] = value
    try:
        return cls(**cleaned)
    except TypeError as exc:
        raise ConfigError(f"Invalid keys in [{name}]: {exc}") from exc


def check_axis(name: str, value: Any, label: str) -> int:
    """
    Validate a single axis resolution against :data:`AXIS_LIMITS`.

    Raises:
        ConfigError: If *value* is not an integer inside the allowed range.
    """

    low, high = AXIS_LIMITS[name]
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be an integer between {low} and {high}")
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("-").isdigit():
            raise ConfigError(f"{label} must be an integer between {low} and {high}")
        value = int(text)
    if not isinstance(value, int):
        raise ConfigError(f"{label} must be an integer between {low} and {high}")
    if value < low or value > high:
        raise ConfigError(f"{label} must be between {low} and {high} (got {value})")
    return value


def validate_config(app: AppConfig) -> AppConfig:
    """Apply range checks and light normalisation to a populated configuration."""

    if not isinstance(app.runner.workers, int) or isinstance(app.runner.workers, bool):
        raise ConfigError("runner.workers must be an integer")
    if app.runner.workers < 0:
        raise ConfigError("runner.workers must be >= 0 (0 uses the CPU count)")

    for key in ("start", "duration"):
        raw_value = getattr(app.window, key)
        try:
            parse_clock(str(raw_value))
        except InvalidTimeFormat as exc:
            raise ConfigError(f"window.{key}: {exc}") from exc

    for axis in ("x", "y", "z"):
        setattr(app.axes, axis, check_axis(axis, getattr(app.axes, axis), f"axes.{axis}"))
        setattr(
            app.render.full,
            axis,
            check_axis(axis, getattr(app.render.full, axis), f"render.full.{axis}"),
        )

    if not str(app.render.sox_path).strip():
        raise ConfigError("render.sox_path must be set")
    if not str(app.render.soxi_path).strip():
        raise ConfigError("render.soxi_path must be set")
    if not str(app.render.window_function).strip():
        raise ConfigError("render.window_function must be set")
    try:
        timeout = float(app.render.timeout_seconds)
    except (TypeError, ValueError) as exc:
        raise ConfigError("render.timeout_seconds must be a number") from exc
    if timeout < 0:
        raise ConfigError("render.timeout_seconds must be >= 0 (0 disables the timeout)")
    app.render.timeout_seconds = timeout

    output_dir = str(app.render.output_dir_name).strip()
    if not output_dir or "/" in output_dir or "\\" in output_dir or output_dir in {".", ".."}:
        raise ConfigError("render.output_dir_name must be a plain directory name")
    app.render.output_dir_name = output_dir

    if not isinstance(app.render.extensions, list) or not app.render.extensions:
        raise ConfigError("render.extensions must be a non-empty list")
    normalized_exts: list[str] = []
    for ext in app.render.extensions:
        if not isinstance(ext, str) or not ext.strip():
            raise ConfigError("render.extensions entries must be non-empty strings")
        text = ext.strip().lower()
        normalized_exts.append(text if text.startswith(".") else f".{text}")
    app.render.extensions = normalized_exts

    level = str(app.logging.level).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError("logging.level must be a standard logging level name")
    app.logging.level = level
    app.logging.file_name = str(app.logging.file_name).strip()
    if "/" in app.logging.file_name or "\\" in app.logging.file_name:
        raise ConfigError("logging.file_name must be a plain file name")

    return app


def default_config() -> AppConfig:
    """Return a validated configuration populated with built-in defaults."""

    return validate_config(AppConfig())


def load_config(path: str) -> AppConfig:
    """
    Load and validate an application configuration from a TOML file.

    Reads the file at `path`, parses it as UTF-8 TOML (BOM is accepted), coerces booleans, validates every section and returns a populated AppConfig.

    Returns:
        AppConfig: The validated and normalized application configuration.

    Raises:
        ConfigError: If the file is not UTF-8, TOML parsing fails, or any validation rule is violated.
        FileNotFoundError: If *path* does not exist.
    """

    with open(path, "rb") as handle:
        raw_bytes = handle.read()
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        raw = tomllib.loads(raw_bytes.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc

    known = {"runner", "window", "axes", "render", "logging"}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {', '.join(unknown)}")

    app = AppConfig(
        runner=_sanitize_section(raw.get("runner", {}), "runner", RunnerConfig),
        window=_sanitize_section(raw.get("window", {}), "window", WindowConfig),
        axes=_sanitize_section(raw.get("axes", {}), "axes", AxesConfig),
        render=_sanitize_section(raw.get("render", {}), "render", RenderConfig),
        logging=_sanitize_section(raw.get("logging", {}), "logging", LoggingConfig),
    )
    return validate_config(app)

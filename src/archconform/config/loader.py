"""
archconform — runtime config loader.

File: src/archconform/config/loader.py
Last updated: 2026-10-17

Purpose
- Load effective runtime config from defaults, TOML file, env vars, and CLI overrides.

What should be included in this file
- Precedence logic: CLI > env (ARCHCONFORM_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.
- Deterministic dump of effective config.

Functional requirements
- Reject invalid config via schema validation.
- Support profile overlays selected by CLI/env.
- An explicit config path must exist; the implicit ``archconform.toml`` is optional.

Non-functional requirements
- Keep loading deterministic and reproducible.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Final

from archconform.config.schema import (
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "archconform.toml"
ENV_PREFIX: Final[str] = "ARCHCONFORM_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_ENV_EXCLUDED_SECTIONS: Final[frozenset[str]] = frozenset({"meta", "profiles"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    search_from: str | Path | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: CLI > env > file > defaults."""

    explicit_path = config_path is not None
    resolved_path = _resolve_config_path(config_path, search_from)
    env_map = dict(os.environ if environ is None else environ)
    cli_map = dict(cli_overrides or {})

    file_payload = _load_toml_file(resolved_path, required=explicit_path) if resolved_path else {}
    selected_profile = _resolve_profile(profile=profile, cli_overrides=cli_map, environ=env_map)

    merged = merge_config(default_config(), file_payload)
    merged = assert_valid_config(merged)

    if selected_profile is not None:
        merged = apply_profile_overlay(merged, selected_profile)

    env_overrides = _collect_env_overrides(merged, env_map)
    cli_payload = _materialize_cli_overrides(cli_map)

    merged = merge_config(merged, env_overrides)
    merged = merge_config(merged, cli_payload)
    return assert_valid_config(merged, active_profile=selected_profile)


def find_config_file(start: str | Path) -> Path | None:
    """Nearest ``archconform.toml`` at or above ``start``."""

    current = Path(start).resolve()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(config: Mapping[str, object], key: str, project_root: str | Path) -> Path:
    """Absolute path for ``paths.<key>``; relative values are taken from ``project_root``."""

    paths = config.get("paths", {})
    raw = paths.get(key) if isinstance(paths, Mapping) else None
    if not isinstance(raw, str):
        raise ConfigLoadError(f"paths.{key} is not configured")
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if candidate.is_absolute():
        return candidate
    return Path(project_root) / candidate


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return deterministic JSON dump of effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _resolve_config_path(config_path: str | Path | None, search_from: str | Path | None) -> Path | None:
    if config_path is not None:
        return Path(config_path).expanduser().resolve()
    return find_config_file(Path.cwd() if search_from is None else search_from)


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigLoadError(f"config root must be an object: {path}")

    return parsed


def _resolve_profile(
    *,
    profile: str | None,
    cli_overrides: Mapping[str, object],
    environ: Mapping[str, str],
) -> str | None:
    if profile is not None:
        selected = profile.strip()
        return selected or None

    cli_profile = cli_overrides.get("profile")
    if cli_profile is not None:
        if not isinstance(cli_profile, str):
            raise ConfigLoadError("cli override 'profile' must be a string")
        selected = cli_profile.strip()
        return selected or None

    env_profile = environ.get(f"{ENV_PREFIX}PROFILE")
    if env_profile is None:
        return None
    selected = env_profile.strip()
    return selected or None


def _collect_env_overrides(
    config: Mapping[str, object], environ: Mapping[str, str]
) -> dict[str, Any]:
    """Env values for every overridable scalar or list already present in ``config``."""

    overrides: dict[str, Any] = {}
    for path, current in _iter_leaves(config):
        if path[0] in _ENV_EXCLUDED_SECTIONS:
            continue
        env_name = ENV_PREFIX + "_".join(part.upper() for part in path)
        raw = environ.get(env_name)
        if raw is None:
            continue
        _set_nested(overrides, path, _coerce_env(raw.strip(), current, env_name, path))
    return overrides


def _iter_leaves(
    payload: Mapping[str, object], prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], object]]:
    for key in sorted(payload):
        value = payload[key]
        if isinstance(value, Mapping):
            yield from _iter_leaves(value, (*prefix, key))
        else:
            yield (*prefix, key), value


def _coerce_env(raw: str, current: object, env_name: str, path: tuple[str, ...]) -> object:
    dotted = ".".join(path)
    if isinstance(current, bool):
        lowered = raw.lower()
        if lowered in _BOOLEAN_TRUE:
            return True
        if lowered in _BOOLEAN_FALSE:
            return False
        raise ConfigLoadError(
            f"{env_name} -> {dotted} must be a boolean (true/false/1/0/yes/no/on/off)"
        )
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {dotted} must be an integer") from exc
    if isinstance(current, list):
        # Comma-separated.
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


def _materialize_cli_overrides(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in sorted(cli_overrides.items()):
        if key == "profile":
            continue
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid CLI override key {key!r}")
        _set_nested(payload, path, value)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[path[-1]] = value


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "find_config_file",
    "load_config",
    "resolve_config_path",
]

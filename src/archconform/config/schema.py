"""
archconform — configuration schema and validation.

File: src/archconform/config/schema.py
Last updated: 2026-10-17

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric constraints.
- Profile overlay validation and deterministic deep-merge helpers.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Support the built-in ``strict`` and ``permissive`` profiles plus user-defined overlays.
- Reject unknown keys.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from archconform.constants import (
    ARCHITECTURE_DIR,
    COMPONENTS_DIR,
    CONFIG_SCHEMA_VERSION,
    DIAGRAMS_DIR,
    SPECS_DIR,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
BUILTIN_PROFILE_NAMES: Final[tuple[str, ...]] = ("strict", "permissive")

_PROFILE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
_MODULE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_CONTAINER_REF_PATTERN = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*:[A-Za-z_][A-Za-z0-9_]*$"
)

# Config paths interpreted relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("paths", "architecture_dir"),
    ("paths", "components_dir"),
    ("paths", "specs_dir"),
    ("paths", "diagrams_dir"),
)

_SECTIONS: Final[tuple[str, ...]] = ("meta", "paths", "conformance", "workflow", "observability")
_OVERLAY_SECTIONS: Final[tuple[str, ...]] = ("paths", "conformance", "workflow", "observability")
_NAME_LIST_FIELDS: Final[tuple[str, ...]] = (
    "lookup_call_names",
    "constructor_names",
    "allowed_key_suffixes",
)
_MODULE_LIST_FIELDS: Final[tuple[str, ...]] = ("persistence_modules", "forbidden_domain_modules")


class MetaConfig(TypedDict):
    schema_version: int


class PathsConfig(TypedDict):
    architecture_dir: str
    components_dir: str
    specs_dir: str
    diagrams_dir: str


class ConformanceConfig(TypedDict):
    permit_unimplemented: bool
    lookup_call_names: list[str]
    constructor_names: list[str]
    allowed_key_suffixes: list[str]
    service_key_suffix: str
    persistence_modules: list[str]
    forbidden_domain_modules: list[str]
    container: str


class WorkflowConfig(TypedDict):
    max_suggestions: int
    max_concurrency: int


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]


class ProfileOverlay(TypedDict, total=False):
    paths: dict[str, object]
    conformance: dict[str, object]
    workflow: dict[str, object]
    observability: dict[str, object]


class ArchConformConfig(TypedDict):
    meta: MetaConfig
    paths: PathsConfig
    conformance: ConformanceConfig
    workflow: WorkflowConfig
    observability: ObservabilityConfig
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[ArchConformConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "paths": {
        "architecture_dir": ARCHITECTURE_DIR.as_posix(),
        "components_dir": COMPONENTS_DIR.as_posix(),
        "specs_dir": SPECS_DIR.as_posix(),
        "diagrams_dir": DIAGRAMS_DIR.as_posix(),
    },
    "conformance": {
        "permit_unimplemented": False,
        "lookup_call_names": ["resolve"],
        "constructor_names": ["__init__", "__post_init__"],
        "allowed_key_suffixes": ["_service", "_query"],
        "service_key_suffix": "_service",
        "persistence_modules": [
            "asyncpg",
            "django.db",
            "motor",
            "peewee",
            "psycopg",
            "psycopg2",
            "pymongo",
            "redis",
            "sqlalchemy",
            "sqlite3",
        ],
        "forbidden_domain_modules": [
            "django",
            "fastapi",
            "flask",
            "peewee",
            "pydantic",
            "sqlalchemy",
        ],
        "container": "",
    },
    "workflow": {
        "max_suggestions": 0,
        "max_concurrency": 8,
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "text",
    },
    "profiles": {
        "strict": {
            "conformance": {"permit_unimplemented": False},
        },
        "permissive": {
            "conformance": {"permit_unimplemented": True},
        },
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


_Rule = Callable[[object, str, list[ConfigValidationIssue]], object]

_INVALID: Final = object()


def default_config() -> ArchConformConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Return deterministic migration guidance for schema version mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} predates supported version {ConfigSchemaVersion}; "
            "rewrite archconform.toml for the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is ahead of supported version {ConfigSchemaVersion}; "
            "install a newer archconform"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``; lists and scalars are replaced wholesale."""

    merged: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        elif isinstance(value, Mapping):
            merged[key] = merge_config({}, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_profile_overlay(config: Mapping[str, object], profile: str | None) -> dict[str, Any]:
    """Merge the named profile onto ``config`` and validate the result."""

    selected = (profile or "").strip()
    if not selected:
        return merge_config({}, config)

    profiles = config.get("profiles")
    overlay = profiles.get(selected) if isinstance(profiles, Mapping) else None
    if overlay is None:
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {selected!r} is not defined"),)
        )
    if not isinstance(overlay, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"profiles.{selected}", "profile overlay must be an object"),)
        )
    return assert_valid_config(merge_config(config, overlay), active_profile=selected)


def validate_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> ConfigValidationResult:
    """Validate ``config``; issues carry dotted field paths in a stable order."""

    issues: list[ConfigValidationIssue] = []
    if not isinstance(config, Mapping):
        issues.append(
            ConfigValidationIssue("<root>", f"expected object, got {type(config).__name__}")
        )
        return ConfigValidationResult(config=None, issues=tuple(issues))

    normalized = _check_sections(config, "", issues, required=True)
    for key in sorted(config):
        if key not in _SECTIONS and key != "profiles":
            issues.append(ConfigValidationIssue(str(key), "unknown field"))

    profiles = config.get("profiles")
    if profiles is not None:
        normalized["profiles"] = _check_profiles(profiles, issues)

    selected = active_profile.strip() if isinstance(active_profile, str) else ""
    if selected and selected not in normalized.get("profiles", {}):
        issues.append(ConfigValidationIssue("profiles", f"profile {selected!r} is not defined"))

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config, active_profile=active_profile)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _check_sections(
    payload: Mapping[str, object],
    prefix: str,
    issues: list[ConfigValidationIssue],
    *,
    required: bool,
) -> dict[str, Any]:
    sections = _SECTIONS if required else _OVERLAY_SECTIONS
    out: dict[str, Any] = {}
    for name in sections:
        path = f"{prefix}{name}"
        raw = payload.get(name)
        if raw is None:
            if required:
                issues.append(ConfigValidationIssue(path, "missing required field"))
            continue
        if not isinstance(raw, Mapping):
            issues.append(ConfigValidationIssue(path, f"expected object, got {type(raw).__name__}"))
            continue
        out[name] = _check_fields(raw, _SECTION_RULES[name], path, issues, required=required)
    return out


def _check_fields(
    payload: Mapping[str, object],
    rules: Mapping[str, _Rule],
    path: str,
    issues: list[ConfigValidationIssue],
    *,
    required: bool,
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(set(payload) | (set(rules) if required else set())):
        field_path = f"{path}.{key}"
        rule = rules.get(key)
        if rule is None:
            issues.append(ConfigValidationIssue(field_path, "unknown field"))
        elif key not in payload:
            issues.append(ConfigValidationIssue(field_path, "missing required field"))
        else:
            value = rule(payload[key], field_path, issues)
            if value is not _INVALID:
                out[key] = value
    return out


def _check_profiles(payload: object, issues: list[ConfigValidationIssue]) -> dict[str, Any]:
    if not isinstance(payload, Mapping):
        issues.append(
            ConfigValidationIssue("profiles", f"expected object, got {type(payload).__name__}")
        )
        return {}
    out: dict[str, Any] = {}
    for name in sorted(payload):
        path = f"profiles.{name}"
        overlay = payload[name]
        if not _PROFILE_NAME_PATTERN.fullmatch(name):
            issues.append(ConfigValidationIssue(path, "profile name must match ^[a-z][a-z0-9_-]*$"))
        elif not isinstance(overlay, Mapping):
            issues.append(
                ConfigValidationIssue(path, f"expected object, got {type(overlay).__name__}")
            )
        else:
            for key in sorted(overlay):
                if key not in _OVERLAY_SECTIONS:
                    issues.append(ConfigValidationIssue(f"{path}.{key}", "unknown field"))
            out[name] = _check_sections(overlay, f"{path}.", issues, required=False)
    return out


def _text(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
    if not isinstance(value, str):
        issues.append(ConfigValidationIssue(path, f"expected string, got {type(value).__name__}"))
        return _INVALID
    if not value.strip():
        issues.append(ConfigValidationIssue(path, "must not be empty"))
        return _INVALID
    return value.strip()


def _path_text(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
    parsed = _text(value, path, issues)
    if isinstance(parsed, str) and "\x00" in parsed:
        issues.append(ConfigValidationIssue(path, "must not contain NUL bytes"))
        return _INVALID
    return parsed


def _flag(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
    if isinstance(value, bool):
        return value
    issues.append(ConfigValidationIssue(path, f"expected boolean, got {type(value).__name__}"))
    return _INVALID


def _count(minimum: int) -> _Rule:
    def rule(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
        if isinstance(value, bool) or not isinstance(value, int):
            issues.append(
                ConfigValidationIssue(path, f"expected integer, got {type(value).__name__}")
            )
            return _INVALID
        if value < minimum:
            issues.append(ConfigValidationIssue(path, f"must be >= {minimum}"))
            return _INVALID
        return value

    return rule


def _choice(*allowed: str) -> _Rule:
    def rule(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
        parsed = _text(value, path, issues)
        if parsed is _INVALID or parsed in allowed:
            return parsed
        issues.append(
            ConfigValidationIssue(
                path, f"invalid value {parsed!r}; expected one of: {', '.join(sorted(allowed))}"
            )
        )
        return _INVALID

    return rule


def _names(pattern: re.Pattern[str] | None = None) -> _Rule:
    def rule(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
        if isinstance(value, str) or not isinstance(value, Sequence):
            issues.append(
                ConfigValidationIssue(path, f"expected list of strings, got {type(value).__name__}")
            )
            return _INVALID
        before = len(issues)
        names: list[str] = []
        for index, item in enumerate(value):
            parsed = _text(item, f"{path}[{index}]", issues)
            if parsed is _INVALID:
                continue
            if pattern is not None and not pattern.fullmatch(parsed):
                issues.append(
                    ConfigValidationIssue(f"{path}[{index}]", f"invalid module name {parsed!r}")
                )
                continue
            names.append(parsed)
        return names if len(issues) == before else _INVALID

    return rule


def _container_ref(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
    if not isinstance(value, str):
        issues.append(ConfigValidationIssue(path, f"expected string, got {type(value).__name__}"))
        return _INVALID
    ref = value.strip()
    if ref and not _CONTAINER_REF_PATTERN.fullmatch(ref):
        issues.append(ConfigValidationIssue(path, "must be empty or 'module:attribute'"))
        return _INVALID
    return ref


def _schema_version(value: object, path: str, issues: list[ConfigValidationIssue]) -> object:
    parsed = _count(1)(value, path, issues)
    if parsed is not _INVALID and parsed != ConfigSchemaVersion:
        issues.append(ConfigValidationIssue(path, migration_guidance(parsed)))
    return parsed


_SECTION_RULES: Final[dict[str, dict[str, _Rule]]] = {
    "meta": {"schema_version": _schema_version},
    "paths": {field[1]: _path_text for field in PATH_FIELDS},
    "conformance": {
        "permit_unimplemented": _flag,
        "service_key_suffix": _text,
        "container": _container_ref,
        **{key: _names() for key in _NAME_LIST_FIELDS},
        **{key: _names(_MODULE_NAME_PATTERN) for key in _MODULE_LIST_FIELDS},
    },
    "workflow": {"max_suggestions": _count(0), "max_concurrency": _count(1)},
    "observability": {
        "log_level": _choice("DEBUG", "INFO", "WARNING", "ERROR"),
        "log_format": _choice("json", "text"),
    },
}


__all__ = [
    "ArchConformConfig",
    "BUILTIN_PROFILE_NAMES",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "ProfileOverlay",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]

"""
archconform config package public API.

File: src/archconform/config/__init__.py
Last updated: 2026-10-17

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``archconform.toml`` + ``ARCHCONFORM_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from archconform.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    find_config_file,
    load_config,
    resolve_config_path,
)
from archconform.config.schema import (
    BUILTIN_PROFILE_NAMES,
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ArchConformConfig,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    ProfileOverlay,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ArchConformConfig",
    "BUILTIN_PROFILE_NAMES",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "ProfileOverlay",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "find_config_file",
    "load_config",
    "merge_config",
    "migration_guidance",
    "resolve_config_path",
    "validate_config",
]

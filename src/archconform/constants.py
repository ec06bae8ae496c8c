"""Stable constants shared across the blueprint, workflow and CLI layers."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema version for archconform.toml.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Project layout, relative to the project root unless overridden by config.
ARCHITECTURE_DIR: Final[PurePosixPath] = PurePosixPath("architecture")
COMPONENTS_DIR: Final[PurePosixPath] = PurePosixPath("components")
SPECS_DIR: Final[PurePosixPath] = PurePosixPath("docs/specs")
DIAGRAMS_DIR: Final[PurePosixPath] = PurePosixPath("docs/diagrams")

SYSTEM_MANIFEST_NAMES: Final[tuple[str, ...]] = ("system.json", "system.yaml", "system.yml")
BLUEPRINT_SUFFIXES: Final[tuple[str, ...]] = (".json", ".yaml", ".yml")
SPEC_SUFFIX: Final[str] = ".spec.md"

# Workflow suggestion priorities; lower runs first within one component.
PRIORITY_CREATE_ROOT: Final[int] = 1
PRIORITY_GENERATE_SPECS: Final[int] = 2
PRIORITY_PLAN_CAPABILITY: Final[int] = 3
PRIORITY_IMPLEMENT_CAPABILITY: Final[int] = 4

# Component progress weights used to order suggestions across components.
PROGRESS_WEIGHT_PLANNED: Final[int] = 100
PROGRESS_WEIGHT_TEMPLATE: Final[int] = 50
PROGRESS_WEIGHT_ROOT: Final[int] = 10

__all__ = [
    "ARCHITECTURE_DIR",
    "BLUEPRINT_SUFFIXES",
    "COMPONENTS_DIR",
    "CONFIG_SCHEMA_VERSION",
    "DIAGRAMS_DIR",
    "PRIORITY_CREATE_ROOT",
    "PRIORITY_GENERATE_SPECS",
    "PRIORITY_IMPLEMENT_CAPABILITY",
    "PRIORITY_PLAN_CAPABILITY",
    "PROGRESS_WEIGHT_PLANNED",
    "PROGRESS_WEIGHT_ROOT",
    "PROGRESS_WEIGHT_TEMPLATE",
    "SPECS_DIR",
    "SPEC_SUFFIX",
    "SYSTEM_MANIFEST_NAMES",
]

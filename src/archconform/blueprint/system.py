"""
archconform — project manifest

File: src/archconform/blueprint/system.py
Last updated: 2026-10-17

Purpose
- Read ``architecture/system.json`` (or ``system.yaml``), the project-level list of
  components and their blueprint files.
- Resolve a component identifier or a blueprint path to a blueprint file.

Functional requirements
- Project root discovery walks upward from a start directory.
- Unknown ids, a missing manifest or an entry without ``architecture_file`` raise
  ``ResolutionError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from archconform.blueprint.model import load_document
from archconform.constants import (
    ARCHITECTURE_DIR,
    BLUEPRINT_SUFFIXES,
    COMPONENTS_DIR,
    SYSTEM_MANIFEST_NAMES,
)
from archconform.errors import BlueprintError, ResolutionError, SchemaViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ComponentEntry:
    id: str
    architecture_file: str | None = None


@dataclass(frozen=True, slots=True)
class SystemManifest:
    """Parsed project manifest."""

    path: Path
    components: tuple[ComponentEntry, ...] = ()
    base_dir: str | None = None

    @property
    def project_root(self) -> Path:
        return self.path.parent.parent

    def components_root(self, default: str = COMPONENTS_DIR.as_posix()) -> Path:
        """Directory holding one implementation root per component."""

        return self.project_root / (self.base_dir or default)

    def component(self, component_id: str) -> ComponentEntry | None:
        return next((entry for entry in self.components if entry.id == component_id), None)

    def blueprint_path(self, component_id: str) -> Path:
        entry = self.component(component_id)
        if entry is None:
            raise ResolutionError(component_id, f"component {component_id!r} not found in {self.path}")
        if not entry.architecture_file:
            raise ResolutionError(
                component_id,
                f"component {component_id!r} in {self.path} is missing 'architecture_file'",
            )
        return self.project_root / entry.architecture_file


def find_manifest(start: str | Path) -> Path | None:
    """Return the nearest manifest file at or above ``start``."""

    current = Path(start).resolve()
    for directory in (current, *current.parents):
        for name in SYSTEM_MANIFEST_NAMES:
            candidate = directory / ARCHITECTURE_DIR / name
            if candidate.is_file():
                return candidate
    return None


def find_project_root(start: str | Path) -> Path | None:
    """Return the directory holding ``architecture/system.*`` at or above ``start``."""

    manifest = find_manifest(start)
    if manifest is None:
        return None
    return manifest.parent.parent


def load_system_manifest(project_root: str | Path) -> SystemManifest:
    root = Path(project_root)
    manifest_path = next(
        (
            root / ARCHITECTURE_DIR / name
            for name in SYSTEM_MANIFEST_NAMES
            if (root / ARCHITECTURE_DIR / name).is_file()
        ),
        None,
    )
    if manifest_path is None:
        raise ResolutionError(str(root), f"no architecture/system.json found under {root}")

    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResolutionError(str(manifest_path), f"unable to read {manifest_path}: {exc}") from exc
    payload = load_document(text, manifest_path)
    if not isinstance(payload, Mapping):
        raise SchemaViolation("<root>", f"{manifest_path}: expected object")

    components_raw = payload.get("components")
    if components_raw is None:
        components_raw = {}
    if not isinstance(components_raw, Mapping):
        raise SchemaViolation("components", f"{manifest_path}: expected object")

    items_raw = components_raw.get("items", [])
    if not isinstance(items_raw, list):
        raise SchemaViolation("components.items", f"{manifest_path}: expected list")

    entries: list[ComponentEntry] = []
    for index, item in enumerate(items_raw):
        item_path = f"components.items[{index}]"
        if not isinstance(item, Mapping):
            raise SchemaViolation(item_path, f"{manifest_path}: expected object")
        component_id = item.get("id")
        if not isinstance(component_id, str) or not component_id.strip():
            raise SchemaViolation(f"{item_path}.id", f"{manifest_path}: missing required field")
        architecture_file = item.get("architecture_file")
        if architecture_file is not None and not isinstance(architecture_file, str):
            raise SchemaViolation(f"{item_path}.architecture_file", f"{manifest_path}: expected string")
        entries.append(ComponentEntry(id=component_id.strip(), architecture_file=architecture_file))

    base_dir = components_raw.get("base_dir")
    if base_dir is not None and (not isinstance(base_dir, str) or not base_dir.strip()):
        raise SchemaViolation("components.base_dir", f"{manifest_path}: expected non-empty string")

    logger.debug("loaded manifest %s with %d component(s)", manifest_path, len(entries))
    return SystemManifest(
        path=manifest_path,
        components=tuple(entries),
        base_dir=base_dir.strip() if isinstance(base_dir, str) else None,
    )


def resolve_blueprint_path(argument: str, cwd: str | Path | None = None) -> Path:
    """Resolve a component id or a blueprint path to a blueprint file path."""

    base = Path.cwd() if cwd is None else Path(cwd)
    if argument.lower().endswith(BLUEPRINT_SUFFIXES):
        candidate = Path(argument).expanduser()
        return (candidate if candidate.is_absolute() else base / candidate).resolve()

    project_root = find_project_root(base)
    if project_root is None:
        raise ResolutionError(
            argument,
            f"could not find architecture/system.json to resolve component {argument!r}; "
            "run from the project root or pass a blueprint path",
        )
    try:
        manifest = load_system_manifest(project_root)
    except BlueprintError as exc:
        raise ResolutionError(argument, f"invalid project manifest: {exc}") from exc
    return manifest.blueprint_path(argument)


def project_root_for_blueprint(path: str | Path) -> Path:
    """Parent of the enclosing ``architecture/`` directory, else the blueprint's directory."""

    blueprint_path = Path(path).resolve()
    for ancestor in blueprint_path.parents:
        if ancestor.name == ARCHITECTURE_DIR.name:
            return ancestor.parent
    return blueprint_path.parent


__all__ = [
    "ComponentEntry",
    "SystemManifest",
    "find_manifest",
    "find_project_root",
    "load_system_manifest",
    "project_root_for_blueprint",
    "resolve_blueprint_path",
]

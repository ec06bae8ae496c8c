"""
archconform — unit tests for the project manifest

File: tests/unit/blueprint/test_system_manifest.py
Last updated: 2026-10-17

Purpose
- Validate ``architecture/system.json`` loading and component/blueprint resolution.

What this test file should cover
- Upward project-root discovery.
- Resolution by component id and by explicit blueprint path.
- Resolution errors for unknown ids, missing manifests and missing ``architecture_file``.
- ``components.base_dir`` overriding the implementation-root directory.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from archconform.blueprint import (
    find_project_root,
    load_system_manifest,
    project_root_for_blueprint,
    resolve_blueprint_path,
)
from archconform.errors import ResolutionError, SchemaViolation


def _write_manifest(root: Path, payload: object, name: str = "system.json") -> Path:
    path = root / "architecture" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _project(root: Path) -> Path:
    _write_manifest(
        root,
        {
            "components": {
                "items": [
                    {"id": "orders", "architecture_file": "architecture/orders/architecture.json"},
                    {"id": "billing"},
                ]
            }
        },
    )
    return root


def test_load_manifest_lists_components(tmp_path: Path) -> None:
    manifest = load_system_manifest(_project(tmp_path))

    assert [entry.id for entry in manifest.components] == ["orders", "billing"]
    assert manifest.project_root == tmp_path
    assert manifest.blueprint_path("orders") == tmp_path / "architecture/orders/architecture.json"
    assert manifest.components_root() == tmp_path / "components"


def test_base_dir_overrides_components_root(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"components": {"base_dir": "services", "items": []}})

    manifest = load_system_manifest(tmp_path)

    assert manifest.base_dir == "services"
    assert manifest.components_root() == tmp_path / "services"


def test_yaml_manifest_is_supported(tmp_path: Path) -> None:
    path = tmp_path / "architecture" / "system.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("components:\n  items:\n    - id: orders\n", encoding="utf-8")

    assert [entry.id for entry in load_system_manifest(tmp_path).components] == ["orders"]


def test_missing_manifest_is_a_resolution_error(tmp_path: Path) -> None:
    with pytest.raises(ResolutionError):
        load_system_manifest(tmp_path)


def test_component_without_id_is_a_schema_violation(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"components": {"items": [{"architecture_file": "x.json"}]}})

    with pytest.raises(SchemaViolation) as excinfo:
        load_system_manifest(tmp_path)

    assert excinfo.value.field == "components.items[0].id"


def test_unknown_component_and_missing_architecture_file(tmp_path: Path) -> None:
    manifest = load_system_manifest(_project(tmp_path))

    with pytest.raises(ResolutionError, match="not found"):
        manifest.blueprint_path("shipping")
    with pytest.raises(ResolutionError, match="architecture_file"):
        manifest.blueprint_path("billing")


def test_find_project_root_walks_upward(tmp_path: Path) -> None:
    _project(tmp_path)
    nested = tmp_path / "components" / "orders" / "domain"
    nested.mkdir(parents=True)

    assert find_project_root(nested) == tmp_path.resolve()


def test_resolve_by_component_id_from_a_subdirectory(tmp_path: Path) -> None:
    _project(tmp_path)
    nested = tmp_path / "docs"
    nested.mkdir()

    resolved = resolve_blueprint_path("orders", cwd=nested)

    assert resolved == tmp_path.resolve() / "architecture/orders/architecture.json"


def test_resolve_by_path_is_relative_to_cwd(tmp_path: Path) -> None:
    resolved = resolve_blueprint_path("blueprints/orders.yaml", cwd=tmp_path)

    assert resolved == (tmp_path / "blueprints/orders.yaml").resolve()


def test_resolve_id_without_manifest_fails(tmp_path: Path) -> None:
    with pytest.raises(ResolutionError, match="system.json"):
        resolve_blueprint_path("orders", cwd=tmp_path)


def test_project_root_for_blueprint(tmp_path: Path) -> None:
    inside = tmp_path / "architecture" / "orders" / "architecture.json"
    outside = tmp_path / "blueprints" / "orders.json"

    assert project_root_for_blueprint(inside) == tmp_path.resolve()
    assert project_root_for_blueprint(outside) == (tmp_path / "blueprints").resolve()

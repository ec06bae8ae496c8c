"""
archconform — unit tests for the authoring workflow engine

File: tests/unit/workflow/test_workflow_engine.py
Last updated: 2026-10-17

Purpose
- Verify lifecycle state derivation and the global ordering of next steps.

What this test file should cover
- Gating: no implementation root means exactly one ``create_root`` suggestion.
- Spec generation, planning and implementation suggestions per capability state.
- Cross-component ordering by progress score, priority and id.
- Truncation, missing manifests, unknown components and ``base_dir`` overrides.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from archconform.errors import ResolutionError
from archconform.workflow import (
    SuggestionAction,
    WorkflowSettings,
    analyze_component,
    analyze_project,
    generate_suggestions,
)

FIXTURES_DIR = Path(__file__).resolve().parents[2] / "fixtures"
SAMPLE_BLUEPRINT = FIXTURES_DIR / "blueprints" / "sample_orders.json"


def _project(root: Path, component_ids: list[str], *, base_dir: str | None = None) -> Path:
    components: dict[str, object] = {
        "items": [
            {"id": component_id, "architecture_file": f"architecture/{component_id}/architecture.json"}
            for component_id in component_ids
        ]
    }
    if base_dir is not None:
        components["base_dir"] = base_dir
    manifest = root / "architecture" / "system.json"
    manifest.parent.mkdir(parents=True, exist_ok=True)
    manifest.write_text(json.dumps({"components": components}), encoding="utf-8")
    for component_id in component_ids:
        target = root / "architecture" / component_id / "architecture.json"
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(SAMPLE_BLUEPRINT, target)
    return root


def _make_root(root: Path, component_id: str, components_dir: str = "components") -> None:
    (root / components_dir / component_id).mkdir(parents=True)


def _write_spec(root: Path, component_id: str, text: str) -> Path:
    path = root / "docs" / "specs" / component_id / "place_order.spec.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _actions(project_root: Path, **kwargs: object) -> list[tuple[str, SuggestionAction]]:
    states = analyze_project(project_root)
    return [(item.component_id, item.action) for item in generate_suggestions(states, **kwargs)]  # type: ignore[arg-type]


def test_missing_root_yields_a_single_create_root(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _write_spec(tmp_path, "orders", "**Status:** planned\n")

    (suggestion,) = generate_suggestions(analyze_project(tmp_path))

    assert suggestion.action is SuggestionAction.CREATE_ROOT
    assert suggestion.command == "mkdir -p components/orders"
    assert suggestion.priority == 1


def test_root_without_specs_suggests_generation(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _make_root(tmp_path, "orders")

    (suggestion,) = generate_suggestions(analyze_project(tmp_path))

    assert suggestion.action is SuggestionAction.GENERATE_SPECS
    assert suggestion.command == "archconform spec orders"
    assert "(1 capability)" in suggestion.message


def test_template_spec_suggests_planning_and_unmarked_spec_counts_as_template(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _make_root(tmp_path, "orders")
    spec_path = _write_spec(tmp_path, "orders", "# Place Order\n\nnotes without a marker\n")

    (state,) = analyze_project(tmp_path)
    (suggestion,) = generate_suggestions((state,))

    assert state.capabilities[0].status_label == "template"
    assert state.progress_score == 60
    assert suggestion.action is SuggestionAction.PLAN_CAPABILITY
    assert suggestion.spec_path == spec_path
    assert suggestion.command == f"$EDITOR {spec_path.as_posix()}"


def test_planned_spec_suggests_implementation_without_command(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _make_root(tmp_path, "orders")
    _write_spec(tmp_path, "orders", "**Status:** planned\n")

    (suggestion,) = generate_suggestions(analyze_project(tmp_path))

    assert suggestion.action is SuggestionAction.IMPLEMENT_CAPABILITY
    assert suggestion.command is None
    assert suggestion.message == "Implement Place Order"


def test_implemented_specs_need_nothing(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _make_root(tmp_path, "orders")
    _write_spec(tmp_path, "orders", "**Status:** implemented\n")

    assert generate_suggestions(analyze_project(tmp_path)) == ()


def test_planned_components_come_before_template_components(tmp_path: Path) -> None:
    _project(tmp_path, ["billing", "orders", "shipping"])
    for component_id in ("billing", "orders"):
        _make_root(tmp_path, component_id)
    _write_spec(tmp_path, "billing", "**Status:** template\n")
    _write_spec(tmp_path, "orders", "**Status:** planned\n")

    assert _actions(tmp_path) == [
        ("orders", SuggestionAction.IMPLEMENT_CAPABILITY),
        ("billing", SuggestionAction.PLAN_CAPABILITY),
        ("shipping", SuggestionAction.CREATE_ROOT),
    ]


def test_ties_break_on_priority_then_component_id(tmp_path: Path) -> None:
    _project(tmp_path, ["zeta", "alpha"])

    assert _actions(tmp_path) == [
        ("alpha", SuggestionAction.CREATE_ROOT),
        ("zeta", SuggestionAction.CREATE_ROOT),
    ]


def test_max_suggestions_truncates_after_ordering(tmp_path: Path) -> None:
    _project(tmp_path, ["billing", "orders", "shipping"])

    assert _actions(tmp_path, max_suggestions=2) == [
        ("billing", SuggestionAction.CREATE_ROOT),
        ("orders", SuggestionAction.CREATE_ROOT),
    ]
    assert len(_actions(tmp_path, max_suggestions=0)) == 3


def test_missing_manifest_is_not_an_error(tmp_path: Path) -> None:
    assert analyze_project(tmp_path) == ()


def test_unknown_component_raises(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])

    with pytest.raises(ResolutionError, match="'payments' not found"):
        analyze_project(tmp_path, component_id="payments")


def test_single_component_filter(tmp_path: Path) -> None:
    _project(tmp_path, ["billing", "orders"])

    states = analyze_project(tmp_path, component_id="orders")

    assert [state.component_id for state in states] == ["orders"]


def test_manifest_base_dir_overrides_the_components_dir(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"], base_dir="services")
    _make_root(tmp_path, "orders", "services")

    (state,) = analyze_project(tmp_path)

    assert state.has_implementation_root
    assert state.implementation_root == tmp_path / "services" / "orders"


def test_missing_blueprint_file_is_a_state(tmp_path: Path) -> None:
    state = analyze_component("ghost", "architecture/ghost/architecture.json", tmp_path)

    assert state.has_blueprint is False
    assert generate_suggestions((state,)) == ()


def test_settings_from_config_sections() -> None:
    settings = WorkflowSettings.from_config(
        {"paths": {"components_dir": "src/components", "specs_dir": "specs"}, "workflow": {"max_concurrency": 2}}
    )

    assert settings == WorkflowSettings(components_dir="src/components", specs_dir="specs", max_concurrency=2)
    assert WorkflowSettings.from_config({}) == WorkflowSettings()


def test_undecodable_spec_suggests_planning(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])
    _make_root(tmp_path, "orders")
    spec_path = _write_spec(tmp_path, "orders", "")
    spec_path.write_bytes(b"# x\n\xff\xfe bad bytes\n")

    (state,) = analyze_project(tmp_path)
    (suggestion,) = generate_suggestions((state,))

    assert state.capabilities[0].status_label == "template"
    assert suggestion.action is SuggestionAction.PLAN_CAPABILITY


def test_negative_max_suggestions_is_rejected(tmp_path: Path) -> None:
    _project(tmp_path, ["orders"])

    with pytest.raises(ValueError, match="max_suggestions must be >= 0"):
        generate_suggestions(analyze_project(tmp_path), max_suggestions=-1)

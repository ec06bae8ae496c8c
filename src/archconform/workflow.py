"""
archconform — authoring workflow engine

File: src/archconform/workflow.py
Last updated: 2026-10-17

Purpose
- Derive each component's lifecycle state from the filesystem and emit a globally ordered
  list of next steps.

What should be included in this file
- ``CapabilitySpecState`` / ``ComponentWorkflowState`` value types.
- ``analyze_component`` and ``analyze_project`` (bounded concurrent fan-out).
- ``component_suggestions`` and ``generate_suggestions``.

Functional requirements
- A component with a blueprint but no implementation root yields exactly one suggestion.
- Missing blueprints, roots and specs are states, never errors.
- Ordering: progress score desc, then action priority asc, then component id.

Non-functional requirements
- State is recomputed on every run; nothing is persisted.
- Only existence checks and status reads touch the filesystem.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from functools import partial
from pathlib import Path

from archconform.blueprint.model import parse_blueprint
from archconform.blueprint.system import ComponentEntry, load_system_manifest
from archconform.constants import (
    COMPONENTS_DIR,
    PRIORITY_CREATE_ROOT,
    PRIORITY_GENERATE_SPECS,
    PRIORITY_IMPLEMENT_CAPABILITY,
    PRIORITY_PLAN_CAPABILITY,
    PROGRESS_WEIGHT_PLANNED,
    PROGRESS_WEIGHT_ROOT,
    PROGRESS_WEIGHT_TEMPLATE,
    SPECS_DIR,
)
from archconform.diagrams import slugify
from archconform.errors import ResolutionError
from archconform.specs import SpecStatus, read_spec_status, spec_filename
from archconform.utils.concurrency import run_blocking_fanout

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class SuggestionAction(StrEnum):
    CREATE_ROOT = "create_root"
    GENERATE_SPECS = "generate_specs"
    PLAN_CAPABILITY = "plan_capability"
    IMPLEMENT_CAPABILITY = "implement_capability"


@dataclass(frozen=True, slots=True)
class WorkflowSettings:
    """Project layout and fan-out knobs for workflow analysis."""

    components_dir: str = COMPONENTS_DIR.as_posix()
    specs_dir: str = SPECS_DIR.as_posix()
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    command_name: str = "archconform"

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> WorkflowSettings:
        paths = config.get("paths", {})
        workflow = config.get("workflow", {})
        if not isinstance(paths, Mapping):
            paths = {}
        if not isinstance(workflow, Mapping):
            workflow = {}
        max_concurrency = workflow.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
        return cls(
            components_dir=str(paths.get("components_dir", COMPONENTS_DIR.as_posix())),
            specs_dir=str(paths.get("specs_dir", SPECS_DIR.as_posix())),
            max_concurrency=max_concurrency if isinstance(max_concurrency, int) else DEFAULT_MAX_CONCURRENCY,
        )


@dataclass(frozen=True, slots=True)
class CapabilitySpecState:
    capability_name: str
    slug: str
    spec_exists: bool
    spec_path: Path | None = None
    status: SpecStatus | None = None

    @property
    def status_label(self) -> str:
        return self.status.value if self.status is not None else "none"

    def to_dict(self) -> dict[str, object]:
        return {
            "capability_name": self.capability_name,
            "slug": self.slug,
            "spec_exists": self.spec_exists,
            "spec_path": self.spec_path.as_posix() if self.spec_path is not None else None,
            "status": self.status_label,
        }


@dataclass(frozen=True, slots=True)
class ComponentWorkflowState:
    component_id: str
    blueprint_path: Path | None
    has_blueprint: bool
    has_implementation_root: bool
    capabilities: tuple[CapabilitySpecState, ...] = ()
    implementation_root: Path | None = field(default=None, compare=False)

    @property
    def progress_score(self) -> int:
        """Higher means further along; finishing in-flight components comes first."""

        score = 0
        if any(item.status is SpecStatus.PLANNED for item in self.capabilities):
            score += PROGRESS_WEIGHT_PLANNED
        if any(item.status is SpecStatus.TEMPLATE for item in self.capabilities):
            score += PROGRESS_WEIGHT_TEMPLATE
        if self.has_implementation_root:
            score += PROGRESS_WEIGHT_ROOT
        return score

    def to_dict(self) -> dict[str, object]:
        return {
            "component_id": self.component_id,
            "blueprint_path": self.blueprint_path.as_posix() if self.blueprint_path is not None else None,
            "has_blueprint": self.has_blueprint,
            "has_implementation_root": self.has_implementation_root,
            "progress_score": self.progress_score,
            "capabilities": [item.to_dict() for item in self.capabilities],
        }


@dataclass(frozen=True, slots=True)
class WorkflowSuggestion:
    component_id: str
    priority: int
    action: SuggestionAction
    message: str
    command: str | None = None
    spec_path: Path | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "component_id": self.component_id,
            "priority": self.priority,
            "action": self.action.value,
            "message": self.message,
            "command": self.command,
            "spec_path": self.spec_path.as_posix() if self.spec_path is not None else None,
        }


def analyze_component(
    component_id: str,
    blueprint_path: str | Path | None,
    project_root: str | Path,
    settings: WorkflowSettings | None = None,
) -> ComponentWorkflowState:
    """Lifecycle state of one component, from existence checks and status reads only."""

    active = settings or WorkflowSettings()
    root = Path(project_root)
    implementation_root = root / active.components_dir / component_id

    resolved_blueprint = None
    if blueprint_path is not None:
        candidate = Path(blueprint_path)
        resolved_blueprint = candidate if candidate.is_absolute() else root / candidate

    if resolved_blueprint is None or not resolved_blueprint.is_file():
        return ComponentWorkflowState(
            component_id=component_id,
            blueprint_path=resolved_blueprint,
            has_blueprint=False,
            has_implementation_root=False,
            implementation_root=implementation_root,
        )

    blueprint = parse_blueprint(resolved_blueprint)
    specs_dir = root / active.specs_dir / component_id
    capabilities: list[CapabilitySpecState] = []
    for capability in blueprint.capabilities:
        spec_path = specs_dir / spec_filename(capability.name)
        status = read_spec_status(spec_path)
        capabilities.append(
            CapabilitySpecState(
                capability_name=capability.name,
                slug=slugify(capability.name),
                spec_exists=status is not None,
                spec_path=spec_path if status is not None else None,
                status=status,
            )
        )

    return ComponentWorkflowState(
        component_id=component_id,
        blueprint_path=resolved_blueprint,
        has_blueprint=True,
        has_implementation_root=implementation_root.is_dir(),
        capabilities=tuple(capabilities),
        implementation_root=implementation_root,
    )


def analyze_project(
    project_root: str | Path,
    settings: WorkflowSettings | None = None,
    component_id: str | None = None,
    max_concurrency: int | None = None,
) -> tuple[ComponentWorkflowState, ...]:
    """Analyze every manifest component concurrently; results are ordered by component id."""

    root = Path(project_root)
    active = settings or WorkflowSettings()
    try:
        manifest = load_system_manifest(root)
    except ResolutionError:
        logger.info("no project manifest under %s; nothing to analyze", root)
        return ()

    if manifest.base_dir:
        active = replace(active, components_dir=manifest.base_dir)

    entries: Iterable[ComponentEntry] = manifest.components
    if component_id is not None:
        entry = manifest.component(component_id)
        if entry is None:
            raise ResolutionError(component_id, f"component {component_id!r} not found in {manifest.path}")
        entries = (entry,)

    analyze = partial(_analyze_entry, project_root=root, settings=active)
    states = run_blocking_fanout(
        analyze, list(entries), max_concurrency=max_concurrency or active.max_concurrency
    )
    logger.debug("analyzed %d component(s) under %s", len(states), root)
    return tuple(sorted(states, key=lambda state: state.component_id))


def component_suggestions(
    state: ComponentWorkflowState, settings: WorkflowSettings | None = None
) -> tuple[WorkflowSuggestion, ...]:
    active = settings or WorkflowSettings()
    if not state.has_blueprint:
        return ()

    component = state.component_id
    if not state.has_implementation_root:
        return (
            WorkflowSuggestion(
                component_id=component,
                priority=PRIORITY_CREATE_ROOT,
                action=SuggestionAction.CREATE_ROOT,
                message=f"Create implementation root for {component}",
                command=f"mkdir -p {active.components_dir}/{component}",
            ),
        )

    suggestions: list[WorkflowSuggestion] = []
    missing = [item for item in state.capabilities if not item.spec_exists]
    if missing:
        noun = "capability" if len(missing) == 1 else "capabilities"
        suggestions.append(
            WorkflowSuggestion(
                component_id=component,
                priority=PRIORITY_GENERATE_SPECS,
                action=SuggestionAction.GENERATE_SPECS,
                message=f"Generate spec templates for {component} ({len(missing)} {noun})",
                command=f"{active.command_name} spec {component}",
            )
        )

    for item in state.capabilities:
        if item.status is SpecStatus.TEMPLATE:
            suggestions.append(
                WorkflowSuggestion(
                    component_id=component,
                    priority=PRIORITY_PLAN_CAPABILITY,
                    action=SuggestionAction.PLAN_CAPABILITY,
                    message=f"Complete planning for {item.capability_name}",
                    command=f"$EDITOR {item.spec_path.as_posix()}" if item.spec_path else None,
                    spec_path=item.spec_path,
                )
            )

    for item in state.capabilities:
        if item.status is SpecStatus.PLANNED:
            # Manual step: no command.
            suggestions.append(
                WorkflowSuggestion(
                    component_id=component,
                    priority=PRIORITY_IMPLEMENT_CAPABILITY,
                    action=SuggestionAction.IMPLEMENT_CAPABILITY,
                    message=f"Implement {item.capability_name}",
                    spec_path=item.spec_path,
                )
            )
    return tuple(suggestions)


def generate_suggestions(
    states: Iterable[ComponentWorkflowState],
    max_suggestions: int | None = None,
    settings: WorkflowSettings | None = None,
) -> tuple[WorkflowSuggestion, ...]:
    """Suggestions across components; ``max_suggestions`` of ``None`` or ``0`` is unbounded."""

    if max_suggestions is not None and max_suggestions < 0:
        raise ValueError(f"max_suggestions must be >= 0, got {max_suggestions}")

    ordered_states = tuple(states)
    scores = {state.component_id: state.progress_score for state in ordered_states}
    suggestions = [
        suggestion
        for state in ordered_states
        for suggestion in component_suggestions(state, settings)
    ]
    suggestions.sort(
        key=lambda item: (-scores.get(item.component_id, 0), item.priority, item.component_id)
    )
    if max_suggestions:
        return tuple(suggestions[:max_suggestions])
    return tuple(suggestions)


def _analyze_entry(
    entry: ComponentEntry, *, project_root: Path, settings: WorkflowSettings
) -> ComponentWorkflowState:
    return analyze_component(entry.id, entry.architecture_file, project_root, settings)


__all__ = [
    "CapabilitySpecState",
    "ComponentWorkflowState",
    "SuggestionAction",
    "WorkflowSettings",
    "WorkflowSuggestion",
    "analyze_component",
    "analyze_project",
    "component_suggestions",
    "generate_suggestions",
]

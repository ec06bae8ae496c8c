"""Command-line interface router for archconform.

File: src/archconform/ui/cli.py
Last updated: 2026-10-17

Purpose
- Route ``archconform <verb>`` to blueprint validation, conformance checking, diagram
  and spec generation, workflow suggestions and config inspection.

What should be included in this file
- ``build_parser`` with a shared parent parser for config/profile/logging/output flags.
- One ``_cmd_*`` handler per verb, each supporting ``--json``.
- ``run_cli`` returning a process exit code.

Functional requirements
- Input problems (bad blueprint, unknown component, bad config) exit with 2.
- Conformance failures exit with 1; warnings alone exit with 0.
- JSON output is deterministic (sorted keys, compact separators).
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from archconform import __version__
from archconform.blueprint import (
    Blueprint,
    derive_component_id,
    find_project_root,
    load_system_manifest,
    parse_blueprint,
    project_root_for_blueprint,
    resolve_blueprint_path,
)
from archconform.config import (
    ConfigLoadError,
    ConfigValidationError,
    load_config,
    resolve_config_path,
)
from archconform.constants import BLUEPRINT_SUFFIXES
from archconform.conformance import ConformanceChecker
from archconform.contracts import load_container
from archconform.diagrams import write_diagrams
from archconform.discovery import load_component_modules
from archconform.errors import ArchConformError, BlueprintError, ResolutionError
from archconform.observability import correlation_scope, setup_logging_from_config
from archconform.specs import write_capability_specs
from archconform.ui.render import CLIRenderer, create_renderer
from archconform.utils import WriteOutcome
from archconform.workflow import (
    WorkflowSettings,
    analyze_project,
    generate_suggestions,
)

PROG: Final[str] = "archconform"
DIAGRAM_DOCUMENT_SUFFIX: Final[str] = "_architecture.md"


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class _Target:
    """A resolved component: blueprint file, parsed model, id and project root."""

    component_id: str
    blueprint_path: Path
    blueprint: Blueprint
    project_root: Path


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "archconform — keep component code, blueprints and specs in sync.\n\n"
            "Common workflows:\n"
            "  archconform validate orders       Parse a blueprint and list open references\n"
            "  archconform check orders          Check implementation against the blueprint\n"
            "  archconform diagram orders        Regenerate Mermaid diagrams\n"
            "  archconform spec orders           Scaffold capability specs\n"
            "  archconform next                  Suggest what to work on next\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project-root",
        default=None,
        help="Project root holding architecture/system.json (default: discovered from cwd).",
    )
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to archconform TOML config (default: nearest archconform.toml if present).",
    )
    common.add_argument(
        "--profile",
        default=None,
        help="Config profile overlay name (built in: strict, permissive).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        help="Override observability.log_level (DEBUG, INFO, WARNING, ...).",
    )
    common.add_argument(
        "--log-format",
        choices=("text", "json"),
        default=None,
        help="Override observability.log_format.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    common.add_argument("--json", action="store_true", help="Emit deterministic JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Parse a blueprint and report unresolved capability references",
        description=(
            "Load a blueprint by component id or path and validate its structure.\n"
            "Unresolved capability references are listed as open questions.\n\n"
            "Examples:\n"
            "  archconform validate orders\n"
            "  archconform validate architecture/orders/architecture.json --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument("target", help="Component id or blueprint path")
    validate_parser.set_defaults(handler=_cmd_validate)

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Check an implementation root against its blueprint",
        description=(
            "Import the component's implementation root, discover its classes and run the\n"
            "conformance checks. Wiring checks run when a dependency container is supplied.\n\n"
            "Examples:\n"
            "  archconform check orders\n"
            "  archconform check orders --permissive\n"
            "  archconform check orders --root components/orders --container orders.container:build\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    check_parser.add_argument("target", help="Component id or blueprint path")
    check_parser.add_argument(
        "--root",
        default=None,
        help="Implementation root package directory (default: <components_dir>/<id>)",
    )
    check_parser.add_argument(
        "--container",
        default=None,
        metavar="MODULE:ATTR",
        help="Dependency container reference (default: conformance.container)",
    )
    check_parser.add_argument(
        "--permissive",
        action="store_true",
        default=False,
        help="Report blueprint elements without code as warnings instead of failures",
    )
    check_parser.set_defaults(handler=_cmd_check)

    # diagram -------------------------------------------------------------
    diagram_parser = subparsers.add_parser(
        "diagram",
        parents=[common],
        help="Generate the Mermaid diagram document for a component",
        description=(
            "Write <diagrams_dir>/<id>_architecture.md with a context diagram and one\n"
            "flow diagram per capability.\n\n"
            "Examples:\n"
            "  archconform diagram orders\n"
            "  archconform diagram orders --sources\n"
            "  archconform diagram orders --output /tmp/orders.md\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    diagram_parser.add_argument("target", help="Component id or blueprint path")
    diagram_parser.add_argument("--output", default=None, help="Output Markdown path")
    diagram_parser.add_argument(
        "--sources",
        action="store_true",
        default=False,
        help="Also write raw .mmd sources next to the document (src/)",
    )
    diagram_parser.set_defaults(handler=_cmd_diagram)

    # spec ----------------------------------------------------------------
    spec_parser = subparsers.add_parser(
        "spec",
        parents=[common],
        help="Scaffold one spec document per capability",
        description=(
            "Write <specs_dir>/<id>/<capability>.spec.md templates. Existing documents are\n"
            "kept unless --overwrite is given.\n\n"
            "Examples:\n"
            "  archconform spec orders\n"
            "  archconform spec orders --overwrite\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    spec_parser.add_argument("target", help="Component id or blueprint path")
    spec_parser.add_argument("--output-dir", default=None, help="Directory for spec documents")
    spec_parser.add_argument(
        "--overwrite",
        action="store_true",
        default=False,
        help="Replace existing spec documents (resets their status to template)",
    )
    spec_parser.set_defaults(handler=_cmd_spec)

    # next ----------------------------------------------------------------
    next_parser = subparsers.add_parser(
        "next",
        parents=[common],
        help="Suggest the next workflow steps across components",
        description=(
            "Inspect every component in architecture/system.json and list suggested next\n"
            "steps, most advanced component first.\n\n"
            "Examples:\n"
            "  archconform next\n"
            "  archconform next --component orders\n"
            "  archconform next --max 5 --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    next_parser.add_argument("--component", default=None, help="Only analyze this component id")
    next_parser.add_argument(
        "--max",
        dest="max_suggestions",
        type=int,
        default=None,
        help="Maximum number of suggestions (default: workflow.max_suggestions, 0 = all)",
    )
    next_parser.set_defaults(handler=_cmd_next)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
        description=(
            "Display the effective config after merging defaults, file, env, and profile.\n\n"
            "Examples:\n"
            "  archconform config\n"
            "  archconform config --json\n"
            "  archconform config --profile permissive\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    _load_effective_config(args)
    target = _resolve_target(args)
    blueprint = target.blueprint
    unresolved = blueprint.unresolved_references()

    payload: dict[str, object] = {
        "command": "validate",
        "component": target.component_id,
        "blueprint_path": _display_path(target.blueprint_path, target.project_root),
        "name": blueprint.name,
        "profile": blueprint.profile,
        "counts": _blueprint_counts(blueprint),
        "unresolved_references": [item.describe() for item in unresolved],
    }
    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.verdict(target.component_id, True, "blueprint is valid")
    renderer.kv("Blueprint", payload["blueprint_path"])
    renderer.kv("Name", blueprint.name)
    renderer.kv("Profile", blueprint.profile)
    renderer.table(
        ("Section", "Count"),
        [(key, str(value)) for key, value in _blueprint_counts(blueprint).items()],
        title="Contents:",
    )
    if unresolved:
        renderer.section(f"Open questions ({len(unresolved)}):")
        for item in unresolved:
            renderer.warning(item.describe())
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if _flag(args, "permissive"):
        overrides["conformance.permit_unimplemented"] = True
    config = _load_effective_config(args, overrides)
    target = _resolve_target(args)
    checker = ConformanceChecker.from_config(config)

    root_arg = _optional_str(getattr(args, "root", None))
    implementation_root = (
        _resolve_optional_path(root_arg, Path.cwd())
        if root_arg is not None
        else _components_root(config, target.project_root) / target.component_id
    )
    container_ref = _optional_str(getattr(args, "container", None)) or _optional_str(
        _config_value(config, ("conformance", "container"))
    )

    with correlation_scope(component_id=target.component_id):
        try:
            load_component_modules(implementation_root)
            container = load_container(container_ref) if container_ref else None
            report = checker.check_root(
                target.blueprint,
                implementation_root,
                container=container,
                component_id=target.component_id,
            )
        except ResolutionError as exc:
            raise CLIError(str(exc), exit_code=2) from exc

    if _flag(args, "json"):
        payload: dict[str, object] = {"command": "check", **report.to_dict()}
        payload["implementation_root"] = _display_path(implementation_root, target.project_root)
        payload["wiring_checked"] = container_ref is not None
        _emit_json(payload)
        return 0 if report.passed else 1

    renderer = _get_renderer(args)
    renderer.verdict(
        report.component,
        report.passed,
        f"({len(report.failures)} failure(s), {len(report.warnings)} warning(s))",
    )
    renderer.kv("Implementation root", _display_path(implementation_root, target.project_root))
    renderer.kv("Mode", "permissive" if report.permit_unimplemented else "strict")
    if container_ref is None:
        renderer.text("Wiring checks skipped (no dependency container configured)")
    for finding in report.failures:
        renderer.fail(f"[{finding.category.value}] {finding.message}")
        if finding.location:
            renderer.detail(finding.location)
    for finding in report.warnings:
        renderer.warning(f"[{finding.category.value}] {finding.message}")
    if not report.passed:
        renderer.next_steps([f"{PROG} spec {target.component_id}", f"{PROG} next"])
    return 0 if report.passed else 1


def _cmd_diagram(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    target = _resolve_target(args)

    output_arg = _optional_str(getattr(args, "output", None))
    output_path = (
        _resolve_optional_path(output_arg, Path.cwd())
        if output_arg is not None
        else _config_path(config, "diagrams_dir", target.project_root)
        / f"{target.component_id}{DIAGRAM_DOCUMENT_SUFFIX}"
    )

    with correlation_scope(component_id=target.component_id):
        try:
            written = write_diagrams(
                target.blueprint,
                target.component_id,
                _display_path(target.blueprint_path, target.project_root),
                output_path,
                write_sources=_flag(args, "sources"),
            )
        except OSError as exc:
            raise CLIError(f"unable to write diagrams: {exc}", exit_code=2) from exc

    files = _outcome_payload(written, target.project_root)
    if _flag(args, "json"):
        _emit_json({"command": "diagram", "component": target.component_id, "files": files})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"Diagrams for {target.component_id}")
    renderer.table(("Outcome", "Path"), [(item["outcome"], item["path"]) for item in files])
    return 0


def _cmd_spec(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    target = _resolve_target(args)

    output_arg = _optional_str(getattr(args, "output_dir", None))
    output_dir = (
        _resolve_optional_path(output_arg, Path.cwd())
        if output_arg is not None
        else _config_path(config, "specs_dir", target.project_root) / target.component_id
    )

    with correlation_scope(component_id=target.component_id):
        try:
            written = write_capability_specs(
                target.blueprint,
                _display_path(target.blueprint_path, target.project_root),
                output_dir,
                overwrite=_flag(args, "overwrite"),
                component_id=target.component_id,
            )
        except OSError as exc:
            raise CLIError(f"unable to write specs: {exc}", exit_code=2) from exc

    files = _outcome_payload(written, target.project_root)
    if _flag(args, "json"):
        _emit_json({"command": "spec", "component": target.component_id, "files": files})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"Capability specs for {target.component_id}")
    if not files:
        renderer.text("Blueprint declares no capabilities; nothing to write.")
        return 0
    renderer.table(("Outcome", "Path"), [(item["outcome"], item["path"]) for item in files])
    if any(item["outcome"] == WriteOutcome.KEPT.value for item in files):
        renderer.text("Existing specs were kept; pass --overwrite to regenerate them.")
    renderer.next_steps([f"{PROG} next --component {target.component_id}"])
    return 0


def _cmd_next(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    project_root = _project_root(args)
    settings = WorkflowSettings.from_config(config)
    component = _optional_str(getattr(args, "component", None))

    raw_max = getattr(args, "max_suggestions", None)
    if raw_max is None:
        raw_max = _config_value(config, ("workflow", "max_suggestions"))
    max_suggestions = _non_negative_int(raw_max)

    try:
        states = analyze_project(project_root, settings, component_id=component)
    except (BlueprintError, ResolutionError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    suggestions = generate_suggestions(states, max_suggestions or None, settings)

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "next",
                "project_root": project_root.as_posix(),
                "components": [state.to_dict() for state in states],
                "suggestions": [item.to_dict() for item in suggestions],
            }
        )
        return 0

    renderer = _get_renderer(args)
    if not states:
        renderer.text(f"No components found under {project_root}")
        return 0

    rows = []
    for state in states:
        statuses = [item.status_label for item in state.capabilities]
        rows.append(
            (
                state.component_id,
                "yes" if state.has_blueprint else "no",
                "yes" if state.has_implementation_root else "no",
                _status_summary(statuses),
                str(state.progress_score),
            )
        )
    renderer.table(
        ("Component", "Blueprint", "Root", "Specs", "Score"), rows, title="Components:"
    )

    if not suggestions:
        renderer.section("Nothing to suggest; every capability is implemented.")
        return 0
    renderer.section("Suggested next steps:")
    for index, suggestion in enumerate(suggestions, start=1):
        renderer.text(f"  {index}. [{suggestion.component_id}] {suggestion.message}")
        if suggestion.command:
            renderer.text(f"     $ {suggestion.command}")
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    profile = _optional_str(getattr(args, "profile", None))

    payload: dict[str, object] = {
        "command": "config",
        "active_profile": profile,
        "config": config,
    }

    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Active profile", profile or "(default)")
    renderer.text(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Helpers: output
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _blueprint_counts(blueprint: Blueprint) -> dict[str, int]:
    layers = blueprint.layers
    return {
        "aggregates": len(layers.domain.aggregates),
        "events": len(layers.domain.events),
        "ports": len(layers.domain.port_names),
        "services": len(layers.application.services),
        "capabilities": len(blueprint.capabilities),
        "adapters": len(layers.infrastructure.adapters),
        "external_systems": len(blueprint.external_systems),
    }


def _outcome_payload(written: Mapping[Path, WriteOutcome], project_root: Path) -> list[dict[str, str]]:
    return [
        {"path": _display_path(path, project_root), "outcome": outcome.value}
        for path, outcome in sorted(written.items(), key=lambda item: item[0].as_posix())
    ]


def _status_summary(statuses: Sequence[str]) -> str:
    if not statuses:
        return "-"
    counts: dict[str, int] = {}
    for status in statuses:
        counts[status] = counts.get(status, 0) + 1
    return ", ".join(f"{counts[key]} {key}" for key in sorted(counts))


def _display_path(path: Path, project_root: Path) -> str:
    resolved = path.resolve()
    try:
        return resolved.relative_to(project_root.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()


# ---------------------------------------------------------------------------
# Helpers: config / resolution
# ---------------------------------------------------------------------------


def _load_effective_config(
    args: argparse.Namespace, overrides: Mapping[str, object] | None = None
) -> dict[str, object]:
    config_path = _optional_str(getattr(args, "config_path", None))
    profile = _optional_str(getattr(args, "profile", None))

    cli_overrides: dict[str, object] = dict(overrides or {})
    log_level = _optional_str(getattr(args, "log_level", None))
    if log_level is not None:
        cli_overrides["observability.log_level"] = log_level.upper()
    log_format = _optional_str(getattr(args, "log_format", None))
    if log_format is not None:
        cli_overrides["observability.log_format"] = log_format

    try:
        loaded = load_config(
            config_path,
            profile=profile,
            cli_overrides=cli_overrides,
            search_from=_search_base(args),
        )
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    setup_logging_from_config(loaded)
    return {key: value for key, value in loaded.items()}


def _search_base(args: argparse.Namespace) -> Path:
    raw = _optional_str(getattr(args, "project_root", None))
    if raw is None:
        return Path.cwd()
    candidate = Path(raw).expanduser().resolve()
    if not candidate.is_dir():
        raise CLIError(f"project root is not a directory: {candidate}", exit_code=2)
    return candidate


def _project_root(args: argparse.Namespace) -> Path:
    base = _search_base(args)
    if _optional_str(getattr(args, "project_root", None)) is not None:
        return base
    discovered = find_project_root(base)
    if discovered is None:
        raise CLIError(
            f"could not find architecture/system.json at or above {base}; "
            "run from the project root or pass --project-root",
            exit_code=2,
        )
    return discovered


def _resolve_target(args: argparse.Namespace) -> _Target:
    target = _require_str(getattr(args, "target", None), "target")
    base = _search_base(args)
    try:
        blueprint_path = resolve_blueprint_path(target, cwd=base)
        blueprint = parse_blueprint(blueprint_path)
    except ArchConformError as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    is_path = target.lower().endswith(BLUEPRINT_SUFFIXES)
    component_id = derive_component_id(blueprint_path) if is_path else target

    if _optional_str(getattr(args, "project_root", None)) is not None:
        project_root = base
    else:
        project_root = find_project_root(blueprint_path.parent) or project_root_for_blueprint(
            blueprint_path
        )
    return _Target(
        component_id=component_id,
        blueprint_path=blueprint_path,
        blueprint=blueprint,
        project_root=project_root,
    )


def _components_root(config: Mapping[str, object], project_root: Path) -> Path:
    try:
        manifest = load_system_manifest(project_root)
    except ArchConformError:
        return _config_path(config, "components_dir", project_root)
    if manifest.base_dir:
        return manifest.components_root()
    return _config_path(config, "components_dir", project_root)


def _config_path(config: Mapping[str, object], key: str, project_root: Path) -> Path:
    try:
        return resolve_config_path(config, key, project_root)
    except ConfigLoadError as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _config_value(config: Mapping[str, object], path: Sequence[str]) -> object:
    current: object = config
    for part in path:
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _resolve_optional_path(path_arg: str, base: Path) -> Path:
    candidate = Path(path_arg).expanduser()
    return candidate.resolve() if candidate.is_absolute() else (base / candidate).resolve()


# ---------------------------------------------------------------------------
# Helpers: argument parsing
# ---------------------------------------------------------------------------


def _require_str(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise CLIError(f"invalid {name}: expected string", exit_code=2)
    cleaned = value.strip()
    if not cleaned:
        raise CLIError(f"invalid {name}: value cannot be empty", exit_code=2)
    return cleaned


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument", exit_code=2)
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


def _non_negative_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


__all__ = ["CLIError", "build_parser", "run_cli"]

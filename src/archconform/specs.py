"""
archconform — capability spec scaffolding

File: src/archconform/specs.py
Last updated: 2026-10-17

Purpose
- Render one Markdown specification skeleton per blueprint capability.
- Read the status marker the workflow engine keys on.

What should be included in this file
- ``render_capability_spec`` with the fixed section set.
- ``spec_filename``, ``parse_spec_status``, ``read_spec_status``.
- ``write_capability_specs`` writing every capability document atomically.

Functional requirements
- Each document carries exactly one ``**Status:** template`` marker.
- Aggregates resolve transitively through orchestrated services; emitted events without a
  definition are still listed with a ``(definition not found)`` annotation.
- Existing documents are kept on re-generation unless overwriting is requested, so a
  hand-edited status survives.

Non-functional requirements
- Rendering is deterministic (no timestamps).
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum
from pathlib import Path
from typing import Final

from archconform.blueprint.model import Blueprint, Capability
from archconform.constants import SPEC_SUFFIX
from archconform.diagrams import capability_diagram, slugify
from archconform.utils.fs import WriteOutcome, write_generated

logger = logging.getLogger(__name__)

DEFINITION_NOT_FOUND: Final[str] = "(definition not found)"
_STATUS_MARKER = re.compile(
    r"\*\*Status:?\*\*:?\s*(template|planned|implemented)\b", re.IGNORECASE
)


class SpecStatus(StrEnum):
    TEMPLATE = "template"
    PLANNED = "planned"
    IMPLEMENTED = "implemented"


def spec_filename(capability_name: str) -> str:
    return f"{slugify(capability_name)}{SPEC_SUFFIX}"


def parse_spec_status(text: str) -> SpecStatus:
    """First status marker in ``text``; documents without one count as ``template``."""

    matches = _STATUS_MARKER.findall(text)
    if not matches:
        return SpecStatus.TEMPLATE
    if len(matches) > 1:
        logger.warning(
            "spec declares %d status markers; using the first",
            len(matches),
            extra={"statuses": [item.lower() for item in matches]},
        )
    return SpecStatus(matches[0].lower())


def read_spec_status(path: str | Path) -> SpecStatus | None:
    """Status of the spec at ``path``, or ``None`` when no document exists."""

    spec_path = Path(path)
    if not spec_path.is_file():
        return None
    try:
        text = spec_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(
            "spec %s is unreadable; treating it as a template",
            spec_path,
            extra={"reason": f"{type(exc).__name__}: {exc}"},
        )
        return SpecStatus.TEMPLATE
    return parse_spec_status(text)


def render_capability_spec(
    blueprint: Blueprint,
    capability: Capability,
    *,
    source_path: str | Path,
    diagram_source: str | None = None,
    component_id: str | None = None,
) -> str:
    component = component_id or blueprint.name
    if diagram_source is None:
        diagram_source = capability_diagram(blueprint, capability, component).source

    lines: list[str] = []
    lines.extend(_header(blueprint, capability, source_path))
    lines.extend(_overview(capability))
    lines.extend(_acceptance_criteria())
    lines.extend(_error_handling())
    lines.extend(_domain_state(blueprint, capability))
    lines.extend(_data_model())
    lines.extend(_contracts())
    lines.extend(_architecture(blueprint, capability, diagram_source))
    lines.extend(_closing())
    return "\n".join(lines)


def write_capability_specs(
    blueprint: Blueprint,
    blueprint_path: str | Path,
    output_dir: str | Path,
    overwrite: bool = False,
    *,
    component_id: str | None = None,
) -> dict[Path, WriteOutcome]:
    """Write one spec per capability under ``output_dir``."""

    directory = Path(output_dir)
    outcomes: dict[Path, WriteOutcome] = {}
    for capability in blueprint.capabilities:
        target = directory / spec_filename(capability.name)
        document = render_capability_spec(
            blueprint,
            capability,
            source_path=blueprint_path,
            component_id=component_id,
        )
        outcomes[target] = write_generated(target, document, overwrite=overwrite)
        logger.debug("spec %s: %s", target, outcomes[target].value)
    return outcomes


def _header(blueprint: Blueprint, capability: Capability, source_path: str | Path) -> list[str]:
    return [
        f"# {capability.name} — Capability Spec",
        "",
        f"**Component:** {blueprint.name}",
        f"**Status:** {SpecStatus.TEMPLATE.value}",
        f"**Source:** `{Path(source_path).as_posix()}`",
        "",
        "<!--",
        "Status values:",
        "  - template: generated skeleton, planning not started",
        "  - planned: sections below completed, ready for implementation",
        "  - implemented: implementation complete",
        "Change only the value of the status marker above; keep exactly one marker.",
        "-->",
        "",
        "---",
        "",
    ]


def _overview(capability: Capability) -> list[str]:
    return [
        "## Overview",
        "",
        f"**Actors:** {_joined(capability.actors)}",
        f"**Entrypoints:** {_joined(capability.entrypoints)}",
        f"**Outputs:** {_joined(capability.outputs)}",
        "",
        "---",
        "",
    ]


def _acceptance_criteria() -> list[str]:
    return [
        "## Acceptance Criteria",
        "",
        "<!-- Use EARS notation for testable requirements -->",
        "<!-- WHEN <trigger> THE SYSTEM SHALL <response> -->",
        "<!-- WHILE <state> THE SYSTEM SHALL <response> -->",
        "<!-- IF <condition> THEN THE SYSTEM SHALL <response> -->",
        "",
        "- [ ] WHEN ... THE SYSTEM SHALL ...",
        "- [ ] WHEN ... THE SYSTEM SHALL ...",
        "- [ ] WHEN ... THE SYSTEM SHALL ...",
        "",
        "---",
        "",
    ]


def _error_handling() -> list[str]:
    return [
        "## Error Handling",
        "",
        "<!-- Define error scenarios using EARS IF/THEN notation -->",
        "",
        "- [ ] IF ... THEN THE SYSTEM SHALL ...",
        "- [ ] IF ... THEN THE SYSTEM SHALL ...",
        "",
        "---",
        "",
    ]


def _domain_state(blueprint: Blueprint, capability: Capability) -> list[str]:
    lines = ["## Domain State & Data", "", "### Aggregates involved", ""]

    aggregates = blueprint.aggregates_for(capability)
    if not aggregates:
        lines.extend(["_No specific aggregates identified in architecture._", ""])
    for aggregate in aggregates:
        lines.extend([f"#### {aggregate.name}", f"> {aggregate.description or 'No description'}", ""])
        if aggregate.key_attributes:
            lines.append("**Key Attributes:**")
            lines.extend(f"- `{attribute}`" for attribute in aggregate.key_attributes)
            lines.append("")
        if aggregate.invariants:
            lines.append("**Invariants:**")
            lines.extend(f"- {invariant}" for invariant in aggregate.invariants)
            lines.append("")
        if aggregate.lifecycle:
            lines.extend([f"**Lifecycle:** {' -> '.join(aggregate.lifecycle)}", ""])

    if capability.emits:
        lines.extend(["### Domain Events Emitted", ""])
        for event_name in capability.emits:
            event = blueprint.event(event_name)
            if event is None:
                lines.append(f"- {event_name} {DEFINITION_NOT_FOUND}")
                continue
            lines.extend([f"#### {event.name}", f"> {event.description or 'No description'}", ""])
            if event.payload_intent:
                lines.append("**Payload Intent:**")
                lines.extend(f"- `{item}`" for item in event.payload_intent)
                lines.append("")
        lines.append("")

    lines.extend(["---", ""])
    return lines


def _data_model() -> list[str]:
    return [
        "## Data Model",
        "",
        "<!-- Map the aggregate attributes above to a persistence schema -->",
        "<!-- Only model tables owned by this component -->",
        "",
        "### Schema",
        "",
        "| Table | Column | Type | Constraints |",
        "|-------|--------|------|-------------|",
        "| ...   | ...    | ...  | ...         |",
        "",
        "### Relationships",
        "",
        "<!-- Foreign keys, join tables and cross-aggregate references -->",
        "",
        "### Indexes",
        "",
        "<!-- Indexes for query optimization -->",
        "",
        "---",
        "",
    ]


def _contracts() -> list[str]:
    return [
        "## Request/Response Contracts",
        "",
        "<!-- Define API payloads and event DTOs -->",
        "",
        "### Request",
        "",
        "```json",
        "{",
        "  ...",
        "}",
        "```",
        "",
        "### Response",
        "",
        "```json",
        "{",
        "  ...",
        "}",
        "```",
        "",
        "---",
        "",
    ]


def _architecture(blueprint: Blueprint, capability: Capability, diagram_source: str) -> list[str]:
    lines = [
        "## Architecture",
        "",
        "### Capability Flow Diagram",
        "",
        "```mermaid",
        diagram_source,
        "```",
        "",
        "### Application Layer",
        "",
        "**Services:**",
    ]
    lines.extend(f"- {name}" for name in capability.orchestrates)
    lines.extend(["", "### Domain Layer", ""])

    for aggregate in blueprint.aggregates_for(capability):
        lines.append(f"**Aggregate:** {aggregate.name}")
        if aggregate.invariants:
            lines.extend(["", "**Invariants:**"])
            lines.extend(f"- {invariant}" for invariant in aggregate.invariants)
        if aggregate.lifecycle:
            lines.extend(["", f"**Lifecycle:** {' -> '.join(aggregate.lifecycle)}"])
        lines.append("")

    if capability.emits:
        lines.append("**Events Emitted:**")
        lines.extend(f"- {name}" for name in capability.emits)
        lines.append("")

    lines.extend(["### Infrastructure Layer", "", "**Ports Used:**"])
    lines.extend(f"- {port}" for port in capability.uses_ports)
    lines.append("")

    adapters = [
        f"{adapter.name} → {port}"
        for port in capability.uses_ports
        for adapter in blueprint.adapters_for_port(port)
    ]
    if adapters:
        lines.append("**Adapters:**")
        lines.extend(f"- {item}" for item in adapters)
        lines.append("")

    lines.extend(["---", ""])
    return lines


def _closing() -> list[str]:
    return [
        "## Implementation Notes (Optional)",
        "",
        "<!-- Implementation-specific notes, constraints or considerations -->",
        "",
        "---",
        "",
        "## Post-Implementation Checklist",
        "",
        "Once implementation is complete:",
        "",
        "- [ ] All acceptance criteria pass",
        "- [ ] Error handling scenarios covered by tests",
        "- [ ] `archconform check` passes for this component",
        "- [ ] Status marker at the top of this file changed from `planned` to `implemented`",
        "",
    ]


def _joined(values: tuple[str, ...]) -> str:
    return ", ".join(values) if values else "N/A"


__all__ = [
    "DEFINITION_NOT_FOUND",
    "SpecStatus",
    "parse_spec_status",
    "read_spec_status",
    "render_capability_spec",
    "spec_filename",
    "write_capability_specs",
]

"""
archconform — Mermaid diagram synthesis

File: src/archconform/diagrams.py
Last updated: 2026-10-17

Purpose
- Render a blueprint as Mermaid flowchart text: one context diagram per component and one
  flow diagram per capability.
- Wrap the diagrams in a Markdown document.

What should be included in this file
- ``slugify`` and ``wrap_text`` label helpers.
- ``context_diagram``, ``capability_diagram``, ``all_diagrams``.
- ``render_diagram_document`` and ``write_diagrams`` (atomic writes).
- ``DiagramRenderer`` protocol for image rendering, which lives outside this package.

Functional requirements
- Output is a pure function of the blueprint: no timestamps, no random ids.
- Filenames are ``<id>_context`` and ``<id>_capability_<slug>``.

Non-functional requirements
- Labels never contain double quotes or raw newlines.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol

from archconform.blueprint.model import Adapter, Blueprint, Capability, ExternalSystem
from archconform.utils.fs import WriteOutcome, write_generated

logger = logging.getLogger(__name__)

LINE_BREAK: Final[str] = "<br/>"
SEPARATOR: Final[str] = "─────"
DEFAULT_EVENT_SINK: Final[str] = "Event Bus"
CONTEXT_TITLE: Final[str] = "System Context"

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DATABASE_HINTS: Final[tuple[str, ...]] = ("postgres", "db")


@dataclass(frozen=True, slots=True)
class Diagram:
    filename: str
    title: str
    source: str


class DiagramRenderer(Protocol):
    """Turns Mermaid source into an image file."""

    def render(self, source: str, output_path: Path, fmt: str) -> None: ...


def slugify(text: str) -> str:
    """``"PlaceOrder"`` -> ``"place_order"``; ``"Cancel an order!"`` -> ``"cancel_an_order"``."""

    spaced = _CAMEL_BOUNDARY.sub(r"\1_\2", text)
    return _NON_ALNUM.sub("_", spaced.lower()).strip("_")


def wrap_text(text: str, width: int = 30) -> str:
    """Greedy word wrap joined with ``<br/>``; single long words are kept whole."""

    lines: list[str] = []
    current = ""
    for word in text.split(" "):
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if current and len(candidate) > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return LINE_BREAK.join(lines)


def context_diagram(blueprint: Blueprint, component_id: str) -> Diagram:
    lines = ["flowchart TB"]

    if blueprint.actors:
        lines.append("    subgraph Actors")
        for actor in blueprint.actors:
            lines.append(f"        {_node_id('actor', actor.name)}[{_label(actor.name)}]")
        lines.append("    end")

    component_label = blueprint.name
    if blueprint.description:
        component_label += f"{LINE_BREAK}{SEPARATOR}{LINE_BREAK}{wrap_text(blueprint.description, 40)}"
    lines.append(f'    BC["{_label(component_label)}"]')

    for actor in blueprint.actors:
        edge = wrap_text(actor.description, 20) if actor.description else ""
        lines.append(f'    {_node_id("actor", actor.name)} -->|"{_label(edge)}"| BC')

    relationships = blueprint.relationships
    neighbors = relationships.neighbors()
    if neighbors:
        lines.append('    subgraph Downstream["Neighboring BCs"]')
        for neighbor in neighbors:
            lines.append(f"        {_node_id('bc', neighbor)}[{_label(_neighbor_label(neighbor))}]")
        lines.append("    end")
        for relation in relationships.publishes_to:
            events = LINE_BREAK.join(relation.events)
            lines.append(f'    BC -->|"{_label(events)}"| {_node_id("bc", relation.target_component)}')
        for consumer in relationships.consumed_by:
            lines.append(f'    BC -.->|"consumed by"| {_node_id("bc", consumer.target_component)}')

    if blueprint.external_systems:
        lines.append('    subgraph External["External Systems"]')
        for system in blueprint.external_systems:
            label = system.name
            if system.providers:
                label += f"{LINE_BREAK}{', '.join(system.providers)}"
            system_id = _node_id("ext", system.name)
            if system.type == "database":
                lines.append(f'        {system_id}[("{_label(label)}")]')
            else:
                lines.append(f"        {system_id}[{_label(label)}]")
            lines.append(f"    BC --> {system_id}")
        lines.append("    end")

    return Diagram(filename=f"{component_id}_context", title=CONTEXT_TITLE, source="\n".join(lines))


def capability_diagram(blueprint: Blueprint, capability: Capability, component_id: str) -> Diagram:
    lines = ["flowchart TB"]
    for actor in capability.actors:
        lines.append(f'    {_node_id("actor", actor)}["{_label(actor)}"]')

    filename = f"{component_id}_capability_{slugify(capability.name)}"
    if not capability.entrypoints:
        return Diagram(filename=filename, title=capability.name, source="\n".join(lines))

    entrypoint = capability.entrypoints[0]
    controller, _, action = entrypoint.partition("#")
    if capability.actors:
        declared = blueprint.http_entrypoint(controller)
        if declared is not None and declared.routes:
            route = ", ".join(declared.routes)
        else:
            route = action or entrypoint
        lines.append(f'    {_node_id("actor", capability.actors[0])} -->|"{_label(route)}"| Controller')
    lines.append(f'    Controller["{_label(entrypoint)}"]')

    if not capability.orchestrates:
        return Diagram(filename=filename, title=capability.name, source="\n".join(lines))

    target = capability.orchestrates[0]
    lines.append("    Controller -->|invokes| Service")
    lines.append(f'    Service["{_label(target)}"]')

    for index, port in enumerate(capability.uses_ports):
        lines.append(f'    Service -->|uses port| Port{index}["{_label(port)}{LINE_BREAK}(port)"]')
        adapters = blueprint.adapters_for_port(port)
        if not adapters:
            continue
        adapter = adapters[0]
        lines.append(f'    Port{index} -.->|impl| Adapter{index}["{_label(adapter.name)}"]')
        lines.extend(_adapter_target(blueprint, adapter, f"Adapter{index}"))

    service = blueprint.service(target)
    aggregate_name = service.orchestrates if service is not None else target
    aggregate = blueprint.aggregate(aggregate_name) if aggregate_name else None
    if aggregate is not None:
        lines.append(f'    Service -->|orchestrates| Aggregate["{_label(aggregate.name + " Aggregate")}"]')
        for index, event_name in enumerate(capability.emits):
            event = blueprint.event(event_name)
            label = event_name
            if event is not None and event.payload_intent:
                label += f"{LINE_BREAK}{SEPARATOR}{LINE_BREAK}{LINE_BREAK.join(event.payload_intent)}"
            lines.append(f'    Aggregate -->|emits| Event{index}["{_label(label)}"]')
            sink = event_sink(blueprint, event_name)
            lines.append(f"    Event{index} --> {_node_id('ext', sink)}[{_label(sink)}]")

    return Diagram(filename=filename, title=capability.name, source="\n".join(lines))


def all_diagrams(blueprint: Blueprint, component_id: str) -> tuple[Diagram, ...]:
    return (
        context_diagram(blueprint, component_id),
        *(capability_diagram(blueprint, capability, component_id) for capability in blueprint.capabilities),
    )


def event_sink(blueprint: Blueprint, event_name: str) -> str:
    """Transport that carries ``event_name`` to a neighbor, or the generic event bus."""

    for relation in blueprint.relationships.publishes_to:
        if event_name in relation.events and relation.transport:
            return relation.transport
    return DEFAULT_EVENT_SINK


def render_diagram_document(
    blueprint: Blueprint,
    component_id: str,
    diagrams: Sequence[Diagram],
    source_path: str | Path,
    image_format: str | None = None,
) -> str:
    """Markdown document embedding every diagram as a raw Mermaid block."""

    lines = [
        f"# {blueprint.name} Architecture Diagrams",
        "",
        f"> Generated from `{Path(source_path).as_posix()}`. "
        f"Regenerate with `archconform diagram {component_id}`.",
        "",
        f"**Component:** `{component_id}`  ",
        f"**Profile:** {blueprint.profile}",
        "",
    ]

    context = [item for item in diagrams if item.filename == f"{component_id}_context"]
    capabilities = [item for item in diagrams if item not in context]

    for diagram in context:
        lines.extend([f"## {diagram.title}", ""])
        if blueprint.description:
            lines.extend([blueprint.description, ""])
        lines.extend(_diagram_block(diagram, image_format))

    if capabilities:
        lines.extend(["## Capabilities", ""])
        for diagram in capabilities:
            lines.extend([f"### {diagram.title}", ""])
            capability = blueprint.capability(diagram.title)
            if capability is not None and capability.actors:
                lines.extend([f"Actors: {', '.join(capability.actors)}", ""])
            lines.extend(_diagram_block(diagram, image_format))

    return "\n".join(lines).rstrip("\n") + "\n"


def write_diagrams(
    blueprint: Blueprint,
    component_id: str,
    source_path: str | Path,
    output_path: str | Path,
    *,
    write_sources: bool = False,
    renderer: DiagramRenderer | None = None,
    image_format: str | None = None,
) -> dict[Path, WriteOutcome]:
    """Write the diagram document (and optionally ``.mmd`` sources and images)."""

    document_path = Path(output_path)
    diagrams = all_diagrams(blueprint, component_id)
    written: dict[Path, WriteOutcome] = {}

    if write_sources:
        source_dir = document_path.parent / "src"
        for diagram in diagrams:
            target = source_dir / f"{diagram.filename}.mmd"
            written[target] = write_generated(target, diagram.source + "\n", overwrite=True)

    effective_format = image_format if renderer is not None else None
    if renderer is not None and image_format is not None:
        images_dir = document_path.parent / "images"
        images_dir.mkdir(parents=True, exist_ok=True)
        for diagram in diagrams:
            logger.debug("rendering %s", diagram.filename)
            renderer.render(diagram.source, images_dir / f"{diagram.filename}.{image_format}", image_format)

    document = render_diagram_document(
        blueprint, component_id, diagrams, source_path, image_format=effective_format
    )
    written[document_path] = write_generated(document_path, document, overwrite=True)
    logger.info(
        "diagrams written",
        extra={"component": component_id, "diagrams": len(diagrams), "path": str(document_path)},
    )
    return written


def _diagram_block(diagram: Diagram, image_format: str | None) -> list[str]:
    block = ["```mermaid", diagram.source, "```", ""]
    if image_format:
        block.extend([f"![{diagram.title}](images/{diagram.filename}.{image_format})", ""])
    return block


def _adapter_target(blueprint: Blueprint, adapter: Adapter, adapter_id: str) -> list[str]:
    if adapter.persistence:
        database = _database_system(blueprint.external_systems)
        if database is None:
            return [f'    {adapter_id} --> DB[("(Database)")]']
        return [f'    {adapter_id} --> {_node_id("ext", database.name)}[("{_label(database.name)}")]']
    system = _external_system_for(blueprint.external_systems, adapter)
    if system is None:
        return []
    return [f'    {adapter_id} --> {_node_id("ext", system.name)}["{_label(system.name)}"]']


def _database_system(systems: Sequence[ExternalSystem]) -> ExternalSystem | None:
    for system in systems:
        description = (system.description or "").lower()
        name = system.name.lower()
        if system.type == "database" or "persistence" in description:
            return system
        if any(hint in name for hint in _DATABASE_HINTS):
            return system
    return None


def _external_system_for(systems: Sequence[ExternalSystem], adapter: Adapter) -> ExternalSystem | None:
    for system in systems:
        if adapter.technology and adapter.technology in system.name:
            return system
        if any(provider in adapter.name for provider in system.providers):
            return system
    return None


def _neighbor_label(component: str) -> str:
    return f"{component[:1].upper()}{component[1:]} BC"


def _node_id(role: str, name: str) -> str:
    # Fixed ids (BC, Controller, Service, Port0, ...) never contain an underscore.
    return f"{role}_{slugify(name) or 'node'}"


def _label(text: str) -> str:
    return text.replace('"', "'").replace("\r\n", LINE_BREAK).replace("\n", LINE_BREAK)


__all__ = [
    "CONTEXT_TITLE",
    "DEFAULT_EVENT_SINK",
    "Diagram",
    "DiagramRenderer",
    "all_diagrams",
    "capability_diagram",
    "context_diagram",
    "event_sink",
    "render_diagram_document",
    "slugify",
    "wrap_text",
    "write_diagrams",
]

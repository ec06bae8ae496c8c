"""
archconform — blueprint model

File: src/archconform/blueprint/model.py
Last updated: 2026-10-17

Purpose
- Typed, immutable representation of a component blueprint document.

What should be included in this file
- Frozen dataclasses for every blueprint section.
- JSON/YAML loading with strict shape validation.
- Lookup helpers and per-kind name sets used by conformance and generators.
- Detection of capability references that do not resolve to a declared element.

Functional requirements
- Missing ``name``, ``profile`` or ``layers`` raise ``SchemaViolation`` naming the field.
- Wrong container types raise ``SchemaViolation`` naming the dotted path.
- Syntactically invalid documents raise ``BlueprintParseError``; missing files raise
  ``ResolutionError``. No partial blueprints are ever returned.

Non-functional requirements
- Deterministic: the same document always yields an equal model.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

import yaml

from archconform.errors import BlueprintParseError, ResolutionError, SchemaViolation
from archconform.kinds import ComponentKind

BLUEPRINT_FILE_STEM: Final[str] = "architecture"
_JSON_SUFFIXES: Final[frozenset[str]] = frozenset({".json"})
_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_REQUIRED_FIELDS: Final[tuple[str, ...]] = ("name", "profile", "layers")


@dataclass(frozen=True, slots=True)
class NamedItem:
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class Scope:
    in_scope: tuple[str, ...] = ()
    out_of_scope: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Actor:
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class PublishRelation:
    target_component: str
    transport: str | None = None
    events: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ConsumeRelation:
    target_component: str
    purpose: str | None = None


@dataclass(frozen=True, slots=True)
class Relationships:
    publishes_to: tuple[PublishRelation, ...] = ()
    consumed_by: tuple[ConsumeRelation, ...] = ()

    def neighbors(self) -> tuple[str, ...]:
        """Neighbor component ids in first-seen order."""

        seen: dict[str, None] = {}
        for relation in self.publishes_to:
            seen.setdefault(relation.target_component, None)
        for consumer in self.consumed_by:
            seen.setdefault(consumer.target_component, None)
        return tuple(seen)


@dataclass(frozen=True, slots=True)
class Aggregate:
    name: str
    description: str | None = None
    entity: str | None = None
    key_attributes: tuple[str, ...] = ()
    invariants: tuple[str, ...] = ()
    lifecycle: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Event:
    name: str
    description: str | None = None
    payload_intent: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DomainLayer:
    aggregates: tuple[Aggregate, ...] = ()
    events: tuple[Event, ...] = ()
    repositories: tuple[str, ...] = ()
    external_ports: tuple[NamedItem, ...] = ()

    @property
    def port_names(self) -> tuple[str, ...]:
        return (*self.repositories, *(port.name for port in self.external_ports))


@dataclass(frozen=True, slots=True)
class Service:
    name: str
    orchestrates: str | None = None
    uses_ports: tuple[str, ...] = ()
    publishes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Capability:
    name: str
    actors: tuple[str, ...] = ()
    entrypoints: tuple[str, ...] = ()
    orchestrates: tuple[str, ...] = ()
    uses_ports: tuple[str, ...] = ()
    emits: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ApplicationLayer:
    services: tuple[Service, ...] = ()
    capabilities: tuple[Capability, ...] = ()
    queries: tuple[NamedItem, ...] = ()
    commands: tuple[NamedItem, ...] = ()


@dataclass(frozen=True, slots=True)
class Adapter:
    name: str
    implements: str
    technology: str | None = None
    pending: bool = False
    persistence: bool = False


@dataclass(frozen=True, slots=True)
class HttpEntrypointDecl:
    name: str
    routes: tuple[str, ...] = ()
    invokes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InfrastructureLayer:
    persistence_adapters: tuple[Adapter, ...] = ()
    external_adapters: tuple[Adapter, ...] = ()
    http_entrypoints: tuple[HttpEntrypointDecl, ...] = ()
    wiring: str | None = None

    @property
    def adapters(self) -> tuple[Adapter, ...]:
        return (*self.persistence_adapters, *self.external_adapters)


@dataclass(frozen=True, slots=True)
class Layers:
    domain: DomainLayer = field(default_factory=DomainLayer)
    application: ApplicationLayer = field(default_factory=ApplicationLayer)
    infrastructure: InfrastructureLayer = field(default_factory=InfrastructureLayer)


@dataclass(frozen=True, slots=True)
class ExternalSystem:
    name: str
    type: str | None = None
    purpose: str | None = None
    description: str | None = None
    providers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UnresolvedReference:
    """A capability reference with no matching declaration."""

    capability: str
    field: str
    name: str

    def describe(self) -> str:
        return f"capability {self.capability!r} {self.field} unknown name {self.name!r}"


@dataclass(frozen=True, slots=True)
class Blueprint:
    """Declarative description of one bounded component."""

    name: str
    profile: str
    layers: Layers
    description: str | None = None
    scope: Scope = field(default_factory=Scope)
    actors: tuple[Actor, ...] = ()
    relationships: Relationships = field(default_factory=Relationships)
    external_systems: tuple[ExternalSystem, ...] = ()
    source: Path | None = field(default=None, compare=False)

    @property
    def capabilities(self) -> tuple[Capability, ...]:
        return self.layers.application.capabilities

    def aggregate(self, name: str) -> Aggregate | None:
        return next((item for item in self.layers.domain.aggregates if item.name == name), None)

    def event(self, name: str) -> Event | None:
        return next((item for item in self.layers.domain.events if item.name == name), None)

    def service(self, name: str) -> Service | None:
        return next((item for item in self.layers.application.services if item.name == name), None)

    def capability(self, name: str) -> Capability | None:
        return next((item for item in self.capabilities if item.name == name), None)

    def http_entrypoint(self, name: str) -> HttpEntrypointDecl | None:
        entrypoints = self.layers.infrastructure.http_entrypoints
        return next((item for item in entrypoints if item.name == name), None)

    def adapters_for_port(self, port: str) -> tuple[Adapter, ...]:
        return tuple(
            adapter for adapter in self.layers.infrastructure.adapters if adapter.implements == port
        )

    def aggregates_for(self, capability: Capability) -> tuple[Aggregate, ...]:
        """Aggregates a capability touches, directly or through its services."""

        found: dict[str, Aggregate] = {}
        for reference in capability.orchestrates:
            direct = self.aggregate(reference)
            if direct is not None:
                found.setdefault(direct.name, direct)
                continue
            service = self.service(reference)
            if service is None or service.orchestrates is None:
                continue
            through_service = self.aggregate(service.orchestrates)
            if through_service is not None:
                found.setdefault(through_service.name, through_service)
        return tuple(found.values())

    def names_for(self, kind: ComponentKind) -> frozenset[str]:
        """Declared names of one component kind."""

        domain = self.layers.domain
        application = self.layers.application
        infrastructure = self.layers.infrastructure
        if kind is ComponentKind.AGGREGATE:
            return frozenset(item.name for item in domain.aggregates)
        if kind is ComponentKind.EVENT:
            return frozenset(item.name for item in domain.events)
        if kind is ComponentKind.PORT:
            return frozenset(domain.port_names)
        if kind is ComponentKind.SERVICE:
            return frozenset(item.name for item in application.services)
        if kind is ComponentKind.QUERY:
            return frozenset(item.name for item in application.queries)
        if kind is ComponentKind.COMMAND:
            return frozenset(item.name for item in application.commands)
        if kind is ComponentKind.ADAPTER:
            return frozenset(item.name for item in infrastructure.adapters)
        if kind is ComponentKind.CONTROLLER:
            return frozenset(item.name for item in infrastructure.http_entrypoints)
        return frozenset()

    def unresolved_references(self) -> tuple[UnresolvedReference, ...]:
        """Capability references that name no declared service, aggregate, port or event."""

        orchestratable = self.names_for(ComponentKind.SERVICE) | self.names_for(
            ComponentKind.AGGREGATE
        )
        ports = self.names_for(ComponentKind.PORT)
        events = self.names_for(ComponentKind.EVENT)

        unresolved: list[UnresolvedReference] = []
        for capability in self.capabilities:
            for field_name, names, known in (
                ("orchestrates", capability.orchestrates, orchestratable),
                ("uses_ports", capability.uses_ports, ports),
                ("emits", capability.emits, events),
            ):
                for name in names:
                    if name not in known:
                        unresolved.append(
                            UnresolvedReference(capability=capability.name, field=field_name, name=name)
                        )
        return tuple(unresolved)


def parse_blueprint(path: str | Path) -> Blueprint:
    """Load and validate a JSON or YAML blueprint document."""

    source = Path(path)
    if not source.is_file():
        raise ResolutionError(str(source), f"blueprint not found: {source}")
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResolutionError(str(source), f"unable to read blueprint {source}: {exc}") from exc

    payload = load_document(text, source)
    return blueprint_from_mapping(payload, source=source)


def load_document(text: str, source: Path) -> object:
    """Decode JSON or YAML text according to the file suffix."""

    suffix = source.suffix.lower()
    if suffix in _YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise BlueprintParseError(f"invalid YAML in {source}: {exc}") from exc
    if suffix in _JSON_SUFFIXES:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise BlueprintParseError(f"invalid JSON in {source}: {exc}") from exc
    raise BlueprintParseError(f"unsupported blueprint format {suffix or '(none)'!r}: {source}")


def blueprint_from_mapping(payload: object, *, source: Path | None = None) -> Blueprint:
    """Validate an in-memory document and build the model."""

    if not isinstance(payload, Mapping):
        raise SchemaViolation("<root>", f"expected object, got {type(payload).__name__}")
    for required in _REQUIRED_FIELDS:
        if payload.get(required) in (None, ""):
            raise SchemaViolation(required, "missing required field")

    name = _require_text(payload, "name", "")
    profile = _require_text(payload, "profile", "")
    layers_raw = _mapping(payload["layers"], "layers")

    scope_raw = _section(payload, "scope", "")
    relationships_raw = _section(payload, "relationships", "")

    return Blueprint(
        name=name,
        profile=profile,
        description=_text(payload, "description", ""),
        scope=Scope(
            in_scope=_strings(scope_raw, "in", "scope"),
            out_of_scope=_strings(scope_raw, "out", "scope"),
        ),
        actors=tuple(
            Actor(name=_name(item, path), description=_text(item, "description", path))
            for item, path in _objects(payload, "actors", "")
        ),
        relationships=Relationships(
            publishes_to=tuple(
                PublishRelation(
                    target_component=_aliased_text(item, ("target_component", "bc"), path),
                    transport=_aliased_text(item, ("transport", "via"), path, required=False),
                    events=_strings(item, "events", path),
                )
                for item, path in _objects(relationships_raw, "publishes_to", "relationships")
            ),
            consumed_by=tuple(
                ConsumeRelation(
                    target_component=_aliased_text(item, ("target_component", "bc"), path),
                    purpose=_text(item, "purpose", path),
                )
                for item, path in _objects(relationships_raw, "consumed_by", "relationships")
            ),
        ),
        layers=Layers(
            domain=_domain_layer(_section(layers_raw, "domain", "layers"), "layers.domain"),
            application=_application_layer(
                _section(layers_raw, "application", "layers"), "layers.application"
            ),
            infrastructure=_infrastructure_layer(
                _section(layers_raw, "infrastructure", "layers"), "layers.infrastructure"
            ),
        ),
        external_systems=tuple(
            ExternalSystem(
                name=_name(item, path),
                type=_text(item, "type", path),
                purpose=_text(item, "purpose", path),
                description=_text(item, "description", path),
                providers=_strings(item, "providers", path),
            )
            for item, path in _objects(payload, "external_systems", "")
        ),
        source=source,
    )


def derive_component_id(path: str | Path) -> str:
    """Component id for a blueprint path.

    ``architecture/<id>/architecture.json`` yields ``<id>``; any other file yields its stem.
    """

    blueprint_path = Path(path)
    if blueprint_path.stem == BLUEPRINT_FILE_STEM and blueprint_path.parent.name:
        return blueprint_path.parent.name
    return blueprint_path.stem


def _domain_layer(payload: Mapping[str, object], path: str) -> DomainLayer:
    ports = _section(payload, "ports", path)
    ports_path = _join(path, "ports")
    return DomainLayer(
        aggregates=tuple(
            Aggregate(
                name=_name(item, item_path),
                description=_text(item, "description", item_path),
                entity=_text(item, "entity", item_path),
                key_attributes=_strings(item, "key_attributes", item_path),
                invariants=_strings(item, "invariants", item_path),
                lifecycle=_strings(item, "lifecycle", item_path),
            )
            for item, item_path in _objects(payload, "aggregates", path)
        ),
        events=tuple(
            Event(
                name=_name(item, item_path),
                description=_text(item, "description", item_path),
                payload_intent=_strings(item, "payload_intent", item_path),
            )
            for item, item_path in _objects(payload, "events", path)
        ),
        repositories=tuple(item.name for item in _named_items(ports, "repositories", ports_path)),
        external_ports=_named_items(ports, "external", ports_path),
    )


def _application_layer(payload: Mapping[str, object], path: str) -> ApplicationLayer:
    return ApplicationLayer(
        services=tuple(
            Service(
                name=_name(item, item_path),
                orchestrates=_text(item, "orchestrates", item_path),
                uses_ports=_strings(item, "uses_ports", item_path),
                publishes=_strings(item, "publishes", item_path),
            )
            for item, item_path in _objects(payload, "services", path)
        ),
        capabilities=tuple(
            Capability(
                name=_name(item, item_path),
                actors=_strings(item, "actors", item_path),
                entrypoints=_strings(item, "entrypoints", item_path),
                orchestrates=_strings(item, "orchestrates", item_path, allow_scalar=True),
                uses_ports=_strings(item, "uses_ports", item_path),
                emits=_strings(item, "emits", item_path),
                outputs=_strings(item, "outputs", item_path),
            )
            for item, item_path in _objects(payload, "capabilities", path)
        ),
        queries=_named_items(payload, "queries", path),
        commands=_named_items(payload, "commands", path),
    )


def _infrastructure_layer(payload: Mapping[str, object], path: str) -> InfrastructureLayer:
    adapters = _section(payload, "adapters", path)
    adapters_path = _join(path, "adapters")
    entrypoints = _section(payload, "entrypoints", path)
    entrypoints_path = _join(path, "entrypoints")
    return InfrastructureLayer(
        persistence_adapters=tuple(
            _adapter(item, item_path, persistence=True)
            for item, item_path in _objects(adapters, "persistence", adapters_path)
        ),
        external_adapters=tuple(
            _adapter(item, item_path, persistence=False)
            for item, item_path in _objects(adapters, "external", adapters_path)
        ),
        http_entrypoints=tuple(
            HttpEntrypointDecl(
                name=_name(item, item_path),
                routes=_strings(item, "routes", item_path, allow_scalar=True),
                invokes=_strings(item, "invokes", item_path, allow_scalar=True),
            )
            for item, item_path in _objects(entrypoints, "http", entrypoints_path)
        ),
        wiring=_text(payload, "wiring", path),
    )


def _adapter(payload: Mapping[str, object], path: str, *, persistence: bool) -> Adapter:
    pending = payload.get("pending", False)
    if not isinstance(pending, bool):
        raise SchemaViolation(_join(path, "pending"), f"expected boolean, got {type(pending).__name__}")
    return Adapter(
        name=_name(payload, path),
        implements=_require_text(payload, "implements", path),
        technology=_text(payload, "technology", path),
        pending=pending,
        persistence=persistence,
    )


def _named_items(payload: Mapping[str, object], key: str, path: str) -> tuple[NamedItem, ...]:
    items: list[NamedItem] = []
    for index, raw in enumerate(_list(payload, key, path)):
        item_path = f"{_join(path, key)}[{index}]"
        if isinstance(raw, str) and raw.strip():
            items.append(NamedItem(name=raw.strip()))
            continue
        item = _mapping(raw, item_path)
        items.append(NamedItem(name=_name(item, item_path), description=_text(item, "description", item_path)))
    return tuple(items)


def _objects(
    payload: Mapping[str, object], key: str, path: str
) -> list[tuple[Mapping[str, object], str]]:
    out: list[tuple[Mapping[str, object], str]] = []
    for index, raw in enumerate(_list(payload, key, path)):
        item_path = f"{_join(path, key)}[{index}]"
        out.append((_mapping(raw, item_path), item_path))
    return out


def _section(payload: Mapping[str, object], key: str, path: str) -> Mapping[str, object]:
    raw = payload.get(key)
    if raw is None:
        return {}
    return _mapping(raw, _join(path, key))


def _mapping(value: object, path: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise SchemaViolation(path, f"expected object, got {type(value).__name__}")
    return value


def _list(payload: Mapping[str, object], key: str, path: str) -> list[object]:
    raw = payload.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SchemaViolation(_join(path, key), f"expected list, got {type(raw).__name__}")
    return raw


def _name(payload: Mapping[str, object], path: str) -> str:
    return _require_text(payload, "name", path)


def _require_text(payload: Mapping[str, object], key: str, path: str) -> str:
    value = _text(payload, key, path, required=True)
    if value is None:
        raise SchemaViolation(_join(path, key), "missing required field")
    return value


def _aliased_text(
    payload: Mapping[str, object], keys: tuple[str, ...], path: str, *, required: bool = True
) -> str | None:
    """First of ``keys`` present in ``payload``; errors name the canonical (first) key."""

    for key in keys:
        if payload.get(key) is not None:
            return _require_text(payload, key, path) if required else _text(payload, key, path)
    if required:
        raise SchemaViolation(_join(path, keys[0]), "missing required field")
    return None


def _text(
    payload: Mapping[str, object], key: str, path: str, *, required: bool = False
) -> str | None:
    raw = payload.get(key)
    field_path = _join(path, key)
    if raw is None:
        if required:
            raise SchemaViolation(field_path, "missing required field")
        return None
    if not isinstance(raw, str):
        raise SchemaViolation(field_path, f"expected string, got {type(raw).__name__}")
    cleaned = raw.strip()
    if required and not cleaned:
        raise SchemaViolation(field_path, "must not be empty")
    return cleaned or None


def _strings(
    payload: Mapping[str, object], key: str, path: str, *, allow_scalar: bool = False
) -> tuple[str, ...]:
    raw = payload.get(key)
    field_path = _join(path, key)
    if raw is None:
        return ()
    if isinstance(raw, str):
        if allow_scalar:
            cleaned = raw.strip()
            return (cleaned,) if cleaned else ()
        raise SchemaViolation(field_path, "expected list, got str")
    if not isinstance(raw, list):
        raise SchemaViolation(field_path, f"expected list, got {type(raw).__name__}")
    values: list[str] = []
    for index, item in enumerate(raw):
        if not isinstance(item, str):
            raise SchemaViolation(f"{field_path}[{index}]", f"expected string, got {type(item).__name__}")
        cleaned = item.strip()
        if cleaned:
            values.append(cleaned)
    return tuple(values)


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


__all__ = [
    "Actor",
    "Adapter",
    "Aggregate",
    "ApplicationLayer",
    "BLUEPRINT_FILE_STEM",
    "Blueprint",
    "Capability",
    "ConsumeRelation",
    "DomainLayer",
    "Event",
    "ExternalSystem",
    "HttpEntrypointDecl",
    "InfrastructureLayer",
    "Layers",
    "NamedItem",
    "PublishRelation",
    "Relationships",
    "Scope",
    "Service",
    "UnresolvedReference",
    "blueprint_from_mapping",
    "derive_component_id",
    "load_document",
    "parse_blueprint",
]

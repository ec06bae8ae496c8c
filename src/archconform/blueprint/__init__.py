"""Blueprint model and project manifest public API."""

from archconform.blueprint.model import (
    Actor,
    Adapter,
    Aggregate,
    ApplicationLayer,
    Blueprint,
    Capability,
    ConsumeRelation,
    DomainLayer,
    Event,
    ExternalSystem,
    HttpEntrypointDecl,
    InfrastructureLayer,
    Layers,
    NamedItem,
    PublishRelation,
    Relationships,
    Scope,
    Service,
    UnresolvedReference,
    blueprint_from_mapping,
    derive_component_id,
    parse_blueprint,
)
from archconform.blueprint.system import (
    ComponentEntry,
    SystemManifest,
    find_project_root,
    load_system_manifest,
    project_root_for_blueprint,
    resolve_blueprint_path,
)

__all__ = [
    "Actor",
    "Adapter",
    "Aggregate",
    "ApplicationLayer",
    "Blueprint",
    "Capability",
    "ComponentEntry",
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
    "SystemManifest",
    "UnresolvedReference",
    "blueprint_from_mapping",
    "derive_component_id",
    "find_project_root",
    "load_system_manifest",
    "parse_blueprint",
    "project_root_for_blueprint",
    "resolve_blueprint_path",
]

"""
archconform — component discovery

File: src/archconform/discovery.py
Last updated: 2026-10-17

Purpose
- Enumerate the concrete implementation classes of one component, grouped by kind.

What should be included in this file
- ``BaseTypeRegistry`` mapping each component kind to its base contract.
- Module loading for an implementation root so the type graph is populated.
- Subclass-graph walk restricted to classes defined under the implementation root.

Functional requirements
- Secondary-port subclasses are split into ports (``domain`` path segment) and
  adapters (``infrastructure`` path segment).
- Import failures raise ``ResolutionError`` naming the module.
- A registry is built per invocation; nothing is cached at module level.

Non-functional requirements
- Output is sorted by (kind, name, location).
"""

from __future__ import annotations

import importlib
import inspect
import logging
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from archconform.contracts import (
    AggregateRoot,
    ApplicationService,
    Command,
    DomainEvent,
    Entity,
    HttpEntrypoint,
    Query,
    SecondaryPort,
    ValueObject,
)
from archconform.errors import ResolutionError
from archconform.kinds import ComponentKind

logger = logging.getLogger(__name__)

DOMAIN_SEGMENT: Final[str] = "domain"
INFRASTRUCTURE_SEGMENT: Final[str] = "infrastructure"
_SKIPPED_DIRS: Final[frozenset[str]] = frozenset({"__pycache__", "tests"})


@dataclass(frozen=True, slots=True)
class DiscoveredComponent:
    """A concrete class found under the implementation root."""

    name: str
    kind: ComponentKind
    source_location: str
    base_type_chain: tuple[str, ...]
    type_ref: type | None = field(default=None, compare=False, repr=False)

    @property
    def qualified_name(self) -> str:
        if self.type_ref is None:
            return self.name
        return qualified_name(self.type_ref)


@dataclass(frozen=True, slots=True)
class BaseTypeRegistry:
    """Base contract per component kind."""

    bases: Mapping[ComponentKind, type]

    @classmethod
    def default(cls) -> BaseTypeRegistry:
        return cls(
            bases={
                ComponentKind.AGGREGATE: AggregateRoot,
                ComponentKind.ENTITY: Entity,
                ComponentKind.VALUE_OBJECT: ValueObject,
                ComponentKind.EVENT: DomainEvent,
                ComponentKind.SERVICE: ApplicationService,
                ComponentKind.QUERY: Query,
                ComponentKind.COMMAND: Command,
                ComponentKind.PORT: SecondaryPort,
                ComponentKind.ADAPTER: SecondaryPort,
                ComponentKind.CONTROLLER: HttpEntrypoint,
            }
        )

    def base_for(self, kind: ComponentKind) -> type | None:
        return self.bases.get(kind)

    def kinds_by_base(self) -> dict[type, tuple[ComponentKind, ...]]:
        grouped: dict[type, list[ComponentKind]] = {}
        for kind in ComponentKind:
            base = self.bases.get(kind)
            if base is not None:
                grouped.setdefault(base, []).append(kind)
        return {base: tuple(kinds) for base, kinds in grouped.items()}


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def load_component_modules(root: str | Path) -> tuple[str, ...]:
    """Import every module under ``root`` and return their dotted names.

    ``root`` is imported as a top-level package; its parent directory is placed on
    ``sys.path`` when missing.
    """

    implementation_root = Path(root).resolve()
    if not implementation_root.is_dir():
        raise ResolutionError(str(implementation_root), f"implementation root not found: {implementation_root}")
    package = implementation_root.name
    if not package.isidentifier():
        raise ResolutionError(package, f"implementation root {package!r} is not an importable package name")

    parent = str(implementation_root.parent)
    if parent not in sys.path:
        sys.path.insert(0, parent)

    imported: list[str] = []
    for module_name in _module_names(implementation_root, package):
        try:
            importlib.import_module(module_name)
        except Exception as exc:  # noqa: BLE001 - any import-time failure is a resolution failure.
            raise ResolutionError(module_name, f"failed to import {module_name}: {exc}") from exc
        imported.append(module_name)
    logger.debug("imported %d module(s) from %s", len(imported), implementation_root)
    return tuple(imported)


def discover(
    root: str | Path, registry: BaseTypeRegistry | None = None
) -> tuple[DiscoveredComponent, ...]:
    """Concrete classes under ``root`` grouped by component kind."""

    implementation_root = Path(root).resolve()
    active_registry = registry or BaseTypeRegistry.default()

    found: dict[tuple[ComponentKind, str, str], DiscoveredComponent] = {}
    for base, kinds in active_registry.kinds_by_base().items():
        for cls in _iter_subclasses(base):
            location = _source_location(cls)
            if location is None or not location.is_relative_to(implementation_root):
                continue
            kind = _classify(cls, kinds, location.relative_to(implementation_root))
            if kind is None:
                continue
            component = DiscoveredComponent(
                name=cls.__name__,
                kind=kind,
                source_location=location.as_posix(),
                base_type_chain=tuple(qualified_name(item) for item in cls.__mro__[1:] if item is not object),
                type_ref=cls,
            )
            found.setdefault((kind, component.name, component.source_location), component)

    ordered = sorted(found.values(), key=lambda item: (item.kind.value, item.name, item.source_location))
    logger.debug("discovered %d component class(es) under %s", len(ordered), implementation_root)
    return tuple(ordered)


def _module_names(root: Path, package: str) -> Iterator[str]:
    for path in sorted(root.rglob("*.py")):
        relative = path.relative_to(root)
        if any(part in _SKIPPED_DIRS or part.startswith(".") for part in relative.parts[:-1]):
            continue
        parts = list(relative.with_suffix("").parts)
        if parts[-1] == "__init__":
            parts.pop()
        if not all(part.isidentifier() for part in parts):
            continue
        yield ".".join([package, *parts])


def _iter_subclasses(base: type) -> Iterator[type]:
    seen: set[type] = set()
    pending = list(base.__subclasses__())
    while pending:
        cls = pending.pop()
        if cls in seen:
            continue
        seen.add(cls)
        yield cls
        pending.extend(cls.__subclasses__())


def _source_location(cls: type) -> Path | None:
    try:
        source = inspect.getsourcefile(cls)
    except (TypeError, OSError):
        return None
    if source is None:
        return None
    return Path(source).resolve()


def _classify(
    cls: type, kinds: tuple[ComponentKind, ...], relative: Path
) -> ComponentKind | None:
    if ComponentKind.PORT not in kinds:
        return kinds[0]
    segments = set(relative.parts[:-1])
    if INFRASTRUCTURE_SEGMENT in segments:
        return ComponentKind.ADAPTER
    if DOMAIN_SEGMENT in segments:
        return ComponentKind.PORT
    return ComponentKind.PORT if inspect.isabstract(cls) else ComponentKind.ADAPTER


__all__ = [
    "BaseTypeRegistry",
    "DOMAIN_SEGMENT",
    "DiscoveredComponent",
    "INFRASTRUCTURE_SEGMENT",
    "discover",
    "load_component_modules",
    "qualified_name",
]

"""
archconform — conformance checks

File: src/archconform/conformance/checks.py
Last updated: 2026-10-17

Purpose
- Independent assertions over discovered components, blueprint sections and the
  dependency container. Each returns a tuple of ``ConformanceFinding``.

What should be included in this file
- Base-class contract and forbidden framework ancestry for domain types.
- Port/adapter coverage of abstract operations.
- Immutability of aggregates and value objects.
- Service dependency policy and entrypoint lookup-key allow-list.
- Bidirectional blueprint/code drift per component kind.

Functional requirements
- Code-only names always fail. Blueprint-only names fail in strict mode and warn when
  unimplemented elements are permitted.
- Drift findings carry both full name sets in the message and in ``details``.
- Checks never mutate their inputs.
"""

from __future__ import annotations

import decimal
import inspect
import logging
import types
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Final

from archconform.blueprint.model import Blueprint
from archconform.conformance.findings import Category, ConformanceFinding, Severity, make_details
from archconform.contracts import Container, SecondaryPort
from archconform.discovery import BaseTypeRegistry, DiscoveredComponent, qualified_name
from archconform.kinds import IMMUTABLE_KINDS, SYNCED_KINDS, ComponentKind
from archconform.scanner import DEFAULT_CONSTRUCTORS, DEFAULT_LOOKUP_CALLS, scan_file

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_SUFFIX: Final[str] = "_service"
DEFAULT_ALLOWED_KEY_SUFFIXES: Final[tuple[str, ...]] = ("_service", "_query")
DEFAULT_PERSISTENCE_MODULES: Final[tuple[str, ...]] = (
    "asyncpg",
    "django.db",
    "motor",
    "peewee",
    "psycopg",
    "psycopg2",
    "pymongo",
    "redis",
    "sqlalchemy",
    "sqlite3",
)
DEFAULT_FORBIDDEN_DOMAIN_MODULES: Final[tuple[str, ...]] = (
    "django",
    "fastapi",
    "flask",
    "peewee",
    "pydantic",
    "sqlalchemy",
)

_DOMAIN_KINDS: Final[frozenset[ComponentKind]] = frozenset(
    {
        ComponentKind.AGGREGATE,
        ComponentKind.ENTITY,
        ComponentKind.VALUE_OBJECT,
        ComponentKind.EVENT,
        ComponentKind.PORT,
    }
)
_PRIMITIVE_TYPES: Final[tuple[type, ...]] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    decimal.Decimal,
)
_CONTRACTS_MODULE_PREFIX: Final[str] = "archconform.contracts"


def check_base_classes(
    components: Iterable[DiscoveredComponent],
    registry: BaseTypeRegistry | None = None,
    *,
    forbidden_domain_modules: Sequence[str] = DEFAULT_FORBIDDEN_DOMAIN_MODULES,
) -> tuple[ConformanceFinding, ...]:
    """Each component inherits its kind's base contract; domain types stay framework-free."""

    active_registry = registry or BaseTypeRegistry.default()
    findings: list[ConformanceFinding] = []
    for component in components:
        base = active_registry.base_for(component.kind)
        if base is not None and qualified_name(base) not in component.base_type_chain:
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.BASE_CLASS,
                    subject_name=component.name,
                    kind=component.kind.value,
                    location=component.source_location,
                    message=(
                        f"{component.name} is a {component.kind.value} but does not inherit "
                        f"{qualified_name(base)}"
                    ),
                )
            )
        if component.kind not in _DOMAIN_KINDS:
            continue
        for ancestor in component.base_type_chain:
            prefix = _matching_prefix(ancestor, forbidden_domain_modules)
            if prefix is None:
                continue
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.BASE_CLASS,
                    subject_name=component.name,
                    kind=component.kind.value,
                    location=component.source_location,
                    message=(
                        f"domain type {component.name} inherits {ancestor} from framework "
                        f"module {prefix!r}"
                    ),
                )
            )
    return tuple(findings)


def check_port_implementations(
    components: Iterable[DiscoveredComponent],
) -> tuple[ConformanceFinding, ...]:
    """Every port has an adapter, and adapters define every abstract operation themselves."""

    items = tuple(components)
    ports = _typed(items, ComponentKind.PORT)
    adapters = _typed(items, ComponentKind.ADAPTER)

    findings: list[ConformanceFinding] = []
    for port, port_type in ports:
        implementers = [
            (adapter, adapter_type)
            for adapter, adapter_type in adapters
            if issubclass(adapter_type, port_type)
        ]
        if not implementers:
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.BASE_CLASS,
                    subject_name=port.name,
                    kind=ComponentKind.PORT.value,
                    location=port.source_location,
                    message=f"port {port.name} has no adapter implementing it",
                )
            )
            continue

        operations = sorted(getattr(port_type, "__abstractmethods__", frozenset()))
        for adapter, adapter_type in implementers:
            missing = [
                operation
                for operation in operations
                if not _defines_operation(adapter_type, port_type, operation)
            ]
            if not missing:
                continue
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.BASE_CLASS,
                    subject_name=adapter.name,
                    kind=ComponentKind.ADAPTER.value,
                    location=adapter.source_location,
                    message=(
                        f"adapter {adapter.name} does not implement {port.name} operations: "
                        f"{', '.join(missing)}"
                    ),
                    details=make_details({"required": operations, "missing": missing}),
                )
            )
    return tuple(findings)


def check_immutability(
    components: Iterable[DiscoveredComponent],
    constructors: Sequence[str] = DEFAULT_CONSTRUCTORS,
) -> tuple[ConformanceFinding, ...]:
    """Aggregates and value objects never reassign state after construction."""

    findings: list[ConformanceFinding] = []
    for component in components:
        if component.kind not in IMMUTABLE_KINDS:
            continue

        scan = scan_file(component.source_location, class_name=component.name, constructors=constructors)
        for site in scan.mutations:
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.IMMUTABILITY,
                    subject_name=component.name,
                    kind=component.kind.value,
                    location=f"{component.source_location}:{site.line}",
                    message=(
                        f"{component.name}.{site.method} "
                        f"{'deletes' if site.deletes else 'assigns'} self.{site.attribute} "
                        "outside the constructor"
                    ),
                )
            )

        if component.type_ref is None:
            continue
        for mutator in public_mutators(component.type_ref):
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.IMMUTABILITY,
                    subject_name=component.name,
                    kind=component.kind.value,
                    location=component.source_location,
                    message=f"{component.name} exposes a public mutator: {mutator}",
                )
            )
    return tuple(findings)


def public_mutators(cls: type) -> tuple[str, ...]:
    """Property setters, public ``set_*`` methods and attribute-hook overrides on ``cls``."""

    found: dict[str, None] = {}
    for klass in cls.__mro__:
        if klass is object or klass.__module__.startswith(_CONTRACTS_MODULE_PREFIX):
            continue
        frozen_dataclass = _is_frozen_dataclass(klass)
        for name, attribute in vars(klass).items():
            if isinstance(attribute, property) and attribute.fset is not None:
                found.setdefault(f"property setter {name}", None)
            elif name.startswith("set_") and callable(attribute):
                found.setdefault(f"method {name}", None)
            elif name in ("__setattr__", "__delattr__") and not frozen_dataclass:
                found.setdefault(f"override {name}", None)
    return tuple(found)


def check_service_dependencies(
    container: Container,
    *,
    service_suffix: str = DEFAULT_SERVICE_SUFFIX,
    persistence_modules: Sequence[str] = DEFAULT_PERSISTENCE_MODULES,
) -> tuple[ConformanceFinding, ...]:
    """Services hold only ports, primitives or ``None``; persistence engines are violations."""

    findings: list[ConformanceFinding] = []
    for key in container.keys():
        if not key.endswith(service_suffix):
            continue
        try:
            service = container.resolve(key)
        except Exception as exc:  # noqa: BLE001 - a failing factory is reported as a finding.
            logger.warning("service %s could not be resolved", key, exc_info=True)
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.WIRING,
                    subject_name=key,
                    kind=ComponentKind.SERVICE.value,
                    message=f"service {key!r} could not be resolved: {exc}",
                )
            )
            continue

        service_name = type(service).__name__
        for attribute, value in held_attributes(service):
            if isinstance(value, _PRIMITIVE_TYPES) or isinstance(value, SecondaryPort):
                continue
            module = _origin_module(value)
            prefix = _matching_prefix(module, persistence_modules)
            if prefix is not None:
                findings.append(
                    ConformanceFinding(
                        severity=Severity.FAIL,
                        category=Category.WIRING,
                        subject_name=service_name,
                        kind=ComponentKind.SERVICE.value,
                        message=(
                            f"service {service_name} ({key}) holds persistence dependency "
                            f"{attribute!r} of type {_type_label(value)}"
                        ),
                    )
                )
                continue
            findings.append(
                ConformanceFinding(
                    severity=Severity.WARN,
                    category=Category.WIRING,
                    subject_name=service_name,
                    kind=ComponentKind.SERVICE.value,
                    message=(
                        f"service {service_name} ({key}) holds {attribute!r} of type "
                        f"{_type_label(value)}, which is neither a port nor a primitive"
                    ),
                )
            )
    return tuple(findings)


def held_attributes(instance: object) -> tuple[tuple[str, Any], ...]:
    """Instance attributes from ``__dict__`` and ``__slots__``, sorted by name."""

    values: dict[str, Any] = {}
    instance_dict = getattr(instance, "__dict__", None)
    if isinstance(instance_dict, dict):
        values.update(instance_dict)
    for klass in type(instance).__mro__:
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__") or slot in values:
                continue
            if hasattr(instance, slot):
                values[slot] = getattr(instance, slot)
    return tuple(sorted(values.items()))


def allowed_lookup_keys(
    container_keys: Iterable[str], suffixes: Sequence[str] = DEFAULT_ALLOWED_KEY_SUFFIXES
) -> frozenset[str]:
    """Container keys an entrypoint may resolve."""

    return frozenset(key for key in container_keys if key.endswith(tuple(suffixes)))


def check_entrypoint_wiring(
    paths: Iterable[str | Path],
    allowed_keys: Iterable[str],
    *,
    call_names: Sequence[str] = DEFAULT_LOOKUP_CALLS,
) -> tuple[ConformanceFinding, ...]:
    """Entrypoints resolve only allow-listed keys; dynamic keys are warned about."""

    allowed = frozenset(allowed_keys)
    findings: list[ConformanceFinding] = []
    for path in paths:
        scan = scan_file(path, call_names=call_names)
        subject = Path(scan.path).stem
        for lookup in scan.lookups:
            location = f"{scan.path}:{lookup.line}"
            if not lookup.literal:
                findings.append(
                    ConformanceFinding(
                        severity=Severity.WARN,
                        category=Category.WIRING,
                        subject_name=subject,
                        kind=ComponentKind.CONTROLLER.value,
                        location=location,
                        message=f"dependency lookup with non-literal key {lookup.key or '(none)'}",
                    )
                )
                continue
            if lookup.key in allowed:
                continue
            findings.append(
                ConformanceFinding(
                    severity=Severity.FAIL,
                    category=Category.WIRING,
                    subject_name=subject,
                    kind=ComponentKind.CONTROLLER.value,
                    location=location,
                    message=(
                        f"entrypoint resolves {lookup.key!r}, which is not an allowed key "
                        f"(allowed: {_format_names(allowed)})"
                    ),
                    details=make_details({"allowed": sorted(allowed), "resolved": [lookup.key]}),
                )
            )
    return tuple(findings)


def check_drift(
    kind: ComponentKind | str,
    blueprint_names: Iterable[str],
    code_names: Iterable[str],
    *,
    permit_unimplemented: bool = False,
) -> tuple[ConformanceFinding, ...]:
    """Compare declared and implemented names of one component kind."""

    kind_label = str(kind)
    declared = frozenset(blueprint_names)
    implemented = frozenset(code_names)
    details = make_details({"blueprint": sorted(declared), "code": sorted(implemented)})
    sets_text = f"blueprint: {_format_names(declared)}; code: {_format_names(implemented)}"

    findings: list[ConformanceFinding] = []
    for name in sorted(implemented - declared):
        findings.append(
            ConformanceFinding(
                severity=Severity.FAIL,
                category=Category.DRIFT,
                subject_name=name,
                kind=kind_label,
                message=f"{kind_label} {name!r} exists in code but not in the blueprint ({sets_text})",
                details=details,
            )
        )
    blueprint_only_severity = Severity.WARN if permit_unimplemented else Severity.FAIL
    for name in sorted(declared - implemented):
        findings.append(
            ConformanceFinding(
                severity=blueprint_only_severity,
                category=Category.MISSING,
                subject_name=name,
                kind=kind_label,
                message=f"{kind_label} {name!r} is declared in the blueprint but not implemented ({sets_text})",
                details=details,
            )
        )
    return tuple(findings)


def check_blueprint_sync(
    blueprint: Blueprint,
    components: Iterable[DiscoveredComponent],
    *,
    permit_unimplemented: bool = False,
) -> tuple[ConformanceFinding, ...]:
    """Drift across aggregates, events, ports, services, adapters, controllers, queries, commands."""

    items = tuple(components)
    findings: list[ConformanceFinding] = []
    for kind in SYNCED_KINDS:
        code_names = {item.name for item in items if item.kind is kind}
        findings.extend(
            check_drift(
                kind,
                blueprint.names_for(kind),
                code_names,
                permit_unimplemented=permit_unimplemented,
            )
        )
    return tuple(findings)


def check_blueprint_references(blueprint: Blueprint) -> tuple[ConformanceFinding, ...]:
    """Unresolved capability references, reported as open questions."""

    return tuple(
        ConformanceFinding(
            severity=Severity.WARN,
            category=Category.MISSING,
            subject_name=reference.name,
            kind="capability",
            message=reference.describe(),
        )
        for reference in blueprint.unresolved_references()
    )


def _typed(
    components: Sequence[DiscoveredComponent], kind: ComponentKind
) -> list[tuple[DiscoveredComponent, type]]:
    return [
        (component, component.type_ref)
        for component in components
        if component.kind is kind and component.type_ref is not None
    ]


def _defines_operation(adapter: type, port: type, operation: str) -> bool:
    port_lineage = set(port.__mro__)
    for klass in adapter.__mro__:
        if klass in port_lineage:
            return False
        if operation not in vars(klass):
            continue
        return not getattr(vars(klass)[operation], "__isabstractmethod__", False)
    return False


def _is_frozen_dataclass(cls: type) -> bool:
    params = vars(cls).get("__dataclass_params__")
    return bool(params is not None and getattr(params, "frozen", False))


def _origin_module(value: object) -> str:
    if isinstance(value, types.ModuleType):
        return value.__name__
    if inspect.isclass(value):
        return value.__module__
    return type(value).__module__


def _matching_prefix(name: str, prefixes: Sequence[str]) -> str | None:
    for prefix in prefixes:
        if name == prefix or name.startswith(f"{prefix}."):
            return prefix
    return None


def _type_label(value: object) -> str:
    if isinstance(value, types.ModuleType):
        return f"module {value.__name__}"
    if inspect.isclass(value):
        return qualified_name(value)
    return qualified_name(type(value))


def _format_names(names: Iterable[str]) -> str:
    ordered = sorted(names)
    if not ordered:
        return "[]"
    return "[" + ", ".join(ordered) + "]"


__all__ = [
    "DEFAULT_ALLOWED_KEY_SUFFIXES",
    "DEFAULT_FORBIDDEN_DOMAIN_MODULES",
    "DEFAULT_PERSISTENCE_MODULES",
    "DEFAULT_SERVICE_SUFFIX",
    "allowed_lookup_keys",
    "check_base_classes",
    "check_blueprint_references",
    "check_blueprint_sync",
    "check_drift",
    "check_entrypoint_wiring",
    "check_immutability",
    "check_port_implementations",
    "held_attributes",
    "public_mutators",
]

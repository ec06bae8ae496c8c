"""
archconform — conformance checker and report

File: src/archconform/conformance/checker.py
Last updated: 2026-10-17

Purpose
- Run every conformance check for one component and aggregate the findings.
- Provide an assertion helper for pytest suites.

Functional requirements
- Wiring checks run only when a dependency container is supplied.
- ``assert_conforms`` raises ``ConformanceFailure`` listing every failure and emits
  each warning through ``warnings.warn`` with ``ConformanceWarning``.

Non-functional requirements
- Report output is deterministic (findings keep check order; rendering is stable).
"""

from __future__ import annotations

import logging
import warnings
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from archconform.blueprint.model import Blueprint
from archconform.conformance.checks import (
    DEFAULT_ALLOWED_KEY_SUFFIXES,
    DEFAULT_FORBIDDEN_DOMAIN_MODULES,
    DEFAULT_PERSISTENCE_MODULES,
    DEFAULT_SERVICE_SUFFIX,
    allowed_lookup_keys,
    check_base_classes,
    check_blueprint_references,
    check_blueprint_sync,
    check_entrypoint_wiring,
    check_immutability,
    check_port_implementations,
    check_service_dependencies,
)
from archconform.conformance.findings import ConformanceFinding, Severity
from archconform.contracts import Container
from archconform.discovery import (
    BaseTypeRegistry,
    DiscoveredComponent,
    discover,
    load_component_modules,
)
from archconform.errors import ConformanceFailure, ConformanceWarning
from archconform.kinds import ComponentKind
from archconform.scanner import DEFAULT_CONSTRUCTORS, DEFAULT_LOOKUP_CALLS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConformanceReport:
    """Aggregated findings for one component."""

    component: str
    findings: tuple[ConformanceFinding, ...] = ()
    permit_unimplemented: bool = False

    @property
    def failures(self) -> tuple[ConformanceFinding, ...]:
        return tuple(item for item in self.findings if item.severity is Severity.FAIL)

    @property
    def warnings(self) -> tuple[ConformanceFinding, ...]:
        return tuple(item for item in self.findings if item.severity is Severity.WARN)

    @property
    def passed(self) -> bool:
        return not self.failures

    def counts_by_category(self) -> dict[str, int]:
        counts = Counter(item.category.value for item in self.findings)
        return {key: counts[key] for key in sorted(counts)}

    def to_dict(self) -> dict[str, object]:
        return {
            "component": self.component,
            "passed": self.passed,
            "permit_unimplemented": self.permit_unimplemented,
            "failure_count": len(self.failures),
            "warning_count": len(self.warnings),
            "by_category": self.counts_by_category(),
            "findings": [item.to_dict() for item in self.findings],
        }

    def render(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [
            f"{self.component}: {status} "
            f"({len(self.failures)} failure(s), {len(self.warnings)} warning(s))"
        ]
        for finding in self.findings:
            location = f" [{finding.location}]" if finding.location else ""
            lines.append(
                f"  {finding.severity.value.upper():<4}  {finding.category.value:<12} "
                f"{finding.message}{location}"
            )
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class ConformanceChecker:
    """Configured set of conformance checks."""

    permit_unimplemented: bool = False
    registry: BaseTypeRegistry = field(default_factory=BaseTypeRegistry.default)
    constructors: tuple[str, ...] = DEFAULT_CONSTRUCTORS
    lookup_call_names: tuple[str, ...] = DEFAULT_LOOKUP_CALLS
    allowed_key_suffixes: tuple[str, ...] = DEFAULT_ALLOWED_KEY_SUFFIXES
    service_suffix: str = DEFAULT_SERVICE_SUFFIX
    persistence_modules: tuple[str, ...] = DEFAULT_PERSISTENCE_MODULES
    forbidden_domain_modules: tuple[str, ...] = DEFAULT_FORBIDDEN_DOMAIN_MODULES

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> ConformanceChecker:
        """Build from the ``[conformance]`` section of an effective config."""

        section = config.get("conformance", {})
        if not isinstance(section, Mapping):
            section = {}
        return cls(
            permit_unimplemented=bool(section.get("permit_unimplemented", False)),
            constructors=_names(section, "constructor_names", DEFAULT_CONSTRUCTORS),
            lookup_call_names=_names(section, "lookup_call_names", DEFAULT_LOOKUP_CALLS),
            allowed_key_suffixes=_names(section, "allowed_key_suffixes", DEFAULT_ALLOWED_KEY_SUFFIXES),
            service_suffix=str(section.get("service_key_suffix", DEFAULT_SERVICE_SUFFIX)),
            persistence_modules=_names(section, "persistence_modules", DEFAULT_PERSISTENCE_MODULES),
            forbidden_domain_modules=_names(
                section, "forbidden_domain_modules", DEFAULT_FORBIDDEN_DOMAIN_MODULES
            ),
        )

    def run(
        self,
        blueprint: Blueprint,
        components: Iterable[DiscoveredComponent],
        *,
        container: Container | None = None,
        entrypoint_files: Sequence[str | Path] | None = None,
        component_id: str | None = None,
    ) -> ConformanceReport:
        items = tuple(components)
        findings: list[ConformanceFinding] = []
        findings.extend(
            check_base_classes(
                items, self.registry, forbidden_domain_modules=self.forbidden_domain_modules
            )
        )
        findings.extend(check_port_implementations(items))
        findings.extend(check_immutability(items, self.constructors))

        if container is None:
            logger.info("no dependency container supplied; skipping wiring checks")
        else:
            findings.extend(
                check_service_dependencies(
                    container,
                    service_suffix=self.service_suffix,
                    persistence_modules=self.persistence_modules,
                )
            )
            files = (
                entrypoint_files
                if entrypoint_files is not None
                else _controller_files(items)
            )
            findings.extend(
                check_entrypoint_wiring(
                    files,
                    allowed_lookup_keys(container.keys(), self.allowed_key_suffixes),
                    call_names=self.lookup_call_names,
                )
            )

        findings.extend(
            check_blueprint_sync(blueprint, items, permit_unimplemented=self.permit_unimplemented)
        )
        findings.extend(check_blueprint_references(blueprint))

        report = ConformanceReport(
            component=component_id or blueprint.name,
            findings=tuple(findings),
            permit_unimplemented=self.permit_unimplemented,
        )
        logger.info(
            "conformance check finished",
            extra={
                "component": report.component,
                "failures": len(report.failures),
                "warnings": len(report.warnings),
            },
        )
        return report

    def check_root(
        self,
        blueprint: Blueprint,
        implementation_root: str | Path,
        *,
        container: Container | None = None,
        component_id: str | None = None,
    ) -> ConformanceReport:
        """Import the implementation root, discover its classes and run every check."""

        load_component_modules(implementation_root)
        components = discover(implementation_root, self.registry)
        return self.run(blueprint, components, container=container, component_id=component_id)


def assert_conforms(report: ConformanceReport) -> None:
    """Raise ``ConformanceFailure`` when ``report`` carries failures; warn for the rest."""

    for finding in report.warnings:
        logger.warning(finding.message, extra={"component": report.component})
        warnings.warn(finding.message, ConformanceWarning, stacklevel=2)

    failures = report.failures
    if not failures:
        return
    lines = [f"{report.component}: {len(failures)} conformance failure(s)"]
    lines.extend(f"- [{item.category.value}] {item.message}" for item in failures)
    raise ConformanceFailure("\n".join(lines))


def _controller_files(components: Sequence[DiscoveredComponent]) -> tuple[str, ...]:
    return tuple(
        sorted(
            {item.source_location for item in components if item.kind is ComponentKind.CONTROLLER}
        )
    )


def _names(section: Mapping[str, object], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        return default
    if isinstance(raw, str):
        return (raw,)
    if isinstance(raw, Sequence):
        return tuple(str(item) for item in raw)
    return default


__all__ = ["ConformanceChecker", "ConformanceReport", "assert_conforms"]

"""Conformance checks, findings and the pytest-facing assertion helper."""

from archconform.conformance.checker import ConformanceChecker, ConformanceReport, assert_conforms
from archconform.conformance.checks import (
    allowed_lookup_keys,
    check_base_classes,
    check_blueprint_references,
    check_blueprint_sync,
    check_drift,
    check_entrypoint_wiring,
    check_immutability,
    check_port_implementations,
    check_service_dependencies,
    held_attributes,
    public_mutators,
)
from archconform.conformance.findings import Category, ConformanceFinding, Severity

__all__ = [
    "Category",
    "ConformanceChecker",
    "ConformanceFinding",
    "ConformanceReport",
    "Severity",
    "allowed_lookup_keys",
    "assert_conforms",
    "check_base_classes",
    "check_blueprint_references",
    "check_blueprint_sync",
    "check_drift",
    "check_entrypoint_wiring",
    "check_immutability",
    "check_port_implementations",
    "check_service_dependencies",
    "held_attributes",
    "public_mutators",
]

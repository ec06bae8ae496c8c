"""
archconform — error hierarchy

File: src/archconform/errors.py
Last updated: 2026-10-17

Purpose
- Define the exception types raised across blueprint loading, resolution and conformance.

Functional requirements
- Every library error derives from ``ArchConformError`` so the CLI boundary can route it.
- ``ConformanceFailure`` is an ``AssertionError`` so test runners report it as a failed assertion.
- Source parse degradation is a logged diagnostic, never an exception.
"""

from __future__ import annotations


class ArchConformError(Exception):
    """Base class for archconform errors."""


class BlueprintError(ArchConformError):
    """Raised when a blueprint document cannot be turned into a model."""


class SchemaViolation(BlueprintError):
    """A required field is missing or a value has the wrong shape."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class BlueprintParseError(BlueprintError):
    """The document is not valid JSON/YAML."""


class ResolutionError(ArchConformError):
    """A component id, blueprint path, manifest or module could not be resolved."""

    def __init__(self, reference: str, message: str) -> None:
        self.reference = reference
        super().__init__(message)


class ConformanceFailure(AssertionError):
    """Raised by ``assert_conforms`` when a report carries failing findings."""


class ConformanceWarning(UserWarning):
    """Warning category for non-fatal conformance findings."""


__all__ = [
    "ArchConformError",
    "BlueprintError",
    "BlueprintParseError",
    "ConformanceFailure",
    "ConformanceWarning",
    "ResolutionError",
    "SchemaViolation",
]

"""Application-layer base contracts: services, queries and commands."""

from __future__ import annotations


class ApplicationService:
    """Use-case orchestrator.

    Dependencies are passed to ``__init__`` and held as attributes; they should be
    secondary ports, primitives or ``None``.
    """


class Query:
    """Read-side request object. Subclasses are usually frozen dataclasses."""

    __slots__ = ()


class Command:
    """Write-side request object. Subclasses are usually frozen dataclasses."""

    __slots__ = ()


__all__ = ["ApplicationService", "Command", "Query"]

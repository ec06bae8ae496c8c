"""
archconform — domain-layer base contracts

File: src/archconform/contracts/domain.py
Last updated: 2026-10-17

Purpose
- Base classes that component domain code inherits from: aggregates, entities,
  value objects and domain events.

Functional requirements
- Aggregates record domain events without reassigning attributes after construction.
- Entities compare by identity; value objects are expected to be frozen dataclasses.
- Domain events carry an id, an occurrence timestamp and a schema version.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar


class AggregateRoot:
    """Consistency boundary that collects the domain events it raises."""

    def __init__(self, id: Any) -> None:  # noqa: A002 - mirrors the blueprint attribute name.
        self._id = id
        self._pending_events: list[DomainEvent] = []

    @property
    def id(self) -> Any:
        return self._id

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending_events)

    def pull_events(self) -> tuple[DomainEvent, ...]:
        """Return and clear the events raised since the last pull."""

        events = tuple(self._pending_events)
        self._pending_events.clear()
        return events

    def _record(self, event: DomainEvent) -> None:
        self._pending_events.append(event)


class Entity:
    """Domain object with identity; equality and hashing follow ``id``."""

    id: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return bool(other.id == self.id)

    def __hash__(self) -> int:
        return hash((type(self), self.id))


class ValueObject:
    """Marker base for values compared by their attributes.

    Subclasses are normally declared as ``@dataclass(frozen=True, slots=True)``.
    """

    __slots__ = ()


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Immutable fact raised by an aggregate."""

    SCHEMA_VERSION: ClassVar[int] = 1

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> str:
        return type(self).__name__

    @property
    def schema_version(self) -> int:
        return self.SCHEMA_VERSION


__all__ = ["AggregateRoot", "DomainEvent", "Entity", "ValueObject"]

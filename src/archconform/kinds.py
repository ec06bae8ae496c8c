"""Component kinds shared by the blueprint model, discovery and conformance checks."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class ComponentKind(StrEnum):
    AGGREGATE = "aggregate"
    ENTITY = "entity"
    VALUE_OBJECT = "value_object"
    EVENT = "event"
    SERVICE = "service"
    QUERY = "query"
    COMMAND = "command"
    PORT = "port"
    ADAPTER = "adapter"
    CONTROLLER = "controller"


# Kinds compared name-for-name between blueprint and code.
SYNCED_KINDS: Final[tuple[ComponentKind, ...]] = (
    ComponentKind.AGGREGATE,
    ComponentKind.EVENT,
    ComponentKind.PORT,
    ComponentKind.SERVICE,
    ComponentKind.ADAPTER,
    ComponentKind.CONTROLLER,
    ComponentKind.QUERY,
    ComponentKind.COMMAND,
)

# Kinds whose instances must not change after construction.
IMMUTABLE_KINDS: Final[tuple[ComponentKind, ...]] = (
    ComponentKind.AGGREGATE,
    ComponentKind.VALUE_OBJECT,
)

__all__ = ["IMMUTABLE_KINDS", "SYNCED_KINDS", "ComponentKind"]

"""Base contracts analyzed components are written against."""

from archconform.contracts.application import ApplicationService, Command, Query
from archconform.contracts.container import Container, Factory, load_container
from archconform.contracts.domain import AggregateRoot, DomainEvent, Entity, ValueObject
from archconform.contracts.infrastructure import HttpEntrypoint
from archconform.contracts.ports import SecondaryPort

__all__ = [
    "AggregateRoot",
    "ApplicationService",
    "Command",
    "Container",
    "DomainEvent",
    "Entity",
    "Factory",
    "HttpEntrypoint",
    "Query",
    "SecondaryPort",
    "ValueObject",
    "load_container",
]

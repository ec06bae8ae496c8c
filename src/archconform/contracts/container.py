"""
archconform — dependency container

File: src/archconform/contracts/container.py
Last updated: 2026-10-17

Purpose
- Per-component registry mapping string keys to factories.

Functional requirements
- ``register`` rejects duplicate keys.
- ``resolve`` builds each key once and caches the instance.
- ``resolve`` of an unknown key raises ``ResolutionError`` naming the key.
- ``load_container`` imports a ``module:attr`` reference; the attribute is a container or a
  zero-argument callable returning one.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterator
from typing import Any

from archconform.errors import ResolutionError

Factory = Callable[[], Any]


class Container:
    """String-keyed dependency registry."""

    __slots__ = ("_factories", "_instances")

    def __init__(self) -> None:
        self._factories: dict[str, Factory] = {}
        self._instances: dict[str, Any] = {}

    def register(self, key: str, factory: Factory) -> None:
        if not isinstance(key, str) or not key.strip():
            raise ValueError("container key must be a non-empty string")
        if key in self._factories:
            raise ValueError(f"container key already registered: {key!r}")
        self._factories[key] = factory

    def resolve(self, key: str) -> Any:
        if key in self._instances:
            return self._instances[key]
        factory = self._factories.get(key)
        if factory is None:
            raise ResolutionError(key, f"no dependency registered under {key!r}")
        instance = factory()
        self._instances[key] = instance
        return instance

    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def __contains__(self, key: object) -> bool:
        return key in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._factories)


def load_container(reference: str) -> Container:
    """Import ``module:attr`` and return the container it names."""

    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name.strip() or not attribute.strip():
        raise ResolutionError(reference, f"container reference must look like module:attr, got {reference!r}")
    try:
        module = importlib.import_module(module_name.strip())
    except ImportError as exc:
        raise ResolutionError(reference, f"unable to import container module {module_name!r}: {exc}") from exc

    target: object = module
    for part in attribute.strip().split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ResolutionError(reference, f"{module_name!r} has no attribute {attribute!r}") from exc

    if not isinstance(target, Container) and callable(target):
        target = target()
    if not isinstance(target, Container):
        raise ResolutionError(reference, f"{reference!r} does not provide a Container")
    return target


__all__ = ["Container", "Factory", "load_container"]

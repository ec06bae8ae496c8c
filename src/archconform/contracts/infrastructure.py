"""Infrastructure-layer base contract for HTTP entrypoints (controllers)."""

from __future__ import annotations

from typing import Any

from archconform.contracts.container import Container


class HttpEntrypoint:
    """Thin controller that reaches the application layer through the container.

    Lookups go through ``self.resolve("<key>")`` with a literal key so the wiring
    scan can validate them against the container's allowed keys.
    """

    def __init__(self, container: Container) -> None:
        self._container = container

    def resolve(self, key: str) -> Any:
        return self._container.resolve(key)


__all__ = ["HttpEntrypoint"]

"""Secondary port base contract.

Ports live under a ``domain`` package and declare their operations with
``@abstractmethod``. Adapters live under ``infrastructure`` and subclass the port.
"""

from __future__ import annotations

from abc import ABC


class SecondaryPort(ABC):  # noqa: B024 - ports declare their own abstract operations.
    """Outbound dependency boundary of a component."""

    @classmethod
    def abstract_operations(cls) -> frozenset[str]:
        """Names of operations still abstract on ``cls``."""

        return frozenset(getattr(cls, "__abstractmethods__", frozenset()))


__all__ = ["SecondaryPort"]

"""
archconform — filesystem utilities

File: src/archconform/utils/fs.py
Last updated: 2026-10-17

Purpose
- Atomic writes for generated documents (diagrams, capability specs).

Functional requirements
- Writes go to a temp file in the destination directory and replace the target in one step.
- Missing parent directories are created on request.
- ``write_generated`` never clobbers an existing document unless asked to.

Non-functional requirements
- Standard library only.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from enum import StrEnum
from pathlib import Path

PathLike = str | os.PathLike[str]

__all__ = [
    "WriteOutcome",
    "atomic_write",
    "write_generated",
]


class WriteOutcome(StrEnum):
    CREATED = "created"
    OVERWRITTEN = "overwritten"
    KEPT = "kept"


def atomic_write(
    path: PathLike,
    data: bytes | str,
    *,
    encoding: str = "utf-8",
    create_parents: bool = False,
) -> None:
    """
    Write ``data`` to ``path`` through a sibling temp file and ``os.replace``.

    Text is written with ``\\n`` line endings so regenerated output is byte-stable.
    Readers never observe a partially written target.
    """

    target = Path(path)
    if create_parents:
        target.parent.mkdir(parents=True, exist_ok=True)
    directory = target.parent.resolve(strict=True)

    payload = data if isinstance(data, bytes) else data.replace("\r\n", "\n").encode(encoding)
    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_name)
        raise


def write_generated(path: PathLike, text: str, *, overwrite: bool = False) -> WriteOutcome:
    """Write a generated document, keeping an existing one unless ``overwrite`` is set."""

    target = Path(path)
    existed = target.exists()
    if existed and not overwrite:
        return WriteOutcome.KEPT
    atomic_write(target, text, create_parents=True)
    return WriteOutcome.OVERWRITTEN if existed else WriteOutcome.CREATED

"""Shared helpers: atomic filesystem writes and bounded async fan-out."""

from archconform.utils.concurrency import WorkerPool, run_blocking_fanout
from archconform.utils.fs import WriteOutcome, atomic_write, write_generated

__all__ = [
    "WorkerPool",
    "WriteOutcome",
    "atomic_write",
    "run_blocking_fanout",
    "write_generated",
]

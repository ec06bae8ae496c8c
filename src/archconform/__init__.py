"""
archconform — package root

File: src/archconform/__init__.py
Last updated: 2026-10-17

Purpose
- Package root for the architecture conformance and workflow engine.

What should be included in this file
- Version export and a minimal public surface.
- Import boundary rules: avoid importing heavy submodules at import time.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]

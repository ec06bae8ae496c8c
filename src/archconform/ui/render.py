"""Plain-text output rendering for the archconform CLI.

File: src/archconform/ui/render.py
Last updated: 2026-10-17

Purpose
- Provide a thin rendering layer for CLI output.
- Respect the NO_COLOR environment variable and the --no-color CLI flag.

What should be included in this file
- CLIRenderer class with methods for the output patterns the verbs share: key/value pairs,
  bullet lists, aligned tables, PASS/FAIL verdict lines and next-step hints.
- Factory function to create a renderer with appropriate settings.

Functional requirements
- Output is deterministic; color codes are only added for interactive terminals.
- All public methods must be safe to call in any environment.

Non-functional requirements
- No dependencies beyond the standard library.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

_GREEN: Final[str] = "\033[32m"
_RED: Final[str] = "\033[31m"
_YELLOW: Final[str] = "\033[33m"
_RESET: Final[str] = "\033[0m"


def _color_allowed(no_color_flag: bool) -> bool:
    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class CLIRenderer:
    """Thin CLI output renderer.

    Verdict words (PASS, FAIL, WARN) are colored only when stdout is a terminal and
    neither ``NO_COLOR`` nor ``--no-color`` is set.
    """

    def __init__(self, *, no_color: bool = False, verbose: bool = False) -> None:
        self.verbose = verbose
        self._color = _color_allowed(no_color)

    def heading(self, text: str) -> None:
        print(text)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}")

    def text(self, line: str) -> None:
        print(line)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}")

    def warning(self, text: str) -> None:
        print(f"  {self._paint('WARN', _YELLOW)}  {text}")

    def detail(self, text: str) -> None:
        """Print a line only in verbose mode."""

        if self.verbose:
            print(f"    {text}")

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print an aligned plain-text table; nothing is printed for an empty table."""

        if not rows:
            return

        grid = [[str(cell) for cell in headers]]
        grid.extend([str(cell) for cell in row][: len(headers)] for row in rows)
        widths = [
            max(len(line[i]) if i < len(line) else 0 for line in grid) for i in range(len(headers))
        ]
        grid.insert(1, ["-" * width for width in widths])

        if title:
            self.section(title)
        for line in grid:
            cells = [(line[i] if i < len(line) else "").ljust(widths[i]) for i in range(len(widths))]
            print(f"  {'  '.join(cells).rstrip()}")

    def verdict(self, subject: str, passed: bool, summary: str = "") -> None:
        """Print ``<subject>: PASS|FAIL`` followed by an optional summary."""

        word = self._paint("PASS", _GREEN) if passed else self._paint("FAIL", _RED)
        suffix = f" {summary}" if summary else ""
        print(f"{subject}: {word}{suffix}")

    def next_steps(self, steps: Sequence[str]) -> None:
        if not steps:
            return
        self.section("Next steps:")
        for step in steps:
            print(f"  $ {step}")

    def fail(self, label: str) -> None:
        print(f"  {self._paint('FAIL', _RED)}  {label}")

    def _paint(self, word: str, color: str) -> str:
        if not self._color:
            return word
        return f"{color}{word}{_RESET}"


def create_renderer(*, no_color: bool = False, verbose: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color, verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]

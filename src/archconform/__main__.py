"""Module entrypoint for ``python -m archconform``."""

from __future__ import annotations

from archconform.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())

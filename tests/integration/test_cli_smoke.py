"""
archconform — end-to-end CLI smoke tests

File: tests/integration/test_cli_smoke.py
Last updated: 2026-10-17

Purpose
- Run ``python -m archconform`` in a subprocess against a throwaway project tree.

What this test file should cover
- The full authoring loop: validate, check, diagram, spec, next.
- Process exit codes for conforming, drifted and unresolvable components.

Non-functional requirements
- Each test builds its own project under ``tmp_path``; nothing outside it is written.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
FIXTURES_DIR = REPO_ROOT / "tests" / "fixtures"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    manifest = tmp_path / "architecture" / "system.json"
    manifest.parent.mkdir(parents=True)
    manifest.write_text(
        json.dumps(
            {
                "components": {
                    "items": [
                        {
                            "id": "sample_orders",
                            "architecture_file": "architecture/sample_orders/architecture.json",
                        }
                    ]
                }
            }
        ),
        encoding="utf-8",
    )
    blueprint = tmp_path / "architecture" / "sample_orders" / "architecture.json"
    blueprint.parent.mkdir(parents=True)
    shutil.copyfile(FIXTURES_DIR / "blueprints" / "sample_orders.json", blueprint)
    shutil.copytree(
        FIXTURES_DIR / "sample_orders",
        tmp_path / "components" / "sample_orders",
        ignore=shutil.ignore_patterns("__pycache__"),
    )
    return tmp_path


def _run(project: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT / "src")
    env["NO_COLOR"] = "1"
    env.pop("ARCHCONFORM_PROFILE", None)
    return subprocess.run(
        [sys.executable, "-m", "archconform", *args],
        cwd=project,
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
        check=False,
    )


def test_authoring_loop(project: Path) -> None:
    validate = _run(project, "validate", "sample_orders")
    assert validate.returncode == 0, validate.stderr
    assert "sample_orders: PASS" in validate.stdout

    check = _run(
        project, "check", "sample_orders", "--container", "sample_orders.container:build_container", "--json"
    )
    assert check.returncode == 0, check.stdout + check.stderr
    report = json.loads(check.stdout)
    assert report["passed"] is True
    assert report["wiring_checked"] is True

    diagram = _run(project, "diagram", "sample_orders")
    assert diagram.returncode == 0, diagram.stderr
    assert (project / "docs" / "diagrams" / "sample_orders_architecture.md").is_file()

    spec = _run(project, "spec", "sample_orders")
    assert spec.returncode == 0, spec.stderr
    spec_path = project / "docs" / "specs" / "sample_orders" / "place_order.spec.md"
    assert "**Status:** template" in spec_path.read_text(encoding="utf-8")

    suggestions = json.loads(_run(project, "next", "--json").stdout)["suggestions"]
    assert [item["action"] for item in suggestions] == ["plan_capability"]

    spec_path.write_text(
        spec_path.read_text(encoding="utf-8").replace("**Status:** template", "**Status:** planned"),
        encoding="utf-8",
    )
    suggestions = json.loads(_run(project, "next", "--json").stdout)["suggestions"]
    assert [(item["action"], item["command"]) for item in suggestions] == [("implement_capability", None)]


def test_drifted_blueprint_exits_1(project: Path) -> None:
    payload = json.loads((FIXTURES_DIR / "blueprints" / "sample_orders.json").read_text(encoding="utf-8"))
    payload["layers"]["domain"]["aggregates"] = []
    drifted = project / "drifted.json"
    drifted.write_text(json.dumps(payload), encoding="utf-8")

    result = _run(project, "check", "drifted.json", "--root", "components/sample_orders")

    assert result.returncode == 1
    assert "aggregate 'Order' exists in code but not in the blueprint" in result.stdout


def test_unknown_component_exits_2(project: Path) -> None:
    result = _run(project, "validate", "payments")

    assert result.returncode == 2
    assert result.stderr.startswith("error: ")

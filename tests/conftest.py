"""Shared fixtures: the sample orders component and a clean package logger per test."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from archconform.blueprint import Blueprint, blueprint_from_mapping, parse_blueprint

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
SAMPLE_ROOT = FIXTURES_DIR / "sample_orders"
SAMPLE_BLUEPRINT_PATH = FIXTURES_DIR / "blueprints" / "sample_orders.json"


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("archconform")
    for handler in list(logger.handlers):
        if getattr(handler, "_archconform_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return json.loads(SAMPLE_BLUEPRINT_PATH.read_text(encoding="utf-8"))


@pytest.fixture
def sample_blueprint() -> Blueprint:
    return parse_blueprint(SAMPLE_BLUEPRINT_PATH)


@pytest.fixture
def blueprint_factory(sample_payload: dict[str, Any]) -> Callable[..., Blueprint]:
    """Build a blueprint from the sample payload after applying ``edit`` to a copy."""

    def build(edit: Callable[[dict[str, Any]], None] | None = None) -> Blueprint:
        payload = copy.deepcopy(sample_payload)
        if edit is not None:
            edit(payload)
        return blueprint_from_mapping(payload, source=SAMPLE_BLUEPRINT_PATH)

    return build

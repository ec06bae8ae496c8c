"""
archconform — unit tests for component discovery

File: tests/unit/discovery/test_component_discovery.py
Last updated: 2026-10-17

Purpose
- Validate that importing an implementation root and walking the contract subclass graph
  classifies every concrete component class.

What this test file should cover
- Kind assignment for the sample component, including port/adapter separation by layer.
- Base-type chains recorded for base-class checks.
- Import failures and non-package roots surfacing as resolution errors.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from archconform.discovery import BaseTypeRegistry, discover, load_component_modules
from archconform.errors import ResolutionError
from archconform.kinds import ComponentKind

FIXTURES_DIR = Path(__file__).resolve().parents[2] / "fixtures"
SAMPLE_ROOT = FIXTURES_DIR / "sample_orders"


@pytest.fixture(scope="module")
def discovered() -> dict[ComponentKind, set[str]]:
    load_component_modules(SAMPLE_ROOT)
    grouped: dict[ComponentKind, set[str]] = {}
    for component in discover(SAMPLE_ROOT):
        grouped.setdefault(component.kind, set()).add(component.name)
    return grouped


def test_sample_component_kinds(discovered: dict[ComponentKind, set[str]]) -> None:
    assert discovered[ComponentKind.AGGREGATE] == {"Order"}
    assert discovered[ComponentKind.VALUE_OBJECT] == {"OrderLine"}
    assert discovered[ComponentKind.EVENT] == {"OrderPlaced"}
    assert discovered[ComponentKind.SERVICE] == {"PlaceOrderService"}
    assert discovered[ComponentKind.QUERY] == {"GetOrderQuery"}
    assert discovered[ComponentKind.COMMAND] == {"PlaceOrderCommand"}
    assert discovered[ComponentKind.PORT] == {"OrderRepository", "PaymentGateway"}
    assert discovered[ComponentKind.ADAPTER] == {"InMemoryOrderRepository", "StripePaymentGateway"}
    assert discovered[ComponentKind.CONTROLLER] == {"OrderController"}


def test_discovery_is_deterministic_and_records_base_chain() -> None:
    load_component_modules(SAMPLE_ROOT)

    first = discover(SAMPLE_ROOT)
    second = discover(SAMPLE_ROOT)

    assert [item.name for item in first] == [item.name for item in second]
    adapter = next(item for item in first if item.name == "InMemoryOrderRepository")
    assert "sample_orders.domain.ports.OrderRepository" in adapter.base_type_chain
    assert "archconform.contracts.ports.SecondaryPort" in adapter.base_type_chain
    assert adapter.source_location.endswith("infrastructure/persistence.py")
    assert adapter.qualified_name == "sample_orders.infrastructure.persistence.InMemoryOrderRepository"


def test_classes_outside_the_root_are_ignored(tmp_path: Path) -> None:
    load_component_modules(SAMPLE_ROOT)
    empty_root = tmp_path / "empty_component"
    empty_root.mkdir()

    assert discover(empty_root) == ()


def test_registry_maps_ports_and_adapters_to_one_base() -> None:
    grouped = BaseTypeRegistry.default().kinds_by_base()

    port_kinds = next(kinds for kinds in grouped.values() if ComponentKind.PORT in kinds)
    assert set(port_kinds) == {ComponentKind.PORT, ComponentKind.ADAPTER}


def test_missing_root_is_a_resolution_error(tmp_path: Path) -> None:
    with pytest.raises(ResolutionError, match="not found"):
        load_component_modules(tmp_path / "absent")


def test_non_identifier_root_is_a_resolution_error(tmp_path: Path) -> None:
    root = tmp_path / "order-service"
    root.mkdir()

    with pytest.raises(ResolutionError, match="importable"):
        load_component_modules(root)


def test_import_failure_is_a_resolution_error(tmp_path: Path) -> None:
    root = tmp_path / "broken_component_pkg"
    root.mkdir()
    (root / "__init__.py").write_text("", encoding="utf-8")
    (root / "module.py").write_text("raise RuntimeError('boom')\n", encoding="utf-8")

    with pytest.raises(ResolutionError, match="boom"):
        load_component_modules(root)

"""
archconform — unit tests for the blueprint model

File: tests/unit/blueprint/test_blueprint_model.py
Last updated: 2026-10-17

Purpose
- Validate JSON/YAML blueprint loading, schema errors and the derived lookups the checks use.

What this test file should cover
- Required fields and typed schema violations carrying the offending field path.
- Parse errors for malformed documents and unsupported suffixes.
- Transitive aggregate resolution, per-kind name sets and unresolved references.
- Component id derivation from blueprint paths.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from archconform.blueprint import (
    Blueprint,
    blueprint_from_mapping,
    derive_component_id,
    parse_blueprint,
)
from archconform.errors import BlueprintParseError, ResolutionError, SchemaViolation
from archconform.kinds import ComponentKind


def _minimal() -> dict[str, object]:
    return {"name": "Billing", "profile": "hexagonal", "layers": {}}


def test_sample_blueprint_loads_every_section(sample_blueprint: Blueprint) -> None:
    assert sample_blueprint.name == "Sample Orders"
    assert sample_blueprint.profile == "hexagonal"
    assert [actor.name for actor in sample_blueprint.actors] == ["Customer"]
    assert sample_blueprint.scope.out_of_scope == ("shipping",)
    assert sample_blueprint.layers.domain.port_names == ("OrderRepository", "PaymentGateway")
    assert [adapter.name for adapter in sample_blueprint.layers.infrastructure.adapters] == [
        "InMemoryOrderRepository",
        "StripePaymentGateway",
    ]
    persistence = sample_blueprint.adapters_for_port("OrderRepository")
    assert len(persistence) == 1 and persistence[0].persistence
    assert sample_blueprint.http_entrypoint("OrderController") is not None
    assert sample_blueprint.relationships.neighbors() == ("shipping", "analytics")


def test_yaml_and_json_documents_produce_equal_models(tmp_path: Path, sample_payload: dict[str, object]) -> None:
    json_path = tmp_path / "orders.json"
    yaml_path = tmp_path / "orders.yaml"
    json_path.write_text(json.dumps(sample_payload), encoding="utf-8")
    yaml_path.write_text(yaml.safe_dump(sample_payload), encoding="utf-8")

    assert parse_blueprint(json_path) == parse_blueprint(yaml_path)


@pytest.mark.parametrize("missing", ["name", "profile", "layers"])
def test_missing_required_field_names_the_field(missing: str) -> None:
    payload = _minimal()
    del payload[missing]

    with pytest.raises(SchemaViolation) as excinfo:
        blueprint_from_mapping(payload)

    assert excinfo.value.field == missing


def test_wrong_type_reports_nested_path() -> None:
    payload = _minimal()
    payload["layers"] = {"domain": {"aggregates": [{"name": "Invoice", "invariants": "none"}]}}

    with pytest.raises(SchemaViolation) as excinfo:
        blueprint_from_mapping(payload)

    assert excinfo.value.field == "layers.domain.aggregates[0].invariants"


def test_adapter_requires_implements() -> None:
    payload = _minimal()
    payload["layers"] = {"infrastructure": {"adapters": {"persistence": [{"name": "SqlInvoices"}]}}}

    with pytest.raises(SchemaViolation, match="implements"):
        blueprint_from_mapping(payload)


def test_unknown_keys_are_ignored() -> None:
    payload = _minimal()
    payload["owner_team"] = "payments"

    assert blueprint_from_mapping(payload).name == "Billing"


def test_scalar_orchestrates_is_accepted() -> None:
    payload = _minimal()
    payload["layers"] = {
        "domain": {"aggregates": [{"name": "Invoice"}]},
        "application": {"capabilities": [{"name": "Issue Invoice", "orchestrates": "Invoice"}]},
    }

    blueprint = blueprint_from_mapping(payload)

    assert blueprint.capabilities[0].orchestrates == ("Invoice",)


def test_short_relationship_keys_are_accepted() -> None:
    payload = _minimal()
    payload["relationships"] = {
        "publishes_to": [{"bc": "shipping", "via": "Kafka", "events": ["InvoiceIssued"]}],
        "consumed_by": [{"bc": "analytics"}],
    }

    relationships = blueprint_from_mapping(payload).relationships

    assert relationships.publishes_to[0].target_component == "shipping"
    assert relationships.publishes_to[0].transport == "Kafka"
    assert relationships.consumed_by[0].target_component == "analytics"
    assert relationships.neighbors() == ("shipping", "analytics")


def test_relationship_without_target_names_the_canonical_field() -> None:
    payload = _minimal()
    payload["relationships"] = {"consumed_by": [{"purpose": "reporting"}]}

    with pytest.raises(SchemaViolation) as excinfo:
        blueprint_from_mapping(payload)

    assert excinfo.value.field == "relationships.consumed_by[0].target_component"


def test_malformed_json_raises_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"name": "x",', encoding="utf-8")

    with pytest.raises(BlueprintParseError):
        parse_blueprint(path)


def test_unsupported_suffix_raises_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "orders.toml"
    path.write_text('name = "orders"', encoding="utf-8")

    with pytest.raises(BlueprintParseError, match="unsupported"):
        parse_blueprint(path)


def test_missing_file_is_a_resolution_error(tmp_path: Path) -> None:
    with pytest.raises(ResolutionError):
        parse_blueprint(tmp_path / "absent.json")


def test_aggregates_resolve_through_orchestrated_services(sample_blueprint: Blueprint) -> None:
    capability = sample_blueprint.capability("Place Order")
    assert capability is not None

    assert [aggregate.name for aggregate in sample_blueprint.aggregates_for(capability)] == ["Order"]


def test_names_for_covers_every_synced_kind(sample_blueprint: Blueprint) -> None:
    assert sample_blueprint.names_for(ComponentKind.AGGREGATE) == {"Order"}
    assert sample_blueprint.names_for(ComponentKind.EVENT) == {"OrderPlaced"}
    assert sample_blueprint.names_for(ComponentKind.SERVICE) == {"PlaceOrderService"}
    assert sample_blueprint.names_for(ComponentKind.CONTROLLER) == {"OrderController"}
    assert sample_blueprint.names_for(ComponentKind.QUERY) == {"GetOrderQuery"}
    assert sample_blueprint.names_for(ComponentKind.COMMAND) == {"PlaceOrderCommand"}
    assert sample_blueprint.names_for(ComponentKind.ENTITY) == frozenset()


def test_unresolved_references_are_reported(blueprint_factory) -> None:  # type: ignore[no-untyped-def]
    def edit(payload: dict[str, object]) -> None:
        capability = payload["layers"]["application"]["capabilities"][0]  # type: ignore[index]
        capability["emits"] = ["OrderPlaced", "OrderShipped"]
        capability["uses_ports"] = ["OrderRepository", "Ledger"]

    blueprint = blueprint_factory(edit)

    described = [item.describe() for item in blueprint.unresolved_references()]
    assert described == [
        "capability 'Place Order' uses_ports unknown name 'Ledger'",
        "capability 'Place Order' emits unknown name 'OrderShipped'",
    ]


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("architecture/orders/architecture.json", "orders"),
        ("architecture/orders/architecture.yaml", "orders"),
        ("blueprints/billing.yml", "billing"),
    ],
)
def test_derive_component_id(path: str, expected: str) -> None:
    assert derive_component_id(path) == expected

"""
archconform — unit tests for base contracts and the dependency container

File: tests/unit/contracts/test_base_contracts.py
Last updated: 2026-10-17

Purpose
- Verify the runtime behavior of the contracts analyzed code is written against.

What this test file should cover
- Container registration rules, caching and unknown keys.
- ``load_container`` reference resolution and its failure modes.
- Aggregate event recording, entity identity and domain event metadata.
- The sample controller working end to end through its container.
"""

from __future__ import annotations

import pytest

from archconform.contracts import Container, Entity, load_container
from archconform.errors import ResolutionError
from sample_orders.container import build_container
from sample_orders.domain.order import Order, OrderLine, OrderPlaced
from sample_orders.infrastructure.http import OrderController


def test_container_rejects_duplicate_and_blank_keys() -> None:
    container = Container()
    container.register("order_repository", dict)

    with pytest.raises(ValueError, match="already registered"):
        container.register("order_repository", dict)
    with pytest.raises(ValueError, match="non-empty"):
        container.register("  ", dict)


def test_container_resolves_once_and_lists_sorted_keys() -> None:
    calls: list[str] = []
    container = Container()
    container.register("zeta_service", lambda: calls.append("zeta") or object())
    container.register("alpha_query", dict)

    first = container.resolve("zeta_service")

    assert container.resolve("zeta_service") is first
    assert calls == ["zeta"]
    assert container.keys() == ("alpha_query", "zeta_service")
    assert "alpha_query" in container
    assert len(container) == 2


def test_unknown_key_is_a_resolution_error() -> None:
    with pytest.raises(ResolutionError) as excinfo:
        Container().resolve("missing_service")

    assert excinfo.value.reference == "missing_service"


def test_load_container_from_factory_reference() -> None:
    container = load_container("sample_orders.container:build_container")

    assert container.keys() == ("get_order_query", "order_repository", "place_order_service")


@pytest.mark.parametrize(
    ("reference", "message"),
    [
        ("sample_orders.container", "must look like module:attr"),
        (":build_container", "must look like module:attr"),
        ("sample_orders.nope:build", "unable to import"),
        ("sample_orders.container:missing", "has no attribute"),
        ("sample_orders.container:__name__", "does not provide a Container"),
    ],
)
def test_load_container_failures(reference: str, message: str) -> None:
    with pytest.raises(ResolutionError, match=message):
        load_container(reference)


def test_aggregate_records_events_without_touching_the_receiver() -> None:
    draft = Order("o-1", "c-1", (OrderLine("sku-1", 2, 500),))

    placed = draft.place()

    assert draft.status == "draft"
    assert draft.pending_events == ()
    (event,) = placed.pull_events()
    assert isinstance(event, OrderPlaced)
    assert (event.order_id, event.total_cents) == ("o-1", 1000)
    assert event.event_type == "OrderPlaced"
    assert event.schema_version == 1
    assert placed.pull_events() == ()


def test_empty_order_cannot_be_placed() -> None:
    with pytest.raises(ValueError, match="at least one line"):
        Order("o-2", "c-1").place()


def test_entities_compare_by_identity() -> None:
    class Customer(Entity):
        def __init__(self, id: str, name: str) -> None:  # noqa: A002
            self.id = id
            self.name = name

    assert Customer("c-1", "Ada") == Customer("c-1", "Grace")
    assert Customer("c-1", "Ada") != Customer("c-2", "Ada")
    assert len({Customer("c-1", "Ada"), Customer("c-1", "Grace")}) == 1


def test_sample_controller_round_trip() -> None:
    controller = OrderController(build_container())

    created = controller.place(
        {"id": "o-9", "customer": "c-1", "lines": [{"sku": "book", "quantity": 3, "price": 1200}]}
    )

    assert created == {"id": "o-9", "status": "placed", "total_cents": 3600}
    assert controller.show("o-9") == {"id": "o-9", "status": "placed"}
    assert controller.show("unknown") is None

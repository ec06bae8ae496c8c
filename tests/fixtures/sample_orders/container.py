"""Dependency wiring for the orders component."""

from __future__ import annotations

from archconform.contracts import Container
from sample_orders.application.place_order import GetOrderQuery, PlaceOrderService
from sample_orders.infrastructure.payments import StripePaymentGateway
from sample_orders.infrastructure.persistence import InMemoryOrderRepository


def build_container() -> Container:
    container = Container()
    repository = InMemoryOrderRepository()
    container.register("order_repository", lambda: repository)
    container.register(
        "place_order_service",
        lambda: PlaceOrderService(repository, StripePaymentGateway()),
    )
    container.register("get_order_query", lambda: _get_order(repository))
    return container


def _get_order(repository: InMemoryOrderRepository):  # type: ignore[no-untyped-def]
    def handle(query: GetOrderQuery):  # type: ignore[no-untyped-def]
        return repository.get(query.order_id)

    return handle

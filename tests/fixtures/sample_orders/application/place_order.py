"""Place-order use case with its command and read-side query."""

from __future__ import annotations

from dataclasses import dataclass

from archconform.contracts import ApplicationService, Command, Query
from sample_orders.domain.order import Order, OrderLine
from sample_orders.domain.ports import OrderRepository, PaymentGateway


@dataclass(frozen=True, slots=True)
class PlaceOrderCommand(Command):
    order_id: str
    customer_id: str
    lines: tuple[OrderLine, ...]


@dataclass(frozen=True, slots=True)
class GetOrderQuery(Query):
    order_id: str


class PlaceOrderService(ApplicationService):
    def __init__(
        self, orders: OrderRepository, payments: PaymentGateway, currency: str = "EUR"
    ) -> None:
        self.orders = orders
        self.payments = payments
        self.currency = currency

    def place(self, command: PlaceOrderCommand) -> Order:
        order = Order(command.order_id, command.customer_id, command.lines).place()
        self.payments.charge(str(order.id), order.total_cents(), self.currency)
        self.orders.save(order)
        return order

"""HTTP controller for the orders component."""

from __future__ import annotations

from collections.abc import Mapping

from archconform.contracts import HttpEntrypoint
from sample_orders.application.place_order import GetOrderQuery, PlaceOrderCommand
from sample_orders.domain.order import OrderLine


class OrderController(HttpEntrypoint):
    def place(self, payload: Mapping[str, object]) -> dict[str, object]:
        raw_lines = payload.get("lines", [])
        lines = tuple(
            OrderLine(sku=str(item["sku"]), quantity=int(item["quantity"]), unit_price_cents=int(item["price"]))
            for item in raw_lines  # type: ignore[union-attr]
        )
        command = PlaceOrderCommand(
            order_id=str(payload["id"]), customer_id=str(payload["customer"]), lines=lines
        )
        order = self.resolve("place_order_service").place(command)
        return {"id": order.id, "status": order.status, "total_cents": order.total_cents()}

    def show(self, order_id: str) -> dict[str, object] | None:
        order = self.resolve("get_order_query")(GetOrderQuery(order_id=order_id))
        if order is None:
            return None
        return {"id": order.id, "status": order.status}

from __future__ import annotations

from sample_orders.domain.ports import PaymentGateway


class StripePaymentGateway(PaymentGateway):
    """Records charges instead of calling the payment provider."""

    def __init__(self) -> None:
        self.charges: list[tuple[str, int, str]] = []

    def charge(self, reference: str, amount_cents: int, currency: str) -> str:
        self.charges.append((reference, amount_cents, currency))
        return f"ch_{len(self.charges)}"

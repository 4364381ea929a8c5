"""
In-process payment collaborator.

Stands in for the external payment provider: every charge succeeds
unless the payer has been marked as declined. Charges are kept in
memory so they can be inspected.
"""

import uuid
from decimal import Decimal

from .interfaces import IPaymentGateway
from .models import TipReceipt
from .exceptions import PaymentFailedError


class InMemoryPaymentGateway(IPaymentGateway):
    """Payment gateway that records charges instead of sending them anywhere."""

    def __init__(self) -> None:
        self.charges: list[TipReceipt] = []
        self._declined: set[str] = set()

    def decline(self, payer_id: str) -> None:
        """Make every future charge for ``payer_id`` fail."""
        self._declined.add(payer_id)

    async def charge_tip(
        self,
        payer_id: str,
        payee_id: str,
        stream_id: str,
        amount: Decimal,
    ) -> TipReceipt:
        if payer_id in self._declined:
            raise PaymentFailedError("Payment declined", provider_error="card_declined")

        receipt = TipReceipt(
            id=f"tip_{uuid.uuid4().hex}",
            payer_id=payer_id,
            payee_id=payee_id,
            stream_id=stream_id,
            amount=amount,
        )
        self.charges.append(receipt)
        return receipt

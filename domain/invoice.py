"""
Domain: Paid invoice extracted from a Stripe event.

Only the fields the sale pipeline needs are lifted out; the raw invoice object
is kept verbatim for the sale event's audit metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class InvalidEventError(ValueError):
    """The Stripe event does not carry a usable invoice."""


@dataclass(frozen=True, slots=True)
class Invoice:
    id: str
    customer: str  # Stripe customer id
    amount_paid: int  # minor currency units
    currency: str
    raw: Mapping[str, Any]

    def __post_init__(self) -> None:
        if self.amount_paid < 0:
            raise ValueError("amount_paid must be >= 0")

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "Invoice":
        """
        Build an Invoice from a Stripe event payload (`event.data.object`).

        Raises:
            InvalidEventError: if the event does not carry an invoice object
        """

        try:
            obj = event["data"]["object"]
        except (KeyError, TypeError) as exc:
            raise InvalidEventError("Event does not contain data.object") from exc

        customer = obj.get("customer")
        # Expanded customers arrive as objects
        if isinstance(customer, Mapping):
            customer = customer.get("id")

        if not obj.get("id") or not customer:
            raise InvalidEventError("Invoice is missing id or customer")

        return cls(
            id=str(obj["id"]),
            customer=str(customer),
            amount_paid=int(obj.get("amount_paid") or 0),
            currency=str(obj.get("currency") or ""),
            raw=obj,
        )

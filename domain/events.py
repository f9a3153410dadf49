"""
Domain: Analytics events.

Lead events attribute a customer to the link (and click) that originated them.
Sale events are appended once per accepted invoice and copy the lead's
attribution fields, so downstream analytics can group sales by click context.

The sale's `metadata` is an opaque JSON string holding the raw invoice; it is
stored verbatim and never parsed by the pipeline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Mapping

from .invoice import Invoice
from .time import require_utc_timestamp

SALE_EVENT_NAME: str = "Subscription update"
PAYMENT_PROCESSOR: str = "stripe"


@dataclass(frozen=True, slots=True)
class LeadEvent:
    """Read-only attribution record from the event store."""

    timestamp: datetime
    event_id: str
    event_name: str
    customer_id: str
    click_id: str
    link_id: str
    url: str = ""

    continent: str = ""
    country: str = ""
    city: str = ""
    region: str = ""
    latitude: str = ""
    longitude: str = ""
    device: str = ""
    device_vendor: str = ""
    device_model: str = ""
    browser: str = ""
    browser_version: str = ""
    engine: str = ""
    engine_version: str = ""
    os: str = ""
    os_version: str = ""
    cpu_architecture: str = ""
    ua: str = ""
    bot: int = 0
    qr: int = 0
    referer: str = ""
    referer_url: str = ""
    ip: str = ""
    metadata: str = ""

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)

    def attribution_fields(self) -> Dict[str, Any]:
        """Click/customer attribution copied onto sale events."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _NON_ATTRIBUTION_FIELDS
        }


# Fields a sale event stamps for itself instead of inheriting from the lead.
_NON_ATTRIBUTION_FIELDS = frozenset({"timestamp", "event_id", "event_name", "metadata"})


@dataclass(frozen=True, slots=True)
class SaleEvent:
    """
    Immutable sale record appended to the event store.

    All attribution fields come from the originating LeadEvent.
    """

    timestamp: datetime
    event_id: str
    event_name: str
    customer_id: str
    click_id: str
    link_id: str
    payment_processor: str
    amount: int
    currency: str
    invoice_id: str
    metadata: str
    attribution: Mapping[str, Any]

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)
        if self.amount <= 0:
            raise ValueError("amount must be > 0")

    @classmethod
    def from_lead(
        cls,
        lead: LeadEvent,
        invoice: Invoice,
        *,
        event_id: str,
        timestamp: datetime,
    ) -> "SaleEvent":
        return cls(
            timestamp=timestamp,
            event_id=event_id,
            event_name=SALE_EVENT_NAME,
            customer_id=lead.customer_id,
            click_id=lead.click_id,
            link_id=lead.link_id,
            payment_processor=PAYMENT_PROCESSOR,
            amount=invoice.amount_paid,
            currency=invoice.currency,
            invoice_id=invoice.id,
            metadata=json.dumps({"invoice": invoice.raw}, default=str),
            attribution=lead.attribution_fields(),
        )

    def to_row(self) -> Dict[str, Any]:
        """Flatten into the event store row shape."""

        row: Dict[str, Any] = dict(self.attribution)
        row.update(
            {
                "timestamp": self.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
                "event_id": self.event_id,
                "event_name": self.event_name,
                "customer_id": self.customer_id,
                "click_id": self.click_id,
                "link_id": self.link_id,
                "payment_processor": self.payment_processor,
                "amount": self.amount,
                "currency": self.currency,
                "invoice_id": self.invoice_id,
                "metadata": self.metadata,
            }
        )
        return row


__all__ = ["LeadEvent", "SaleEvent", "SALE_EVENT_NAME", "PAYMENT_PROCESSOR"]

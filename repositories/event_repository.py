"""
Analytics event store (Tinybird).

Lead events are read through the `get_lead_event` pipe, which returns the
customer's lead events ordered by timestamp, newest first. Sale events are
appended to the `dub_sale_events` datasource through the Events API as NDJSON.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import httpx

from config.settings import Settings
from domain.events import LeadEvent, SaleEvent
from domain.time import parse_utc_datetime
from repositories.errors import EventStoreError

logger = logging.getLogger(__name__)

_LEAD_EVENT_PIPE: str = "/v0/pipes/get_lead_event.json"
_EVENTS_ENDPOINT: str = "/v0/events"
_SALE_EVENTS_DATASOURCE: str = "dub_sale_events"

_LEAD_STRING_FIELDS = (
    "url",
    "continent",
    "country",
    "city",
    "region",
    "latitude",
    "longitude",
    "device",
    "device_vendor",
    "device_model",
    "browser",
    "browser_version",
    "engine",
    "engine_version",
    "os",
    "os_version",
    "cpu_architecture",
    "ua",
    "referer",
    "referer_url",
    "ip",
    "metadata",
)


def create_tinybird_client(settings: Settings) -> httpx.Client:
    return httpx.Client(
        base_url=settings.tinybird_api_url,
        headers={"Authorization": f"Bearer {settings.tinybird_api_key}"},
        timeout=10.0,
    )


def _row_to_lead_event(row: Mapping[str, Any]) -> LeadEvent:
    """Convert a pipe row into a LeadEvent. Missing optional columns become ''."""

    return LeadEvent(
        timestamp=parse_utc_datetime(row["timestamp"]),
        event_id=str(row["event_id"]),
        event_name=str(row.get("event_name") or ""),
        customer_id=str(row["customer_id"]),
        click_id=str(row.get("click_id") or ""),
        link_id=str(row["link_id"]),
        bot=int(row.get("bot") or 0),
        qr=int(row.get("qr") or 0),
        **{name: str(row.get(name) or "") for name in _LEAD_STRING_FIELDS},
    )


class TinybirdEventStore:
    def __init__(self, http: httpx.Client) -> None:
        self._http = http

    def get_lead_event(self, customer_id: str) -> Optional[LeadEvent]:
        """
        Return the first lead event the pipe yields for `customer_id`.

        The pipe's ordering (newest first) is trusted as-is.
        """

        try:
            response = self._http.get(_LEAD_EVENT_PIPE, params={"customerId": customer_id})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EventStoreError(f"Failed to fetch lead event: {exc}") from exc

        rows = response.json().get("data") or []
        if not rows:
            return None
        return _row_to_lead_event(rows[0])

    def record_sale(self, sale: SaleEvent) -> None:
        """Append one sale event."""

        body = json.dumps(sale.to_row(), default=str)
        try:
            response = self._http.post(
                _EVENTS_ENDPOINT,
                params={"name": _SALE_EVENTS_DATASOURCE, "wait": "true"},
                content=body,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EventStoreError(f"Failed to record sale: {exc}") from exc

        logger.debug(
            "Sale event appended",
            extra={"event_id": sale.event_id, "invoice_id": sale.invoice_id},
        )


__all__ = ["TinybirdEventStore", "create_tinybird_client"]

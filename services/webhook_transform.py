"""
Workspace webhook payloads.

Internal snake_case entities are mapped to the public camelCase webhook schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.customer import Customer
from domain.events import SaleEvent
from domain.link import Link


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WebhookCustomer(_WireModel):
    id: str
    external_id: Optional[str] = Field(default=None, alias="externalId")
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    country: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")


class WebhookSale(_WireModel):
    amount: int
    currency: str
    invoice_id: Optional[str] = Field(default=None, alias="invoiceId")
    payment_processor: str = Field(alias="paymentProcessor")


class WebhookTag(_WireModel):
    id: str
    name: str
    color: Optional[str] = None


class WebhookLink(_WireModel):
    id: str
    domain: str
    key: str
    url: str
    short_link: str = Field(alias="shortLink")
    program_id: Optional[str] = Field(default=None, alias="programId")
    partner_id: Optional[str] = Field(default=None, alias="partnerId")
    clicks: int
    leads: int
    sales: int
    sale_amount: int = Field(alias="saleAmount")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    tags: List[WebhookTag] = Field(default_factory=list)


class WebhookClick(_WireModel):
    id: str
    timestamp: datetime
    url: str = ""
    country: str = ""
    city: str = ""
    region: str = ""
    continent: str = ""
    device: str = ""
    browser: str = ""
    os: str = ""
    referer: str = ""
    referer_url: str = Field(default="", alias="refererUrl")
    qr: bool = False
    ip: str = ""


class SaleWebhookData(_WireModel):
    event_name: str = Field(alias="eventName")
    customer: WebhookCustomer
    sale: WebhookSale
    link: WebhookLink
    click: WebhookClick


def transform_sale_event_data(
    sale: SaleEvent,
    *,
    link: Link,
    customer: Customer,
    clicked_at: datetime,
) -> Dict[str, Any]:
    """
    Build the `sale.created` webhook body.

    Args:
        sale: The recorded sale event
        link: The link after its counters were incremented
        customer: The paying customer
        clicked_at: Attribution time (customer's first click, else creation)

    Returns:
        JSON-ready dict with camelCase keys
    """

    attribution = sale.attribution
    data = SaleWebhookData(
        event_name=sale.event_name,
        customer=WebhookCustomer(
            id=customer.id,
            external_id=customer.external_id,
            name=customer.name,
            email=customer.email,
            avatar=customer.avatar,
            country=customer.country,
            created_at=customer.created_at,
        ),
        sale=WebhookSale(
            amount=sale.amount,
            currency=sale.currency,
            invoice_id=sale.invoice_id,
            payment_processor=sale.payment_processor,
        ),
        link=WebhookLink(
            id=link.id,
            domain=link.domain,
            key=link.key,
            url=link.url,
            short_link=link.short_link,
            program_id=link.program_id,
            partner_id=link.partner_id,
            clicks=link.clicks,
            leads=link.leads,
            sales=link.sales,
            sale_amount=link.sale_amount,
            created_at=link.created_at,
            tags=[WebhookTag(**tag) for tag in link.tags],
        ),
        click=WebhookClick(
            id=sale.click_id,
            timestamp=clicked_at,
            url=attribution.get("url", ""),
            country=attribution.get("country", ""),
            city=attribution.get("city", ""),
            region=attribution.get("region", ""),
            continent=attribution.get("continent", ""),
            device=attribution.get("device", ""),
            browser=attribution.get("browser", ""),
            os=attribution.get("os", ""),
            referer=attribution.get("referer", ""),
            referer_url=attribution.get("referer_url", ""),
            qr=bool(attribution.get("qr", 0)),
            ip=attribution.get("ip", ""),
        ),
    )
    return data.model_dump(mode="json", by_alias=True)


__all__ = ["SaleWebhookData", "transform_sale_event_data"]

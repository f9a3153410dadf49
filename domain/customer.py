"""
Domain: Customer.

A customer is the billing-side identity of a converted lead. It belongs to a
workspace (project) and is joined to Stripe through stripe_customer_id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Customer:
    """
    Customer record as seen by the sale pipeline.

    Immutable: the pipeline only uses it as a join key and as webhook payload.
    """

    id: str
    project_id: str
    created_at: datetime

    stripe_customer_id: Optional[str] = None
    external_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    country: Optional[str] = None

    # Attribution
    link_id: Optional[str] = None
    click_id: Optional[str] = None
    clicked_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.clicked_at is not None:
            require_utc_timestamp("clicked_at", self.clicked_at)

    def attributed_at(self) -> datetime:
        """When the customer was attributed: first click, else account creation."""
        return self.clicked_at or self.created_at

"""
Customer repository (persistence).

Read-only access to customers; the sale pipeline never writes them.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.customer import Customer
from domain.time import parse_utc_datetime
from repositories.client import response_rows

_CUSTOMERS_TABLE: str = "customers"


def _row_to_customer(row: Mapping[str, Any]) -> Customer:
    """Convert a Supabase row into a Customer."""

    clicked_at = row.get("clicked_at")
    return Customer(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        created_at=parse_utc_datetime(row["created_at"]),
        stripe_customer_id=row.get("stripe_customer_id"),
        external_id=row.get("external_id"),
        name=row.get("name"),
        email=row.get("email"),
        avatar=row.get("avatar"),
        country=row.get("country"),
        link_id=row.get("link_id"),
        click_id=row.get("click_id"),
        clicked_at=parse_utc_datetime(clicked_at) if clicked_at else None,
    )


class CustomerRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[Customer]:
        """
        Look up a customer by their Stripe customer id (unique).

        Returns:
            Customer or None if the customer has not been synchronized yet
        """

        response = (
            self._client.table(_CUSTOMERS_TABLE)
            .select("*")
            .eq("stripe_customer_id", stripe_customer_id)
            .limit(1)
            .execute()
        )
        rows = response_rows(response, "fetch customer")
        if not rows:
            return None
        return _row_to_customer(rows[0])


__all__ = ["CustomerRepository"]

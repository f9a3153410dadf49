"""
Link repository (persistence).

Sales counters are incremented server-side by the `increment_link_sales`
PostgreSQL function so concurrent sales on the same link never lose updates.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.link import Link
from domain.time import parse_utc_datetime
from repositories.client import response_rows
from repositories.errors import RecordNotFoundError

_LINKS_TABLE: str = "links"

# Embeds the link's tags through the link_tags join table.
_SELECT_WITH_TAGS: str = "*, tags:link_tags(tag:tags(id, name, color))"


def _row_to_link(row: Mapping[str, Any]) -> Link:
    """Convert a Supabase row into a Link."""

    created_at = row.get("created_at")
    tags = tuple(
        entry["tag"] if isinstance(entry, Mapping) and "tag" in entry else entry
        for entry in (row.get("tags") or [])
    )
    return Link(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        domain=str(row["domain"]),
        key=str(row["key"]),
        url=str(row.get("url") or ""),
        short_link=str(row["short_link"]),
        program_id=row.get("program_id"),
        partner_id=row.get("partner_id"),
        clicks=int(row.get("clicks") or 0),
        leads=int(row.get("leads") or 0),
        sales=int(row.get("sales") or 0),
        sale_amount=int(row.get("sale_amount") or 0),
        created_at=parse_utc_datetime(created_at) if created_at else None,
        tags=tags,
    )


class LinkRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, link_id: str, *, include_tags: bool = False) -> Optional[Link]:
        response = (
            self._client.table(_LINKS_TABLE)
            .select(_SELECT_WITH_TAGS if include_tags else "*")
            .eq("id", link_id)
            .limit(1)
            .execute()
        )
        rows = response_rows(response, "fetch link")
        if not rows:
            return None
        return _row_to_link(rows[0])

    def increment_sales(self, link_id: str, amount: int) -> Link:
        """
        Atomically add one sale and `amount` to the link's counters.

        Returns:
            The updated link, with tags
        """

        response = self._client.rpc(
            "increment_link_sales",
            {"p_link_id": link_id, "p_amount": amount},
        ).execute()
        response_rows(response, "increment link sales")

        link = self.get_by_id(link_id, include_tags=True)
        if link is None:
            raise RecordNotFoundError(f"Link {link_id} disappeared after sales increment")
        return link


__all__ = ["LinkRepository"]

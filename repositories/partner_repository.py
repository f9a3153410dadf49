"""
Partner repository (persistence).

Resolves the people to notify for a partner account.
"""

from __future__ import annotations

from typing import List

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import response_rows

_PARTNER_USERS_TABLE: str = "partner_users"


class PartnerRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def list_user_emails(self, partner_id: str) -> List[str]:
        """Email addresses of every user attached to the partner (may be empty)."""

        response = (
            self._client.table(_PARTNER_USERS_TABLE)
            .select("user:users(email)")
            .eq("partner_id", partner_id)
            .execute()
        )
        rows = response_rows(response, "list partner users")

        emails: List[str] = []
        for row in rows:
            user = row.get("user") or {}
            email = user.get("email")
            if email:
                emails.append(str(email))
        return emails


__all__ = ["PartnerRepository"]

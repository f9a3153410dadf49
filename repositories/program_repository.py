"""
Program repository (persistence).

Enrollments and earnings for partner programs. Earnings are insert-only here;
payout state transitions happen elsewhere.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from supabase import Client  # type: ignore[import-not-found]

from domain.program import (
    CommissionType,
    Earnings,
    Program,
    ProgramEnrollment,
)
from repositories.client import response_rows
from repositories.errors import EnrollmentNotFoundError

_ENROLLMENTS_TABLE: str = "program_enrollments"
_EARNINGS_TABLE: str = "earnings"

# `links!inner` turns the embedded links into a filter: only enrollments that
# own the requested link are returned.
_ENROLLMENT_SELECT: str = "partner_id, commission_amount, program:programs(*), links!inner(id)"


def _row_to_program(row: Mapping[str, Any]) -> Program:
    return Program(
        id=str(row["id"]),
        workspace_id=str(row["workspace_id"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        commission_type=CommissionType(str(row.get("commission_type") or "percentage")),
        commission_amount=int(row.get("commission_amount") or 0),
    )


def _row_to_enrollment(row: Mapping[str, Any]) -> ProgramEnrollment:
    commission_amount = row.get("commission_amount")
    return ProgramEnrollment(
        program=_row_to_program(row["program"]),
        partner_id=str(row["partner_id"]),
        commission_amount=int(commission_amount) if commission_amount is not None else None,
    )


def _earnings_to_row(earnings: Earnings) -> Dict[str, Any]:
    return {
        "id": earnings.id,
        "type": earnings.type,
        "program_id": earnings.program_id,
        "partner_id": earnings.partner_id,
        "link_id": earnings.link_id,
        "customer_id": earnings.customer_id,
        "event_id": earnings.event_id,
        "invoice_id": earnings.invoice_id,
        "quantity": earnings.quantity,
        "amount": earnings.amount,
        "earnings": earnings.earnings,
        "currency": earnings.currency,
        "status": earnings.status.value,
    }


class ProgramRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find_enrollment_for_link_or_raise(self, link_id: str) -> ProgramEnrollment:
        """
        Fetch the enrollment that owns `link_id`.

        Raises:
            EnrollmentNotFoundError: a program link must always have one
        """

        response = (
            self._client.table(_ENROLLMENTS_TABLE)
            .select(_ENROLLMENT_SELECT)
            .eq("links.id", link_id)
            .limit(1)
            .execute()
        )
        rows = response_rows(response, "fetch program enrollment")
        if not rows:
            raise EnrollmentNotFoundError(f"No program enrollment found for link {link_id}")
        return _row_to_enrollment(rows[0])

    def create_earnings(self, earnings: Earnings) -> Earnings:
        response = self._client.table(_EARNINGS_TABLE).insert(_earnings_to_row(earnings)).execute()
        response_rows(response, "create earnings")
        return earnings


__all__ = ["ProgramRepository"]

"""
Commission rules for partner programs.

Pure functions: no I/O, deterministic given their inputs (apart from the
freshly generated earnings id).

Rules:
- The partner's enrollment may override the program's commission amount.
- PERCENTAGE: earnings = sale_amount * sales * commission / 100, rounded to the
  nearest minor unit.
- FLAT: earnings = sales * commission (minor units), independent of the sale.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from domain.ids import prefixed_id
from domain.program import CommissionType, Earnings, EarningsStatus, Program, ProgramEnrollment


@dataclass(frozen=True, slots=True)
class SaleAmount:
    amount: int
    currency: str
    invoice_id: Optional[str] = None


def effective_commission_amount(program: Program, enrollment: ProgramEnrollment) -> int:
    if enrollment.commission_amount is not None:
        return enrollment.commission_amount
    return program.commission_amount


def calculate_sale_earnings(
    program: Program,
    enrollment: ProgramEnrollment,
    *,
    sales: int,
    sale_amount: int,
) -> int:
    """
    Commission owed for `sales` sales totalling `sale_amount` per sale.

    Returns:
        Earnings in minor currency units (never negative)
    """

    if sales <= 0 or sale_amount <= 0:
        return 0

    commission = effective_commission_amount(program, enrollment)

    if program.commission_type == CommissionType.FLAT:
        return sales * commission

    earnings = Decimal(sale_amount) * sales * Decimal(commission) / Decimal(100)
    return int(earnings.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def prepare_earnings(
    *,
    link_id: str,
    customer_id: str,
    event_id: str,
    program: Program,
    enrollment: ProgramEnrollment,
    sale: SaleAmount,
) -> Earnings:
    """Build the earnings record for one sale on a program link."""

    return Earnings(
        id=prefixed_id("earn_"),
        type="sale",
        program_id=program.id,
        partner_id=enrollment.partner_id,
        link_id=link_id,
        customer_id=customer_id,
        event_id=event_id,
        invoice_id=sale.invoice_id,
        quantity=1,
        amount=sale.amount,
        earnings=calculate_sale_earnings(program, enrollment, sales=1, sale_amount=sale.amount),
        currency=sale.currency,
        status=EarningsStatus.PENDING,
    )


__all__ = [
    "SaleAmount",
    "calculate_sale_earnings",
    "effective_commission_amount",
    "prepare_earnings",
]

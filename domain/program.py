"""
Domain: Partner programs, enrollments and earnings.

A program link (Link.program_id set) implies a ProgramEnrollment tying the
link to a partner. Every sale on such a link produces exactly one Earnings
record computed from the program's commission rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class EarningsStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class Program:
    id: str
    workspace_id: str
    name: str
    slug: str
    commission_type: CommissionType = CommissionType.PERCENTAGE
    commission_amount: int = 0  # percent for PERCENTAGE, minor units for FLAT


@dataclass(frozen=True, slots=True)
class ProgramEnrollment:
    """
    Association between a partner and a program.

    commission_amount overrides the program's rule for this partner when set.
    """

    program: Program
    partner_id: str
    commission_amount: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Earnings:
    id: str
    type: str  # "sale"
    program_id: str
    partner_id: str
    link_id: str
    customer_id: str
    event_id: str
    quantity: int
    amount: int
    earnings: int
    currency: str
    invoice_id: Optional[str] = None
    status: EarningsStatus = EarningsStatus.PENDING

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.earnings < 0:
            raise ValueError("earnings must be >= 0")

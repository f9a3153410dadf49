"""
Pytest configuration and in-memory collaborators.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides fakes for every port of the
invoice-paid handler.
"""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.customer import Customer  # noqa: E402
from domain.events import LeadEvent, SaleEvent  # noqa: E402
from domain.link import Link  # noqa: E402
from domain.program import Earnings, ProgramEnrollment  # noqa: E402
from domain.workspace import Workspace  # noqa: E402
from repositories.errors import EnrollmentNotFoundError  # noqa: E402
from services.background import run_detached  # noqa: E402
from services.invoice_paid_service import InvoicePaidHandler  # noqa: E402
from factories import (  # noqa: E402
    NOW,
    make_customer,
    make_lead_event,
    make_link,
    make_workspace,
)


# ============================================================================
# Fakes
# ============================================================================

class InMemoryCustomerStore:
    def __init__(self) -> None:
        self.customers: Dict[str, Customer] = {}

    def add(self, customer: Customer) -> None:
        self.customers[customer.stripe_customer_id] = customer

    def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[Customer]:
        return self.customers.get(stripe_customer_id)


class InMemoryLinkStore:
    def __init__(self) -> None:
        self.links: Dict[str, Link] = {}
        self.increments: List[Tuple[str, int]] = []

    def add(self, link: Link) -> None:
        self.links[link.id] = link

    def get_by_id(self, link_id: str, *, include_tags: bool = False) -> Optional[Link]:
        return self.links.get(link_id)

    def increment_sales(self, link_id: str, amount: int) -> Link:
        link = self.links[link_id]
        updated = replace(link, sales=link.sales + 1, sale_amount=link.sale_amount + amount)
        self.links[link_id] = updated
        self.increments.append((link_id, amount))
        return updated


class InMemoryWorkspaceStore:
    def __init__(self) -> None:
        self.workspaces: Dict[str, Workspace] = {}
        self.increments: List[Tuple[str, int]] = []
        self.fail_with: Optional[Exception] = None

    def add(self, workspace: Workspace) -> None:
        self.workspaces[workspace.id] = workspace

    def increment_sales_usage(self, workspace_id: str, amount: int) -> Workspace:
        if self.fail_with is not None:
            raise self.fail_with
        workspace = self.workspaces[workspace_id]
        updated = replace(
            workspace,
            usage=workspace.usage + 1,
            sales_usage=workspace.sales_usage + amount,
        )
        self.workspaces[workspace_id] = updated
        self.increments.append((workspace_id, amount))
        return updated


class InMemoryProgramStore:
    def __init__(self) -> None:
        self.enrollments: Dict[str, ProgramEnrollment] = {}
        self.earnings: List[Earnings] = []

    def enroll(self, link_id: str, enrollment: ProgramEnrollment) -> None:
        self.enrollments[link_id] = enrollment

    def find_enrollment_for_link_or_raise(self, link_id: str) -> ProgramEnrollment:
        try:
            return self.enrollments[link_id]
        except KeyError:
            raise EnrollmentNotFoundError(f"No program enrollment found for link {link_id}")

    def create_earnings(self, earnings: Earnings) -> Earnings:
        self.earnings.append(earnings)
        return earnings


class InMemoryDedupStore:
    def __init__(self) -> None:
        self.claims: Dict[str, int] = {}

    def claim(self, key: str, ttl_seconds: int) -> bool:
        if key in self.claims:
            return False
        self.claims[key] = ttl_seconds
        return True


class InMemoryEventStore:
    def __init__(self) -> None:
        self.leads: Dict[str, List[LeadEvent]] = {}
        self.sales: List[SaleEvent] = []

    def add_lead(self, lead: LeadEvent) -> None:
        self.leads.setdefault(lead.customer_id, []).append(lead)

    def get_lead_event(self, customer_id: str) -> Optional[LeadEvent]:
        leads = self.leads.get(customer_id) or []
        return leads[0] if leads else None

    def record_sale(self, sale: SaleEvent) -> None:
        self.sales.append(sale)


class RecordingPartnerNotifier:
    def __init__(self) -> None:
        self.notifications: List[Any] = []
        self.fail_with: Optional[Exception] = None

    def notify_sale(self, notification: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.notifications.append(notification)


class RecordingWebhookPublisher:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []

    def send(self, *, trigger: str, workspace: Workspace, data: Any) -> int:
        self.sent.append({"trigger": trigger, "workspace": workspace, "data": data})
        return 1


class DeferredScheduler:
    """Collects detached tasks; `run_all()` runs them like a background worker would."""

    def __init__(self) -> None:
        self.tasks: List[Tuple[Callable[..., Any], tuple, dict]] = []

    def detach(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self.tasks.append((fn, args, kwargs))

    def run_all(self) -> None:
        tasks, self.tasks = self.tasks, []
        for fn, args, kwargs in tasks:
            run_detached(fn, *args, **kwargs)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def world() -> SimpleNamespace:
    """
    Fully seeded fakes plus a handler wired to them.

    Seed: customer cus_1 (workspace ws_1) with a lead event on link_1, which
    has no program.
    """

    w = SimpleNamespace(
        customers=InMemoryCustomerStore(),
        links=InMemoryLinkStore(),
        workspaces=InMemoryWorkspaceStore(),
        programs=InMemoryProgramStore(),
        dedup=InMemoryDedupStore(),
        events=InMemoryEventStore(),
        partner_notifier=RecordingPartnerNotifier(),
        webhooks=RecordingWebhookPublisher(),
        scheduler=DeferredScheduler(),
    )
    w.customers.add(make_customer())
    w.events.add_lead(make_lead_event())
    w.links.add(make_link())
    w.workspaces.add(make_workspace())

    w.handler = InvoicePaidHandler(
        customers=w.customers,
        links=w.links,
        workspaces=w.workspaces,
        programs=w.programs,
        dedup=w.dedup,
        events=w.events,
        partner_notifier=w.partner_notifier,
        webhooks=w.webhooks,
        scheduler=w.scheduler,
        id_factory=lambda: "sale_evt_0000001",
        clock=lambda: NOW,
    )
    return w

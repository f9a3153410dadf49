"""
Collaborator interfaces for the sale pipeline.

The pipeline only talks to these protocols. Production wiring plugs in the
Supabase / Redis / Tinybird adapters from `repositories`; tests plug in
in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol

from domain.customer import Customer
from domain.events import LeadEvent, SaleEvent
from domain.link import Link
from domain.program import Earnings, ProgramEnrollment
from domain.workspace import Workspace


class CustomerStore(Protocol):
    def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[Customer]: ...


class LinkStore(Protocol):
    def get_by_id(self, link_id: str, *, include_tags: bool = False) -> Optional[Link]: ...

    def increment_sales(self, link_id: str, amount: int) -> Link: ...


class WorkspaceStore(Protocol):
    def increment_sales_usage(self, workspace_id: str, amount: int) -> Workspace: ...


class ProgramStore(Protocol):
    def find_enrollment_for_link_or_raise(self, link_id: str) -> ProgramEnrollment: ...

    def create_earnings(self, earnings: Earnings) -> Earnings: ...


class DedupStore(Protocol):
    def claim(self, key: str, ttl_seconds: int) -> bool: ...


class EventStore(Protocol):
    def get_lead_event(self, customer_id: str) -> Optional[LeadEvent]: ...

    def record_sale(self, sale: SaleEvent) -> None: ...


class PartnerNotifier(Protocol):
    def notify_sale(self, notification: Any) -> None: ...


class WebhookPublisher(Protocol):
    def send(self, *, trigger: str, workspace: Workspace, data: Mapping[str, Any]) -> int: ...


class TaskScheduler(Protocol):
    def detach(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None: ...


__all__ = [
    "CustomerStore",
    "LinkStore",
    "WorkspaceStore",
    "ProgramStore",
    "DedupStore",
    "EventStore",
    "PartnerNotifier",
    "WebhookPublisher",
    "TaskScheduler",
]

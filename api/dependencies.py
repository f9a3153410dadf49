"""
Dependency wiring.

Builds the production collaborators (Supabase, Redis, Tinybird, SMTP, httpx)
for the API. Routers only depend on the provider functions here, so tests swap
them out with `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

import httpx
from fastapi import BackgroundTasks

from config.settings import load_settings
from repositories.client import get_supabase
from repositories.customer_repository import CustomerRepository
from repositories.dedup_repository import RedisDedupStore, get_redis
from repositories.event_repository import TinybirdEventStore, create_tinybird_client
from repositories.link_repository import LinkRepository
from repositories.partner_repository import PartnerRepository
from repositories.program_repository import ProgramRepository
from repositories.workspace_repository import WorkspaceRepository
from services.background import FastAPITaskScheduler
from services.invoice_paid_service import InvoicePaidHandler
from services.partner_notification_service import EmailPartnerNotifier
from services.ports import TaskScheduler
from services.webhook_publisher import WorkspaceWebhookPublisher


@lru_cache(maxsize=1)
def _tinybird_http() -> httpx.Client:
    return create_tinybird_client(load_settings())


@lru_cache(maxsize=1)
def _webhook_http() -> httpx.Client:
    return httpx.Client(timeout=load_settings().webhook_timeout_seconds)


def get_webhook_secret() -> str:
    return load_settings().stripe_webhook_secret


def build_invoice_paid_handler(scheduler: TaskScheduler) -> InvoicePaidHandler:
    """Wire the handler against the production backends."""

    supabase = get_supabase()
    workspaces = WorkspaceRepository(supabase)

    return InvoicePaidHandler(
        customers=CustomerRepository(supabase),
        links=LinkRepository(supabase),
        workspaces=workspaces,
        programs=ProgramRepository(supabase),
        dedup=RedisDedupStore(get_redis()),
        events=TinybirdEventStore(_tinybird_http()),
        partner_notifier=EmailPartnerNotifier(PartnerRepository(supabase), load_settings()),
        webhooks=WorkspaceWebhookPublisher(workspaces, _webhook_http()),
        scheduler=scheduler,
    )


def get_invoice_paid_handler(background_tasks: BackgroundTasks) -> InvoicePaidHandler:
    """One handler per request; detached tasks run after the response is sent."""
    return build_invoice_paid_handler(FastAPITaskScheduler(background_tasks))


__all__ = ["build_invoice_paid_handler", "get_invoice_paid_handler", "get_webhook_secret"]

"""
Tests for the Stripe integration webhook endpoint.

Requests are signed exactly like Stripe signs them; the handler's
collaborators are the in-memory fakes from conftest, wired through a
dependency override so detached tasks run as real background tasks.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from api.dependencies import get_invoice_paid_handler, get_webhook_secret
from api.main import app
from factories import make_invoice_paid_event
from repositories.errors import RepositoryError
from services.background import FastAPITaskScheduler
from services.invoice_paid_service import InvoicePaidHandler

WEBHOOK_SECRET = "whsec_test_secret"
WEBHOOK_URL = "/api/stripe/integration/webhook"


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _post(client: TestClient, event: dict, *, secret: str = WEBHOOK_SECRET):
    payload = json.dumps(event).encode("utf-8")
    return client.post(
        WEBHOOK_URL,
        content=payload,
        headers={"Stripe-Signature": _sign(payload, secret), "Content-Type": "application/json"},
    )


@pytest.fixture
def client(world):
    def handler_override(background_tasks: BackgroundTasks) -> InvoicePaidHandler:
        return InvoicePaidHandler(
            customers=world.customers,
            links=world.links,
            workspaces=world.workspaces,
            programs=world.programs,
            dedup=world.dedup,
            events=world.events,
            partner_notifier=world.partner_notifier,
            webhooks=world.webhooks,
            scheduler=FastAPITaskScheduler(background_tasks),
        )

    app.dependency_overrides[get_invoice_paid_handler] = handler_override
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


def test_invoice_paid_records_sale(client, world) -> None:
    response = _post(client, make_invoice_paid_event())

    assert response.status_code == 200
    assert response.json() == {"message": "Sale recorded for customer ID cus_1 and invoice ID in_1"}
    assert len(world.events.sales) == 1
    # Background tasks have run by the time TestClient returns
    assert [sent["trigger"] for sent in world.webhooks.sent] == ["sale.created"]


def test_redelivery_is_acknowledged_without_second_sale(client, world) -> None:
    _post(client, make_invoice_paid_event())
    response = _post(client, make_invoice_paid_event())

    assert response.status_code == 200
    assert response.json()["message"] == "Invoice with ID in_1 already processed, skipping..."
    assert len(world.events.sales) == 1


def test_unsupported_event_type(client, world) -> None:
    event = make_invoice_paid_event()
    event["type"] = "customer.subscription.updated"

    response = _post(client, event)

    assert response.status_code == 200
    assert response.json()["message"] == "Unsupported event customer.subscription.updated, skipping..."
    assert world.dedup.claims == {}


def test_invalid_signature_is_rejected(client, world) -> None:
    response = _post(client, make_invoice_paid_event(), secret="whsec_wrong")

    assert response.status_code == 400
    assert world.dedup.claims == {}


def test_missing_signature_is_rejected(client) -> None:
    response = client.post(WEBHOOK_URL, content=json.dumps(make_invoice_paid_event()))

    assert response.status_code == 400


def test_malformed_invoice_is_rejected(client) -> None:
    response = _post(client, {"id": "evt_1", "object": "event", "type": "invoice.paid", "data": {}})

    assert response.status_code == 400


def test_backend_failure_returns_500(client, world) -> None:
    world.workspaces.fail_with = RepositoryError("Failed to increment workspace sales usage: timeout")

    response = _post(client, make_invoice_paid_event())

    assert response.status_code == 500
    assert "invoice.paid" in response.json()["detail"]


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

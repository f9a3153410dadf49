"""
Stripe Integration Webhook Endpoint.

Receives events from connected Stripe accounts, verifies their signature and
dispatches them by type.
"""

from __future__ import annotations

import json
import logging

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from api.dependencies import get_invoice_paid_handler, get_webhook_secret
from api.models import WebhookResponse
from domain.invoice import InvalidEventError
from services.invoice_paid_service import INVOICE_PAID_EVENT, InvoicePaidHandler

logger = logging.getLogger(__name__)

router = APIRouter()

SUPPORTED_EVENTS = frozenset({INVOICE_PAID_EVENT})


@router.post(
    "/stripe/integration/webhook",
    response_model=WebhookResponse,
    summary="Stripe Integration Webhook",
    description="Record sales from Stripe events of connected workspaces.",
)
async def stripe_integration_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    handler: InvoicePaidHandler = Depends(get_invoice_paid_handler),
    webhook_secret: str = Depends(get_webhook_secret),
):
    """
    Handle a Stripe webhook delivery.

    **Responses:**
    - 200 with a status message for handled, skipped and unsupported events
    - 400 when the payload or `Stripe-Signature` header is invalid
    - 500 when a backing service fails (Stripe will retry the delivery)
    """
    payload = await request.body()

    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(payload, stripe_signature, webhook_secret)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")
    except stripe.SignatureVerificationError:
        logger.warning("Stripe webhook signature verification failed.")
        raise HTTPException(status_code=400, detail="Invalid signature")

    event = json.loads(payload)
    event_type = event.get("type")

    if event_type not in SUPPORTED_EVENTS:
        return WebhookResponse(message=f"Unsupported event {event_type}, skipping...")

    try:
        message = await run_in_threadpool(handler.handle, event)
    except InvalidEventError as e:
        raise HTTPException(status_code=400, detail=f"Malformed {event_type} event: {str(e)}")
    except Exception as e:
        logger.exception("Stripe webhook failed", extra={"event_type": event_type, "event_id": event.get("id")})
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process {event_type}: {str(e)}"
        )

    return WebhookResponse(message=message)

"""
Invoice-paid handler.

Turns a Stripe `invoice.paid` event into a sale conversion:

1. Resolve the customer by Stripe customer id
2. Claim the invoice id in the dedup store (7 day window)
3. Skip zero-amount invoices
4. Resolve the customer's lead event (attribution)
5. Build the sale event
6. Resolve the attributed link
7. Concurrently: append the sale event, bump link counters, bump workspace usage
8. For program links: compute and persist partner earnings, notify the partner
9. Send the workspace `sale.created` webhook
10. Return a status message

Expected skip conditions return a message instead of raising. Collaborator
failures propagate so the caller can answer non-2xx and let Stripe re-deliver.

The dedup claim happens before the zero-amount, lead and link checks. A skip
after the claim still consumes the invoice id for the whole window, so a
corrected re-delivery inside the window is reported as already processed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Mapping

from domain.events import SaleEvent
from domain.ids import nanoid
from domain.invoice import Invoice
from domain.time import utc_now
from services.commission_service import SaleAmount, prepare_earnings
from services.partner_notification_service import PartnerSaleNotification
from services.ports import (
    CustomerStore,
    DedupStore,
    EventStore,
    LinkStore,
    PartnerNotifier,
    ProgramStore,
    TaskScheduler,
    WebhookPublisher,
    WorkspaceStore,
)
from services.webhook_transform import transform_sale_event_data

logger = logging.getLogger(__name__)

INVOICE_PAID_EVENT: str = "invoice.paid"
SALE_CREATED_TRIGGER: str = "sale.created"

DEDUP_KEY_PREFIX: str = "dub_sale_events:invoiceId:"
DEDUP_TTL_SECONDS: int = 60 * 60 * 24 * 7


def dedup_key(invoice_id: str) -> str:
    return f"{DEDUP_KEY_PREFIX}{invoice_id}"


class InvoicePaidHandler:
    """
    Handles one `invoice.paid` event per call. Holds no per-event state.

    Example:
        handler = InvoicePaidHandler(customers=..., links=..., ...)
        message = handler.handle(event)
    """

    def __init__(
        self,
        *,
        customers: CustomerStore,
        links: LinkStore,
        workspaces: WorkspaceStore,
        programs: ProgramStore,
        dedup: DedupStore,
        events: EventStore,
        partner_notifier: PartnerNotifier,
        webhooks: WebhookPublisher,
        scheduler: TaskScheduler,
        id_factory: Callable[[], str] = nanoid,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._customers = customers
        self._links = links
        self._workspaces = workspaces
        self._programs = programs
        self._dedup = dedup
        self._events = events
        self._partner_notifier = partner_notifier
        self._webhooks = webhooks
        self._scheduler = scheduler
        self._id_factory = id_factory
        self._clock = clock

    def handle(self, event: Mapping[str, Any]) -> str:
        invoice = Invoice.from_event(event)

        # 1. Customer
        customer = self._customers.get_by_stripe_customer_id(invoice.customer)
        if customer is None:
            return f"Customer with stripeCustomerId {invoice.customer} not found, skipping..."

        # 2. Dedup claim
        if not self._dedup.claim(dedup_key(invoice.id), DEDUP_TTL_SECONDS):
            logger.info(
                "[Stripe Webhook] Skipping already processed invoice.",
                extra={"invoice_id": invoice.id},
            )
            return f"Invoice with ID {invoice.id} already processed, skipping..."

        # 3. Zero amount
        if invoice.amount_paid == 0:
            return f"Invoice with ID {invoice.id} has an amount of 0, skipping..."

        # 4. Attribution
        lead_event = self._events.get_lead_event(customer.id)
        if lead_event is None:
            return f"Lead event with customer ID {customer.id} not found, skipping..."

        # 5. Sale record
        sale = SaleEvent.from_lead(
            lead_event,
            invoice,
            event_id=self._id_factory(),
            timestamp=self._clock(),
        )

        # 6. Link
        link = self._links.get_by_id(lead_event.link_id)
        if link is None:
            return f"Link with ID {lead_event.link_id} not found, skipping..."

        # 7. Durable writes, all three must succeed
        with ThreadPoolExecutor(max_workers=3) as pool:
            sale_future = pool.submit(self._events.record_sale, sale)
            link_future = pool.submit(self._links.increment_sales, link.id, invoice.amount_paid)
            workspace_future = pool.submit(
                self._workspaces.increment_sales_usage, customer.project_id, invoice.amount_paid
            )
        sale_future.result()
        updated_link = link_future.result()
        workspace = workspace_future.result()

        # 8. Partner commission
        if link.program_id:
            enrollment = self._programs.find_enrollment_for_link_or_raise(link.id)
            earnings = prepare_earnings(
                link_id=link.id,
                customer_id=customer.id,
                event_id=sale.event_id,
                program=enrollment.program,
                enrollment=enrollment,
                sale=SaleAmount(
                    amount=sale.amount,
                    currency=sale.currency,
                    invoice_id=sale.invoice_id,
                ),
            )
            self._programs.create_earnings(earnings)

            self._scheduler.detach(
                self._partner_notifier.notify_sale,
                PartnerSaleNotification(
                    partner_id=enrollment.partner_id,
                    referral_link=link.short_link,
                    program=enrollment.program,
                    amount=earnings.amount,
                    earnings=earnings.earnings,
                    currency=earnings.currency,
                ),
            )

        # 9. Workspace webhook
        self._scheduler.detach(
            self._send_sale_created,
            workspace=workspace,
            data=transform_sale_event_data(
                sale,
                link=updated_link,
                customer=customer,
                clicked_at=customer.attributed_at(),
            ),
        )

        logger.info(
            "Sale recorded",
            extra={
                "customer_id": customer.id,
                "invoice_id": invoice.id,
                "link_id": link.id,
                "amount": invoice.amount_paid,
            },
        )
        return f"Sale recorded for customer ID {customer.id} and invoice ID {invoice.id}"

    def _send_sale_created(self, *, workspace, data) -> None:
        self._webhooks.send(trigger=SALE_CREATED_TRIGGER, workspace=workspace, data=data)


__all__ = [
    "InvoicePaidHandler",
    "INVOICE_PAID_EVENT",
    "SALE_CREATED_TRIGGER",
    "DEDUP_TTL_SECONDS",
    "dedup_key",
]

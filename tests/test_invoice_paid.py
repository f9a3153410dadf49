"""
Tests for `services/invoice_paid_service.py`.

Covers:
- Skip conditions (unknown customer, duplicate invoice, zero amount, no lead
  event, missing link) return messages and leave no side effects
- The dedup claim is consumed even when a later check skips
- Link and workspace counters, sale event and webhook for a recorded sale
- Earnings and partner notification only for program links
- Collaborator failures propagate; detached task failures do not
"""

from __future__ import annotations

import json

import pytest

from factories import (
    CLICKED_AT,
    NOW,
    make_customer,
    make_enrollment,
    make_link,
    make_invoice_paid_event,
)
from repositories.errors import EnrollmentNotFoundError, RepositoryError
from services.invoice_paid_service import DEDUP_TTL_SECONDS, dedup_key
from services.partner_notification_service import PartnerSaleNotification


def _assert_no_sale_side_effects(world) -> None:
    assert world.events.sales == []
    assert world.links.increments == []
    assert world.workspaces.increments == []
    assert world.programs.earnings == []
    assert world.scheduler.tasks == []


class TestSkipConditions:
    def test_unknown_customer_is_skipped_without_claiming(self, world):
        message = world.handler.handle(make_invoice_paid_event(customer="cus_unknown"))

        assert message == "Customer with stripeCustomerId cus_unknown not found, skipping..."
        assert world.dedup.claims == {}
        _assert_no_sale_side_effects(world)

    def test_zero_amount_skips_but_consumes_dedup_key(self, world):
        message = world.handler.handle(make_invoice_paid_event(amount_paid=0))

        assert message == "Invoice with ID in_1 has an amount of 0, skipping..."
        assert world.dedup.claims == {dedup_key("in_1"): DEDUP_TTL_SECONDS}
        _assert_no_sale_side_effects(world)

    def test_non_zero_retry_after_zero_amount_is_treated_as_processed(self, world):
        world.handler.handle(make_invoice_paid_event(amount_paid=0))

        message = world.handler.handle(make_invoice_paid_event(amount_paid=500))

        assert message == "Invoice with ID in_1 already processed, skipping..."
        _assert_no_sale_side_effects(world)

    def test_missing_lead_event_only_claims_dedup_key(self, world):
        world.events.leads.clear()

        message = world.handler.handle(make_invoice_paid_event())

        assert message == "Lead event with customer ID cus_1 not found, skipping..."
        assert list(world.dedup.claims) == [dedup_key("in_1")]
        _assert_no_sale_side_effects(world)

    def test_missing_link_is_skipped(self, world):
        world.links.links.clear()

        message = world.handler.handle(make_invoice_paid_event())

        assert message == "Link with ID link_1 not found, skipping..."
        _assert_no_sale_side_effects(world)


class TestSaleRecorded:
    def test_sale_on_link_without_program(self, world):
        """cus_1 pays in_1 for 500 usd on link_1 (no program)."""

        message = world.handler.handle(make_invoice_paid_event())

        assert message == "Sale recorded for customer ID cus_1 and invoice ID in_1"

        link = world.links.links["link_1"]
        assert (link.sales, link.sale_amount) == (1, 500)

        workspace = world.workspaces.workspaces["ws_1"]
        assert (workspace.usage, workspace.sales_usage) == (1, 500)

        assert len(world.events.sales) == 1
        assert world.events.sales[0].amount == 500
        assert world.programs.earnings == []

        world.scheduler.run_all()
        assert world.partner_notifier.notifications == []
        assert [sent["trigger"] for sent in world.webhooks.sent] == ["sale.created"]

    def test_sale_event_copies_lead_attribution(self, world):
        world.handler.handle(make_invoice_paid_event())

        sale = world.events.sales[0]
        assert sale.event_id == "sale_evt_0000001"
        assert sale.timestamp == NOW
        assert sale.event_name == "Subscription update"
        assert sale.payment_processor == "stripe"
        assert sale.customer_id == "cus_1"
        assert sale.click_id == "click_1"
        assert sale.link_id == "link_1"
        assert sale.currency == "usd"
        assert sale.invoice_id == "in_1"
        assert sale.attribution["country"] == "GB"
        assert sale.attribution["referer"] == "google.com"
        assert json.loads(sale.metadata)["invoice"]["id"] == "in_1"

    def test_duplicate_delivery_is_not_recorded_twice(self, world):
        first = world.handler.handle(make_invoice_paid_event())
        second = world.handler.handle(make_invoice_paid_event(amount_paid=900))

        assert first == "Sale recorded for customer ID cus_1 and invoice ID in_1"
        assert second == "Invoice with ID in_1 already processed, skipping..."
        assert len(world.events.sales) == 1
        assert world.links.increments == [("link_1", 500)]
        assert world.workspaces.increments == [("ws_1", 500)]

    def test_distinct_invoices_are_each_recorded(self, world):
        world.handler.handle(make_invoice_paid_event("in_1"))
        world.handler.handle(make_invoice_paid_event("in_2", amount_paid=700))

        link = world.links.links["link_1"]
        assert (link.sales, link.sale_amount) == (2, 1200)

    def test_webhook_payload_uses_updated_link_and_click_time(self, world):
        world.handler.handle(make_invoice_paid_event())
        world.scheduler.run_all()

        sent = world.webhooks.sent[0]
        assert sent["workspace"].sales_usage == 500
        data = sent["data"]
        assert data["link"]["sales"] == 1
        assert data["link"]["saleAmount"] == 500
        assert data["customer"]["id"] == "cus_1"
        assert data["click"]["timestamp"].startswith(CLICKED_AT.isoformat()[:19])

    def test_webhook_click_time_falls_back_to_customer_creation(self, world):
        customer = make_customer(clicked_at=None)
        world.customers.add(customer)

        world.handler.handle(make_invoice_paid_event())
        world.scheduler.run_all()

        click = world.webhooks.sent[0]["data"]["click"]
        assert click["timestamp"].startswith(customer.created_at.isoformat()[:19])

    def test_notifications_are_detached_not_run_inline(self, world):
        world.programs.enroll("link_1", make_enrollment())
        world.links.add(make_link(program_id="prog_1"))

        world.handler.handle(make_invoice_paid_event())

        assert world.webhooks.sent == []
        assert world.partner_notifier.notifications == []
        assert len(world.scheduler.tasks) == 2


class TestProgramLinks:
    def test_program_link_creates_one_earnings_record(self, world):
        world.links.add(make_link(program_id="prog_1"))
        world.programs.enroll("link_1", make_enrollment())

        world.handler.handle(make_invoice_paid_event())

        assert len(world.programs.earnings) == 1
        earnings = world.programs.earnings[0]
        assert earnings.program_id == "prog_1"
        assert earnings.partner_id == "pn_1"
        assert earnings.link_id == "link_1"
        assert earnings.customer_id == "cus_1"
        assert earnings.event_id == "sale_evt_0000001"
        assert earnings.invoice_id == "in_1"
        assert earnings.amount == 500
        assert earnings.earnings == 100  # 20% of 500

    def test_partner_notification_carries_earnings_unchanged(self, world):
        world.links.add(make_link(program_id="prog_1"))
        world.programs.enroll("link_1", make_enrollment(commission_amount=30))

        world.handler.handle(make_invoice_paid_event(amount_paid=1000))
        world.scheduler.run_all()

        earnings = world.programs.earnings[0]
        assert world.partner_notifier.notifications == [
            PartnerSaleNotification(
                partner_id="pn_1",
                referral_link="https://acme.link/ada",
                program=make_enrollment().program,
                amount=earnings.amount,
                earnings=earnings.earnings,
                currency="usd",
            )
        ]
        assert earnings.earnings == 300
        assert [sent["trigger"] for sent in world.webhooks.sent] == ["sale.created"]

    def test_program_link_without_enrollment_raises(self, world):
        world.links.add(make_link(program_id="prog_1"))

        with pytest.raises(EnrollmentNotFoundError):
            world.handler.handle(make_invoice_paid_event())

        # Writes that already happened are not rolled back
        assert len(world.events.sales) == 1
        assert world.programs.earnings == []


class TestFailures:
    def test_counter_failure_propagates(self, world):
        world.workspaces.fail_with = RepositoryError("Failed to increment workspace sales usage")

        with pytest.raises(RepositoryError):
            world.handler.handle(make_invoice_paid_event())

        assert world.scheduler.tasks == []

    def test_failed_partner_notification_does_not_block_webhook(self, world):
        world.links.add(make_link(program_id="prog_1"))
        world.programs.enroll("link_1", make_enrollment())
        world.partner_notifier.fail_with = RuntimeError("SMTP down")

        message = world.handler.handle(make_invoice_paid_event())
        world.scheduler.run_all()

        assert message == "Sale recorded for customer ID cus_1 and invoice ID in_1"
        assert [sent["trigger"] for sent in world.webhooks.sent] == ["sale.created"]

    def test_event_without_invoice_is_rejected(self, world):
        from domain.invoice import InvalidEventError

        with pytest.raises(InvalidEventError):
            world.handler.handle({"type": "invoice.paid", "data": {}})

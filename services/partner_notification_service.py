"""
Partner sale notifications.

Emails every user of a partner account when one of their referral links
produces a sale. Sent over SMTP; meant to run as a detached task.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, List, Protocol

from config.settings import Settings
from domain.program import Program

logger = logging.getLogger(__name__)


class PartnerDirectory(Protocol):
    def list_user_emails(self, partner_id: str) -> List[str]: ...


@dataclass(frozen=True, slots=True)
class PartnerSaleNotification:
    """What a partner is told about a sale on one of their links."""

    partner_id: str
    referral_link: str
    program: Program
    amount: int  # sale amount, minor units
    earnings: int  # commission, minor units
    currency: str = "usd"


def format_amount(minor_units: int, currency: str) -> str:
    """Render minor units as e.g. '12.50 USD'."""
    return f"{minor_units / 100:,.2f} {currency.upper()}"


def render_sale_email(notification: PartnerSaleNotification) -> MIMEMultipart:
    program = notification.program
    sale = format_amount(notification.amount, notification.currency)
    earned = format_amount(notification.earnings, notification.currency)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"You just made a sale via {program.name}!"

    text_body = (
        f"Congratulations! Someone made a {sale} purchase on {program.name} "
        f"using your referral link ({notification.referral_link}).\n\n"
        f"Your earnings: {earned}\n"
    )
    html_body = f"""
<html>
<body>
    <h2>You just made a sale via {program.name}!</h2>
    <p>Someone made a <strong>{sale}</strong> purchase using your referral link
    <a href="{notification.referral_link}">{notification.referral_link}</a>.</p>
    <p>Your earnings: <strong>{earned}</strong></p>
</body>
</html>
"""
    msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))
    return msg


class EmailPartnerNotifier:
    def __init__(
        self,
        partners: PartnerDirectory,
        settings: Settings,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self._partners = partners
        self._settings = settings
        self._smtp_factory = smtp_factory

    def notify_sale(self, notification: PartnerSaleNotification) -> None:
        recipients = self._partners.list_user_emails(notification.partner_id)
        if not recipients:
            logger.info(
                "Partner has no users to notify",
                extra={"partner_id": notification.partner_id},
            )
            return

        msg = render_sale_email(notification)
        msg["From"] = self._settings.email_from
        msg["To"] = ", ".join(recipients)

        settings = self._settings
        with self._smtp_factory(settings.smtp_host, settings.smtp_port) as server:
            if settings.smtp_user:
                server.starttls()
                server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.email_from, recipients, msg.as_string())

        logger.info(
            "Partner sale notification sent",
            extra={"partner_id": notification.partner_id, "recipients": len(recipients)},
        )


__all__ = [
    "EmailPartnerNotifier",
    "PartnerSaleNotification",
    "format_amount",
    "render_sale_email",
]

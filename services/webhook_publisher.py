"""
Outbound workspace webhooks.

Each delivery is a JSON envelope signed with the webhook's secret:

    Dub-Signature: hex(HMAC-SHA256(secret, raw_body))

Receivers verify the signature over the exact bytes they received. A failing
endpoint is logged and does not prevent delivery to the others.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, List, Mapping, Protocol

import httpx

from domain.ids import prefixed_id
from domain.time import utc_now
from domain.workspace import Workspace, WorkspaceWebhook

logger = logging.getLogger(__name__)

SIGNATURE_HEADER: str = "Dub-Signature"


class WebhookSource(Protocol):
    def list_webhooks(self, workspace_id: str, trigger: str) -> List[WorkspaceWebhook]: ...


def sign_payload(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def build_envelope(trigger: str, data: Mapping[str, Any]) -> dict:
    return {
        "id": prefixed_id("evt_", 25),
        "event": trigger,
        "createdAt": utc_now().isoformat(),
        "data": data,
    }


class WorkspaceWebhookPublisher:
    def __init__(self, webhooks: WebhookSource, http: httpx.Client) -> None:
        self._webhooks = webhooks
        self._http = http

    def send(self, *, trigger: str, workspace: Workspace, data: Mapping[str, Any]) -> int:
        """
        Deliver `data` to every webhook of `workspace` subscribed to `trigger`.

        Returns:
            Number of endpoints that accepted the delivery (2xx)
        """

        webhooks = self._webhooks.list_webhooks(workspace.id, trigger)
        if not webhooks:
            logger.debug(
                "No webhooks subscribed",
                extra={"workspace_id": workspace.id, "trigger": trigger},
            )
            return 0

        body = json.dumps(build_envelope(trigger, data), default=str).encode("utf-8")

        delivered = 0
        for webhook in webhooks:
            if self._deliver(webhook, body, trigger):
                delivered += 1
        return delivered

    def _deliver(self, webhook: WorkspaceWebhook, body: bytes, trigger: str) -> bool:
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(webhook.secret, body),
        }
        try:
            response = self._http.post(webhook.url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(
                f"Webhook delivery to {webhook.url} failed: {exc}",
                extra={"webhook_id": webhook.id, "trigger": trigger},
            )
            return False

        if response.is_success:
            return True

        logger.warning(
            f"Webhook {webhook.url} responded with {response.status_code}",
            extra={"webhook_id": webhook.id, "trigger": trigger, "status_code": response.status_code},
        )
        return False


__all__ = ["WorkspaceWebhookPublisher", "sign_payload", "SIGNATURE_HEADER"]

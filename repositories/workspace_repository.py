"""
Workspace repository (persistence).

Workspaces are stored in the `projects` table.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.workspace import Workspace, WorkspaceWebhook
from repositories.client import response_rows
from repositories.errors import RecordNotFoundError

_PROJECTS_TABLE: str = "projects"
_WEBHOOKS_TABLE: str = "webhooks"


def _row_to_workspace(row: Mapping[str, Any]) -> Workspace:
    """Convert a Supabase row into a Workspace."""

    return Workspace(
        id=str(row["id"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        plan=str(row.get("plan") or "free"),
        usage=int(row.get("usage") or 0),
        usage_limit=row.get("usage_limit"),
        sales_usage=int(row.get("sales_usage") or 0),
        sales_usage_limit=row.get("sales_usage_limit"),
    )


def _row_to_webhook(row: Mapping[str, Any]) -> WorkspaceWebhook:
    return WorkspaceWebhook(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        url=str(row["url"]),
        secret=str(row["secret"]),
        triggers=tuple(row.get("triggers") or ()),
    )


class WorkspaceRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, workspace_id: str) -> Optional[Workspace]:
        response = (
            self._client.table(_PROJECTS_TABLE)
            .select("*")
            .eq("id", workspace_id)
            .limit(1)
            .execute()
        )
        rows = response_rows(response, "fetch workspace")
        if not rows:
            return None
        return _row_to_workspace(rows[0])

    def increment_sales_usage(self, workspace_id: str, amount: int) -> Workspace:
        """
        Atomically add one event to `usage` and `amount` to `sales_usage`.

        Returns:
            The updated workspace
        """

        response = self._client.rpc(
            "increment_project_sales_usage",
            {"p_project_id": workspace_id, "p_amount": amount},
        ).execute()
        rows = response_rows(response, "increment workspace sales usage")
        if not rows:
            raise RecordNotFoundError(f"Workspace {workspace_id} not found")
        return _row_to_workspace(rows[0])

    def list_webhooks(self, workspace_id: str, trigger: str) -> List[WorkspaceWebhook]:
        """Active webhooks of the workspace subscribed to `trigger`."""

        response = (
            self._client.table(_WEBHOOKS_TABLE)
            .select("*")
            .eq("project_id", workspace_id)
            .contains("triggers", [trigger])
            .is_("disabled_at", "null")
            .execute()
        )
        rows = response_rows(response, "list webhooks")
        return [_row_to_webhook(row) for row in rows]


__all__ = ["WorkspaceRepository"]

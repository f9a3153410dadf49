"""
Domain: Workspace (stored as a "project").

usage counts tracked events; sales_usage sums sale amounts in minor units.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Workspace:
    id: str
    name: str
    slug: str
    plan: str = "free"

    usage: int = 0
    usage_limit: Optional[int] = None
    sales_usage: int = 0
    sales_usage_limit: Optional[int] = None

    def exceeded_usage(self) -> bool:
        return self.usage_limit is not None and self.usage > self.usage_limit


@dataclass(frozen=True, slots=True)
class WorkspaceWebhook:
    """An outbound webhook endpoint registered by a workspace."""

    id: str
    project_id: str
    url: str
    secret: str
    triggers: Tuple[str, ...] = ()

    def subscribes_to(self, trigger: str) -> bool:
        return trigger in self.triggers

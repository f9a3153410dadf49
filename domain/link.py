"""
Domain: Link.

A tracked short link. Sales counters live on the link row and are incremented
by the persistence layer; this entity is a read snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Link:
    id: str
    project_id: str
    domain: str
    key: str
    url: str
    short_link: str

    program_id: Optional[str] = None
    partner_id: Optional[str] = None

    clicks: int = 0
    leads: int = 0
    sales: int = 0
    sale_amount: int = 0  # minor currency units

    created_at: Optional[datetime] = None
    tags: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def belongs_to_program(self) -> bool:
        return bool(self.program_id)

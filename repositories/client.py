"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is built
lazily from settings so that importing repositories never requires credentials;
tests pass their own client to the repository classes instead.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Mapping

from supabase import Client, create_client  # type: ignore[import-not-found]

from config.settings import load_settings
from repositories.errors import RepositoryError


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the process-wide Supabase client."""

    settings = load_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


def response_rows(response: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Extract rows from a Supabase response or raise RepositoryError.

    RPC calls may return a single object instead of a list; it is wrapped.
    """

    error = getattr(response, "error", None)
    if error:
        raise RepositoryError(f"Failed to {action}: {error}")

    data = getattr(response, "data", None)
    if not data:
        return []
    if isinstance(data, Mapping):
        return [data]
    return list(data)


__all__ = ["get_supabase", "response_rows"]

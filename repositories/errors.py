"""
Persistence errors.

Repositories raise these for unexpected backend failures. Callers treat them as
fatal for the current invocation; nothing here is retried.
"""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """A backend rejected or failed a query."""


class RecordNotFoundError(RepositoryError):
    """A record that must exist was not found."""


class EnrollmentNotFoundError(RecordNotFoundError):
    """A program link has no partner enrollment."""


class EventStoreError(RepositoryError):
    """The analytics event store failed a read or append."""


__all__ = [
    "RepositoryError",
    "RecordNotFoundError",
    "EnrollmentNotFoundError",
    "EventStoreError",
]

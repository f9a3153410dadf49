"""
Short random identifiers.

Event ids are 16 characters drawn from a 62-symbol alphabet, matching the ids
already stored in the analytics event store.
"""

from __future__ import annotations

import secrets

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


def nanoid(size: int = 16) -> str:
    if size <= 0:
        raise ValueError("size must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(size))


def prefixed_id(prefix: str, size: int = 24) -> str:
    """Identifier of the form '<prefix><nanoid>', e.g. 'earn_...'."""
    return f"{prefix}{nanoid(size)}"

"""Referral Sales Webhooks API."""

__version__ = "0.1.0"

"""Ledger record models."""

from .campaign import Campaign, ContributorRecord, LEDGER_SCALAR_FIELDS

__all__ = [
    "Campaign",
    "ContributorRecord",
    "LEDGER_SCALAR_FIELDS",
]

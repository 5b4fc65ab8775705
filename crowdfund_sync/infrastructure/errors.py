"""
Ledger error taxonomy and failure classification.

Fetch failures fall into three buckets:
- Connectivity: the ledger could not be reached (includes timeouts)
- Access/policy: the ledger refused the request (auth, rate limits)
- Other: everything else, surfaced generically

Write rejections carry a program error code which maps to user-facing
text through ERROR_MESSAGES.
"""

import asyncio
from enum import Enum
from typing import Optional

import httpx


class FailureKind(str, Enum):
    """Classification of a failed ledger fetch."""
    CONNECTIVITY = "connectivity"  # Transient, retried next tick
    ACCESS_POLICY = "access_policy"  # Transient, retried next tick
    OTHER = "other"

    @property
    def is_transient(self) -> bool:
        return self in (FailureKind.CONNECTIVITY, FailureKind.ACCESS_POLICY)


class LedgerError(Exception):
    """Base class for errors raised by ledger adapters."""


class LedgerConnectionError(LedgerError):
    """The ledger endpoint could not be reached."""


class LedgerAccessError(LedgerError):
    """The ledger refused the request (unauthorized, forbidden, throttled)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LedgerRejection(LedgerError):
    """
    A submitted transaction was rejected by the program.

    Usually means the locally computed eligibility was based on data
    that another transaction has since changed.
    """

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or message_for(code))
        self.code = code


ERROR_MESSAGES: dict[str, str] = {
    "CampaignEnded": "The campaign has ended.",
    "Overflow": "Overflow in donation amount.",
    "CampaignStillActive": "The campaign is still active.",
    "CampaignGoalReached": "The campaign goal was reached.",
    "AlreadyWithdrawn": "You have already withdrawn your funds.",
    "NothingToWithdraw": "You have no funds available to withdraw.",
    "CampaignGoalNotReached": "The campaign goal was not reached.",
    "AlreadyWithdrawnByOwner": "Owner has already withdrawn.",
    "CampaignCancelled": "The campaign is cancelled.",
    "CampaignNotCancelled": "The campaign is not cancelled.",
    "CampaignAlreadyCancelled": "The campaign is already cancelled.",
    "AccountNotInitialized": "Account not initialized.",
    "NotOwner": "You are not the owner of the campaign.",
    "WalletSignTransactionError": (
        "There was an error signing the transaction. Please try again."
    ),
}

GENERIC_ERROR_MESSAGE = "The transaction failed. Please try again."

ACCESS_STATUS_CODES = frozenset({401, 403, 429})


def message_for(code: str) -> str:
    """User-facing text for a ledger rejection code."""
    return ERROR_MESSAGES.get(code, GENERIC_ERROR_MESSAGE)


def classify_failure(exc: BaseException) -> FailureKind:
    """
    Map an exception raised during a fetch onto a FailureKind.

    Raw httpx errors are accepted too so adapters that don't wrap
    their transport errors still classify correctly.
    """
    if isinstance(exc, (LedgerConnectionError, asyncio.TimeoutError)):
        return FailureKind.CONNECTIVITY
    if isinstance(exc, LedgerAccessError):
        return FailureKind.ACCESS_POLICY
    if isinstance(exc, httpx.TransportError):
        return FailureKind.CONNECTIVITY
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code in ACCESS_STATUS_CODES:
            return FailureKind.ACCESS_POLICY
    return FailureKind.OTHER

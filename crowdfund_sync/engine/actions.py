"""
Action gating.

Maps a CampaignStatus onto the ledger transaction a user action would
submit. Keeping this next to the status engine means the UI never
offers a transaction the ledger is certain to reject.
"""

from enum import Enum
from typing import Optional

from .status import CampaignStatus, Phase


class ClaimInstruction(str, Enum):
    """Withdrawal transaction a "Claim"/"Withdraw" action resolves to."""
    WITHDRAW_IF_CANCELLED = "withdraw_if_cancelled"
    WITHDRAW_BY_OWNER = "withdraw_by_owner"
    WITHDRAW_IF_FAILED = "withdraw_if_failed"


def claim_instruction(status: Optional[CampaignStatus]) -> Optional[ClaimInstruction]:
    """Pick the withdrawal transaction for the viewer, or None if nothing is claimable."""
    if status is None or not status.enabled:
        return None
    if status.phase == Phase.CANCELLED and status.can_claim_refund:
        return ClaimInstruction.WITHDRAW_IF_CANCELLED
    if status.can_withdraw_proceeds:
        return ClaimInstruction.WITHDRAW_BY_OWNER
    if status.phase == Phase.PAST and status.can_claim_refund:
        return ClaimInstruction.WITHDRAW_IF_FAILED
    return None


def can_donate(status: Optional[CampaignStatus]) -> bool:
    return status is not None and status.phase == Phase.ACTIVE and status.enabled


def can_cancel(status: Optional[CampaignStatus]) -> bool:
    """Only the owner can cancel, and only while the campaign is running."""
    return status is not None and status.phase == Phase.ACTIVE and status.am_i_the_owner

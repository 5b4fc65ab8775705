"""
Campaign Status Engine.

Derives a single authoritative status for a campaign from:
- the campaign record as last fetched from the ledger
- the viewer's contributor record for that campaign (if any)
- the viewer identity
- the current time

The phase (Active / Past / Cancelled) depends only on the cancelled flag,
the deadline and the time. Role and withdrawal facts decide the action
label, whether it is enabled, and how much the viewer can claim.

All amounts are integers in the ledger's smallest unit. No floating
point enters a decision.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from ..models import Campaign, ContributorRecord


class Phase(str, Enum):
    """Lifecycle phase of a campaign at a point in time."""
    ACTIVE = "Active"  # Accepting donations
    PAST = "Past"  # Deadline reached
    CANCELLED = "Cancelled"  # Cancelled by owner, wins over deadline


class ActionLabel(str, Enum):
    """The single action the viewer is offered for a campaign."""
    CONTRIBUTE = "Contribute"
    CLAIM = "Claim"
    ALREADY_CLAIMED = "Already Claimed"
    CANCELED = "Canceled"
    WITHDRAW = "Withdraw"
    ALREADY_WITHDRAWN = "Already Withdrawn"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class CampaignStatus:
    """
    Viewer-relative status of one campaign.

    Recomputed on every call and never persisted. Two computations over
    the same inputs compare equal.
    """
    phase: Phase
    action: ActionLabel
    enabled: bool

    is_contributed: bool
    is_goal_reached: bool
    am_i_the_owner: bool
    is_admin_withdrawn: bool
    is_contribution_withdrawn: bool
    amount_claimable: int = 0

    @property
    def can_claim_refund(self) -> bool:
        """Contributor can still pull their donation back out."""
        if self.is_contribution_withdrawn or not self.is_contributed:
            return False
        if self.phase == Phase.CANCELLED:
            return True
        return self.phase == Phase.PAST and not self.is_goal_reached

    @property
    def can_withdraw_proceeds(self) -> bool:
        """Owner can still collect the funds of a successful campaign."""
        return (
            self.phase == Phase.PAST
            and self.is_goal_reached
            and self.am_i_the_owner
            and not self.is_admin_withdrawn
        )

    @property
    def is_claimable(self) -> bool:
        """
        Dashboard "Claimable" condition, independent of phase.

        Contributed to an underfunded campaign and not yet claimed, or
        owns a funded campaign and not yet withdrawn.
        """
        if self.is_goal_reached:
            return self.am_i_the_owner and not self.is_admin_withdrawn
        return self.is_contributed and not self.is_contribution_withdrawn

    def to_dict(self) -> dict:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["action"] = self.action.value
        return data


def phase_of(campaign: Campaign, now: float) -> Phase:
    """
    Phase at time `now`. First match wins:

    1. cancelled -> Cancelled
    2. no deadline, or now < deadline -> Active
    3. otherwise -> Past (a deadline equal to now has passed)
    """
    if campaign.cancelled:
        return Phase.CANCELLED
    if campaign.deadline is None or now < campaign.deadline:
        return Phase.ACTIVE
    return Phase.PAST


def compute_status(
    campaign: Campaign,
    record: Optional[ContributorRecord],
    viewer: Optional[str],
    now: float,
) -> Optional[CampaignStatus]:
    """
    Compute the viewer's status for a campaign.

    Returns None when there is no viewer: eligibility is role dependent,
    so the caller should prompt for an identity rather than treat this
    as an error.

    `record` must belong to this campaign and this viewer; pass None if
    the viewer never contributed.
    """
    if not viewer:
        return None

    phase = phase_of(campaign, now)
    is_goal_reached = campaign.total_donated >= campaign.goal
    am_i_the_owner = viewer == campaign.owner
    is_contributed = record is not None
    is_contribution_withdrawn = record.withdrawn if record is not None else False
    is_admin_withdrawn = campaign.owner_withdrawn

    def status(action: ActionLabel, enabled: bool, claimable: int = 0) -> CampaignStatus:
        return CampaignStatus(
            phase=phase,
            action=action,
            enabled=enabled,
            is_contributed=is_contributed,
            is_goal_reached=is_goal_reached,
            am_i_the_owner=am_i_the_owner,
            is_admin_withdrawn=is_admin_withdrawn,
            is_contribution_withdrawn=is_contribution_withdrawn,
            amount_claimable=claimable,
        )

    if phase == Phase.ACTIVE:
        return status(ActionLabel.CONTRIBUTE, True)

    if phase == Phase.CANCELLED:
        if not is_contributed:
            return status(ActionLabel.CANCELED, False)
        if is_contribution_withdrawn:
            return status(ActionLabel.ALREADY_CLAIMED, False)
        return status(ActionLabel.CLAIM, True, record.amount_donated)

    # Past
    if is_goal_reached:
        if not am_i_the_owner:
            return status(ActionLabel.COMPLETED, False)
        if is_admin_withdrawn:
            return status(ActionLabel.ALREADY_WITHDRAWN, False)
        return status(ActionLabel.WITHDRAW, True, campaign.total_donated)

    if not is_contributed:
        return status(ActionLabel.COMPLETED, False)
    if is_contribution_withdrawn:
        return status(ActionLabel.ALREADY_CLAIMED, False)
    return status(ActionLabel.CLAIM, True, record.amount_donated)

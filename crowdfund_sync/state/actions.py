"""
Write-side actions.

Submits donate / cancel / claim / create transactions on behalf of the
current viewer. Actions are gated on the status computed from the
store's current snapshot, so ineligible actions never reach the ledger.

A rejection from the ledger means the snapshot was stale (another
transaction got there first). It is reported through the notifier, and
every submitted write is followed by a forced refresh so the next
status reflects the ledger.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ..engine.actions import ClaimInstruction, can_cancel, can_donate, claim_instruction
from ..engine.status import CampaignStatus, Phase
from ..infrastructure.errors import GENERIC_ERROR_MESSAGE, LedgerError, LedgerRejection, classify_failure
from ..infrastructure.ledger import LedgerWriter
from ..infrastructure.notifications import Notification, NotificationLevel, Notifier
from .store import SyncStore

logger = structlog.get_logger()


@dataclass
class ActionResult:
    """Outcome of a user action."""
    action: str
    campaign_id: Optional[str]
    success: bool
    signature: Optional[str] = None
    error_code: Optional[str] = None
    message: str = ""
    submitted: bool = False  # Reached the ledger

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "campaign_id": self.campaign_id,
            "success": self.success,
            "signature": self.signature,
            "error_code": self.error_code,
            "message": self.message,
            "submitted": self.submitted,
        }


class CampaignActions:
    """
    Viewer actions against the ledger, gated by campaign status.

    Example:
        actions = CampaignActions(ledger, store, notifier)
        result = await actions.donate(campaign_id, 500_000_000)
        if not result.success:
            print(result.message)
    """

    def __init__(self, ledger: LedgerWriter, store: SyncStore, notifier: Optional[Notifier] = None):
        self.ledger = ledger
        self.store = store
        self.notifier = notifier

    def _notify(self, level: NotificationLevel, message: str, description: Optional[str] = None) -> None:
        if self.notifier is not None:
            self.notifier.notify(Notification(level=level, message=message, description=description))

    def _refuse(self, action: str, campaign_id: Optional[str], message: str) -> ActionResult:
        logger.info("campaign_actions.refused", action=action, campaign_id=campaign_id, reason=message)
        self._notify(NotificationLevel.ERROR, message)
        return ActionResult(action=action, campaign_id=campaign_id, success=False, message=message)

    def _current_status(self, campaign_id: str) -> tuple[Optional[CampaignStatus], Optional[str]]:
        """Status for the viewer, or an error message explaining why there is none."""
        if not self.store.viewer:
            return None, "Wallet not connected"
        snapshot = self.store.snapshot
        campaign = snapshot.get(campaign_id)
        if campaign is None:
            return None, "Campaign not found"
        if snapshot.viewer != self.store.viewer or snapshot.records_pending:
            return None, "Campaigns are still loading for this wallet"
        return snapshot.status_of(campaign, self.store.clock.now()), None

    async def _submit(self, action: str, campaign_id: Optional[str], call, success_message: str) -> ActionResult:
        try:
            signature = await call
        except LedgerRejection as exc:
            logger.warning(
                "campaign_actions.rejected",
                action=action,
                campaign_id=campaign_id,
                code=exc.code,
            )
            self._notify(NotificationLevel.ERROR, str(exc))
            return ActionResult(
                action=action,
                campaign_id=campaign_id,
                success=False,
                error_code=exc.code,
                message=str(exc),
                submitted=True,
            )
        except LedgerError as exc:
            logger.warning(
                "campaign_actions.submit_failed",
                action=action,
                campaign_id=campaign_id,
                kind=classify_failure(exc).value,
                error=str(exc),
            )
            self._notify(NotificationLevel.ERROR, GENERIC_ERROR_MESSAGE, str(exc))
            return ActionResult(
                action=action,
                campaign_id=campaign_id,
                success=False,
                message=GENERIC_ERROR_MESSAGE,
                submitted=True,
            )
        finally:
            await self.store.refresh()

        logger.info("campaign_actions.submitted", action=action, campaign_id=campaign_id, signature=signature)
        self._notify(NotificationLevel.SUCCESS, success_message, "Your request has been sent to the network.")
        return ActionResult(
            action=action,
            campaign_id=campaign_id,
            success=True,
            signature=signature,
            message=success_message,
            submitted=True,
        )

    async def donate(self, campaign_id: str, amount: int) -> ActionResult:
        if amount <= 0:
            return self._refuse("donate", campaign_id, "Please enter a valid amount")
        status, error = self._current_status(campaign_id)
        if error:
            return self._refuse("donate", campaign_id, error)
        if not can_donate(status):
            return self._refuse("donate", campaign_id, "Campaign is not accepting contributions")
        return await self._submit(
            "donate",
            campaign_id,
            self.ledger.donate(campaign_id, self.store.viewer, amount),
            "Contribution sent!",
        )

    async def cancel(self, campaign_id: str) -> ActionResult:
        status, error = self._current_status(campaign_id)
        if error:
            return self._refuse("cancel", campaign_id, error)
        if not can_cancel(status):
            if status.phase == Phase.CANCELLED:
                return self._refuse("cancel", campaign_id, "Campaign has already been cancelled")
            if not status.am_i_the_owner:
                return self._refuse("cancel", campaign_id, "You are not the owner of the campaign")
            return self._refuse("cancel", campaign_id, "Campaign has already ended")
        return await self._submit(
            "cancel",
            campaign_id,
            self.ledger.cancel(campaign_id, self.store.viewer),
            "Campaign has been cancelled!",
        )

    async def claim(self, campaign_id: str) -> ActionResult:
        """Withdraw whatever the viewer is eligible for: refund or proceeds."""
        status, error = self._current_status(campaign_id)
        if error:
            return self._refuse("claim", campaign_id, error)
        instruction = claim_instruction(status)
        if instruction is None:
            if status.phase == Phase.ACTIVE:
                return self._refuse("claim", campaign_id, "Campaign is still active")
            return self._refuse("claim", campaign_id, "Nothing to claim for this campaign")

        viewer = self.store.viewer
        if instruction == ClaimInstruction.WITHDRAW_IF_CANCELLED:
            call = self.ledger.withdraw_if_cancelled(campaign_id, viewer)
        elif instruction == ClaimInstruction.WITHDRAW_BY_OWNER:
            call = self.ledger.withdraw_by_owner(campaign_id, viewer)
        else:
            call = self.ledger.withdraw_if_failed(campaign_id, viewer)
        return await self._submit(instruction.value, campaign_id, call, "Funds transaction sent!")

    async def create_campaign(
        self,
        name: str,
        description: str,
        goal: int,
        deadline: Optional[int] = None,
    ) -> ActionResult:
        if not self.store.viewer:
            return self._refuse("create_campaign", None, "Wallet not connected")
        if goal <= 0:
            return self._refuse("create_campaign", None, "Goal must be positive")
        if deadline is not None and deadline <= self.store.clock.now():
            return self._refuse("create_campaign", None, "Deadline must be in the future")
        return await self._submit(
            "create_campaign",
            None,
            self.ledger.create_campaign(self.store.viewer, name, description, goal, deadline),
            "Campaign Created!",
        )

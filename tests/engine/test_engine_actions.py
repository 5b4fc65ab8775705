"""Tests for action gating and claim routing."""

import pytest

from crowdfund_sync.engine.actions import (
    ClaimInstruction,
    can_cancel,
    can_donate,
    claim_instruction,
)
from crowdfund_sync.engine.status import compute_status

from factories import BYSTANDER, CONTRIBUTOR, OWNER, T0, make_campaign, make_record


class TestClaimInstruction:

    def test_none_without_status(self):
        assert claim_instruction(None) is None

    def test_cancelled_contributor(self):
        status = compute_status(make_campaign(cancelled=True), make_record(), CONTRIBUTOR, T0)
        assert claim_instruction(status) == ClaimInstruction.WITHDRAW_IF_CANCELLED

    def test_funded_owner(self):
        status = compute_status(make_campaign(total_donated=1000), None, OWNER, T0 + 150)
        assert claim_instruction(status) == ClaimInstruction.WITHDRAW_BY_OWNER

    def test_failed_contributor(self):
        status = compute_status(make_campaign(total_donated=500), make_record(), CONTRIBUTOR, T0 + 150)
        assert claim_instruction(status) == ClaimInstruction.WITHDRAW_IF_FAILED

    @pytest.mark.parametrize(
        "campaign,record,viewer,now",
        [
            (make_campaign(), make_record(), CONTRIBUTOR, T0),  # Still active
            (make_campaign(total_donated=1000, owner_withdrawn=True), None, OWNER, T0 + 150),
            (make_campaign(total_donated=500), make_record(withdrawn=True), CONTRIBUTOR, T0 + 150),
            (make_campaign(total_donated=500), None, BYSTANDER, T0 + 150),
            (make_campaign(cancelled=True), None, BYSTANDER, T0),
        ],
    )
    def test_nothing_to_claim(self, campaign, record, viewer, now):
        assert claim_instruction(compute_status(campaign, record, viewer, now)) is None


class TestGates:

    def test_donate_only_while_active(self):
        campaign = make_campaign()
        assert can_donate(compute_status(campaign, None, BYSTANDER, T0))
        assert not can_donate(compute_status(campaign, None, BYSTANDER, T0 + 100))
        assert not can_donate(compute_status(make_campaign(cancelled=True), None, BYSTANDER, T0))
        assert not can_donate(None)

    def test_cancel_owner_and_active_only(self):
        campaign = make_campaign()
        assert can_cancel(compute_status(campaign, None, OWNER, T0))
        assert not can_cancel(compute_status(campaign, None, BYSTANDER, T0))
        assert not can_cancel(compute_status(campaign, None, OWNER, T0 + 100))
        assert not can_cancel(compute_status(make_campaign(cancelled=True), None, OWNER, T0))

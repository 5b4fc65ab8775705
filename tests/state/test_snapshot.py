"""Tests for the published campaign snapshot."""

import pytest

from crowdfund_sync.engine import ActionLabel, RelationshipFilter, StatusFilter
from crowdfund_sync.state.snapshot import CampaignSnapshot, order_newest_first

from factories import CONTRIBUTOR, T0, make_campaign, make_record


class TestOrdering:

    def test_newest_first(self):
        campaigns = [
            make_campaign(id="old", created_at=T0),
            make_campaign(id="new", created_at=T0 + 20),
            make_campaign(id="mid", created_at=T0 + 10),
        ]
        assert [c.id for c in order_newest_first(campaigns)] == ["new", "mid", "old"]

    def test_ties_are_stable(self):
        campaigns = [make_campaign(id="b"), make_campaign(id="a"), make_campaign(id="c")]
        assert [c.id for c in order_newest_first(campaigns)] == ["a", "b", "c"]


class TestCampaignSnapshot:

    @pytest.fixture
    def snapshot(self):
        campaigns = {
            "camp-001": make_campaign(total_donated=500),
            "camp-002": make_campaign(id="camp-002", created_at=T0 + 1, deadline=None),
        }
        return CampaignSnapshot.build(campaigns, [make_record()], CONTRIBUTOR)

    def test_empty_default(self):
        snapshot = CampaignSnapshot()
        assert snapshot.is_empty
        assert len(snapshot) == 0
        assert snapshot.viewer is None

    def test_build_orders_and_indexes(self, snapshot):
        assert [c.id for c in snapshot.campaigns] == ["camp-002", "camp-001"]
        assert snapshot.get("camp-001").total_donated == 500
        assert snapshot.get("missing") is None
        assert snapshot.record_for("camp-001").amount_donated == 500
        assert snapshot.record_for("camp-002") is None

    def test_status_uses_snapshot_context(self, snapshot):
        campaign = snapshot.get("camp-001")

        assert snapshot.status_of(campaign, T0 + 50).action == ActionLabel.CONTRIBUTE
        claim = snapshot.status_of(campaign, T0 + 150)
        assert claim.action == ActionLabel.CLAIM
        assert claim.amount_claimable == 500

    def test_status_none_without_viewer(self):
        snapshot = CampaignSnapshot.build({"camp-001": make_campaign()}, [], None)
        assert snapshot.status_of(snapshot.get("camp-001"), T0) is None

    def test_filter(self, snapshot):
        past = snapshot.filter(T0 + 150, status_filter=StatusFilter.PAST)
        contributed = snapshot.filter(T0 + 150, relationship=RelationshipFilter.CONTRIBUTED)

        assert [c.id for c in past] == ["camp-001"]
        assert [c.id for c in contributed] == ["camp-001"]

    def test_is_read_only(self, snapshot):
        with pytest.raises(TypeError):
            snapshot.by_id["x"] = make_campaign(id="x")
        with pytest.raises(Exception):
            snapshot.viewer = "someone"

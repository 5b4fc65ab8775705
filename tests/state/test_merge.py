"""
Tests for campaign merging across refreshes.

Unchanged campaigns keep their object identity; changed, added and
removed campaigns are always reflected; a viewer change reuses nothing.
"""

from crowdfund_sync.state.merge import merge_campaigns

from factories import T0, make_campaign


def keyed(*campaigns):
    return {c.id: c for c in campaigns}


class TestMergeCampaigns:

    def test_unchanged_keeps_previous_objects(self):
        previous = keyed(make_campaign(id="a"), make_campaign(id="b"))
        fresh = keyed(make_campaign(id="a"), make_campaign(id="b"))

        merged = merge_campaigns(previous, fresh)

        assert merged["a"] is previous["a"]
        assert merged["b"] is previous["b"]

    def test_full_noop_returns_previous(self):
        previous = keyed(make_campaign(id="a"))
        merged = merge_campaigns(previous, keyed(make_campaign(id="a")))
        assert merged is previous

    def test_changed_campaign_replaced(self):
        previous = keyed(make_campaign(id="a"), make_campaign(id="b"))
        fresh = keyed(make_campaign(id="a", total_donated=250), make_campaign(id="b"))

        merged = merge_campaigns(previous, fresh)

        assert merged["a"] is fresh["a"]
        assert merged["a"].total_donated == 250
        assert merged["b"] is previous["b"]

    def test_every_ledger_field_counts(self):
        base = make_campaign(id="a")
        changes = {
            "name": "Renamed",
            "description": "New text",
            "goal": 2000,
            "deadline": T0 + 999,
            "total_donated": 1,
            "owner_withdrawn": True,
            "created_at": T0 + 1,
            "cancelled": True,
        }
        for field, value in changes.items():
            fresh = keyed(make_campaign(id="a", **{field: value}))
            merged = merge_campaigns(keyed(base), fresh)
            assert merged["a"] is fresh["a"], field

    def test_addition_and_removal(self):
        previous = keyed(make_campaign(id="a"), make_campaign(id="b"))
        fresh = keyed(make_campaign(id="b"), make_campaign(id="c"))

        merged = merge_campaigns(previous, fresh)

        assert set(merged) == {"b", "c"}
        assert len(merged) == len(fresh)
        assert merged["b"] is previous["b"]
        assert merged["c"] is fresh["c"]

    def test_removal_only_is_not_a_noop(self):
        previous = keyed(make_campaign(id="a"), make_campaign(id="b"))
        fresh = keyed(make_campaign(id="a"))

        merged = merge_campaigns(previous, fresh)

        assert merged is not previous
        assert list(merged) == ["a"]
        assert merged["a"] is previous["a"]

    def test_viewer_change_reuses_nothing(self):
        previous = keyed(make_campaign(id="a"), make_campaign(id="b"))
        fresh = keyed(make_campaign(id="a"), make_campaign(id="b"))

        merged = merge_campaigns(previous, fresh, viewer_changed=True)

        assert merged is fresh
        assert all(merged[key] is not previous[key] for key in merged)

    def test_consecutive_merges_stay_stable(self):
        """Identity survives any number of unchanged polls."""
        current = keyed(make_campaign(id="a"))
        original = current["a"]
        for _ in range(3):
            current = merge_campaigns(current, keyed(make_campaign(id="a")))
        assert current["a"] is original

    def test_empty_previous(self):
        fresh = keyed(make_campaign(id="a"))
        merged = merge_campaigns({}, fresh)
        assert merged["a"] is fresh["a"]

"""Tests for dashboard statistics."""

from crowdfund_sync.engine.stats import DashboardStats, compute_stats, format_amount

from factories import T0, make_campaign


class TestComputeStats:

    def test_empty(self):
        stats = compute_stats([], T0)

        assert stats.total_campaigns == 0
        assert stats.total_raised == 0
        assert stats.success_rate == 0

    def test_mixed_campaigns(self):
        campaigns = [
            make_campaign(id="a", deadline=T0 + 1000, total_donated=100),
            make_campaign(id="b", total_donated=1000),  # Past, funded
            make_campaign(id="c", total_donated=400),  # Past, failed
            make_campaign(id="d", cancelled=True, total_donated=5000),
        ]
        stats = compute_stats(campaigns, T0 + 150)

        assert stats.total_campaigns == 4
        assert stats.total_raised == 6500
        assert stats.active_campaigns == 1
        assert stats.successful_campaigns == 1
        assert stats.success_rate == 25

    def test_funded_but_still_active_is_not_success(self):
        """Success is only counted once the deadline passes."""
        stats = compute_stats([make_campaign(total_donated=5000)], T0 + 50)
        assert stats.successful_campaigns == 0
        assert stats.active_campaigns == 1

    def test_success_rate_rounds(self):
        stats = DashboardStats(total_campaigns=3, successful_campaigns=2)
        assert stats.success_rate == 67
        assert stats.to_dict()["success_rate"] == 67


class TestFormatAmount:

    def test_whole_units(self):
        assert format_amount(1_500_000_000) == "1.50"

    def test_small_amounts(self):
        assert format_amount(1) == "0.00"
        assert format_amount(10_000_000) == "0.01"

    def test_custom_decimals(self):
        assert format_amount(12346, decimals=2, places=1) == "123.5"

    def test_large_amounts_stay_exact(self):
        assert format_amount(2**64 - 1) == "18446744073.71"

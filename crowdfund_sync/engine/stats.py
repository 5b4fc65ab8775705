"""Dashboard summary figures."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ..models import Campaign
from .status import Phase, phase_of


@dataclass(frozen=True)
class DashboardStats:
    total_campaigns: int = 0
    total_raised: int = 0  # Smallest currency unit
    active_campaigns: int = 0
    successful_campaigns: int = 0

    @property
    def success_rate(self) -> int:
        """Percentage of all campaigns that ended with the goal reached."""
        if self.total_campaigns == 0:
            return 0
        return round(self.successful_campaigns * 100 / self.total_campaigns)

    def to_dict(self) -> dict:
        return {
            "total_campaigns": self.total_campaigns,
            "total_raised": self.total_raised,
            "active_campaigns": self.active_campaigns,
            "successful_campaigns": self.successful_campaigns,
            "success_rate": self.success_rate,
        }


def compute_stats(campaigns: Sequence[Campaign], now: float) -> DashboardStats:
    active = 0
    successful = 0
    for campaign in campaigns:
        phase = phase_of(campaign, now)
        if phase == Phase.ACTIVE:
            active += 1
        elif phase == Phase.PAST and campaign.total_donated >= campaign.goal:
            successful += 1
    return DashboardStats(
        total_campaigns=len(campaigns),
        total_raised=sum(c.total_donated for c in campaigns),
        active_campaigns=active,
        successful_campaigns=successful,
    )


def format_amount(units: int, decimals: int = 9, places: int = 2) -> str:
    """
    Render an integer amount of smallest units for display.

    format_amount(1_500_000_000) -> "1.50"
    """
    value = Decimal(units).scaleb(-decimals)
    return f"{value:.{places}f}"

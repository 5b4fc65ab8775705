"""
Published campaign snapshot.

A snapshot bundles everything a status computation needs besides the
time: the campaigns, the viewer, and the viewer's contributor records.
Status is computed against the snapshot that holds the records, so an
entity reused across refreshes never carries a stale viewer with it.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..engine.filters import RelationshipFilter, StatusFilter, filter_campaigns
from ..engine.status import CampaignStatus, compute_status
from ..models import Campaign, ContributorRecord


def order_newest_first(campaigns: Iterable[Campaign]) -> tuple[Campaign, ...]:
    """Newest first; ties broken by id so the order is stable."""
    ordered = sorted(campaigns, key=lambda c: c.id)
    return tuple(sorted(ordered, key=lambda c: c.created_at, reverse=True))


@dataclass(frozen=True)
class CampaignSnapshot:
    """Read-only view of the store's state. Consumers must not mutate entities."""
    campaigns: tuple[Campaign, ...] = ()
    by_id: Mapping[str, Campaign] = field(default_factory=lambda: MappingProxyType({}))
    contributor_records: Mapping[str, ContributorRecord] = field(
        default_factory=lambda: MappingProxyType({})
    )
    viewer: Optional[str] = None
    epoch: int = 0
    generation: int = 0
    fetched_at: Optional[datetime] = None
    records_pending: bool = False  # Viewer switched, their records not fetched yet

    @classmethod
    def build(
        cls,
        by_id: Mapping[str, Campaign],
        records: Iterable[ContributorRecord],
        viewer: Optional[str],
        epoch: int = 0,
        generation: int = 0,
        fetched_at: Optional[datetime] = None,
    ) -> "CampaignSnapshot":
        return cls(
            campaigns=order_newest_first(by_id.values()),
            by_id=MappingProxyType(dict(by_id)),
            contributor_records=MappingProxyType({r.campaign: r for r in records}),
            viewer=viewer,
            epoch=epoch,
            generation=generation,
            fetched_at=fetched_at or datetime.now(),
        )

    def __len__(self) -> int:
        return len(self.campaigns)

    @property
    def is_empty(self) -> bool:
        return not self.campaigns

    def get(self, campaign_id: str) -> Optional[Campaign]:
        return self.by_id.get(campaign_id)

    def record_for(self, campaign_id: str) -> Optional[ContributorRecord]:
        return self.contributor_records.get(campaign_id)

    def for_viewer(self, viewer: Optional[str]) -> "CampaignSnapshot":
        """Same campaigns re-wrapped for another viewer, with none of the old viewer's records."""
        return dataclasses.replace(
            self,
            viewer=viewer,
            contributor_records=MappingProxyType({}),
            records_pending=bool(viewer),
        )

    def status_of(self, campaign: Campaign, now: float) -> Optional[CampaignStatus]:
        return compute_status(campaign, self.record_for(campaign.id), self.viewer, now)

    def filter(
        self,
        now: float,
        status_filter: StatusFilter = StatusFilter.ALL,
        relationship: Optional[RelationshipFilter] = None,
    ) -> list[Campaign]:
        return filter_campaigns(
            self.campaigns,
            status_filter=status_filter,
            relationship=relationship,
            viewer=self.viewer,
            now=now,
            records=self.contributor_records,
        )

"""
Campaign filtering, counting and pagination.

Two filters compose with logical AND:
- status filter: by phase, or All
- relationship filter: the viewer's relation to the campaign

Relationship filters need a viewer. Without one they match nothing
rather than being ignored.

"Claimable" is phase independent: an underfunded campaign the viewer
contributed to, or a funded campaign the viewer owns, until claimed.
Refundable and Withdrawable are the phase-aware eligibilities on their
own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence, TypeVar

from ..models import Campaign, ContributorRecord
from .status import CampaignStatus, compute_status, phase_of

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 9


class StatusFilter(str, Enum):
    ALL = "All"
    ACTIVE = "Active"
    PAST = "Past"
    CANCELLED = "Cancelled"


class RelationshipFilter(str, Enum):
    OWNED = "My Campaigns"
    CONTRIBUTED = "Contributed"
    CLAIMABLE = "Claimable"
    REFUNDABLE = "Refundable"
    WITHDRAWABLE = "Withdrawable"


def matches_status(campaign: Campaign, status_filter: StatusFilter, now: float) -> bool:
    if status_filter == StatusFilter.ALL:
        return True
    return phase_of(campaign, now).value == status_filter.value


def matches_relationship(status: Optional[CampaignStatus], relationship: RelationshipFilter) -> bool:
    if status is None:
        return False
    if relationship == RelationshipFilter.OWNED:
        return status.am_i_the_owner
    if relationship == RelationshipFilter.CONTRIBUTED:
        return status.is_contributed
    if relationship == RelationshipFilter.REFUNDABLE:
        return status.can_claim_refund
    if relationship == RelationshipFilter.WITHDRAWABLE:
        return status.can_withdraw_proceeds
    return status.is_claimable


def filter_campaigns(
    campaigns: Iterable[Campaign],
    status_filter: StatusFilter = StatusFilter.ALL,
    relationship: Optional[RelationshipFilter] = None,
    viewer: Optional[str] = None,
    now: float = 0.0,
    records: Optional[Mapping[str, ContributorRecord]] = None,
) -> list[Campaign]:
    """
    Return the campaigns passing both filters, in input order.

    Args:
        campaigns: Campaigns to filter
        status_filter: Phase to keep, or All
        relationship: Viewer relationship to keep, or None for any
        viewer: Current viewer identity
        now: Current time (unix seconds)
        records: Viewer's contributor records keyed by campaign id
    """
    if relationship is not None and not viewer:
        return []
    records = records or {}

    result = []
    for campaign in campaigns:
        if not matches_status(campaign, status_filter, now):
            continue
        if relationship is not None:
            status = compute_status(campaign, records.get(campaign.id), viewer, now)
            if not matches_relationship(status, relationship):
                continue
        result.append(campaign)
    return result


def count_by_phase(campaigns: Sequence[Campaign], now: float) -> dict[StatusFilter, int]:
    """Counts for each status filter option."""
    counts = {option: 0 for option in StatusFilter}
    counts[StatusFilter.ALL] = len(campaigns)
    for campaign in campaigns:
        counts[StatusFilter(phase_of(campaign, now).value)] += 1
    return counts


def count_by_relationship(
    campaigns: Sequence[Campaign],
    viewer: Optional[str],
    now: float,
    records: Optional[Mapping[str, ContributorRecord]] = None,
) -> dict[RelationshipFilter, int]:
    """Counts for each relationship filter option; all zero without a viewer."""
    counts = {option: 0 for option in RelationshipFilter}
    if not viewer:
        return counts
    records = records or {}
    for campaign in campaigns:
        status = compute_status(campaign, records.get(campaign.id), viewer, now)
        for option in RelationshipFilter:
            if matches_relationship(status, option):
                counts[option] += 1
    return counts


# -------------------------------------------------------------------------
# Pagination
# -------------------------------------------------------------------------


@dataclass
class Page:
    """One page of a filtered list."""
    items: list = field(default_factory=list)
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE
    total_items: int = 0

    @property
    def total_pages(self) -> int:
        if self.total_items == 0:
            return 1
        return -(-self.total_items // self.per_page)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(items: Sequence[T], page: int = 1, per_page: int = DEFAULT_PAGE_SIZE) -> Page:
    """Slice `items` into a page, clamping `page` into range."""
    if per_page <= 0:
        raise ValueError("per_page must be positive")
    result = Page(page=1, per_page=per_page, total_items=len(items))
    result.page = min(max(page, 1), result.total_pages)
    start = (result.page - 1) * per_page
    result.items = list(items[start:start + per_page])
    return result


def page_window(current: int, total_pages: int) -> list[Optional[int]]:
    """
    Page numbers to show in a pager.

    Keeps the first page, the last page and neighbours of the current
    page; gaps are represented by None.
    """
    window: list[Optional[int]] = []
    for number in range(1, total_pages + 1):
        if number == 1 or number == total_pages or abs(number - current) <= 1:
            window.append(number)
        elif window and window[-1] is not None:
            window.append(None)
    return window

"""
Campaign state synchronization.

Keeps a local, identity-preserving snapshot of ledger campaigns:
- Snapshot: campaigns plus the viewer context statuses are computed in
- Merge: reuse unchanged campaign objects across refreshes
- SyncStore: refresh and deadline-watch timers, failure classification
- CampaignActions: status-gated writes followed by a forced refresh
"""

from .actions import (
    ActionResult,
    CampaignActions,
)
from .merge import (
    merge_campaigns,
)
from .snapshot import (
    CampaignSnapshot,
    order_newest_first,
)
from .store import (
    FetchFailure,
    RefreshOutcome,
    RefreshResult,
    StoreState,
    SyncStore,
)

__all__ = [
    # Snapshot
    "CampaignSnapshot",
    "order_newest_first",
    # Merge
    "merge_campaigns",
    # Store
    "FetchFailure",
    "RefreshOutcome",
    "RefreshResult",
    "StoreState",
    "SyncStore",
    # Actions
    "ActionResult",
    "CampaignActions",
]

"""
Campaign status engine.

Pure, synchronous logic with no I/O:
- Status computation (phase, action, eligibility)
- Action gating and claim routing
- Filtering, counting and pagination
- Dashboard statistics
"""

from .actions import (
    ClaimInstruction,
    can_cancel,
    can_donate,
    claim_instruction,
)
from .filters import (
    Page,
    RelationshipFilter,
    StatusFilter,
    count_by_phase,
    count_by_relationship,
    filter_campaigns,
    page_window,
    paginate,
)
from .stats import (
    DashboardStats,
    compute_stats,
    format_amount,
)
from .status import (
    ActionLabel,
    CampaignStatus,
    Phase,
    compute_status,
    phase_of,
)

__all__ = [
    # Status
    "ActionLabel",
    "CampaignStatus",
    "Phase",
    "compute_status",
    "phase_of",
    # Actions
    "ClaimInstruction",
    "can_cancel",
    "can_donate",
    "claim_instruction",
    # Filters
    "Page",
    "RelationshipFilter",
    "StatusFilter",
    "count_by_phase",
    "count_by_relationship",
    "filter_campaigns",
    "page_window",
    "paginate",
    # Stats
    "DashboardStats",
    "compute_stats",
    "format_amount",
]

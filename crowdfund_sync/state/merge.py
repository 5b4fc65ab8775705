"""
Snapshot merging.

Polling returns fresh objects for every campaign. Consumers keyed on
object identity (animated lists, memoized rows) would see every campaign
change on every poll, so unchanged campaigns keep their previous object.
"""

from typing import Mapping

import structlog

from ..models import Campaign

logger = structlog.get_logger()


def merge_campaigns(
    previous: Mapping[str, Campaign],
    fresh: Mapping[str, Campaign],
    viewer_changed: bool = False,
) -> Mapping[str, Campaign]:
    """
    Merge a freshly fetched keyed collection into the previous one.

    - viewer_changed: return `fresh` as is, nothing is reused
    - otherwise: reuse the previous object for every campaign whose
      ledger fields are unchanged, take the fresh one for the rest
    - keys always follow `fresh`, so additions and removals show up
    - if nothing changed at all, `previous` itself is returned
    """
    if viewer_changed:
        return fresh

    merged: dict[str, Campaign] = {}
    changed = 0
    for campaign_id, campaign in fresh.items():
        old = previous.get(campaign_id)
        if old is not None and old.same_ledger_state(campaign):
            merged[campaign_id] = old
        else:
            merged[campaign_id] = campaign
            changed += 1

    if changed == 0 and len(merged) == len(previous):
        return previous

    logger.debug(
        "merge.campaigns_changed",
        changed=changed,
        removed=len(previous.keys() - fresh.keys()),
        total=len(merged),
    )
    return merged

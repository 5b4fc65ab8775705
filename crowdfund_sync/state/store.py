"""
Campaign Sync Store.

Keeps a local snapshot of campaigns fresh against the ledger:
- Periodic refresh (default every 15s) plus on-demand refresh
- Deadline watch (default every 1s) that bumps a status epoch when a
  campaign's deadline passes, without touching the ledger
- Unchanged campaigns keep their object identity across refreshes
- Failed refreshes keep the last good snapshot (stale-but-available)

State machine:
    UNINITIALIZED -> LOADING -> READY
LOADING is only entered before the first successful refresh. After
that every refresh, failed or not, leaves the store READY.

At most one refresh runs at a time. A refresh requested while one is in
flight is coalesced: the caller returns immediately and one follow-up
refresh runs when the current one finishes. A viewer change bumps the
generation counter, so an in-flight fetch issued for the old viewer is
discarded when it resolves.
"""

import asyncio
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import structlog

from ..clock import Clock, SystemClock
from ..config import DashboardSettings, get_settings
from ..infrastructure.errors import FailureKind, classify_failure
from ..infrastructure.ledger import LedgerReader
from ..infrastructure.notifications import Notification, NotificationLevel, Notifier
from ..models import Campaign, ContributorRecord
from .merge import merge_campaigns
from .snapshot import CampaignSnapshot

logger = structlog.get_logger()

SnapshotListener = Callable[[CampaignSnapshot], None]

FAILURE_MESSAGES = {
    FailureKind.CONNECTIVITY: "Could not reach the ledger. Retrying shortly.",
    FailureKind.ACCESS_POLICY: "The ledger refused the request. Retrying shortly.",
    FailureKind.OTHER: "Failed to refresh campaigns.",
}


class StoreState(str, Enum):
    """Lifecycle state of a sync store."""
    UNINITIALIZED = "uninitialized"  # Never refreshed
    LOADING = "loading"  # First fetch in progress, nothing to show yet
    READY = "ready"  # Snapshot available (possibly stale)


class RefreshOutcome(str, Enum):
    """What a call to refresh() did."""
    APPLIED = "applied"  # New snapshot published
    UNCHANGED = "unchanged"  # Fetched, nothing differed
    COALESCED = "coalesced"  # Another refresh was in flight
    DISCARDED = "discarded"  # Superseded by a newer generation
    FAILED = "failed"  # Fetch failed, snapshot kept


@dataclass
class FetchFailure:
    """A classified refresh failure."""
    kind: FailureKind
    message: str
    generation: int
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def is_transient(self) -> bool:
        return self.kind.is_transient

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "generation": self.generation,
            "transient": self.is_transient,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass
class RefreshResult:
    """Result of a single refresh() call."""
    outcome: RefreshOutcome
    generation: int
    viewer_changed: bool = False
    campaign_count: int = 0
    failure: Optional[FetchFailure] = None
    duration_ms: int = 0

    @property
    def is_success(self) -> bool:
        return self.outcome in (RefreshOutcome.APPLIED, RefreshOutcome.UNCHANGED)

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "is_success": self.is_success,
            "generation": self.generation,
            "viewer_changed": self.viewer_changed,
            "campaign_count": self.campaign_count,
            "failure": self.failure.to_dict() if self.failure else None,
            "duration_ms": self.duration_ms,
        }


class SyncStore:
    """
    Owns the published campaign snapshot and its two timers.

    Example:
        async with HttpLedgerClient(url) as ledger:
            store = SyncStore(ledger, viewer="wallet-123")
            store.start()
            ...
            snapshot = store.snapshot
            status = snapshot.status_of(snapshot.campaigns[0], store.clock.now())
            ...
            await store.stop()
    """

    def __init__(
        self,
        ledger: LedgerReader,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
        viewer: Optional[str] = None,
        refresh_interval: float = 15.0,
        deadline_watch_interval: float = 1.0,
        fetch_timeout: float = 10.0,
    ):
        """
        Initialize the store.

        Args:
            ledger: Read access to the ledger
            clock: Time source (default: wall clock)
            notifier: Where refresh failures are reported
            viewer: Initial viewer identity, None if not connected
            refresh_interval: Seconds between ledger refreshes
            deadline_watch_interval: Seconds between deadline checks
            fetch_timeout: Bound on a single refresh's ledger queries
        """
        self.ledger = ledger
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self.refresh_interval = refresh_interval
        self.deadline_watch_interval = deadline_watch_interval
        self.fetch_timeout = fetch_timeout

        self._viewer = viewer
        self._last_viewer: Optional[str] = None  # Viewer of the last applied refresh
        self._state = StoreState.UNINITIALIZED
        self._snapshot = CampaignSnapshot()
        self._has_data = False
        self._epoch = 0
        self._generation = 0
        self._last_failure: Optional[FetchFailure] = None

        self._in_flight = False
        self._rerun_requested = False
        self._last_tick = self.clock.now()

        self._listeners: list[SnapshotListener] = []
        self._refresh_task: Optional[asyncio.Task] = None
        self._deadline_task: Optional[asyncio.Task] = None
        self._spawned: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        ledger: LedgerReader,
        settings: Optional[DashboardSettings] = None,
        **kwargs,
    ) -> "SyncStore":
        settings = settings or get_settings()
        return cls(
            ledger,
            refresh_interval=settings.refresh_interval_seconds,
            deadline_watch_interval=settings.deadline_watch_interval_seconds,
            fetch_timeout=settings.fetch_timeout_seconds,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state == StoreState.LOADING

    @property
    def snapshot(self) -> CampaignSnapshot:
        return self._snapshot

    @property
    def viewer(self) -> Optional[str]:
        return self._viewer

    @property
    def epoch(self) -> int:
        """Status epoch; increases whenever statuses must be recomputed without new data."""
        return self._epoch

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_failure(self) -> Optional[FetchFailure]:
        return self._last_failure

    @property
    def is_running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call `listener` with every newly published snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: CampaignSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("sync_store.listener_error", error=str(e))

    # -------------------------------------------------------------------------
    # Viewer
    # -------------------------------------------------------------------------

    def set_viewer(self, viewer: Optional[str]) -> None:
        """
        Switch the viewer identity.

        The published snapshot is re-wrapped for the new viewer straight
        away, without the old viewer's records, so no status computed
        from it carries the previous viewer's permissions. Supersedes any
        in-flight refresh and schedules a new one when the store is running.
        """
        if viewer == self._viewer:
            return
        logger.info("sync_store.viewer_changed", previous=self._viewer, viewer=viewer)
        self._viewer = viewer
        self._generation += 1
        self._publish(self._snapshot.for_viewer(viewer))
        if self._in_flight:
            self._rerun_requested = True
        elif self.is_running:
            self._spawn(self.refresh())

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def refresh(self) -> RefreshResult:
        """
        Fetch from the ledger and publish a merged snapshot.

        Never raises for fetch failures; they are classified, logged and
        reported to the notifier, and the previous snapshot is kept.
        """
        if self._in_flight:
            self._rerun_requested = True
            logger.debug("sync_store.refresh_coalesced", generation=self._generation)
            return RefreshResult(outcome=RefreshOutcome.COALESCED, generation=self._generation)

        self._in_flight = True
        try:
            result = await self._refresh_once()
            while self._rerun_requested:
                self._rerun_requested = False
                result = await self._refresh_once()
        finally:
            self._in_flight = False
        return result

    async def _fetch(
        self, viewer: Optional[str]
    ) -> tuple[list[Campaign], list[ContributorRecord]]:
        if not viewer:
            return await self.ledger.list_campaigns(), []
        campaigns, records = await asyncio.gather(
            self.ledger.list_campaigns(),
            self.ledger.list_contributor_records(viewer),
        )
        return campaigns, records

    async def _refresh_once(self) -> RefreshResult:
        self._generation += 1
        generation = self._generation
        issued_viewer = self._viewer
        started = datetime.now()

        if not self._has_data:
            self._state = StoreState.LOADING

        try:
            campaigns, records = await asyncio.wait_for(
                self._fetch(issued_viewer), timeout=self.fetch_timeout
            )
        except Exception as exc:
            return self._record_failure(exc, generation, started)

        if generation != self._generation:
            logger.info(
                "sync_store.refresh_discarded",
                generation=generation,
                latest=self._generation,
            )
            return RefreshResult(
                outcome=RefreshOutcome.DISCARDED,
                generation=generation,
                duration_ms=_elapsed_ms(started),
            )

        return self._apply(campaigns, records, issued_viewer, generation, started)

    def _apply(
        self,
        campaigns: list[Campaign],
        records: list[ContributorRecord],
        viewer: Optional[str],
        generation: int,
        started: datetime,
    ) -> RefreshResult:
        # Compare against the viewer the fetch was issued for, not the current one
        viewer_changed = self._has_data and viewer != self._last_viewer
        previous = self._snapshot

        fresh = {campaign.id: campaign for campaign in campaigns}
        merged = merge_campaigns(previous.by_id, fresh, viewer_changed)
        record_map = {record.campaign: record for record in records}

        unchanged = (
            self._has_data
            and merged is previous.by_id
            and record_map == dict(previous.contributor_records)
            and viewer == previous.viewer
            and not previous.records_pending
        )

        self._has_data = True
        self._last_viewer = viewer
        self._last_failure = None
        self._state = StoreState.READY

        if unchanged:
            outcome = RefreshOutcome.UNCHANGED
        else:
            outcome = RefreshOutcome.APPLIED
            self._publish(
                CampaignSnapshot.build(
                    merged,
                    records,
                    viewer,
                    epoch=self._epoch,
                    generation=generation,
                )
            )

        result = RefreshResult(
            outcome=outcome,
            generation=generation,
            viewer_changed=viewer_changed,
            campaign_count=len(merged),
            duration_ms=_elapsed_ms(started),
        )
        logger.info(
            "sync_store.refreshed",
            outcome=outcome.value,
            campaigns=len(merged),
            records=len(record_map),
            viewer_changed=viewer_changed,
            generation=generation,
        )
        return result

    def _record_failure(self, exc: Exception, generation: int, started: datetime) -> RefreshResult:
        kind = classify_failure(exc)
        failure = FetchFailure(kind=kind, message=str(exc) or type(exc).__name__, generation=generation)
        self._last_failure = failure
        if self._state == StoreState.LOADING:
            self._state = StoreState.READY

        if kind.is_transient:
            logger.warning(
                "sync_store.refresh_failed",
                kind=kind.value,
                error=failure.message,
                generation=generation,
            )
        else:
            logger.error(
                "sync_store.refresh_failed",
                kind=kind.value,
                error=failure.message,
                error_type=type(exc).__name__,
                generation=generation,
                exc_info=exc,
            )

        if self.notifier is not None:
            self.notifier.notify(
                Notification(
                    level=NotificationLevel.WARNING if kind.is_transient else NotificationLevel.ERROR,
                    message=FAILURE_MESSAGES[kind],
                    description=failure.message,
                )
            )

        return RefreshResult(
            outcome=RefreshOutcome.FAILED,
            generation=generation,
            failure=failure,
            campaign_count=len(self._snapshot),
            duration_ms=_elapsed_ms(started),
        )

    # -------------------------------------------------------------------------
    # Deadline watch
    # -------------------------------------------------------------------------

    def check_deadlines(self) -> bool:
        """
        One deadline-watch tick.

        Looks for campaigns whose deadline fell in (previous tick, now],
        i.e. campaigns that were Active last tick and are Past now. If
        any exist, bumps the epoch and re-wraps the snapshot (same
        campaign objects) without contacting the ledger.

        Returns:
            True if the epoch was bumped
        """
        now = self.clock.now()
        previous_tick = self._last_tick
        self._last_tick = now

        crossed = [
            campaign.id
            for campaign in self._snapshot.campaigns
            if not campaign.cancelled
            and campaign.deadline is not None
            and previous_tick < campaign.deadline <= now
        ]
        if not crossed:
            return False

        self._epoch += 1
        logger.info("sync_store.deadline_crossed", campaign_ids=crossed, epoch=self._epoch)
        self._publish(dataclasses.replace(self._snapshot, epoch=self._epoch))
        return True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the refresh and deadline-watch timers. Must run inside an event loop."""
        if self.is_running:
            return
        self._last_tick = self.clock.now()
        self._refresh_task = asyncio.create_task(self._refresh_loop())
        self._deadline_task = asyncio.create_task(self._deadline_loop())
        logger.info(
            "sync_store.started",
            refresh_interval=self.refresh_interval,
            deadline_watch_interval=self.deadline_watch_interval,
        )

    async def stop(self) -> None:
        """Cancel both timers and any spawned refreshes."""
        tasks = [t for t in (self._refresh_task, self._deadline_task) if t is not None]
        tasks.extend(self._spawned)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._refresh_task = None
        self._deadline_task = None
        self._spawned.clear()
        self._in_flight = False
        self._rerun_requested = False
        logger.info("sync_store.stopped", epoch=self._epoch, generation=self._generation)

    async def __aenter__(self) -> "SyncStore":
        self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._spawned.add(task)
        task.add_done_callback(self._spawned.discard)
        return task

    async def _refresh_loop(self) -> None:
        try:
            while True:
                await self.refresh()
                await asyncio.sleep(self.refresh_interval)
        except asyncio.CancelledError:
            logger.debug("sync_store.refresh_loop_cancelled")
            raise

    async def _deadline_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.deadline_watch_interval)
                self.check_deadlines()
        except asyncio.CancelledError:
            logger.debug("sync_store.deadline_loop_cancelled")
            raise


def _elapsed_ms(started: datetime) -> int:
    return int((datetime.now() - started).total_seconds() * 1000)

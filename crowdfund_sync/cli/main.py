#!/usr/bin/env python3
"""
Crowdfund Sync CLI - inspect campaign status against a ledger.

Usage:
    crowdfund-sync snapshot --viewer <wallet> --status active
    crowdfund-sync snapshot --viewer <wallet> --relationship claimable --page 2
    crowdfund-sync watch --seconds 60 --viewer <wallet>
    crowdfund-sync errors

Examples:
    # Inspect the built-in demo ledger as a contributor
    crowdfund-sync snapshot --demo --viewer alice

    # Follow a live ledger gateway for a minute
    crowdfund-sync watch --ledger-url http://localhost:8899 --seconds 60
"""

import asyncio
import sys
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..clock import Clock, SystemClock
from ..config import get_settings
from ..engine import (
    RelationshipFilter,
    StatusFilter,
    compute_stats,
    count_by_phase,
    format_amount,
    paginate,
)
from ..infrastructure import ERROR_MESSAGES, HttpLedgerClient, InMemoryLedger, LogNotifier
from ..logging_config import configure_logging
from ..models import Campaign, ContributorRecord
from ..state import CampaignSnapshot, SyncStore

app = typer.Typer(
    name="crowdfund-sync",
    help="Campaign lifecycle status and ledger sync for the crowdfunding dashboard",
    add_completion=False,
)
console = Console()

RELATIONSHIPS = {
    "owned": RelationshipFilter.OWNED,
    "contributed": RelationshipFilter.CONTRIBUTED,
    "claimable": RelationshipFilter.CLAIMABLE,
    "refundable": RelationshipFilter.REFUNDABLE,
    "withdrawable": RelationshipFilter.WITHDRAWABLE,
}

STATUSES = {option.value.lower(): option for option in StatusFilter}


def parse_status(value: str) -> StatusFilter:
    try:
        return STATUSES[value.strip().lower()]
    except KeyError:
        raise typer.BadParameter(f"Unknown status '{value}'. Valid: {', '.join(STATUSES)}")


def parse_relationship(value: Optional[str]) -> Optional[RelationshipFilter]:
    if value is None:
        return None
    try:
        return RELATIONSHIPS[value.strip().lower()]
    except KeyError:
        raise typer.BadParameter(f"Unknown relationship '{value}'. Valid: {', '.join(RELATIONSHIPS)}")


def build_demo_ledger(clock: Clock) -> InMemoryLedger:
    """A small ledger with one campaign in each interesting state."""
    now = int(clock.now())
    ledger = InMemoryLedger(clock=clock)
    sol = 1_000_000_000

    ledger.add_campaign(Campaign(
        id="demo-active", name="Community Garden", owner="carol",
        goal=10 * sol, deadline=now + 86_400, total_donated=4 * sol, created_at=now - 3_600,
    ))
    ledger.add_campaign(Campaign(
        id="demo-failed", name="Robotics Club", owner="carol",
        goal=20 * sol, deadline=now - 3_600, total_donated=5 * sol, created_at=now - 7_200,
    ))
    ledger.add_campaign(Campaign(
        id="demo-funded", name="Library Books", owner="alice",
        goal=3 * sol, deadline=now - 60, total_donated=4 * sol, created_at=now - 10_800,
    ))
    ledger.add_campaign(Campaign(
        id="demo-cancelled", name="Food Truck", owner="dave",
        goal=8 * sol, deadline=now + 3_600, total_donated=2 * sol, created_at=now - 14_400,
        cancelled=True,
    ))
    ledger.add_record(ContributorRecord(
        id="rec-1", campaign="demo-failed", contributor="alice", amount_donated=2 * sol,
    ))
    ledger.add_record(ContributorRecord(
        id="rec-2", campaign="demo-cancelled", contributor="alice", amount_donated=sol,
    ))
    return ledger


def _render_snapshot(
    snapshot: CampaignSnapshot,
    now: float,
    status_filter: StatusFilter,
    relationship: Optional[RelationshipFilter],
    page: int,
) -> None:
    settings = get_settings()
    symbol = settings.currency_symbol
    decimals = settings.currency_decimals

    stats = compute_stats(snapshot.campaigns, now)
    counts = count_by_phase(snapshot.campaigns, now)
    console.print(Panel(
        f"Campaigns: {stats.total_campaigns}   "
        f"Raised: {format_amount(stats.total_raised, decimals)} {symbol}   "
        f"Active: {stats.active_campaigns}   "
        f"Success rate: {stats.success_rate}%\n"
        + "   ".join(f"{option.value}: {count}" for option, count in counts.items()),
        title=f"Viewer: {snapshot.viewer or 'not connected'}",
    ))

    matching = snapshot.filter(now, status_filter=status_filter, relationship=relationship)
    current = paginate(matching, page=page, per_page=settings.page_size)

    table = Table(title=f"Page {current.page} of {current.total_pages} - {current.total_items} campaigns")
    table.add_column("Campaign", style="cyan")
    table.add_column("Phase")
    table.add_column("Action")
    table.add_column("Raised / Goal", justify="right")
    table.add_column("Claimable", justify="right")
    table.add_column("Deadline")

    for campaign in current.items:
        status = snapshot.status_of(campaign, now)
        if status is None:
            action, claimable, phase = "[dim]connect wallet[/dim]", "-", "-"
        else:
            style = "green" if status.enabled else "dim"
            action = f"[{style}]{status.action.value}[/{style}]"
            claimable = format_amount(status.amount_claimable, decimals)
            phase = status.phase.value
        deadline = (
            datetime.fromtimestamp(campaign.deadline).isoformat(timespec="minutes")
            if campaign.deadline is not None else "none"
        )
        table.add_row(
            campaign.name,
            phase,
            action,
            f"{format_amount(campaign.total_donated, decimals)} / {format_amount(campaign.goal, decimals)}",
            claimable,
            deadline,
        )

    console.print(table)


@app.command()
def snapshot(
    viewer: Optional[str] = typer.Option(None, help="Viewer wallet identity"),
    status: str = typer.Option("all", help="Phase filter: all, active, past, cancelled"),
    relationship: Optional[str] = typer.Option(
        None, help="Relationship filter: owned, contributed, claimable, refundable, withdrawable"
    ),
    page: int = typer.Option(1, help="Page number"),
    ledger_url: Optional[str] = typer.Option(None, help="Ledger gateway URL (default from settings)"),
    demo: bool = typer.Option(False, "--demo", help="Use the built-in demo ledger"),
):
    """Refresh once and print campaigns with their status."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json, file=sys.stderr)
    status_filter = parse_status(status)
    relationship_filter = parse_relationship(relationship)
    clock = SystemClock()

    async def _run() -> tuple[CampaignSnapshot, bool]:
        if demo:
            store = SyncStore.from_settings(build_demo_ledger(clock), settings, clock=clock, viewer=viewer)
            result = await store.refresh()
            return store.snapshot, result.is_success
        async with HttpLedgerClient(ledger_url or settings.ledger_url, timeout=settings.fetch_timeout_seconds) as ledger:
            store = SyncStore.from_settings(ledger, settings, clock=clock, viewer=viewer)
            result = await store.refresh()
            if not result.is_success and result.failure:
                console.print(f"[red]Refresh failed ({result.failure.kind.value}): {result.failure.message}[/red]")
            return store.snapshot, result.is_success

    current, ok = asyncio.run(_run())
    _render_snapshot(current, clock.now(), status_filter, relationship_filter, page)
    if not ok:
        raise typer.Exit(1)


@app.command()
def watch(
    seconds: float = typer.Option(60.0, help="How long to run"),
    viewer: Optional[str] = typer.Option(None, help="Viewer wallet identity"),
    ledger_url: Optional[str] = typer.Option(None, help="Ledger gateway URL (default from settings)"),
    demo: bool = typer.Option(False, "--demo", help="Use the built-in demo ledger"),
):
    """Run the refresh and deadline-watch timers and log what happens."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    clock = SystemClock()

    async def _run(ledger) -> SyncStore:
        store = SyncStore.from_settings(ledger, settings, clock=clock, notifier=LogNotifier(), viewer=viewer)
        store.subscribe(lambda snap: console.print(
            f"[bold]snapshot[/bold] campaigns={len(snap)} epoch={snap.epoch} generation={snap.generation}"
        ))
        async with store:
            await asyncio.sleep(seconds)
        return store

    async def _main() -> SyncStore:
        if demo:
            return await _run(build_demo_ledger(clock))
        async with HttpLedgerClient(ledger_url or settings.ledger_url, timeout=settings.fetch_timeout_seconds) as ledger:
            return await _run(ledger)

    store = asyncio.run(_main())
    console.print(
        f"[green]Stopped[/green] state={store.state.value} epoch={store.epoch} generation={store.generation}"
    )


@app.command()
def errors():
    """Print the ledger error code table."""
    table = Table(title="Ledger error codes")
    table.add_column("Code", style="cyan")
    table.add_column("Message")
    for code, message in ERROR_MESSAGES.items():
        table.add_row(code, message)
    console.print(table)


if __name__ == "__main__":
    app()

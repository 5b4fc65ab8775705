"""
Ledger adapters.

The crowdfunding program is the source of truth for campaigns and
contributor records. This module defines the read/write surface the
dashboard needs from it and two implementations:

- HttpLedgerClient: JSON-RPC 2.0 over HTTP via httpx
- InMemoryLedger: in-process ledger enforcing the program's rules,
  used by tests and the CLI demo
"""

import asyncio
import uuid
from typing import Any, Optional, Protocol

import httpx
import structlog

from ..clock import Clock, SystemClock
from ..models import Campaign, ContributorRecord
from .errors import (
    ACCESS_STATUS_CODES,
    LedgerAccessError,
    LedgerConnectionError,
    LedgerError,
    LedgerRejection,
)

logger = structlog.get_logger()

U64_MAX = 2**64 - 1


class LedgerReader(Protocol):
    """Read-side queries the sync store depends on."""

    async def list_campaigns(self) -> list[Campaign]:
        ...

    async def list_contributor_records(self, contributor: str) -> list[ContributorRecord]:
        """Records for a single contributor only, never the whole table."""
        ...


class LedgerWriter(Protocol):
    """Transactions the dashboard can submit. Each returns a signature."""

    async def donate(self, campaign_id: str, contributor: str, amount: int) -> str:
        ...

    async def cancel(self, campaign_id: str, owner: str) -> str:
        ...

    async def withdraw_by_owner(self, campaign_id: str, owner: str) -> str:
        ...

    async def withdraw_if_failed(self, campaign_id: str, contributor: str) -> str:
        ...

    async def withdraw_if_cancelled(self, campaign_id: str, contributor: str) -> str:
        ...

    async def create_campaign(
        self,
        owner: str,
        name: str,
        description: str,
        goal: int,
        deadline: Optional[int],
    ) -> str:
        ...


# -------------------------------------------------------------------------
# HTTP JSON-RPC client
# -------------------------------------------------------------------------


class HttpLedgerClient:
    """
    JSON-RPC 2.0 client for a ledger gateway.

    Usage:
        async with HttpLedgerClient("http://localhost:8899") as ledger:
            campaigns = await ledger.list_campaigns()

    Transport failures raise LedgerConnectionError, 401/403/429 raise
    LedgerAccessError and program errors raise LedgerRejection.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8899",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.jsonrpc_url = f"{self.base_url}/rpc"
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("HttpLedgerClient not connected. Call connect() first.")
        return self._client

    async def connect(self) -> "HttpLedgerClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        logger.info("ledger_client.connected", url=self.base_url)
        return self

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("ledger_client.disconnected")

    async def __aenter__(self) -> "HttpLedgerClient":
        return await self.connect()

    async def __aexit__(self, *args) -> None:
        await self.disconnect()

    async def _call(self, method: str, params: Optional[dict] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": str(uuid.uuid4()),
        }
        try:
            response = await self.client.post(self.jsonrpc_url, json=payload)
        except httpx.TransportError as exc:
            raise LedgerConnectionError(f"{method}: {exc}") from exc

        if response.status_code in ACCESS_STATUS_CODES:
            raise LedgerAccessError(
                f"{method}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if response.is_error:
            raise LedgerError(f"{method}: HTTP {response.status_code}")

        body = response.json()
        if "error" in body:
            raise self._parse_error(method, body["error"])
        return body.get("result")

    @staticmethod
    def _parse_error(method: str, error: dict) -> LedgerError:
        data = error.get("data") or {}
        code = data.get("code") if isinstance(data, dict) else None
        if code is None and isinstance(error.get("code"), str):
            code = error["code"]
        if code:
            return LedgerRejection(code)
        return LedgerError(f"{method}: {error.get('message', 'Unknown error')}")

    # Reads

    async def list_campaigns(self) -> list[Campaign]:
        result = await self._call("listCampaigns")
        return [Campaign.model_validate(item) for item in result or []]

    async def list_contributor_records(self, contributor: str) -> list[ContributorRecord]:
        result = await self._call(
            "listContributorRecords", {"filter": {"byContributor": contributor}}
        )
        return [ContributorRecord.model_validate(item) for item in result or []]

    # Writes

    async def donate(self, campaign_id: str, contributor: str, amount: int) -> str:
        return await self._call(
            "donate", {"campaign": campaign_id, "contributor": contributor, "amount": amount}
        )

    async def cancel(self, campaign_id: str, owner: str) -> str:
        return await self._call("cancel", {"campaign": campaign_id, "owner": owner})

    async def withdraw_by_owner(self, campaign_id: str, owner: str) -> str:
        return await self._call("withdrawByOwner", {"campaign": campaign_id, "owner": owner})

    async def withdraw_if_failed(self, campaign_id: str, contributor: str) -> str:
        return await self._call(
            "withdrawIfFailed", {"campaign": campaign_id, "contributor": contributor}
        )

    async def withdraw_if_cancelled(self, campaign_id: str, contributor: str) -> str:
        return await self._call(
            "withdrawIfCancelled", {"campaign": campaign_id, "contributor": contributor}
        )

    async def create_campaign(
        self,
        owner: str,
        name: str,
        description: str,
        goal: int,
        deadline: Optional[int],
    ) -> str:
        return await self._call(
            "createCampaign",
            {
                "owner": owner,
                "name": name,
                "description": description,
                "goal": goal,
                "deadline": deadline,
            },
        )


# -------------------------------------------------------------------------
# In-memory ledger
# -------------------------------------------------------------------------


class InMemoryLedger:
    """
    In-process ledger with the crowdfunding program's rules.

    Keeps one contributor record per (campaign, contributor) and counts
    read calls so callers can assert when no fetch happened. Reads return
    fresh copies, like a network ledger would.
    """

    def __init__(self, clock: Optional[Clock] = None, read_delay: float = 0.0):
        self.clock = clock or SystemClock()
        self.read_delay = read_delay
        self._campaigns: dict[str, Campaign] = {}
        self._records: dict[tuple[str, str], ContributorRecord] = {}
        self._tx_counter = 0
        self._fail_next: list[BaseException] = []

        self.read_calls = 0
        self.campaign_queries = 0
        self.record_queries: list[str] = []

    # Test hooks

    def fail_next(self, exc: BaseException) -> None:
        """Raise exc from the next read query."""
        self._fail_next.append(exc)

    def add_campaign(self, campaign: Campaign) -> Campaign:
        self._campaigns[campaign.id] = campaign
        return campaign

    def add_record(self, record: ContributorRecord) -> ContributorRecord:
        self._records[(record.campaign, record.contributor)] = record
        return record

    def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            raise LedgerRejection("AccountNotInitialized")
        return campaign

    def get_record(self, campaign_id: str, contributor: str) -> Optional[ContributorRecord]:
        return self._records.get((campaign_id, contributor))

    # Reads

    async def _before_read(self) -> None:
        self.read_calls += 1
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self._fail_next:
            raise self._fail_next.pop(0)

    async def list_campaigns(self) -> list[Campaign]:
        self.campaign_queries += 1
        await self._before_read()
        return [campaign.model_copy() for campaign in self._campaigns.values()]

    async def list_contributor_records(self, contributor: str) -> list[ContributorRecord]:
        self.record_queries.append(contributor)
        await self._before_read()
        return [r.model_copy() for r in self._records.values() if r.contributor == contributor]

    # Writes

    def _next_tx(self) -> str:
        self._tx_counter += 1
        return f"tx_{self._tx_counter:06d}"

    def _has_ended(self, campaign: Campaign) -> bool:
        return campaign.deadline is not None and self.clock.now() >= campaign.deadline

    def _update(self, campaign: Campaign, **changes) -> Campaign:
        updated = campaign.model_copy(update=changes)
        self._campaigns[campaign.id] = updated
        return updated

    async def create_campaign(
        self,
        owner: str,
        name: str,
        description: str,
        goal: int,
        deadline: Optional[int],
    ) -> str:
        if goal < 0 or goal > U64_MAX:
            raise LedgerRejection("Overflow")
        campaign_id = f"campaign_{uuid.uuid4().hex[:12]}"
        self._campaigns[campaign_id] = Campaign(
            id=campaign_id,
            name=name,
            description=description,
            owner=owner,
            goal=goal,
            deadline=deadline,
            treasury=f"treasury_{campaign_id}",
            created_at=int(self.clock.now()),
        )
        logger.info("in_memory_ledger.campaign_created", campaign_id=campaign_id, owner=owner)
        return self._next_tx()

    async def donate(self, campaign_id: str, contributor: str, amount: int) -> str:
        if amount <= 0:
            raise ValueError("Donation amount must be positive")
        campaign = self.get_campaign(campaign_id)
        if campaign.cancelled:
            raise LedgerRejection("CampaignCancelled")
        if self._has_ended(campaign):
            raise LedgerRejection("CampaignEnded")
        if campaign.total_donated + amount > U64_MAX:
            raise LedgerRejection("Overflow")

        self._update(campaign, total_donated=campaign.total_donated + amount)
        record = self.get_record(campaign_id, contributor)
        if record is None:
            record = ContributorRecord(
                id=f"record_{campaign_id}_{contributor}",
                campaign=campaign_id,
                contributor=contributor,
                amount_donated=amount,
            )
        else:
            record = record.model_copy(update={"amount_donated": record.amount_donated + amount})
        self.add_record(record)
        return self._next_tx()

    async def cancel(self, campaign_id: str, owner: str) -> str:
        campaign = self.get_campaign(campaign_id)
        if campaign.owner != owner:
            raise LedgerRejection("NotOwner")
        if campaign.cancelled:
            raise LedgerRejection("CampaignAlreadyCancelled")
        if self._has_ended(campaign):
            raise LedgerRejection("CampaignEnded")
        self._update(campaign, cancelled=True)
        return self._next_tx()

    async def withdraw_by_owner(self, campaign_id: str, owner: str) -> str:
        campaign = self.get_campaign(campaign_id)
        if campaign.owner != owner:
            raise LedgerRejection("NotOwner")
        if campaign.cancelled:
            raise LedgerRejection("CampaignCancelled")
        if not self._has_ended(campaign):
            raise LedgerRejection("CampaignStillActive")
        if campaign.total_donated < campaign.goal:
            raise LedgerRejection("CampaignGoalNotReached")
        if campaign.owner_withdrawn:
            raise LedgerRejection("AlreadyWithdrawnByOwner")
        self._update(campaign, owner_withdrawn=True)
        return self._next_tx()

    def _refund(self, campaign_id: str, contributor: str) -> str:
        record = self.get_record(campaign_id, contributor)
        if record is None or record.amount_donated == 0:
            raise LedgerRejection("NothingToWithdraw")
        if record.withdrawn:
            raise LedgerRejection("AlreadyWithdrawn")
        self.add_record(record.model_copy(update={"withdrawn": True}))
        return self._next_tx()

    async def withdraw_if_failed(self, campaign_id: str, contributor: str) -> str:
        campaign = self.get_campaign(campaign_id)
        if campaign.cancelled:
            raise LedgerRejection("CampaignCancelled")
        if not self._has_ended(campaign):
            raise LedgerRejection("CampaignStillActive")
        if campaign.total_donated >= campaign.goal:
            raise LedgerRejection("CampaignGoalReached")
        return self._refund(campaign_id, contributor)

    async def withdraw_if_cancelled(self, campaign_id: str, contributor: str) -> str:
        campaign = self.get_campaign(campaign_id)
        if not campaign.cancelled:
            raise LedgerRejection("CampaignNotCancelled")
        return self._refund(campaign_id, contributor)

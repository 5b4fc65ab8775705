"""
Ledger record schemas.

Campaign and ContributorRecord are immutable snapshots of accounts owned
by the crowdfunding program. Amounts are unsigned integers in the
ledger's smallest currency unit; timestamps are unix seconds.

The ledger serializes fields in camelCase (totalAmountDonated,
withdrawnByOwner, ...); both that form and the snake_case field names
are accepted.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Campaign fields the program mutates. Owner and treasury are fixed at
# creation and can't differ between two fetches of the same account.
LEDGER_SCALAR_FIELDS = (
    "name",
    "description",
    "goal",
    "deadline",
    "total_donated",
    "owner_withdrawn",
    "created_at",
    "cancelled",
)


class Campaign(BaseModel):
    """A funding request as stored on the ledger."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="publicKey")
    name: str
    description: str = ""
    owner: str
    goal: int = Field(ge=0)
    deadline: Optional[int] = None  # None = open-ended
    total_donated: int = Field(default=0, ge=0, alias="totalAmountDonated")
    owner_withdrawn: bool = Field(default=False, alias="withdrawnByOwner")
    treasury: str = ""
    created_at: int = Field(default=0, alias="createdAt")
    cancelled: bool = Field(default=False, alias="isCancelled")

    def ledger_fields(self) -> tuple:
        """Values of the ledger-mutable scalar fields, in a fixed order."""
        return tuple(getattr(self, name) for name in LEDGER_SCALAR_FIELDS)

    def same_ledger_state(self, other: "Campaign") -> bool:
        return self.ledger_fields() == other.ledger_fields()


class ContributorRecord(BaseModel):
    """How much one identity donated to one campaign."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="publicKey")
    campaign: str
    contributor: str
    amount_donated: int = Field(default=0, ge=0, alias="amountDonated")
    withdrawn: bool = False

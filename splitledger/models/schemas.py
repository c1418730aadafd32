import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Op = Literal["add", "subtract"]
Direction = Literal["owes_you", "you_owe"]


def _uuid() -> str:
    return str(uuid.uuid4())


class Account(BaseModel):
    """Pairwise balance between two parties.

    balance > 0 means related owes owner, balance < 0 means owner owes related.
    """

    id: str = Field(default_factory=_uuid)
    owner_id: str
    related_id: str
    balance: int = 0
    currency: str = "USD"
    currency_symbol: str = "$"
    created_at: datetime = Field(default_factory=datetime.now)

    def counterparty(self, user_id: str) -> str:
        return self.related_id if user_id == self.owner_id else self.owner_id


class Transaction(BaseModel):
    id: str = Field(default_factory=_uuid)
    account_id: str
    op: Op
    user_id: str
    amount: int
    request_id: str | None = None
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def delta(self) -> int:
        return self.amount if self.op == "add" else -self.amount


class Request(BaseModel):
    """One split event fanned out into a transaction per related party."""

    id: str = Field(default_factory=_uuid)
    created_at: datetime = Field(default_factory=datetime.now)
    created_by_id: str
    owner_id: str
    related_ids: list[str]
    amount: float
    currency: str = "USD"
    transaction_ids: list[str] = []
    description: str = ""
    receipt_ids: list[str] = []


class RenderedEntry(BaseModel):
    transaction_id: str
    account_id: str
    user_id: str
    op: Op
    amount: int
    request_id: str | None = None
    date: datetime
    description: str = ""
    receipt_ids: list[str] = []


class StatusEntry(BaseModel):
    account_id: str
    counterparty_id: str
    direction: Direction
    amount: int
    currency: str
    currency_symbol: str


class StatusSummary(BaseModel):
    user_id: str
    entries: list[StatusEntry] = []
    total: int = 0


class RateTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: str
    rates: dict[str, float]


# -- API bodies --


class CreateAccountRequest(BaseModel):
    owner_id: str
    related_id: str


class ApplyTransactionRequest(BaseModel):
    user_id: str
    op: Op
    amount: float
    request_id: str | None = None
    description: str = ""


class SettleAccountRequest(BaseModel):
    user_id: str


class CreateSplitRequest(BaseModel):
    creator_id: str
    owner_id: str | None = None
    related_ids: list[str]
    amount: float
    currency: str = "USD"
    description: str = ""


class UpdateRequestDescription(BaseModel):
    description: str


class AttachReceiptRequest(BaseModel):
    receipt_id: str


class ConversionResult(BaseModel):
    from_code: str
    to_code: str
    amount: float
    converted: float

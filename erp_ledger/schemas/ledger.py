"""
Pydantic schemas for ledger operations.

These define the contract for everything that calls the posting
engine: what comes in, what goes out. They are separate from the
database models because the call shape and the storage shape
differ (a line may name its account by code, storage only keeps
the resolved id).
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from erp_ledger.models.enums import AccountCategory, JournalType


# --- Request Schemas ---

class AccountCreate(BaseModel):
    """Request to add an account to a tenant's chart."""
    code: str = Field(min_length=1, max_length=20, pattern=r"^[1-9][0-9]*$")
    name: str = Field(min_length=1, max_length=255)
    category: AccountCategory


class LedgerLineCreate(BaseModel):
    """
    A single debit or credit movement.

    The account is named either by id (a counterparty's designated
    account) or by code; a code is matched exactly first, then as
    a prefix.
    """
    account_id: int | None = None
    account_code: str | None = Field(default=None, min_length=1, max_length=20)
    debit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    label: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_account_and_amount(self) -> "LedgerLineCreate":
        if self.account_id is None and self.account_code is None:
            raise ValueError("line needs an account_id or an account_code")
        if self.debit == 0 and self.credit == 0:
            raise ValueError("line must carry a debit or a credit amount")
        return self


class PostEntryRequest(BaseModel):
    """A complete entry: header fields plus the lines that must balance."""
    journal_code: str = Field(min_length=2, max_length=3)
    journal_name: str | None = Field(default=None, max_length=100)
    journal_type: JournalType | None = None
    entry_date: date
    label: str = Field(min_length=1)
    external_ref: str | None = Field(default=None, max_length=100)
    source_type: str | None = Field(default=None, max_length=50)
    lines: list[LedgerLineCreate] = Field(min_length=2)

    @field_validator("journal_code")
    @classmethod
    def journal_code_upper(cls, v: str) -> str:
        return v.upper()

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: int
    tenant_id: int
    code: str
    name: str
    class_digit: int
    category: AccountCategory
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class JournalResponse(BaseModel):
    id: int
    code: str
    name: str
    journal_type: JournalType
    is_active: bool

    model_config = {"from_attributes": True}


class LedgerLineResponse(BaseModel):
    id: int
    account_id: int
    debit: Decimal
    credit: Decimal
    label: str | None

    model_config = {"from_attributes": True}


class LedgerEntryResponse(BaseModel):
    id: int
    tenant_id: int
    journal: JournalResponse
    entry_number: str
    entry_date: date
    label: str
    external_ref: str | None
    source_type: str | None
    is_validated: bool
    validated_at: datetime | None
    total_debit: Decimal
    total_credit: Decimal
    lines: list[LedgerLineResponse]
    created_at: datetime

    model_config = {"from_attributes": True}


class ChartInitResponse(BaseModel):
    """Outcome of seeding a tenant's chart of accounts."""
    accounts_created: int
    accounts_existing: int
    journals_created: int
    total_accounts: int

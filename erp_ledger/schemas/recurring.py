"""
Pydantic schemas for recurring entry templates.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from erp_ledger.models.enums import (
    EntrySide,
    GenerationStatus,
    RecurrenceFrequency,
)


class TemplateLine(BaseModel):
    """
    One line of a recurring template.

    amount is a fixed value; share is a fraction of the template's
    reference amount, resolved at fire time. Exactly one is set.
    """
    account_id: int | None = None
    account_code: str | None = Field(default=None, min_length=1, max_length=20)
    side: EntrySide
    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    share: Decimal | None = Field(default=None, gt=0, le=1)
    label: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_line(self) -> "TemplateLine":
        if self.account_id is None and self.account_code is None:
            raise ValueError("template line needs an account_id or an account_code")
        if (self.amount is None) == (self.share is None):
            raise ValueError("template line needs exactly one of amount or share")
        return self


class RecurringTemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    journal_code: str = Field(min_length=2, max_length=3)
    frequency: RecurrenceFrequency
    day_of_month: int = Field(default=1, ge=1, le=31)
    start_date: date
    end_date: date | None = None
    reference_amount: Decimal | None = Field(default=None, gt=0)
    lines: list[TemplateLine] = Field(min_length=2)

    @model_validator(mode="after")
    def check_window(self) -> "RecurringTemplateCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringTemplateUpdate(BaseModel):
    """Partial update; unset fields are left untouched."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    frequency: RecurrenceFrequency | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    start_date: date | None = None
    end_date: date | None = None
    reference_amount: Decimal | None = Field(default=None, gt=0)
    lines: list[TemplateLine] | None = Field(default=None, min_length=2)


class FireRequest(BaseModel):
    posting_date: date | None = None
    reference_amount: Decimal | None = Field(default=None, gt=0)


class RecurringTemplateResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    description: str | None
    journal_id: int
    frequency: RecurrenceFrequency
    day_of_month: int
    start_date: date
    end_date: date | None
    reference_amount: Decimal | None
    line_template: list[dict]
    is_active: bool
    last_generation_date: date | None
    next_generation_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GenerationHistoryResponse(BaseModel):
    id: int
    template_id: int
    entry_id: int | None
    posting_date: date
    target_period: str
    status: GenerationStatus
    error_message: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class FireDueResponse(BaseModel):
    generated: list[int]
    failed: dict[int, str]

"""
Recurring entry template.

A stored line set plus a recurrence policy. The scheduler reads
line_template on every fire, so editing a template changes what
the next generated entry looks like but never touches entries
already generated.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Integer, SmallInteger,
    Numeric, Text, JSON, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_ledger.models.base import Base
from erp_ledger.models.enums import RecurrenceFrequency


class RecurringEntryTemplate(Base):
    __tablename__ = "recurring_entry_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    journal_id: Mapped[int] = mapped_column(
        ForeignKey("journals.id"), nullable=False
    )
    frequency: Mapped[RecurrenceFrequency] = mapped_column(
        SAEnum(RecurrenceFrequency, name="recurrence_frequency_enum"),
        nullable=False,
    )
    day_of_month: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=1
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reference_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(15, 2), nullable=True
    )
    # List of {"account_id"|"account_code", "side", "amount"|"share", "label"}
    line_template: Mapped[list] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    last_generation_date: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )
    next_generation_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    journal: Mapped["Journal"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<RecurringEntryTemplate {self.name} "
            f"{self.frequency.value} next={self.next_generation_date}>"
        )

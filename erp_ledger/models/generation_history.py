"""
Generation history model.

Append-only record of every attempt to fire a recurring template.
You never update or delete a history row.

generated_period is only filled on success. The unique constraint
on (template_id, generated_period) is what stops a template from
generating two entries for the same period, while NULLs on failed
rows never collide with each other.
"""

from datetime import date, datetime

from sqlalchemy import (
    String, Date, DateTime, Integer, Text,
    ForeignKey, Enum as SAEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from erp_ledger.models.base import Base
from erp_ledger.models.enums import GenerationStatus


class GenerationHistory(Base):
    __tablename__ = "generation_history"
    __table_args__ = (
        UniqueConstraint(
            "template_id", "generated_period",
            name="uq_generation_history_period",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    template_id: Mapped[int] = mapped_column(
        ForeignKey("recurring_entry_templates.id"), nullable=False, index=True
    )
    entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("ledger_entries.id"), nullable=True
    )
    posting_date: Mapped[date] = mapped_column(Date, nullable=False)
    target_period: Mapped[str] = mapped_column(String(10), nullable=False)
    generated_period: Mapped[str | None] = mapped_column(
        String(10), nullable=True
    )
    status: Mapped[GenerationStatus] = mapped_column(
        SAEnum(GenerationStatus, name="generation_status_enum"),
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

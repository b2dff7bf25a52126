"""
Ledger entry and ledger line models.

An entry is one balanced accounting transaction; its lines are
the individual debit and credit movements. Lines are written
together with their header and never updated afterwards.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Integer, Numeric, Text,
    ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_ledger.models.base import Base


class LedgerEntry(Base):
    """
    Header of a posted entry.

    total_debit and total_credit are stored for report builders;
    the LedgerPoster guarantees they agree within the tolerance
    before anything is flushed.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "entry_number", name="uq_ledger_entries_number"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    journal_id: Mapped[int] = mapped_column(
        ForeignKey("journals.id"), nullable=False, index=True
    )
    entry_number: Mapped[str] = mapped_column(String(40), nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    external_ref: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    source_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    is_validated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    journal: Mapped["Journal"] = relationship()
    lines: Mapped[list["LedgerLine"]] = relationship(
        back_populates="entry",
        order_by="LedgerLine.id",
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.entry_number} "
            f"{self.total_debit}/{self.total_credit}>"
        )


class LedgerLine(Base):
    """One debit or credit movement against one account."""

    __tablename__ = "ledger_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("ledger_entries.id"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    debit: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    label: Mapped[str | None] = mapped_column(Text, nullable=True)

    entry: Mapped["LedgerEntry"] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return f"<LedgerLine D={self.debit} C={self.credit}>"

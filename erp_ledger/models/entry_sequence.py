"""
Entry sequence counter.

One row per (tenant, journal code, year). The row is locked and
incremented for every entry number handed out, so two concurrent
postings can never read the same value.
"""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from erp_ledger.models.base import Base


class EntrySequence(Base):
    __tablename__ = "entry_sequences"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "journal_code", "year",
            name="uq_entry_sequences_scope",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    journal_code: Mapped[str] = mapped_column(String(3), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    current_value: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    def __repr__(self) -> str:
        return (
            f"<EntrySequence {self.journal_code}-{self.year} "
            f"= {self.current_value}>"
        )

"""
Journal model.

A journal groups entries by origin (sales, purchases, bank...).
Journals are created lazily the first time a tenant posts to one
and are never renamed by the posting engine.
"""

from datetime import datetime

from sqlalchemy import (
    String, Boolean, DateTime, Integer,
    Enum as SAEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from erp_ledger.models.base import Base
from erp_ledger.models.enums import JournalType


class Journal(Base):
    __tablename__ = "journals"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_journals_tenant_code"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(3), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    journal_type: Mapped[JournalType] = mapped_column(
        SAEnum(JournalType, name="journal_type_enum"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Journal {self.code} ({self.journal_type.value})>"

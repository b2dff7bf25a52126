"""
Posting issue model.

Remediation queue for business events whose accounting impact
could not be recorded (usually a chart of accounts missing a
required account). Rows are appended by the event posting rules
and only ever flipped to resolved by an operator.
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from erp_ledger.models.base import Base


class PostingIssue(Base):
    __tablename__ = "posting_issues"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    document_ref: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    is_resolved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

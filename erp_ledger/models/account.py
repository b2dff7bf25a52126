"""
Account model (chart of accounts).

Accounts are tenant-scoped. The code is hierarchical: its first
digit is the account class, and longer codes refine shorter ones
("411" clients, "4111" clients - sales of goods).
"""

from datetime import datetime

from sqlalchemy import (
    String, Boolean, DateTime, Integer, SmallInteger,
    Enum as SAEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from erp_ledger.models.base import Base
from erp_ledger.models.enums import AccountCategory


class Account(Base):
    """
    A single account in a tenant's chart of accounts.

    Once created, an account is never deleted, only
    deactivated via is_active=False.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_accounts_tenant_code"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    class_digit: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    category: Mapped[AccountCategory] = mapped_column(
        SAEnum(AccountCategory, name="account_category_enum"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Account {self.code} {self.name} (tenant {self.tenant_id})>"

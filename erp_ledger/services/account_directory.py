"""
Account directory: resolves account references for a tenant.

Posting rules name accounts by class-level code ("411", "445")
and accept whichever seeded account matches. Resolution order is
explicit so two calls with the same chart always pick the same
account:

1. an active account whose code equals the requested code;
2. otherwise the active account with the lowest code that starts
   with the requested code.

Every query is filtered by tenant_id.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_ledger.exceptions import UnresolvedAccountError
from erp_ledger.models.account import Account


class AccountDirectory:
    """Read-only lookups over a tenant's chart of accounts."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_by_code(self, tenant_id: int, code_prefix: str) -> Account | None:
        exact = self.db.execute(
            select(Account).where(
                Account.tenant_id == tenant_id,
                Account.code == code_prefix,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()
        if exact is not None:
            return exact

        return self.db.execute(
            select(Account)
            .where(
                Account.tenant_id == tenant_id,
                Account.code.startswith(code_prefix, autoescape=True),
                Account.is_active.is_(True),
            )
            .order_by(Account.code.asc())
            .limit(1)
        ).scalar_one_or_none()

    def resolve_by_id(self, tenant_id: int, account_id: int) -> Account | None:
        """Exact lookup. An id owned by another tenant resolves to None."""
        return self.db.execute(
            select(Account).where(
                Account.tenant_id == tenant_id,
                Account.id == account_id,
            )
        ).scalar_one_or_none()

    def require_by_code(self, tenant_id: int, code_prefix: str) -> Account:
        account = self.resolve_by_code(tenant_id, code_prefix)
        if account is None:
            raise UnresolvedAccountError(tenant_id, code_prefix)
        return account

    def require_by_id(self, tenant_id: int, account_id: int) -> Account:
        account = self.resolve_by_id(tenant_id, account_id)
        if account is None:
            raise UnresolvedAccountError(tenant_id, account_id)
        return account

    def list_accounts(self, tenant_id: int, class_digit: int | None = None) -> list[Account]:
        query = select(Account).where(Account.tenant_id == tenant_id)
        if class_digit is not None:
            query = query.where(Account.class_digit == class_digit)
        accounts = self.db.execute(query.order_by(Account.code)).scalars().all()
        return list(accounts)

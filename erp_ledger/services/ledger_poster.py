"""
Ledger poster: the only writer of ledger entries.

This service enforces the fundamental rules:
1. Every entry must balance (debits = credits within the tolerance)
2. Every line's account must resolve, for this tenant, and be active
3. Header and lines are written together or not at all
4. Lines are never updated after posting

Posting rules, the recurring scheduler and payroll all come through
post(). The caller controls the outer transaction and commits after
post() returns.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from erp_ledger.config import Settings, get_settings
from erp_ledger.exceptions import (
    AlreadyValidatedError,
    BalanceError,
    EntryNotFoundError,
    InactiveAccountError,
    UnresolvedAccountError,
)
from erp_ledger.models.account import Account
from erp_ledger.models.journal import Journal
from erp_ledger.models.ledger_entry import LedgerEntry, LedgerLine
from erp_ledger.schemas.ledger import LedgerLineCreate, PostEntryRequest
from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.entry_sequencer import EntrySequencer
from erp_ledger.services.journal_directory import JournalDirectory

logger = logging.getLogger(__name__)


def ensure_balanced(
    total_debit: Decimal, total_credit: Decimal, tolerance: Decimal
) -> None:
    """Raise BalanceError when the gap exceeds the tolerance."""
    if abs(total_debit - total_credit) > tolerance:
        raise BalanceError(total_debit, total_credit)


class LedgerPoster:

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.accounts = AccountDirectory(db)
        self.journals = JournalDirectory(db)
        self.sequencer = EntrySequencer(db, self.settings)

    def _resolve_line_account(
        self, tenant_id: int, line: LedgerLineCreate
    ) -> Account:
        """
        Resolve a line's account, preferring the explicit id.

        Fails the whole posting rather than dropping the line: a
        dropped line would leave the persisted entry unbalanced.
        """
        if line.account_id is not None:
            account = self.accounts.require_by_id(tenant_id, line.account_id)
        else:
            account = self.accounts.require_by_code(tenant_id, line.account_code)

        if not account.is_active:
            raise InactiveAccountError(account.code)
        return account

    def post(self, tenant_id: int, request: PostEntryRequest) -> LedgerEntry:
        """
        Post a balanced entry as a single unit.

        Checks run before anything is written:
        - total debit equals total credit within the tolerance
        - every line's account exists for the tenant and is active

        The journal, the entry number, the header and every line
        are then written inside one savepoint. If any write fails
        the savepoint is rolled back and nothing from this posting
        remains in the session.
        """
        total_debit = request.total_debit
        total_credit = request.total_credit
        ensure_balanced(total_debit, total_credit, self.settings.BALANCE_TOLERANCE)

        resolved = [
            (line, self._resolve_line_account(tenant_id, line))
            for line in request.lines
        ]

        with self.db.begin_nested():
            journal = self.journals.get_or_create(
                tenant_id,
                request.journal_code,
                request.journal_name,
                request.journal_type,
            )
            entry_number = self.sequencer.next_number(
                tenant_id, journal.code, request.entry_date
            )

            entry = LedgerEntry(
                tenant_id=tenant_id,
                journal_id=journal.id,
                entry_number=entry_number,
                entry_date=request.entry_date,
                label=request.label,
                external_ref=request.external_ref,
                source_type=request.source_type,
                is_validated=False,
                total_debit=total_debit,
                total_credit=total_credit,
            )
            self.db.add(entry)
            self.db.flush()

            for line, account in resolved:
                self.db.add(LedgerLine(
                    entry_id=entry.id,
                    tenant_id=tenant_id,
                    account_id=account.id,
                    debit=line.debit,
                    credit=line.credit,
                    label=line.label or request.label,
                ))
            self.db.flush()

        logger.info(
            "entry_posted",
            extra={
                "tenant_id": tenant_id,
                "entry_number": entry_number,
                "source_type": request.source_type,
                "total": str(total_debit),
                "line_count": len(resolved),
            },
        )
        self.db.refresh(entry)
        return entry

    def get_entry(self, tenant_id: int, entry_id: int) -> LedgerEntry:
        entry = self.db.execute(
            select(LedgerEntry)
            .options(selectinload(LedgerEntry.lines))
            .where(
                LedgerEntry.tenant_id == tenant_id,
                LedgerEntry.id == entry_id,
            )
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        return entry

    def validate_entry(self, tenant_id: int, entry_id: int) -> LedgerEntry:
        """
        Lock a draft entry as validated.

        The balance is re-checked from the stored lines, not from
        the header totals.
        """
        entry = self.get_entry(tenant_id, entry_id)
        if entry.is_validated:
            raise AlreadyValidatedError(
                f"Entry {entry.entry_number} is already validated"
            )

        total_debit = sum((line.debit for line in entry.lines), Decimal("0"))
        total_credit = sum((line.credit for line in entry.lines), Decimal("0"))
        ensure_balanced(total_debit, total_credit, self.settings.BALANCE_TOLERANCE)

        entry.is_validated = True
        entry.validated_at = datetime.utcnow()
        self.db.flush()
        logger.info(
            "entry_validated",
            extra={"tenant_id": tenant_id, "entry_number": entry.entry_number},
        )
        return entry

    def list_entries(
        self,
        tenant_id: int,
        start: date | None = None,
        end: date | None = None,
        journal_code: str | None = None,
    ) -> list[LedgerEntry]:
        """Entries for a tenant and date range, oldest first."""
        query = (
            select(LedgerEntry)
            .options(selectinload(LedgerEntry.lines))
            .where(LedgerEntry.tenant_id == tenant_id)
        )
        if start is not None:
            query = query.where(LedgerEntry.entry_date >= start)
        if end is not None:
            query = query.where(LedgerEntry.entry_date <= end)
        if journal_code is not None:
            query = query.join(Journal).where(Journal.code == journal_code)

        entries = self.db.execute(
            query.order_by(LedgerEntry.entry_date, LedgerEntry.id)
        ).scalars().all()
        return list(entries)

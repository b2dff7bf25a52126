"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from erp_ledger.models.base import Base
from erp_ledger.models.enums import (
    AccountCategory,
    JournalType,
    EntrySide,
    RecurrenceFrequency,
    GenerationStatus,
    PaymentChannel,
    TaxKind,
)
from erp_ledger.models.account import Account
from erp_ledger.models.journal import Journal
from erp_ledger.models.entry_sequence import EntrySequence
from erp_ledger.models.ledger_entry import LedgerEntry, LedgerLine
from erp_ledger.models.recurring_template import RecurringEntryTemplate
from erp_ledger.models.generation_history import GenerationHistory
from erp_ledger.models.posting_issue import PostingIssue

__all__ = [
    "Base",
    "AccountCategory",
    "JournalType",
    "EntrySide",
    "RecurrenceFrequency",
    "GenerationStatus",
    "PaymentChannel",
    "TaxKind",
    "Account",
    "Journal",
    "EntrySequence",
    "LedgerEntry",
    "LedgerLine",
    "RecurringEntryTemplate",
    "GenerationHistory",
    "PostingIssue",
]

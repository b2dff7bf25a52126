"""Posting engine services."""

from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.chart_of_accounts import ChartService
from erp_ledger.services.entry_sequencer import EntrySequencer
from erp_ledger.services.journal_directory import JournalDirectory
from erp_ledger.services.ledger_poster import LedgerPoster
from erp_ledger.services.posting_rules import PostingRules
from erp_ledger.services.recurring_scheduler import RecurringScheduler

__all__ = [
    "AccountDirectory",
    "ChartService",
    "EntrySequencer",
    "JournalDirectory",
    "LedgerPoster",
    "PostingRules",
    "RecurringScheduler",
]

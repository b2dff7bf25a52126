"""
Shared enumerations for database models.

Mapped to database enums so an invalid category, journal type
or recurrence frequency is rejected by the database, not only
by Python validation.
"""

import enum


class AccountCategory(str, enum.Enum):
    """Where an account lands in the financial statements."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    RESULT = "RESULT"
    ANALYTIC = "ANALYTIC"


class JournalType(str, enum.Enum):
    PURCHASES = "PURCHASES"
    SALES = "SALES"
    BANK = "BANK"
    CASH = "CASH"
    MISC = "MISC"


class EntrySide(str, enum.Enum):
    """Side of a ledger line."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class RecurrenceFrequency(str, enum.Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    ANNUAL = "ANNUAL"

    @property
    def months(self) -> int:
        """Length of one period in months."""
        return {
            RecurrenceFrequency.MONTHLY: 1,
            RecurrenceFrequency.QUARTERLY: 3,
            RecurrenceFrequency.SEMI_ANNUAL: 6,
            RecurrenceFrequency.ANNUAL: 12,
        }[self]


class GenerationStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentChannel(str, enum.Enum):
    """How money moved. Only CASH goes through the cash journal."""
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    CARD = "CARD"
    MOBILE_MONEY = "MOBILE_MONEY"


class TaxKind(str, enum.Enum):
    VAT = "VAT"
    CORPORATE_INCOME = "CORPORATE_INCOME"
    PAYROLL = "PAYROLL"
    OTHER = "OTHER"

"""
SYSCOHADA chart of accounts and standard journals.

initialize_chart() seeds a tenant with the full chart and the
standard journal list. It is safe to call again: codes the tenant
already has are left alone.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_ledger.exceptions import DuplicateAccountError
from erp_ledger.models.account import Account
from erp_ledger.models.enums import AccountCategory as C, JournalType
from erp_ledger.models.journal import Journal
from erp_ledger.schemas.ledger import AccountCreate

logger = logging.getLogger(__name__)


SYSCOHADA_CHART: list[tuple[str, str, C]] = [
    # Class 1 - long-term resources
    ("101", "Share capital", C.EQUITY),
    ("106", "Reserves", C.EQUITY),
    ("109", "Subscribed capital not called", C.EQUITY),
    ("110", "Retained earnings", C.EQUITY),
    ("120", "Net income for the year (profit)", C.EQUITY),
    ("129", "Net income for the year (loss)", C.EQUITY),
    ("130", "Income pending allocation", C.EQUITY),
    ("140", "Investment grants", C.EQUITY),
    ("160", "Borrowings and similar debts", C.LIABILITY),
    ("161", "Bond loans", C.LIABILITY),
    ("162", "Loans from credit institutions", C.LIABILITY),
    ("165", "Deposits and guarantees received", C.LIABILITY),
    ("170", "Lease liabilities", C.LIABILITY),
    ("190", "Provisions for risks and charges", C.LIABILITY),
    # Class 2 - fixed assets
    ("201", "Start-up costs", C.ASSET),
    ("211", "Land", C.ASSET),
    ("213", "Buildings", C.ASSET),
    ("215", "Technical installations", C.ASSET),
    ("218", "Other tangible fixed assets", C.ASSET),
    ("221", "Patents, licences, software", C.ASSET),
    ("231", "Tangible fixed assets in progress", C.ASSET),
    ("241", "Transport equipment", C.ASSET),
    ("244", "Office furniture and equipment", C.ASSET),
    ("245", "Computer equipment", C.ASSET),
    ("260", "Equity investments", C.ASSET),
    ("270", "Other financial fixed assets", C.ASSET),
    ("280", "Accumulated depreciation", C.ASSET),
    ("290", "Impairment of fixed assets", C.ASSET),
    # Class 3 - inventories
    ("310", "Goods for resale", C.ASSET),
    ("311", "Goods for resale A", C.ASSET),
    ("312", "Goods for resale B", C.ASSET),
    ("320", "Raw materials", C.ASSET),
    ("330", "Other supplies", C.ASSET),
    ("340", "Work in progress", C.ASSET),
    ("360", "Finished goods", C.ASSET),
    ("390", "Inventory impairment", C.ASSET),
    # Class 4 - third parties
    ("40", "Suppliers and related accounts", C.LIABILITY),
    ("401", "Suppliers", C.LIABILITY),
    ("4011", "Suppliers - goods", C.LIABILITY),
    ("4012", "Suppliers - services", C.LIABILITY),
    ("408", "Suppliers - invoices not yet received", C.LIABILITY),
    ("409", "Suppliers - debit balances", C.ASSET),
    ("411", "Clients", C.ASSET),
    ("4111", "Clients - sales of goods", C.ASSET),
    ("4112", "Clients - sales of services", C.ASSET),
    ("412", "Clients - bills receivable", C.ASSET),
    ("416", "Doubtful clients", C.ASSET),
    ("418", "Clients - unbilled revenue", C.ASSET),
    ("419", "Clients - credit balances", C.LIABILITY),
    ("42", "Personnel", C.LIABILITY),
    ("421", "Personnel - wages payable", C.LIABILITY),
    ("422", "Personnel - advances and deposits", C.ASSET),
    ("423", "Personnel - garnishments", C.LIABILITY),
    ("428", "Personnel - accrued charges", C.LIABILITY),
    ("431", "Social security", C.LIABILITY),
    ("432", "Pension funds", C.LIABILITY),
    ("433", "Other social bodies", C.LIABILITY),
    ("44", "State and public bodies", C.LIABILITY),
    ("441", "State - income tax", C.LIABILITY),
    ("442", "State - other taxes", C.LIABILITY),
    ("443", "State - VAT invoiced", C.LIABILITY),
    ("4431", "VAT invoiced on sales", C.LIABILITY),
    ("4432", "VAT invoiced on services", C.LIABILITY),
    ("4434", "VAT due to the State", C.LIABILITY),
    ("445", "State - recoverable VAT", C.ASSET),
    ("4451", "Recoverable VAT on fixed assets", C.ASSET),
    ("4452", "Recoverable VAT on purchases", C.ASSET),
    ("4453", "Recoverable VAT on services", C.ASSET),
    ("447", "State - taxes withheld at source", C.LIABILITY),
    ("4471", "Tax on salaries", C.LIABILITY),
    ("4472", "Tax on non-salary income", C.LIABILITY),
    ("449", "State - sundry receivables and payables", C.LIABILITY),
    ("455", "Partners - current accounts", C.LIABILITY),
    ("457", "Partners - dividends payable", C.LIABILITY),
    ("460", "Sundry debtors", C.ASSET),
    ("470", "Sundry creditors", C.LIABILITY),
    ("471", "Suspense accounts", C.ASSET),
    ("476", "Prepaid expenses", C.ASSET),
    ("477", "Deferred income", C.LIABILITY),
    ("491", "Impairment of client accounts", C.ASSET),
    # Class 5 - treasury
    ("50", "Marketable securities", C.ASSET),
    ("501", "Short-term investments", C.ASSET),
    ("502", "Own shares", C.ASSET),
    ("506", "Bonds", C.ASSET),
    ("51", "Banks, financial and similar institutions", C.ASSET),
    ("52", "Banks", C.ASSET),
    ("512", "Bank accounts", C.ASSET),
    ("5121", "Main bank account", C.ASSET),
    ("5122", "Secondary bank account", C.ASSET),
    ("513", "Cheques to deposit", C.ASSET),
    ("514", "Cheques in collection", C.ASSET),
    ("516", "Public treasury", C.ASSET),
    ("518", "Fund transfers", C.ASSET),
    ("520", "Bank overdrafts", C.LIABILITY),
    ("521", "Short-term bank credit", C.LIABILITY),
    ("56", "Banks, treasury credits", C.LIABILITY),
    ("57", "Cash", C.ASSET),
    ("570", "Cash boxes", C.ASSET),
    ("5711", "Main cash box", C.ASSET),
    ("5712", "Secondary cash box", C.ASSET),
    ("580", "Internal transfers", C.ASSET),
    ("590", "Impairment of marketable securities", C.ASSET),
    # Class 6 - expenses
    ("60", "Purchases", C.EXPENSE),
    ("61", "External services", C.EXPENSE),
    ("62", "Other external services", C.EXPENSE),
    ("63", "Taxes and duties", C.EXPENSE),
    ("64", "Personnel expenses", C.EXPENSE),
    ("65", "Other operating expenses", C.EXPENSE),
    ("66", "Financial expenses", C.EXPENSE),
    ("67", "Exceptional expenses", C.EXPENSE),
    ("68", "Depreciation and provisions", C.EXPENSE),
    ("69", "Income tax", C.EXPENSE),
    ("601", "Purchases of goods for resale", C.EXPENSE),
    ("6011", "Purchases of goods A", C.EXPENSE),
    ("6012", "Purchases of goods B", C.EXPENSE),
    ("602", "Purchases of raw materials", C.EXPENSE),
    ("603", "Change in inventories", C.EXPENSE),
    ("6031", "Change in inventories of goods", C.EXPENSE),
    ("6032", "Change in inventories of materials", C.EXPENSE),
    ("604", "Purchased studies and services", C.EXPENSE),
    ("605", "Other purchases", C.EXPENSE),
    ("6051", "Non-stored supplies (water, energy)", C.EXPENSE),
    ("6052", "Maintenance supplies and small equipment", C.EXPENSE),
    ("6053", "Office supplies", C.EXPENSE),
    ("608", "Purchase related costs", C.EXPENSE),
    ("609", "Discounts and rebates obtained", C.EXPENSE),
    ("610", "Transport on purchases", C.EXPENSE),
    ("611", "Transport on sales", C.EXPENSE),
    ("613", "Rent and rental charges", C.EXPENSE),
    ("615", "Maintenance and repairs", C.EXPENSE),
    ("616", "Insurance premiums", C.EXPENSE),
    ("618", "Other external services", C.EXPENSE),
    ("621", "Temporary staff", C.EXPENSE),
    ("622", "Intermediary fees", C.EXPENSE),
    ("6226", "Professional fees", C.EXPENSE),
    ("623", "Advertising and public relations", C.EXPENSE),
    ("624", "Travel and transport", C.EXPENSE),
    ("625", "Telecommunication costs", C.EXPENSE),
    ("626", "Bank charges", C.EXPENSE),
    ("628", "Sundry external services", C.EXPENSE),
    ("631", "Taxes, duties and similar payments", C.EXPENSE),
    ("632", "Non-recoverable turnover taxes", C.EXPENSE),
    ("633", "Payroll taxes", C.EXPENSE),
    ("638", "Other taxes and duties", C.EXPENSE),
    ("641", "Personnel remuneration", C.EXPENSE),
    ("6411", "Salaries and wages", C.EXPENSE),
    ("6412", "Bonuses", C.EXPENSE),
    ("6413", "Paid leave", C.EXPENSE),
    ("6414", "Allowances and benefits", C.EXPENSE),
    ("645", "Social security charges", C.EXPENSE),
    ("6451", "Social security contributions", C.EXPENSE),
    ("6453", "Pension contributions", C.EXPENSE),
    ("648", "Other personnel expenses", C.EXPENSE),
    ("651", "Losses on client receivables", C.EXPENSE),
    ("658", "Sundry operating expenses", C.EXPENSE),
    ("661", "Interest on borrowings", C.EXPENSE),
    ("665", "Discounts granted", C.EXPENSE),
    ("666", "Foreign exchange losses", C.EXPENSE),
    ("671", "Interest on loans and debts", C.EXPENSE),
    ("681", "Operating depreciation charges", C.EXPENSE),
    ("6811", "Amortisation of intangible assets", C.EXPENSE),
    ("6812", "Depreciation of tangible assets", C.EXPENSE),
    ("686", "Financial provision charges", C.EXPENSE),
    ("691", "Income tax", C.EXPENSE),
    ("695", "Minimum flat-rate tax", C.EXPENSE),
    ("699", "Other taxes on income", C.EXPENSE),
    # Class 7 - revenue
    ("70", "Sales of products and services", C.REVENUE),
    ("71", "Stored production", C.REVENUE),
    ("72", "Capitalised production", C.REVENUE),
    ("73", "Change in inventories", C.REVENUE),
    ("74", "Operating grants", C.REVENUE),
    ("75", "Other operating income", C.REVENUE),
    ("76", "Financial income", C.REVENUE),
    ("77", "Exceptional income", C.REVENUE),
    ("78", "Provision reversals", C.REVENUE),
    ("79", "Expense transfers", C.REVENUE),
    ("701", "Sales of goods", C.REVENUE),
    ("7011", "Sales of goods A", C.REVENUE),
    ("7012", "Sales of goods B", C.REVENUE),
    ("702", "Sales of finished products", C.REVENUE),
    ("704", "Sales of works", C.REVENUE),
    ("705", "Sales of studies and services", C.REVENUE),
    ("706", "Ancillary activity income", C.REVENUE),
    ("707", "Ancillary income", C.REVENUE),
    ("709", "Discounts and rebates granted", C.REVENUE),
    ("711", "Operating grants received", C.REVENUE),
    ("758", "Sundry operating income", C.REVENUE),
    ("761", "Income from equity investments", C.REVENUE),
    ("765", "Discounts obtained", C.REVENUE),
    ("766", "Foreign exchange gains", C.REVENUE),
    ("771", "Interest on loans and receivables", C.REVENUE),
    ("781", "Reversals of operating depreciation and provisions", C.REVENUE),
    ("791", "Reversals of operating provisions", C.REVENUE),
    # Class 8 - results
    ("801", "Operating result", C.RESULT),
    ("810", "Financial result", C.RESULT),
    ("820", "Result from ordinary activities", C.RESULT),
    ("830", "Result from non-ordinary activities", C.RESULT),
    ("840", "Income taxes", C.RESULT),
    ("850", "Net result for the year", C.RESULT),
    # Class 9 - management accounting
    ("901", "Reflected accounts", C.ANALYTIC),
    ("902", "Reclassification accounts", C.ANALYTIC),
]


# (code, name, type) for every journal a tenant starts with
STANDARD_JOURNALS: list[tuple[str, str, JournalType]] = [
    ("AC", "Purchases Journal", JournalType.PURCHASES),
    ("VT", "Sales Journal", JournalType.SALES),
    ("BQ", "Bank Journal", JournalType.BANK),
    ("CA", "Cash Journal", JournalType.CASH),
    ("OD", "Miscellaneous Operations Journal", JournalType.MISC),
    ("SA", "Payroll Journal", JournalType.MISC),
    ("AN", "Opening Balances Journal", JournalType.MISC),
    ("EX", "Reversals Journal", JournalType.MISC),
]


@dataclass
class ChartInitResult:
    accounts_created: int
    accounts_existing: int
    journals_created: int
    total_accounts: int


class ChartService:
    """Creates accounts and seeds a tenant's chart of accounts."""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, tenant_id: int, request: AccountCreate) -> Account:
        """
        Add one account to a tenant's chart.

        Raises DuplicateAccountError if the tenant already uses the code.
        """
        existing = self.db.execute(
            select(Account).where(
                Account.tenant_id == tenant_id,
                Account.code == request.code,
            )
        ).scalar_one_or_none()

        if existing:
            raise DuplicateAccountError(
                f"Account with code '{request.code}' already exists"
            )

        account = Account(
            tenant_id=tenant_id,
            code=request.code,
            name=request.name,
            class_digit=int(request.code[0]),
            category=request.category,
        )
        self.db.add(account)
        self.db.flush()
        return account

    def initialize_chart(self, tenant_id: int) -> ChartInitResult:
        """Seed every SYSCOHADA account and standard journal the tenant lacks."""
        existing_codes = set(self.db.execute(
            select(Account.code).where(Account.tenant_id == tenant_id)
        ).scalars())
        existing_journals = set(self.db.execute(
            select(Journal.code).where(Journal.tenant_id == tenant_id)
        ).scalars())

        created = 0
        for code, name, category in SYSCOHADA_CHART:
            if code in existing_codes:
                continue
            self.db.add(Account(
                tenant_id=tenant_id,
                code=code,
                name=name,
                class_digit=int(code[0]),
                category=category,
            ))
            created += 1

        journals_created = 0
        for code, name, journal_type in STANDARD_JOURNALS:
            if code in existing_journals:
                continue
            self.db.add(Journal(
                tenant_id=tenant_id,
                code=code,
                name=name,
                journal_type=journal_type,
            ))
            journals_created += 1

        self.db.flush()

        logger.info(
            "chart_initialized",
            extra={
                "tenant_id": tenant_id,
                "accounts_created": created,
                "journals_created": journals_created,
            },
        )
        return ChartInitResult(
            accounts_created=created,
            accounts_existing=len(existing_codes),
            journals_created=journals_created,
            total_accounts=len(existing_codes) + created,
        )

"""
Event posting rules: business events to balanced entries.

Each rule has two halves:
- a pure builder (``*_lines``) that maps an event plus resolved
  accounts to ledger lines, easy to test without a database;
- a PostingRules method that resolves the accounts, calls the
  builder and hands the lines to the LedgerPoster.

Accounting impact is secondary to the business transaction that
triggered it. When an account a rule needs is missing from the
tenant's chart, the rule logs a warning, queues a PostingIssue
for an operator and returns None instead of raising. Errors from
the LedgerPoster itself (unbalanced amounts, inactive accounts)
still propagate so they can never be silently swallowed.

Accounting (SYSCOHADA codes):
    Sale invoice        D 411 TTC        / C 701 HT, C 443 tax
    Sale payment        D 52|57          / C 411
    Goods receipt       D 31 HT          / C 408 HT
    Purchase invoice    D 601 HT or 408, D|C 603 variance, D 445 tax
                                         / C 401 TTC
    Purchase payment    D 401            / C 52|57
    Expense reimb.      D 421            / C 52|57
    Payroll run         D 641 gross      / C 421 net, 431, 447, 422
    Tax remittance      D 4434 (VAT)|44  / C 52|57
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_ledger.config import Settings
from erp_ledger.models.account import Account
from erp_ledger.models.enums import JournalType, PaymentChannel, TaxKind
from erp_ledger.models.ledger_entry import LedgerEntry
from erp_ledger.models.posting_issue import PostingIssue
from erp_ledger.schemas.events import (
    ExpenseReimbursementEvent,
    GoodsReceiptEvent,
    PayrollRunEvent,
    PurchaseInvoiceEvent,
    PurchasePaymentEvent,
    SaleInvoiceEvent,
    SalePaymentEvent,
    TaxPaymentEvent,
)
from erp_ledger.schemas.ledger import LedgerLineCreate, PostEntryRequest
from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.ledger_poster import LedgerPoster

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class AccountCodes:
    """Chart codes the rules post to, matched exact-first then by prefix."""
    INVENTORY = "31"
    SUPPLIERS = "401"
    INVOICES_NOT_RECEIVED = "408"
    CLIENTS = "411"
    PERSONNEL = "421"
    PERSONNEL_ADVANCES = "422"
    SOCIAL_SECURITY = "431"
    STATE_TAXES = "44"
    VAT_COLLECTED = "443"
    VAT_DUE = "4434"
    VAT_DEDUCTIBLE = "445"
    TAX_WITHHELD = "447"
    BANK = "52"
    CASH = "57"
    PURCHASES_GOODS = "601"
    PRICE_VARIANCE = "603"
    PERSONNEL_REMUNERATION = "641"
    SALES_GOODS = "701"


class JournalCodes:
    PURCHASES = "AC"
    SALES = "VT"
    BANK = "BQ"
    CASH = "CA"
    PAYROLL = "SA"


def treasury_for(channel: PaymentChannel) -> tuple[str, JournalType, str]:
    """(journal code, journal type, treasury account code) for a channel."""
    if channel == PaymentChannel.CASH:
        return JournalCodes.CASH, JournalType.CASH, AccountCodes.CASH
    return JournalCodes.BANK, JournalType.BANK, AccountCodes.BANK


def _debit(account: Account, amount: Decimal, label: str) -> LedgerLineCreate:
    return LedgerLineCreate(account_id=account.id, debit=amount, label=label)


def _credit(account: Account, amount: Decimal, label: str) -> LedgerLineCreate:
    return LedgerLineCreate(account_id=account.id, credit=amount, label=label)


# --- Pure line builders ---

def sale_invoice_lines(
    event: SaleInvoiceEvent,
    receivable: Account,
    revenue: Account,
    tax_collected: Account | None,
) -> list[LedgerLineCreate]:
    doc = event.document_number
    lines = [
        _debit(receivable, event.amount_incl_tax, f"Client {event.client_name} - {doc}"),
        _credit(revenue, event.amount_excl_tax, f"Sale of goods - {doc}"),
    ]
    if event.tax_amount > 0:
        lines.append(_credit(tax_collected, event.tax_amount, f"VAT collected - {doc}"))
    return lines


def sale_payment_lines(
    event: SalePaymentEvent, treasury: Account, receivable: Account
) -> list[LedgerLineCreate]:
    return [
        _debit(
            treasury, event.amount,
            f"Receipt {event.channel.value.lower()} - {event.reference}",
        ),
        _credit(receivable, event.amount, f"Settlement {event.client_name}"),
    ]


def goods_receipt_lines(
    event: GoodsReceiptEvent, inventory: Account, not_received: Account
) -> list[LedgerLineCreate]:
    return [
        _debit(inventory, event.amount_excl_tax, f"Goods received - {event.receipt_number}"),
        _credit(
            not_received, event.amount_excl_tax,
            f"Supplier invoice not yet received - {event.supplier_name}",
        ),
    ]


def purchase_invoice_lines(
    event: PurchaseInvoiceEvent,
    payable: Account,
    purchases: Account | None,
    not_received: Account | None,
    variance_account: Account | None,
    tax_deductible: Account | None,
) -> list[LedgerLineCreate]:
    """
    Lines for a supplier invoice.

    An invoice regularizing a goods receipt clears the provisional
    amount from the "not yet received" account instead of debiting
    purchases; the gap between invoiced and provisioned is the price
    variance (debit when unfavorable, credit when favorable).
    """
    doc = event.document_number
    lines = []

    if event.provisional_amount > 0:
        lines.append(_debit(
            not_received, event.provisional_amount,
            f"Regularization of invoice not received - {doc}",
        ))
        variance = event.variance
        if variance > 0:
            lines.append(_debit(
                variance_account, variance, f"Unfavorable price variance - {doc}"
            ))
        elif variance < 0:
            lines.append(_credit(
                variance_account, -variance, f"Favorable price variance - {doc}"
            ))
    else:
        lines.append(_debit(purchases, event.amount_excl_tax, f"Purchase of goods - {doc}"))

    if event.tax_amount > 0:
        lines.append(_debit(tax_deductible, event.tax_amount, f"Deductible VAT - {doc}"))

    lines.append(_credit(
        payable, event.amount_incl_tax, f"Supplier {event.supplier_name} - {doc}"
    ))
    return lines


def purchase_payment_lines(
    event: PurchasePaymentEvent, payable: Account, treasury: Account
) -> list[LedgerLineCreate]:
    return [
        _debit(payable, event.amount, f"Settlement {event.supplier_name}"),
        _credit(
            treasury, event.amount,
            f"Disbursement {event.channel.value.lower()} - {event.reference}",
        ),
    ]


def expense_reimbursement_lines(
    event: ExpenseReimbursementEvent, personnel: Account, treasury: Account
) -> list[LedgerLineCreate]:
    # The expense itself was booked when it was approved; the
    # reimbursement only settles what is owed to the employee.
    return [
        _debit(personnel, event.amount, f"Advance reimbursement {event.employee_name}"),
        _credit(treasury, event.amount, f"Reimbursement paid {event.employee_name}"),
    ]


def payroll_lines(
    event: PayrollRunEvent,
    remuneration: Account,
    wages_payable: Account,
    social: Account | None,
    withheld: Account | None,
    advances: Account | None,
) -> list[LedgerLineCreate]:
    period = event.period
    lines = [
        _debit(remuneration, event.gross_pay, f"Personnel expense - salary {period}"),
    ]
    if event.net_pay > 0:
        lines.append(_credit(wages_payable, event.net_pay, f"Salary payable - {period}"))
    if event.social_contributions > 0:
        lines.append(_credit(
            social, event.social_contributions, f"Social contributions - {period}"
        ))
    if event.income_tax_withheld > 0:
        lines.append(_credit(
            withheld, event.income_tax_withheld, f"Income tax withheld - {period}"
        ))
    if event.advances_recovered > 0:
        lines.append(_credit(
            advances, event.advances_recovered, f"Salary advance recovered - {period}"
        ))
    return lines


def tax_payment_lines(
    event: TaxPaymentEvent, tax_account: Account, treasury: Account
) -> list[LedgerLineCreate]:
    kind = event.tax_kind.value
    return [
        _debit(tax_account, event.amount, f"{kind} payment {event.period}"),
        _credit(treasury, event.amount, f"{kind} settlement"),
    ]


class PostingRules:
    """
    Entry points called by invoicing, payment, payroll and tax code.

    Every method returns the posted LedgerEntry, or None when the
    accounting impact could not be recorded (a PostingIssue row is
    written in that case).
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.poster = LedgerPoster(db, settings)
        self.accounts = AccountDirectory(db)

    # --- Helpers ---

    def _resolve(
        self, tenant_id: int, required: dict[str, str | int]
    ) -> tuple[dict[str, Account], list[str]]:
        """
        Resolve named accounts; ints are account ids, strings are codes.

        Returns the resolved accounts and the references that missed.
        """
        resolved, missing = {}, []
        for name, reference in required.items():
            if isinstance(reference, int):
                account = self.accounts.resolve_by_id(tenant_id, reference)
            else:
                account = self.accounts.resolve_by_code(tenant_id, reference)
            if account is None:
                missing.append(f"{name} ({reference})")
            else:
                resolved[name] = account
        return resolved, missing

    def _not_recorded(
        self,
        tenant_id: int,
        event_type: str,
        document_ref: str,
        missing: list[str],
    ) -> None:
        reason = "Accounts not configured: " + ", ".join(missing)
        logger.warning(
            "accounting_impact_not_recorded",
            extra={
                "tenant_id": tenant_id,
                "event_type": event_type,
                "document_ref": document_ref,
                "reason": reason,
            },
        )
        self.db.add(PostingIssue(
            tenant_id=tenant_id,
            event_type=event_type,
            document_ref=document_ref,
            reason=reason,
        ))
        self.db.flush()
        return None

    def _post(
        self,
        tenant_id: int,
        journal: tuple[str, JournalType],
        event_type: str,
        entry_date,
        label: str,
        external_ref: str,
        lines: list[LedgerLineCreate],
    ) -> LedgerEntry:
        journal_code, journal_type = journal
        return self.poster.post(tenant_id, PostEntryRequest(
            journal_code=journal_code,
            journal_type=journal_type,
            entry_date=entry_date,
            label=label,
            external_ref=external_ref,
            source_type=event_type,
            lines=lines,
        ))

    def list_issues(self, tenant_id: int, include_resolved: bool = False) -> list[PostingIssue]:
        query = select(PostingIssue).where(PostingIssue.tenant_id == tenant_id)
        if not include_resolved:
            query = query.where(PostingIssue.is_resolved.is_(False))
        issues = self.db.execute(
            query.order_by(PostingIssue.created_at.desc(), PostingIssue.id.desc())
        ).scalars().all()
        return list(issues)

    # --- Sales ---

    def post_sale_invoice(
        self, tenant_id: int, event: SaleInvoiceEvent
    ) -> LedgerEntry | None:
        required = {
            "receivable": event.client_account_id or AccountCodes.CLIENTS,
            "revenue": AccountCodes.SALES_GOODS,
        }
        if event.tax_amount > 0:
            required["tax_collected"] = AccountCodes.VAT_COLLECTED

        accounts, missing = self._resolve(tenant_id, required)
        if missing:
            return self._not_recorded(
                tenant_id, "sale_invoice", event.document_number, missing
            )

        lines = sale_invoice_lines(
            event,
            accounts["receivable"],
            accounts["revenue"],
            accounts.get("tax_collected"),
        )
        return self._post(
            tenant_id, (JournalCodes.SALES, JournalType.SALES), "sale_invoice",
            event.invoice_date,
            f"Invoice {event.document_number} - {event.client_name}",
            event.document_number, lines,
        )

    def post_sale_payment(
        self, tenant_id: int, event: SalePaymentEvent
    ) -> LedgerEntry | None:
        journal_code, journal_type, treasury_code = treasury_for(event.channel)
        accounts, missing = self._resolve(tenant_id, {
            "treasury": treasury_code,
            "receivable": event.client_account_id or AccountCodes.CLIENTS,
        })
        if missing:
            return self._not_recorded(
                tenant_id, "sale_payment", event.reference, missing
            )

        lines = sale_payment_lines(event, accounts["treasury"], accounts["receivable"])
        return self._post(
            tenant_id, (journal_code, journal_type), "sale_payment",
            event.payment_date,
            f"Receipt {event.client_name} - {event.reference}",
            event.reference, lines,
        )

    # --- Purchases ---

    def post_goods_receipt(
        self, tenant_id: int, event: GoodsReceiptEvent
    ) -> LedgerEntry | None:
        accounts, missing = self._resolve(tenant_id, {
            "inventory": AccountCodes.INVENTORY,
            "not_received": AccountCodes.INVOICES_NOT_RECEIVED,
        })
        if missing:
            return self._not_recorded(
                tenant_id, "goods_receipt", event.receipt_number, missing
            )

        lines = goods_receipt_lines(event, accounts["inventory"], accounts["not_received"])
        return self._post(
            tenant_id, (JournalCodes.PURCHASES, JournalType.PURCHASES), "goods_receipt",
            event.receipt_date,
            f"Receipt {event.receipt_number} - {event.supplier_name}",
            event.receipt_number, lines,
        )

    def post_purchase_invoice(
        self, tenant_id: int, event: PurchaseInvoiceEvent
    ) -> LedgerEntry | None:
        required = {
            "payable": event.supplier_account_id or AccountCodes.SUPPLIERS,
        }
        if event.provisional_amount > 0:
            required["not_received"] = AccountCodes.INVOICES_NOT_RECEIVED
            if event.variance != 0:
                required["variance"] = AccountCodes.PRICE_VARIANCE
        else:
            required["purchases"] = AccountCodes.PURCHASES_GOODS
        if event.tax_amount > 0:
            required["tax_deductible"] = AccountCodes.VAT_DEDUCTIBLE

        accounts, missing = self._resolve(tenant_id, required)
        if missing:
            return self._not_recorded(
                tenant_id, "purchase_invoice", event.document_number, missing
            )

        lines = purchase_invoice_lines(
            event,
            accounts["payable"],
            accounts.get("purchases"),
            accounts.get("not_received"),
            accounts.get("variance"),
            accounts.get("tax_deductible"),
        )
        return self._post(
            tenant_id, (JournalCodes.PURCHASES, JournalType.PURCHASES), "purchase_invoice",
            event.invoice_date,
            f"Invoice {event.document_number} - {event.supplier_name}",
            event.document_number, lines,
        )

    def post_purchase_payment(
        self, tenant_id: int, event: PurchasePaymentEvent
    ) -> LedgerEntry | None:
        journal_code, journal_type, treasury_code = treasury_for(event.channel)
        accounts, missing = self._resolve(tenant_id, {
            "payable": event.supplier_account_id or AccountCodes.SUPPLIERS,
            "treasury": treasury_code,
        })
        if missing:
            return self._not_recorded(
                tenant_id, "purchase_payment", event.reference, missing
            )

        lines = purchase_payment_lines(event, accounts["payable"], accounts["treasury"])
        return self._post(
            tenant_id, (journal_code, journal_type), "purchase_payment",
            event.payment_date,
            f"Payment {event.supplier_name} - {event.reference}",
            event.reference, lines,
        )

    # --- Personnel ---

    def post_expense_reimbursement(
        self, tenant_id: int, event: ExpenseReimbursementEvent
    ) -> LedgerEntry | None:
        journal_code, journal_type, treasury_code = treasury_for(event.channel)
        accounts, missing = self._resolve(tenant_id, {
            "personnel": AccountCodes.PERSONNEL,
            "treasury": treasury_code,
        })
        if missing:
            return self._not_recorded(
                tenant_id, "expense_reimbursement", event.reference, missing
            )

        lines = expense_reimbursement_lines(
            event, accounts["personnel"], accounts["treasury"]
        )
        label = f"Expense reimbursement {event.employee_name}"
        if event.description:
            label = f"{label} - {event.description}"
        return self._post(
            tenant_id, (journal_code, journal_type), "expense_reimbursement",
            event.reimbursement_date, label, event.reference, lines,
        )

    def post_payroll_run(
        self, tenant_id: int, event: PayrollRunEvent
    ) -> LedgerEntry | None:
        required = {
            "remuneration": AccountCodes.PERSONNEL_REMUNERATION,
            "wages_payable": AccountCodes.PERSONNEL,
        }
        if event.social_contributions > 0:
            required["social"] = AccountCodes.SOCIAL_SECURITY
        if event.income_tax_withheld > 0:
            required["withheld"] = AccountCodes.TAX_WITHHELD
        if event.advances_recovered > 0:
            required["advances"] = AccountCodes.PERSONNEL_ADVANCES

        accounts, missing = self._resolve(tenant_id, required)
        if missing:
            return self._not_recorded(
                tenant_id, "payroll_run", event.reference, missing
            )

        lines = payroll_lines(
            event,
            accounts["remuneration"],
            accounts["wages_payable"],
            accounts.get("social"),
            accounts.get("withheld"),
            accounts.get("advances"),
        )
        return self._post(
            tenant_id, (JournalCodes.PAYROLL, JournalType.MISC), "payroll_run",
            event.pay_date,
            f"Salary {event.period} - {event.employee_name}",
            event.reference, lines,
        )

    # --- Taxes ---

    def post_tax_payment(
        self, tenant_id: int, event: TaxPaymentEvent
    ) -> LedgerEntry | None:
        journal_code, journal_type, treasury_code = treasury_for(event.channel)
        tax_code = (
            AccountCodes.VAT_DUE
            if event.tax_kind == TaxKind.VAT
            else AccountCodes.STATE_TAXES
        )
        accounts, missing = self._resolve(tenant_id, {
            "tax": tax_code,
            "treasury": treasury_code,
        })
        if missing:
            return self._not_recorded(
                tenant_id, "tax_payment", event.reference, missing
            )

        lines = tax_payment_lines(event, accounts["tax"], accounts["treasury"])
        return self._post(
            tenant_id, (journal_code, journal_type), "tax_payment",
            event.payment_date,
            f"{event.tax_kind.value} payment - {event.period}",
            event.reference, lines,
        )

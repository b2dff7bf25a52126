"""
Pydantic schemas for business events.

Each schema is the payload an invoicing, payment, payroll or tax
endpoint hands to the matching posting rule after persisting its
own record. Amounts are tax-exclusive (amount_excl_tax), tax, and
tax-inclusive (amount_incl_tax).
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from erp_ledger.models.enums import PaymentChannel, TaxKind


class SaleInvoiceEvent(BaseModel):
    document_number: str = Field(min_length=1, max_length=100)
    invoice_date: date
    client_name: str = Field(min_length=1, max_length=255)
    client_account_id: int | None = None
    amount_excl_tax: Decimal = Field(ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    amount_incl_tax: Decimal = Field(gt=0)


class SalePaymentEvent(BaseModel):
    reference: str = Field(min_length=1, max_length=100)
    payment_date: date
    client_name: str = Field(min_length=1, max_length=255)
    client_account_id: int | None = None
    amount: Decimal = Field(gt=0)
    channel: PaymentChannel = PaymentChannel.BANK_TRANSFER


class PurchaseInvoiceEvent(BaseModel):
    """
    Supplier invoice.

    provisional_amount is what a prior goods receipt already booked
    on the "invoices not yet received" account. When it is set the
    invoice regularizes that receipt instead of debiting purchases,
    and any difference is a price variance.
    """
    document_number: str = Field(min_length=1, max_length=100)
    invoice_date: date
    supplier_name: str = Field(min_length=1, max_length=255)
    supplier_account_id: int | None = None
    amount_excl_tax: Decimal = Field(ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    amount_incl_tax: Decimal = Field(gt=0)
    provisional_amount: Decimal = Field(default=Decimal("0"), ge=0)
    price_variance: Decimal | None = None

    @property
    def variance(self) -> Decimal:
        """Unfavorable (positive) or favorable (negative) price gap."""
        if self.provisional_amount == 0:
            return Decimal("0")
        if self.price_variance is not None:
            return self.price_variance
        return self.amount_excl_tax - self.provisional_amount


class GoodsReceiptEvent(BaseModel):
    receipt_number: str = Field(min_length=1, max_length=100)
    receipt_date: date
    supplier_name: str = Field(min_length=1, max_length=255)
    amount_excl_tax: Decimal = Field(gt=0)


class PurchasePaymentEvent(BaseModel):
    reference: str = Field(min_length=1, max_length=100)
    payment_date: date
    supplier_name: str = Field(min_length=1, max_length=255)
    supplier_account_id: int | None = None
    amount: Decimal = Field(gt=0)
    channel: PaymentChannel = PaymentChannel.BANK_TRANSFER


class ExpenseReimbursementEvent(BaseModel):
    reference: str = Field(min_length=1, max_length=100)
    reimbursement_date: date
    employee_name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=255)
    amount: Decimal = Field(gt=0)
    channel: PaymentChannel = PaymentChannel.CASH


class PayrollRunEvent(BaseModel):
    """
    One payslip (or one aggregated payroll run).

    gross = net + social_contributions + income_tax_withheld
    + advances_recovered.
    """
    reference: str = Field(min_length=1, max_length=100)
    pay_date: date
    period: str = Field(min_length=1, max_length=20)
    employee_name: str = Field(min_length=1, max_length=255)
    gross_pay: Decimal = Field(gt=0)
    net_pay: Decimal = Field(ge=0)
    social_contributions: Decimal = Field(default=Decimal("0"), ge=0)
    income_tax_withheld: Decimal = Field(default=Decimal("0"), ge=0)
    advances_recovered: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def deductions_add_up(self) -> "PayrollRunEvent":
        deductions = (
            self.net_pay
            + self.social_contributions
            + self.income_tax_withheld
            + self.advances_recovered
        )
        if deductions != self.gross_pay:
            raise ValueError(
                f"net pay plus withholdings ({deductions}) "
                f"must equal gross pay ({self.gross_pay})"
            )
        return self


class TaxPaymentEvent(BaseModel):
    reference: str = Field(min_length=1, max_length=100)
    payment_date: date
    tax_kind: TaxKind
    period: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0)
    channel: PaymentChannel = PaymentChannel.BANK_TRANSFER


class PostingIssueResponse(BaseModel):
    id: int
    event_type: str
    document_ref: str | None
    reason: str
    is_resolved: bool

    model_config = {"from_attributes": True}

"""
Posting rule endpoints.

Called by the invoicing, payment, payroll and tax modules after
they have saved their own document. A 201 carries the generated
entry; a 202 with {"recorded": false} means the document stands
but its accounting impact was queued as a posting issue.
"""

from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from erp_ledger.api.errors import http_error
from erp_ledger.models.base import get_db
from erp_ledger.models.ledger_entry import LedgerEntry
from erp_ledger.schemas.events import (
    ExpenseReimbursementEvent,
    GoodsReceiptEvent,
    PayrollRunEvent,
    PostingIssueResponse,
    PurchaseInvoiceEvent,
    PurchasePaymentEvent,
    SaleInvoiceEvent,
    SalePaymentEvent,
    TaxPaymentEvent,
)
from erp_ledger.schemas.ledger import LedgerEntryResponse
from erp_ledger.services.posting_rules import PostingRules

router = APIRouter(prefix="/postings/tenants/{tenant_id}", tags=["Postings"])


def _apply(db: Session, rule: Callable[[], LedgerEntry | None]):
    try:
        entry = rule()
        db.commit()
    except ValueError as e:
        db.rollback()
        raise http_error(e)

    if entry is None:
        return JSONResponse(status_code=202, content={"recorded": False})
    return LedgerEntryResponse.model_validate(entry)


@router.post("/sale-invoices", response_model=LedgerEntryResponse, status_code=201)
def post_sale_invoice(
    tenant_id: int, event: SaleInvoiceEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_sale_invoice(tenant_id, event))


@router.post("/sale-payments", response_model=LedgerEntryResponse, status_code=201)
def post_sale_payment(
    tenant_id: int, event: SalePaymentEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_sale_payment(tenant_id, event))


@router.post("/purchase-invoices", response_model=LedgerEntryResponse, status_code=201)
def post_purchase_invoice(
    tenant_id: int, event: PurchaseInvoiceEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_purchase_invoice(tenant_id, event))


@router.post("/goods-receipts", response_model=LedgerEntryResponse, status_code=201)
def post_goods_receipt(
    tenant_id: int, event: GoodsReceiptEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_goods_receipt(tenant_id, event))


@router.post("/purchase-payments", response_model=LedgerEntryResponse, status_code=201)
def post_purchase_payment(
    tenant_id: int, event: PurchasePaymentEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_purchase_payment(tenant_id, event))


@router.post(
    "/expense-reimbursements", response_model=LedgerEntryResponse, status_code=201
)
def post_expense_reimbursement(
    tenant_id: int, event: ExpenseReimbursementEvent, db: Session = Depends(get_db)
):
    return _apply(
        db, lambda: PostingRules(db).post_expense_reimbursement(tenant_id, event)
    )


@router.post("/payroll-runs", response_model=LedgerEntryResponse, status_code=201)
def post_payroll_run(
    tenant_id: int, event: PayrollRunEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_payroll_run(tenant_id, event))


@router.post("/tax-payments", response_model=LedgerEntryResponse, status_code=201)
def post_tax_payment(
    tenant_id: int, event: TaxPaymentEvent, db: Session = Depends(get_db)
):
    return _apply(db, lambda: PostingRules(db).post_tax_payment(tenant_id, event))


@router.get("/issues", response_model=list[PostingIssueResponse])
def list_issues(
    tenant_id: int,
    include_resolved: bool = False,
    db: Session = Depends(get_db),
):
    """Business documents whose accounting impact is still missing."""
    return PostingRules(db).list_issues(tenant_id, include_resolved)

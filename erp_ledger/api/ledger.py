"""
Ledger API endpoints.

Chart of accounts, manual entries and entry validation. The
routes only handle HTTP concerns; the services own the rules
and never commit, so each route commits on success and rolls
back when a service raises.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from erp_ledger.api.errors import http_error
from erp_ledger.models.base import get_db
from erp_ledger.schemas.ledger import (
    AccountCreate,
    AccountResponse,
    ChartInitResponse,
    LedgerEntryResponse,
    PostEntryRequest,
)
from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.chart_of_accounts import ChartService
from erp_ledger.services.ledger_poster import LedgerPoster

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.post(
    "/tenants/{tenant_id}/chart/initialize",
    response_model=ChartInitResponse,
)
def initialize_chart(tenant_id: int, db: Session = Depends(get_db)):
    """Seed the SYSCOHADA chart and standard journals. Safe to repeat."""
    result = ChartService(db).initialize_chart(tenant_id)
    db.commit()
    return ChartInitResponse(
        accounts_created=result.accounts_created,
        accounts_existing=result.accounts_existing,
        journals_created=result.journals_created,
        total_accounts=result.total_accounts,
    )


@router.post(
    "/tenants/{tenant_id}/accounts",
    response_model=AccountResponse,
    status_code=201,
)
def create_account(
    tenant_id: int,
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    try:
        account = ChartService(db).create_account(tenant_id, request)
        db.commit()
        return account
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get(
    "/tenants/{tenant_id}/accounts",
    response_model=list[AccountResponse],
)
def list_accounts(
    tenant_id: int,
    class_digit: int | None = Query(default=None, ge=1, le=9),
    db: Session = Depends(get_db),
):
    return AccountDirectory(db).list_accounts(tenant_id, class_digit)


@router.get(
    "/tenants/{tenant_id}/accounts/resolve",
    response_model=AccountResponse,
)
def resolve_account(
    tenant_id: int,
    code: str = Query(min_length=1, max_length=20),
    db: Session = Depends(get_db),
):
    """
    Resolve an account code the way posting does: exact match
    first, otherwise the lowest active code with that prefix.
    """
    account = AccountDirectory(db).resolve_by_code(tenant_id, code)
    if account is None:
        raise HTTPException(
            status_code=404,
            detail={
                "code": "ACCOUNT_NOT_FOUND",
                "message": f"No active account matches {code!r}",
            },
        )
    return account


@router.post(
    "/tenants/{tenant_id}/entries",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def post_entry(
    tenant_id: int,
    request: PostEntryRequest,
    db: Session = Depends(get_db),
):
    """
    Post a balanced entry.

    Nothing is written unless every line's account resolves and
    total debit equals total credit.
    """
    try:
        entry = LedgerPoster(db).post(tenant_id, request)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get(
    "/tenants/{tenant_id}/entries",
    response_model=list[LedgerEntryResponse],
)
def list_entries(
    tenant_id: int,
    start: date | None = None,
    end: date | None = None,
    journal_code: str | None = None,
    db: Session = Depends(get_db),
):
    return LedgerPoster(db).list_entries(
        tenant_id, start, end, journal_code.upper() if journal_code else None
    )


@router.get(
    "/tenants/{tenant_id}/entries/{entry_id}",
    response_model=LedgerEntryResponse,
)
def get_entry(tenant_id: int, entry_id: int, db: Session = Depends(get_db)):
    try:
        return LedgerPoster(db).get_entry(tenant_id, entry_id)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/tenants/{tenant_id}/entries/{entry_id}/validate",
    response_model=LedgerEntryResponse,
)
def validate_entry(tenant_id: int, entry_id: int, db: Session = Depends(get_db)):
    """Move a draft entry to validated. Validated entries are final."""
    try:
        entry = LedgerPoster(db).validate_entry(tenant_id, entry_id)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)

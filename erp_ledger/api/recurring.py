"""
Recurring entry template endpoints.

A failed fire still leaves a FAILED generation history row, so
the fire routes commit that row before returning the error. Only
an unknown template is rolled back outright.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from erp_ledger.api.errors import http_error
from erp_ledger.exceptions import TemplateNotFoundError
from erp_ledger.models.base import get_db
from erp_ledger.schemas.ledger import LedgerEntryResponse
from erp_ledger.schemas.recurring import (
    FireDueResponse,
    FireRequest,
    GenerationHistoryResponse,
    RecurringTemplateCreate,
    RecurringTemplateResponse,
    RecurringTemplateUpdate,
)
from erp_ledger.services.recurring_scheduler import RecurringScheduler

router = APIRouter(
    prefix="/recurring/tenants/{tenant_id}/templates", tags=["Recurring entries"]
)


@router.post("", response_model=RecurringTemplateResponse, status_code=201)
def create_template(
    tenant_id: int,
    request: RecurringTemplateCreate,
    db: Session = Depends(get_db),
):
    try:
        template = RecurringScheduler(db).create_template(tenant_id, request)
        db.commit()
        return template
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[RecurringTemplateResponse])
def list_templates(
    tenant_id: int,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    return RecurringScheduler(db).list_templates(tenant_id, active_only)


@router.post("/fire-due", response_model=FireDueResponse)
def fire_due(
    tenant_id: int,
    today: date | None = None,
    db: Session = Depends(get_db),
):
    """Scheduled-job entry point: fire every template that is due."""
    try:
        result = RecurringScheduler(db).fire_due(tenant_id, today)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    return FireDueResponse(generated=result.generated, failed=result.failed)


@router.get("/{template_id}", response_model=RecurringTemplateResponse)
def get_template(tenant_id: int, template_id: int, db: Session = Depends(get_db)):
    try:
        return RecurringScheduler(db).get_template(tenant_id, template_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{template_id}", response_model=RecurringTemplateResponse)
def update_template(
    tenant_id: int,
    template_id: int,
    request: RecurringTemplateUpdate,
    db: Session = Depends(get_db),
):
    try:
        template = RecurringScheduler(db).update_template(
            tenant_id, template_id, request
        )
        db.commit()
        return template
    except ValueError as e:
        db.rollback()
        raise http_error(e)


def _set_active(db: Session, tenant_id: int, template_id: int, active: bool):
    try:
        template = RecurringScheduler(db).set_active(tenant_id, template_id, active)
        db.commit()
        return template
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{template_id}/activate", response_model=RecurringTemplateResponse)
def activate_template(tenant_id: int, template_id: int, db: Session = Depends(get_db)):
    return _set_active(db, tenant_id, template_id, True)


@router.post("/{template_id}/deactivate", response_model=RecurringTemplateResponse)
def deactivate_template(tenant_id: int, template_id: int, db: Session = Depends(get_db)):
    return _set_active(db, tenant_id, template_id, False)


@router.post(
    "/{template_id}/fire",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def fire_template(
    tenant_id: int,
    template_id: int,
    request: FireRequest | None = None,
    db: Session = Depends(get_db),
):
    """
    Generate the entry for the period containing posting_date
    (today when omitted). A period can only be generated once.
    """
    request = request or FireRequest()
    try:
        entry = RecurringScheduler(db).fire(
            tenant_id,
            template_id,
            posting_date=request.posting_date,
            reference_amount=request.reference_amount,
        )
        db.commit()
        return entry
    except TemplateNotFoundError as e:
        db.rollback()
        raise http_error(e)
    except ValueError as e:
        # Keep the FAILED history row written by the scheduler.
        db.commit()
        raise http_error(e)


@router.get(
    "/{template_id}/history",
    response_model=list[GenerationHistoryResponse],
)
def get_history(
    tenant_id: int,
    template_id: int,
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    try:
        return RecurringScheduler(db).get_history(tenant_id, template_id, limit)
    except ValueError as e:
        raise http_error(e)

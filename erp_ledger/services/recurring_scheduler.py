"""
Recurring entry scheduler.

A template is a stored line set plus a recurrence policy (monthly,
quarterly, semi-annual, annual on a given day of the month). Firing
a template instantiates its lines and posts them through the
LedgerPoster, exactly as a manual entry would be posted.

Rules:
- a template generates at most one entry per period; a pre-check
  and the (template_id, generated_period) unique constraint both
  enforce it
- every fire attempt leaves exactly one history row, success or
  failure
- next_generation_date is always computed from the original start
  date so month-end schedules never drift (Jan 31 -> Feb 29 ->
  Mar 31, not Mar 29)
- next_generation_date always lies after today and after the last
  generated period; missed periods are skipped, never back-posted
"""

import logging
import time
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp_ledger.config import Settings, get_settings
from erp_ledger.exceptions import (
    DuplicateFireError,
    InactiveTemplateError,
    LedgerError,
    PostingConflictError,
    TemplateNotFoundError,
    TemplateWindowError,
)
from erp_ledger.models.enums import EntrySide, GenerationStatus, RecurrenceFrequency
from erp_ledger.models.generation_history import GenerationHistory
from erp_ledger.models.ledger_entry import LedgerEntry
from erp_ledger.models.recurring_template import RecurringEntryTemplate
from erp_ledger.schemas.ledger import LedgerLineCreate, PostEntryRequest
from erp_ledger.schemas.recurring import (
    RecurringTemplateCreate,
    RecurringTemplateUpdate,
    TemplateLine,
)
from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.journal_directory import JournalDirectory
from erp_ledger.services.ledger_poster import LedgerPoster, ensure_balanced

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

_SCHEDULE_FIELDS = {"frequency", "day_of_month", "start_date", "end_date"}


def _pin_day(anchor: date, day_of_month: int) -> date:
    last_day = monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=min(day_of_month, last_day))


def compute_next_date(
    start_date: date,
    frequency: RecurrenceFrequency,
    day_of_month: int,
    today: date | None = None,
) -> date:
    """
    First scheduled date strictly after ``today``.

    Whole periods are added to the original start date, the day is
    pinned to day_of_month (clamped to the month's last day), and a
    date before the start itself is never returned.

    >>> compute_next_date(date(2024, 1, 31), RecurrenceFrequency.MONTHLY,
    ...                   31, today=date(2024, 2, 15))
    datetime.date(2024, 2, 29)
    """
    today = today or date.today()
    periods = 0
    while True:
        anchor = start_date + relativedelta(months=frequency.months * periods)
        candidate = _pin_day(anchor, day_of_month)
        if candidate > today and candidate >= start_date:
            return candidate
        periods += 1


def generation_period(posting_date: date, frequency: RecurrenceFrequency) -> str:
    """Key naming the recurrence period a posting date falls in."""
    year = posting_date.year
    if frequency == RecurrenceFrequency.MONTHLY:
        return f"{year}-{posting_date.month:02d}"
    if frequency == RecurrenceFrequency.QUARTERLY:
        return f"{year}-Q{(posting_date.month - 1) // 3 + 1}"
    if frequency == RecurrenceFrequency.SEMI_ANNUAL:
        return f"{year}-H{1 if posting_date.month <= 6 else 2}"
    return str(year)


def period_end(posting_date: date, frequency: RecurrenceFrequency) -> date:
    """Last day of the recurrence period a posting date falls in."""
    months = frequency.months
    first_month = (posting_date.month - 1) // months * months + 1
    start = date(posting_date.year, first_month, 1)
    return start + relativedelta(months=months) - relativedelta(days=1)


@dataclass
class FireDueResult:
    """Outcome of one scheduled run: entry ids posted, failures by template id."""
    generated: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)


class RecurringScheduler:

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.poster = LedgerPoster(db, self.settings)
        self.accounts = AccountDirectory(db)
        self.journals = JournalDirectory(db)

    # --- Line handling ---

    def _check_lines(
        self,
        tenant_id: int,
        lines: list[TemplateLine],
        reference_amount: Decimal | None,
    ) -> None:
        """
        Reject a line set that could not post.

        With a reference amount the instantiated lines must balance.
        Without one, fixed amounts and shares must each balance on
        their own so that any reference amount given at fire time
        produces a balanced entry.
        """
        tolerance = self.settings.BALANCE_TOLERANCE
        for line in lines:
            if line.account_id is not None:
                self.accounts.require_by_id(tenant_id, line.account_id)
            else:
                self.accounts.require_by_code(tenant_id, line.account_code)

        if reference_amount is not None:
            built = self._instantiate(
                [line.model_dump(mode="json") for line in lines], reference_amount
            )
            ensure_balanced(
                sum((line.debit for line in built), ZERO),
                sum((line.credit for line in built), ZERO),
                tolerance,
            )
            return

        fixed = {EntrySide.DEBIT: ZERO, EntrySide.CREDIT: ZERO}
        shares = {EntrySide.DEBIT: ZERO, EntrySide.CREDIT: ZERO}
        for line in lines:
            if line.amount is not None:
                fixed[line.side] += line.amount
            else:
                shares[line.side] += line.share
        ensure_balanced(fixed[EntrySide.DEBIT], fixed[EntrySide.CREDIT], tolerance)
        if shares[EntrySide.DEBIT] != shares[EntrySide.CREDIT]:
            raise LedgerError(
                f"Template shares do not balance: "
                f"debit={shares[EntrySide.DEBIT]}, credit={shares[EntrySide.CREDIT]}"
            )

    @staticmethod
    def _instantiate(
        line_template: list[dict], reference_amount: Decimal | None
    ) -> list[LedgerLineCreate]:
        """Turn stored template lines into concrete ledger lines."""
        built = []
        for raw in line_template:
            if raw.get("amount") is not None:
                amount = Decimal(str(raw["amount"]))
            else:
                if reference_amount is None:
                    raise LedgerError(
                        "Template has share lines but no reference amount"
                    )
                amount = (Decimal(str(raw["share"])) * reference_amount).quantize(
                    CENT, rounding=ROUND_HALF_UP
                )
            if amount <= ZERO:
                raise LedgerError(
                    f"Template line on account "
                    f"{raw.get('account_code') or raw.get('account_id')} "
                    f"amounts to {amount}"
                )
            side = EntrySide(raw["side"])
            try:
                built.append(LedgerLineCreate(
                    account_id=raw.get("account_id"),
                    account_code=raw.get("account_code"),
                    debit=amount if side == EntrySide.DEBIT else ZERO,
                    credit=amount if side == EntrySide.CREDIT else ZERO,
                    label=raw.get("label"),
                ))
            except ValidationError as exc:
                raise LedgerError(f"Invalid template line: {exc}") from exc
        return built

    # --- Template lifecycle ---

    def create_template(
        self,
        tenant_id: int,
        request: RecurringTemplateCreate,
        today: date | None = None,
    ) -> RecurringEntryTemplate:
        self._check_lines(tenant_id, request.lines, request.reference_amount)
        journal = self.journals.get_or_create(tenant_id, request.journal_code.upper())

        template = RecurringEntryTemplate(
            tenant_id=tenant_id,
            name=request.name,
            description=request.description,
            journal_id=journal.id,
            frequency=request.frequency,
            day_of_month=request.day_of_month,
            start_date=request.start_date,
            end_date=request.end_date,
            reference_amount=request.reference_amount,
            line_template=[line.model_dump(mode="json") for line in request.lines],
            is_active=True,
        )
        template.next_generation_date = self._next_date(
            template, today or date.today()
        )
        self.db.add(template)
        self.db.flush()

        logger.info(
            "recurring_template_created",
            extra={
                "tenant_id": tenant_id,
                "template_id": template.id,
                "frequency": request.frequency.value,
                "next_generation_date": str(template.next_generation_date),
            },
        )
        return template

    def get_template(self, tenant_id: int, template_id: int) -> RecurringEntryTemplate:
        template = self.db.execute(
            select(RecurringEntryTemplate).where(
                RecurringEntryTemplate.tenant_id == tenant_id,
                RecurringEntryTemplate.id == template_id,
            )
        ).scalar_one_or_none()
        if template is None:
            raise TemplateNotFoundError(f"Recurring template {template_id} not found")
        return template

    def list_templates(
        self, tenant_id: int, active_only: bool = False
    ) -> list[RecurringEntryTemplate]:
        query = select(RecurringEntryTemplate).where(
            RecurringEntryTemplate.tenant_id == tenant_id
        )
        if active_only:
            query = query.where(RecurringEntryTemplate.is_active.is_(True))
        templates = self.db.execute(
            query.order_by(RecurringEntryTemplate.id)
        ).scalars().all()
        return list(templates)

    def update_template(
        self,
        tenant_id: int,
        template_id: int,
        request: RecurringTemplateUpdate,
        today: date | None = None,
    ) -> RecurringEntryTemplate:
        template = self.get_template(tenant_id, template_id)
        changes = request.model_dump(exclude_unset=True)

        start = changes.get("start_date", template.start_date)
        end = changes.get("end_date", template.end_date)
        if end is not None and end < start:
            raise TemplateWindowError("end_date must not be before start_date")

        if "lines" in changes or "reference_amount" in changes:
            lines = (
                request.lines
                if request.lines is not None
                else [TemplateLine(**raw) for raw in template.line_template]
            )
            reference = changes.get("reference_amount", template.reference_amount)
            self._check_lines(tenant_id, lines, reference)
            if request.lines is not None:
                template.line_template = [
                    line.model_dump(mode="json") for line in request.lines
                ]

        for name in (
            "name", "description", "frequency", "day_of_month",
            "start_date", "end_date", "reference_amount",
        ):
            if name in changes:
                setattr(template, name, changes[name])

        if _SCHEDULE_FIELDS & changes.keys():
            template.next_generation_date = self._next_date(
                template, today or date.today(), after=template.last_generation_date
            )

        self.db.flush()
        logger.info(
            "recurring_template_updated",
            extra={
                "tenant_id": tenant_id,
                "template_id": template.id,
                "fields": sorted(changes),
            },
        )
        return template

    def set_active(
        self,
        tenant_id: int,
        template_id: int,
        active: bool,
        today: date | None = None,
    ) -> RecurringEntryTemplate:
        template = self.get_template(tenant_id, template_id)
        template.is_active = active
        if active:
            template.next_generation_date = self._next_date(
                template, today or date.today(), after=template.last_generation_date
            )
        self.db.flush()
        logger.info(
            "recurring_template_activated" if active else "recurring_template_deactivated",
            extra={"tenant_id": tenant_id, "template_id": template.id},
        )
        return template

    def _next_date(
        self,
        template: RecurringEntryTemplate,
        today: date,
        after: date | None = None,
    ) -> date | None:
        """
        Next scheduled date, or None once the end date is passed.

        The date is always after today, so missed periods are skipped
        rather than back-posted. When ``after`` is given the date also
        lies beyond the end of the period containing it.
        """
        reference = today
        if after is not None:
            reference = max(reference, period_end(after, template.frequency))
        next_date = compute_next_date(
            template.start_date, template.frequency, template.day_of_month,
            today=reference,
        )
        if template.end_date is not None and next_date > template.end_date:
            return None
        return next_date

    # --- Firing ---

    def fire(
        self,
        tenant_id: int,
        template_id: int,
        posting_date: date | None = None,
        reference_amount: Decimal | None = None,
        today: date | None = None,
    ) -> LedgerEntry:
        """
        Generate the entry for the period containing posting_date.

        On failure a FAILED history row is left in the session and
        the error is re-raised; the caller decides whether to commit
        that row. On success the next date moves past both today and
        the generated period.
        """
        template = self.get_template(tenant_id, template_id)
        today = today or date.today()
        posting_date = posting_date or today
        period = generation_period(posting_date, template.frequency)
        if reference_amount is None:
            reference_amount = template.reference_amount

        try:
            if not template.is_active:
                raise InactiveTemplateError(
                    f"Recurring template {template.id} is inactive"
                )
            if posting_date < template.start_date or (
                template.end_date is not None and posting_date > template.end_date
            ):
                raise TemplateWindowError(
                    f"Posting date {posting_date} is outside the template window "
                    f"{template.start_date} to {template.end_date or 'open'}"
                )
            if self._already_generated(template.id, period):
                raise DuplicateFireError(template.id, period)

            lines = self._instantiate(template.line_template, reference_amount)
            try:
                request = PostEntryRequest(
                    journal_code=template.journal.code,
                    entry_date=posting_date,
                    label=template.name,
                    external_ref=f"REC-{template.id}-{int(time.time())}",
                    source_type="recurring",
                    lines=lines,
                )
            except ValidationError as exc:
                raise LedgerError(f"Invalid recurring entry: {exc}") from exc

            with self.db.begin_nested():
                entry = self.poster.post(tenant_id, request)
                self.db.add(GenerationHistory(
                    tenant_id=tenant_id,
                    template_id=template.id,
                    entry_id=entry.id,
                    posting_date=posting_date,
                    target_period=period,
                    generated_period=period,
                    status=GenerationStatus.SUCCESS,
                ))
                self.db.flush()
        except IntegrityError as exc:
            if self._already_generated(template.id, period):
                error = DuplicateFireError(template.id, period)
            else:
                error = PostingConflictError(
                    f"Recurring template {template.id} could not post "
                    f"for period {period}: {exc.orig}"
                )
            self._record_failure(template, posting_date, period, error)
            raise error from exc
        except LedgerError as exc:
            self._record_failure(template, posting_date, period, exc)
            raise

        last = template.last_generation_date
        if last is None or posting_date > last:
            template.last_generation_date = posting_date
        template.next_generation_date = self._next_date(
            template, today, after=template.last_generation_date
        )
        self.db.flush()

        logger.info(
            "recurring_entry_generated",
            extra={
                "tenant_id": tenant_id,
                "template_id": template.id,
                "period": period,
                "entry_number": entry.entry_number,
            },
        )
        return entry

    def _already_generated(self, template_id: int, period: str) -> bool:
        existing = self.db.execute(
            select(GenerationHistory.id).where(
                GenerationHistory.template_id == template_id,
                GenerationHistory.generated_period == period,
            )
        ).first()
        return existing is not None

    def _record_failure(
        self,
        template: RecurringEntryTemplate,
        posting_date: date,
        period: str,
        error: Exception,
    ) -> None:
        self.db.add(GenerationHistory(
            tenant_id=template.tenant_id,
            template_id=template.id,
            entry_id=None,
            posting_date=posting_date,
            target_period=period,
            generated_period=None,
            status=GenerationStatus.FAILED,
            error_message=str(error),
        ))
        self.db.flush()
        logger.warning(
            "recurring_entry_failed",
            extra={
                "tenant_id": template.tenant_id,
                "template_id": template.id,
                "period": period,
                "error": str(error),
            },
        )

    def fire_due(self, tenant_id: int, today: date | None = None) -> FireDueResult:
        """
        Fire every active template whose next date has arrived.

        Each template is posted on its scheduled date. One failure
        is recorded and the batch carries on with the next template.
        A template whose period was already generated is moved past
        that period so it does not fail again on the next run.
        """
        today = today or date.today()
        due = self.db.execute(
            select(RecurringEntryTemplate)
            .where(
                RecurringEntryTemplate.tenant_id == tenant_id,
                RecurringEntryTemplate.is_active.is_(True),
                RecurringEntryTemplate.next_generation_date.is_not(None),
                RecurringEntryTemplate.next_generation_date <= today,
            )
            .order_by(RecurringEntryTemplate.next_generation_date, RecurringEntryTemplate.id)
        ).scalars().all()

        result = FireDueResult()
        for template in due:
            scheduled = template.next_generation_date
            try:
                entry = self.fire(
                    tenant_id, template.id, posting_date=scheduled, today=today
                )
            except DuplicateFireError as exc:
                result.failed[template.id] = str(exc)
                template.next_generation_date = self._next_date(
                    template, today, after=scheduled
                )
                self.db.flush()
                continue
            except LedgerError as exc:
                result.failed[template.id] = str(exc)
                continue
            result.generated.append(entry.id)

        logger.info(
            "recurring_run_completed",
            extra={
                "tenant_id": tenant_id,
                "generated": len(result.generated),
                "failed": len(result.failed),
            },
        )
        return result

    def get_history(
        self, tenant_id: int, template_id: int, limit: int | None = None
    ) -> list[GenerationHistory]:
        """Fire attempts for a template, newest first."""
        self.get_template(tenant_id, template_id)
        rows = self.db.execute(
            select(GenerationHistory)
            .where(
                GenerationHistory.tenant_id == tenant_id,
                GenerationHistory.template_id == template_id,
            )
            .order_by(GenerationHistory.created_at.desc(), GenerationHistory.id.desc())
            .limit(limit or self.settings.HISTORY_PAGE_SIZE)
        ).scalars().all()
        return list(rows)

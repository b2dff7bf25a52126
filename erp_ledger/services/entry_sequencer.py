"""
Entry sequencer: human-readable entry numbers.

Numbers look like ``VT-2024-00042``: journal code, posting year,
zero-padded sequence. The sequence is scoped to (tenant, journal,
year) and comes from a counter row locked with SELECT ... FOR
UPDATE, never from counting existing entries, so two concurrent
postings cannot be handed the same number and a deleted entry
never frees its number for reuse.

The increment only becomes visible when the caller commits; a
rolled-back posting returns its value.
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp_ledger.config import Settings, get_settings
from erp_ledger.models.entry_sequence import EntrySequence

logger = logging.getLogger(__name__)


class EntrySequencer:

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def _lock_counter(
        self, tenant_id: int, journal_code: str, year: int
    ) -> EntrySequence | None:
        return self.db.execute(
            select(EntrySequence)
            .where(
                EntrySequence.tenant_id == tenant_id,
                EntrySequence.journal_code == journal_code,
                EntrySequence.year == year,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, tenant_id: int, journal_code: str, year: int) -> int:
        counter = self._lock_counter(tenant_id, journal_code, year)

        if counter is None:
            # First number of the year for this journal. A concurrent
            # caller may insert the same row; fall back to locking it.
            savepoint = self.db.begin_nested()
            try:
                counter = EntrySequence(
                    tenant_id=tenant_id,
                    journal_code=journal_code,
                    year=year,
                    current_value=1,
                )
                self.db.add(counter)
                self.db.flush()
                savepoint.commit()
                return 1
            except IntegrityError:
                savepoint.rollback()
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"tenant_id": tenant_id, "journal_code": journal_code},
                )
                counter = self._lock_counter(tenant_id, journal_code, year)
                if counter is None:
                    raise

        counter.current_value += 1
        self.db.flush()
        return counter.current_value

    def next_number(
        self, tenant_id: int, journal_code: str, entry_date: date
    ) -> str:
        """Allocate the next entry number for the entry's posting year."""
        year = entry_date.year
        value = self.next_value(tenant_id, journal_code, year)
        number = f"{journal_code}-{year}-{value:0{self.settings.ENTRY_NUMBER_WIDTH}d}"
        logger.debug(
            "entry_number_allocated",
            extra={"tenant_id": tenant_id, "entry_number": number},
        )
        return number

    def current_value(self, tenant_id: int, journal_code: str, year: int) -> int:
        """Last value handed out, 0 if the counter was never used."""
        value = self.db.execute(
            select(EntrySequence.current_value).where(
                EntrySequence.tenant_id == tenant_id,
                EntrySequence.journal_code == journal_code,
                EntrySequence.year == year,
            )
        ).scalar_one_or_none()
        return value or 0

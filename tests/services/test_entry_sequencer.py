"""
Tests for entry numbering.

Numbers come from a counter row per (tenant, journal, year), so
they never repeat even after an entry is deleted.
"""

import random
import threading
import time
from datetime import date
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

from erp_ledger.config import Settings
from erp_ledger.models.ledger_entry import LedgerEntry, LedgerLine
from erp_ledger.schemas.ledger import LedgerLineCreate, PostEntryRequest
from erp_ledger.services.entry_sequencer import EntrySequencer
from erp_ledger.services.ledger_poster import LedgerPoster

TENANT = 1


def sale_request(entry_date=date(2024, 3, 10)):
    return PostEntryRequest(
        journal_code="VT",
        entry_date=entry_date,
        label="Invoice",
        lines=[
            LedgerLineCreate(account_code="411", debit=Decimal("100.00")),
            LedgerLineCreate(account_code="701", credit=Decimal("100.00")),
        ],
    )


class TestNextNumber:

    def test_first_number_of_the_year(self, db_session):
        number = EntrySequencer(db_session).next_number(TENANT, "VT", date(2024, 1, 5))
        assert number == "VT-2024-00001"

    def test_numbers_increase(self, db_session):
        sequencer = EntrySequencer(db_session)
        numbers = [
            sequencer.next_number(TENANT, "VT", date(2024, 1, 5)) for _ in range(3)
        ]
        assert numbers == ["VT-2024-00001", "VT-2024-00002", "VT-2024-00003"]

    def test_scoped_by_journal_year_and_tenant(self, db_session):
        sequencer = EntrySequencer(db_session)
        sequencer.next_number(TENANT, "VT", date(2024, 1, 5))

        assert sequencer.next_number(TENANT, "AC", date(2024, 1, 5)) == "AC-2024-00001"
        assert sequencer.next_number(TENANT, "VT", date(2025, 1, 5)) == "VT-2025-00001"
        assert sequencer.next_number(2, "VT", date(2024, 1, 5)) == "VT-2024-00001"

    def test_width_comes_from_settings(self, db_session):
        settings = Settings()
        settings.ENTRY_NUMBER_WIDTH = 3

        number = EntrySequencer(db_session, settings).next_number(
            TENANT, "OD", date(2024, 6, 1)
        )

        assert number == "OD-2024-001"

    def test_current_value(self, db_session):
        sequencer = EntrySequencer(db_session)
        assert sequencer.current_value(TENANT, "VT", 2024) == 0

        sequencer.next_value(TENANT, "VT", 2024)
        sequencer.next_value(TENANT, "VT", 2024)

        assert sequencer.current_value(TENANT, "VT", 2024) == 2


class TestNoReuse:

    def test_deleted_entry_number_is_not_reused(self, seeded):
        poster = LedgerPoster(seeded)
        first = poster.post(TENANT, sale_request())
        seeded.commit()

        seeded.execute(delete(LedgerLine).where(LedgerLine.entry_id == first.id))
        seeded.execute(delete(LedgerEntry).where(LedgerEntry.id == first.id))
        seeded.commit()

        second = poster.post(TENANT, sale_request())
        seeded.commit()

        assert second.entry_number == "VT-2024-00002"

    def test_numbers_unique_across_postings(self, seeded):
        poster = LedgerPoster(seeded)
        numbers = {poster.post(TENANT, sale_request()).entry_number for _ in range(5)}
        assert len(numbers) == 5


class TestConcurrentPosting:

    WORKERS = 5
    POSTS_PER_WORKER = 2

    def _post_with_retry(self, session, request, attempts=50):
        poster = LedgerPoster(session)
        for _ in range(attempts):
            try:
                entry = poster.post(TENANT, request)
                session.commit()
                return entry.entry_number
            except OperationalError as exc:
                # SQLite allows one writer; a blocked writer backs off and retries.
                session.rollback()
                if "locked" not in str(exc):
                    raise
                time.sleep(random.uniform(0.01, 0.05))
        raise AssertionError("could not post after retries")

    def test_concurrent_postings_get_distinct_numbers(self, seeded, session_factory):
        barrier = threading.Barrier(self.WORKERS)
        numbers = []
        errors = []
        lock = threading.Lock()

        def worker():
            session = session_factory()
            try:
                barrier.wait()
                for _ in range(self.POSTS_PER_WORKER):
                    number = self._post_with_retry(session, sale_request())
                    with lock:
                        numbers.append(number)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=worker) for _ in range(self.WORKERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        total = self.WORKERS * self.POSTS_PER_WORKER
        assert errors == []
        assert len(numbers) == total
        assert len(set(numbers)) == total
        assert sorted(numbers) == [f"VT-2024-{n:05d}" for n in range(1, total + 1)]

        check = session_factory()
        try:
            assert EntrySequencer(check).current_value(TENANT, "VT", 2024) == total
        finally:
            check.close()

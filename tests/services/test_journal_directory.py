"""
Tests for journal get-or-create.
"""

from erp_ledger.models.enums import JournalType
from erp_ledger.services.journal_directory import JournalDirectory

TENANT = 1


class TestGetOrCreate:

    def test_standard_code_gets_standard_name_and_type(self, db_session):
        journal = JournalDirectory(db_session).get_or_create(TENANT, "BQ")

        assert journal.name == "Bank Journal"
        assert journal.journal_type == JournalType.BANK

    def test_unknown_code_defaults_to_misc(self, db_session):
        journal = JournalDirectory(db_session).get_or_create(TENANT, "PR")

        assert journal.name == "Journal PR"
        assert journal.journal_type == JournalType.MISC

    def test_existing_journal_is_returned_unchanged(self, db_session):
        directory = JournalDirectory(db_session)
        first = directory.get_or_create(TENANT, "VT")

        again = directory.get_or_create(
            TENANT, "VT", name="Other name", journal_type=JournalType.MISC
        )

        assert again.id == first.id
        assert again.journal_type == JournalType.SALES

    def test_journals_are_per_tenant(self, db_session):
        directory = JournalDirectory(db_session)
        mine = directory.get_or_create(TENANT, "VT")
        theirs = directory.get_or_create(2, "VT")

        assert mine.id != theirs.id
        assert directory.get(3, "VT") is None

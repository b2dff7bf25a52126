"""
Tests for chart of accounts seeding and account creation.
"""

import pytest
from sqlalchemy import func, select

from erp_ledger.exceptions import DuplicateAccountError
from erp_ledger.models.account import Account
from erp_ledger.models.enums import AccountCategory, JournalType
from erp_ledger.models.journal import Journal
from erp_ledger.schemas.ledger import AccountCreate
from erp_ledger.services.chart_of_accounts import (
    ChartService,
    STANDARD_JOURNALS,
    SYSCOHADA_CHART,
)

TENANT = 1


def count_accounts(db, tenant_id):
    return db.execute(
        select(func.count()).select_from(Account).where(Account.tenant_id == tenant_id)
    ).scalar_one()


class TestInitializeChart:

    def test_seeds_every_account_and_journal(self, db_session):
        result = ChartService(db_session).initialize_chart(TENANT)
        db_session.commit()

        assert result.accounts_created == len(SYSCOHADA_CHART)
        assert result.accounts_existing == 0
        assert result.journals_created == len(STANDARD_JOURNALS)
        assert count_accounts(db_session, TENANT) == len(SYSCOHADA_CHART)

    def test_class_digit_follows_code(self, db_session):
        ChartService(db_session).initialize_chart(TENANT)
        bank = db_session.execute(
            select(Account).where(Account.tenant_id == TENANT, Account.code == "52")
        ).scalar_one()

        assert bank.class_digit == 5
        assert bank.category == AccountCategory.ASSET

    def test_second_run_creates_nothing(self, db_session):
        service = ChartService(db_session)
        service.initialize_chart(TENANT)
        db_session.commit()

        result = service.initialize_chart(TENANT)

        assert result.accounts_created == 0
        assert result.journals_created == 0
        assert result.total_accounts == len(SYSCOHADA_CHART)

    def test_keeps_existing_custom_accounts(self, db_session):
        service = ChartService(db_session)
        service.create_account(TENANT, AccountCreate(
            code="5211", name="Bank A", category=AccountCategory.ASSET,
        ))

        result = service.initialize_chart(TENANT)

        assert result.accounts_existing == 1
        assert result.total_accounts == len(SYSCOHADA_CHART) + 1

    def test_tenants_are_seeded_independently(self, db_session):
        service = ChartService(db_session)
        service.initialize_chart(TENANT)
        result = service.initialize_chart(2)

        assert result.accounts_created == len(SYSCOHADA_CHART)
        assert count_accounts(db_session, 2) == len(SYSCOHADA_CHART)

    def test_payroll_journal_is_misc(self, db_session):
        ChartService(db_session).initialize_chart(TENANT)
        journal = db_session.execute(
            select(Journal).where(Journal.tenant_id == TENANT, Journal.code == "SA")
        ).scalar_one()

        assert journal.journal_type == JournalType.MISC


class TestCreateAccount:

    def test_create_account_succeeds(self, db_session):
        account = ChartService(db_session).create_account(TENANT, AccountCreate(
            code="4111", name="Client ACME", category=AccountCategory.ASSET,
        ))
        db_session.commit()

        assert account.id is not None
        assert account.class_digit == 4
        assert account.is_active is True

    def test_duplicate_code_rejected(self, db_session):
        service = ChartService(db_session)
        request = AccountCreate(
            code="4111", name="Client ACME", category=AccountCategory.ASSET,
        )
        service.create_account(TENANT, request)

        with pytest.raises(DuplicateAccountError, match="already exists"):
            service.create_account(TENANT, request)

    def test_same_code_allowed_for_other_tenant(self, db_session):
        service = ChartService(db_session)
        request = AccountCreate(
            code="4111", name="Client ACME", category=AccountCategory.ASSET,
        )
        first = service.create_account(TENANT, request)
        second = service.create_account(2, request)

        assert first.id != second.id

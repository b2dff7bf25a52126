"""
Tests for account resolution.

Exact code first, then the lowest active code with the prefix,
always within one tenant.
"""

import pytest

from erp_ledger.exceptions import UnresolvedAccountError
from erp_ledger.models.enums import AccountCategory
from erp_ledger.schemas.ledger import AccountCreate
from erp_ledger.services.account_directory import AccountDirectory
from erp_ledger.services.chart_of_accounts import ChartService

TENANT = 1


def add_account(db, tenant_id, code, category=AccountCategory.ASSET):
    return ChartService(db).create_account(tenant_id, AccountCreate(
        code=code, name=f"Account {code}", category=category,
    ))


class TestResolveByCode:

    def test_exact_match_wins_over_longer_codes(self, seeded):
        account = AccountDirectory(seeded).resolve_by_code(TENANT, "44")
        assert account.code == "44"

    def test_prefix_picks_lowest_code(self, db_session):
        add_account(db_session, TENANT, "4012")
        add_account(db_session, TENANT, "4011")

        account = AccountDirectory(db_session).resolve_by_code(TENANT, "401")

        assert account.code == "4011"

    def test_stock_prefix_resolves_to_class_3_account(self, seeded):
        account = AccountDirectory(seeded).resolve_by_code(TENANT, "31")
        assert account.code == "310"

    def test_inactive_exact_match_is_skipped(self, db_session):
        exact = add_account(db_session, TENANT, "521")
        add_account(db_session, TENANT, "5211")
        exact.is_active = False
        db_session.flush()

        account = AccountDirectory(db_session).resolve_by_code(TENANT, "521")

        assert account.code == "5211"

    def test_unknown_code_returns_none(self, seeded):
        assert AccountDirectory(seeded).resolve_by_code(TENANT, "999") is None

    def test_other_tenant_chart_is_invisible(self, seeded):
        assert AccountDirectory(seeded).resolve_by_code(2, "411") is None

    def test_require_raises_typed_error(self, seeded):
        with pytest.raises(UnresolvedAccountError) as exc_info:
            AccountDirectory(seeded).require_by_code(2, "411")

        assert exc_info.value.code == "ACCOUNT_NOT_FOUND"
        assert exc_info.value.tenant_id == 2


class TestResolveById:

    def test_own_account_resolves(self, db_session):
        account = add_account(db_session, TENANT, "4111")
        assert AccountDirectory(db_session).resolve_by_id(TENANT, account.id) is account

    def test_foreign_account_id_does_not_resolve(self, db_session):
        foreign = add_account(db_session, 2, "4111")

        directory = AccountDirectory(db_session)

        assert directory.resolve_by_id(TENANT, foreign.id) is None
        with pytest.raises(UnresolvedAccountError):
            directory.require_by_id(TENANT, foreign.id)


class TestListAccounts:

    def test_filter_by_class(self, seeded):
        accounts = AccountDirectory(seeded).list_accounts(TENANT, class_digit=5)

        assert accounts
        assert all(a.class_digit == 5 for a in accounts)
        assert [a.code for a in accounts] == sorted(a.code for a in accounts)

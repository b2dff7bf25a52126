"""
Journal directory: get-or-create for a tenant's journals.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp_ledger.models.enums import JournalType
from erp_ledger.models.journal import Journal
from erp_ledger.services.chart_of_accounts import STANDARD_JOURNALS

logger = logging.getLogger(__name__)

_STANDARD_BY_CODE = {code: (name, jtype) for code, name, jtype in STANDARD_JOURNALS}


class JournalDirectory:

    def __init__(self, db: Session):
        self.db = db

    def get(self, tenant_id: int, code: str) -> Journal | None:
        return self.db.execute(
            select(Journal).where(
                Journal.tenant_id == tenant_id,
                Journal.code == code,
            )
        ).scalar_one_or_none()

    def get_or_create(
        self,
        tenant_id: int,
        code: str,
        name: str | None = None,
        journal_type: JournalType | None = None,
    ) -> Journal:
        """
        Return the tenant's journal with this code, creating it if needed.

        An existing journal is returned as-is; name and type only
        apply on creation. Unknown codes without a type default to
        miscellaneous operations.
        """
        journal = self.get(tenant_id, code)
        if journal is not None:
            return journal

        default_name, default_type = _STANDARD_BY_CODE.get(
            code, (f"Journal {code}", JournalType.MISC)
        )

        # Another request may create the same journal between our
        # read and our insert; the savepoint keeps the caller's work.
        savepoint = self.db.begin_nested()
        try:
            journal = Journal(
                tenant_id=tenant_id,
                code=code,
                name=name or default_name,
                journal_type=journal_type or default_type,
            )
            self.db.add(journal)
            self.db.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.debug(
                "journal_create_race",
                extra={"tenant_id": tenant_id, "journal_code": code},
            )
            journal = self.get(tenant_id, code)
            if journal is None:
                raise
            return journal

        logger.info(
            "journal_created",
            extra={"tenant_id": tenant_id, "journal_code": code},
        )
        return journal

"""
Typed errors raised by the posting engine.

Every error carries a machine-readable ``code`` so callers (the
invoicing endpoints, the scheduler job, the API layer) can decide
by type whether to roll back their own write or carry on without
accounting impact. They subclass ValueError so the API layer's
400-on-ValueError handling covers them.
"""


class LedgerError(ValueError):
    """Base class for all posting engine failures."""

    code: str = "LEDGER_ERROR"


class BalanceError(LedgerError):
    """Total debit and total credit differ by more than the tolerance."""

    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debit, total_credit):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Entry does not balance: "
            f"debit={total_debit}, credit={total_credit}"
        )


class UnresolvedAccountError(LedgerError):
    """A line's account cannot be found for the tenant."""

    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, tenant_id: int, reference):
        self.tenant_id = tenant_id
        self.reference = reference
        super().__init__(
            f"Account {reference!r} not found for tenant {tenant_id}"
        )


class InactiveAccountError(LedgerError):
    code = "ACCOUNT_INACTIVE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account {account_code} is not active")


class DuplicateAccountError(LedgerError):
    code = "ACCOUNT_EXISTS"


class EntryNotFoundError(LedgerError):
    code = "ENTRY_NOT_FOUND"


class AlreadyValidatedError(LedgerError):
    code = "ENTRY_ALREADY_VALIDATED"


class TemplateNotFoundError(LedgerError):
    code = "TEMPLATE_NOT_FOUND"


class InactiveTemplateError(LedgerError):
    """Firing a recurring template that has been deactivated."""

    code = "TEMPLATE_INACTIVE"


class TemplateWindowError(LedgerError):
    """Posting date falls before the template's start or after its end."""

    code = "TEMPLATE_OUT_OF_WINDOW"


class DuplicateFireError(LedgerError):
    """The template already generated an entry for this period."""

    code = "DUPLICATE_FIRE"

    def __init__(self, template_id: int, period: str):
        self.template_id = template_id
        self.period = period
        super().__init__(
            f"Recurring template {template_id} already generated "
            f"an entry for period {period}"
        )


class PostingConflictError(LedgerError):
    """The store refused a write for a reason other than a duplicate period."""

    code = "POSTING_CONFLICT"

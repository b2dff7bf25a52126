"""
Mapping from posting engine errors to HTTP errors.

Missing records are 404, conflicts with existing state are 409,
everything else the engine refuses is 400.
"""

from fastapi import HTTPException

from erp_ledger.exceptions import (
    AlreadyValidatedError,
    DuplicateAccountError,
    DuplicateFireError,
    EntryNotFoundError,
    LedgerError,
    PostingConflictError,
    TemplateNotFoundError,
)

_NOT_FOUND = (EntryNotFoundError, TemplateNotFoundError)
_CONFLICT = (
    DuplicateAccountError,
    DuplicateFireError,
    AlreadyValidatedError,
    PostingConflictError,
)


def http_error(exc: ValueError) -> HTTPException:
    if isinstance(exc, _NOT_FOUND):
        status_code = 404
    elif isinstance(exc, _CONFLICT):
        status_code = 409
    else:
        status_code = 400
    code = exc.code if isinstance(exc, LedgerError) else "INVALID_REQUEST"
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": str(exc)},
    )

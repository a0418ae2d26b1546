"""
Ledger package: the record store, the approval workflow and their errors.
"""

from finvue.ledger.errors import (
    LedgerError,
    NotFoundError,
    PermissionDeniedError,
    ProtectedRoleError,
    SyncFailedError,
    ValidationFailedError,
)
from finvue.ledger.store import COMPANY_NAME_MAX_LENGTH, RecordStore
from finvue.ledger.workflow import ApprovalWorkflow

__all__ = [
    "ApprovalWorkflow",
    "RecordStore",
    "COMPANY_NAME_MAX_LENGTH",
    # Errors
    "LedgerError",
    "NotFoundError",
    "PermissionDeniedError",
    "ProtectedRoleError",
    "SyncFailedError",
    "ValidationFailedError",
]

"""
Ledger Errors

Every refusal is an exception the UI can turn into a message.
None of them are fatal and none of them leave a partial write behind.
"""

from finvue.models.validation import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class PermissionDeniedError(LedgerError):
    """The actor's role does not allow the requested mutation."""
    pass


class ProtectedRoleError(LedgerError):
    """Admin accounts can never be deleted."""
    pass


class NotFoundError(LedgerError):
    """The operation targets an id absent from the store."""
    pass


class ValidationFailedError(LedgerError):
    """Input was rejected by a validator."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        errors = [i.message for i in issues if i.severity == "error"]
        super().__init__("; ".join(errors) or "Validation failed")


class SyncFailedError(LedgerError):
    """The cloud sync did not report success."""
    pass

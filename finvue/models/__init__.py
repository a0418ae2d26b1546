"""
Data Models Package

This package contains all Pydantic models used in FinVue Ledger.
All data flowing through the system must conform to these schemas.
"""

from finvue.models.audit import (
    ActivityLog,
    ActivityLogBuilder,
    ActivityType,
    SYSTEM_USERNAME,
)
from finvue.models.ledger import (
    REQUISITION_CATEGORY,
    AppState,
    CategoryTotal,
    FilteredSummary,
    LedgerBalance,
    LedgerFilters,
    LedgerView,
    PaymentSource,
    Session,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    TransactionType,
    User,
    UserDraft,
    UserPatch,
    UserRole,
    new_id,
)
from finvue.models.categories import (
    Category,
    CategoryKind,
    available_categories,
    find_category,
)
from finvue.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Audit models
    "ActivityLog",
    "ActivityLogBuilder",
    "ActivityType",
    "SYSTEM_USERNAME",
    # Ledger models
    "REQUISITION_CATEGORY",
    "AppState",
    "CategoryTotal",
    "FilteredSummary",
    "LedgerBalance",
    "LedgerFilters",
    "LedgerView",
    "PaymentSource",
    "Session",
    "Transaction",
    "TransactionDraft",
    "TransactionPatch",
    "TransactionStatus",
    "TransactionType",
    "User",
    "UserDraft",
    "UserPatch",
    "UserRole",
    "new_id",
    # Categories
    "Category",
    "CategoryKind",
    "available_categories",
    "find_category",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]

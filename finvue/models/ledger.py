"""
Core Data Models for FinVue Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable to the JSON snapshot (camelCase keys on disk)
4. Support the audit trail

DESIGN DECISION: Amounts are Decimal end to end. Totals are shown to people
who reconcile them against cash in hand, so float drift is not acceptable.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from finvue.models.audit import ActivityLog


REQUISITION_CATEGORY = "Requisition"
CENT = Decimal("0.01")


def new_id() -> str:
    """Generate a fresh entity identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionStatus(str, Enum):
    """
    Approval status of a transaction.

    PENDING -> VERIFIED -> APPROVED, with REJECTED reachable from
    PENDING or VERIFIED. APPROVED and REJECTED are terminal.
    """
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.APPROVED, TransactionStatus.REJECTED)


class UserRole(str, Enum):
    """
    Roles known to the system.

    BILLING_EXECUTIVE is reserved: it has no workflow permissions and
    sees only its own transactions, like EMPLOYEE.
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    BILLING_EXECUTIVE = "BILLING_EXECUTIVE"
    EMPLOYEE = "EMPLOYEE"

    @property
    def sees_all_transactions(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.MANAGER)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class PaymentSource(str, Enum):
    """Payment rails tracked for per-source balances."""
    CASH = "Cash"
    BANK = "Bank"
    BKASH = "Bkash"
    NAGAD = "Nagad"


class LedgerView(str, Enum):
    """Partition of the ledger a list view shows."""
    DEFAULT = "default"            # Everything except requisitions and rejected
    REQUISITIONS = "requisitions"  # Only the isolated requisition ledger
    REJECTED = "rejected"          # Only rejected transactions


class LedgerModel(BaseModel):
    """
    Base for persisted models.

    Attributes are snake_case in Python and camelCase in the snapshot.
    Either spelling is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(LedgerModel):
    """
    A single ledger entry.

    Only the editable fields (see TransactionPatch) and the status change
    after creation. Status changes go through the approval workflow.
    """

    id: str = Field(default_factory=new_id)
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the ledger currency"
    )
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    sub_category: Optional[str] = Field(default=None, max_length=100)
    source: PaymentSource
    date: dt.date
    note: str = Field(default="", max_length=500)
    user_id: str = Field(..., description="Owner of the transaction")
    created_by: str = Field(..., description="Display name of the creator")
    status: TransactionStatus

    @field_validator("amount")
    @classmethod
    def two_places(cls, v: Decimal) -> Decimal:
        """Store 50 as 50.00 so every amount reads the same way."""
        return v.quantize(CENT)

    @property
    def is_requisition(self) -> bool:
        """Requisitions are tracked for approval only, never in totals."""
        return self.category == REQUISITION_CATEGORY

    @property
    def short_id(self) -> str:
        return self.id[:8]


class TransactionDraft(LedgerModel):
    """
    User input for a new transaction.

    Amount is not range-checked here: the validator reports bad amounts
    as validation issues instead of a schema error.
    """

    amount: Decimal
    type: TransactionType = TransactionType.EXPENSE
    category: str = Field(..., min_length=1, max_length=100)
    sub_category: Optional[str] = Field(default=None, max_length=100)
    source: PaymentSource = PaymentSource.CASH
    date: dt.date = Field(default_factory=dt.date.today)
    note: str = Field(default="", max_length=500)


class TransactionPatch(LedgerModel):
    """Partial update of the editable fields of a transaction."""

    amount: Optional[Decimal] = None
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sub_category: Optional[str] = Field(default=None, max_length=100)
    source: Optional[PaymentSource] = None
    date: Optional[dt.date] = None
    note: Optional[str] = Field(default=None, max_length=500)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set by the caller (None included)."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# USERS & SESSION
# =============================================================================

class User(LedgerModel):
    """A person who can sign in."""

    id: str = Field(default_factory=new_id)
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(default="", max_length=128)
    role: UserRole
    profile_pic: Optional[str] = Field(
        default=None,
        description="data: URL of the profile picture"
    )


class UserDraft(LedgerModel):
    """User input for provisioning a new user."""

    username: str = Field(..., max_length=50)
    password: str = Field(..., max_length=128)
    role: UserRole = UserRole.EMPLOYEE


class UserPatch(LedgerModel):
    """Partial update of a user."""

    username: Optional[str] = Field(default=None, max_length=50)
    password: Optional[str] = Field(default=None, max_length=128)
    role: Optional[UserRole] = None
    profile_pic: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Session(BaseModel):
    """
    The signed-in viewer, passed explicitly to workflow and aggregation calls.

    DESIGN DECISION: The state stores only the id of the signed-in user.
    A Session is derived from the user list whenever it is needed, so an
    edited user can never disagree with its own session.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    role: UserRole

    @classmethod
    def for_user(cls, user: User) -> "Session":
        return cls(user_id=user.id, username=user.username, role=user.role)

    @property
    def sees_all_transactions(self) -> bool:
        return self.role.sees_all_transactions

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# =============================================================================
# QUERY MODELS
# =============================================================================

class LedgerFilters(BaseModel):
    """Filter bar state for list views."""

    search: str = ""
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    user_id: Optional[str] = Field(default=None, description="None means all users")
    category: Optional[str] = Field(default=None, description="None means all categories")
    view: LedgerView = LedgerView.DEFAULT

    @model_validator(mode='after')
    def validate_dates(self) -> 'LedgerFilters':
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("End date cannot be before start date")
        return self


class LedgerBalance(BaseModel):
    """Totals over approved, non-requisition transactions in scope."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    count: int = 0
    source_balances: dict[PaymentSource, Decimal] = Field(default_factory=dict)

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


class CategoryTotal(BaseModel):
    """One slice of the expense-by-category chart."""

    name: str
    value: Decimal


class FilteredSummary(BaseModel):
    """Totals of whatever a list view currently shows."""

    revenue: Decimal = Decimal("0")
    outflow: Decimal = Decimal("0")
    requisition_total: Decimal = Decimal("0")


# =============================================================================
# ROOT AGGREGATE
# =============================================================================

class AppState(LedgerModel):
    """
    Everything the application persists.

    Owned exclusively by the record store. Other components read it or
    ask the store to change it.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    current_user_id: Optional[str] = None
    activity_logs: list[ActivityLog] = Field(default_factory=list)
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    sheet_url: Optional[str] = None
    last_synced: Optional[str] = None
    dark_mode: bool = False

    @model_validator(mode='before')
    @classmethod
    def migrate_legacy_snapshot(cls, data: Any) -> Any:
        """
        Accept snapshots written by older versions.

        - a missing or null activityLogs/darkMode falls back to the default
        - an embedded currentUser object becomes currentUserId
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for key in ("activityLogs", "activity_logs", "darkMode", "dark_mode"):
            if key in data and data[key] is None:
                del data[key]

        legacy_user = data.pop("currentUser", None)
        if (
            isinstance(legacy_user, dict)
            and not data.get("currentUserId")
            and not data.get("current_user_id")
        ):
            data["currentUserId"] = legacy_user.get("id")

        return data

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users if u.username == username), None)

    @property
    def current_user(self) -> Optional[User]:
        if self.current_user_id is None:
            return None
        return self.find_user(self.current_user_id)

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready dict with the on-disk (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

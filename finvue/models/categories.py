"""
Category Catalog

DESIGN DECISION: Whether a category asks for a sub-category is a property
of the category record, not a name check in the UI or the validator.
Adding a category with sub-categories is a data change only.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finvue.models.ledger import REQUISITION_CATEGORY, TransactionType, UserRole


class CategoryKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(BaseModel):
    """A ledger category and what it needs from the form."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    icon: str = "Plus"
    color: str = "#64748b"
    kind: CategoryKind = CategoryKind.EXPENSE
    admin_only: bool = False
    needs_subcategory: bool = False
    subcategory_options: tuple[str, ...] = Field(default_factory=tuple)


CONVEYANCE_SUB_CATEGORIES = (
    "Rickshaw",
    "CNG",
    "Bus",
    "Ride Share",
    "Train",
    "Fuel",
)

ADMIN_ASSET_SUB_CATEGORIES = (
    "Cash Withdrawal",
    "Asset Purchase",
    "Loan",
    "Personal",
    "Investment",
)

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="food", name="Food & Dining", icon="Utensils", color="#f97316"),
    Category(
        id="conveyance",
        name="Conveyance",
        icon="Car",
        color="#0ea5e9",
        needs_subcategory=True,
        subcategory_options=CONVEYANCE_SUB_CATEGORIES,
    ),
    Category(id="office", name="Office Supplies", icon="Briefcase", color="#6366f1"),
    Category(id="utilities", name="Utilities", icon="Zap", color="#eab308"),
    Category(id="rent", name="Rent", icon="Home", color="#8b5cf6"),
    Category(id="salary", name="Salary", icon="Users", color="#14b8a6"),
    Category(id="maintenance", name="Maintenance", icon="Wrench", color="#64748b"),
    Category(id="marketing", name="Marketing", icon="Megaphone", color="#ec4899"),
    Category(id="requisition", name=REQUISITION_CATEGORY, icon="ClipboardList", color="#4f46e5"),
    Category(id="others", name="Others", icon="Plus", color="#94a3b8"),
)

ADMIN_ONLY_CATEGORIES: tuple[Category, ...] = tuple(
    Category(
        id=name.lower().replace(" ", "_"),
        name=name,
        icon="Shield",
        color="#be123c",
        admin_only=True,
        needs_subcategory=True,
        subcategory_options=ADMIN_ASSET_SUB_CATEGORIES,
    )
    for name in ("Family", "Marjan", "Admin Own")
)

INCOME_CATEGORIES: tuple[Category, ...] = (
    Category(id="sales", name="Sales", icon="TrendingUp", color="#10b981", kind=CategoryKind.INCOME),
    Category(id="service", name="Service Income", icon="Handshake", color="#22c55e", kind=CategoryKind.INCOME),
    Category(id="investment", name="Investment Return", icon="PiggyBank", color="#84cc16", kind=CategoryKind.INCOME),
    Category(id="loan", name="Loan Received", icon="Landmark", color="#06b6d4", kind=CategoryKind.INCOME),
    Category(id="other_income", name="Other Income", icon="Coins", color="#a3e635", kind=CategoryKind.INCOME),
)

# Employees may only file these
EMPLOYEE_CATEGORY_NAMES = frozenset({"Conveyance", REQUISITION_CATEGORY})


def all_categories() -> tuple[Category, ...]:
    return DEFAULT_CATEGORIES + ADMIN_ONLY_CATEGORIES + INCOME_CATEGORIES


def find_category(name: str) -> Optional[Category]:
    return next((c for c in all_categories() if c.name == name), None)


def available_categories(
    transaction_type: TransactionType,
    role: UserRole,
) -> list[Category]:
    """
    Categories a role may pick for a transaction type.

    - INCOME: the income categories
    - EXPENSE: the default categories, plus the admin-only ones for
      ADMIN and MANAGER, narrowed to Conveyance/Requisition for EMPLOYEE
    """
    if transaction_type == TransactionType.INCOME:
        return list(INCOME_CATEGORIES)

    categories = list(DEFAULT_CATEGORIES)
    if role.sees_all_transactions:
        categories.extend(ADMIN_ONLY_CATEGORIES)
    if role == UserRole.EMPLOYEE:
        return [c for c in categories if c.name in EMPLOYEE_CATEGORY_NAMES]
    return categories

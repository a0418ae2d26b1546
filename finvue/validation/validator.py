"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount is a positive number with at most two decimals
- Category exists in the catalog
- This catches malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Role may use this category / transaction type
- Sub-category required or forbidden by the category record
- Future date detection
- This catches input that is well formed but not allowed

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the store refuses writes that have errors.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from finvue.config import AppSettings, get_settings
from finvue.models.categories import available_categories, find_category
from finvue.models.ledger import (
    TransactionDraft,
    TransactionType,
    User,
    UserDraft,
    UserPatch,
    UserRole,
)
from finvue.models.validation import ValidationIssue, ValidationResult


class TransactionValidator:
    """
    Validates transaction input through a two-stage pipeline.

    Stage 1: Schema validation (shape of the values)
    Stage 2: Semantic validation (what the actor's role allows)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        amount = draft.amount
        if not amount.is_finite() or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount that was paid or received",
            ))
        elif amount.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount can have at most two decimal places",
                severity="error",
            ))

        if find_category(draft.category) is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Unknown category: {draft.category}",
                severity="error",
                suggested_fix="Pick a category from the list",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        role: UserRole,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Checks:
        - Employees file expenses only
        - Category is available to the role for this transaction type
        - Sub-category matches the category record
        - Date is not too far in the future

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        category = find_category(draft.category)

        if role == UserRole.EMPLOYEE and draft.type == TransactionType.INCOME:
            issues.append(ValidationIssue(
                field="type",
                issue_type="not_allowed",
                message="Employees can only record expenses",
                severity="error",
            ))

        allowed = {c.name for c in available_categories(draft.type, role)}
        if category.name not in allowed:
            issues.append(ValidationIssue(
                field="category",
                issue_type="not_allowed",
                message=(
                    f"Category '{category.name}' is not available for "
                    f"{draft.type.value.lower()} entries by {role.label}"
                ),
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(sorted(allowed))}",
            ))

        if category.needs_subcategory:
            if not draft.sub_category:
                issues.append(ValidationIssue(
                    field="sub_category",
                    issue_type="missing",
                    message=f"'{category.name}' needs a sub-category",
                    severity="error",
                    suggested_fix=f"Choose one of: {', '.join(category.subcategory_options)}",
                ))
            elif draft.sub_category not in category.subcategory_options:
                issues.append(ValidationIssue(
                    field="sub_category",
                    issue_type="invalid_value",
                    message=f"Unknown sub-category for '{category.name}': {draft.sub_category}",
                    severity="error",
                    suggested_fix=f"Choose one of: {', '.join(category.subcategory_options)}",
                ))
        elif draft.sub_category:
            issues.append(ValidationIssue(
                field="sub_category",
                issue_type="not_allowed",
                message=f"'{category.name}' does not take a sub-category",
                severity="error",
            ))

        max_future_date = date.today() + timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        draft: TransactionDraft,
        role: UserRole,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Stage 2 only runs when stage 1 passes; semantic checks assume a
        known category and a usable amount.
        """
        schema_valid, issues = self._validate_schema(draft)
        if schema_valid:
            _, semantic_issues = self._validate_semantic(draft, role)
            issues.extend(semantic_issues)
        return ValidationResult(issues=issues)


class UserValidator:
    """Validates user provisioning input."""

    def _check_username(
        self,
        username: str,
        users: Iterable[User],
        exclude_id: Optional[str] = None,
    ) -> list[ValidationIssue]:
        if not username:
            return [ValidationIssue(
                field="username",
                issue_type="missing",
                message="Username is required",
                severity="error",
            )]
        taken = any(
            u.username == username and u.id != exclude_id for u in users
        )
        if taken:
            return [ValidationIssue(
                field="username",
                issue_type="duplicate",
                message=f"Username '{username}' is already taken",
                severity="error",
                suggested_fix="Choose a different username",
            )]
        return []

    def validate_new(
        self,
        draft: UserDraft,
        users: Iterable[User],
    ) -> ValidationResult:
        issues = self._check_username(draft.username, users)
        if not draft.password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password is required",
                severity="error",
            ))
        return ValidationResult(issues=issues)

    def validate_patch(
        self,
        user_id: str,
        patch: UserPatch,
        users: Iterable[User],
    ) -> ValidationResult:
        changes = patch.changes()
        issues = []
        if "username" in changes:
            issues.extend(
                self._check_username(changes["username"] or "", users, exclude_id=user_id)
            )
        if "password" in changes and not changes["password"]:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password cannot be empty",
                severity="error",
            ))
        if "role" in changes and changes["role"] is None:
            issues.append(ValidationIssue(
                field="role",
                issue_type="missing",
                message="Role cannot be empty",
                severity="error",
            ))
        return ValidationResult(issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Generate a user-friendly summary of validation results.

    This is what the form shows under the submit button.
    """
    if result.is_valid and not result.warnings:
        return "✅ All checks passed."

    lines = []

    if result.has_errors:
        lines.append("❌ Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

    if result.warnings:
        lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines).strip()

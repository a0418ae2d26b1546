"""
Activity Log Models for FinVue Ledger

Every state-changing action produces one ActivityLog entry:
1. Who did it (username, or "System")
2. What they did (a short action title)
3. The specifics (details)
4. Which area it touched (auth, transaction, user, system)

DESIGN DECISION: Entries are frozen. The log is append-only and the
store keeps the most recent entries first.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


SYSTEM_USERNAME = "System"

ACTION_MAX_LENGTH = 100
DETAILS_MAX_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityType(str, Enum):
    """Area of the application an activity belongs to."""
    AUTH = "auth"
    TRANSACTION = "transaction"
    USER = "user"
    SYSTEM = "system"


class ActivityLog(BaseModel):
    """
    A single audit entry.

    This is the core unit of the activity trail shown to admins.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique entry identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the action happened (UTC)"
    )
    username: str = Field(
        default=SYSTEM_USERNAME,
        description="Who performed the action"
    )
    action: str = Field(
        ...,
        max_length=ACTION_MAX_LENGTH,
        description="Short action title, e.g. 'Transaction Add'"
    )
    details: str = Field(
        default="",
        max_length=DETAILS_MAX_LENGTH,
        description="Human-readable description of what happened"
    )
    type: ActivityType

    @field_validator("action", "details", mode="before")
    @classmethod
    def clip_text(cls, v, info: ValidationInfo):
        """Long user input (usernames, company names) is cut, never rejected."""
        limit = ACTION_MAX_LENGTH if info.field_name == "action" else DETAILS_MAX_LENGTH
        if isinstance(v, str) and len(v) > limit:
            return v[: limit - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "activity_id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "username": self.username,
            "action": self.action,
            "details": self.details,
            "activity_type": self.type.value,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [id, timestamp, username, action, details, type]
        """
        return [
            self.id,
            self.timestamp.isoformat(),
            self.username,
            self.action,
            self.details,
            self.type.value,
        ]


class ActivityLogBuilder:
    """
    Helper class to build activity entries with the standard wording.

    Usage:
        entry = ActivityLogBuilder.login_succeeded("alice")
        entry = ActivityLogBuilder.status_changed("1a2b3c4d", "PENDING", "VERIFIED", "bob")
    """

    @staticmethod
    def login_succeeded(username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Login Success",
            details=f"User {username} signed in",
            type=ActivityType.AUTH,
        )

    @staticmethod
    def login_failed(username: str) -> ActivityLog:
        return ActivityLog(
            username=username or SYSTEM_USERNAME,
            action="Login Failed",
            details=f"Failed access attempt for UID: {username}",
            type=ActivityType.AUTH,
        )

    @staticmethod
    def logged_out(username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Logout",
            details=f"User {username} ended the session",
            type=ActivityType.AUTH,
        )

    @staticmethod
    def transaction_added(
        transaction_type: str,
        category: str,
        amount: str,
        username: str,
    ) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Transaction Add",
            details=f"New {transaction_type} recorded: {category} - {amount}",
            type=ActivityType.TRANSACTION,
        )

    @staticmethod
    def transaction_edited(short_id: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Transaction Edit",
            details=f"Modified transaction {short_id}...",
            type=ActivityType.TRANSACTION,
        )

    @staticmethod
    def status_changed(
        short_id: str,
        old_status: str,
        new_status: str,
        username: str,
    ) -> ActivityLog:
        return ActivityLog(
            username=username,
            action=f"Status Change: {new_status}",
            details=f"Transaction {short_id}... moved from {old_status} to {new_status}",
            type=ActivityType.TRANSACTION,
        )

    @staticmethod
    def transaction_deleted(short_id: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Transaction Delete",
            details=f"Permanently deleted transaction {short_id}...",
            type=ActivityType.TRANSACTION,
        )

    @staticmethod
    def user_created(new_username: str, role: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="User Creation",
            details=f"New user provisioned: {new_username} with role {role}",
            type=ActivityType.USER,
        )

    @staticmethod
    def user_updated(target_username: str, role: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="User Update",
            details=f"Provisioning updated for user: {target_username} ({role})",
            type=ActivityType.USER,
        )

    @staticmethod
    def profile_picture_updated(username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Profile Update",
            details="Profile picture was updated",
            type=ActivityType.USER,
        )

    @staticmethod
    def user_purged(target_username: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="User Purge",
            details=f"User removed: {target_username}",
            type=ActivityType.USER,
        )

    @staticmethod
    def branding_updated(details: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="Branding Update",
            details=details,
            type=ActivityType.SYSTEM,
        )

    @staticmethod
    def settings_updated(details: str, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="System Config",
            details=details,
            type=ActivityType.SYSTEM,
        )

    @staticmethod
    def theme_changed(dark_mode: bool, username: str) -> ActivityLog:
        return ActivityLog(
            username=username,
            action="System Theme Change",
            details=f"Switched to {'Dark' if dark_mode else 'Light'} Mode",
            type=ActivityType.SYSTEM,
        )

    @staticmethod
    def cloud_sync(success: bool, username: str) -> ActivityLog:
        details = (
            "Successfully synchronized data to Google Sheets"
            if success
            else "Failed to synchronize data to Google Sheets"
        )
        return ActivityLog(
            username=username,
            action="Cloud Sync",
            details=details,
            type=ActivityType.SYSTEM,
        )

"""
Record Store

The single owner of AppState. Every mutation in the application goes
through this class:

1. Check the actor may do it (PermissionDenied / ProtectedRole / NotFound)
2. Validate the input (ValidationFailed)
3. Build the complete new record and swap it into a new state
4. Log the activity entry
5. Write the snapshot through the storage collaborator

DESIGN DECISION: The state is replaced, never edited in place. Any
refusal happens before step 3, so a failed call leaves the store exactly
as it was. Persistence is best-effort: a failed write is logged and the
in-memory change stands.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from finvue.audit.logger import ActivityLogger, ActivitySinkInterface
from finvue.config import AppSettings, get_settings
from finvue.ledger.errors import (
    NotFoundError,
    PermissionDeniedError,
    ProtectedRoleError,
    ValidationFailedError,
)
from finvue.ledger.workflow import ApprovalWorkflow
from finvue.models.audit import SYSTEM_USERNAME, ActivityLog, ActivityLogBuilder
from finvue.models.categories import find_category
from finvue.models.ledger import (
    AppState,
    Session,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    User,
    UserDraft,
    UserPatch,
    UserRole,
)
from finvue.models.validation import ValidationIssue
from finvue.services.storage.interface import (
    StateStorageInterface,
    StorageError,
    initial_state,
)
from finvue.validation.validator import TransactionValidator, UserValidator


COMPANY_NAME_MAX_LENGTH = 100


def _actor_name(actor: Optional[Session]) -> str:
    return actor.username if actor else SYSTEM_USERNAME


class RecordStore(ActivitySinkInterface):
    """
    Authoritative store of transactions, users, activity and settings.

    Usage:
        store = RecordStore(storage=JsonFileStateStorage("finvue_data.json"))
        session = store.authenticate("admin", "admin")
        tx = store.add_transaction(TransactionDraft(amount="120", category="Rent"), session)
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        storage: Optional[StateStorageInterface] = None,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[AppSettings] = None,
        transaction_validator: Optional[TransactionValidator] = None,
        user_validator: Optional[UserValidator] = None,
    ):
        self._settings = settings or get_settings().app
        self._storage = storage
        self._state = state if state is not None else initial_state(self._settings)
        self._transaction_validator = transaction_validator or TransactionValidator(self._settings)
        self._user_validator = user_validator or UserValidator()
        self._logger = structlog.get_logger()

        self._activity = activity_logger or ActivityLogger()
        self._activity.attach(self)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._state.transactions)

    @property
    def users(self) -> list[User]:
        return list(self._state.users)

    @property
    def activity_logs(self) -> list[ActivityLog]:
        return list(self._state.activity_logs)

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self._state.find_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return transaction

    def get_user(self, user_id: str) -> User:
        user = self._state.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    def current_session(self) -> Optional[Session]:
        """The signed-in viewer, resolved from the user list."""
        user = self._state.current_user
        return Session.for_user(user) if user else None

    # =========================================================================
    # PLUMBING
    # =========================================================================

    def append_log(self, entry: ActivityLog) -> None:
        """Prepend an entry, keeping only the most recent ones."""
        limit = self._settings.activity_log_limit
        logs = [entry, *self._state.activity_logs][:limit]
        self._state = self._state.model_copy(update={"activity_logs": logs})

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_state(self._state)
        except StorageError as e:
            self._logger.error("snapshot_save_failed", error=str(e))

    def _commit(self, *entries: ActivityLog, **changes) -> None:
        """Swap in the changed fields, log the entries, then persist."""
        if changes:
            self._state = self._state.model_copy(update=changes)
        for entry in entries:
            self._activity.log(entry)
        self._persist()

    def record_activity(self, entry: ActivityLog) -> None:
        """Log an entry produced outside the store (e.g. cloud sync)."""
        self._commit(entry)

    @staticmethod
    def _require_admin(actor: Optional[Session], what: str) -> None:
        if actor is not None and not actor.is_admin:
            raise PermissionDeniedError(f"Only an admin can {what}")

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def _validated_draft(self, draft: TransactionDraft, role: UserRole) -> TransactionDraft:
        result = self._transaction_validator.validate(draft, role)
        if result.has_errors:
            raise ValidationFailedError(result.issues)
        for warning in result.warnings:
            self._logger.warning("transaction_validation_warning", message=warning)
        return draft

    def add_transaction(self, draft: TransactionDraft, actor: Session) -> Transaction:
        """
        Record a new transaction owned by the actor.

        The initial status comes from the approval workflow: income and
        admin-recorded expenses are approved on entry, everything else
        waits as PENDING.
        """
        self._validated_draft(draft, actor.role)

        transaction = Transaction(
            amount=draft.amount,
            type=draft.type,
            category=draft.category,
            sub_category=draft.sub_category,
            source=draft.source,
            date=draft.date,
            note=draft.note,
            user_id=actor.user_id,
            created_by=actor.username,
            status=ApprovalWorkflow.initial_status(draft.type, actor.role),
        )

        self._commit(
            ActivityLogBuilder.transaction_added(
                transaction.type.value,
                transaction.category,
                str(transaction.amount),
                actor.username,
            ),
            transactions=[transaction, *self._state.transactions],
        )
        return transaction

    def update_transaction(
        self,
        transaction_id: str,
        patch: TransactionPatch,
        actor: Optional[Session] = None,
    ) -> Transaction:
        """
        Apply an edit to the editable fields of a transaction.

        Owner, creator name and status are kept. The merged record is
        validated as if it were new, for the actor's role (or the owner's
        role when the edit comes from the system).
        """
        existing = self.get_transaction(transaction_id)
        if actor is not None and not (
            actor.sees_all_transactions or existing.user_id == actor.user_id
        ):
            raise PermissionDeniedError(
                f"{actor.role.label} cannot edit transaction {existing.short_id}"
            )

        changes = patch.changes()
        merged = existing.model_dump(
            include={"amount", "type", "category", "sub_category", "source", "date", "note"}
        )
        merged.update({k: v for k, v in changes.items() if v is not None or k == "sub_category"})

        # A new category without a new sub-category drops the stale one
        if "category" in changes and "sub_category" not in changes:
            category = find_category(merged["category"])
            if category is None or not category.needs_subcategory:
                merged["sub_category"] = None

        if actor is not None:
            role = actor.role
        else:
            owner = self._state.find_user(existing.user_id)
            role = owner.role if owner else UserRole.EMPLOYEE
        self._validated_draft(TransactionDraft(**merged), role)

        updated = Transaction(
            **merged,
            id=existing.id,
            user_id=existing.user_id,
            created_by=existing.created_by,
            status=existing.status,
        )

        self._commit(
            ActivityLogBuilder.transaction_edited(updated.short_id, _actor_name(actor)),
            transactions=[
                updated if t.id == updated.id else t for t in self._state.transactions
            ],
        )
        return updated

    def set_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        actor: Session,
    ) -> Transaction:
        """Move a transaction through the approval workflow."""
        existing = self.get_transaction(transaction_id)
        updated = ApprovalWorkflow.transition(existing, status, actor)

        self._commit(
            ActivityLogBuilder.status_changed(
                updated.short_id,
                existing.status.value,
                updated.status.value,
                actor.username,
            ),
            transactions=[
                updated if t.id == updated.id else t for t in self._state.transactions
            ],
        )
        return updated

    def delete_transaction(self, transaction_id: str, actor: Session) -> None:
        """Permanently remove a transaction. Admins only."""
        if not actor.is_admin:
            raise PermissionDeniedError(
                f"{actor.role.label} cannot delete transactions"
            )
        existing = self.get_transaction(transaction_id)

        self._commit(
            ActivityLogBuilder.transaction_deleted(existing.short_id, actor.username),
            transactions=[t for t in self._state.transactions if t.id != existing.id],
        )

    # =========================================================================
    # USERS
    # =========================================================================

    def add_user(self, draft: UserDraft, actor: Optional[Session] = None) -> User:
        """Provision a new user with a unique username."""
        self._require_admin(actor, "create users")

        result = self._user_validator.validate_new(draft, self._state.users)
        if result.has_errors:
            raise ValidationFailedError(result.issues)

        user = User(username=draft.username, password=draft.password, role=draft.role)

        self._commit(
            ActivityLogBuilder.user_created(user.username, user.role.value, _actor_name(actor)),
            users=[*self._state.users, user],
        )
        return user

    def update_user(
        self,
        user_id: str,
        patch: UserPatch,
        actor: Optional[Session] = None,
    ) -> User:
        """
        Edit a user.

        Admins may edit anyone. Everyone else may edit only themselves
        and may not change their own role. Since the session is derived
        from the user list, editing the signed-in user is one write.
        """
        if actor is not None and not actor.is_admin and actor.user_id != user_id:
            raise PermissionDeniedError(f"{actor.role.label} can only edit their own profile")

        target = self.get_user(user_id)
        changes = patch.changes()

        if (
            actor is not None
            and not actor.is_admin
            and "role" in changes
            and changes["role"] != target.role
        ):
            raise PermissionDeniedError("Only an admin can change roles")

        result = self._user_validator.validate_patch(user_id, patch, self._state.users)
        if result.has_errors:
            raise ValidationFailedError(result.issues)

        demoting_admin = (
            target.role == UserRole.ADMIN
            and changes.get("role", target.role) != UserRole.ADMIN
        )
        if demoting_admin:
            admins = [u for u in self._state.users if u.role == UserRole.ADMIN]
            if len(admins) == 1:
                raise ProtectedRoleError("The last admin cannot be demoted")

        updated = User.model_validate({**target.model_dump(), **changes})

        if set(changes) == {"profile_pic"}:
            entry = ActivityLogBuilder.profile_picture_updated(
                actor.username if actor else updated.username
            )
        else:
            entry = ActivityLogBuilder.user_updated(
                updated.username, updated.role.value, _actor_name(actor)
            )

        self._commit(
            entry,
            users=[updated if u.id == updated.id else u for u in self._state.users],
        )
        return updated

    def delete_user(self, user_id: str, actor: Session) -> None:
        """
        Remove a user. Admin accounts are protected, including the
        actor's own. Their transactions stay in the ledger.
        """
        if not actor.is_admin:
            raise PermissionDeniedError(f"{actor.role.label} cannot delete users")
        target = self.get_user(user_id)
        if target.role == UserRole.ADMIN:
            raise ProtectedRoleError(f"Admin user '{target.username}' cannot be deleted")

        changes = {"users": [u for u in self._state.users if u.id != target.id]}
        if self._state.current_user_id == target.id:
            changes["current_user_id"] = None

        self._commit(ActivityLogBuilder.user_purged(target.username, actor.username), **changes)

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(self, username: str, password: str) -> Optional[Session]:
        """
        Sign a user in.

        Bad credentials are not an error: the attempt is logged under
        auth and None comes back.
        """
        user = self._state.find_user_by_username(username.strip())
        if user is None or user.password != password:
            self._commit(ActivityLogBuilder.login_failed(username.strip()))
            return None

        self._commit(
            ActivityLogBuilder.login_succeeded(user.username),
            current_user_id=user.id,
        )
        return Session.for_user(user)

    def logout(self) -> None:
        user = self._state.current_user
        if user is None:
            if self._state.current_user_id is not None:
                self._commit(current_user_id=None)
            return
        self._commit(ActivityLogBuilder.logged_out(user.username), current_user_id=None)

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_company_name(self, name: str, actor: Optional[Session] = None) -> str:
        self._require_admin(actor, "change branding")
        name = name.strip()
        if not name:
            raise ValidationFailedError([ValidationIssue(
                field="company_name",
                issue_type="missing",
                message="Company name cannot be empty",
                severity="error",
            )])
        if len(name) > COMPANY_NAME_MAX_LENGTH:
            raise ValidationFailedError([ValidationIssue(
                field="company_name",
                issue_type="invalid_value",
                message=f"Company name must be at most {COMPANY_NAME_MAX_LENGTH} characters",
                severity="error",
            )])
        self._commit(
            ActivityLogBuilder.branding_updated(
                f"Company name changed to {name}", _actor_name(actor)
            ),
            company_name=name,
        )
        return name

    def update_company_logo(
        self,
        data_url: Optional[str],
        actor: Optional[Session] = None,
    ) -> None:
        """Set the logo (a data: URL), or remove it with None."""
        self._require_admin(actor, "change branding")
        details = "Company logo updated" if data_url else "Company logo removed"
        self._commit(
            ActivityLogBuilder.branding_updated(details, _actor_name(actor)),
            company_logo=data_url,
        )

    def set_sheet_url(self, url: Optional[str], actor: Optional[Session] = None) -> None:
        self._require_admin(actor, "change the sync endpoint")
        url = (url or "").strip() or None
        details = "Cloud sync endpoint updated" if url else "Cloud sync endpoint removed"
        self._commit(
            ActivityLogBuilder.settings_updated(details, _actor_name(actor)),
            sheet_url=url,
        )

    def toggle_dark_mode(self, actor: Optional[Session] = None) -> bool:
        dark_mode = not self._state.dark_mode
        self._commit(
            ActivityLogBuilder.theme_changed(dark_mode, _actor_name(actor)),
            dark_mode=dark_mode,
        )
        return dark_mode

    def mark_synced(self, when: Optional[datetime] = None) -> str:
        """Stamp the last successful cloud sync."""
        stamp = (when or datetime.now(timezone.utc)).isoformat()
        self._commit(last_synced=stamp)
        return stamp

"""
Main Orchestrator for FinVue Ledger

This module ties together all the components and defines the
application service the UI talks to:
1. Session (login → session → logout)
2. Ledger writes (validate → workflow → store → log → persist)
3. Reads (scope → aggregation engine)
4. Collaborators (AI tips, cloud sync, Excel export, branding images)

DESIGN DECISION: The orchestrator resolves the signed-in user on every
call and passes an explicit Session down. The UI never hands a role or
user id to the store itself, so it cannot act as someone else.

This is the "glue" that keeps the Streamlit pages free of business rules.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, Field

from finvue.agents import AISuggestion, InsightAgent
from finvue.audit import ActivityLogger
from finvue.config import AppSettings, get_settings
from finvue.ledger import (
    ApprovalWorkflow,
    PermissionDeniedError,
    RecordStore,
    SyncFailedError,
)
from finvue.models.audit import ActivityLogBuilder
from finvue.models.ledger import (
    CategoryTotal,
    FilteredSummary,
    LedgerBalance,
    LedgerFilters,
    Session,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    User,
    UserDraft,
    UserPatch,
)
from finvue.queries import (
    ai_input,
    category_breakdown,
    filtered_summary,
    filtered_view,
    ledger_balance,
    rejected_transactions,
    visibility_scope,
)
from finvue.services import (
    GoogleSheetsSyncService,
    JsonFileStateStorage,
    SpreadsheetExporter,
    StateStorageInterface,
    SyncServiceInterface,
    WebhookSyncService,
    encode_image_data_url,
)


class Dashboard(BaseModel):
    """Everything the dashboard page renders, computed in one pass."""

    balance: LedgerBalance
    breakdown: list[CategoryTotal] = Field(default_factory=list)
    awaiting_action: int = Field(
        default=0,
        description="Transactions in scope this viewer can move forward"
    )
    rejected: int = Field(default=0, description="Rejected transactions in scope")
    recent: list[Transaction] = Field(default_factory=list)


class LedgerService:
    """
    Application service over the record store.

    Every method that needs a user raises PermissionDeniedError when no
    one is signed in.
    """

    def __init__(
        self,
        store: RecordStore,
        sync_service: Optional[SyncServiceInterface] = None,
        insight_agent: Optional[InsightAgent] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._store = store
        self._sync_service = sync_service
        self._insight_agent = insight_agent
        self._settings = settings or get_settings().app
        self._logger = structlog.get_logger()
        self._is_syncing = False

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    # =========================================================================
    # SESSION
    # =========================================================================

    def login(self, username: str, password: str) -> Optional[Session]:
        return self._store.authenticate(username, password)

    def logout(self) -> None:
        self._store.logout()

    def current_session(self) -> Optional[Session]:
        return self._store.current_session()

    def require_session(self) -> Session:
        session = self._store.current_session()
        if session is None:
            raise PermissionDeniedError("Please sign in first")
        return session

    def current_user(self) -> User:
        return self._store.get_user(self.require_session().user_id)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def save_transaction(
        self,
        draft: TransactionDraft,
        editing_id: Optional[str] = None,
    ) -> Transaction:
        """Record a new transaction, or apply the form to an existing one."""
        session = self.require_session()
        if editing_id is None:
            return self._store.add_transaction(draft, session)
        patch = TransactionPatch(**draft.model_dump())
        return self._store.update_transaction(editing_id, patch, session)

    def set_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        return self._store.set_transaction_status(
            transaction_id, status, self.require_session()
        )

    def allowed_transitions(self, transaction: Transaction) -> set[TransactionStatus]:
        return ApprovalWorkflow.allowed_transitions(transaction, self.require_session())

    def delete_transaction(self, transaction_id: str) -> None:
        self._store.delete_transaction(transaction_id, self.require_session())

    # =========================================================================
    # USERS
    # =========================================================================

    def save_user(self, draft: UserDraft, editing_id: Optional[str] = None) -> User:
        """
        Create a user, or update one from the same form.

        On edit, a blank password keeps the current one.
        """
        session = self.require_session()
        if editing_id is None:
            return self._store.add_user(draft, session)

        fields = {"username": draft.username, "role": draft.role}
        if draft.password:
            fields["password"] = draft.password
        return self._store.update_user(editing_id, UserPatch(**fields), session)

    def delete_user(self, user_id: str) -> None:
        self._store.delete_user(user_id, self.require_session())

    def update_profile_picture(self, image_bytes: bytes) -> User:
        session = self.require_session()
        data_url = encode_image_data_url(
            image_bytes,
            max_edge=self._settings.branding_image_size,
            max_bytes=self._settings.max_upload_size_bytes,
        )
        return self._store.update_user(
            session.user_id, UserPatch(profile_pic=data_url), session
        )

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_company_name(self, name: str) -> str:
        return self._store.update_company_name(name, self.require_session())

    def update_company_logo(self, image_bytes: Optional[bytes]) -> None:
        """Replace the logo with an upload, or remove it with None."""
        session = self.require_session()
        data_url = None
        if image_bytes is not None:
            data_url = encode_image_data_url(
                image_bytes,
                max_edge=self._settings.branding_image_size,
                max_bytes=self._settings.max_upload_size_bytes,
            )
        self._store.update_company_logo(data_url, session)

    def set_sheet_url(self, url: Optional[str]) -> None:
        self._store.set_sheet_url(url, self.require_session())

    def toggle_dark_mode(self) -> bool:
        return self._store.toggle_dark_mode(self._store.current_session())

    # =========================================================================
    # READS
    # =========================================================================

    def dashboard(self) -> Dashboard:
        session = self.require_session()
        transactions = self._store.transactions
        scope = visibility_scope(transactions, session)
        return Dashboard(
            balance=ledger_balance(transactions, session),
            breakdown=category_breakdown(transactions, session),
            awaiting_action=sum(
                1 for t in scope if ApprovalWorkflow.allowed_transitions(t, session)
            ),
            rejected=len(rejected_transactions(transactions, session)),
            recent=filtered_view(transactions, session)[:5],
        )

    def transactions(self, filters: Optional[LedgerFilters] = None) -> list[Transaction]:
        return filtered_view(self._store.transactions, self.require_session(), filters)

    def summary(self, filters: Optional[LedgerFilters] = None) -> FilteredSummary:
        return filtered_summary(self.transactions(filters))

    def category_breakdown(self) -> list[CategoryTotal]:
        return category_breakdown(self._store.transactions, self.require_session())

    def export_transactions(self, filters: Optional[LedgerFilters] = None) -> bytes:
        """
        Excel workbook of what the viewer can see.

        With filters, exactly the filtered list; without, every
        transaction in scope across all views.
        """
        session = self.require_session()
        if filters is None:
            rows = sorted(
                visibility_scope(self._store.transactions, session),
                key=lambda t: t.date,
                reverse=True,
            )
        else:
            rows = filtered_view(self._store.transactions, session, filters)
        exporter = SpreadsheetExporter(company_name=self._store.state.company_name)
        return exporter.export(rows)

    # =========================================================================
    # ASYNC COLLABORATORS
    # =========================================================================

    async def fetch_tips(self) -> list[AISuggestion]:
        session = self.require_session()
        if self._insight_agent is None:
            self._insight_agent = InsightAgent()
        return await self._insight_agent.get_tips(
            ai_input(self._store.transactions, session)
        )

    async def sync_to_cloud(self) -> str:
        """
        Push the snapshot to the configured sync target.

        Returns the new last-synced stamp.

        Raises:
            SyncFailedError: No target configured, or the push failed
        """
        session = self.require_session()
        target = self._store.state.sheet_url
        if not target:
            raise SyncFailedError("Configure a Cloud Sync URL in Settings first")
        if self._sync_service is None:
            raise SyncFailedError("No cloud sync service is configured")

        self._is_syncing = True
        try:
            success = await self._sync_service.push_snapshot(target, self._store.state)
        finally:
            self._is_syncing = False

        self._store.record_activity(ActivityLogBuilder.cloud_sync(success, session.username))
        if not success:
            raise SyncFailedError("Failed to sync with Google Cloud")
        return self._store.mark_synced()


def build_sync_service(settings: AppSettings) -> SyncServiceInterface:
    if settings.sync_backend == "sheets":
        return GoogleSheetsSyncService()
    return WebhookSyncService(timeout=settings.sync_timeout_seconds)


def create_app_components(
    settings: Optional[AppSettings] = None,
    storage: Optional[StateStorageInterface] = None,
    sync_service: Optional[SyncServiceInterface] = None,
    insight_agent: Optional[InsightAgent] = None,
) -> LedgerService:
    """
    Factory function to create all application components.

    Args:
        settings: Application settings (defaults to the environment)
        storage: Snapshot storage (defaults to the configured JSON file)
        sync_service: Cloud sync backend (defaults per settings.sync_backend)
        insight_agent: AI tips (created lazily on first use when None)

    Returns:
        The LedgerService the UI talks to

    Raises:
        SnapshotCorruptedError: The saved snapshot cannot be read. The
            file is left alone so nothing is lost.
    """
    settings = settings or get_settings().app
    storage = storage or JsonFileStateStorage(settings.data_file, settings.storage_key)

    state = storage.load_or_init(settings)
    store = RecordStore(
        state=state,
        storage=storage,
        activity_logger=ActivityLogger(),
        settings=settings,
    )

    return LedgerService(
        store=store,
        sync_service=sync_service or build_sync_service(settings),
        insight_agent=insight_agent,
        settings=settings,
    )

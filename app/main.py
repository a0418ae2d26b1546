"""
Streamlit Frontend for FinVue Ledger

This is the interface the office uses every day: staff record expenses
and requisitions, managers verify them, admins approve, manage users
and keep an eye on the activity log.

DESIGN PRINCIPLES:
1. Pages only render; every rule lives in LedgerService
2. Only the actions a viewer may take are shown
3. Clear error messages in simple language
4. Visual feedback for every operation

The UI never passes a role or user id into the ledger. It asks the
service, which resolves the signed-in user itself.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal, InvalidOperation

import streamlit as st

from finvue.agents import headline_tip
from finvue.config import get_settings, validate_all_settings
from finvue.ledger import (
    COMPANY_NAME_MAX_LENGTH,
    LedgerError,
    SyncFailedError,
    ValidationFailedError,
)
from finvue.models import (
    ActivityType,
    LedgerFilters,
    LedgerView,
    PaymentSource,
    Session,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    UserDraft,
    UserRole,
    ValidationResult,
    available_categories,
    find_category,
)
from finvue.orchestrator import LedgerService, create_app_components
from finvue.services import InvalidImageError, SnapshotCorruptedError
from finvue.validation import get_user_friendly_summary


# Page configuration
st.set_page_config(
    page_title="FinVue Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .tip-box {
        padding: 16px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #4f46e5;
        margin: 10px 0;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

STATUS_BADGES = {
    TransactionStatus.PENDING: "🟡 Pending",
    TransactionStatus.VERIFIED: "🔵 Verified",
    TransactionStatus.APPROVED: "🟢 Approved",
    TransactionStatus.REJECTED: "🔴 Rejected",
}

ACTION_LABELS = {
    TransactionStatus.VERIFIED: "✔️ Verify",
    TransactionStatus.APPROVED: "✅ Approve",
    TransactionStatus.REJECTED: "⛔ Reject",
}

TIP_ICONS = {"saving": "💰", "warning": "⚠️", "info": "💡"}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_service() -> LedgerService:
    """Get or create the ledger service (cached)."""
    settings = get_settings().app
    logging.basicConfig(level=settings.log_level.upper())
    return create_app_components(settings)


def money(amount: Decimal) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    try:
        service = get_service()
    except SnapshotCorruptedError as e:
        st.error(f"The saved ledger could not be read: {e}")
        st.stop()

    session = service.current_session()
    if session is None:
        render_login_page(service)
        return

    state = service.store.state

    # Sidebar navigation
    if state.company_logo:
        st.sidebar.image(state.company_logo, width=96)
    st.sidebar.title(f"📒 {state.company_name or 'FinVue'}")
    st.sidebar.caption(f"Signed in as **{session.username}** ({session.role.label})")
    st.sidebar.markdown("---")

    pages = [
        "📊 Dashboard",
        "💸 Transactions",
        "📋 Requisitions",
        "🚫 Rejected",
        "💡 Insights",
        "👤 Profile",
    ]
    if session.is_admin:
        pages += ["👥 Users", "🕓 Activity Log", "⚙️ Settings"]

    page = st.sidebar.radio("Navigate to:", pages, index=0)

    st.sidebar.markdown("---")
    if st.sidebar.button("🌙 Dark mode" if not state.dark_mode else "☀️ Light mode"):
        service.toggle_dark_mode()
        st.rerun()
    if st.sidebar.button("🚪 Log out"):
        service.logout()
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(service)
    elif page == "💸 Transactions":
        render_ledger_page(service, session, LedgerView.DEFAULT)
    elif page == "📋 Requisitions":
        render_ledger_page(service, session, LedgerView.REQUISITIONS)
    elif page == "🚫 Rejected":
        render_ledger_page(service, session, LedgerView.REJECTED)
    elif page == "💡 Insights":
        render_insights_page(service)
    elif page == "👤 Profile":
        render_profile_page(service)
    elif page == "👥 Users":
        render_users_page(service, session)
    elif page == "🕓 Activity Log":
        render_activity_page(service)
    elif page == "⚙️ Settings":
        render_settings_page(service)


def render_login_page(service: LedgerService):
    """Render the sign-in form."""
    st.title(f"📒 {service.store.state.company_name or 'FinVue Ledger'}")
    st.markdown("Sign in to continue.")

    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        if service.login(username, password) is None:
            st.error("Invalid username or password.")
        else:
            st.rerun()


def render_dashboard_page(service: LedgerService):
    """Render balances, the category chart and the headline tip."""
    st.title("📊 Dashboard")
    dashboard = service.dashboard()
    balance = dashboard.balance

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", money(balance.income))
    col2.metric("Expenses", money(balance.expenses))
    col3.metric("Balance", money(balance.balance))

    st.markdown("### Balance by source")
    source_cols = st.columns(len(PaymentSource))
    for col, source in zip(source_cols, PaymentSource):
        col.metric(source.value, money(balance.source_balances.get(source, Decimal("0"))))

    st.caption(
        f"{balance.count} approved transactions · "
        f"{dashboard.awaiting_action} awaiting your action · "
        f"{dashboard.rejected} rejected"
    )

    if "tips" not in st.session_state:
        with st.spinner("Analysing spending..."):
            st.session_state.tips = run_async(service.fetch_tips())
    tip = headline_tip(st.session_state.tips)
    if tip:
        st.markdown(f"""
        <div class="tip-box">
            <strong>{TIP_ICONS.get(tip.type, '💡')} Insight</strong>
            <p>{tip.tip}</p>
        </div>
        """, unsafe_allow_html=True)

    if dashboard.breakdown:
        st.markdown("### Expenses by category")
        st.bar_chart({c.name: float(c.value) for c in dashboard.breakdown})

    st.markdown("### Recent transactions")
    for transaction in dashboard.recent:
        st.markdown(
            f"- {transaction.date:%d %b %Y} · **{transaction.category}** · "
            f"{money(transaction.amount)} · {STATUS_BADGES[transaction.status]}"
        )

    st.markdown("---")
    last_synced = service.store.state.last_synced
    st.caption(f"Last synced: {last_synced or 'never'}")
    if st.button("☁️ Sync to Cloud", disabled=service.is_syncing):
        with st.spinner("Synchronizing..."):
            try:
                run_async(service.sync_to_cloud())
                st.success("Synchronized with Google Sheets.")
            except SyncFailedError as e:
                st.error(str(e))


def render_transaction_form(service: LedgerService, session: Session, editing: Transaction = None):
    """Form for a new transaction, or for editing one."""
    key = editing.id if editing else "new"

    types = [TransactionType.EXPENSE]
    if session.role != UserRole.EMPLOYEE:
        types.append(TransactionType.INCOME)
    tx_type = st.selectbox(
        "Type",
        types,
        index=types.index(editing.type) if editing and editing.type in types else 0,
        format_func=lambda t: t.value.title(),
        key=f"type_{key}",
    )

    categories = available_categories(tx_type, session.role)
    names = [c.name for c in categories]
    category_name = st.selectbox(
        "Category",
        names,
        index=names.index(editing.category) if editing and editing.category in names else 0,
        key=f"category_{key}",
    )
    category = find_category(category_name)

    sub_category = None
    if category and category.needs_subcategory:
        options = list(category.subcategory_options)
        sub_category = st.selectbox(
            "Sub-category",
            options,
            index=options.index(editing.sub_category)
            if editing and editing.sub_category in options else 0,
            key=f"sub_{key}",
        )

    col1, col2, col3 = st.columns(3)
    with col1:
        amount_text = st.text_input(
            "Amount",
            value=str(editing.amount) if editing else "",
            key=f"amount_{key}",
        )
    with col2:
        source = st.selectbox(
            "Source",
            list(PaymentSource),
            index=list(PaymentSource).index(editing.source) if editing else 0,
            format_func=lambda s: s.value,
            key=f"source_{key}",
        )
    with col3:
        tx_date = st.date_input(
            "Date",
            value=editing.date if editing else date.today(),
            key=f"date_{key}",
        )
    note = st.text_area("Note", value=editing.note if editing else "", key=f"note_{key}")

    if st.button("💾 Save", type="primary", key=f"save_{key}"):
        try:
            amount = Decimal(amount_text.strip() or "0")
        except InvalidOperation:
            st.error("Amount must be a number.")
            return
        draft = TransactionDraft(
            amount=amount,
            type=tx_type,
            category=category_name,
            sub_category=sub_category,
            source=source,
            date=tx_date,
            note=note,
        )
        try:
            service.save_transaction(draft, editing_id=editing.id if editing else None)
            st.session_state.pop("tips", None)
            st.success("Transaction saved.")
            st.rerun()
        except ValidationFailedError as e:
            st.error(get_user_friendly_summary(ValidationResult(issues=e.issues)))
        except LedgerError as e:
            st.error(str(e))


def render_ledger_page(service: LedgerService, session: Session, view: LedgerView):
    """Render one partition of the ledger with its filter bar."""
    titles = {
        LedgerView.DEFAULT: "💸 Transactions",
        LedgerView.REQUISITIONS: "📋 Requisitions",
        LedgerView.REJECTED: "🚫 Rejected",
    }
    st.title(titles[view])

    if view != LedgerView.REJECTED:
        with st.expander("➕ New transaction"):
            render_transaction_form(service, session)

    # Filters
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        search = st.text_input("Search", key=f"search_{view.value}")
    with col2:
        users = service.store.users if session.sees_all_transactions else []
        user_id = st.selectbox(
            "User",
            [None] + [u.id for u in users],
            format_func=lambda uid: "All users" if uid is None else service.store.get_user(uid).username,
            key=f"user_{view.value}",
        )
    with col3:
        category = st.selectbox(
            "Category",
            [None] + sorted({t.category for t in service.transactions(LedgerFilters(view=view))}),
            format_func=lambda c: "All categories" if c is None else c,
            key=f"category_{view.value}",
        )
    with col4:
        date_range = st.date_input("Date range", value=[], key=f"dates_{view.value}")

    date_from = date_range[0] if len(date_range) > 0 else None
    date_to = date_range[1] if len(date_range) > 1 else None
    filters = LedgerFilters(
        search=search,
        user_id=user_id,
        category=category,
        date_from=date_from,
        date_to=date_to,
        view=view,
    )

    transactions = service.transactions(filters)
    summary = service.summary(filters)

    col1, col2, col3 = st.columns(3)
    if view == LedgerView.REQUISITIONS:
        col1.metric("Requisitions", money(summary.requisition_total))
    else:
        col1.metric("Revenue", money(summary.revenue))
        col2.metric("Outflow", money(summary.outflow))
    col3.download_button(
        "📥 Export to Excel",
        data=service.export_transactions(filters),
        file_name=f"finvue_{view.value}_{date.today().isoformat()}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    st.markdown("---")
    if not transactions:
        st.info("📋 No transactions match these filters.")
        return

    for transaction in transactions:
        render_transaction_row(service, session, transaction)


def render_transaction_row(service: LedgerService, session: Session, transaction: Transaction):
    sub = f" / {transaction.sub_category}" if transaction.sub_category else ""
    header = (
        f"{transaction.date:%d %b %Y} · {transaction.category}{sub} · "
        f"{money(transaction.amount)} · {STATUS_BADGES[transaction.status]}"
    )
    with st.expander(header):
        st.markdown(f"**Type:** {transaction.type.value.title()} · **Source:** {transaction.source.value}")
        st.markdown(f"**Recorded by:** {transaction.created_by}")
        if transaction.note:
            st.markdown(f"**Note:** {transaction.note}")

        allowed = service.allowed_transitions(transaction)
        actions = [s for s in ACTION_LABELS if s in allowed]
        if actions:
            cols = st.columns(len(actions))
            for col, target in zip(cols, actions):
                if col.button(ACTION_LABELS[target], key=f"{target.value}_{transaction.id}"):
                    try:
                        service.set_status(transaction.id, target)
                        st.session_state.pop("tips", None)
                        st.rerun()
                    except LedgerError as e:
                        st.error(str(e))

        can_edit = (
            transaction.status != TransactionStatus.REJECTED
            and (session.sees_all_transactions or transaction.user_id == session.user_id)
        )
        if can_edit and st.checkbox("✏️ Edit", key=f"edit_{transaction.id}"):
            render_transaction_form(service, session, editing=transaction)

        if session.is_admin and st.button("🗑️ Delete", key=f"delete_{transaction.id}"):
            try:
                service.delete_transaction(transaction.id)
                st.session_state.pop("tips", None)
                st.rerun()
            except LedgerError as e:
                st.error(str(e))


def render_insights_page(service: LedgerService):
    """Render all AI tips."""
    st.title("💡 Insights")
    st.markdown("Tips based on your approved transactions.")

    if st.button("🔄 Refresh insights") or "tips" not in st.session_state:
        with st.spinner("Analysing spending..."):
            st.session_state.tips = run_async(service.fetch_tips())

    for tip in st.session_state.tips:
        box = "warning-box" if tip.type == "warning" else "tip-box"
        st.markdown(f"""
        <div class="{box}">
            <strong>{TIP_ICONS.get(tip.type, '💡')} {tip.type.title()}</strong>
            <p>{tip.tip}</p>
        </div>
        """, unsafe_allow_html=True)


def render_profile_page(service: LedgerService):
    """Render the signed-in user's profile."""
    st.title("👤 Profile")
    user = service.current_user()

    if user.profile_pic:
        st.image(user.profile_pic, width=128)
    st.markdown(f"**Username:** {user.username}")
    st.markdown(f"**Role:** {user.role.label}")

    uploaded = st.file_uploader("Profile picture", type=["png", "jpg", "jpeg"])
    if uploaded and st.button("📤 Upload picture"):
        try:
            service.update_profile_picture(uploaded.read())
            st.success("Profile picture updated.")
            st.rerun()
        except (InvalidImageError, LedgerError) as e:
            st.error(str(e))


def render_users_page(service: LedgerService, session: Session):
    """Render user management (admins only)."""
    st.title("👥 Users")

    with st.expander("➕ New user"):
        with st.form("new_user"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            role = st.selectbox("Role", list(UserRole), format_func=lambda r: r.label)
            submitted = st.form_submit_button("Create user", type="primary")
        if submitted:
            try:
                service.save_user(UserDraft(username=username, password=password, role=role))
                st.success(f"User {username} created.")
                st.rerun()
            except ValidationFailedError as e:
                st.error(get_user_friendly_summary(ValidationResult(issues=e.issues)))
            except LedgerError as e:
                st.error(str(e))

    st.markdown("---")
    for user in service.store.users:
        with st.expander(f"{user.username} · {user.role.label}"):
            with st.form(f"user_{user.id}"):
                username = st.text_input("Username", value=user.username)
                password = st.text_input(
                    "New password",
                    type="password",
                    help="Leave blank to keep the current password",
                )
                role = st.selectbox(
                    "Role",
                    list(UserRole),
                    index=list(UserRole).index(user.role),
                    format_func=lambda r: r.label,
                )
                saved = st.form_submit_button("Save")
            if saved:
                try:
                    service.save_user(
                        UserDraft(username=username, password=password, role=role),
                        editing_id=user.id,
                    )
                    st.rerun()
                except ValidationFailedError as e:
                    st.error(get_user_friendly_summary(ValidationResult(issues=e.issues)))
                except LedgerError as e:
                    st.error(str(e))

            if user.role != UserRole.ADMIN and st.button("🗑️ Delete user", key=f"del_{user.id}"):
                try:
                    service.delete_user(user.id)
                    st.rerun()
                except LedgerError as e:
                    st.error(str(e))


def render_activity_page(service: LedgerService):
    """Render the activity trail (admins only)."""
    st.title("🕓 Activity Log")

    kinds = st.multiselect(
        "Show",
        list(ActivityType),
        default=list(ActivityType),
        format_func=lambda t: t.value.title(),
    )
    entries = [e for e in service.store.activity_logs if e.type in kinds]
    if not entries:
        st.info("No activity yet.")
        return

    st.dataframe(
        [
            {
                "When": e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "User": e.username,
                "Action": e.action,
                "Details": e.details,
                "Area": e.type.value,
            }
            for e in entries
        ],
        use_container_width=True,
    )


def render_settings_page(service: LedgerService):
    """Render branding, cloud sync and connection status."""
    st.title("⚙️ Settings")
    state = service.store.state

    st.markdown("### Branding")
    company_name = st.text_input(
        "Company name", value=state.company_name or "", max_chars=COMPANY_NAME_MAX_LENGTH
    )
    if st.button("💾 Save name"):
        try:
            service.update_company_name(company_name)
            st.rerun()
        except LedgerError as e:
            st.error(str(e))

    logo = st.file_uploader("Company logo", type=["png", "jpg", "jpeg"])
    col1, col2 = st.columns(2)
    if logo and col1.button("📤 Upload logo"):
        try:
            service.update_company_logo(logo.read())
            st.rerun()
        except (InvalidImageError, LedgerError) as e:
            st.error(str(e))
    if state.company_logo and col2.button("🗑️ Remove logo"):
        service.update_company_logo(None)
        st.rerun()

    st.markdown("### Cloud Sync")
    sheet_url = st.text_input(
        "Apps Script URL or spreadsheet",
        value=state.sheet_url or "",
        help="Where Sync to Cloud sends the ledger",
    )
    if st.button("💾 Save sync target"):
        service.set_sheet_url(sheet_url)
        st.success("Cloud sync target saved.")

    st.markdown("### Connection Status")
    status = validate_all_settings()
    services = [
        ("Google Sheets (Sync)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()

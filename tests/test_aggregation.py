"""Tests for the aggregation engine."""

from datetime import date
from decimal import Decimal

import pytest

from finvue.models import (
    LedgerFilters,
    LedgerView,
    PaymentSource,
    Session,
    TransactionStatus,
    TransactionType,
    UserRole,
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


ADMIN = Session(user_id="admin_1", username="admin", role=UserRole.ADMIN)
MANAGER = Session(user_id="m", username="maya", role=UserRole.MANAGER)
ALICE = Session(user_id="u1", username="alice", role=UserRole.EMPLOYEE)
BOB = Session(user_id="u2", username="bob", role=UserRole.BILLING_EXECUTIVE)


@pytest.fixture
def ledger(make_transaction):
    return [
        make_transaction(amount="1000.00", type=TransactionType.INCOME, category="Sales",
                         source=PaymentSource.BANK, user_id="admin_1", created_by="admin",
                         on=date(2026, 3, 1), note="March invoice"),
        make_transaction(amount="300.00", category="Rent", source=PaymentSource.BANK,
                         user_id="admin_1", created_by="admin", on=date(2026, 3, 2)),
        make_transaction(amount="40.00", category="Conveyance", sub_category="CNG",
                         source=PaymentSource.CASH, user_id="u1", created_by="alice",
                         on=date(2026, 3, 3), note="Client visit"),
        make_transaction(amount="25.00", category="Conveyance", sub_category="Bus",
                         status=TransactionStatus.PENDING, user_id="u1", created_by="alice",
                         on=date(2026, 3, 3)),
        make_transaction(amount="500.00", category="Requisition",
                         user_id="u1", created_by="alice", on=date(2026, 3, 4)),
        make_transaction(amount="70.00", category="Requisition", status=TransactionStatus.REJECTED,
                         user_id="u1", created_by="alice", on=date(2026, 3, 5)),
        make_transaction(amount="60.00", category="Food & Dining", status=TransactionStatus.REJECTED,
                         user_id="u2", created_by="bob", on=date(2026, 2, 20)),
        make_transaction(amount="15.50", category="Food & Dining", source=PaymentSource.NAGAD,
                         user_id="u2", created_by="bob", on=date(2026, 2, 28), note="Team TEA"),
    ]


class TestVisibilityScope:

    @pytest.mark.parametrize("session", [ADMIN, MANAGER])
    def test_privileged_roles_see_everything(self, ledger, session):
        assert len(visibility_scope(ledger, session)) == len(ledger)

    def test_others_see_their_own(self, ledger):
        assert {t.user_id for t in visibility_scope(ledger, ALICE)} == {"u1"}
        assert {t.user_id for t in visibility_scope(ledger, BOB)} == {"u2"}


class TestLedgerBalance:

    def test_totals_for_admin(self, ledger):
        balance = ledger_balance(ledger, ADMIN)
        assert balance.income == Decimal("1000.00")
        assert balance.expenses == Decimal("355.50")
        assert balance.balance == Decimal("644.50")
        assert balance.count == 4

    def test_every_source_present(self, ledger):
        balance = ledger_balance(ledger, ADMIN)
        assert set(balance.source_balances) == set(PaymentSource)
        assert balance.source_balances[PaymentSource.BANK] == Decimal("700.00")
        assert balance.source_balances[PaymentSource.CASH] == Decimal("-40.00")
        assert balance.source_balances[PaymentSource.NAGAD] == Decimal("-15.50")
        assert balance.source_balances[PaymentSource.BKASH] == Decimal("0")

    def test_requisitions_never_count(self, ledger):
        balance = ledger_balance(ledger, ALICE)
        # Only the approved CNG ride; the approved requisition is isolated
        assert balance.expenses == Decimal("40.00")
        assert balance.count == 1

    def test_empty_ledger(self):
        balance = ledger_balance([], ADMIN)
        assert balance.balance == Decimal("0")
        assert all(v == Decimal("0") for v in balance.source_balances.values())


class TestFilteredView:

    def test_default_view_hides_requisitions_and_rejected(self, ledger):
        view = filtered_view(ledger, ADMIN)
        assert all(not t.is_requisition for t in view)
        assert all(t.status != TransactionStatus.REJECTED for t in view)
        assert len(view) == 5

    def test_requisition_view_includes_rejected_ones(self, ledger):
        view = filtered_view(ledger, ADMIN, LedgerFilters(view=LedgerView.REQUISITIONS))
        assert [t.amount for t in view] == [Decimal("70.00"), Decimal("500.00")]
        assert view[0].status == TransactionStatus.REJECTED

    def test_rejected_view(self, ledger):
        view = filtered_view(ledger, ADMIN, LedgerFilters(view=LedgerView.REJECTED))
        assert [t.amount for t in view] == [Decimal("70.00"), Decimal("60.00")]

    def test_search_is_case_insensitive(self, ledger):
        assert len(filtered_view(ledger, ADMIN, LedgerFilters(search="tea"))) == 1
        assert len(filtered_view(ledger, ADMIN, LedgerFilters(search="ALICE"))) == 2
        assert len(filtered_view(ledger, ADMIN, LedgerFilters(search="rent"))) == 1

    def test_user_and_category_filters(self, ledger):
        view = filtered_view(ledger, ADMIN, LedgerFilters(user_id="u1", category="Conveyance"))
        assert len(view) == 2

    def test_date_range_is_inclusive(self, ledger):
        filters = LedgerFilters(date_from=date(2026, 3, 1), date_to=date(2026, 3, 2))
        view = filtered_view(ledger, ADMIN, filters)
        assert {t.date for t in view} == {date(2026, 3, 1), date(2026, 3, 2)}

    def test_newest_first_and_stable(self, ledger):
        view = filtered_view(ledger, ADMIN)
        dates = [t.date for t in view]
        assert dates == sorted(dates, reverse=True)
        same_day = [t for t in view if t.date == date(2026, 3, 3)]
        # Store order is kept for ties
        assert [t.sub_category for t in same_day] == ["CNG", "Bus"]

    def test_idempotent(self, ledger):
        filters = LedgerFilters(search="a")
        once = filtered_view(ledger, ADMIN, filters)
        assert filtered_view(once, ADMIN, filters) == once

    def test_scope_applies_first(self, ledger):
        view = filtered_view(ledger, BOB, LedgerFilters(user_id="u1"))
        assert view == []


class TestSummaries:

    def test_category_breakdown(self, ledger):
        breakdown = category_breakdown(ledger, ADMIN)
        assert [(c.name, c.value) for c in breakdown] == [
            ("Rent", Decimal("300.00")),
            ("Conveyance", Decimal("40.00")),
            ("Food & Dining", Decimal("15.50")),
        ]

    def test_category_breakdown_is_scoped(self, ledger):
        assert [c.name for c in category_breakdown(ledger, BOB)] == ["Food & Dining"]

    def test_filtered_summary_of_default_view(self, ledger):
        summary = filtered_summary(filtered_view(ledger, ADMIN))
        assert summary.revenue == Decimal("1000.00")
        assert summary.outflow == Decimal("355.50")
        assert summary.requisition_total == Decimal("0")

    def test_filtered_summary_of_requisitions(self, ledger):
        view = filtered_view(ledger, ADMIN, LedgerFilters(view=LedgerView.REQUISITIONS))
        # The rejected 70.00 is listed but not counted
        assert filtered_summary(view).requisition_total == Decimal("500.00")

    def test_rejected_transactions(self, ledger):
        assert [t.amount for t in rejected_transactions(ledger, ADMIN)] == [
            Decimal("70.00"),
            Decimal("60.00"),
        ]
        assert [t.amount for t in rejected_transactions(ledger, ALICE)] == [Decimal("70.00")]

    def test_ai_input_matches_balance_set(self, ledger):
        rows = ai_input(ledger, ADMIN)
        assert len(rows) == ledger_balance(ledger, ADMIN).count
        assert all(t.status == TransactionStatus.APPROVED and not t.is_requisition for t in rows)

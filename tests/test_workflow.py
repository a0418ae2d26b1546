"""Tests for the approval state machine."""

import pytest

from finvue.ledger import ApprovalWorkflow, PermissionDeniedError
from finvue.models import Session, TransactionStatus, TransactionType, UserRole


ADMIN = Session(user_id="a", username="admin", role=UserRole.ADMIN)
MANAGER = Session(user_id="m", username="maya", role=UserRole.MANAGER)
EMPLOYEE = Session(user_id="e", username="eli", role=UserRole.EMPLOYEE)
BILLING = Session(user_id="b", username="bea", role=UserRole.BILLING_EXECUTIVE)


class TestInitialStatus:

    def test_income_is_approved_for_everyone(self):
        for role in UserRole:
            assert ApprovalWorkflow.initial_status(TransactionType.INCOME, role) == TransactionStatus.APPROVED

    def test_admin_expense_is_approved(self):
        assert ApprovalWorkflow.initial_status(
            TransactionType.EXPENSE, UserRole.ADMIN
        ) == TransactionStatus.APPROVED

    @pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.EMPLOYEE, UserRole.BILLING_EXECUTIVE])
    def test_other_expenses_wait(self, role):
        assert ApprovalWorkflow.initial_status(TransactionType.EXPENSE, role) == TransactionStatus.PENDING


class TestTransitions:

    def test_manager_on_pending_expense(self, make_transaction):
        tx = make_transaction(status=TransactionStatus.PENDING)
        assert ApprovalWorkflow.allowed_transitions(tx, MANAGER) == {
            TransactionStatus.VERIFIED,
            TransactionStatus.REJECTED,
        }

    def test_manager_cannot_verify_income(self, make_transaction):
        tx = make_transaction(type=TransactionType.INCOME, category="Sales", status=TransactionStatus.PENDING)
        assert ApprovalWorkflow.allowed_transitions(tx, MANAGER) == {TransactionStatus.REJECTED}

    def test_manager_verifies_income_requisition(self, make_transaction):
        tx = make_transaction(
            type=TransactionType.INCOME,
            category="Requisition",
            status=TransactionStatus.PENDING,
        )
        updated = ApprovalWorkflow.transition(tx, TransactionStatus.VERIFIED, MANAGER)
        assert updated.status == TransactionStatus.VERIFIED

    def test_manager_cannot_touch_verified(self, make_transaction):
        tx = make_transaction(status=TransactionStatus.VERIFIED)
        assert ApprovalWorkflow.allowed_transitions(tx, MANAGER) == set()

    @pytest.mark.parametrize("status", [TransactionStatus.PENDING, TransactionStatus.VERIFIED])
    def test_admin_approves_or_rejects(self, make_transaction, status):
        tx = make_transaction(status=status)
        assert ApprovalWorkflow.allowed_transitions(tx, ADMIN) == {
            TransactionStatus.APPROVED,
            TransactionStatus.REJECTED,
        }

    def test_admin_cannot_verify(self, make_transaction):
        tx = make_transaction(status=TransactionStatus.PENDING)
        assert not ApprovalWorkflow.can_transition(tx, TransactionStatus.VERIFIED, ADMIN)

    @pytest.mark.parametrize("status", [TransactionStatus.APPROVED, TransactionStatus.REJECTED])
    @pytest.mark.parametrize("session", [ADMIN, MANAGER, EMPLOYEE, BILLING])
    def test_terminal_states(self, make_transaction, status, session):
        tx = make_transaction(status=status)
        assert ApprovalWorkflow.allowed_transitions(tx, session) == set()

    @pytest.mark.parametrize("session", [EMPLOYEE, BILLING])
    def test_unprivileged_roles_have_no_moves(self, make_transaction, session):
        tx = make_transaction(status=TransactionStatus.PENDING, category="Requisition")
        assert ApprovalWorkflow.allowed_transitions(tx, session) == set()

    def test_illegal_move_raises_and_leaves_input(self, make_transaction):
        tx = make_transaction(status=TransactionStatus.VERIFIED)
        with pytest.raises(PermissionDeniedError):
            ApprovalWorkflow.transition(tx, TransactionStatus.PENDING, ADMIN)
        assert tx.status == TransactionStatus.VERIFIED

    def test_transition_returns_copy(self, make_transaction):
        tx = make_transaction(status=TransactionStatus.PENDING)
        updated = ApprovalWorkflow.transition(tx, TransactionStatus.APPROVED, ADMIN)
        assert updated.id == tx.id
        assert updated.status == TransactionStatus.APPROVED
        assert tx.status == TransactionStatus.PENDING

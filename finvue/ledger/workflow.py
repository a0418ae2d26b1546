"""
Approval Workflow

The status state machine for transactions, gated by the actor's role:

    PENDING ──(MANAGER verifies)──> VERIFIED ──(ADMIN approves)──> APPROVED
       │  └──────────────(ADMIN approves)──────────────────────────┘
       └──(MANAGER or ADMIN rejects)──> REJECTED <──(ADMIN rejects)── VERIFIED

APPROVED and REJECTED are terminal. The rules are pure: they look at the
transaction and the session and never touch the store.
"""

from finvue.ledger.errors import PermissionDeniedError
from finvue.models.ledger import (
    Session,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserRole,
)


class ApprovalWorkflow:
    """Decides initial statuses and which transitions an actor may make."""

    @staticmethod
    def initial_status(
        transaction_type: TransactionType,
        creator_role: UserRole,
    ) -> TransactionStatus:
        """
        Status given to a freshly recorded transaction.

        Income is settled on entry; expenses wait for approval unless an
        admin records them.
        """
        if transaction_type == TransactionType.INCOME:
            return TransactionStatus.APPROVED
        if creator_role == UserRole.ADMIN:
            return TransactionStatus.APPROVED
        return TransactionStatus.PENDING

    @staticmethod
    def allowed_transitions(
        transaction: Transaction,
        session: Session,
    ) -> set[TransactionStatus]:
        """Every status the actor may move this transaction to."""
        current = transaction.status
        allowed: set[TransactionStatus] = set()
        if current.is_terminal:
            return allowed

        if session.role == UserRole.MANAGER and current == TransactionStatus.PENDING:
            # Requisitions may be verified whatever their type
            if transaction.type == TransactionType.EXPENSE or transaction.is_requisition:
                allowed.add(TransactionStatus.VERIFIED)
            allowed.add(TransactionStatus.REJECTED)

        if session.role == UserRole.ADMIN:
            allowed.add(TransactionStatus.APPROVED)
            allowed.add(TransactionStatus.REJECTED)

        return allowed

    @classmethod
    def can_transition(
        cls,
        transaction: Transaction,
        target: TransactionStatus,
        session: Session,
    ) -> bool:
        return target in cls.allowed_transitions(transaction, session)

    @classmethod
    def transition(
        cls,
        transaction: Transaction,
        target: TransactionStatus,
        session: Session,
    ) -> Transaction:
        """
        Return a copy of the transaction in the target status.

        Raises:
            PermissionDeniedError: The move is not in the table for this role.
                The given transaction is left untouched.
        """
        if not cls.can_transition(transaction, target, session):
            raise PermissionDeniedError(
                f"{session.role.label} cannot move transaction "
                f"{transaction.short_id} from {transaction.status.value} "
                f"to {target.value}"
            )
        return transaction.model_copy(update={"status": target})

"""
Aggregation Engine

DESIGN DECISION: Every number on screen is DERIVED, never stored.
These are pure functions of (transactions, session): they are recomputed
on every read, they never touch the store, and the same input always
gives the same output.

Two rules run through all of them:
- Visibility scope: ADMIN and MANAGER see everything, everyone else only
  their own transactions
- Requisitions are an isolated ledger. They are tracked for approval
  but never count toward balances or the category chart

Sums are exact Decimals. Sorting is stable, so transactions that share a
date keep their store order (newest entry first).
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from finvue.models.ledger import (
    CategoryTotal,
    FilteredSummary,
    LedgerBalance,
    LedgerFilters,
    LedgerView,
    PaymentSource,
    Session,
    Transaction,
    TransactionStatus,
    TransactionType,
)


ZERO = Decimal("0")


def visibility_scope(
    transactions: Iterable[Transaction],
    session: Session,
) -> list[Transaction]:
    """Transactions the viewer is permitted to see."""
    if session.sees_all_transactions:
        return list(transactions)
    return [t for t in transactions if t.user_id == session.user_id]


def _counts_toward_totals(transaction: Transaction) -> bool:
    return (
        transaction.status == TransactionStatus.APPROVED
        and not transaction.is_requisition
    )


def _sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def ledger_balance(
    transactions: Iterable[Transaction],
    session: Session,
) -> LedgerBalance:
    """
    Income, expenses and per-source balances over approved,
    non-requisition transactions in scope.

    Every payment source is present in the result, at zero if unused.
    """
    relevant = [
        t for t in visibility_scope(transactions, session)
        if _counts_toward_totals(t)
    ]

    source_balances = {source: ZERO for source in PaymentSource}
    income = ZERO
    expenses = ZERO
    for t in relevant:
        if t.type == TransactionType.INCOME:
            income += t.amount
            source_balances[t.source] += t.amount
        else:
            expenses += t.amount
            source_balances[t.source] -= t.amount

    return LedgerBalance(
        income=income,
        expenses=expenses,
        count=len(relevant),
        source_balances=source_balances,
    )


def _in_view(transaction: Transaction, view: LedgerView) -> bool:
    rejected = transaction.status == TransactionStatus.REJECTED
    if view == LedgerView.REJECTED:
        return rejected
    if view == LedgerView.REQUISITIONS:
        return transaction.is_requisition
    return not transaction.is_requisition and not rejected


def _matches_search(transaction: Transaction, needle: str) -> bool:
    return (
        needle in transaction.note.lower()
        or needle in transaction.category.lower()
        or needle in transaction.created_by.lower()
    )


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def filtered_view(
    transactions: Iterable[Transaction],
    session: Session,
    filters: Optional[LedgerFilters] = None,
) -> list[Transaction]:
    """
    The list a ledger page shows.

    Applied in order: scope, view partition, free-text search over
    note/category/creator, user and category equality, inclusive date
    range, then newest date first.
    """
    filters = filters or LedgerFilters()
    needle = filters.search.strip().lower()

    result = [
        t for t in visibility_scope(transactions, session)
        if _in_view(t, filters.view)
    ]
    if needle:
        result = [t for t in result if _matches_search(t, needle)]
    if filters.user_id:
        result = [t for t in result if t.user_id == filters.user_id]
    if filters.category:
        result = [t for t in result if t.category == filters.category]
    if filters.date_from:
        result = [t for t in result if t.date >= filters.date_from]
    if filters.date_to:
        result = [t for t in result if t.date <= filters.date_to]

    return _newest_first(result)


def filtered_summary(transactions: Iterable[Transaction]) -> FilteredSummary:
    """
    Totals of an already filtered list.

    Revenue and outflow count approved, non-requisition entries only;
    the requisition total counts every requisition not rejected.
    """
    transactions = list(transactions)
    counted = [t for t in transactions if _counts_toward_totals(t)]
    return FilteredSummary(
        revenue=_sum(t for t in counted if t.type == TransactionType.INCOME),
        outflow=_sum(t for t in counted if t.type == TransactionType.EXPENSE),
        requisition_total=_sum(
            t for t in transactions
            if t.is_requisition and t.status != TransactionStatus.REJECTED
        ),
    )


def category_breakdown(
    transactions: Iterable[Transaction],
    session: Session,
) -> list[CategoryTotal]:
    """
    Approved, non-requisition expenses in scope, summed per category.

    Largest slice first; equal totals keep first-seen order.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in visibility_scope(transactions, session):
        if _counts_toward_totals(t) and t.type == TransactionType.EXPENSE:
            totals[t.category] += t.amount

    breakdown = [CategoryTotal(name=name, value=value) for name, value in totals.items()]
    return sorted(breakdown, key=lambda c: c.value, reverse=True)


def rejected_transactions(
    transactions: Iterable[Transaction],
    session: Session,
) -> list[Transaction]:
    """Rejected transactions in scope, newest date first."""
    return _newest_first(
        t for t in visibility_scope(transactions, session)
        if t.status == TransactionStatus.REJECTED
    )


def ai_input(
    transactions: Iterable[Transaction],
    session: Session,
) -> list[Transaction]:
    """What the insight agent is allowed to see: the same set as the balance."""
    return [
        t for t in visibility_scope(transactions, session)
        if _counts_toward_totals(t)
    ]

"""Derived views and summaries over the ledger."""

from finvue.queries.aggregation import (
    ai_input,
    category_breakdown,
    filtered_summary,
    filtered_view,
    ledger_balance,
    rejected_transactions,
    visibility_scope,
)

__all__ = [
    "ai_input",
    "category_breakdown",
    "filtered_summary",
    "filtered_view",
    "ledger_balance",
    "rejected_transactions",
    "visibility_scope",
]

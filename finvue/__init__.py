"""
FinVue Ledger - Source Package

A role-based expense/income ledger for small organizations.

DESIGN PRINCIPLES:
1. Staff record → Manager verifies → Admin approves
2. Unauthorized actions are refused, never half-applied
3. Requisitions never touch the financial totals
4. Every state change is auditable
5. Storage and sync backends are swappable
"""

__version__ = "1.0.0"
__author__ = "FinVue Team"

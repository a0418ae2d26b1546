"""Input validation package."""

from finvue.validation.validator import (
    TransactionValidator,
    UserValidator,
    get_user_friendly_summary,
)

__all__ = [
    "TransactionValidator",
    "UserValidator",
    "get_user_friendly_summary",
]

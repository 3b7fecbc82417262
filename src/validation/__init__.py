"""Input validation package."""

from src.validation.validator import (
    FixedExpenseValidator,
    InputRejectedError,
    TransactionValidator,
    parse_amount,
)

__all__ = [
    "FixedExpenseValidator",
    "InputRejectedError",
    "TransactionValidator",
    "parse_amount",
]

"""Shared fixtures for Finanzas Pro tests."""

from datetime import date
from decimal import Decimal

import pytest

from src.models.finance import (
    FixedExpense,
    Transaction,
    TransactionStatus,
    TransactionType,
)


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""
    counter = {"n": 0}

    def _make(
        amount="10",
        type=TransactionType.EXPENSE,
        on=date(2024, 1, 15),
        status=TransactionStatus.PAID,
        category="Otros",
        description=None,
        **extra,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=extra.pop("id", f"t{counter['n']}"),
            description=description or f"Movimiento {counter['n']}",
            amount=Decimal(str(amount)),
            type=type,
            date=on,
            status=status,
            category=category,
            **extra,
        )

    return _make


@pytest.fixture
def rent_template():
    return FixedExpense(
        id="F1",
        description="Alquiler",
        amount=Decimal("800"),
        day=5,
        category="Alquiler",
    )

"""
Export Tables

Splits the currently filtered transactions into the three tables of the
spreadsheet export ("Todos", "Ingresos", "Gastos"). Writing the file is the
presentation layer's job; this only decides rows and headers.
"""

from typing import Iterable

from src.models.finance import Transaction, TransactionStatus, TransactionType


HEADERS = (
    "Fecha",
    "Descripción",
    "Categoría",
    "Método de pago",
    "Tipo",
    "Estado",
    "Importe",
)

TYPE_LABELS = {
    TransactionType.INCOME: "Ingreso",
    TransactionType.EXPENSE: "Gasto",
}
STATUS_LABELS = {
    TransactionStatus.PAID: "Pagado",
    TransactionStatus.PENDING: "Pendiente",
}


def export_row(transaction: Transaction) -> dict:
    """One row with the localized headers."""
    return {
        "Fecha": transaction.date.isoformat(),
        "Descripción": transaction.description,
        "Categoría": transaction.category,
        "Método de pago": transaction.payment_method or "",
        "Tipo": TYPE_LABELS[transaction.type],
        "Estado": STATUS_LABELS[transaction.status],
        "Importe": float(transaction.amount),
    }


def export_tables(transactions: Iterable[Transaction]) -> dict[str, list[dict]]:
    """Rows for the 'all', 'income' and 'expense' sheets, in input order."""
    rows = [(t.type, export_row(t)) for t in transactions]
    return {
        "Todos": [row for _, row in rows],
        "Ingresos": [row for kind, row in rows if kind == TransactionType.INCOME],
        "Gastos": [row for kind, row in rows if kind == TransactionType.EXPENSE],
    }


def export_filename(start: str, end: str) -> str:
    return f"Finanzas_Pro_{start}_{end}.xlsx"

"""
Google Sheets Store Implementation

DESIGN DECISION: Google Sheets is the document store backend because:
1. The owner can look at (and fix) their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Sheets cannot push changes, so `refresh()` re-reads and publishes;
  every successful mutation triggers one
- No transactions (last write wins, same as the live store)
- Limited query capabilities (the engine filters in Python anyway)

The implementation follows the abstract interface, so the backend can be
swapped without changing any reporting code.
"""

from decimal import Decimal
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.models.finance import (
    CategorySet,
    FinanceSnapshot,
    FixedExpense,
    FixedExpenseDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from src.services.storage.interface import (
    ConnectionError,
    FinanceStoreInterface,
    NotFoundError,
    StorageError,
    merge_fixed_expense,
)


logger = structlog.get_logger(__name__)

# Column mappings for the Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "description",
    "amount",
    "type",
    "date",
    "category",
    "status",
    "payment_method",
    "fixed_expense_id",
]

# Column mappings for the FixedExpenses sheet
FIXED_EXPENSE_COLUMNS = [
    "id",
    "description",
    "amount",
    "day",
    "category",
]

# One row per label, in display order
CATEGORY_COLUMNS = [
    "type",
    "label",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
        seed_rows: Optional[list[list]] = None,
    ) -> gspread.Worksheet:
        """Get or create a worksheet with a header row (and `seed_rows` when created)."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
            if seed_rows:
                sheet.append_rows(seed_rows, value_input_option="RAW")
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 5000)

    def get_fixed_expenses_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.fixed_expenses_sheet_name, FIXED_EXPENSE_COLUMNS, 200)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self._worksheet(
            self._settings.categories_sheet_name,
            CATEGORY_COLUMNS,
            200,
            seed_rows=categories_to_rows(CategorySet()),
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def transaction_to_row(transaction: Transaction) -> list:
    """Convert a Transaction to a spreadsheet row."""
    return [
        transaction.id,
        transaction.description,
        str(transaction.amount),
        transaction.type.value,
        transaction.date.isoformat(),
        transaction.category,
        transaction.status.value,
        transaction.payment_method or "",
        transaction.fixed_expense_id or "",
    ]


def row_to_transaction(row: list) -> Transaction:
    """Convert a spreadsheet row to a Transaction."""
    return Transaction(
        id=_safe_get(row, 0),
        description=_safe_get(row, 1),
        amount=Decimal(_safe_get(row, 2).replace(",", ".")),
        type=_safe_get(row, 3),
        date=_safe_get(row, 4),
        category=_safe_get(row, 5),
        status=_safe_get(row, 6, "paid"),
        payment_method=_safe_get(row, 7) or None,
        fixed_expense_id=_safe_get(row, 8) or None,
    )


def fixed_expense_to_row(expense: FixedExpense) -> list:
    return [
        expense.id,
        expense.description,
        str(expense.amount),
        str(expense.day) if expense.day else "",
        expense.category or "",
    ]


def row_to_fixed_expense(row: list) -> FixedExpense:
    day = _safe_get(row, 3)
    return FixedExpense(
        id=_safe_get(row, 0),
        description=_safe_get(row, 1),
        amount=Decimal(_safe_get(row, 2).replace(",", ".")),
        day=int(day) if day else None,
        category=_safe_get(row, 4) or None,
    )


def rows_to_categories(rows: list[list]) -> CategorySet:
    """
    Rebuild the category lists.

    The defaults are seeded when the sheet is created, so a sheet with no
    labels means the user removed them all.
    """
    income, expense = [], []
    for row in rows:
        kind, label = _safe_get(row, 0), _safe_get(row, 1)
        if not label:
            continue
        if kind == TransactionType.INCOME.value:
            income.append(label)
        elif kind == TransactionType.EXPENSE.value:
            expense.append(label)
    return CategorySet(income=income, expense=expense)


def categories_to_rows(categories: CategorySet) -> list[list]:
    return (
        [[TransactionType.INCOME.value, label] for label in categories.income]
        + [[TransactionType.EXPENSE.value, label] for label in categories.expense]
    )


class GoogleSheetsFinanceStore(FinanceStoreInterface):
    """
    Google Sheets implementation of the finance store.

    Each collection lives in its own worksheet, one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        super().__init__()
        self._client = client or GoogleSheetsClient()

    # Reads ------------------------------------------------------------------

    def _read_transactions(self) -> list[Transaction]:
        transactions = []
        for line, row in enumerate(self._client.get_transactions_sheet().get_all_values()[1:], start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                transactions.append(row_to_transaction(row))
            except Exception as e:
                logger.warning("malformed_transaction_row", row=line, error=str(e))
        return transactions

    def _read_fixed_expenses(self) -> list[FixedExpense]:
        expenses = []
        for line, row in enumerate(self._client.get_fixed_expenses_sheet().get_all_values()[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                expenses.append(row_to_fixed_expense(row))
            except Exception as e:
                logger.warning("malformed_fixed_expense_row", row=line, error=str(e))
        return expenses

    def _read_categories(self) -> CategorySet:
        return rows_to_categories(self._client.get_categories_sheet().get_all_values()[1:])

    async def snapshot(self) -> FinanceSnapshot:
        """Read all three collections."""
        try:
            return FinanceSnapshot(
                transactions=tuple(self._read_transactions()),
                fixed_expenses=tuple(self._read_fixed_expenses()),
                categories=self._read_categories(),
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read snapshot: {e}")

    async def refresh(self) -> FinanceSnapshot:
        """Re-read the sheets and push the result to subscribers."""
        snapshot = await self.snapshot()
        self._publish(snapshot)
        return snapshot

    @staticmethod
    def _find_row(sheet: gspread.Worksheet, record_id: str) -> Optional[int]:
        """1-based sheet row holding `record_id` (row 1 is the header)."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == record_id:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, sheet: gspread.Worksheet, row: list) -> None:
        """Append one record; only this call is retried."""
        sheet.append_row(row, value_input_option="RAW")

    async def _refresh_after_write(self, operation: str) -> None:
        """
        Publish the new state after a write that already landed.

        A failed re-read does not undo the write: subscribers keep the
        stale snapshot until the next successful refresh.
        """
        try:
            await self.refresh()
        except StorageError as e:
            logger.warning("refresh_after_write_failed", operation=operation, error=str(e))

    # Transactions -----------------------------------------------------------

    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        transaction = draft.to_transaction()
        try:
            self._append_row(self._client.get_transactions_sheet(), transaction_to_row(transaction))
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")
        await self._refresh_after_write("add_transaction")
        return transaction

    async def edit_transaction(self, transaction: Transaction) -> Transaction:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet, transaction.id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            sheet.update(
                values=[transaction_to_row(transaction)],
                range_name=f"A{idx}",
                value_input_option="RAW",
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")
        await self._refresh_after_write("edit_transaction")
        return transaction

    async def remove_transaction(self, transaction_id: str) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet, transaction_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")
        await self._refresh_after_write("remove_transaction")
        return True

    # Fixed expenses ---------------------------------------------------------

    async def add_fixed_expense(self, draft: FixedExpenseDraft) -> FixedExpense:
        expense = draft.to_fixed_expense()
        try:
            self._append_row(self._client.get_fixed_expenses_sheet(), fixed_expense_to_row(expense))
        except Exception as e:
            raise StorageError(f"Failed to save fixed expense: {e}")
        await self._refresh_after_write("add_fixed_expense")
        return expense

    async def update_fixed_expense(self, expense_id: str, changes: dict) -> FixedExpense:
        try:
            sheet = self._client.get_fixed_expenses_sheet()
            idx = self._find_row(sheet, expense_id)
            if idx is None:
                raise NotFoundError(f"Fixed expense not found: {expense_id}")
            existing = row_to_fixed_expense(sheet.row_values(idx))
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read fixed expense: {e}")

        # A rejected change raises pydantic's ValidationError to the caller
        updated = merge_fixed_expense(existing, changes)

        try:
            sheet.update(
                values=[fixed_expense_to_row(updated)],
                range_name=f"A{idx}",
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to update fixed expense: {e}")
        await self._refresh_after_write("update_fixed_expense")
        return updated

    async def remove_fixed_expense(self, expense_id: str) -> bool:
        try:
            sheet = self._client.get_fixed_expenses_sheet()
            idx = self._find_row(sheet, expense_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to delete fixed expense: {e}")
        await self._refresh_after_write("remove_fixed_expense")
        return True

    # Categories -------------------------------------------------------------

    async def _write_categories(self, categories: CategorySet) -> None:
        """Overwrite the sheet in place, then drop the rows left over."""
        rows = [CATEGORY_COLUMNS] + categories_to_rows(categories)
        try:
            sheet = self._client.get_categories_sheet()
            previous_length = len(sheet.get_all_values())
            sheet.update(values=rows, range_name="A1", value_input_option="RAW")
            if previous_length > len(rows):
                sheet.delete_rows(len(rows) + 1, previous_length)
        except Exception as e:
            raise StorageError(f"Failed to save categories: {e}")

    async def add_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        try:
            categories = self._read_categories().with_category(transaction_type, label)
        except Exception as e:
            raise StorageError(f"Failed to read categories: {e}")
        await self._write_categories(categories)
        await self._refresh_after_write("add_category")
        return categories

    async def remove_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        try:
            categories = self._read_categories().without_category(transaction_type, label)
        except Exception as e:
            raise StorageError(f"Failed to read categories: {e}")
        await self._write_categories(categories)
        await self._refresh_after_write("remove_category")
        return categories

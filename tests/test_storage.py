"""Tests for the store adapters (in-memory and Google Sheets with a fake client)."""

import pytest
from datetime import date
from decimal import Decimal

from src.models.finance import (
    CategorySet,
    FixedExpenseDraft,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from src.models.notice import NoticeType
from src.notices import NoticeLogger
from src.orchestrator import FinanceSession
from src.services.storage import (
    GoogleSheetsFinanceStore,
    InMemoryFinanceStore,
    NotFoundError,
    StorageError,
)
from src.services.storage.google_sheets import (
    CATEGORY_COLUMNS,
    FIXED_EXPENSE_COLUMNS,
    TRANSACTION_COLUMNS,
    categories_to_rows,
    row_to_transaction,
    transaction_to_row,
)


def draft(amount="10", type=TransactionType.EXPENSE, on=date(2024, 1, 15), **extra) -> TransactionDraft:
    return TransactionDraft(
        description=extra.pop("description", "Compra"),
        amount=Decimal(amount),
        type=type,
        date=on,
        **extra,
    )


class TestInMemoryStore:

    @pytest.mark.asyncio
    async def test_add_assigns_id_and_publishes(self):
        store = InMemoryFinanceStore()
        received = []
        store.subscribe(received.append)

        stored = await store.add_transaction(draft())

        assert stored.id
        assert len(received) == 1
        assert received[0].transactions == (stored,)

    @pytest.mark.asyncio
    async def test_edit_replaces_whole_record(self):
        store = InMemoryFinanceStore()
        stored = await store.add_transaction(draft())
        edited = stored.model_copy(update={"amount": Decimal("99"), "status": TransactionStatus.PENDING})

        await store.edit_transaction(edited)

        snapshot = await store.snapshot()
        assert snapshot.find_transaction(stored.id).amount == Decimal("99")
        assert len(snapshot.transactions) == 1

    @pytest.mark.asyncio
    async def test_edit_unknown_id(self):
        store = InMemoryFinanceStore()
        stored = draft().to_transaction("ghost")
        with pytest.raises(NotFoundError):
            await store.edit_transaction(stored)

    @pytest.mark.asyncio
    async def test_remove(self):
        store = InMemoryFinanceStore()
        stored = await store.add_transaction(draft())
        assert await store.remove_transaction(stored.id) is True
        assert await store.remove_transaction(stored.id) is False
        assert (await store.snapshot()).transactions == ()

    @pytest.mark.asyncio
    async def test_fixed_expense_partial_update(self):
        store = InMemoryFinanceStore()
        expense = await store.add_fixed_expense(FixedExpenseDraft(description="Luz", amount=Decimal("40"), day=3))

        updated = await store.update_fixed_expense(expense.id, {"amount": Decimal("45")})

        assert updated.id == expense.id
        assert updated.amount == Decimal("45")
        assert updated.day == 3
        with pytest.raises(NotFoundError):
            await store.update_fixed_expense("missing", {"amount": Decimal("1")})
        assert await store.remove_fixed_expense(expense.id) is True

    @pytest.mark.asyncio
    async def test_categories(self):
        store = InMemoryFinanceStore(categories=CategorySet(income=("A",), expense=("B",)))
        categories = await store.add_category(TransactionType.INCOME, "C")
        assert categories.income == ("A", "C")
        categories = await store.remove_category(TransactionType.EXPENSE, "B")
        assert categories.expense == ()

    @pytest.mark.asyncio
    async def test_predicate_subscription_and_cancel(self):
        store = InMemoryFinanceStore()
        incomes = []
        subscription = store.subscribe(incomes.append, lambda t: t.type == TransactionType.INCOME)

        await store.add_transaction(draft(type=TransactionType.EXPENSE))
        await store.add_transaction(draft(type=TransactionType.INCOME))

        assert len(incomes) == 2
        assert len(incomes[-1].transactions) == 1

        subscription.cancel()
        await store.add_transaction(draft())
        assert len(incomes) == 2
        assert store.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_broken_listener_does_not_block_others(self):
        store = InMemoryFinanceStore()
        received = []

        def broken(snapshot):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(received.append)
        await store.add_transaction(draft())
        assert len(received) == 1


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the store."""

    def __init__(self, header, rows=()):
        self.rows = [list(header)] + [list(r) for r in rows]

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def row_values(self, index):
        return list(self.rows[index - 1])

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def append_rows(self, rows, value_input_option=None):
        self.rows.extend(list(r) for r in rows)

    def update(self, values, range_name, value_input_option=None):
        start = int(range_name[1:]) - 1
        for offset, row in enumerate(values):
            if start + offset < len(self.rows):
                self.rows[start + offset] = list(row)
            else:
                self.rows.append(list(row))

    def delete_rows(self, start_index, end_index=None):
        del self.rows[start_index - 1:(end_index or start_index)]


class FakeSheetsClient:

    def __init__(self, transactions=(), fixed_expenses=(), categories=None):
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS, transactions)
        self.fixed_expenses = FakeWorksheet(FIXED_EXPENSE_COLUMNS, fixed_expenses)
        if categories is None:
            # A freshly created sheet holds the default labels
            categories = categories_to_rows(CategorySet())
        self.categories = FakeWorksheet(CATEGORY_COLUMNS, categories)

    def get_transactions_sheet(self):
        return self.transactions

    def get_fixed_expenses_sheet(self):
        return self.fixed_expenses

    def get_categories_sheet(self):
        return self.categories


class BrokenSheetsClient(FakeSheetsClient):

    def get_transactions_sheet(self):
        raise RuntimeError("quota exceeded")


class FlakyReadWorksheet(FakeWorksheet):
    """Fails the first read that follows an append."""

    def __init__(self, header, rows=()):
        super().__init__(header, rows)
        self.fail_next_read = False

    def append_row(self, row, value_input_option=None):
        super().append_row(row, value_input_option)
        self.fail_next_read = True

    def get_all_values(self):
        if self.fail_next_read:
            self.fail_next_read = False
            raise RuntimeError("read timed out")
        return super().get_all_values()


class FlakyReadSheetsClient(FakeSheetsClient):

    def __init__(self):
        super().__init__()
        self.transactions = FlakyReadWorksheet(TRANSACTION_COLUMNS)


class FailingWriteWorksheet(FakeWorksheet):
    """Every write fails; reads still work."""

    def __init__(self, header, rows=()):
        super().__init__(header, rows)
        self.append_calls = 0

    def append_row(self, row, value_input_option=None):
        self.append_calls += 1
        raise RuntimeError("quota exceeded")

    def update(self, values, range_name, value_input_option=None):
        raise RuntimeError("quota exceeded")

    def delete_rows(self, start_index, end_index=None):
        raise RuntimeError("quota exceeded")


class TestGoogleSheetsStore:

    def test_row_round_trip(self):
        t = draft(payment_method="Tarjeta").to_transaction("abc")
        assert row_to_transaction(transaction_to_row(t)) == t

    @pytest.mark.asyncio
    async def test_snapshot_reads_all_collections(self):
        client = FakeSheetsClient(
            transactions=[["t1", "Venta", "100,5", "income", "2024-01-05", "Servicios", "paid", "", ""]],
            fixed_expenses=[["F1", "Alquiler", "800", "5", "Alquiler"]],
        )
        store = GoogleSheetsFinanceStore(client=client)

        snapshot = await store.snapshot()

        assert snapshot.transactions[0].amount == Decimal("100.5")
        assert snapshot.transactions[0].payment_method is None
        assert snapshot.fixed_expenses[0].day == 5
        assert snapshot.categories == CategorySet()

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self):
        client = FakeSheetsClient(transactions=[
            ["t1", "Venta", "abc", "income", "2024-01-05", "Servicios", "paid"],
            ["t2", "Venta", "10", "income", "2024-01-05", "Servicios", "paid"],
            [""],
        ])
        snapshot = await GoogleSheetsFinanceStore(client=client).snapshot()
        assert [t.id for t in snapshot.transactions] == ["t2"]

    @pytest.mark.asyncio
    async def test_mutations_refresh_subscribers(self):
        client = FakeSheetsClient()
        store = GoogleSheetsFinanceStore(client=client)
        received = []
        store.subscribe(received.append)

        stored = await store.add_transaction(draft())
        await store.edit_transaction(stored.model_copy(update={"amount": Decimal("12")}))

        assert received[-1].find_transaction(stored.id).amount == Decimal("12")
        assert await store.remove_transaction(stored.id) is True
        assert received[-1].transactions == ()
        assert await store.remove_transaction(stored.id) is False

    @pytest.mark.asyncio
    async def test_edit_unknown_id(self):
        store = GoogleSheetsFinanceStore(client=FakeSheetsClient())
        with pytest.raises(NotFoundError):
            await store.edit_transaction(draft().to_transaction("ghost"))

    @pytest.mark.asyncio
    async def test_fixed_expenses_and_categories(self):
        client = FakeSheetsClient()
        store = GoogleSheetsFinanceStore(client=client)

        expense = await store.add_fixed_expense(FixedExpenseDraft(description="Luz", amount=Decimal("40")))
        updated = await store.update_fixed_expense(expense.id, {"day": 12})
        assert updated.day == 12

        categories = await store.add_category(TransactionType.EXPENSE, "Viajes")
        assert categories.expense[-1] == "Viajes"
        assert (await store.snapshot()).categories == categories

    @pytest.mark.asyncio
    async def test_read_failure_is_storage_error(self):
        store = GoogleSheetsFinanceStore(client=BrokenSheetsClient())
        with pytest.raises(StorageError):
            await store.snapshot()

    @pytest.mark.asyncio
    async def test_failed_reread_after_append_writes_once(self):
        """A re-read failure after a successful append must not append again."""
        client = FlakyReadSheetsClient()
        store = GoogleSheetsFinanceStore(client=client)

        stored = await store.add_transaction(draft())

        assert len(client.transactions.rows) == 2
        assert client.transactions.rows[1][0] == stored.id
        assert (await store.snapshot()).transactions == (stored,)

    @pytest.mark.asyncio
    async def test_failed_append_is_storage_error(self, monkeypatch):
        client = FakeSheetsClient()
        client.transactions = FailingWriteWorksheet(TRANSACTION_COLUMNS)
        store = GoogleSheetsFinanceStore(client=client)
        monkeypatch.setattr(GoogleSheetsFinanceStore._append_row.retry, "sleep", lambda seconds: None)

        with pytest.raises(StorageError):
            await store.add_transaction(draft())
        assert client.transactions.append_calls == 3

    @pytest.mark.asyncio
    async def test_invalid_fixed_expense_update_is_not_storage_error(self):
        client = FakeSheetsClient(fixed_expenses=[["F1", "Luz", "40", "3", ""]])
        store = GoogleSheetsFinanceStore(client=client)

        with pytest.raises(ValueError) as excinfo:
            await store.update_fixed_expense("F1", {"day": 40})

        assert not isinstance(excinfo.value, StorageError)
        assert client.fixed_expenses.rows[1] == ["F1", "Luz", "40", "3", ""]

    @pytest.mark.asyncio
    async def test_session_reports_rejected_template_update(self):
        client = FakeSheetsClient(fixed_expenses=[["F1", "Luz", "40", "3", ""]])
        session = FinanceSession(GoogleSheetsFinanceStore(client=client), notice_logger=NoticeLogger(limit=10))

        assert await session.update_fixed_expense("F1", {"day": 40}) is None
        assert session.notices.recent()[0].notice_type == NoticeType.INPUT_REJECTED

    @pytest.mark.asyncio
    async def test_removing_every_label_leaves_lists_empty(self):
        client = FakeSheetsClient()
        store = GoogleSheetsFinanceStore(client=client)
        defaults = CategorySet()

        for label in defaults.income:
            await store.remove_category(TransactionType.INCOME, label)
        for label in defaults.expense:
            await store.remove_category(TransactionType.EXPENSE, label)

        categories = (await store.snapshot()).categories
        assert categories.income == ()
        assert categories.expense == ()
        assert client.categories.rows == [CATEGORY_COLUMNS]

    @pytest.mark.asyncio
    async def test_removing_a_label_shrinks_the_sheet(self):
        client = FakeSheetsClient(categories=[["income", "A"], ["expense", "B"], ["expense", "C"]])
        store = GoogleSheetsFinanceStore(client=client)

        categories = await store.remove_category(TransactionType.EXPENSE, "B")

        assert categories == CategorySet(income=("A",), expense=("C",))
        assert client.categories.rows == [CATEGORY_COLUMNS, ["income", "A"], ["expense", "C"]]

    @pytest.mark.asyncio
    async def test_failed_category_write_keeps_the_sheet(self):
        rows = [["income", "A"], ["expense", "B"]]
        client = FakeSheetsClient(categories=rows)
        client.categories = FailingWriteWorksheet(CATEGORY_COLUMNS, rows)
        store = GoogleSheetsFinanceStore(client=client)

        with pytest.raises(StorageError):
            await store.remove_category(TransactionType.EXPENSE, "B")

        assert client.categories.rows == [CATEGORY_COLUMNS, ["income", "A"], ["expense", "B"]]

"""Tests for the finance session (store + validation + engine)."""

import pytest
from datetime import date
from decimal import Decimal

from src.analytics.comparisons import PeriodSpec
from src.models.finance import (
    DateRange,
    FixedExpense,
    TransactionStatus,
    TransactionType,
)
from src.models.notice import NoticeType
from src.notices import NoticeLogger
from src.orchestrator import FinanceSession, create_session
from src.services.storage import InMemoryFinanceStore, StorageError

JANUARY = DateRange.for_month(2024, 1)


def form(**overrides) -> dict:
    data = {
        "description": "Venta",
        "amount": "100",
        "type": "income",
        "date": "2024-01-10",
        "category": "Productos",
    }
    data.update(overrides)
    return data


class FailingStore(InMemoryFinanceStore):
    """Store whose writes and reads always fail."""

    async def snapshot(self):
        raise StorageError("offline")

    async def add_transaction(self, draft):
        raise StorageError("offline")


@pytest.fixture
def session():
    return FinanceSession(InMemoryFinanceStore(), notice_logger=NoticeLogger(limit=10))


class TestTransactions:

    @pytest.mark.asyncio
    async def test_add_updates_latest_snapshot(self, session):
        stored = await session.add_transaction(form())
        assert stored is not None
        assert session.latest.find_transaction(stored.id) == stored
        assert session.metrics(JANUARY).balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_rejected_input_never_reaches_store(self, session):
        assert await session.add_transaction(form(amount="0")) is None
        assert session.latest.transactions == ()
        assert session.notices.recent()[0].notice_type == NoticeType.INPUT_REJECTED

    @pytest.mark.asyncio
    async def test_nan_amount_is_rejected(self, session):
        assert await session.add_transaction(form(amount=Decimal("NaN"))) is None
        assert await session.add_transaction(form(amount=float("nan"))) is None
        assert session.latest.transactions == ()
        assert session.notices.recent()[0].notice_type == NoticeType.INPUT_REJECTED

    @pytest.mark.asyncio
    async def test_toggle_status(self, session):
        stored = await session.add_transaction(form())
        toggled = await session.toggle_status(stored.id)
        assert toggled.status == TransactionStatus.PENDING
        metrics = session.metrics(JANUARY)
        assert metrics.balance == Decimal("0")
        assert metrics.projected_balance == Decimal("100")
        assert (await session.toggle_status(stored.id)).status == TransactionStatus.PAID

    @pytest.mark.asyncio
    async def test_edit_and_remove(self, session):
        stored = await session.add_transaction(form())
        edited = await session.edit_transaction(form(id=stored.id, amount="150,25"))
        assert edited.amount == Decimal("150.25")
        assert await session.remove_transaction(stored.id) is True
        assert await session.remove_transaction(stored.id) is False
        assert session.notices.recent()[0].notice_type == NoticeType.RECORD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_toggle_unknown(self, session):
        assert await session.toggle_status("ghost") is None


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_write_failure_becomes_notice(self):
        session = FinanceSession(FailingStore(), notice_logger=NoticeLogger(limit=10))
        assert await session.add_transaction(form()) is None
        notice = session.notices.recent()[0]
        assert notice.notice_type == NoticeType.STORE_WRITE_FAILED
        assert notice.error_message == "offline"

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_last_snapshot(self, make_transaction):
        store = FailingStore(transactions=[make_transaction("10", TransactionType.INCOME)])
        session = FinanceSession(store, notice_logger=NoticeLogger(limit=10))
        snapshot = await session.refresh()
        assert snapshot.transactions == ()
        assert session.notices.recent()[0].notice_type == NoticeType.STORE_READ_FAILED


class TestFixedExpenses:

    @pytest.mark.asyncio
    async def test_pay_and_unpay(self, session):
        template = await session.add_fixed_expense({"description": "Alquiler", "amount": "800", "day": "5"})

        payment = await session.pay_fixed_expense(template.id, Decimal("820"), date(2024, 3, 5))

        assert payment.fixed_expense_id == template.id
        assert payment.category == "Fijos"
        overview = session.fixed_expense_overview("2024-03")
        assert overview.rows[0].payment == payment

        await session.remove_transaction(payment.id)
        assert not session.fixed_expense_overview("2024-03").rows[0].is_paid

    @pytest.mark.asyncio
    async def test_pay_unknown_template(self, session):
        assert await session.pay_fixed_expense("ghost", Decimal("1"), date(2024, 1, 1)) is None

    @pytest.mark.asyncio
    async def test_update_and_remove_template(self, session):
        template = await session.add_fixed_expense({"description": "Luz", "amount": "40"})
        updated = await session.update_fixed_expense(template.id, {"amount": Decimal("55")})
        assert updated.amount == Decimal("55")
        assert await session.update_fixed_expense("ghost", {"amount": Decimal("1")}) is None
        assert await session.remove_fixed_expense(template.id) is True

    @pytest.mark.asyncio
    async def test_invalid_template_update(self, session):
        template = await session.add_fixed_expense({"description": "Luz", "amount": "40"})
        assert await session.update_fixed_expense(template.id, {"day": 40}) is None
        assert session.notices.recent()[0].notice_type == NoticeType.INPUT_REJECTED


class TestReporting:

    @pytest.mark.asyncio
    async def test_compare_with_metric_id(self, session):
        await session.add_transaction(form(date="2024-01-10", amount="100"))
        await session.add_transaction(form(date="2024-02-10", amount="150"))
        result = session.compare(PeriodSpec.month("2024-01"), PeriodSpec.month("2024-02"), "total_income")
        assert result.percent_change == Decimal("50.00")
        series = session.year_over_year([2024], "total_income")
        assert series[0].values[:2] == [Decimal("100"), Decimal("150")]

    @pytest.mark.asyncio
    async def test_export_limited_to_range(self, session):
        await session.add_transaction(form(date="2024-01-10"))
        await session.add_transaction(form(date="2024-02-10", type="expense"))
        tables = session.export(JANUARY)
        assert len(tables["Todos"]) == 1
        assert tables["Gastos"] == []

    @pytest.mark.asyncio
    async def test_categories(self, session):
        categories = await session.add_category(TransactionType.INCOME, " Talleres ")
        assert categories.income[-1] == "Talleres"
        assert await session.add_category(TransactionType.INCOME, "  ") is None
        categories = await session.remove_category(TransactionType.INCOME, "Talleres")
        assert "Talleres" not in categories.income

    @pytest.mark.asyncio
    async def test_calendar(self, session):
        await session.add_transaction(form(date="2024-01-10"))
        assert [d.day for d in session.calendar("2024-01")] == [date(2024, 1, 10)]


class TestSessionFactory:

    def test_in_memory_session(self):
        session = create_session(use_storage=False)
        assert isinstance(session.store, InMemoryFinanceStore)

    def test_close_detaches(self):
        store = InMemoryFinanceStore()
        session = FinanceSession(store, notice_logger=NoticeLogger(limit=5))
        assert store.subscriber_count == 1
        session.close()
        assert store.subscriber_count == 0


class TestNoticeLogger:

    def test_keeps_recent_notices(self):
        notices = NoticeLogger(limit=2)
        notices.not_found("a", "1")
        notices.not_found("b", "2")
        notices.not_found("c", "3")
        assert [n.operation for n in notices.recent()] == ["c", "b"]
        assert len(notices) == 2

    def test_debug_notices_hidden_by_default(self):
        notices = NoticeLogger(limit=5)
        notices.snapshot_refreshed(1, 0)
        assert notices.recent() == []
        assert len(notices.recent(include_debug=True)) == 1
        notices.clear()
        assert len(notices) == 0

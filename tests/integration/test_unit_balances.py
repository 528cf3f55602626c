"""Integration tests for unit balance sheets and monthly breakdowns."""

from datetime import date
from decimal import Decimal

import pytest

from src.models import ExpenseCategory
from src.services.allocation_service import TotalSource
from src.services.balance_service import BalanceService
from src.services.errors import NotFoundError
from src.services.expected_expense_service import ExpectedExpenseService
from src.services.expense_service import ExpenseService
from src.services.payment_service import PaymentService

MARCH = date(2025, 3, 1)


@pytest.fixture
def march_activity(db_session, shared_unit):
    """Expenses and balance payments around March 2025 in the shared unit."""
    unit, members = shared_unit
    expenses = ExpenseService(db_session)
    payments = PaymentService(db_session)

    expenses.record_expense(unit.id, 1, "rent", "1000", date(2025, 3, 2), payment_mode="bank_transfer")
    expenses.record_expense(unit.id, 2, "cleaning", "50", date(2025, 3, 31))
    expenses.record_expense(unit.id, 2, "provisions", "80", date(2025, 2, 28))
    payments.record_balance_payment(unit.id, 3, "262.50", date(2025, 3, 10), to_user_id=1)
    payments.record_balance_payment(unit.id, 3, "100", date(2025, 4, 1), to_user_id=1)
    return unit, members


def rows_by_name(sheet):
    return {row.member.name: row for row in sheet.rows}


class TestBalanceSheet:
    """Expected vs paid for one month."""

    def test_contributions_total_and_balances(self, db_session, march_activity):
        unit, _ = march_activity
        sheet = BalanceService(db_session).get_unit_balance_sheet(unit.id, date(2025, 3, 17))

        rows = rows_by_name(sheet)
        assert sheet.month == MARCH
        assert sheet.currency == "SGD"
        assert sheet.total_source == TotalSource.CONTRIBUTIONS
        # 60% * 1000 + 200 + 25% * 1000
        assert sheet.monthly_total == Decimal("1050")

        assert rows["Alice"].expected == Decimal("630")
        assert rows["Alice"].paid == Decimal("1000")
        assert rows["Alice"].balance == Decimal("370")

        assert rows["Bob"].expected == Decimal("200")
        assert rows["Bob"].paid == Decimal("50")
        assert rows["Bob"].balance == Decimal("-150")

        assert rows["Carol"].expected == Decimal("262.5")
        assert rows["Carol"].paid_from_balance_payments == Decimal("262.50")
        assert rows["Carol"].balance == Decimal("0")

    def test_only_the_months_records_count(self, db_session, march_activity):
        unit, _ = march_activity
        sheet = BalanceService(db_session).get_unit_balance_sheet(unit.id, MARCH)

        assert sheet.actual_total == Decimal("1050")
        assert sheet.category_totals[ExpenseCategory.RENT] == Decimal("1000")
        assert sheet.category_totals[ExpenseCategory.CLEANING] == Decimal("50")
        assert sheet.category_totals[ExpenseCategory.PROVISIONS] == Decimal("0")
        assert sheet.balance_payments_total == Decimal("262.50")

    def test_amount_received_includes_master_tenant_share(self, db_session, march_activity):
        unit, _ = march_activity
        sheet = BalanceService(db_session).get_unit_balance_sheet(unit.id, MARCH)
        assert sheet.amount_received == Decimal("892.5")

    def test_next_month_sees_its_own_payment(self, db_session, march_activity):
        unit, _ = march_activity
        sheet = BalanceService(db_session).get_unit_balance_sheet(unit.id, date(2025, 4, 1))

        rows = rows_by_name(sheet)
        assert rows["Carol"].paid == Decimal("100")
        assert rows["Alice"].paid == Decimal("0")
        assert sheet.actual_total == Decimal("0")

    def test_actual_expenses_when_contributions_are_zero(self, db_session, unit_service):
        unit = unit_service.create_unit(creator_id=5, name="Zero rent", monthly_rent="0")
        ExpenseService(db_session).record_expense(unit.id, 5, "utilities", "120", MARCH)

        sheet = BalanceService(db_session).get_unit_balance_sheet(unit.id, MARCH)

        assert sheet.total_source == TotalSource.ACTUAL_EXPENSES
        assert sheet.monthly_total == Decimal("120")
        [row] = sheet.rows
        assert row.expected == Decimal("120")
        assert row.balance == Decimal("0")

    def test_missing_unit(self, db_session):
        with pytest.raises(NotFoundError):
            BalanceService(db_session).get_unit_balance_sheet(404, MARCH)


class TestExpectedEntriesTotal:
    """Contract units measure share members against generated entries."""

    def test_entries_define_the_total(self, db_session, contract_unit):
        expected = ExpectedExpenseService(db_session)
        expected.save_template(contract_unit.id, {"utilities": "150"})
        expected.generate_entries(contract_unit.id)

        sheet = BalanceService(db_session).get_unit_balance_sheet(contract_unit.id, date(2025, 2, 1))

        assert sheet.total_source == TotalSource.EXPECTED_ENTRIES
        assert sheet.monthly_total == Decimal("1150")
        assert sheet.rows[0].expected == Decimal("1150")

    def test_month_without_entries_uses_contributions(self, db_session, contract_unit):
        ExpectedExpenseService(db_session).generate_entries(contract_unit.id)

        sheet = BalanceService(db_session).get_unit_balance_sheet(contract_unit.id, date(2025, 6, 1))

        assert sheet.total_source == TotalSource.CONTRIBUTIONS
        assert sheet.monthly_total == Decimal("1000")


class TestContributionEndDate:
    """Ended contributions are only dropped when configured to be."""

    @pytest.fixture
    def bob_ended(self, unit_service, shared_unit):
        unit, members = shared_unit
        unit_service.update_member(
            unit.id,
            members["bob"].id,
            contribution_type="fixed",
            fixed_amount="200",
            contribution_end_date=date(2025, 2, 28),
        )
        return unit

    def test_ignored_by_default(self, db_session, bob_ended):
        sheet = BalanceService(db_session).get_unit_balance_sheet(bob_ended.id, MARCH)
        rows = rows_by_name(sheet)
        assert rows["Bob"].expected == Decimal("200")
        assert rows["Bob"].is_active

    def test_honored_when_enabled(self, db_session, bob_ended):
        service = BalanceService(db_session, honor_contribution_end_date=True)
        sheet = service.get_unit_balance_sheet(bob_ended.id, MARCH)

        rows = rows_by_name(sheet)
        assert sheet.monthly_total == Decimal("850")
        assert not rows["Bob"].is_active
        assert rows["Bob"].expected == Decimal("0")
        assert rows["Alice"].expected == Decimal("510")

    def test_still_active_in_final_month(self, db_session, bob_ended):
        service = BalanceService(db_session, honor_contribution_end_date=True)
        sheet = service.get_unit_balance_sheet(bob_ended.id, date(2025, 2, 1))
        assert rows_by_name(sheet)["Bob"].is_active


class TestMonthlyBreakdown:
    """Expected vs actual per category, month by month."""

    def test_contract_months_with_entries(self, db_session, contract_unit):
        ExpectedExpenseService(db_session).generate_entries(contract_unit.id)
        ExpenseService(db_session).record_expense(contract_unit.id, 1, "rent", "990", date(2025, 1, 20))

        breakdown = BalanceService(db_session).get_monthly_breakdown(contract_unit.id, date(2025, 10, 1))

        assert [m.month for m in breakdown] == [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]
        assert breakdown[0].expected[ExpenseCategory.RENT] == Decimal("1000")
        assert breakdown[0].actual[ExpenseCategory.RENT] == Decimal("990")
        assert breakdown[1].actual_total == Decimal("0")
        assert breakdown[2].expected_total == Decimal("1000")

    def test_last_six_months_without_entries(self, db_session, march_activity):
        unit, _ = march_activity

        breakdown = BalanceService(db_session).get_monthly_breakdown(unit.id, date(2025, 3, 15))

        assert [m.month for m in breakdown] == [
            date(2024, 10, 1),
            date(2024, 11, 1),
            date(2024, 12, 1),
            date(2025, 1, 1),
            date(2025, 2, 1),
            date(2025, 3, 1),
        ]
        assert breakdown[4].actual[ExpenseCategory.PROVISIONS] == Decimal("80")
        assert breakdown[5].actual_total == Decimal("1050")
        assert breakdown[5].expected_total == Decimal("0")

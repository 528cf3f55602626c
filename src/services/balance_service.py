"""Balance sheet service: expected vs paid per member for one month of a unit.

Reads a fresh snapshot from the store (unit, members, the month's expenses,
balance payments and expected entries) and hands it to the allocation
engine. Monthly total resolution:

    1. Expected expense entries of the month (contract period + entries + positive sum)
    2. Sum of members' expected amounts against the monthly rent (when positive)
    3. Actual expenses of the month

paid = expenses paid by the member in the month + balance payments for the month
balance = paid - expected (positive: owed to the member, negative: member owes)
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from src.models import (
    EXPENSE_CATEGORIES,
    BalancePayment,
    ExpenseCategory,
    MemberRole,
)
from src.services.allocation_service import (
    ZERO,
    AllocationService,
    MemberSnapshot,
    TotalSource,
    member_snapshot_from_record,
)
from src.services.expected_expense_service import ExpectedExpenseService
from src.services.expense_service import ExpenseService, category_totals
from src.services.locale_service import get_currency_for_country
from src.services.period_service import add_months, month_range, month_start, months_in_range
from src.services.unit_service import UnitService

logger = logging.getLogger(__name__)

# Months shown in the breakdown when the unit has no expected entries
DEFAULT_BREAKDOWN_MONTHS = 6


@dataclass
class MemberBalanceRow:
    """One member's line on a balance sheet."""

    member: MemberSnapshot
    share_fraction: Decimal
    expected: Decimal
    paid_from_expenses: Decimal
    paid_from_balance_payments: Decimal
    is_active: bool = True

    @property
    def paid(self) -> Decimal:
        return self.paid_from_expenses + self.paid_from_balance_payments

    @property
    def balance(self) -> Decimal:
        return self.paid - self.expected


@dataclass
class UnitBalanceSheet:
    """Balances of every member of a unit for one month."""

    unit_id: int
    unit_name: str
    month: date
    currency: str
    reference_rent: Decimal
    monthly_total: Decimal
    total_source: TotalSource
    actual_total: Decimal
    category_totals: dict[ExpenseCategory, Decimal]
    rows: list[MemberBalanceRow] = field(default_factory=list)
    balance_payments_total: Decimal = ZERO

    @property
    def total_expected(self) -> Decimal:
        return sum((row.expected for row in self.rows), ZERO)

    @property
    def total_paid(self) -> Decimal:
        return sum((row.paid for row in self.rows), ZERO)

    @property
    def amount_received(self) -> Decimal:
        """Balance payments received plus what master tenants cover themselves."""
        master_expected = sum(
            (row.expected for row in self.rows if row.member.role == MemberRole.MASTER_TENANT),
            ZERO,
        )
        return self.balance_payments_total + master_expected


@dataclass
class MonthBreakdown:
    """Expected and actual amounts per category for one month."""

    month: date
    expected: dict[ExpenseCategory, Decimal]
    actual: dict[ExpenseCategory, Decimal]

    @property
    def expected_total(self) -> Decimal:
        return sum(self.expected.values(), ZERO)

    @property
    def actual_total(self) -> Decimal:
        return sum(self.actual.values(), ZERO)


class BalanceService:
    """Build balance sheets and breakdowns for units."""

    def __init__(
        self,
        db: Session,
        allocation: Optional[AllocationService] = None,
        honor_contribution_end_date: bool = False,
    ):
        """Initialize with database session.

        Args:
            db: Session for database operations
            allocation: Allocation engine (default: a new AllocationService)
            honor_contribution_end_date: Exclude members whose contribution ended
                before the month from the pool
        """
        self.db = db
        self.allocation = allocation or AllocationService()
        self.honor_contribution_end_date = honor_contribution_end_date
        self.units = UnitService(db)
        self.expenses = ExpenseService(db)
        self.expected_expenses = ExpectedExpenseService(db)

    def get_member_snapshots(self, unit_id: int) -> list[MemberSnapshot]:
        return [member_snapshot_from_record(m) for m in self.units.get_members(unit_id)]

    def get_unit_balance_sheet(self, unit_id: int, month: date) -> UnitBalanceSheet:
        """Compute the balance sheet of a unit for the month containing `month`.

        Args:
            unit_id: Unit ID
            month: Any date within the target month

        Returns:
            UnitBalanceSheet

        Raises:
            NotFoundError: If the unit does not exist
        """
        unit = self.units.get_unit(unit_id)
        bounds = month_range(month)
        rent = unit.monthly_rent or ZERO

        members = self.get_member_snapshots(unit_id)
        if self.honor_contribution_end_date:
            pool = [m for m in members if m.is_active_in(bounds.start)]
        else:
            pool = members

        month_expenses = self.expenses.list_expenses(unit_id, bounds.start)
        actual_total = sum((Decimal(str(e.amount)) for e in month_expenses), ZERO)

        payments = (
            self.db.query(BalancePayment)
            .filter(BalancePayment.unit_id == unit_id, BalancePayment.for_month == bounds.start)
            .all()
        )

        entries = None
        if unit.has_contract_period and self.expected_expenses.has_entries(unit_id):
            entries = [e.amount for e in self.expected_expenses.get_month_entries(unit_id, bounds.start)]

        monthly_total = self.allocation.resolve_monthly_total(
            expected_entries=entries,
            expected_from_contributions=self.allocation.expected_from_contributions(pool, rent),
            actual_expenses=actual_total,
            has_contract_period=unit.has_contract_period,
        )

        paid_expenses: dict[int, Decimal] = {}
        for expense in month_expenses:
            paid_expenses[expense.paid_by] = paid_expenses.get(expense.paid_by, ZERO) + Decimal(
                str(expense.amount)
            )
        paid_payments: dict[int, Decimal] = {}
        for payment in payments:
            paid_payments[payment.from_user_id] = paid_payments.get(
                payment.from_user_id, ZERO
            ) + Decimal(str(payment.amount))

        active_ids = {id(m) for m in pool}
        rows = []
        for member in members:
            is_active = id(member) in active_ids
            if is_active:
                fraction = self.allocation.share_fraction(member, pool, rent)
                expected = self.allocation.expected_amount(member, pool, monthly_total.amount, rent)
            else:
                fraction = expected = ZERO
            rows.append(
                MemberBalanceRow(
                    member=member,
                    share_fraction=fraction,
                    expected=expected,
                    paid_from_expenses=paid_expenses.get(member.user_id, ZERO),
                    paid_from_balance_payments=paid_payments.get(member.user_id, ZERO),
                    is_active=is_active,
                )
            )

        sheet = UnitBalanceSheet(
            unit_id=unit.id,
            unit_name=unit.name,
            month=bounds.start,
            currency=get_currency_for_country(unit.country),
            reference_rent=Decimal(str(rent)),
            monthly_total=monthly_total.amount,
            total_source=monthly_total.source,
            actual_total=actual_total,
            category_totals=category_totals(month_expenses),
            rows=rows,
            balance_payments_total=sum((Decimal(str(p.amount)) for p in payments), ZERO),
        )
        logger.debug(
            "balance_sheet: unit_id=%d month=%s total=%s source=%s members=%d",
            unit_id,
            bounds.start,
            sheet.monthly_total,
            sheet.total_source.value,
            len(rows),
        )
        return sheet

    def get_monthly_breakdown(self, unit_id: int, today: date) -> list[MonthBreakdown]:
        """Expected vs actual per category, month by month.

        Covers the contract months when the unit has a contract period and
        expected entries; otherwise the last six months up to `today`.
        """
        unit = self.units.get_unit(unit_id)
        grouped = self.expected_expenses.list_entries(unit_id)
        if unit.has_contract_period and grouped:
            months = months_in_range(unit.contract_start_date, unit.contract_end_date)
        else:
            current = month_start(today)
            months = [add_months(current, -i) for i in range(DEFAULT_BREAKDOWN_MONTHS - 1, -1, -1)]

        expenses = self.expenses.list_expenses(unit_id)
        breakdown = []
        for month in months:
            bounds = month_range(month)
            expected = {category: ZERO for category in EXPENSE_CATEGORIES}
            for entry in grouped.get(month, []):
                expected[entry.category] += Decimal(str(entry.amount))
            breakdown.append(
                MonthBreakdown(
                    month=month,
                    expected=expected,
                    actual=category_totals(e for e in expenses if e.date in bounds),
                )
            )
        return breakdown


__all__ = [
    "BalanceService",
    "MemberBalanceRow",
    "MonthBreakdown",
    "UnitBalanceSheet",
]

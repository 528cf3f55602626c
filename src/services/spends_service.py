"""My Spends: a user's paid, expected and balance across all their units.

For each membership the all-time figures measure the member against the
unit's all-time expense total; the this-month figures repeat the same
computation restricted to the current calendar month. Global totals add the
per-unit figures as they are: units in different currencies are summed
without conversion and reported in the first unit's currency, with
has_mixed_currencies set so the caller can disclose it.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from src.models import Expense, Unit
from src.services.allocation_service import ZERO, AllocationService, member_snapshot_from_record
from src.services.locale_service import DEFAULT_CURRENCY, get_currency_for_country
from src.services.period_service import month_range
from src.services.unit_service import UnitService

logger = logging.getLogger(__name__)


@dataclass
class UnitSpend:
    """A user's figures in one unit."""

    unit_id: int
    unit_name: str
    currency: str
    total_expenses: Decimal
    expected: Decimal
    paid: Decimal
    this_month_expected: Decimal
    this_month_paid: Decimal

    @property
    def balance(self) -> Decimal:
        return self.paid - self.expected

    @property
    def this_month_balance(self) -> Decimal:
        return self.this_month_paid - self.this_month_expected


@dataclass
class SpendsSummary:
    """Aggregate of UnitSpend over all of a user's units."""

    user_id: int
    units: list[UnitSpend] = field(default_factory=list)

    @property
    def currency(self) -> str:
        return self.units[0].currency if self.units else DEFAULT_CURRENCY

    @property
    def has_mixed_currencies(self) -> bool:
        return len({u.currency for u in self.units}) > 1

    @property
    def total_paid(self) -> Decimal:
        return sum((u.paid for u in self.units), ZERO)

    @property
    def total_expected(self) -> Decimal:
        return sum((u.expected for u in self.units), ZERO)

    @property
    def total_balance(self) -> Decimal:
        return self.total_paid - self.total_expected

    @property
    def this_month_paid(self) -> Decimal:
        return sum((u.this_month_paid for u in self.units), ZERO)

    @property
    def this_month_expected(self) -> Decimal:
        return sum((u.this_month_expected for u in self.units), ZERO)

    @property
    def this_month_balance(self) -> Decimal:
        return self.this_month_paid - self.this_month_expected


class SpendsService:
    """Aggregate a user's spending across unit memberships."""

    def __init__(self, db: Session, allocation: Optional[AllocationService] = None):
        """Initialize with database session."""
        self.db = db
        self.allocation = allocation or AllocationService()
        self.units = UnitService(db)

    def get_user_spends(self, user_id: int, today: date) -> SpendsSummary:
        """Compute the user's spends summary.

        Args:
            user_id: User to summarize
            today: Date defining the current month

        Returns:
            SpendsSummary with one UnitSpend per membership, in membership order
        """
        summary = SpendsSummary(user_id=user_id)
        this_month = month_range(today)

        for unit in self.units.list_user_units(user_id):
            summary.units.append(self._unit_spend(unit, user_id, this_month))

        logger.debug(
            "spends: user_id=%d units=%d mixed_currencies=%s",
            user_id,
            len(summary.units),
            summary.has_mixed_currencies,
        )
        return summary

    def _unit_spend(self, unit: Unit, user_id: int, this_month) -> UnitSpend:
        members = [member_snapshot_from_record(m) for m in self.units.get_members(unit.id)]
        me = next(m for m in members if m.user_id == user_id)
        rent = unit.monthly_rent or ZERO

        expenses = self.db.query(Expense).filter(Expense.unit_id == unit.id).all()
        month_expenses = [e for e in expenses if e.date in this_month]

        def paid_by_user(items: list[Expense]) -> dict[int, Decimal]:
            paid: dict[int, Decimal] = {}
            for e in items:
                paid[e.paid_by] = paid.get(e.paid_by, ZERO) + Decimal(str(e.amount))
            return paid

        total = sum((Decimal(str(e.amount)) for e in expenses), ZERO)
        month_total = sum((Decimal(str(e.amount)) for e in month_expenses), ZERO)

        [all_time] = self.allocation.member_balances([me], total, rent, paid_by_user(expenses), pool=members)
        [current] = self.allocation.member_balances(
            [me], month_total, rent, paid_by_user(month_expenses), pool=members
        )

        return UnitSpend(
            unit_id=unit.id,
            unit_name=unit.name,
            currency=get_currency_for_country(unit.country),
            total_expenses=total,
            expected=all_time.expected,
            paid=all_time.paid,
            this_month_expected=current.expected,
            this_month_paid=current.paid,
        )


__all__ = ["SpendsService", "SpendsSummary", "UnitSpend"]

"""Expense service for recording and listing unit expenses.

Expenses are created by a member and may be deleted; they are never edited
in place.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from src.models import EXPENSE_CATEGORIES, Expense, ExpenseCategory, PaymentMode, UnitMember
from src.services import commit_or_rollback
from src.services.errors import NotFoundError, ValidationError
from src.services.parsers import parse_amount, parse_enum, parse_optional_enum, require_positive
from src.services.period_service import month_range

logger = logging.getLogger(__name__)


def category_totals(expenses: Iterable[Any]) -> dict[ExpenseCategory, Decimal]:
    """Sum amounts per category, every category present (zero when unused).

    Args:
        expenses: Objects with category and amount attributes

    Returns:
        Dict in EXPENSE_CATEGORIES order
    """
    totals = {category: Decimal("0") for category in EXPENSE_CATEGORIES}
    for expense in expenses:
        category = parse_enum(ExpenseCategory, expense.category, "category")
        totals[category] += Decimal(str(expense.amount or 0))
    return totals


class ExpenseService:
    """Service for expense database operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def record_expense(
        self,
        unit_id: int,
        paid_by: int,
        category: Any,
        amount: Any,
        expense_date: date,
        payment_mode: Any = None,
        notes: Optional[str] = None,
        receipt_url: Optional[str] = None,
    ) -> Expense:
        """Record an expense paid by a member.

        Args:
            unit_id: Unit the expense belongs to
            paid_by: User ID of the paying member
            category: ExpenseCategory or its value
            amount: Amount paid (must be > 0)
            expense_date: Date of the expense
            payment_mode: Optional PaymentMode or its value
            notes: Optional free text
            receipt_url: Optional receipt URL from the object store

        Returns:
            Created Expense object

        Raises:
            ValidationError: If amount is not positive, category/mode unknown or payer not a member
        """
        category_value = parse_enum(ExpenseCategory, category, "category")
        mode = parse_optional_enum(PaymentMode, payment_mode, "payment_mode")
        amount_value = require_positive(parse_amount(amount, "amount"), "amount")
        if expense_date is None:
            raise ValidationError("date is required")

        is_member = (
            self.db.query(UnitMember.id)
            .filter(UnitMember.unit_id == unit_id, UnitMember.user_id == paid_by)
            .first()
        )
        if not is_member:
            logger.error(f"Expense payer {paid_by} is not a member of unit {unit_id}")
            raise ValidationError("Expense must be paid by a member of the unit")

        expense = Expense(
            unit_id=unit_id,
            paid_by=paid_by,
            category=category_value,
            amount=amount_value,
            date=expense_date,
            payment_mode=mode,
            notes=notes.strip() if notes and notes.strip() else None,
            receipt_url=receipt_url,
        )
        self.db.add(expense)
        commit_or_rollback(self.db, "record expense")
        self.db.refresh(expense)
        logger.info(
            f"Recorded expense {expense.id}: unit={unit_id} {category_value.value} "
            f"{amount_value} on {expense_date} by user {paid_by}"
        )
        return expense

    def get_expense(self, unit_id: int, expense_id: int) -> Expense:
        """Get an expense of a unit.

        Raises:
            NotFoundError: If the expense does not exist in this unit
        """
        expense = (
            self.db.query(Expense)
            .filter(Expense.id == expense_id, Expense.unit_id == unit_id)
            .first()
        )
        if not expense:
            raise NotFoundError("Expense", expense_id)
        return expense

    def delete_expense(self, unit_id: int, expense_id: int) -> None:
        """Delete an expense.

        Raises:
            NotFoundError: If the expense does not exist in this unit
        """
        expense = self.get_expense(unit_id, expense_id)
        self.db.delete(expense)
        commit_or_rollback(self.db, "delete expense")
        logger.info(f"Deleted expense {expense_id} from unit {unit_id}")

    def list_expenses(self, unit_id: int, month: Optional[date] = None) -> list[Expense]:
        """List a unit's expenses, newest first, optionally limited to one month.

        Args:
            unit_id: Unit ID
            month: Any date within the month to restrict to

        Returns:
            List of Expense objects with payers loaded
        """
        query = (
            self.db.query(Expense)
            .options(selectinload(Expense.payer))
            .filter(Expense.unit_id == unit_id)
        )
        if month is not None:
            bounds = month_range(month)
            query = query.filter(Expense.date >= bounds.start, Expense.date <= bounds.end)
        return query.order_by(Expense.date.desc(), Expense.id.desc()).all()


__all__ = ["ExpenseService", "category_totals"]

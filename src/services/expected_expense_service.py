"""Expected expense service: category templates and per-month entries.

Entries are generated over a unit's contract period from the template, one
per (month, category). Generation is an upsert on that key: running it again
fills gaps and overwrites amounts but never duplicates rows.
"""

import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.orm import Session

from src.models import (
    EXPENSE_CATEGORIES,
    ExpectedExpenseEntry,
    ExpectedExpenseTemplate,
    ExpenseCategory,
    Unit,
)
from src.services import commit_or_rollback
from src.services.errors import NotFoundError, ValidationError
from src.services.parsers import parse_amount, parse_enum, require_non_negative
from src.services.period_service import month_start, months_in_range

logger = logging.getLogger(__name__)


def generation_amounts(
    template: Mapping[ExpenseCategory, Decimal], monthly_rent: Decimal
) -> dict[ExpenseCategory, Decimal]:
    """Amount per category used for every generated month.

    Categories missing from the template get 0, except rent which falls back
    to the unit's monthly rent when the template has no (or a zero) rent.
    """
    amounts = {category: Decimal(str(template.get(category) or 0)) for category in EXPENSE_CATEGORIES}
    if not amounts[ExpenseCategory.RENT] and monthly_rent:
        amounts[ExpenseCategory.RENT] = Decimal(str(monthly_rent))
    return amounts


class ExpectedExpenseService:
    """Service for expected expense templates and entries."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def _get_unit(self, unit_id: int) -> Unit:
        unit = self.db.get(Unit, unit_id)
        if not unit:
            raise NotFoundError("Unit", unit_id)
        return unit

    def get_template(self, unit_id: int) -> dict[ExpenseCategory, Decimal]:
        """Template amounts stored for a unit (only categories that have a row)."""
        rows = (
            self.db.query(ExpectedExpenseTemplate)
            .filter(ExpectedExpenseTemplate.unit_id == unit_id)
            .all()
        )
        return {row.category: row.amount for row in rows}

    def save_template(self, unit_id: int, amounts: Mapping[Any, Any]) -> dict[ExpenseCategory, Decimal]:
        """Upsert template amounts per category.

        Args:
            unit_id: Unit ID
            amounts: category (enum or value) -> amount (>= 0)

        Returns:
            The full template after saving

        Raises:
            NotFoundError: If the unit does not exist
            ValidationError: If a category is unknown or an amount negative
        """
        self._get_unit(unit_id)
        parsed = {
            parse_enum(ExpenseCategory, category, "category"): require_non_negative(
                parse_amount(amount, f"amount for {category}"), f"amount for {category}"
            )
            for category, amount in amounts.items()
        }

        existing = {
            row.category: row
            for row in self.db.query(ExpectedExpenseTemplate)
            .filter(ExpectedExpenseTemplate.unit_id == unit_id)
            .all()
        }
        for category, amount in parsed.items():
            row = existing.get(category)
            if row:
                row.amount = amount
            else:
                self.db.add(ExpectedExpenseTemplate(unit_id=unit_id, category=category, amount=amount))
        commit_or_rollback(self.db, "save expected expense template")
        logger.info(f"Saved expected expense template for unit {unit_id}: {len(parsed)} categories")
        return self.get_template(unit_id)

    def generate_entries(self, unit_id: int) -> int:
        """Materialize entries for every month of the unit's contract period.

        Args:
            unit_id: Unit ID

        Returns:
            Number of (month, category) entries written

        Raises:
            NotFoundError: If the unit does not exist
            ValidationError: If the unit has no contract start/end dates
        """
        unit = self._get_unit(unit_id)
        if not unit.has_contract_period:
            raise ValidationError("Set contract start and end dates to generate expected expenses")

        months = months_in_range(unit.contract_start_date, unit.contract_end_date)
        amounts = generation_amounts(self.get_template(unit_id), unit.monthly_rent)

        existing = {
            (entry.month, entry.category): entry
            for entry in self.db.query(ExpectedExpenseEntry)
            .filter(ExpectedExpenseEntry.unit_id == unit_id)
            .all()
        }

        written = 0
        for month in months:
            for category in EXPENSE_CATEGORIES:
                entry = existing.get((month, category))
                if entry:
                    entry.amount = amounts[category]
                else:
                    self.db.add(
                        ExpectedExpenseEntry(
                            unit_id=unit_id,
                            month=month,
                            category=category,
                            amount=amounts[category],
                        )
                    )
                written += 1

        commit_or_rollback(self.db, "generate expected expenses")
        logger.info(
            f"Generated expected expenses for unit {unit_id}: {len(months)} months, "
            f"{written} entries"
        )
        return written

    def list_entries(self, unit_id: int) -> "OrderedDict[date, list[ExpectedExpenseEntry]]":
        """All entries of a unit grouped by month (ascending), categories in display order."""
        entries = (
            self.db.query(ExpectedExpenseEntry)
            .filter(ExpectedExpenseEntry.unit_id == unit_id)
            .order_by(ExpectedExpenseEntry.month)
            .all()
        )
        order = {category: index for index, category in enumerate(EXPENSE_CATEGORIES)}
        grouped: "OrderedDict[date, list[ExpectedExpenseEntry]]" = OrderedDict()
        for entry in entries:
            grouped.setdefault(entry.month, []).append(entry)
        for month_entries in grouped.values():
            month_entries.sort(key=lambda e: order[e.category])
        return grouped

    def has_entries(self, unit_id: int) -> bool:
        return (
            self.db.query(ExpectedExpenseEntry.id)
            .filter(ExpectedExpenseEntry.unit_id == unit_id)
            .first()
            is not None
        )

    def get_month_entries(self, unit_id: int, month: date) -> list[ExpectedExpenseEntry]:
        return (
            self.db.query(ExpectedExpenseEntry)
            .filter(
                ExpectedExpenseEntry.unit_id == unit_id,
                ExpectedExpenseEntry.month == month_start(month),
            )
            .all()
        )

    def update_month_entries(
        self, unit_id: int, month: date, amounts: Mapping[Any, Any]
    ) -> list[ExpectedExpenseEntry]:
        """Set amounts for one month, creating entries for categories that have none.

        Raises:
            NotFoundError: If the unit does not exist
            ValidationError: If a category is unknown or an amount negative
        """
        self._get_unit(unit_id)
        first_day = month_start(month)
        existing = {entry.category: entry for entry in self.get_month_entries(unit_id, first_day)}
        for category, amount in amounts.items():
            category_value = parse_enum(ExpenseCategory, category, "category")
            amount_value = require_non_negative(
                parse_amount(amount, f"amount for {category_value.value}"),
                f"amount for {category_value.value}",
            )
            entry = existing.get(category_value)
            if entry:
                entry.amount = amount_value
            else:
                self.db.add(
                    ExpectedExpenseEntry(
                        unit_id=unit_id,
                        month=first_day,
                        category=category_value,
                        amount=amount_value,
                    )
                )
        commit_or_rollback(self.db, "update expected expenses")
        logger.info(f"Updated expected expenses for unit {unit_id} month {first_day}")
        return self.get_month_entries(unit_id, first_day)

    def delete_month(self, unit_id: int, month: date) -> int:
        """Delete every entry of one month.

        Returns:
            Number of deleted entries
        """
        deleted = (
            self.db.query(ExpectedExpenseEntry)
            .filter(
                ExpectedExpenseEntry.unit_id == unit_id,
                ExpectedExpenseEntry.month == month_start(month),
            )
            .delete(synchronize_session=False)
        )
        commit_or_rollback(self.db, "delete expected expenses")
        logger.info(f"Deleted {deleted} expected expense entries for unit {unit_id} month {month}")
        return deleted


__all__ = ["ExpectedExpenseService", "generation_amounts"]

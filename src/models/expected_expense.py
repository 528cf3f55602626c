"""Expected expense ORM models: per-category templates and per-month entries."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel
from src.models.expense import ExpenseCategory


class ExpectedExpenseTemplate(Base, BaseModel):
    """Seed amount for one category of a unit, used when generating entries."""

    __tablename__ = "expected_expense_templates"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
        index=True,
    )
    category: Mapped[ExpenseCategory] = mapped_column(
        SQLEnum(ExpenseCategory),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )

    __table_args__ = (
        UniqueConstraint("unit_id", "category", name="uq_expected_template_unit_category"),
    )

    def __repr__(self) -> str:
        return (
            f"<ExpectedExpenseTemplate(unit_id={self.unit_id}, "
            f"category={self.category}, amount={self.amount})>"
        )


class ExpectedExpenseEntry(Base, BaseModel):
    """Materialized expected amount for (unit, month, category).

    month is always the first day of the month. Entries are generated in
    bulk over the unit's contract period and may then be edited or deleted
    month by month.
    """

    __tablename__ = "expected_expense_entries"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
        index=True,
    )
    month: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment="First day of the month",
    )
    category: Mapped[ExpenseCategory] = mapped_column(
        SQLEnum(ExpenseCategory),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )

    __table_args__ = (
        UniqueConstraint("unit_id", "month", "category", name="uq_expected_entry_unit_month_category"),
    )

    def __repr__(self) -> str:
        return (
            f"<ExpectedExpenseEntry(id={self.id}, unit_id={self.unit_id}, month={self.month}, "
            f"category={self.category}, amount={self.amount})>"
        )


__all__ = ["ExpectedExpenseTemplate", "ExpectedExpenseEntry"]

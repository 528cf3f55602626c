"""Expense ORM model for costs paid by a member on behalf of the unit."""

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class ExpenseCategory(str, Enum):
    """Fixed set of expense categories."""

    RENT = "rent"
    UTILITIES = "utilities"
    CLEANING = "cleaning"
    PROVISIONS = "provisions"
    OTHER = "other"


# Display order used by breakdowns, templates and reports
EXPENSE_CATEGORIES: list[ExpenseCategory] = [
    ExpenseCategory.RENT,
    ExpenseCategory.UTILITIES,
    ExpenseCategory.CLEANING,
    ExpenseCategory.PROVISIONS,
    ExpenseCategory.OTHER,
]


class PaymentMode(str, Enum):
    """How a payment was made."""

    BANK_TRANSFER = "bank_transfer"
    PAYNOW = "paynow"
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    GRABPAY = "grabpay"
    PAYLAH = "paylah"
    OTHER = "other"


class Expense(Base, BaseModel):
    """Model representing an expense paid by one member for the unit.

    Expenses are created and deleted, never edited in place.
    """

    __tablename__ = "expenses"

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
    )
    date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    paid_by: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
        comment="Member (profile) who paid",
    )
    payment_mode: Mapped[PaymentMode | None] = mapped_column(
        SQLEnum(PaymentMode),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    receipt_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Receipt image URL in the object store",
    )

    # Relationships
    unit: Mapped["Unit"] = relationship(  # noqa: F821
        "Unit",
        back_populates="expenses",
        foreign_keys=[unit_id],
    )
    payer: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        foreign_keys=[paid_by],
    )

    __table_args__ = (Index("idx_expense_unit_date", "unit_id", "date"),)

    def __repr__(self) -> str:
        return (
            f"<Expense(id={self.id}, unit_id={self.unit_id}, category={self.category}, "
            f"amount={self.amount}, date={self.date}, paid_by={self.paid_by})>"
        )


__all__ = ["Expense", "ExpenseCategory", "EXPENSE_CATEGORIES", "PaymentMode"]

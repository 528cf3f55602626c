"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from src.models.profile import Profile  # noqa: E402
from src.models.unit import Unit  # noqa: E402
from src.models.unit_member import (  # noqa: E402
    ContributionPeriod,
    ContributionType,
    MemberRole,
    UnitMember,
)
from src.models.expense import EXPENSE_CATEGORIES, Expense, ExpenseCategory, PaymentMode  # noqa: E402
from src.models.expected_expense import ExpectedExpenseEntry, ExpectedExpenseTemplate  # noqa: E402
from src.models.balance_payment import BalancePayment  # noqa: E402
from src.models.contribution import (  # noqa: E402
    Contribution,
    ContributionPayment,
    ContributionStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "Profile",
    "Unit",
    "UnitMember",
    "MemberRole",
    "ContributionType",
    "ContributionPeriod",
    "Expense",
    "ExpenseCategory",
    "EXPENSE_CATEGORIES",
    "PaymentMode",
    "ExpectedExpenseTemplate",
    "ExpectedExpenseEntry",
    "BalancePayment",
    "Contribution",
    "ContributionPayment",
    "ContributionStatus",
]

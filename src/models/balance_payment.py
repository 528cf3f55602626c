"""Balance payment ORM model for manually recorded share transfers."""

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.expense import PaymentMode


class BalancePayment(Base, BaseModel):
    """Model representing a member paying their share for a given month.

    to_user_id points to the master tenant who received the money; NULL
    means the member paid an external party directly (landlord, utility).
    Counted as "paid" for the member in for_month, independent of expenses.
    """

    __tablename__ = "balance_payments"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
        index=True,
    )
    from_user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    to_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=True,
        comment="Receiving master tenant; NULL for direct payments",
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    for_month: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="First day of the month the payment settles",
    )
    payment_mode: Mapped[PaymentMode | None] = mapped_column(
        SQLEnum(PaymentMode),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    from_user: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        foreign_keys=[from_user_id],
    )
    to_user: Mapped["Profile | None"] = relationship(  # noqa: F821
        "Profile",
        foreign_keys=[to_user_id],
    )

    __table_args__ = (Index("idx_balance_payment_unit_month", "unit_id", "for_month"),)

    @property
    def is_direct(self) -> bool:
        return self.to_user_id is None

    def __repr__(self) -> str:
        return (
            f"<BalancePayment(id={self.id}, unit_id={self.unit_id}, from={self.from_user_id}, "
            f"to={self.to_user_id}, amount={self.amount}, for_month={self.for_month})>"
        )


__all__ = ["BalancePayment"]

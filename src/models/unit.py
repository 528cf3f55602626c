"""Unit ORM model for a shared housing unit with its rent and contract period."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Unit(Base, BaseModel):
    """Model representing a housing unit shared by its members.

    monthly_rent is the reference amount for percentage shares and the
    fallback rent when expected expenses are generated. The contract dates,
    when both present, define the months for which expected expense entries
    exist.
    """

    __tablename__ = "units"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Country code or name; determines the display currency",
    )
    zipcode: Mapped[str | None] = mapped_column(String(20), nullable=True)

    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Reference monthly rent for share calculations",
    )

    contract_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    payment_due_day: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Day of month rent shares are due (1-28)",
    )

    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=True,
        index=True,
    )

    # Relationships
    members: Mapped[list["UnitMember"]] = relationship(  # noqa: F821
        "UnitMember",
        back_populates="unit",
        cascade="all, delete-orphan",
        order_by="UnitMember.id",
    )
    expenses: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense",
        back_populates="unit",
        cascade="all, delete-orphan",
    )

    @property
    def has_contract_period(self) -> bool:
        return self.contract_start_date is not None and self.contract_end_date is not None

    def __repr__(self) -> str:
        return (
            f"<Unit(id={self.id}, name={self.name!r}, country={self.country!r}, "
            f"monthly_rent={self.monthly_rent}, contract={self.contract_start_date}"
            f"..{self.contract_end_date})>"
        )


__all__ = ["Unit"]

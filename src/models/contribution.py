"""Contribution ORM models for ad hoc collection requests and their payments."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class ContributionStatus(str, Enum):
    """Collection status of a contribution request (set manually)."""

    PENDING = "pending"
    PARTIALLY_COLLECTED = "partially_collected"
    COLLECTED = "collected"


class Contribution(Base, BaseModel):
    """A one-off amount requested from every member of a unit."""

    __tablename__ = "contributions"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Amount requested from each member",
    )
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    requested_by: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )
    status: Mapped[ContributionStatus] = mapped_column(
        SQLEnum(ContributionStatus),
        nullable=False,
        default=ContributionStatus.PENDING,
    )

    # Relationships
    requester: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        foreign_keys=[requested_by],
    )
    payments: Mapped[list["ContributionPayment"]] = relationship(
        "ContributionPayment",
        back_populates="contribution",
        cascade="all, delete-orphan",
        order_by="ContributionPayment.paid_at",
    )

    def __repr__(self) -> str:
        return (
            f"<Contribution(id={self.id}, unit_id={self.unit_id}, amount={self.amount}, "
            f"reason={self.reason!r}, status={self.status})>"
        )


class ContributionPayment(Base, BaseModel):
    """A member's payment against a contribution request."""

    __tablename__ = "contribution_payments"

    contribution_id: Mapped[int] = mapped_column(
        ForeignKey("contributions.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    contribution: Mapped["Contribution"] = relationship(
        "Contribution",
        back_populates="payments",
        foreign_keys=[contribution_id],
    )
    profile: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        foreign_keys=[user_id],
    )

    def __repr__(self) -> str:
        return (
            f"<ContributionPayment(id={self.id}, contribution_id={self.contribution_id}, "
            f"user_id={self.user_id}, amount={self.amount})>"
        )


__all__ = ["Contribution", "ContributionPayment", "ContributionStatus"]

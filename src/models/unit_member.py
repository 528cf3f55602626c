"""Unit member ORM model with the member's contribution configuration."""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class MemberRole(str, Enum):
    """Role of a member within a unit."""

    MASTER_TENANT = "master_tenant"  # Holds the lease, manages the unit
    CO_TENANT = "co_tenant"


class ContributionType(str, Enum):
    """How a member's monthly obligation is expressed."""

    SHARE = "share"  # Percentage of the reference monthly rent
    FIXED = "fixed"  # Fixed amount per period


class ContributionPeriod(str, Enum):
    """Period a fixed contribution amount refers to."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class UnitMember(Base, BaseModel):
    """Model linking a profile to a unit, with how much that member contributes.

    Exactly one field group is meaningful, selected by contribution_type:
    - SHARE: share_percentage
    - FIXED: fixed_amount + contribution_period

    The inactive group is stored as NULL. contribution_end_date is
    informational unless the balance sheet is configured to honor it.
    """

    __tablename__ = "unit_members"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole),
        nullable=False,
        default=MemberRole.CO_TENANT,
    )

    # Contribution configuration
    contribution_type: Mapped[ContributionType | None] = mapped_column(
        SQLEnum(ContributionType),
        nullable=True,
        default=ContributionType.SHARE,
        comment="NULL is read as share",
    )
    share_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2),
        nullable=True,
        comment="Percent of monthly rent (0-100), share contributions only",
    )
    fixed_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Fixed contribution amount, fixed contributions only",
    )
    contribution_period: Mapped[ContributionPeriod | None] = mapped_column(
        SQLEnum(ContributionPeriod),
        nullable=True,
        comment="Period of fixed_amount; yearly is divided by 12",
    )
    contribution_end_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Date after which the contribution obligation ceases",
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    unit: Mapped["Unit"] = relationship(  # noqa: F821
        "Unit",
        back_populates="members",
        foreign_keys=[unit_id],
    )
    profile: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        back_populates="memberships",
        foreign_keys=[user_id],
    )

    __table_args__ = (
        UniqueConstraint("unit_id", "user_id", name="uq_unit_member"),
    )

    @property
    def is_master_tenant(self) -> bool:
        return self.role == MemberRole.MASTER_TENANT

    def __repr__(self) -> str:
        return (
            f"<UnitMember(id={self.id}, unit_id={self.unit_id}, user_id={self.user_id}, "
            f"role={self.role}, type={self.contribution_type}, "
            f"share={self.share_percentage}, fixed={self.fixed_amount}/{self.contribution_period})>"
        )


__all__ = ["UnitMember", "MemberRole", "ContributionType", "ContributionPeriod"]

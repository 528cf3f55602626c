"""Unit and membership service for database operations.

Encapsulates Unit, UnitMember and Profile CRUD plus the membership checks
the API performs before touching a unit. Editing a unit and editing a
member's contribution are independent writes; there is no transaction
spanning both.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session, selectinload

from src.models import (
    ContributionPeriod,
    ContributionType,
    MemberRole,
    Profile,
    Unit,
    UnitMember,
)
from src.services import commit_or_rollback
from src.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from src.services.parsers import (
    parse_amount,
    parse_enum,
    parse_optional_enum,
    require_non_negative,
    require_percentage,
)

logger = logging.getLogger(__name__)

UPDATABLE_UNIT_FIELDS = {
    "name",
    "address",
    "country",
    "zipcode",
    "monthly_rent",
    "contract_start_date",
    "contract_end_date",
    "payment_due_day",
}


class UnitService:
    """Service for unit and member database operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_or_create_profile(self, user_id: int, name: Optional[str] = None) -> Profile:
        """Return the profile for an identity-provider user, creating it on first sight.

        Args:
            user_id: User ID issued by the identity provider
            name: Display name to store when creating

        Returns:
            Profile object
        """
        profile = self.db.get(Profile, user_id)
        if profile:
            return profile
        profile = Profile(id=user_id, name=name)
        self.db.add(profile)
        commit_or_rollback(self.db, "create profile")
        logger.info(f"Created profile {user_id} ({name!r})")
        return profile

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def get_unit(self, unit_id: int) -> Unit:
        """Get unit by ID.

        Raises:
            NotFoundError: If the unit does not exist
        """
        unit = self.db.get(Unit, unit_id)
        if not unit:
            raise NotFoundError("Unit", unit_id)
        return unit

    def list_user_units(self, user_id: int) -> list[Unit]:
        """Units the user is a member of, in membership order."""
        return (
            self.db.query(Unit)
            .join(UnitMember, UnitMember.unit_id == Unit.id)
            .filter(UnitMember.user_id == user_id)
            .order_by(UnitMember.id)
            .all()
        )

    def create_unit(
        self,
        creator_id: int,
        name: str,
        monthly_rent: Any = 0,
        country: Optional[str] = None,
        address: Optional[str] = None,
        zipcode: Optional[str] = None,
        contract_start_date: Optional[date] = None,
        contract_end_date: Optional[date] = None,
        payment_due_day: Optional[int] = None,
    ) -> Unit:
        """Create a unit; the creator joins as master tenant with a 100% share.

        Raises:
            ValidationError: If name is empty, rent negative, dates reversed or due day invalid
        """
        if not name or not name.strip():
            raise ValidationError("Unit name is required")
        rent = require_non_negative(parse_amount(monthly_rent, "monthly_rent"), "monthly_rent")
        _validate_contract(contract_start_date, contract_end_date)
        _validate_due_day(payment_due_day)

        self.get_or_create_profile(creator_id)
        unit = Unit(
            name=name.strip(),
            monthly_rent=rent,
            country=country,
            address=address,
            zipcode=zipcode,
            contract_start_date=contract_start_date,
            contract_end_date=contract_end_date,
            payment_due_day=payment_due_day,
            created_by=creator_id,
        )
        self.db.add(unit)
        self.db.flush()
        self.db.add(
            UnitMember(
                unit_id=unit.id,
                user_id=creator_id,
                role=MemberRole.MASTER_TENANT,
                contribution_type=ContributionType.SHARE,
                share_percentage=Decimal("100"),
            )
        )
        commit_or_rollback(self.db, "create unit")
        self.db.refresh(unit)
        logger.info(f"Created unit {unit.id} ({unit.name!r}) by user {creator_id}")
        return unit

    def update_unit(self, unit_id: int, **fields: Any) -> Unit:
        """Update unit fields.

        Only keys in UPDATABLE_UNIT_FIELDS are accepted; values are validated
        the same way as on creation.

        Raises:
            NotFoundError: If the unit does not exist
            ValidationError: If a field is unknown or invalid
        """
        unit = self.get_unit(unit_id)
        unknown = set(fields) - UPDATABLE_UNIT_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update unit fields: {', '.join(sorted(unknown))}")

        if "name" in fields and (not fields["name"] or not str(fields["name"]).strip()):
            raise ValidationError("Unit name is required")
        if "monthly_rent" in fields:
            fields["monthly_rent"] = require_non_negative(
                parse_amount(fields["monthly_rent"], "monthly_rent"), "monthly_rent"
            )
        _validate_contract(
            fields.get("contract_start_date", unit.contract_start_date),
            fields.get("contract_end_date", unit.contract_end_date),
        )
        if "payment_due_day" in fields:
            _validate_due_day(fields["payment_due_day"])

        for key, value in fields.items():
            setattr(unit, key, value)
        commit_or_rollback(self.db, "update unit")
        self.db.refresh(unit)
        logger.info(f"Updated unit {unit_id}: {sorted(fields)}")
        return unit

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def get_members(self, unit_id: int) -> list[UnitMember]:
        """All members of a unit with their profiles, in join order."""
        return (
            self.db.query(UnitMember)
            .options(selectinload(UnitMember.profile))
            .filter(UnitMember.unit_id == unit_id)
            .order_by(UnitMember.id)
            .all()
        )

    def get_member(self, unit_id: int, member_id: int) -> UnitMember:
        """Get a member of a unit by member ID.

        Raises:
            NotFoundError: If no such member belongs to the unit
        """
        member = (
            self.db.query(UnitMember)
            .filter(UnitMember.id == member_id, UnitMember.unit_id == unit_id)
            .first()
        )
        if not member:
            raise NotFoundError("Member", member_id)
        return member

    def find_membership(self, unit_id: int, user_id: int) -> Optional[UnitMember]:
        return (
            self.db.query(UnitMember)
            .filter(UnitMember.unit_id == unit_id, UnitMember.user_id == user_id)
            .first()
        )

    def require_member(self, unit_id: int, user_id: int) -> UnitMember:
        """Membership of user in unit.

        Raises:
            NotFoundError: If the unit does not exist
            PermissionDeniedError: If the user is not a member
        """
        self.get_unit(unit_id)
        member = self.find_membership(unit_id, user_id)
        if not member:
            logger.warning(f"User {user_id} is not a member of unit {unit_id}")
            raise PermissionDeniedError("You are not a member of this unit")
        return member

    def require_master_tenant(self, unit_id: int, user_id: int) -> UnitMember:
        """Like require_member, but the member must be a master tenant."""
        member = self.require_member(unit_id, user_id)
        if member.role != MemberRole.MASTER_TENANT:
            logger.warning(f"User {user_id} is not a master tenant of unit {unit_id}")
            raise PermissionDeniedError("Only master tenants can do this")
        return member

    def add_member(
        self,
        unit_id: int,
        user_id: int,
        name: Optional[str] = None,
        role: Any = MemberRole.CO_TENANT,
        contribution_type: Any = ContributionType.SHARE,
        share_percentage: Any = 0,
        fixed_amount: Any = None,
        contribution_period: Any = None,
        contribution_end_date: Optional[date] = None,
    ) -> UnitMember:
        """Add a user to a unit.

        Raises:
            NotFoundError: If the unit does not exist
            ValidationError: If the user is already a member or the contribution is invalid
        """
        self.get_unit(unit_id)
        if self.find_membership(unit_id, user_id):
            raise ValidationError(f"User {user_id} is already a member of unit {unit_id}")

        self.get_or_create_profile(user_id, name)
        member = UnitMember(
            unit_id=unit_id,
            user_id=user_id,
            role=parse_enum(MemberRole, role, "role"),
        )
        _apply_contribution(
            member,
            contribution_type,
            share_percentage,
            fixed_amount,
            contribution_period,
            contribution_end_date,
        )
        self.db.add(member)
        commit_or_rollback(self.db, "add member")
        self.db.refresh(member)
        logger.info(f"Added user {user_id} to unit {unit_id} as {member.role.value}")
        return member

    def update_member(
        self,
        unit_id: int,
        member_id: int,
        role: Any = None,
        contribution_type: Any = None,
        share_percentage: Any = None,
        fixed_amount: Any = None,
        contribution_period: Any = None,
        contribution_end_date: Optional[date] = None,
    ) -> UnitMember:
        """Update a member's role and/or contribution configuration.

        When contribution_type is given the whole contribution is rewritten:
        fields of the inactive type are cleared. Without it, the given fields
        are merged into the member's current contribution and must belong to
        its type.

        Raises:
            NotFoundError: If the member does not exist
            ValidationError: If a value is invalid or belongs to the other type
        """
        member = self.get_member(unit_id, member_id)
        if role is not None:
            member.role = parse_enum(MemberRole, role, "role")
        if contribution_type is None:
            share_fields = {"share_percentage": share_percentage}
            fixed_fields = {
                "fixed_amount": fixed_amount,
                "contribution_period": contribution_period,
                "contribution_end_date": contribution_end_date,
            }
            current = member.contribution_type or ContributionType.SHARE
            foreign = fixed_fields if current == ContributionType.SHARE else share_fields
            given = [name for name, value in foreign.items() if value is not None]
            if given:
                raise ValidationError(
                    f"{', '.join(given)} cannot be set on a {current.value} contribution "
                    f"without contribution_type"
                )
            if any(value is not None for value in {**share_fields, **fixed_fields}.values()):
                contribution_type = current
                if share_percentage is None:
                    share_percentage = member.share_percentage
                if fixed_amount is None:
                    fixed_amount = member.fixed_amount
                if contribution_period is None:
                    contribution_period = member.contribution_period
                if contribution_end_date is None:
                    contribution_end_date = member.contribution_end_date
        if contribution_type is not None:
            _apply_contribution(
                member,
                contribution_type,
                share_percentage,
                fixed_amount,
                contribution_period,
                contribution_end_date,
            )
        commit_or_rollback(self.db, "update member")
        self.db.refresh(member)
        logger.info(
            f"Updated member {member_id} of unit {unit_id}: role={member.role.value} "
            f"type={member.contribution_type.value if member.contribution_type else None}"
        )
        return member

    def remove_member(self, unit_id: int, member_id: int) -> None:
        """Remove a member from a unit.

        Raises:
            NotFoundError: If the member does not exist
        """
        member = self.get_member(unit_id, member_id)
        self.db.delete(member)
        commit_or_rollback(self.db, "remove member")
        logger.info(f"Removed member {member_id} from unit {unit_id}")


def _validate_contract(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValidationError("contract_end_date must not be before contract_start_date")


def _validate_due_day(due_day: Optional[int]) -> None:
    if due_day is not None and not 1 <= int(due_day) <= 28:
        raise ValidationError("payment_due_day must be between 1 and 28")


def _apply_contribution(
    member: UnitMember,
    contribution_type: Any,
    share_percentage: Any,
    fixed_amount: Any,
    contribution_period: Any,
    contribution_end_date: Optional[date],
) -> None:
    """Write one contribution variant onto member, clearing the other."""
    ctype = parse_enum(ContributionType, contribution_type, "contribution_type")
    if ctype == ContributionType.SHARE:
        member.contribution_type = ContributionType.SHARE
        member.share_percentage = require_percentage(
            parse_amount(share_percentage if share_percentage is not None else 0, "share_percentage"),
            "share_percentage",
        )
        member.fixed_amount = None
        member.contribution_period = None
        member.contribution_end_date = None
        return

    member.contribution_type = ContributionType.FIXED
    member.fixed_amount = require_non_negative(
        parse_amount(fixed_amount if fixed_amount is not None else 0, "fixed_amount"),
        "fixed_amount",
    )
    member.contribution_period = (
        parse_optional_enum(ContributionPeriod, contribution_period, "contribution_period")
        or ContributionPeriod.MONTHLY
    )
    member.contribution_end_date = contribution_end_date
    member.share_percentage = None


__all__ = ["UnitService", "UPDATABLE_UNIT_FIELDS"]

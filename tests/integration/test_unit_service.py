"""Integration tests for units, members and permission checks."""

from datetime import date
from decimal import Decimal

import pytest

from src.models import ContributionPeriod, ContributionType, MemberRole
from src.services.errors import NotFoundError, PermissionDeniedError, ValidationError


class TestCreateUnit:
    """Unit creation."""

    def test_creator_becomes_master_tenant_with_full_share(self, unit_service):
        unit = unit_service.create_unit(creator_id=10, name="  Orchard Loft ", monthly_rent="2500")

        [member] = unit_service.get_members(unit.id)
        assert unit.name == "Orchard Loft"
        assert unit.monthly_rent == Decimal("2500")
        assert unit.created_by == 10
        assert member.user_id == 10
        assert member.role == MemberRole.MASTER_TENANT
        assert member.contribution_type == ContributionType.SHARE
        assert member.share_percentage == Decimal("100")

    def test_creates_profile_on_first_sight(self, unit_service):
        unit_service.create_unit(creator_id=11, name="Loft")
        assert unit_service.get_or_create_profile(11).id == 11

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"name": " "}, "Unit name is required"),
            ({"name": "A", "monthly_rent": "-1"}, "must not be negative"),
            (
                {
                    "name": "A",
                    "contract_start_date": date(2025, 3, 1),
                    "contract_end_date": date(2025, 2, 1),
                },
                "contract_end_date",
            ),
            ({"name": "A", "payment_due_day": 29}, "between 1 and 28"),
            ({"name": "A", "payment_due_day": 0}, "between 1 and 28"),
        ],
    )
    def test_validation(self, unit_service, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            unit_service.create_unit(creator_id=1, **kwargs)

    def test_list_user_units(self, unit_service, shared_unit):
        unit, _ = shared_unit
        other = unit_service.create_unit(creator_id=2, name="Bob's other place")

        assert [u.id for u in unit_service.list_user_units(2)] == [unit.id, other.id]
        assert [u.id for u in unit_service.list_user_units(3)] == [unit.id]
        assert unit_service.list_user_units(99) == []


class TestUpdateUnit:
    """Unit edits."""

    def test_update_fields(self, unit_service, contract_unit):
        unit = unit_service.update_unit(contract_unit.id, monthly_rent="1200.50", payment_due_day=1)
        assert unit.monthly_rent == Decimal("1200.50")
        assert unit.payment_due_day == 1

    def test_reversed_dates_checked_against_stored_values(self, unit_service, contract_unit):
        with pytest.raises(ValidationError):
            unit_service.update_unit(contract_unit.id, contract_end_date=date(2024, 12, 31))

    def test_unknown_field_rejected(self, unit_service, contract_unit):
        with pytest.raises(ValidationError, match="created_by"):
            unit_service.update_unit(contract_unit.id, created_by=5)

    def test_missing_unit(self, unit_service):
        with pytest.raises(NotFoundError):
            unit_service.update_unit(404, name="Nope")


class TestMembers:
    """Adding, updating and removing members."""

    def test_members_in_join_order(self, unit_service, shared_unit):
        unit, _ = shared_unit
        names = [m.profile.name for m in unit_service.get_members(unit.id)]
        assert names == ["Alice", "Bob", "Carol"]

    def test_duplicate_member_rejected(self, unit_service, shared_unit):
        unit, _ = shared_unit
        with pytest.raises(ValidationError, match="already a member"):
            unit_service.add_member(unit.id, 2, name="Bob")

    def test_share_over_hundred_rejected(self, unit_service, shared_unit):
        unit, _ = shared_unit
        with pytest.raises(ValidationError, match="between 0 and 100"):
            unit_service.add_member(unit.id, 4, share_percentage="120")

    def test_fixed_defaults_to_monthly(self, unit_service, shared_unit):
        unit, _ = shared_unit
        member = unit_service.add_member(unit.id, 4, contribution_type="fixed", fixed_amount="75")
        assert member.contribution_period == ContributionPeriod.MONTHLY
        assert member.share_percentage is None

    def test_switching_type_clears_other_fields(self, unit_service, shared_unit):
        unit, members = shared_unit
        updated = unit_service.update_member(
            unit.id, members["bob"].id, contribution_type="share", share_percentage="15"
        )
        assert updated.contribution_type == ContributionType.SHARE
        assert updated.share_percentage == Decimal("15")
        assert updated.fixed_amount is None
        assert updated.contribution_period is None

    def test_role_only_update_keeps_contribution(self, unit_service, shared_unit):
        unit, members = shared_unit
        updated = unit_service.update_member(unit.id, members["carol"].id, role="master_tenant")
        assert updated.role == MemberRole.MASTER_TENANT
        assert updated.share_percentage == Decimal("25")

    def test_contribution_end_date_stored_for_fixed(self, unit_service, shared_unit):
        unit, members = shared_unit
        updated = unit_service.update_member(
            unit.id,
            members["bob"].id,
            contribution_type=ContributionType.FIXED,
            fixed_amount="2400",
            contribution_period="yearly",
            contribution_end_date=date(2025, 6, 30),
        )
        assert updated.contribution_period == ContributionPeriod.YEARLY
        assert updated.contribution_end_date == date(2025, 6, 30)

    def test_share_percentage_alone_updates_share_member(self, unit_service, shared_unit):
        unit, members = shared_unit
        updated = unit_service.update_member(unit.id, members["carol"].id, share_percentage="40")
        assert updated.contribution_type == ContributionType.SHARE
        assert updated.share_percentage == Decimal("40")

    def test_end_date_alone_keeps_fixed_amount(self, unit_service, shared_unit):
        unit, members = shared_unit
        updated = unit_service.update_member(
            unit.id, members["bob"].id, contribution_end_date=date(2025, 6, 30)
        )
        assert updated.contribution_type == ContributionType.FIXED
        assert updated.contribution_end_date == date(2025, 6, 30)
        assert updated.fixed_amount == Decimal("200")
        assert updated.contribution_period == ContributionPeriod.MONTHLY

    def test_fixed_amount_alone_keeps_end_date(self, unit_service, shared_unit):
        unit, members = shared_unit
        unit_service.update_member(unit.id, members["bob"].id, contribution_end_date=date(2025, 6, 30))
        updated = unit_service.update_member(unit.id, members["bob"].id, fixed_amount="250")
        assert updated.fixed_amount == Decimal("250")
        assert updated.contribution_end_date == date(2025, 6, 30)

    def test_partial_update_is_validated(self, unit_service, shared_unit):
        unit, members = shared_unit
        with pytest.raises(ValidationError, match="share_percentage"):
            unit_service.update_member(unit.id, members["carol"].id, share_percentage="150")

    @pytest.mark.parametrize(
        "member,kwargs",
        [
            ("carol", {"fixed_amount": "300"}),
            ("carol", {"contribution_end_date": date(2025, 6, 30)}),
            ("bob", {"share_percentage": "30"}),
        ],
    )
    def test_other_type_field_without_type_rejected(self, unit_service, shared_unit, member, kwargs):
        unit, members = shared_unit
        with pytest.raises(ValidationError, match="without contribution_type"):
            unit_service.update_member(unit.id, members[member].id, **kwargs)
        unchanged = unit_service.get_member(unit.id, members[member].id)
        assert (unchanged.share_percentage, unchanged.fixed_amount) in [
            (Decimal("25"), None),
            (None, Decimal("200")),
        ]

    def test_remove_member(self, unit_service, shared_unit):
        unit, members = shared_unit
        unit_service.remove_member(unit.id, members["carol"].id)
        assert [m.user_id for m in unit_service.get_members(unit.id)] == [1, 2]

    def test_member_of_other_unit_not_found(self, unit_service, shared_unit, contract_unit):
        _, members = shared_unit
        with pytest.raises(NotFoundError):
            unit_service.get_member(contract_unit.id, members["bob"].id)


class TestPermissions:
    """Membership and master tenant checks."""

    def test_require_member(self, unit_service, shared_unit):
        unit, members = shared_unit
        assert unit_service.require_member(unit.id, 3).id == members["carol"].id

    def test_non_member_denied(self, unit_service, shared_unit):
        unit, _ = shared_unit
        with pytest.raises(PermissionDeniedError):
            unit_service.require_member(unit.id, 99)

    def test_missing_unit_is_not_found(self, unit_service):
        with pytest.raises(NotFoundError):
            unit_service.require_member(404, 1)

    def test_master_tenant_required(self, unit_service, shared_unit):
        unit, _ = shared_unit
        assert unit_service.require_master_tenant(unit.id, 1).user_id == 1
        with pytest.raises(PermissionDeniedError, match="master tenants"):
            unit_service.require_master_tenant(unit.id, 2)

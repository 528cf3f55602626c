"""Unit tests for allocation service."""

from datetime import date
from decimal import Decimal

import pytest

from src.models import ContributionPeriod, ContributionType, MemberRole
from src.services.allocation_service import (
    AllocationService,
    FixedContribution,
    MemberSnapshot,
    ShareContribution,
    TotalSource,
    contribution_from_record,
    member_snapshot_from_record,
)

RENT = Decimal("1000")


def share(user_id: int, percentage: str) -> MemberSnapshot:
    return MemberSnapshot(user_id=user_id, contribution=ShareContribution(Decimal(percentage)))


def fixed(user_id: int, amount: str, period: ContributionPeriod = ContributionPeriod.MONTHLY) -> MemberSnapshot:
    return MemberSnapshot(user_id=user_id, contribution=FixedContribution(Decimal(amount), period))


class TestMonthlyImpliedAmount:
    """Normalizing contributions to a monthly amount."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_share_is_percentage_of_rent(self, service):
        assert service.monthly_implied_amount(share(1, "60"), RENT) == Decimal("600")

    def test_fixed_monthly_is_amount(self, service):
        assert service.monthly_implied_amount(fixed(1, "400"), RENT) == Decimal("400")

    def test_fixed_yearly_is_divided_by_twelve(self, service):
        member = fixed(1, "1200", ContributionPeriod.YEARLY)
        assert service.monthly_implied_amount(member, RENT) == Decimal("100")

    def test_share_with_zero_rent(self, service):
        assert service.monthly_implied_amount(share(1, "50"), Decimal("0")) == Decimal("0")


class TestShareFraction:
    """Fractions of a pooled total."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_fixed_members_scenario_b(self, service):
        """Fixed 400/mo and fixed 1200/yr split a pool of 500 as 0.8 / 0.2."""
        a = fixed(1, "400")
        b = fixed(2, "1200", ContributionPeriod.YEARLY)
        members = [a, b]

        assert service.share_fraction(a, members, RENT) == Decimal("0.8")
        assert service.share_fraction(b, members, RENT) == Decimal("0.2")

    def test_mixed_members_scenario_c(self, service):
        """Share 60% keeps its own fraction; fixed 200 is 200/800 of the pool."""
        a = share(1, "60")
        b = fixed(2, "200")
        members = [a, b]

        fraction_a = service.share_fraction(a, members, RENT)
        fraction_b = service.share_fraction(b, members, RENT)

        assert fraction_a == Decimal("0.6")
        assert fraction_b == Decimal("0.25")
        # Mixed groups are not normalized
        assert fraction_a + fraction_b == Decimal("0.85")

    def test_share_fraction_ignores_other_members(self, service):
        a = share(1, "60")
        alone = service.share_fraction(a, [a], RENT)
        crowded = service.share_fraction(a, [a, share(2, "90"), fixed(3, "5000")], RENT)
        assert alone == crowded == Decimal("0.6")

    def test_fixed_only_group_sums_to_one(self, service):
        members = [fixed(1, "100"), fixed(2, "300"), fixed(3, "1200", ContributionPeriod.YEARLY)]
        total = sum(service.share_fraction(m, members, RENT) for m in members)
        assert total == Decimal("1")

    def test_zero_pool_gives_zero(self, service):
        """All implied amounts zero: no division, fraction is exactly 0."""
        a = fixed(1, "0")
        b = share(2, "0")
        assert service.share_fraction(a, [a, b], RENT) == Decimal("0")

    def test_zero_pool_with_zero_rent(self, service):
        a = fixed(1, "0")
        b = share(2, "80")
        assert service.share_fraction(a, [a, b], Decimal("0")) == Decimal("0")


class TestExpectedAmount:
    """Expected amounts against a monthly total."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_scenario_a_full_share_takes_whole_total(self, service):
        a = share(1, "100")
        assert service.expected_amount(a, [a], Decimal("1500"), RENT) == Decimal("1500")

    def test_fixed_expected_independent_of_total(self, service):
        a = share(1, "60")
        b = fixed(2, "200")
        for total in ("0", "500", "1500", "99999"):
            assert service.expected_amount(b, [a, b], Decimal(total), RENT) == Decimal("200")

    def test_share_expected_is_linear_in_total(self, service):
        a = share(1, "60")
        members = [a, fixed(2, "200")]
        single = service.expected_amount(a, members, Decimal("1500"), RENT)
        double = service.expected_amount(a, members, Decimal("3000"), RENT)
        assert single == Decimal("900")
        assert double == 2 * single

    def test_expected_from_contributions(self, service):
        """Rent 1000: 60% share -> 600, fixed 200 -> 200."""
        members = [share(1, "60"), fixed(2, "200")]
        assert service.expected_from_contributions(members, RENT) == Decimal("800")

    def test_expected_from_contributions_empty(self, service):
        assert service.expected_from_contributions([], RENT) == Decimal("0")


class TestResolveMonthlyTotal:
    """Priority chain: expected entries, then contributions, then actual expenses."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_expected_entries_win(self, service):
        result = service.resolve_monthly_total(
            expected_entries=[Decimal("1000"), Decimal("150")],
            expected_from_contributions=Decimal("800"),
            actual_expenses=[Decimal("50")],
        )
        assert result.amount == Decimal("1150")
        assert result.source == TotalSource.EXPECTED_ENTRIES

    def test_zero_entries_fall_through_to_contributions(self, service):
        result = service.resolve_monthly_total(
            expected_entries=[Decimal("0"), Decimal("0")],
            expected_from_contributions=Decimal("800"),
            actual_expenses=[],
        )
        assert result.amount == Decimal("800")
        assert result.source == TotalSource.CONTRIBUTIONS

    def test_entries_ignored_without_contract_period(self, service):
        result = service.resolve_monthly_total(
            expected_entries=[Decimal("1000")],
            expected_from_contributions=Decimal("800"),
            actual_expenses=[],
            has_contract_period=False,
        )
        assert result.source == TotalSource.CONTRIBUTIONS

    def test_actual_expenses_last(self, service):
        result = service.resolve_monthly_total(
            expected_entries=None,
            expected_from_contributions=Decimal("0"),
            actual_expenses=[Decimal("120.50"), Decimal("79.50")],
        )
        assert result.amount == Decimal("200.00")
        assert result.source == TotalSource.ACTUAL_EXPENSES

    def test_actual_expenses_as_precomputed_sum(self, service):
        result = service.resolve_monthly_total(None, Decimal("0"), Decimal("42"))
        assert result == (Decimal("42"), TotalSource.ACTUAL_EXPENSES)

    def test_everything_empty_is_zero(self, service):
        result = service.resolve_monthly_total(None, Decimal("0"), [])
        assert result.amount == Decimal("0")


class TestBalances:
    """Balance = paid - expected."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_overpaid_member_is_owed(self, service):
        assert service.calculate_balance(Decimal("300"), Decimal("250")) == Decimal("50")

    def test_underpaid_member_owes(self, service):
        assert service.calculate_balance(Decimal("100"), Decimal("250")) == Decimal("-150")

    def test_member_balances(self, service):
        a = share(1, "60")
        b = fixed(2, "200")
        results = service.member_balances(
            [a, b], Decimal("1000"), RENT, {1: Decimal("700"), 3: Decimal("10")}
        )

        assert [r.member for r in results] == [a, b]
        assert results[0].expected == Decimal("600")
        assert results[0].balance == Decimal("100")
        assert results[1].paid == Decimal("0")
        assert results[1].balance == Decimal("-200")

    def test_member_balances_with_separate_pool(self, service):
        a = fixed(1, "300")
        b = fixed(2, "100")
        [result] = service.member_balances([a], Decimal("0"), RENT, {}, pool=[a, b])
        assert result.expected == Decimal("300")


class TestSnapshotParsing:
    """Defaults are filled once when records become snapshots."""

    def test_missing_type_reads_as_share(self):
        assert contribution_from_record({"share_percentage": 40}) == ShareContribution(Decimal("40"))

    def test_missing_percentage_reads_as_zero(self):
        assert contribution_from_record({}) == ShareContribution(Decimal("0"))

    def test_fixed_without_period_is_monthly(self):
        config = contribution_from_record({"contribution_type": "fixed", "fixed_amount": "250"})
        assert config == FixedContribution(Decimal("250"), ContributionPeriod.MONTHLY)

    def test_fixed_yearly_from_enum(self):
        config = contribution_from_record(
            {
                "contribution_type": ContributionType.FIXED,
                "fixed_amount": Decimal("1200"),
                "contribution_period": ContributionPeriod.YEARLY,
            }
        )
        assert config.period == ContributionPeriod.YEARLY

    def test_fixed_without_amount_is_zero(self):
        config = contribution_from_record({"contribution_type": "fixed"})
        assert config.amount == Decimal("0")

    def test_member_snapshot_from_mapping(self):
        snapshot = member_snapshot_from_record(
            {
                "id": 7,
                "user_id": 3,
                "role": "master_tenant",
                "profile": {"name": "Dana"},
                "contribution_type": "share",
                "share_percentage": 55,
                "contribution_end_date": date(2025, 6, 30),
            }
        )
        assert snapshot.member_id == 7
        assert snapshot.user_id == 3
        assert snapshot.name == "Dana"
        assert snapshot.is_master_tenant
        assert snapshot.contribution_type == ContributionType.SHARE
        assert snapshot.is_active_in(date(2025, 6, 1))
        assert not snapshot.is_active_in(date(2025, 7, 1))

    def test_unknown_role_reads_as_co_tenant(self):
        snapshot = member_snapshot_from_record({"user_id": 1, "role": None})
        assert snapshot.role == MemberRole.CO_TENANT


class TestNegativeInputs:
    """Negative amounts flow through the arithmetic without raising."""

    @pytest.fixture
    def service(self):
        """Create allocation service instance."""
        return AllocationService()

    def test_negative_total_gives_negative_share_expected(self, service):
        a = share(1, "60")
        members = [a, fixed(2, "200")]
        single = service.expected_amount(a, members, Decimal("-500"), RENT)
        double = service.expected_amount(a, members, Decimal("-1000"), RENT)
        assert single == Decimal("-300")
        assert double == 2 * single

    def test_negative_fixed_amount_empties_pool(self, service):
        """Fixed -300 and fixed 100 pool to -200: no fraction for anyone."""
        a = fixed(1, "-300")
        b = fixed(2, "100")
        members = [a, b]
        assert service.share_fraction(a, members, RENT) == Decimal("0")
        assert service.share_fraction(b, members, RENT) == Decimal("0")

    def test_negative_fixed_amount_is_its_own_expected(self, service):
        a = fixed(1, "-300")
        assert service.expected_amount(a, [a], Decimal("1000"), RENT) == Decimal("-300")

    def test_negative_entries_and_contributions_fall_through(self, service):
        result = service.resolve_monthly_total(
            expected_entries=[Decimal("-100"), Decimal("50")],
            expected_from_contributions=Decimal("-20"),
            actual_expenses=[Decimal("-30"), Decimal("10")],
        )
        assert result.amount == Decimal("-20")
        assert result.source == TotalSource.ACTUAL_EXPENSES

    def test_negative_balance_inputs(self, service):
        assert service.calculate_balance(Decimal("-50"), Decimal("-80")) == Decimal("30")

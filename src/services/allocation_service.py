"""Allocation engine for member contribution shares and balances.

Pure functions over immutable snapshots; no I/O, no hidden state.

Contribution types:
- SHARE: a self-declared percentage of the unit's reference rent. The
  fraction is used as-is and never renormalized against the group.
- FIXED: a fixed monthly or yearly amount. Its fraction of a pooled total is
  its normalized monthly amount over the sum of everyone's normalized
  amounts (share members included).

Missing numeric fields are read as zero at the snapshot boundary, so the
engine itself never raises. Negative values are not guarded against; they
propagate arithmetically.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, NamedTuple, Sequence, Union

from src.models.unit_member import ContributionPeriod, ContributionType, MemberRole

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")


def to_decimal(value: Any) -> Decimal:
    """Convert a stored numeric value to Decimal, reading None as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class ShareContribution:
    """Percentage (0-100) of the reference monthly rent."""

    percentage: Decimal = ZERO

    @property
    def contribution_type(self) -> ContributionType:
        return ContributionType.SHARE


@dataclass(frozen=True)
class FixedContribution:
    """Fixed amount per month or per year."""

    amount: Decimal = ZERO
    period: ContributionPeriod = ContributionPeriod.MONTHLY

    @property
    def contribution_type(self) -> ContributionType:
        return ContributionType.FIXED


ContributionConfig = Union[ShareContribution, FixedContribution]


@dataclass(frozen=True)
class MemberSnapshot:
    """Read-only view of a unit member as seen by the engine."""

    user_id: int
    contribution: ContributionConfig
    member_id: int | None = None
    role: MemberRole = MemberRole.CO_TENANT
    name: str | None = None
    contribution_end_date: date | None = None

    @property
    def contribution_type(self) -> ContributionType:
        return self.contribution.contribution_type

    @property
    def is_master_tenant(self) -> bool:
        return self.role == MemberRole.MASTER_TENANT

    def is_active_in(self, month_start: date) -> bool:
        """Whether the contribution is still running in the month starting at month_start."""
        return self.contribution_end_date is None or self.contribution_end_date >= month_start


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _enum_value(value: Any) -> str | None:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def contribution_from_record(record: Any) -> ContributionConfig:
    """Build the tagged contribution config from a member record.

    Works with ORM rows and plain mappings. Defaults: missing type is
    share, missing percentage/amount is 0, missing period is monthly.
    """
    contribution_type = _enum_value(_field(record, "contribution_type")) or ContributionType.SHARE.value
    if contribution_type == ContributionType.FIXED.value:
        period = _enum_value(_field(record, "contribution_period"))
        return FixedContribution(
            amount=to_decimal(_field(record, "fixed_amount")),
            period=(
                ContributionPeriod.YEARLY
                if period == ContributionPeriod.YEARLY.value
                else ContributionPeriod.MONTHLY
            ),
        )
    return ShareContribution(percentage=to_decimal(_field(record, "share_percentage")))


def member_snapshot_from_record(record: Any) -> MemberSnapshot:
    """Parse a unit member record (ORM row or mapping) into a MemberSnapshot."""
    role = _enum_value(_field(record, "role"))
    profile = _field(record, "profile")
    name = _field(record, "name")
    if name is None and profile is not None:
        name = _field(profile, "name")

    return MemberSnapshot(
        user_id=_field(record, "user_id"),
        member_id=_field(record, "id"),
        contribution=contribution_from_record(record),
        role=MemberRole.MASTER_TENANT if role == MemberRole.MASTER_TENANT.value else MemberRole.CO_TENANT,
        name=name,
        contribution_end_date=_field(record, "contribution_end_date"),
    )


class TotalSource(str, Enum):
    """Which input the monthly total was resolved from."""

    EXPECTED_ENTRIES = "expected_entries"
    CONTRIBUTIONS = "contributions"
    ACTUAL_EXPENSES = "actual_expenses"


class MonthlyTotal(NamedTuple):
    """Resolved monthly total and where it came from."""

    amount: Decimal
    source: TotalSource


class MemberBalance(NamedTuple):
    """Expected vs paid for one member over one period."""

    member: MemberSnapshot
    expected: Decimal
    paid: Decimal
    balance: Decimal  # positive = owed to the member, negative = member owes


class AllocationService:
    """Contribution share engine."""

    def monthly_implied_amount(self, member: MemberSnapshot, reference_rent: Decimal) -> Decimal:
        """Normalize a member's contribution to a monthly amount.

        Args:
            member: Member snapshot
            reference_rent: Unit's reference monthly rent

        Returns:
            share: percentage / 100 * rent; fixed: amount (monthly) or amount / 12 (yearly)
        """
        contribution = member.contribution
        if isinstance(contribution, FixedContribution):
            if contribution.period == ContributionPeriod.YEARLY:
                return contribution.amount / MONTHS_PER_YEAR
            return contribution.amount
        return (contribution.percentage / HUNDRED) * to_decimal(reference_rent)

    def share_fraction(
        self,
        member: MemberSnapshot,
        all_members: Sequence[MemberSnapshot],
        reference_rent: Decimal,
    ) -> Decimal:
        """Fraction of a pooled amount attributable to the member.

        Share members return their own percentage / 100. Fixed members return
        their implied monthly amount over the sum of all members' implied
        amounts, or 0 when that sum is not positive.
        """
        contribution = member.contribution
        if isinstance(contribution, ShareContribution):
            return contribution.percentage / HUNDRED

        total = sum(
            (self.monthly_implied_amount(m, reference_rent) for m in all_members),
            ZERO,
        )
        if total <= 0:
            return ZERO
        return self.monthly_implied_amount(member, reference_rent) / total

    def expected_amount(
        self,
        member: MemberSnapshot,
        all_members: Sequence[MemberSnapshot],
        monthly_total: Decimal,
        reference_rent: Decimal,
    ) -> Decimal:
        """Amount the member is expected to contribute for a period.

        Fixed members: their implied monthly amount, whatever the total.
        Share members: share_fraction * monthly_total.
        """
        if isinstance(member.contribution, FixedContribution):
            return self.monthly_implied_amount(member, reference_rent)
        return self.share_fraction(member, all_members, reference_rent) * to_decimal(monthly_total)

    def expected_from_contributions(
        self,
        all_members: Sequence[MemberSnapshot],
        reference_rent: Decimal,
    ) -> Decimal:
        """Sum of every member's expected amount with the rent as the monthly total."""
        rent = to_decimal(reference_rent)
        return sum(
            (self.expected_amount(m, all_members, rent, rent) for m in all_members),
            ZERO,
        )

    def resolve_monthly_total(
        self,
        expected_entries: Iterable[Decimal] | None,
        expected_from_contributions: Decimal,
        actual_expenses: Iterable[Decimal] | Decimal,
        has_contract_period: bool = True,
    ) -> MonthlyTotal:
        """Choose the monthly total share members are measured against.

        Priority:
        1. Sum of the month's expected expense entries, when the unit has a
           contract period, entries exist and their sum is positive
        2. Sum of expected amounts from contributions, when positive
        3. Sum of actual expenses for the month

        Args:
            expected_entries: Amounts of the month's expected entries (None if none)
            expected_from_contributions: See expected_from_contributions()
            actual_expenses: Amounts (or their precomputed sum) of the month's expenses
            has_contract_period: Whether the unit defines contract start and end dates

        Returns:
            MonthlyTotal with the amount and its source
        """
        entries = [to_decimal(a) for a in expected_entries] if expected_entries is not None else []
        if has_contract_period and entries:
            entries_total = sum(entries, ZERO)
            if entries_total > 0:
                return MonthlyTotal(entries_total, TotalSource.EXPECTED_ENTRIES)

        from_contributions = to_decimal(expected_from_contributions)
        if from_contributions > 0:
            return MonthlyTotal(from_contributions, TotalSource.CONTRIBUTIONS)

        if isinstance(actual_expenses, (Decimal, int, float)):
            actual_total = to_decimal(actual_expenses)
        else:
            actual_total = sum((to_decimal(a) for a in actual_expenses), ZERO)
        return MonthlyTotal(actual_total, TotalSource.ACTUAL_EXPENSES)

    def calculate_balance(self, paid: Decimal, expected: Decimal) -> Decimal:
        """Balance = paid - expected (positive: owed to member, negative: member owes)."""
        return to_decimal(paid) - to_decimal(expected)

    def member_balances(
        self,
        members: Sequence[MemberSnapshot],
        monthly_total: Decimal,
        reference_rent: Decimal,
        paid_by_user: Mapping[int, Decimal],
        pool: Sequence[MemberSnapshot] | None = None,
    ) -> list[MemberBalance]:
        """Compute expected, paid and balance for each member.

        Args:
            members: Members to report on
            monthly_total: Resolved monthly total
            reference_rent: Unit's reference monthly rent
            paid_by_user: user_id -> amount paid in the period
            pool: Members forming the pooled denominator (defaults to members)

        Returns:
            MemberBalance per member, in input order
        """
        pool = members if pool is None else pool
        results = []
        for member in members:
            expected = self.expected_amount(member, pool, monthly_total, reference_rent)
            paid = to_decimal(paid_by_user.get(member.user_id))
            results.append(
                MemberBalance(
                    member=member,
                    expected=expected,
                    paid=paid,
                    balance=self.calculate_balance(paid, expected),
                )
            )
        return results


__all__ = [
    "AllocationService",
    "ContributionConfig",
    "FixedContribution",
    "MemberBalance",
    "MemberSnapshot",
    "MonthlyTotal",
    "ShareContribution",
    "TotalSource",
    "contribution_from_record",
    "member_snapshot_from_record",
    "to_decimal",
]

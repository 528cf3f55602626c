"""Payment service for recording balance payments and ad hoc contributions.

Provides methods for:
- Recording balance payments (a member settling their share for a month)
- Requesting ad hoc contributions from all members of a unit
- Recording member payments against a contribution
- Setting a contribution's status (manual; never derived from payments)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session, selectinload

from src.models import (
    BalancePayment,
    Contribution,
    ContributionPayment,
    ContributionStatus,
    MemberRole,
    PaymentMode,
    UnitMember,
)
from src.services import commit_or_rollback
from src.services.errors import NotFoundError, ValidationError
from src.services.parsers import parse_amount, parse_enum, parse_optional_enum, require_positive
from src.services.period_service import month_start

logger = logging.getLogger(__name__)


@dataclass
class ContributionProgress:
    """Informational collection progress of a contribution."""

    collected_amount: Decimal
    paid_member_count: int
    member_count: int

    @property
    def all_paid(self) -> bool:
        return self.member_count > 0 and self.paid_member_count >= self.member_count


class PaymentService:
    """Balance payment and contribution operations."""

    def __init__(self, db: Session):
        """Initialize payment service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _membership(self, unit_id: int, user_id: int) -> Optional[UnitMember]:
        return (
            self.db.query(UnitMember)
            .filter(UnitMember.unit_id == unit_id, UnitMember.user_id == user_id)
            .first()
        )

    # ------------------------------------------------------------------
    # Balance payments
    # ------------------------------------------------------------------

    def record_balance_payment(
        self,
        unit_id: int,
        from_user_id: int,
        amount: Any,
        for_month: date,
        to_user_id: Optional[int] = None,
        payment_mode: Any = None,
        notes: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> BalancePayment:
        """Record a member paying their share for a month.

        Args:
            unit_id: Unit ID
            from_user_id: Paying member
            amount: Amount paid (must be > 0)
            for_month: Any date in the month being settled
            to_user_id: Receiving master tenant, or None for a direct payment
            payment_mode: Optional PaymentMode or its value
            notes: Optional free text
            paid_at: When the payment was made (default: now)

        Returns:
            Created BalancePayment object

        Raises:
            ValidationError: If amount is not positive, payer is not a member,
                or the recipient is not a master tenant of the unit
        """
        amount_value = require_positive(parse_amount(amount, "amount"), "amount")
        mode = parse_optional_enum(PaymentMode, payment_mode, "payment_mode")

        payer = self._membership(unit_id, from_user_id)
        if not payer:
            logger.error(f"Balance payment from non-member {from_user_id} in unit {unit_id}")
            raise ValidationError("Payer must be a member of the unit")

        # Master tenants pay external parties directly
        if payer.role == MemberRole.MASTER_TENANT:
            to_user_id = None
        if to_user_id is not None:
            recipient = self._membership(unit_id, to_user_id)
            if not recipient or recipient.role != MemberRole.MASTER_TENANT:
                raise ValidationError("Recipient must be a master tenant of the unit")
            if to_user_id == from_user_id:
                raise ValidationError("Cannot pay yourself")

        payment = BalancePayment(
            unit_id=unit_id,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount_value,
            for_month=month_start(for_month),
            payment_mode=mode,
            notes=notes.strip() if notes and notes.strip() else None,
        )
        if paid_at is not None:
            payment.paid_at = paid_at
        self.db.add(payment)
        commit_or_rollback(self.db, "record balance payment")
        self.db.refresh(payment)
        logger.info(
            f"Recorded balance payment {payment.id}: unit={unit_id} from={from_user_id} "
            f"to={to_user_id or 'direct'} amount={amount_value} month={payment.for_month}"
        )
        return payment

    def list_balance_payments(self, unit_id: int, month: Optional[date] = None) -> list[BalancePayment]:
        """Balance payments of a unit, newest month first.

        Args:
            unit_id: Unit ID
            month: Optional month filter (any date within it)
        """
        query = (
            self.db.query(BalancePayment)
            .options(selectinload(BalancePayment.from_user), selectinload(BalancePayment.to_user))
            .filter(BalancePayment.unit_id == unit_id)
        )
        if month is not None:
            query = query.filter(BalancePayment.for_month == month_start(month))
        return query.order_by(BalancePayment.for_month.desc(), BalancePayment.id.desc()).all()

    def get_balance_payment(self, unit_id: int, payment_id: int) -> BalancePayment:
        """Get a balance payment of a unit.

        Raises:
            NotFoundError: If the payment does not exist in this unit
        """
        payment = (
            self.db.query(BalancePayment)
            .filter(BalancePayment.id == payment_id, BalancePayment.unit_id == unit_id)
            .first()
        )
        if not payment:
            raise NotFoundError("Balance payment", payment_id)
        return payment

    def delete_balance_payment(self, unit_id: int, payment_id: int) -> None:
        """Delete a balance payment.

        Raises:
            NotFoundError: If the payment does not exist in this unit
        """
        payment = self.get_balance_payment(unit_id, payment_id)
        self.db.delete(payment)
        commit_or_rollback(self.db, "delete balance payment")
        logger.info(f"Deleted balance payment {payment_id} from unit {unit_id}")

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def request_contribution(
        self, unit_id: int, requested_by: int, amount: Any, reason: str
    ) -> Contribution:
        """Request an ad hoc amount from every member of the unit.

        Raises:
            ValidationError: If amount is not positive, reason empty or requester not a member
        """
        amount_value = require_positive(parse_amount(amount, "amount"), "amount")
        if not reason or not reason.strip():
            raise ValidationError("reason is required")
        if not self._membership(unit_id, requested_by):
            raise ValidationError("Requester must be a member of the unit")

        contribution = Contribution(
            unit_id=unit_id,
            requested_by=requested_by,
            amount=amount_value,
            reason=reason.strip(),
            status=ContributionStatus.PENDING,
        )
        self.db.add(contribution)
        commit_or_rollback(self.db, "request contribution")
        self.db.refresh(contribution)
        logger.info(
            f"Requested contribution {contribution.id}: unit={unit_id} amount={amount_value} "
            f"reason={contribution.reason!r}"
        )
        return contribution

    def get_contribution(self, unit_id: int, contribution_id: int) -> Contribution:
        """Get a contribution of a unit.

        Raises:
            NotFoundError: If it does not exist in this unit
        """
        contribution = (
            self.db.query(Contribution)
            .filter(Contribution.id == contribution_id, Contribution.unit_id == unit_id)
            .first()
        )
        if not contribution:
            raise NotFoundError("Contribution", contribution_id)
        return contribution

    def list_contributions(self, unit_id: int) -> list[Contribution]:
        """Contributions of a unit, newest first, with payments loaded."""
        return (
            self.db.query(Contribution)
            .options(
                selectinload(Contribution.payments).selectinload(ContributionPayment.profile),
                selectinload(Contribution.requester),
            )
            .filter(Contribution.unit_id == unit_id)
            .order_by(Contribution.created_at.desc(), Contribution.id.desc())
            .all()
        )

    def record_contribution_payment(
        self,
        unit_id: int,
        contribution_id: int,
        user_id: int,
        amount: Any = None,
        receipt_url: Optional[str] = None,
    ) -> ContributionPayment:
        """Record a member's payment against a contribution.

        Does not change the contribution's status.

        Args:
            amount: Amount paid (default: the requested amount)

        Raises:
            NotFoundError: If the contribution does not exist
            ValidationError: If the payer is not a member or amount not positive
        """
        contribution = self.get_contribution(unit_id, contribution_id)
        if not self._membership(unit_id, user_id):
            raise ValidationError("Payer must be a member of the unit")
        amount_value = (
            contribution.amount
            if amount is None
            else require_positive(parse_amount(amount, "amount"), "amount")
        )

        payment = ContributionPayment(
            contribution_id=contribution.id,
            user_id=user_id,
            amount=amount_value,
            receipt_url=receipt_url,
        )
        self.db.add(payment)
        commit_or_rollback(self.db, "record contribution payment")
        self.db.refresh(payment)
        logger.info(
            f"Recorded contribution payment {payment.id}: contribution={contribution_id} "
            f"user={user_id} amount={amount_value}"
        )
        return payment

    def set_contribution_status(self, unit_id: int, contribution_id: int, status: Any) -> Contribution:
        """Set a contribution's status by hand.

        Raises:
            NotFoundError: If the contribution does not exist
            ValidationError: If status is unknown
        """
        contribution = self.get_contribution(unit_id, contribution_id)
        contribution.status = parse_enum(ContributionStatus, status, "status")
        commit_or_rollback(self.db, "update contribution status")
        self.db.refresh(contribution)
        logger.info(f"Contribution {contribution_id} status set to {contribution.status.value}")
        return contribution

    def contribution_progress(self, contribution: Contribution) -> ContributionProgress:
        """Collected amount and paying members, for display only."""
        member_count = (
            self.db.query(UnitMember).filter(UnitMember.unit_id == contribution.unit_id).count()
        )
        collected = sum((Decimal(str(p.amount)) for p in contribution.payments), Decimal("0"))
        paid_members = {p.user_id for p in contribution.payments}
        return ContributionProgress(
            collected_amount=collected,
            paid_member_count=len(paid_members),
            member_count=member_count,
        )


__all__ = ["PaymentService", "ContributionProgress"]

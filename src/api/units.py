"""Unit ledger API endpoints.

Every unit-scoped endpoint first checks that the caller (X-User-Id) is a
member of the unit; expected-expense management, unit edits and member
edits additionally require a master tenant.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from src.api.dependencies import get_app_config, get_current_user_id
from src.api.schemas import (
    BalancePaymentCreateRequest,
    BalancePaymentResponse,
    BalancePaymentsResponse,
    BalanceSheetResponse,
    BreakdownResponse,
    ContributionCreateRequest,
    ContributionPaymentRequest,
    ContributionPaymentResponse,
    ContributionResponse,
    ContributionsResponse,
    ContributionStatusRequest,
    DeletedResponse,
    ExpectedExpensesResponse,
    ExpectedMonthResponse,
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpensesResponse,
    GenerateResponse,
    MemberBalanceResponse,
    MemberCreateRequest,
    MemberResponse,
    MemberUpdateRequest,
    MembersResponse,
    MonthBreakdownResponse,
    MonthEntriesRequest,
    Receipt,
    SpendsResponse,
    TemplateRequest,
    TemplateResponse,
    UnitCreateRequest,
    UnitResponse,
    UnitSpendResponse,
    UnitsResponse,
    UnitUpdateRequest,
)
from src.models import BalancePayment, Contribution, Expense, MemberRole, Unit, UnitMember
from src.services import get_db
from src.services.allocation_service import member_snapshot_from_record
from src.services.balance_service import BalanceService
from src.services.config import AppConfig
from src.services.errors import PermissionDeniedError, ValidationError
from src.services.expected_expense_service import ExpectedExpenseService
from src.services.expense_service import ExpenseService
from src.services.locale_service import (
    format_contribution,
    format_due_date,
    get_currency_for_country,
    next_due_date,
)
from src.services.parsers import validate_attachment
from src.services.payment_service import PaymentService
from src.services.period_service import month_key, parse_month
from src.services.report_service import (
    build_unit_report,
    export_contributions_csv,
    export_expenses_csv,
    render_unit_report_csv,
    render_unit_report_pdf,
    report_filename,
    safe_name,
)
from src.services.spends_service import SpendsService
from src.services.unit_service import UnitService

logger = logging.getLogger(__name__)

REPORT_MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "pdf": "application/pdf",
}


def _log_debug(endpoint: str, start_time: float, user_id: int, **kwargs: Any) -> None:
    """Log API request with timing and caller at DEBUG level.

    Args:
        endpoint: Endpoint name (e.g., 'balances', 'expenses.create')
        start_time: Request start time from time.time()
        user_id: Caller's user ID
        **kwargs: Additional fields to log (unit_id, month, count, etc.)
    """
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(
        "units.%s: user_id=%d %sduration_ms=%d",
        endpoint,
        user_id,
        f"{extra} " if extra else "",
        duration_ms,
    )


router = APIRouter(prefix="/api", tags=["units"])


# ----------------------------------------------------------------------
# Response builders
# ----------------------------------------------------------------------


def _unit_response(unit: Unit) -> UnitResponse:
    due_day = unit.payment_due_day
    return UnitResponse(
        id=unit.id,
        name=unit.name,
        address=unit.address,
        country=unit.country,
        zipcode=unit.zipcode,
        currency=get_currency_for_country(unit.country),
        monthly_rent=float(unit.monthly_rent or 0),
        contract_start_date=unit.contract_start_date,
        contract_end_date=unit.contract_end_date,
        payment_due_day=due_day,
        due_date_label=format_due_date(due_day) if due_day else None,
        next_due_date=next_due_date(due_day, date.today()) if due_day else None,
    )


def _member_response(member: UnitMember, currency: str) -> MemberResponse:
    snapshot = member_snapshot_from_record(member)
    return MemberResponse(
        id=member.id,
        user_id=member.user_id,
        name=snapshot.name,
        role=member.role.value,
        contribution_type=snapshot.contribution_type.value,
        share_percentage=float(member.share_percentage) if member.share_percentage is not None else None,
        fixed_amount=float(member.fixed_amount) if member.fixed_amount is not None else None,
        contribution_period=member.contribution_period.value if member.contribution_period else None,
        contribution_end_date=member.contribution_end_date,
        contribution_label=format_contribution(snapshot, currency),
    )


def _expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        category=expense.category.value,
        amount=float(expense.amount),
        date=expense.date,
        paid_by=expense.paid_by,
        payer_name=expense.payer.name if expense.payer else None,
        payment_mode=expense.payment_mode.value if expense.payment_mode else None,
        notes=expense.notes,
        receipt_url=expense.receipt_url,
    )


def _balance_payment_response(payment: BalancePayment) -> BalancePaymentResponse:
    return BalancePaymentResponse(
        id=payment.id,
        from_user_id=payment.from_user_id,
        from_name=payment.from_user.name if payment.from_user else None,
        to_user_id=payment.to_user_id,
        to_name=payment.to_user.name if payment.to_user else None,
        is_direct=payment.is_direct,
        amount=float(payment.amount),
        for_month=month_key(payment.for_month),
        payment_mode=payment.payment_mode.value if payment.payment_mode else None,
        notes=payment.notes,
        paid_at=payment.paid_at,
    )


def _contribution_response(service: PaymentService, contribution: Contribution) -> ContributionResponse:
    progress = service.contribution_progress(contribution)
    return ContributionResponse(
        id=contribution.id,
        amount=float(contribution.amount),
        reason=contribution.reason,
        status=contribution.status.value,
        requested_by=contribution.requested_by,
        requester_name=contribution.requester.name if contribution.requester else None,
        created_at=contribution.created_at,
        collected_amount=float(progress.collected_amount),
        paid_member_count=progress.paid_member_count,
        member_count=progress.member_count,
        payments=[
            ContributionPaymentResponse(
                id=p.id,
                user_id=p.user_id,
                name=p.profile.name if p.profile else None,
                amount=float(p.amount),
                paid_at=p.paid_at,
                receipt_url=p.receipt_url,
            )
            for p in contribution.payments
        ],
    )


def _amounts(values: dict[Any, Decimal]) -> dict[str, float]:
    return {getattr(k, "value", k): float(v) for k, v in values.items()}


def _receipt_url(receipt: Receipt | None) -> str | None:
    if receipt is None:
        return None
    validate_attachment(receipt.content_type, receipt.size_bytes)
    return receipt.url


def _require_master_or_self(
    units: UnitService, unit_id: int, user_id: int, owner_id: int
) -> None:
    member = units.require_member(unit_id, user_id)
    if member.role != MemberRole.MASTER_TENANT and user_id != owner_id:
        raise PermissionDeniedError("Only the payer or a master tenant can do this")


# ----------------------------------------------------------------------
# Units
# ----------------------------------------------------------------------


@router.get("/units", response_model=UnitsResponse)
def list_units(
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> UnitsResponse:
    """Units the caller belongs to."""
    start_time = time.time()
    units = UnitService(db).list_user_units(user_id)
    _log_debug("list", start_time, user_id, count=len(units))
    return UnitsResponse(units=[_unit_response(u) for u in units])


@router.post("/units", response_model=UnitResponse, status_code=201)
def create_unit(
    request: UnitCreateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> UnitResponse:
    """Create a unit; the caller becomes its master tenant with a 100% share."""
    service = UnitService(db)
    service.get_or_create_profile(user_id, request.creator_name)
    unit = service.create_unit(
        creator_id=user_id,
        name=request.name,
        monthly_rent=request.monthly_rent,
        country=request.country,
        address=request.address,
        zipcode=request.zipcode,
        contract_start_date=request.contract_start_date,
        contract_end_date=request.contract_end_date,
        payment_due_day=request.payment_due_day,
    )
    return _unit_response(unit)


@router.get("/units/{unit_id}", response_model=UnitResponse)
def get_unit(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> UnitResponse:
    service = UnitService(db)
    service.require_member(unit_id, user_id)
    return _unit_response(service.get_unit(unit_id))


@router.patch("/units/{unit_id}", response_model=UnitResponse)
def update_unit(
    unit_id: int,
    request: UnitUpdateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> UnitResponse:
    """Update the fields present in the body."""
    service = UnitService(db)
    service.require_master_tenant(unit_id, user_id)
    unit = service.update_unit(unit_id, **request.model_dump(exclude_unset=True))
    return _unit_response(unit)


# ----------------------------------------------------------------------
# Members
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/members", response_model=MembersResponse)
def list_members(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> MembersResponse:
    service = UnitService(db)
    service.require_member(unit_id, user_id)
    currency = get_currency_for_country(service.get_unit(unit_id).country)
    return MembersResponse(members=[_member_response(m, currency) for m in service.get_members(unit_id)])


@router.post("/units/{unit_id}/members", response_model=MemberResponse, status_code=201)
def add_member(
    unit_id: int,
    request: MemberCreateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> MemberResponse:
    service = UnitService(db)
    service.require_master_tenant(unit_id, user_id)
    member = service.add_member(unit_id, **request.model_dump())
    currency = get_currency_for_country(service.get_unit(unit_id).country)
    return _member_response(member, currency)


@router.patch("/units/{unit_id}/members/{member_id}", response_model=MemberResponse)
def update_member(
    unit_id: int,
    member_id: int,
    request: MemberUpdateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> MemberResponse:
    """Change a member's role or rewrite their contribution."""
    service = UnitService(db)
    service.require_master_tenant(unit_id, user_id)
    member = service.update_member(unit_id, member_id, **request.model_dump())
    currency = get_currency_for_country(service.get_unit(unit_id).country)
    return _member_response(member, currency)


@router.delete("/units/{unit_id}/members/{member_id}", status_code=204)
def remove_member(
    unit_id: int,
    member_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> Response:
    service = UnitService(db)
    service.require_master_tenant(unit_id, user_id)
    service.remove_member(unit_id, member_id)
    return Response(status_code=204)


# ----------------------------------------------------------------------
# Expenses
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/expenses", response_model=ExpensesResponse)
def list_expenses(
    unit_id: int,
    month: str | None = Query(default=None, description="YYYY-MM"),  # noqa: B008
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ExpensesResponse:
    start_time = time.time()
    UnitService(db).require_member(unit_id, user_id)
    expenses = ExpenseService(db).list_expenses(unit_id, parse_month(month) if month else None)
    _log_debug("expenses", start_time, user_id, unit_id=unit_id, month=month, count=len(expenses))
    return ExpensesResponse(
        expenses=[_expense_response(e) for e in expenses],
        total=float(sum((e.amount for e in expenses), Decimal("0"))),
    )


@router.post("/units/{unit_id}/expenses", response_model=ExpenseResponse, status_code=201)
def record_expense(
    unit_id: int,
    request: ExpenseCreateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ExpenseResponse:
    """Record an expense; the payer defaults to the caller."""
    UnitService(db).require_member(unit_id, user_id)
    expense = ExpenseService(db).record_expense(
        unit_id=unit_id,
        paid_by=request.paid_by if request.paid_by is not None else user_id,
        category=request.category,
        amount=request.amount,
        expense_date=request.date,
        payment_mode=request.payment_mode,
        notes=request.notes,
        receipt_url=_receipt_url(request.receipt),
    )
    return _expense_response(expense)


@router.delete("/units/{unit_id}/expenses/{expense_id}", status_code=204)
def delete_expense(
    unit_id: int,
    expense_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> Response:
    """Delete an expense (its payer or a master tenant)."""
    service = ExpenseService(db)
    expense = service.get_expense(unit_id, expense_id)
    _require_master_or_self(UnitService(db), unit_id, user_id, expense.paid_by)
    service.delete_expense(unit_id, expense_id)
    return Response(status_code=204)


# ----------------------------------------------------------------------
# Balances
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/balances", response_model=BalanceSheetResponse)
def get_balances(
    unit_id: int,
    month: str | None = Query(default=None, description="YYYY-MM (default: current month)"),  # noqa: B008
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
    config: AppConfig = Depends(get_app_config),  # noqa: B008
) -> BalanceSheetResponse:
    """Expected vs paid per member for one month."""
    start_time = time.time()
    UnitService(db).require_member(unit_id, user_id)
    target = parse_month(month) if month else date.today()
    sheet = BalanceService(
        db, honor_contribution_end_date=config.honor_contribution_end_date
    ).get_unit_balance_sheet(unit_id, target)
    _log_debug(
        "balances",
        start_time,
        user_id,
        unit_id=unit_id,
        month=month_key(sheet.month),
        source=sheet.total_source.value,
    )
    return BalanceSheetResponse(
        unit_id=sheet.unit_id,
        month=month_key(sheet.month),
        currency=sheet.currency,
        reference_rent=float(sheet.reference_rent),
        monthly_total=float(sheet.monthly_total),
        total_source=sheet.total_source.value,
        actual_total=float(sheet.actual_total),
        category_totals=_amounts(sheet.category_totals),
        total_expected=float(sheet.total_expected),
        total_paid=float(sheet.total_paid),
        amount_received=float(sheet.amount_received),
        members=[
            MemberBalanceResponse(
                member_id=row.member.member_id,
                user_id=row.member.user_id,
                name=row.member.name,
                role=row.member.role.value,
                share_fraction=float(row.share_fraction),
                expected=float(row.expected),
                paid_from_expenses=float(row.paid_from_expenses),
                paid_from_balance_payments=float(row.paid_from_balance_payments),
                paid=float(row.paid),
                balance=float(row.balance),
                is_active=row.is_active,
            )
            for row in sheet.rows
        ],
    )


@router.get("/units/{unit_id}/breakdown", response_model=BreakdownResponse)
def get_breakdown(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> BreakdownResponse:
    """Per-month expected vs actual by category."""
    UnitService(db).require_member(unit_id, user_id)
    months = BalanceService(db).get_monthly_breakdown(unit_id, date.today())
    return BreakdownResponse(
        months=[
            MonthBreakdownResponse(
                month=month_key(m.month),
                expected=_amounts(m.expected),
                actual=_amounts(m.actual),
                expected_total=float(m.expected_total),
                actual_total=float(m.actual_total),
            )
            for m in months
        ]
    )


# ----------------------------------------------------------------------
# Expected expenses
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/expected-expenses/template", response_model=TemplateResponse)
def get_template(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> TemplateResponse:
    UnitService(db).require_member(unit_id, user_id)
    return TemplateResponse(amounts=_amounts(ExpectedExpenseService(db).get_template(unit_id)))


@router.put("/units/{unit_id}/expected-expenses/template", response_model=TemplateResponse)
def save_template(
    unit_id: int,
    request: TemplateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> TemplateResponse:
    UnitService(db).require_master_tenant(unit_id, user_id)
    template = ExpectedExpenseService(db).save_template(unit_id, request.amounts)
    return TemplateResponse(amounts=_amounts(template))


@router.post("/units/{unit_id}/expected-expenses/generate", response_model=GenerateResponse)
def generate_expected_expenses(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> GenerateResponse:
    """Materialize entries over the contract period (safe to re-run)."""
    UnitService(db).require_master_tenant(unit_id, user_id)
    return GenerateResponse(generated=ExpectedExpenseService(db).generate_entries(unit_id))


@router.get("/units/{unit_id}/expected-expenses", response_model=ExpectedExpensesResponse)
def list_expected_expenses(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ExpectedExpensesResponse:
    UnitService(db).require_member(unit_id, user_id)
    grouped = ExpectedExpenseService(db).list_entries(unit_id)
    return ExpectedExpensesResponse(
        months=[
            ExpectedMonthResponse(
                month=month_key(month),
                amounts={e.category.value: float(e.amount) for e in entries},
                total=float(sum((e.amount for e in entries), Decimal("0"))),
            )
            for month, entries in grouped.items()
        ]
    )


@router.put("/units/{unit_id}/expected-expenses/{month}", response_model=ExpectedMonthResponse)
def update_expected_month(
    unit_id: int,
    month: str,
    request: MonthEntriesRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ExpectedMonthResponse:
    UnitService(db).require_master_tenant(unit_id, user_id)
    entries = ExpectedExpenseService(db).update_month_entries(unit_id, parse_month(month), request.amounts)
    return ExpectedMonthResponse(
        month=month_key(parse_month(month)),
        amounts={e.category.value: float(e.amount) for e in entries},
        total=float(sum((e.amount for e in entries), Decimal("0"))),
    )


@router.delete("/units/{unit_id}/expected-expenses/{month}", response_model=DeletedResponse)
def delete_expected_month(
    unit_id: int,
    month: str,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> DeletedResponse:
    UnitService(db).require_master_tenant(unit_id, user_id)
    return DeletedResponse(deleted=ExpectedExpenseService(db).delete_month(unit_id, parse_month(month)))


# ----------------------------------------------------------------------
# Balance payments
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/balance-payments", response_model=BalancePaymentsResponse)
def list_balance_payments(
    unit_id: int,
    month: str | None = Query(default=None, description="YYYY-MM"),  # noqa: B008
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> BalancePaymentsResponse:
    UnitService(db).require_member(unit_id, user_id)
    payments = PaymentService(db).list_balance_payments(unit_id, parse_month(month) if month else None)
    return BalancePaymentsResponse(payments=[_balance_payment_response(p) for p in payments])


@router.post("/units/{unit_id}/balance-payments", response_model=BalancePaymentResponse, status_code=201)
def record_balance_payment(
    unit_id: int,
    request: BalancePaymentCreateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> BalancePaymentResponse:
    """Record the caller paying their share for a month."""
    UnitService(db).require_member(unit_id, user_id)
    payment = PaymentService(db).record_balance_payment(
        unit_id=unit_id,
        from_user_id=user_id,
        amount=request.amount,
        for_month=parse_month(request.for_month),
        to_user_id=request.to_user_id,
        payment_mode=request.payment_mode,
        notes=request.notes,
    )
    return _balance_payment_response(payment)


@router.delete("/units/{unit_id}/balance-payments/{payment_id}", status_code=204)
def delete_balance_payment(
    unit_id: int,
    payment_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> Response:
    service = PaymentService(db)
    payment = service.get_balance_payment(unit_id, payment_id)
    _require_master_or_self(UnitService(db), unit_id, user_id, payment.from_user_id)
    service.delete_balance_payment(unit_id, payment_id)
    return Response(status_code=204)


# ----------------------------------------------------------------------
# Contributions
# ----------------------------------------------------------------------


@router.get("/units/{unit_id}/contributions", response_model=ContributionsResponse)
def list_contributions(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ContributionsResponse:
    UnitService(db).require_member(unit_id, user_id)
    service = PaymentService(db)
    return ContributionsResponse(
        contributions=[_contribution_response(service, c) for c in service.list_contributions(unit_id)]
    )


@router.post("/units/{unit_id}/contributions", response_model=ContributionResponse, status_code=201)
def request_contribution(
    unit_id: int,
    request: ContributionCreateRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ContributionResponse:
    UnitService(db).require_member(unit_id, user_id)
    service = PaymentService(db)
    contribution = service.request_contribution(unit_id, user_id, request.amount, request.reason)
    return _contribution_response(service, contribution)


@router.post(
    "/units/{unit_id}/contributions/{contribution_id}/payments",
    response_model=ContributionResponse,
    status_code=201,
)
def record_contribution_payment(
    unit_id: int,
    contribution_id: int,
    request: ContributionPaymentRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ContributionResponse:
    """Record the caller's payment; the status is left as it is."""
    UnitService(db).require_member(unit_id, user_id)
    service = PaymentService(db)
    service.record_contribution_payment(
        unit_id,
        contribution_id,
        user_id,
        amount=request.amount,
        receipt_url=_receipt_url(request.receipt),
    )
    contribution = service.get_contribution(unit_id, contribution_id)
    return _contribution_response(service, contribution)


@router.patch("/units/{unit_id}/contributions/{contribution_id}", response_model=ContributionResponse)
def set_contribution_status(
    unit_id: int,
    contribution_id: int,
    request: ContributionStatusRequest,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> ContributionResponse:
    """Set the status by hand (requester or a master tenant)."""
    service = PaymentService(db)
    contribution = service.get_contribution(unit_id, contribution_id)
    _require_master_or_self(UnitService(db), unit_id, user_id, contribution.requested_by)
    contribution = service.set_contribution_status(unit_id, contribution_id, request.status)
    return _contribution_response(service, contribution)


# ----------------------------------------------------------------------
# Reports and exports
# ----------------------------------------------------------------------


def _download(content: str | bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/units/{unit_id}/reports/{report}")
def export_report(
    unit_id: int,
    report: str,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
    config: AppConfig = Depends(get_app_config),  # noqa: B008
) -> Response:
    """Monthly unit report, e.g. /reports/2025-03.csv or /reports/2025-03.pdf."""
    start_time = time.time()
    month_text, _, fmt = report.rpartition(".")
    if fmt not in REPORT_MEDIA_TYPES:
        raise ValidationError("Report format must be csv or pdf")
    month = parse_month(month_text)

    UnitService(db).require_member(unit_id, user_id)
    unit_report = build_unit_report(
        db, unit_id, month, honor_contribution_end_date=config.honor_contribution_end_date
    )
    content = render_unit_report_csv(unit_report) if fmt == "csv" else render_unit_report_pdf(unit_report)
    _log_debug("report", start_time, user_id, unit_id=unit_id, month=month_key(month), format=fmt)
    return _download(
        content, report_filename(unit_report.sheet.unit_name, month, fmt), REPORT_MEDIA_TYPES[fmt]
    )


@router.get("/units/{unit_id}/exports/expenses.csv")
def export_expenses(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> Response:
    units = UnitService(db)
    units.require_member(unit_id, user_id)
    unit = units.get_unit(unit_id)
    content = export_expenses_csv(
        ExpenseService(db).list_expenses(unit_id), get_currency_for_country(unit.country)
    )
    filename = f"expenses_{safe_name(unit.name)}_{date.today().isoformat()}.csv"
    return _download(content, filename, REPORT_MEDIA_TYPES["csv"])


@router.get("/units/{unit_id}/exports/contributions.csv")
def export_contributions(
    unit_id: int,
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> Response:
    units = UnitService(db)
    units.require_member(unit_id, user_id)
    unit = units.get_unit(unit_id)
    content = export_contributions_csv(
        PaymentService(db).list_contributions(unit_id), get_currency_for_country(unit.country)
    )
    filename = f"contributions_{safe_name(unit.name)}_{date.today().isoformat()}.csv"
    return _download(content, filename, REPORT_MEDIA_TYPES["csv"])


# ----------------------------------------------------------------------
# My Spends
# ----------------------------------------------------------------------


@router.get("/me/spends", response_model=SpendsResponse)
def get_my_spends(
    user_id: int = Depends(get_current_user_id),  # noqa: B008
    db: Session = Depends(get_db),  # noqa: B008
) -> SpendsResponse:
    """Caller's paid, expected and balance across all their units."""
    start_time = time.time()
    summary = SpendsService(db).get_user_spends(user_id, date.today())
    _log_debug("spends", start_time, user_id, units=len(summary.units))
    return SpendsResponse(
        currency=summary.currency,
        has_mixed_currencies=summary.has_mixed_currencies,
        total_paid=float(summary.total_paid),
        total_expected=float(summary.total_expected),
        total_balance=float(summary.total_balance),
        this_month_paid=float(summary.this_month_paid),
        this_month_expected=float(summary.this_month_expected),
        this_month_balance=float(summary.this_month_balance),
        units=[
            UnitSpendResponse(
                unit_id=u.unit_id,
                unit_name=u.unit_name,
                currency=u.currency,
                total_expenses=float(u.total_expenses),
                expected=float(u.expected),
                paid=float(u.paid),
                balance=float(u.balance),
                this_month_expected=float(u.this_month_expected),
                this_month_paid=float(u.this_month_paid),
                this_month_balance=float(u.this_month_balance),
            )
            for u in summary.units
        ],
    )


__all__ = ["router"]

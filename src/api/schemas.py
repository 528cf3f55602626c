"""Request and response schemas for the ledger API."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: ErrorDetail


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------


class Receipt(BaseModel):
    """Receipt already uploaded to the object store."""

    url: str
    content_type: str
    size_bytes: int = Field(ge=0)


class UnitCreateRequest(BaseModel):
    name: str
    monthly_rent: Decimal = Decimal("0")
    country: str | None = None
    address: str | None = None
    zipcode: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    payment_due_day: int | None = None
    creator_name: str | None = None


class UnitUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    name: str | None = None
    monthly_rent: Decimal | None = None
    country: str | None = None
    address: str | None = None
    zipcode: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    payment_due_day: int | None = None


class MemberCreateRequest(BaseModel):
    user_id: int
    name: str | None = None
    role: str = "co_tenant"
    contribution_type: str = "share"
    share_percentage: Decimal | None = None
    fixed_amount: Decimal | None = None
    contribution_period: str | None = None
    contribution_end_date: date | None = None


class MemberUpdateRequest(BaseModel):
    role: str | None = None
    contribution_type: str | None = None
    share_percentage: Decimal | None = None
    fixed_amount: Decimal | None = None
    contribution_period: str | None = None
    contribution_end_date: date | None = None


class ExpenseCreateRequest(BaseModel):
    category: str
    amount: Decimal
    date: date
    paid_by: int | None = None
    """Paying member; defaults to the caller."""
    payment_mode: str | None = None
    notes: str | None = None
    receipt: Receipt | None = None


class TemplateRequest(BaseModel):
    amounts: dict[str, Decimal]


class MonthEntriesRequest(BaseModel):
    amounts: dict[str, Decimal]


class BalancePaymentCreateRequest(BaseModel):
    amount: Decimal
    for_month: str
    """Month being settled, YYYY-MM."""
    to_user_id: int | None = None
    payment_mode: str | None = None
    notes: str | None = None


class ContributionCreateRequest(BaseModel):
    amount: Decimal
    reason: str


class ContributionPaymentRequest(BaseModel):
    amount: Decimal | None = None
    receipt: Receipt | None = None


class ContributionStatusRequest(BaseModel):
    status: str


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str | None = None
    country: str | None = None
    zipcode: str | None = None
    currency: str
    monthly_rent: float
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    payment_due_day: int | None = None
    due_date_label: str | None = None
    next_due_date: date | None = None


class UnitsResponse(BaseModel):
    units: list[UnitResponse]


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str | None = None
    role: str
    contribution_type: str
    share_percentage: float | None = None
    fixed_amount: float | None = None
    contribution_period: str | None = None
    contribution_end_date: date | None = None
    contribution_label: str


class MembersResponse(BaseModel):
    members: list[MemberResponse]


class ExpenseResponse(BaseModel):
    id: int
    category: str
    amount: float
    date: date
    paid_by: int
    payer_name: str | None = None
    payment_mode: str | None = None
    notes: str | None = None
    receipt_url: str | None = None


class ExpensesResponse(BaseModel):
    expenses: list[ExpenseResponse]
    total: float


class MemberBalanceResponse(BaseModel):
    member_id: int | None = None
    user_id: int
    name: str | None = None
    role: str
    share_fraction: float
    expected: float
    paid_from_expenses: float
    paid_from_balance_payments: float
    paid: float
    balance: float
    is_active: bool


class BalanceSheetResponse(BaseModel):
    unit_id: int
    month: str
    currency: str
    reference_rent: float
    monthly_total: float
    total_source: str
    actual_total: float
    category_totals: dict[str, float]
    total_expected: float
    total_paid: float
    amount_received: float
    members: list[MemberBalanceResponse]


class MonthBreakdownResponse(BaseModel):
    month: str
    expected: dict[str, float]
    actual: dict[str, float]
    expected_total: float
    actual_total: float


class BreakdownResponse(BaseModel):
    months: list[MonthBreakdownResponse]


class TemplateResponse(BaseModel):
    amounts: dict[str, float]


class GenerateResponse(BaseModel):
    generated: int


class ExpectedMonthResponse(BaseModel):
    month: str
    amounts: dict[str, float]
    total: float


class ExpectedExpensesResponse(BaseModel):
    months: list[ExpectedMonthResponse]


class DeletedResponse(BaseModel):
    deleted: int


class BalancePaymentResponse(BaseModel):
    id: int
    from_user_id: int
    from_name: str | None = None
    to_user_id: int | None = None
    to_name: str | None = None
    is_direct: bool
    amount: float
    for_month: str
    payment_mode: str | None = None
    notes: str | None = None
    paid_at: datetime | None = None


class BalancePaymentsResponse(BaseModel):
    payments: list[BalancePaymentResponse]


class ContributionPaymentResponse(BaseModel):
    id: int
    user_id: int
    name: str | None = None
    amount: float
    paid_at: datetime | None = None
    receipt_url: str | None = None


class ContributionResponse(BaseModel):
    id: int
    amount: float
    reason: str
    status: str
    requested_by: int
    requester_name: str | None = None
    created_at: datetime | None = None
    collected_amount: float
    paid_member_count: int
    member_count: int
    payments: list[ContributionPaymentResponse]


class ContributionsResponse(BaseModel):
    contributions: list[ContributionResponse]


class UnitSpendResponse(BaseModel):
    unit_id: int
    unit_name: str
    currency: str
    total_expenses: float
    expected: float
    paid: float
    balance: float
    this_month_expected: float
    this_month_paid: float
    this_month_balance: float


class SpendsResponse(BaseModel):
    currency: str
    has_mixed_currencies: bool
    total_paid: float
    total_expected: float
    total_balance: float
    this_month_paid: float
    this_month_expected: float
    this_month_balance: float
    units: list[UnitSpendResponse]

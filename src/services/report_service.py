"""Report exports: unit monthly report (CSV/PDF) and expense/contribution lists.

The monthly report is built from the same balance sheet the dashboard uses,
so expected, paid and balance figures match what members see in the app.
CSV output carries a UTF-8 BOM so spreadsheet applications pick the right
encoding.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from src.models import Contribution, Expense, ExpenseCategory, MemberRole, PaymentMode
from src.services.balance_service import BalanceService, UnitBalanceSheet
from src.services.expense_service import ExpenseService
from src.services.locale_service import format_contribution, get_currency_symbol
from src.services.period_service import month_key

logger = logging.getLogger(__name__)

BOM = "\ufeff"
BRAND = "Coliving"
HEADER_COLOR = colors.Color(245 / 255, 93 / 255, 74 / 255)

CATEGORY_LABELS = {
    ExpenseCategory.RENT: "Rent",
    ExpenseCategory.UTILITIES: "Utilities",
    ExpenseCategory.CLEANING: "Cleaning",
    ExpenseCategory.PROVISIONS: "Provisions",
    ExpenseCategory.OTHER: "Other",
}

PAYMENT_MODE_LABELS = {
    PaymentMode.BANK_TRANSFER: "Bank transfer",
    PaymentMode.PAYNOW: "PayNow",
    PaymentMode.CASH: "Cash",
    PaymentMode.CREDIT_CARD: "Credit card",
    PaymentMode.GRABPAY: "GrabPay",
    PaymentMode.PAYLAH: "PayLah!",
    PaymentMode.OTHER: "Other",
}

ROLE_LABELS = {
    MemberRole.MASTER_TENANT: "Master tenant",
    MemberRole.CO_TENANT: "Co-tenant",
}


@dataclass
class UnitReport:
    """Everything rendered into a monthly unit report."""

    sheet: UnitBalanceSheet
    expenses: list[Expense]

    @property
    def currency_symbol(self) -> str:
        return get_currency_symbol(self.sheet.currency)

    @property
    def period_label(self) -> str:
        return self.sheet.month.strftime("%b %Y")

    @property
    def title(self) -> str:
        return f"Unit Report — {self.sheet.unit_name} — {self.period_label}"

    def category_rows(self) -> list[list[str]]:
        rows = [
            [CATEGORY_LABELS[category], _money(amount)]
            for category, amount in self.sheet.category_totals.items()
        ]
        rows.append(["Total", _money(self.sheet.actual_total)])
        return rows

    def member_rows(self) -> list[list[str]]:
        return [
            [
                row.member.name or "Unknown",
                ROLE_LABELS[row.member.role],
                format_contribution(row.member, self.sheet.currency, short=True),
                _money(row.expected),
                _money(row.paid),
                _money(row.balance),
            ]
            for row in self.sheet.rows
        ]

    def expense_rows(self) -> list[list[str]]:
        return [
            [
                expense.date.isoformat(),
                CATEGORY_LABELS.get(expense.category, str(expense.category)),
                _money(expense.amount),
                expense.payer.name if expense.payer and expense.payer.name else "",
                PAYMENT_MODE_LABELS.get(expense.payment_mode, "") if expense.payment_mode else "",
                expense.notes or "",
            ]
            for expense in self.expenses
        ]


def _money(amount: Any) -> str:
    return f"{Decimal(str(amount or 0)):.2f}"


def safe_name(name: str) -> str:
    """Replace characters unsafe in file names with underscores."""
    return re.sub(r"[^a-zA-Z0-9\-_]", "_", name)


def report_filename(unit_name: str, month: date, extension: str) -> str:
    """E.g. report_Marina_Bay_2025-03.csv"""
    return f"report_{safe_name(unit_name)}_{month_key(month)}.{extension}"


def build_unit_report(
    db: Session, unit_id: int, month: date, honor_contribution_end_date: bool = False
) -> UnitReport:
    """Collect the balance sheet and the month's expenses (oldest first).

    Raises:
        NotFoundError: If the unit does not exist
    """
    sheet = BalanceService(
        db, honor_contribution_end_date=honor_contribution_end_date
    ).get_unit_balance_sheet(unit_id, month)
    expenses = ExpenseService(db).list_expenses(unit_id, month)
    expenses.sort(key=lambda e: (e.date, e.id))
    return UnitReport(sheet=sheet, expenses=expenses)


def _csv_text(rows: Iterable[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def render_unit_report_csv(report: UnitReport) -> str:
    """Render the report as CSV sections separated by blank lines."""
    sym = report.currency_symbol
    rows: list[list[str]] = [
        [BRAND],
        [report.title],
        [],
        ["Unit Report"],
        ["Unit", report.sheet.unit_name],
        ["Period", report.period_label],
        [],
        ["Monthly Expenses by Category"],
        ["Category", f"Amount ({sym})"],
        *report.category_rows(),
        [],
        ["Tenant Contributions"],
        ["Name", "Role", "Contribution", f"Expected ({sym})", f"Paid ({sym})", f"Balance ({sym})"],
        *report.member_rows(),
        [],
        ["Expense Details"],
        ["Date", "Category", f"Amount ({sym})", "Paid By", "Payment Mode", "Notes"],
        *report.expense_rows(),
    ]
    return _csv_text(rows)


def _table(data: list[list[str]], col_widths: list[float] | None = None) -> Table:
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def render_unit_report_pdf(report: UnitReport) -> bytes:
    """Render the report as an A4 PDF; long tables continue on new pages."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=14 * mm,
        title=report.title,
    )
    styles = getSampleStyleSheet()
    sym = report.currency_symbol

    story = [
        Paragraph(BRAND, styles["Title"]),
        Paragraph(escape(report.title), styles["Normal"]),
        Spacer(1, 6 * mm),
        Paragraph(escape(f"Unit: {report.sheet.unit_name}"), styles["Normal"]),
        Paragraph(f"Period: {report.period_label}", styles["Normal"]),
        Spacer(1, 6 * mm),
        Paragraph("Monthly Expenses by Category", styles["Heading3"]),
        _table([["Category", f"Amount ({sym})"], *report.category_rows()], [60 * mm, 40 * mm]),
        Spacer(1, 6 * mm),
        Paragraph("Tenant Contributions", styles["Heading3"]),
        _table(
            [
                ["Name", "Role", "Contribution", f"Expected ({sym})", f"Paid ({sym})", f"Balance ({sym})"],
                *report.member_rows(),
            ]
        ),
    ]
    if report.expenses:
        story += [
            Spacer(1, 6 * mm),
            Paragraph("Expense Details", styles["Heading3"]),
            _table(
                [
                    ["Date", "Category", f"Amount ({sym})", "Paid By", "Payment Mode", "Notes"],
                    *[
                        row[:5] + [Paragraph(escape(row[5]), styles["BodyText"])]
                        for row in report.expense_rows()
                    ],
                ],
                [22 * mm, 24 * mm, 24 * mm, 32 * mm, 28 * mm, 52 * mm],
            ),
        ]

    doc.build(story)
    logger.debug(
        f"Rendered PDF report for unit {report.sheet.unit_id} month {report.period_label}: "
        f"{len(report.expenses)} expenses"
    )
    return buffer.getvalue()


def export_expenses_csv(expenses: Iterable[Expense], currency: str) -> str:
    """Expense list export (Date, Category, Amount, Paid By, Payment Mode, Notes)."""
    rows: list[list[str]] = [
        ["Date", "Category", f"Amount ({get_currency_symbol(currency)})", "Paid By", "Payment Mode", "Notes"]
    ]
    for expense in expenses:
        rows.append(
            [
                expense.date.isoformat(),
                CATEGORY_LABELS.get(expense.category, str(expense.category)),
                _money(expense.amount),
                expense.payer.name if expense.payer and expense.payer.name else "",
                PAYMENT_MODE_LABELS.get(expense.payment_mode, "") if expense.payment_mode else "",
                expense.notes or "",
            ]
        )
    return _csv_text(rows)


def export_contributions_csv(contributions: Iterable[Contribution], currency: str) -> str:
    """Contribution list export; payments are summarized in one column."""
    rows: list[list[str]] = [
        ["Reason", f"Amount ({get_currency_symbol(currency)})", "Status", "Requested By", "Date", "Payments"]
    ]
    for contribution in contributions:
        payments = "; ".join(
            f"{(p.profile.name if p.profile and p.profile.name else 'Unknown')}: "
            f"{_money(p.amount)} ({p.paid_at.date().isoformat() if p.paid_at else ''})"
            for p in contribution.payments
        )
        rows.append(
            [
                contribution.reason,
                _money(contribution.amount),
                contribution.status.value,
                contribution.requester.name if contribution.requester and contribution.requester.name else "",
                contribution.created_at.date().isoformat() if contribution.created_at else "",
                payments,
            ]
        )
    return _csv_text(rows)


__all__ = [
    "UnitReport",
    "build_unit_report",
    "export_contributions_csv",
    "export_expenses_csv",
    "render_unit_report_csv",
    "render_unit_report_pdf",
    "report_filename",
    "safe_name",
]

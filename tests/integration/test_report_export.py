"""Integration tests for report and list exports."""

import csv
import io
from datetime import date

import pytest

from src.services.errors import NotFoundError
from src.services.expense_service import ExpenseService
from src.services.payment_service import PaymentService
from src.services.report_service import (
    BOM,
    build_unit_report,
    export_contributions_csv,
    export_expenses_csv,
    render_unit_report_csv,
    render_unit_report_pdf,
    report_filename,
    safe_name,
)

MARCH = date(2025, 3, 1)


@pytest.fixture
def report_unit(db_session, shared_unit):
    unit, _ = shared_unit
    expenses = ExpenseService(db_session)
    expenses.record_expense(unit.id, 2, "cleaning", "50", date(2025, 3, 20), notes="Deep clean, <kitchen>")
    expenses.record_expense(unit.id, 1, "rent", "1000", date(2025, 3, 2), payment_mode="bank_transfer")
    expenses.record_expense(unit.id, 2, "provisions", "80", date(2025, 2, 28))
    return unit


def parse_csv(text):
    assert text.startswith(BOM)
    return list(csv.reader(io.StringIO(text[len(BOM):])))


def section(rows, title):
    """Rows after a section title up to the next blank line."""
    start = rows.index([title]) + 1
    end = rows.index([], start) if [] in rows[start:] else len(rows)
    return rows[start:end]


class TestFilenames:
    """Download names."""

    def test_safe_name(self):
        assert safe_name("Marina Bay #2/3") == "Marina_Bay__2_3"

    def test_report_filename(self):
        assert report_filename("Marina Bay", date(2025, 3, 17), "pdf") == "report_Marina_Bay_2025-03.pdf"


class TestUnitReportCsv:
    """Monthly unit report as CSV."""

    def test_header(self, db_session, report_unit):
        rows = parse_csv(render_unit_report_csv(build_unit_report(db_session, report_unit.id, MARCH)))

        assert rows[0] == ["Coliving"]
        assert rows[1] == ["Unit Report — Marina Bay — Mar 2025"]
        assert ["Unit", "Marina Bay"] in rows
        assert ["Period", "Mar 2025"] in rows

    def test_category_section(self, db_session, report_unit):
        rows = parse_csv(render_unit_report_csv(build_unit_report(db_session, report_unit.id, MARCH)))

        categories = section(rows, "Monthly Expenses by Category")
        assert categories[0] == ["Category", "Amount ($)"]
        assert ["Rent", "1000.00"] in categories
        assert ["Cleaning", "50.00"] in categories
        assert ["Provisions", "0.00"] in categories
        assert categories[-1] == ["Total", "1050.00"]

    def test_contributions_section(self, db_session, report_unit):
        rows = parse_csv(render_unit_report_csv(build_unit_report(db_session, report_unit.id, MARCH)))

        members = section(rows, "Tenant Contributions")
        assert members[0] == ["Name", "Role", "Contribution", "Expected ($)", "Paid ($)", "Balance ($)"]
        assert members[1] == ["Alice", "Master tenant", "60%", "630.00", "1000.00", "370.00"]
        assert members[2] == ["Bob", "Co-tenant", "$200.00/mo", "200.00", "50.00", "-150.00"]
        assert members[3] == ["Carol", "Co-tenant", "25%", "262.50", "0.00", "-262.50"]

    def test_expense_details_oldest_first(self, db_session, report_unit):
        rows = parse_csv(render_unit_report_csv(build_unit_report(db_session, report_unit.id, MARCH)))

        details = section(rows, "Expense Details")
        assert details[0] == ["Date", "Category", "Amount ($)", "Paid By", "Payment Mode", "Notes"]
        assert details[1] == ["2025-03-02", "Rent", "1000.00", "Alice", "Bank transfer", ""]
        assert details[2] == ["2025-03-20", "Cleaning", "50.00", "Bob", "", "Deep clean, <kitchen>"]
        assert len(details) == 3

    def test_missing_unit(self, db_session):
        with pytest.raises(NotFoundError):
            build_unit_report(db_session, 404, MARCH)


class TestUnitReportPdf:
    """Monthly unit report as PDF."""

    def test_renders_pdf(self, db_session, report_unit):
        pdf = render_unit_report_pdf(build_unit_report(db_session, report_unit.id, MARCH))
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_month_without_expenses(self, db_session, report_unit):
        pdf = render_unit_report_pdf(build_unit_report(db_session, report_unit.id, date(2025, 7, 1)))
        assert pdf.startswith(b"%PDF")


class TestListExports:
    """Expense and contribution list CSVs."""

    def test_expenses_csv(self, db_session, report_unit):
        expenses = ExpenseService(db_session).list_expenses(report_unit.id)

        rows = parse_csv(export_expenses_csv(expenses, "SGD"))

        assert rows[0] == ["Date", "Category", "Amount ($)", "Paid By", "Payment Mode", "Notes"]
        assert [r[0] for r in rows[1:]] == ["2025-03-20", "2025-03-02", "2025-02-28"]

    def test_contributions_csv(self, db_session, report_unit):
        payments = PaymentService(db_session)
        fund = payments.request_contribution(report_unit.id, 1, "90", "Wifi router")
        payments.record_contribution_payment(report_unit.id, fund.id, 2)

        rows = parse_csv(export_contributions_csv(payments.list_contributions(report_unit.id), "SGD"))

        assert rows[0] == ["Reason", "Amount ($)", "Status", "Requested By", "Date", "Payments"]
        reason, amount, status, requester, _, summary = rows[1]
        assert (reason, amount, status, requester) == ("Wifi router", "90.00", "pending", "Alice")
        assert summary.startswith("Bob: 90.00 (")

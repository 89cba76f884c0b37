"""Payroll report export."""

from __future__ import annotations

import csv
import io

from timepay_engine.calculators.money import format_dollars
from timepay_engine.models import PayrollReport

# Column names and order are relied on by downstream payroll imports
CSV_HEADER = [
    "name",
    "position",
    "rate",
    "regularHours",
    "overtimeHours",
    "regularPay",
    "overtimePay",
    "grossPay",
    "tips",
    "totalPay",
]


def export_payroll_csv(report: PayrollReport) -> str:
    """Export a payroll report to CSV format.

    One row per line item, then a TOTAL row. Money is in dollars and hours in
    decimal hours, both with two decimals. Returns CSV content as a string.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(CSV_HEADER)

    for item in report.line_items:
        writer.writerow([
            item.name,
            item.position,
            item.rate_description,
            f"{item.regular_hours:.2f}",
            f"{item.overtime_hours:.2f}",
            format_dollars(item.regular_pay_cents),
            format_dollars(item.overtime_pay_cents),
            format_dollars(item.gross_pay_cents),
            format_dollars(item.tips_cents),
            format_dollars(item.total_pay_cents),
        ])

    totals = report.totals
    writer.writerow([
        "TOTAL",
        "",
        "",
        f"{totals.regular_hours:.2f}",
        f"{totals.overtime_hours:.2f}",
        format_dollars(totals.regular_pay_cents),
        format_dollars(totals.overtime_pay_cents),
        format_dollars(totals.gross_pay_cents),
        format_dollars(totals.tips_cents),
        format_dollars(totals.total_pay_cents),
    ])

    return output.getvalue()

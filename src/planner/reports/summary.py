"""Billing summaries for a period."""

from pathlib import Path

from ..db import get_connection
from ..formatting import format_currency, format_kwh, format_percentage, format_watt
from ..periods import month_name
from ..usage import check_period


def get_period_summary(period_month: int, period_year: int, db_path: Path | None = None) -> dict:
    """Summarise bills and payments for a billing period."""
    check_period(period_month, period_year)

    with get_connection(db_path) as conn:
        bill_row = conn.execute(
            """SELECT
                   COUNT(*) as count,
                   SUM(CASE WHEN status = 'paid' THEN 1 ELSE 0 END) as paid_count,
                   SUM(usage_kwh) as total_kwh,
                   SUM(total_due) as total_billed,
                   SUM(CASE WHEN status = 'unpaid' THEN total_due ELSE 0 END) as outstanding
               FROM bills
               WHERE period_month = ? AND period_year = ?""",
            (period_month, period_year),
        ).fetchone()

        payment_row = conn.execute(
            """SELECT
                   SUM(p.total_paid) as collected,
                   SUM(p.late_penalty) as penalties,
                   SUM(CASE WHEN p.months_late > 0 THEN 1 ELSE 0 END) as late_count
               FROM payments p
               JOIN bills b ON b.id = p.bill_id
               WHERE b.period_month = ? AND b.period_year = ?""",
            (period_month, period_year),
        ).fetchone()

        tier_rows = conn.execute(
            """SELECT c.power_tier, COUNT(*) as count, SUM(b.usage_kwh) as kwh, SUM(b.total_due) as billed
               FROM bills b
               JOIN customers c ON c.id = b.customer_id
               WHERE b.period_month = ? AND b.period_year = ?
               GROUP BY c.power_tier
               ORDER BY c.power_tier""",
            (period_month, period_year),
        ).fetchall()

    count = bill_row["count"]
    paid_count = bill_row["paid_count"] or 0

    return {
        "period": {
            "month": period_month,
            "year": period_year,
            "label": f"{month_name(period_month)} {period_year}",
        },
        "bills": {
            "count": count,
            "paid": paid_count,
            "unpaid": count - paid_count,
            "paid_percent": round(paid_count / count * 100, 1) if count > 0 else 0,
        },
        "totals": {
            "kwh": round(bill_row["total_kwh"] or 0, 2),
            "billed": bill_row["total_billed"] or 0,
            "collected": payment_row["collected"] or 0,
            "outstanding": bill_row["outstanding"] or 0,
            "late_penalties": payment_row["penalties"] or 0,
            "late_payments": payment_row["late_count"] or 0,
        },
        "by_tier": [
            {
                "power_tier": row["power_tier"],
                "bills": row["count"],
                "kwh": round(row["kwh"] or 0, 2),
                "billed": row["billed"] or 0,
            }
            for row in tier_rows
        ],
    }


def format_period_summary_text(summary: dict) -> str:
    """Format a period summary as human-readable text."""
    bills = summary["bills"]
    totals = summary["totals"]
    lines = [
        f"Billing Summary: {summary['period']['label']}",
        "",
        "Bills:",
        f"  - Issued: {bills['count']}",
        f"  - Paid: {bills['paid']} ({format_percentage(bills['paid_percent'])})",
        f"  - Unpaid: {bills['unpaid']}",
        "",
        "Totals:",
        f"  - Consumption: {format_kwh(totals['kwh'])}",
        f"  - Billed: {format_currency(totals['billed'])}",
        f"  - Collected: {format_currency(totals['collected'])}",
        f"  - Outstanding: {format_currency(totals['outstanding'])}",
    ]

    if totals["late_payments"] > 0:
        lines.append(
            f"  - Late penalties: {format_currency(totals['late_penalties'])} "
            f"from {totals['late_payments']} late payment(s)"
        )

    if summary["by_tier"]:
        lines.extend(["", "By power tier:"])
        for tier in summary["by_tier"]:
            lines.append(
                f"  - {format_watt(tier['power_tier'])}: {tier['bills']} bill(s), "
                f"{format_kwh(tier['kwh'])}, {format_currency(tier['billed'])}"
            )

    return "\n".join(lines)

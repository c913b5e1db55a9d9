"""Bill generation and payment.

All money amounts come from the billing calculator: bills are generated with
calculate_bill, and late penalties at payment time with compute_late_penalty
on the bill's stored subtotal.
"""

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from .billing import calculate_bill, compute_late_penalty
from .config import get_settings
from .db import get_connection
from .errors import AlreadyPaidError, NotFoundError, ValidationError
from .models import Bill, BillBreakdown, Payment, TariffRate, UsageReading
from .periods import due_date, months_late, today
from .usage import check_period

logger = logging.getLogger(__name__)

STATUS_UNPAID = "unpaid"
STATUS_PAID = "paid"
STATUSES = (STATUS_UNPAID, STATUS_PAID)


def _row_to_bill(row: sqlite3.Row) -> Bill:
    return Bill(
        id=row["id"],
        customer_id=row["customer_id"],
        usage_id=row["usage_id"],
        period_month=row["period_month"],
        period_year=row["period_year"],
        usage_kwh=row["usage_kwh"],
        energy_cost=row["energy_cost"],
        admin_fee=row["admin_fee"],
        total_due=row["total_due"],
        status=row["status"],
        created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


def generate_bills(period_month: int, period_year: int, db_path: Path | None = None) -> list[Bill]:
    """Create an unpaid bill for every usage record of a period that has none yet.

    Running it again for the same period creates nothing new.
    """
    check_period(period_month, period_year)

    created = []
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """SELECT u.id AS usage_id, u.customer_id, u.meter_start, u.meter_end,
                      t.power_tier, t.rate_per_kwh
               FROM usage u
               JOIN customers c ON c.id = u.customer_id
               JOIN tariffs t ON t.power_tier = c.power_tier
               LEFT JOIN bills b ON b.usage_id = u.id
               WHERE u.period_month = ? AND u.period_year = ? AND b.id IS NULL
               ORDER BY u.customer_id""",
            (period_month, period_year),
        ).fetchall()

        for row in rows:
            breakdown = calculate_bill(
                UsageReading(
                    meter_start=row["meter_start"],
                    meter_end=row["meter_end"],
                    period_month=period_month,
                    period_year=period_year,
                ),
                TariffRate(power_tier=row["power_tier"], rate_per_kwh=row["rate_per_kwh"]),
            )
            cursor = conn.execute(
                """INSERT INTO bills
                   (customer_id, usage_id, period_month, period_year,
                    usage_kwh, energy_cost, admin_fee, total_due, status)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    row["customer_id"],
                    row["usage_id"],
                    period_month,
                    period_year,
                    breakdown.usage_kwh,
                    breakdown.energy_cost,
                    breakdown.admin_fee,
                    breakdown.total_due,
                    STATUS_UNPAID,
                ),
            )
            created.append(cursor.lastrowid)

        conn.commit()

        bills = [
            _row_to_bill(conn.execute("SELECT * FROM bills WHERE id = ?", (bill_id,)).fetchone())
            for bill_id in created
        ]

    logger.info(
        "Generated %d bill(s) for %02d-%d", len(bills), period_month, period_year
    )
    return bills


def get_bill(bill_id: int, db_path: Path | None = None) -> Bill:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM bills WHERE id = ?", (bill_id,)).fetchone()
    if not row:
        raise NotFoundError(f"Bill {bill_id} not found")
    return _row_to_bill(row)


def list_bills(
    status: str | None = None,
    customer_id: int | None = None,
    db_path: Path | None = None,
) -> list[Bill]:
    """List bills, newest period first."""
    if status is not None and status not in STATUSES:
        raise ValidationError(f"Invalid status {status!r} (expected one of {', '.join(STATUSES)})")

    query = "SELECT * FROM bills WHERE 1 = 1"
    params: list = []
    if status is not None:
        query += " AND status = ?"
        params.append(status)
    if customer_id is not None:
        query += " AND customer_id = ?"
        params.append(customer_id)
    query += " ORDER BY period_year DESC, period_month DESC, id"

    with get_connection(db_path) as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_bill(r) for r in rows]


def bill_due_date(bill: Bill, due_day: int | None = None) -> date:
    return due_date(bill.period_month, bill.period_year, due_day or get_settings().due_day)


def bill_breakdown(bill: Bill, late_months: int = 0) -> BillBreakdown:
    """Breakdown of a stored bill, with the penalty for late_months applied."""
    subtotal = bill.energy_cost + bill.admin_fee
    penalty = compute_late_penalty(subtotal, late_months)
    return BillBreakdown(
        usage_kwh=bill.usage_kwh,
        energy_cost=bill.energy_cost,
        admin_fee=bill.admin_fee,
        total_due=subtotal + penalty,
        late_penalty=penalty if penalty > 0 else None,
    )


def pay_bill(
    bill_id: int,
    paid_on: date | None = None,
    due_day: int | None = None,
    db_path: Path | None = None,
) -> Payment:
    """Record full payment of a bill and mark it paid.

    The amount is the bill's subtotal plus the late penalty for the months
    elapsed between its due date and paid_on (today if not given).

    Raises:
        NotFoundError: The bill does not exist.
        AlreadyPaidError: The bill was paid before.
    """
    bill = get_bill(bill_id, db_path)
    if bill.status == STATUS_PAID:
        raise AlreadyPaidError(bill_id)

    paid_on = paid_on or today(get_settings().timezone)
    late = months_late(bill_due_date(bill, due_day), paid_on)
    breakdown = bill_breakdown(bill, late)
    penalty = breakdown.late_penalty or 0

    with get_connection(db_path) as conn:
        updated = conn.execute(
            "UPDATE bills SET status = ? WHERE id = ? AND status = ?",
            (STATUS_PAID, bill_id, STATUS_UNPAID),
        ).rowcount
        if not updated:
            raise AlreadyPaidError(bill_id)

        cursor = conn.execute(
            """INSERT INTO payments
               (bill_id, customer_id, paid_on, months_late, admin_fee, late_penalty, total_paid)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                bill_id,
                bill.customer_id,
                paid_on.isoformat(),
                late,
                breakdown.admin_fee,
                penalty,
                breakdown.total_due,
            ),
        )
        conn.commit()
        payment_id = cursor.lastrowid

    logger.info(
        "Bill %d paid on %s (%d month(s) late, penalty %d)",
        bill_id, paid_on.isoformat(), late, penalty,
    )
    return Payment(
        id=payment_id,
        bill_id=bill_id,
        customer_id=bill.customer_id,
        paid_on=paid_on,
        months_late=late,
        admin_fee=breakdown.admin_fee,
        late_penalty=penalty,
        total_paid=breakdown.total_due,
    )


def _row_to_payment(row: sqlite3.Row) -> Payment:
    return Payment(
        id=row["id"],
        bill_id=row["bill_id"],
        customer_id=row["customer_id"],
        paid_on=date.fromisoformat(row["paid_on"]),
        months_late=row["months_late"],
        admin_fee=row["admin_fee"],
        late_penalty=row["late_penalty"],
        total_paid=row["total_paid"],
    )


def get_payment(payment_id: int, db_path: Path | None = None) -> Payment:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
    if not row:
        raise NotFoundError(f"Payment {payment_id} not found")
    return _row_to_payment(row)


def get_payment_for_bill(bill_id: int, db_path: Path | None = None) -> Payment | None:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM payments WHERE bill_id = ?", (bill_id,)).fetchone()
    return _row_to_payment(row) if row else None


def reverse_payment(payment_id: int, db_path: Path | None = None) -> Bill:
    """Delete a payment and return its bill to unpaid, in one transaction.

    Raises:
        NotFoundError: The payment does not exist.
    """
    payment = get_payment(payment_id, db_path)

    with get_connection(db_path) as conn:
        conn.execute("DELETE FROM payments WHERE id = ?", (payment_id,))
        conn.execute(
            "UPDATE bills SET status = ? WHERE id = ?", (STATUS_UNPAID, payment.bill_id)
        )
        conn.commit()

    logger.info("Reversed payment %d; bill %d is unpaid again", payment_id, payment.bill_id)
    return get_bill(payment.bill_id, db_path)

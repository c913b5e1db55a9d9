"""Meter usage records.

Readings are checked with validate_meter_reading before they are stored, so
every stored usage record satisfies meter_end >= meter_start.

CSV import format: meter_number, period_month, period_year, meter_start, meter_end
"""

import csv
import logging
import sqlite3
from pathlib import Path

from .billing import validate_meter_reading
from .customers import get_customer, get_customer_by_meter
from .db import get_connection
from .errors import NotFoundError, ReadingRejected, ValidationError
from .models import Usage

logger = logging.getLogger(__name__)


def _row_to_usage(row: sqlite3.Row) -> Usage:
    return Usage(
        id=row["id"],
        customer_id=row["customer_id"],
        period_month=row["period_month"],
        period_year=row["period_year"],
        meter_start=row["meter_start"],
        meter_end=row["meter_end"],
    )


def check_period(month: int, year: int) -> None:
    """Raise ValidationError unless month is 1-12 and year is plausible."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month} (expected 1-12)")
    if not 1900 <= year <= 9999:
        raise ValidationError(f"Invalid year {year}")


def record_usage(
    customer_id: int,
    period_month: int,
    period_year: int,
    meter_start: float,
    meter_end: float,
    db_path: Path | None = None,
) -> Usage:
    """Store a validated meter reading for a customer and period.

    Raises:
        ReadingRejected: The reading failed validate_meter_reading.
        NotFoundError: The customer does not exist.
        ValidationError: Bad period, or usage already recorded for it.
    """
    check_period(period_month, period_year)

    result = validate_meter_reading(meter_start, meter_end)
    if not result.valid:
        raise ReadingRejected(result.reason)

    get_customer(customer_id, db_path)

    with get_connection(db_path) as conn:
        try:
            cursor = conn.execute(
                """INSERT INTO usage
                   (customer_id, period_month, period_year, meter_start, meter_end)
                   VALUES (?, ?, ?, ?, ?)""",
                (customer_id, period_month, period_year, meter_start, meter_end),
            )
        except sqlite3.IntegrityError:
            raise ValidationError(
                f"Usage for customer {customer_id} in {period_month:02d}-{period_year} "
                "is already recorded"
            ) from None
        conn.commit()
        usage_id = cursor.lastrowid

    logger.debug("Recorded usage %s for customer %s", usage_id, customer_id)
    return Usage(
        id=usage_id,
        customer_id=customer_id,
        period_month=period_month,
        period_year=period_year,
        meter_start=meter_start,
        meter_end=meter_end,
    )


def get_usage(usage_id: int, db_path: Path | None = None) -> Usage:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM usage WHERE id = ?", (usage_id,)).fetchone()
    if not row:
        raise NotFoundError(f"Usage record {usage_id} not found")
    return _row_to_usage(row)


def list_usage(
    period_month: int | None = None,
    period_year: int | None = None,
    customer_id: int | None = None,
    db_path: Path | None = None,
) -> list[Usage]:
    """List usage records, optionally filtered by period and customer."""
    query = "SELECT * FROM usage WHERE 1 = 1"
    params: list = []
    if period_month is not None:
        query += " AND period_month = ?"
        params.append(period_month)
    if period_year is not None:
        query += " AND period_year = ?"
        params.append(period_year)
    if customer_id is not None:
        query += " AND customer_id = ?"
        params.append(customer_id)
    query += " ORDER BY period_year, period_month, customer_id"

    with get_connection(db_path) as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_usage(r) for r in rows]


def _check_not_billed(conn, usage_id: int) -> None:
    row = conn.execute("SELECT id FROM bills WHERE usage_id = ?", (usage_id,)).fetchone()
    if row:
        raise ValidationError(f"Usage record {usage_id} is already billed (bill {row['id']})")


def update_usage(
    usage_id: int,
    meter_start: float | None = None,
    meter_end: float | None = None,
    db_path: Path | None = None,
) -> Usage:
    """Correct the meter readings of a usage record that has not been billed.

    Readings left as None keep their stored value; the merged pair is
    validated the same way as a new reading.

    Raises:
        NotFoundError: The usage record does not exist.
        ReadingRejected: The corrected reading failed validate_meter_reading.
        ValidationError: A bill was already generated from the record.
    """
    usage = get_usage(usage_id, db_path)
    if meter_start is not None:
        usage.meter_start = meter_start
    if meter_end is not None:
        usage.meter_end = meter_end

    result = validate_meter_reading(usage.meter_start, usage.meter_end)
    if not result.valid:
        raise ReadingRejected(result.reason)

    with get_connection(db_path) as conn:
        _check_not_billed(conn, usage_id)
        conn.execute(
            "UPDATE usage SET meter_start = ?, meter_end = ? WHERE id = ?",
            (usage.meter_start, usage.meter_end, usage_id),
        )
        conn.commit()

    logger.info("Corrected usage %d: %s -> %s", usage_id, usage.meter_start, usage.meter_end)
    return usage


def delete_usage(usage_id: int, db_path: Path | None = None) -> None:
    """Delete a usage record that has not been billed.

    Raises:
        NotFoundError: The usage record does not exist.
        ValidationError: A bill was already generated from the record.
    """
    get_usage(usage_id, db_path)

    with get_connection(db_path) as conn:
        _check_not_billed(conn, usage_id)
        conn.execute("DELETE FROM usage WHERE id = ?", (usage_id,))
        conn.commit()

    logger.info("Deleted usage %d", usage_id)


def import_from_csv(csv_path: Path, db_path: Path | None = None) -> dict:
    """Import usage records from a CSV file.

    Rows for unknown meters or already-recorded periods are skipped; rows
    failing meter validation are rejected and logged.

    Returns dict with 'imported', 'skipped' and 'rejected' counts.
    """
    imported = 0
    skipped = 0
    rejected = 0

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            try:
                meter_number = row["meter_number"].strip()
                period = int(row["period_month"]), int(row["period_year"])
                readings = float(row["meter_start"]), float(row["meter_end"])
                customer = get_customer_by_meter(meter_number, db_path)
                record_usage(customer.id, *period, *readings, db_path)
                imported += 1
            except ReadingRejected as e:
                logger.warning("Line %d: %s", line_no, e)
                rejected += 1
            except (NotFoundError, ValidationError) as e:
                logger.info("Line %d skipped: %s", line_no, e)
                skipped += 1
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Line %d malformed: %s", line_no, e)
                rejected += 1

    return {"imported": imported, "skipped": skipped, "rejected": rejected}

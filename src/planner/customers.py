"""Customer records."""

import logging
import sqlite3
from pathlib import Path

from .db import get_connection
from .errors import NotFoundError, ValidationError
from .models import Customer
from .tariffs import get_tariff

logger = logging.getLogger(__name__)


def _row_to_customer(row: sqlite3.Row) -> Customer:
    return Customer(
        id=row["id"],
        name=row["name"],
        meter_number=row["meter_number"],
        power_tier=row["power_tier"],
        address=row["address"],
    )


def create_customer(
    name: str,
    meter_number: str,
    power_tier: int,
    address: str | None = None,
    db_path: Path | None = None,
) -> Customer:
    """Create a customer on an existing tariff tier.

    Raises:
        NotFoundError: No tariff exists for power_tier.
        ValidationError: Name is blank or the meter number is already taken.
    """
    name = name.strip()
    meter_number = meter_number.strip()
    if not name or not meter_number:
        raise ValidationError("Customer name and meter number are required")

    get_tariff(power_tier, db_path)

    with get_connection(db_path) as conn:
        try:
            cursor = conn.execute(
                "INSERT INTO customers (name, meter_number, address, power_tier) VALUES (?, ?, ?, ?)",
                (name, meter_number, address, power_tier),
            )
        except sqlite3.IntegrityError:
            raise ValidationError(f"Meter number {meter_number} is already registered") from None
        conn.commit()
        customer_id = cursor.lastrowid

    logger.info("Created customer %s (meter %s, %d VA)", customer_id, meter_number, power_tier)
    return Customer(
        id=customer_id,
        name=name,
        meter_number=meter_number,
        power_tier=power_tier,
        address=address,
    )


def get_customer(customer_id: int, db_path: Path | None = None) -> Customer:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM customers WHERE id = ?", (customer_id,)).fetchone()
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found")
    return _row_to_customer(row)


def get_customer_by_meter(meter_number: str, db_path: Path | None = None) -> Customer:
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM customers WHERE meter_number = ?", (meter_number,)
        ).fetchone()
    if not row:
        raise NotFoundError(f"No customer with meter number {meter_number}")
    return _row_to_customer(row)


def list_customers(db_path: Path | None = None) -> list[Customer]:
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT * FROM customers ORDER BY id").fetchall()
    return [_row_to_customer(r) for r in rows]


def update_customer(
    customer_id: int,
    name: str | None = None,
    meter_number: str | None = None,
    power_tier: int | None = None,
    address: str | None = None,
    db_path: Path | None = None,
) -> Customer:
    """Update the given fields of a customer; fields left as None are kept.

    Raises:
        NotFoundError: The customer, or the tariff for a new power_tier, does not exist.
        ValidationError: A blank name/meter number, or a meter number owned by another customer.
    """
    customer = get_customer(customer_id, db_path)

    if name is not None:
        customer.name = name.strip()
    if meter_number is not None:
        customer.meter_number = meter_number.strip()
    if not customer.name or not customer.meter_number:
        raise ValidationError("Customer name and meter number are required")
    if power_tier is not None:
        get_tariff(power_tier, db_path)
        customer.power_tier = power_tier
    if address is not None:
        customer.address = address

    with get_connection(db_path) as conn:
        try:
            conn.execute(
                """UPDATE customers
                   SET name = ?, meter_number = ?, address = ?, power_tier = ?
                   WHERE id = ?""",
                (customer.name, customer.meter_number, customer.address, customer.power_tier, customer_id),
            )
        except sqlite3.IntegrityError:
            raise ValidationError(
                f"Meter number {customer.meter_number} is already registered"
            ) from None
        conn.commit()

    logger.info("Updated customer %s", customer_id)
    return customer


def delete_customer(customer_id: int, db_path: Path | None = None) -> None:
    """Delete a customer with no usage history.

    Raises:
        NotFoundError: The customer does not exist.
        ValidationError: Usage or bills are recorded for the customer.
    """
    get_customer(customer_id, db_path)

    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT COUNT(*) as count FROM usage WHERE customer_id = ?", (customer_id,)
        ).fetchone()
        if row["count"]:
            raise ValidationError(
                f"Customer {customer_id} has {row['count']} usage record(s) and cannot be deleted"
            )
        conn.execute("DELETE FROM customers WHERE id = ?", (customer_id,))
        conn.commit()

    logger.info("Deleted customer %s", customer_id)

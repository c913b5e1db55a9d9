from datetime import date

import pytest

from planner.billing import compute_late_penalty
from planner.bills import (
    bill_due_date,
    generate_bills,
    get_bill,
    get_payment,
    get_payment_for_bill,
    list_bills,
    pay_bill,
    reverse_payment,
)
from planner.customers import create_customer
from planner.errors import AlreadyPaidError, NotFoundError, ValidationError
from planner.usage import record_usage


@pytest.fixture
def march_bill(db_path, customer):
    record_usage(customer.id, 3, 2025, 1000, 1100, db_path)
    (bill,) = generate_bills(3, 2025, db_path)
    return bill


def test_generate_bills(march_bill, customer):
    assert march_bill.customer_id == customer.id
    assert march_bill.usage_kwh == 100
    assert march_bill.energy_cost == 135200
    assert march_bill.admin_fee == 2500
    assert march_bill.total_due == 137700
    assert march_bill.status == "unpaid"
    assert march_bill.created_at is not None


def test_generate_bills_uses_tiered_admin_fee(db_path):
    big = create_customer("Hotel Melati", "MTR-0100", 3500, db_path=db_path)
    record_usage(big.id, 3, 2025, 0, 1000, db_path)

    (bill,) = generate_bills(3, 2025, db_path)

    assert bill.admin_fee == 5000
    assert bill.total_due == 1699530 + 5000


def test_generate_bills_is_idempotent(db_path, march_bill):
    assert generate_bills(3, 2025, db_path) == []
    assert len(list_bills(db_path=db_path)) == 1


def test_generate_bills_only_for_period(db_path, customer):
    record_usage(customer.id, 3, 2025, 1000, 1100, db_path)
    assert generate_bills(4, 2025, db_path) == []


def test_generate_bills_invalid_month(db_path):
    with pytest.raises(ValidationError):
        generate_bills(0, 2025, db_path)


def test_list_bills_filters(db_path, march_bill, customer):
    assert list_bills("unpaid", db_path=db_path) == [march_bill]
    assert list_bills("paid", db_path=db_path) == []
    assert list_bills(customer_id=customer.id + 1, db_path=db_path) == []
    with pytest.raises(ValidationError):
        list_bills("overdue", db_path=db_path)


def test_due_date(march_bill):
    assert bill_due_date(march_bill, due_day=20) == date(2025, 4, 20)


def test_pay_on_time(db_path, march_bill):
    payment = pay_bill(march_bill.id, date(2025, 4, 15), due_day=20, db_path=db_path)

    assert payment.months_late == 0
    assert payment.late_penalty == 0
    assert payment.total_paid == 137700
    assert get_bill(march_bill.id, db_path).status == "paid"
    assert get_payment_for_bill(march_bill.id, db_path) == payment


def test_pay_two_months_late(db_path, march_bill):
    payment = pay_bill(march_bill.id, date(2025, 6, 10), due_day=20, db_path=db_path)

    assert payment.months_late == 2
    assert payment.late_penalty == compute_late_penalty(137700, 2) == 5508
    assert payment.total_paid == 143208
    assert payment.admin_fee == 2500


def test_pay_twice(db_path, march_bill):
    pay_bill(march_bill.id, date(2025, 4, 1), due_day=20, db_path=db_path)
    with pytest.raises(AlreadyPaidError):
        pay_bill(march_bill.id, date(2025, 4, 2), due_day=20, db_path=db_path)


def test_pay_unknown_bill(db_path):
    with pytest.raises(NotFoundError):
        pay_bill(42, date(2025, 4, 1), due_day=20, db_path=db_path)


def test_no_payment_recorded(db_path, march_bill):
    assert get_payment_for_bill(march_bill.id, db_path) is None


def test_reverse_payment(db_path, march_bill):
    payment = pay_bill(march_bill.id, date(2025, 6, 1), due_day=20, db_path=db_path)
    assert get_payment(payment.id, db_path) == payment

    bill = reverse_payment(payment.id, db_path)

    assert bill.status == "unpaid"
    assert get_payment_for_bill(march_bill.id, db_path) is None
    assert list_bills("paid", db_path=db_path) == []


def test_bill_can_be_paid_again_after_reversal(db_path, march_bill):
    payment = pay_bill(march_bill.id, date(2025, 6, 1), due_day=20, db_path=db_path)
    reverse_payment(payment.id, db_path)

    repaid = pay_bill(march_bill.id, date(2025, 4, 1), due_day=20, db_path=db_path)

    assert repaid.late_penalty == 0
    assert get_bill(march_bill.id, db_path).status == "paid"


def test_reverse_unknown_payment(db_path):
    with pytest.raises(NotFoundError):
        reverse_payment(42, db_path)

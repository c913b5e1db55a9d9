"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from planner.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, db_path):
    def _invoke(*args):
        result = runner.invoke(cli, ["--db-path", str(db_path), *args])
        assert result.exit_code == 0, result.output
        return result.output

    return _invoke


def test_database_init(runner, tmp_path):
    path = tmp_path / "fresh.db"
    result = runner.invoke(cli, ["--db-path", str(path), "database", "init"])

    assert result.exit_code == 0
    assert "Database initialized" in result.output
    assert "Loaded 7 tariff(s)" in result.output


def test_tariff_list(invoke):
    output = invoke("tariff", "list")
    assert "900 VA" in output
    assert "Rp 1.352" in output
    assert "Rp 1.444,70" in output


def test_bill_calc_json(invoke):
    output = invoke("bill", "calc", "--start", "1000", "--end", "1100", "--tier", "900", "--months-late", "2", "--json")
    data = json.loads(output)

    assert data["energy_cost"] == 135200
    assert data["late_penalty"] == 5508
    assert data["total_due"] == 143208


def test_bill_calc_warns_on_inverted_reading(invoke):
    output = invoke("bill", "calc", "--start", "1200", "--end", "1100", "--tier", "900")

    assert "meter_end < meter_start" in output
    assert "TOTAL: Rp 2.500" in output


def test_bill_calc_unknown_tier(invoke):
    assert "No tariff found" in invoke("bill", "calc", "--start", "0", "--end", "1", "--tier", "1000")


def test_full_billing_cycle(invoke):
    assert "Created customer 1" in invoke(
        "customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900"
    )
    invoke("usage", "add", "--customer", "1", "--month", "3", "--year", "2025", "--start", "1000", "--end", "1100")

    assert "Generated 1 bill(s)" in invoke("bill", "generate", "--month", "3", "--year", "2025")
    assert "No new bills" in invoke("bill", "generate", "--month", "3", "--year", "2025")
    assert "unpaid" in invoke("bill", "list")

    output = invoke("bill", "pay", "1", "--date", "2099-01-01")
    assert "Bill 1 paid" in output
    assert "late penalty" in output

    output = invoke("bill", "show", "1")
    assert "Late penalty" in output
    assert "Paid on 2099-01-01" in output

    assert "already paid" in invoke("bill", "pay", "1")

    data = json.loads(invoke("report", "--month", "3", "--year", "2025", "--json"))
    assert data["bills"]["paid"] == 1


def test_usage_add_rejected(invoke):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")
    output = invoke("usage", "add", "--customer", "1", "--month", "3", "--year", "2025", "--start", "1200", "--end", "1100")

    assert "rejected" in output
    assert "meter_end < meter_start" in output


def test_bill_pay_rejects_malformed_date(runner, invoke, db_path):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")
    invoke("usage", "add", "--customer", "1", "--month", "3", "--year", "2025", "--start", "1000", "--end", "1100")
    invoke("bill", "generate", "--month", "3", "--year", "2025")

    result = runner.invoke(cli, ["--db-path", str(db_path), "bill", "pay", "1", "--date", "2025-13-45"])

    assert result.exit_code == 2
    assert "Invalid value for '--date'" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "unpaid" in invoke("bill", "list")


def test_payment_reversal(invoke):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")
    invoke("usage", "add", "--customer", "1", "--month", "3", "--year", "2025", "--start", "1000", "--end", "1100")
    invoke("bill", "generate", "--month", "3", "--year", "2025")

    assert "(payment 1)" in invoke("bill", "pay", "1", "--date", "2025-04-01")
    assert "bill 1 is unpaid" in invoke("bill", "unpay", "1")
    assert "Payment 1 not found" in invoke("bill", "unpay", "1")


def test_usage_update_and_delete(invoke):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")
    invoke("usage", "add", "--customer", "1", "--month", "3", "--year", "2025", "--start", "1000", "--end", "1100")

    assert "150,00 kWh" in invoke("usage", "update", "1", "--end", "1150")
    assert "meter_end < meter_start" in invoke("usage", "update", "1", "--start", "1200")
    assert "Deleted usage 1" in invoke("usage", "delete", "1")
    assert "not found" in invoke("usage", "delete", "1")


def test_customer_update_and_delete(invoke):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")

    assert "1.300 VA" in invoke("customer", "update", "1", "--tier", "1300")
    assert "Deleted customer 1" in invoke("customer", "delete", "1")
    assert "No customers found" in invoke("customer", "list")


def test_tariff_delete(invoke):
    invoke("customer", "add", "--name", "Budi", "--meter", "MTR-0001", "--tier", "900")

    assert "cannot be deleted" in invoke("tariff", "delete", "900")
    assert "Deleted tariff 6.600 VA" in invoke("tariff", "delete", "6600")
    assert "6.600 VA" not in invoke("tariff", "list")

import pytest

from planner.customers import (
    create_customer,
    delete_customer,
    get_customer,
    get_customer_by_meter,
    list_customers,
    update_customer,
)
from planner.errors import ConfigError, NotFoundError, ValidationError
from planner.models import TariffRate
from planner.tariffs import (
    delete_tariff,
    get_tariff,
    list_tariffs,
    load_tariffs_from_yaml,
    save_tariffs_to_db,
)
from planner.usage import record_usage


def test_default_tariffs_loaded(db_path):
    tariffs = list_tariffs(db_path)
    assert [t.power_tier for t in tariffs] == [450, 900, 1300, 2200, 3500, 5500, 6600]
    assert get_tariff(900, db_path) == TariffRate(power_tier=900, rate_per_kwh=1352.0)


def test_missing_tier(db_path):
    with pytest.raises(NotFoundError, match="1000 VA"):
        get_tariff(1000, db_path)


def test_save_updates_existing_tier(db_path):
    save_tariffs_to_db([TariffRate(power_tier=900, rate_per_kwh=1400.0)], db_path)
    assert get_tariff(900, db_path).rate_per_kwh == 1400.0
    assert len(list_tariffs(db_path)) == 7


def test_load_from_yaml(tmp_path):
    config = tmp_path / "tariffs.yaml"
    config.write_text("tariffs:\n  - power_tier: 450\n    rate_per_kwh: 415\n")
    assert load_tariffs_from_yaml(config) == [TariffRate(power_tier=450, rate_per_kwh=415.0)]


@pytest.mark.parametrize(
    "entry",
    [
        "  - power_tier: 450\n    rate_per_kwh: 0\n",
        "  - power_tier: -1\n    rate_per_kwh: 415\n",
        "  - power_tier: 450\n",
    ],
)
def test_load_rejects_bad_entries(tmp_path, entry):
    config = tmp_path / "tariffs.yaml"
    config.write_text("tariffs:\n" + entry)
    with pytest.raises(ConfigError):
        load_tariffs_from_yaml(config)


def test_create_customer(db_path, customer):
    assert customer.id is not None
    assert get_customer_by_meter("MTR-0001", db_path) == customer
    assert list_customers(db_path) == [customer]


def test_create_customer_unknown_tier(db_path):
    with pytest.raises(NotFoundError):
        create_customer("Siti", "MTR-0002", 1000, db_path=db_path)


def test_duplicate_meter_number(db_path, customer):
    with pytest.raises(ValidationError, match="already registered"):
        create_customer("Siti", "MTR-0001", 1300, db_path=db_path)


def test_delete_tariff(db_path):
    delete_tariff(6600, db_path)

    with pytest.raises(NotFoundError):
        get_tariff(6600, db_path)
    with pytest.raises(NotFoundError):
        delete_tariff(6600, db_path)


def test_delete_tariff_in_use(db_path, customer):
    with pytest.raises(ValidationError, match="used by 1 customer"):
        delete_tariff(900, db_path)
    assert get_tariff(900, db_path).rate_per_kwh == 1352.0


def test_update_customer(db_path, customer):
    updated = update_customer(customer.id, name="Budi S.", power_tier=1300, db_path=db_path)

    assert updated.name == "Budi S."
    assert updated.power_tier == 1300
    assert updated.meter_number == "MTR-0001"
    assert get_customer(customer.id, db_path) == updated


def test_update_customer_unknown_tier(db_path, customer):
    with pytest.raises(NotFoundError):
        update_customer(customer.id, power_tier=1000, db_path=db_path)
    assert get_customer(customer.id, db_path).power_tier == 900


def test_update_customer_duplicate_meter(db_path, customer):
    other = create_customer("Siti", "MTR-0002", 1300, db_path=db_path)

    with pytest.raises(ValidationError, match="already registered"):
        update_customer(other.id, meter_number="MTR-0001", db_path=db_path)


def test_update_unknown_customer(db_path):
    with pytest.raises(NotFoundError):
        update_customer(999, name="Nobody", db_path=db_path)


def test_delete_customer(db_path, customer):
    delete_customer(customer.id, db_path)

    assert list_customers(db_path) == []
    with pytest.raises(NotFoundError):
        delete_customer(customer.id, db_path)


def test_delete_customer_with_usage(db_path, customer):
    record_usage(customer.id, 3, 2025, 1000, 1100, db_path)

    with pytest.raises(ValidationError, match="usage record"):
        delete_customer(customer.id, db_path)
    assert get_customer(customer.id, db_path) == customer

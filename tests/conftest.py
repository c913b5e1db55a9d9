import pytest

from planner import db
from planner.customers import create_customer
from planner.tariffs import load_tariffs_from_yaml, save_tariffs_to_db


@pytest.fixture
def db_path(tmp_path):
    """Path to an initialised database with the default tariff table loaded."""
    path = tmp_path / "planner.db"
    db.init_db(path)
    save_tariffs_to_db(load_tariffs_from_yaml(), path)
    return path


@pytest.fixture
def customer(db_path):
    """A 900 VA customer."""
    return create_customer("Budi Santoso", "MTR-0001", 900, "Jl. Merdeka 1", db_path)

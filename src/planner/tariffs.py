"""Tariff loading and lookup."""

import logging
from pathlib import Path

import yaml

from .config import get_settings
from .db import get_connection
from .errors import ConfigError, NotFoundError, ValidationError
from .models import TariffRate

logger = logging.getLogger(__name__)


def load_tariffs_from_yaml(config_path: Path | None = None) -> list[TariffRate]:
    """Load tariff definitions from YAML config file."""
    path = config_path or get_settings().tariffs_path
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    tariffs = []
    for t in data.get("tariffs", []):
        try:
            tariffs.append(
                TariffRate(
                    power_tier=int(t["power_tier"]),
                    rate_per_kwh=float(t["rate_per_kwh"]),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid tariff entry {t!r} in {path}: {e}") from e

    logger.debug("Loaded %d tariff(s) from %s", len(tariffs), path)
    return tariffs


def save_tariffs_to_db(tariffs: list[TariffRate], db_path: Path | None = None) -> int:
    """Insert or update tariffs by power tier. Returns number of tariffs saved."""
    count = 0
    with get_connection(db_path) as conn:
        for tariff in tariffs:
            conn.execute(
                """INSERT INTO tariffs (power_tier, rate_per_kwh) VALUES (?, ?)
                   ON CONFLICT(power_tier) DO UPDATE SET rate_per_kwh = excluded.rate_per_kwh""",
                (tariff.power_tier, tariff.rate_per_kwh),
            )
            count += 1
        conn.commit()

    logger.info("Saved %d tariff(s)", count)
    return count


def list_tariffs(db_path: Path | None = None) -> list[TariffRate]:
    """All stored tariffs, ordered by power tier."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT power_tier, rate_per_kwh FROM tariffs ORDER BY power_tier"
        ).fetchall()
    return [TariffRate(power_tier=r["power_tier"], rate_per_kwh=r["rate_per_kwh"]) for r in rows]


def get_tariff(power_tier: int, db_path: Path | None = None) -> TariffRate:
    """Get the tariff for a power tier."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT power_tier, rate_per_kwh FROM tariffs WHERE power_tier = ?",
            (power_tier,),
        ).fetchone()

    if not row:
        raise NotFoundError(f"No tariff found for {power_tier} VA")
    return TariffRate(power_tier=row["power_tier"], rate_per_kwh=row["rate_per_kwh"])


def delete_tariff(power_tier: int, db_path: Path | None = None) -> None:
    """Delete the tariff for a power tier that no customer is subscribed to.

    Raises:
        NotFoundError: No tariff exists for the tier.
        ValidationError: Customers are still on the tier.
    """
    get_tariff(power_tier, db_path)

    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT COUNT(*) as count FROM customers WHERE power_tier = ?", (power_tier,)
        ).fetchone()
        if row["count"]:
            raise ValidationError(
                f"Tariff {power_tier} VA is used by {row['count']} customer(s) and cannot be deleted"
            )
        conn.execute("DELETE FROM tariffs WHERE power_tier = ?", (power_tier,))
        conn.commit()

    logger.info("Deleted tariff %d VA", power_tier)

"""Data models for tariffs, meter usage, bills and payments."""

import math
from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class TariffRate:
    """A per-kWh rate for a subscribed power tier."""

    power_tier: int  # VA
    rate_per_kwh: float  # rupiah/kWh

    def __post_init__(self):
        if not (math.isfinite(self.power_tier) and math.isfinite(self.rate_per_kwh)):
            raise ValueError(
                f"power_tier and rate_per_kwh must be finite, got {self.power_tier}, {self.rate_per_kwh}"
            )
        if self.power_tier <= 0:
            raise ValueError(f"power_tier must be positive, got {self.power_tier}")
        if self.rate_per_kwh <= 0:
            raise ValueError(f"rate_per_kwh must be positive, got {self.rate_per_kwh}")


@dataclass(frozen=True)
class UsageReading:
    """A pair of cumulative meter readings for one billing period."""

    meter_start: float
    meter_end: float
    period_month: int | None = None
    period_year: int | None = None


@dataclass(frozen=True)
class BillBreakdown:
    """Itemised result of a billing calculation."""

    usage_kwh: float
    energy_cost: int
    admin_fee: int
    total_due: int
    late_penalty: int | None = None

    @property
    def subtotal(self) -> int:
        return self.energy_cost + self.admin_fee

    def to_dict(self) -> dict:
        data = {
            "usage_kwh": self.usage_kwh,
            "energy_cost": self.energy_cost,
            "admin_fee": self.admin_fee,
        }
        if self.late_penalty is not None:
            data["late_penalty"] = self.late_penalty
        data["total_due"] = self.total_due
        return data


@dataclass(frozen=True)
class MeterValidation:
    """Outcome of an advisory meter reading check."""

    valid: bool
    reason: str | None = None


@dataclass
class Customer:
    """A customer subscribed to a power tier."""

    id: int
    name: str
    meter_number: str
    power_tier: int
    address: str | None = None


@dataclass
class Usage:
    """A stored usage record for one customer and period."""

    id: int
    customer_id: int
    period_month: int
    period_year: int
    meter_start: float
    meter_end: float

    def to_reading(self) -> UsageReading:
        return UsageReading(
            meter_start=self.meter_start,
            meter_end=self.meter_end,
            period_month=self.period_month,
            period_year=self.period_year,
        )


@dataclass
class Bill:
    """A generated bill."""

    id: int
    customer_id: int
    usage_id: int
    period_month: int
    period_year: int
    usage_kwh: float
    energy_cost: int
    admin_fee: int
    total_due: int
    status: str  # 'unpaid' or 'paid'
    created_at: datetime | None = None


@dataclass
class Payment:
    """A recorded payment against a bill."""

    id: int
    bill_id: int
    customer_id: int
    paid_on: date
    months_late: int
    admin_fee: int
    late_penalty: int
    total_paid: int

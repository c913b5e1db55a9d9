"""Electricity bill calculation.

Pure functions over value inputs: no I/O, no shared state. Range checks on
meter readings live in validate_meter_reading and are never applied by
calculate_bill itself; callers decide whether to run them first.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from .models import BillBreakdown, MeterValidation, TariffRate, UsageReading

# (upper bound in VA, inclusive) -> flat admin fee, checked in ascending order
ADMIN_FEE_TIERS = (
    (900, 2500),
    (1300, 3500),
    (2200, 4000),
)
MAX_ADMIN_FEE = 5000

LATE_PENALTY_RATE = Decimal("0.02")  # per month late, on the subtotal
MAX_USAGE_KWH = 2000


def round_currency(value) -> int:
    """Round to a whole currency unit, half away from zero."""
    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # shortest repr: 1444.7 becomes Decimal("1444.7"), not its binary expansion
    return Decimal(str(value))


def compute_usage_kwh(reading: UsageReading) -> float:
    """Usage between two meter readings, clamped at zero (non-finite deltas count as zero)."""
    usage = reading.meter_end - reading.meter_start
    if not math.isfinite(usage):
        return 0
    return max(0, usage)


def compute_admin_fee(power_tier: float) -> int:
    """Flat admin fee for a subscribed power tier."""
    for upper_bound, fee in ADMIN_FEE_TIERS:
        if power_tier <= upper_bound:
            return fee
    return MAX_ADMIN_FEE


def compute_late_penalty(subtotal: float, months_late: int) -> int:
    """Non-compounding surcharge of 2% of the subtotal per month late."""
    if not (math.isfinite(months_late) and math.isfinite(subtotal)) or months_late <= 0:
        return 0
    return round_currency(
        _to_decimal(subtotal) * LATE_PENALTY_RATE * _to_decimal(months_late)
    )


def calculate_bill(
    reading: UsageReading, tariff: TariffRate, months_late: int = 0
) -> BillBreakdown:
    """Calculate the bill for a usage reading under a tariff.

    Args:
        reading: Meter readings for the period.
        tariff: Rate and power tier the customer is subscribed to.
        months_late: Whole months past the due date (0 for a fresh bill).

    Returns:
        BillBreakdown. late_penalty is None unless a positive penalty applies.
    """
    usage_kwh = compute_usage_kwh(reading)
    energy_cost = round_currency(_to_decimal(usage_kwh) * _to_decimal(tariff.rate_per_kwh))
    admin_fee = compute_admin_fee(tariff.power_tier)
    subtotal = energy_cost + admin_fee

    late_penalty = compute_late_penalty(subtotal, months_late)

    return BillBreakdown(
        usage_kwh=usage_kwh,
        energy_cost=energy_cost,
        admin_fee=admin_fee,
        total_due=subtotal + late_penalty,
        late_penalty=late_penalty if late_penalty > 0 else None,
    )


def validate_meter_reading(meter_start: float, meter_end: float) -> MeterValidation:
    """Advisory check of a meter reading pair.

    Rejects negative readings, readings that run backwards, and usage above
    MAX_USAGE_KWH (an anomaly heuristic, not a physical limit). Never raises.
    """
    if not (math.isfinite(meter_start) and math.isfinite(meter_end)):
        return MeterValidation(valid=False, reason="non-finite meter reading")

    if meter_start < 0 or meter_end < 0:
        return MeterValidation(valid=False, reason="negative meter reading")

    if meter_end < meter_start:
        return MeterValidation(valid=False, reason="meter_end < meter_start")

    if meter_end - meter_start > MAX_USAGE_KWH:
        return MeterValidation(
            valid=False, reason=f"usage exceeds {MAX_USAGE_KWH} kWh ceiling"
        )

    return MeterValidation(valid=True)

"""Indonesian-style number, currency and bill formatting."""

from .billing import round_currency
from .models import BillBreakdown


def format_number(number: float, decimals: int = 0) -> str:
    """Format with '.' thousands separators and ',' as the decimal mark."""
    text = f"{number:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(amount: float) -> str:
    """Format an amount in whole rupiah, e.g. 'Rp 137.700'."""
    value = round_currency(amount)
    if value < 0:
        return f"-Rp {format_number(-value)}"
    return f"Rp {format_number(value)}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{format_number(value, decimals)}%"


def format_kwh(kwh: float) -> str:
    return f"{format_number(kwh, 2)} kWh"


def format_watt(watt: float) -> str:
    return f"{format_number(watt)} VA"


def format_breakdown(breakdown: BillBreakdown) -> str:
    """Format a bill breakdown as human-readable text."""
    lines = [
        "Electricity Bill Breakdown:",
        f"Usage: {format_kwh(breakdown.usage_kwh)}",
        f"Energy cost: {format_currency(breakdown.energy_cost)}",
        f"Admin fee: {format_currency(breakdown.admin_fee)}",
    ]

    if breakdown.late_penalty:
        lines.append(f"Late penalty: {format_currency(breakdown.late_penalty)}")

    lines.append(f"TOTAL: {format_currency(breakdown.total_due)}")
    return "\n".join(lines)

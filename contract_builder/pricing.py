from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict

from .formatters import parse_datetime, to_amount

RENTAL_DAY = timedelta(hours=24)
# A rental day is 24h; returning within 59 minutes of the boundary is not billed.
DAY_TOLERANCE = timedelta(minutes=59)

SURCHARGE_FIELDS = (
    "delivery_cost",
    "fuel_charge",
    "after_hours_charge",
    "extras_charge",
    "extra_km_charge",
    "franchise_charge",
)

CENTS = Decimal("0.01")


def billable_days(start: Any, end: Any, tolerance: timedelta = DAY_TOLERANCE) -> int:
    """Number of rental days between two timestamps, never less than one."""
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)
    if start_dt is None or end_dt is None:
        return 1
    if (start_dt.tzinfo is None) != (end_dt.tzinfo is None):
        start_dt = start_dt.replace(tzinfo=None)
        end_dt = end_dt.replace(tzinfo=None)
    elapsed = end_dt - start_dt
    if elapsed <= timedelta(0):
        return 1
    days, remainder = divmod(elapsed, RENTAL_DAY)
    if remainder > tolerance:
        days += 1
    return max(int(days), 1)


@dataclass(frozen=True)
class PricingBreakdown:
    daily_rate: Decimal
    total_days: int
    subtotal: Decimal
    surcharges: Dict[str, Decimal]
    discount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    amount_due: Decimal


def compute_pricing(rental) -> PricingBreakdown:
    """
    Derive subtotal, total and outstanding amount from the rate and charges.

    subtotal = daily_rate * total_days
    total    = subtotal + surcharges - discount
    due      = total - paid  (negative when the customer overpaid)
    """
    days = rental.total_days
    if days is None:
        days = billable_days(rental.pickup_date, rental.expected_return_date)

    daily_rate = to_amount(rental.daily_rate)
    subtotal = (daily_rate * days).quantize(CENTS)
    surcharges = {name: to_amount(getattr(rental, name)).quantize(CENTS) for name in SURCHARGE_FIELDS}
    discount = to_amount(rental.discount).quantize(CENTS)
    total = subtotal + sum(surcharges.values(), Decimal("0")) - discount
    paid = to_amount(rental.amount_paid).quantize(CENTS)

    return PricingBreakdown(
        daily_rate=daily_rate,
        total_days=int(days),
        subtotal=subtotal,
        surcharges=surcharges,
        discount=discount,
        total_amount=total,
        amount_paid=paid,
        amount_due=total - paid,
    )


__all__ = ["billable_days", "compute_pricing", "PricingBreakdown", "SURCHARGE_FIELDS"]

"""
Display formatting for contract values.

Every function here is total: bad or missing input falls back to a fixed
placeholder (or a zero amount) instead of raising, so section builders can pass
raw record values straight through.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

PLACEHOLDER = "N/A"
CURRENCY_SYMBOL = "€"

_FALLBACK_FORMATS = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y, %H:%M",
    "%d/%m/%Y",
)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a date/datetime/ISO string into a datetime. Returns None when the
    value is empty or cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _localize(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is not None and dt.tzinfo is not None:
        return dt.astimezone(tz)
    return dt


def format_date(value: Any, tz: Optional[tzinfo] = None) -> str:
    dt = parse_datetime(value)
    if dt is None:
        return PLACEHOLDER
    return _localize(dt, tz).strftime("%d/%m/%Y")


def format_datetime(value: Any, tz: Optional[tzinfo] = None) -> str:
    dt = parse_datetime(value)
    if dt is None:
        return PLACEHOLDER
    return _localize(dt, tz).strftime("%d/%m/%Y, %H:%M")


def to_amount(value: Any) -> Decimal:
    """Money as a Decimal; None, NaN, infinities and junk become zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def format_currency(value: Any) -> str:
    amount = to_amount(value).quantize(Decimal("0.01"))
    if amount == 0:
        amount = Decimal("0.00")
    return f"{CURRENCY_SYMBOL} {amount:.2f}"


def _plain_number(value: Any) -> Optional[str]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def format_percent(value: Any, missing: str = PLACEHOLDER) -> str:
    number = _plain_number(value)
    return f"{number}%" if number is not None else missing


def format_km(value: Any, missing: str = PLACEHOLDER) -> str:
    number = _plain_number(value)
    return number if number is not None else missing


def format_km_included(value: Any, unlimited_label: str) -> str:
    if value is None or str(value).strip() == "" or str(value).strip().lower() == "unlimited":
        return unlimited_label
    return str(value).strip()


def display(value: Any) -> str:
    """Plain text for a free-form field, or the placeholder."""
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    return text or PLACEHOLDER


__all__ = [
    "PLACEHOLDER",
    "CURRENCY_SYMBOL",
    "parse_datetime",
    "format_date",
    "format_datetime",
    "to_amount",
    "format_currency",
    "format_percent",
    "format_km",
    "format_km_included",
    "display",
]

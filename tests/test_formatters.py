from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from contract_builder import formatters


@pytest.mark.parametrize(
    "value, expected",
    [
        (12.5, "€ 12.50"),
        ("99.999", "€ 100.00"),
        (Decimal("7"), "€ 7.00"),
        (None, "€ 0.00"),
        ("abc", "€ 0.00"),
        (float("nan"), "€ 0.00"),
        (float("inf"), "€ 0.00"),
        (-0.0, "€ 0.00"),
        (-50, "€ -50.00"),
    ],
)
def test_format_currency(value, expected):
    assert formatters.format_currency(value) == expected


def test_dates_use_italian_day_first_order():
    assert formatters.format_date("2024-03-05T10:30:00") == "05/03/2024"
    assert formatters.format_datetime("2024-03-05T10:30:00") == "05/03/2024, 10:30"
    assert formatters.format_date(date(2024, 12, 1)) == "01/12/2024"
    assert formatters.format_datetime(datetime(2024, 1, 2, 8, 5)) == "02/01/2024, 08:05"


@pytest.mark.parametrize("value", [None, "", "not a date", 12345])
def test_unparseable_dates_render_placeholder(value):
    assert formatters.format_date(value) == "N/A"
    assert formatters.format_datetime(value) == "N/A"


def test_datetime_converted_only_when_timezone_given():
    stamp = "2024-03-05T10:30:00Z"
    assert formatters.format_datetime(stamp) == "05/03/2024, 10:30"
    rome_winter = timezone(timedelta(hours=1))
    assert formatters.format_datetime(stamp, tz=rome_winter) == "05/03/2024, 11:30"


def test_parse_datetime_accepts_day_first_strings():
    assert formatters.parse_datetime("05/03/2024") == datetime(2024, 3, 5)
    assert formatters.parse_datetime("05/03/2024 14:20") == datetime(2024, 3, 5, 14, 20)


def test_percent_and_km():
    assert formatters.format_percent(75) == "75%"
    assert formatters.format_percent(50.0) == "50%"
    assert formatters.format_percent(62.5) == "62.5%"
    assert formatters.format_percent(None) == "N/A"
    assert formatters.format_percent(None, missing="0%") == "0%"
    assert formatters.format_km(12000) == "12000"
    assert formatters.format_km("") == "N/A"
    assert formatters.format_km(None, missing="0") == "0"


@pytest.mark.parametrize("value", [None, "", "unlimited", "Unlimited"])
def test_km_included_unlimited(value):
    assert formatters.format_km_included(value, "Illimitati") == "Illimitati"


def test_km_included_limited():
    assert formatters.format_km_included(" 300 ", "Illimitati") == "300"


def test_display_blank_text():
    assert formatters.display("  ") == "N/A"
    assert formatters.display(None) == "N/A"
    assert formatters.display(" Panda ") == "Panda"

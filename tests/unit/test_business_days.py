"""Unit coverage for the business-day calendar."""

from __future__ import annotations

import datetime as dt

import pytest

from nominamx.config.schema import PayrollConfig
from nominamx.services.business_days import (
    BusinessCalendar,
    BusinessDayCalculator,
    count_business_days,
    federal_holidays,
    is_inauguration_year,
    nth_weekday_of_month,
)


@pytest.fixture()
def calculator_2025() -> BusinessDayCalculator:
    return BusinessDayCalculator(2025)


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        ("2025-01-06", "2025-01-10", 5),
        ("2025-01-03", "2025-01-06", 2),
        ("2025-01-01", "2025-01-03", 2),
        ("2025-01-10", "2025-01-06", 0),
        ("2025-01-04", "2025-01-04", 0),
    ],
)
def test_business_day_count_scenarios(
    calculator_2025: BusinessDayCalculator, start: str, end: str, expected: int
) -> None:
    assert calculator_2025.business_day_count(start, end) == expected


def test_business_day_count_accepts_dates(calculator_2025: BusinessDayCalculator) -> None:
    count = calculator_2025.business_day_count(dt.date(2025, 1, 6), dt.date(2025, 1, 10))

    assert count == 5
    assert isinstance(count, int)


def test_federal_holidays_2025() -> None:
    assert [day.isoformat() for day in federal_holidays(2025)] == [
        "2025-01-01",
        "2025-02-03",
        "2025-03-17",
        "2025-05-01",
        "2025-09-16",
        "2025-11-17",
        "2025-12-25",
    ]


def test_inauguration_day_is_opt_in() -> None:
    assert dt.date(2030, 12, 1) not in federal_holidays(2030)
    assert dt.date(2030, 12, 1) in federal_holidays(2030, include_inauguration_day=True)
    assert dt.date(2025, 12, 1) not in federal_holidays(2025, include_inauguration_day=True)
    assert is_inauguration_year(2024)
    assert not is_inauguration_year(2019)


def test_nth_weekday_of_month() -> None:
    assert nth_weekday_of_month(2024, 3, 0, 3) == dt.date(2024, 3, 18)
    assert nth_weekday_of_month(2024, 2, 0, 1) == dt.date(2024, 2, 5)


def test_nth_weekday_of_month_rejects_missing_occurrence() -> None:
    with pytest.raises(ValueError):
        nth_weekday_of_month(2025, 2, 0, 5)


def test_weekend_and_holiday_checks(calculator_2025: BusinessDayCalculator) -> None:
    assert calculator_2025.is_weekend("2025-01-04")
    assert calculator_2025.is_holiday("2025-09-16")
    assert not calculator_2025.is_business_day("2025-09-16")
    assert calculator_2025.is_business_day("2025-09-17")


def test_single_day_count_matches_business_day_check(
    calculator_2025: BusinessDayCalculator,
) -> None:
    day = dt.date(2025, 1, 1)
    while day.year == 2025:
        expected = 1 if calculator_2025.is_business_day(day) else 0
        assert calculator_2025.business_day_count(day, day) == expected
        day += dt.timedelta(days=1)


def test_custom_holiday_round_trip(calculator_2025: BusinessDayCalculator) -> None:
    before = calculator_2025.holidays()

    calculator_2025.add_custom_holiday("2025-12-24")
    assert calculator_2025.is_holiday(dt.date(2025, 12, 24))
    assert calculator_2025.business_day_count("2025-12-22", "2025-12-26") == 3

    calculator_2025.remove_holiday(dt.date(2025, 12, 24))
    assert calculator_2025.holidays() == before


def test_remove_unknown_holiday_is_ignored(calculator_2025: BusinessDayCalculator) -> None:
    before = calculator_2025.holidays()

    calculator_2025.remove_holiday("2025-07-01")

    assert calculator_2025.holidays() == before


def test_invalid_date_strings_are_rejected(calculator_2025: BusinessDayCalculator) -> None:
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        calculator_2025.add_custom_holiday("24/12/2025")


def test_calendar_spans_year_boundary() -> None:
    # 2024-12-23..31 has 6 business days (Dec 25 is a holiday) and
    # 2025-01-01..10 has 7 (Jan 1 is a holiday).
    calendar = BusinessCalendar()

    assert calendar.business_day_count("2024-12-23", "2025-01-10") == 13
    assert (
        BusinessDayCalculator(2024).business_day_count("2024-12-23", "2024-12-31")
        + BusinessDayCalculator(2025).business_day_count("2025-01-01", "2025-01-10")
        == 13
    )
    assert count_business_days("2024-12-23", "2025-01-10") == 13


def test_calendar_routes_custom_holidays_to_their_year() -> None:
    calendar = BusinessCalendar(holidays=["2026-01-02"])

    assert calendar.is_holiday("2026-01-02")
    assert "2026-01-02" not in calendar.holidays(2025)

    calendar.remove_holiday("2026-01-02")
    assert calendar.is_business_day("2026-01-02")


def test_calendar_removal_before_first_use() -> None:
    calendar = BusinessCalendar()
    calendar.remove_holiday("2027-09-16")

    assert not calendar.is_holiday("2027-09-16")


def test_calendar_from_regional(payroll_config: PayrollConfig) -> None:
    calendar = BusinessCalendar.from_regional(payroll_config.regional)

    assert calendar.is_holiday("2025-11-02")
    assert not calendar.is_holiday("2025-08-25")

    municipal = BusinessCalendar.from_regional(
        payroll_config.regional, scopes=("all", "state", "municipality")
    )
    assert municipal.is_holiday("2025-08-25")
    assert municipal.business_day_count("2025-08-25", "2025-08-29") == 4

"""Business-day counting over the Mexican federal holiday calendar.

Holidays follow Article 74 of the Ley Federal del Trabajo: four fixed dates
plus three Mondays that move every year. :class:`BusinessDayCalculator` is
bound to a single calendar year; :class:`BusinessCalendar` spans arbitrary
ranges by keeping one calculator per year.

Instances hold a mutable holiday set. Finish adding or removing holidays
before sharing an instance between threads.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Iterator
from typing import Union

from nominamx.config.schema import RegionalConfig

_LOGGER = logging.getLogger(__name__)

DateLike = Union[dt.date, str]

MONDAY = 0
SATURDAY = 5

# Presidential terms begin on 1 December every six years starting in 2024.
INAUGURATION_BASE_YEAR = 2024
INAUGURATION_CYCLE = 6

_FIXED_HOLIDAYS = ((1, 1), (5, 1), (9, 16), (12, 25))
# (month, occurrence) of the Monday holidays.
_MONDAY_HOLIDAYS = ((2, 1), (3, 3), (11, 3))


def _coerce_date(value: DateLike) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValueError(f"Dates must use the YYYY-MM-DD format, got '{value}'") from exc
    raise TypeError(f"Unsupported date value: {value!r}")


def _iter_days(start: dt.date, end: dt.date) -> Iterator[dt.date]:
    current = start
    step = dt.timedelta(days=1)
    while current <= end:
        yield current
        current += step


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> dt.date:
    """Return the ``n``-th ``weekday`` (Monday is 0) of ``month`` in ``year``."""

    if n < 1:
        raise ValueError("occurrence must be at least 1")

    current = dt.date(year, month, 1)
    count = 0
    while current.month == month:
        if current.weekday() == weekday:
            count += 1
            if count == n:
                return current
        current += dt.timedelta(days=1)
    raise ValueError(f"{year}-{month:02d} has fewer than {n} matching weekdays")


def is_inauguration_year(year: int) -> bool:
    return year >= INAUGURATION_BASE_YEAR and (
        (year - INAUGURATION_BASE_YEAR) % INAUGURATION_CYCLE == 0
    )


def federal_holidays(year: int, include_inauguration_day: bool = False) -> list[dt.date]:
    """Return the statutory rest days for ``year`` in calendar order."""

    holidays = [dt.date(year, month, day) for month, day in _FIXED_HOLIDAYS]
    holidays.extend(
        nth_weekday_of_month(year, month, MONDAY, occurrence)
        for month, occurrence in _MONDAY_HOLIDAYS
    )
    if include_inauguration_day and is_inauguration_year(year):
        holidays.append(dt.date(year, 12, 1))
    return sorted(holidays)


class BusinessDayCalculator:
    """Weekend and holiday aware day counter bound to one calendar year."""

    def __init__(
        self,
        year: int,
        holidays: Iterable[DateLike] = (),
        include_inauguration_day: bool = False,
    ) -> None:
        self.year = year
        self._holidays: set[str] = {
            holiday.isoformat()
            for holiday in federal_holidays(year, include_inauguration_day)
        }
        for holiday in holidays:
            self.add_custom_holiday(holiday)

    @staticmethod
    def is_weekend(date: DateLike) -> bool:
        return _coerce_date(date).weekday() >= SATURDAY

    def is_holiday(self, date: DateLike) -> bool:
        return _coerce_date(date).isoformat() in self._holidays

    def is_business_day(self, date: DateLike) -> bool:
        day = _coerce_date(date)
        return not self.is_weekend(day) and not self.is_holiday(day)

    def business_day_count(self, start: DateLike, end: DateLike) -> int:
        """Count business days from ``start`` to ``end`` inclusive.

        Returns 0 when ``end`` precedes ``start``.
        """

        first = _coerce_date(start)
        last = _coerce_date(end)
        return sum(1 for day in _iter_days(first, last) if self.is_business_day(day))

    def add_custom_holiday(self, date: DateLike) -> None:
        self._holidays.add(_coerce_date(date).isoformat())

    def remove_holiday(self, date: DateLike) -> None:
        """Remove ``date`` from the holiday set; unknown dates are ignored."""

        self._holidays.discard(_coerce_date(date).isoformat())

    def holidays(self) -> list[str]:
        return sorted(self._holidays)


class BusinessCalendar:
    """Business-day counter for ranges spanning any number of years.

    A :class:`BusinessDayCalculator` is created for each year on first use.
    Custom holidays and removals are routed to the calculator of their year,
    including years that have not been touched yet.
    """

    def __init__(
        self,
        holidays: Iterable[DateLike] = (),
        include_inauguration_day: bool = False,
    ) -> None:
        self._include_inauguration_day = include_inauguration_day
        self._calculators: dict[int, BusinessDayCalculator] = {}
        self._pending_additions: dict[int, set[dt.date]] = {}
        self._pending_removals: dict[int, set[dt.date]] = {}
        for holiday in holidays:
            self.add_custom_holiday(holiday)

    @classmethod
    def from_regional(
        cls,
        regional: RegionalConfig,
        scopes: Iterable[str] = ("all", "state"),
        include_inauguration_day: bool = False,
    ) -> BusinessCalendar:
        """Seed the calendar with the local holidays matching ``scopes``."""

        wanted = set(scopes)
        selected = [
            holiday.date for holiday in regional.local_holidays if holiday.applies_to in wanted
        ]
        _LOGGER.debug(
            "Seeding calendar for %s with %d local holiday(s)",
            regional.state.name,
            len(selected),
        )
        return cls(holidays=selected, include_inauguration_day=include_inauguration_day)

    def calculator_for(self, year: int) -> BusinessDayCalculator:
        calculator = self._calculators.get(year)
        if calculator is None:
            calculator = BusinessDayCalculator(
                year,
                holidays=self._pending_additions.pop(year, ()),
                include_inauguration_day=self._include_inauguration_day,
            )
            for removed in self._pending_removals.pop(year, ()):
                calculator.remove_holiday(removed)
            self._calculators[year] = calculator
        return calculator

    def add_custom_holiday(self, date: DateLike) -> None:
        day = _coerce_date(date)
        calculator = self._calculators.get(day.year)
        if calculator is not None:
            calculator.add_custom_holiday(day)
            return
        self._pending_removals.get(day.year, set()).discard(day)
        self._pending_additions.setdefault(day.year, set()).add(day)

    def remove_holiday(self, date: DateLike) -> None:
        day = _coerce_date(date)
        calculator = self._calculators.get(day.year)
        if calculator is not None:
            calculator.remove_holiday(day)
            return
        self._pending_additions.get(day.year, set()).discard(day)
        self._pending_removals.setdefault(day.year, set()).add(day)

    def is_holiday(self, date: DateLike) -> bool:
        day = _coerce_date(date)
        return self.calculator_for(day.year).is_holiday(day)

    def is_business_day(self, date: DateLike) -> bool:
        day = _coerce_date(date)
        return self.calculator_for(day.year).is_business_day(day)

    def business_day_count(self, start: DateLike, end: DateLike) -> int:
        """Count business days from ``start`` to ``end`` inclusive across years."""

        first = _coerce_date(start)
        last = _coerce_date(end)
        if last < first:
            return 0

        total = 0
        for year in range(first.year, last.year + 1):
            segment_start = max(first, dt.date(year, 1, 1))
            segment_end = min(last, dt.date(year, 12, 31))
            total += self.calculator_for(year).business_day_count(segment_start, segment_end)
        return total

    def holidays(self, year: int) -> list[str]:
        return self.calculator_for(year).holidays()


def count_business_days(
    start: DateLike,
    end: DateLike,
    include_inauguration_day: bool = False,
) -> int:
    """Count federal business days between two dates, inclusive."""

    calendar = BusinessCalendar(include_inauguration_day=include_inauguration_day)
    return calendar.business_day_count(start, end)


__all__ = [
    "BusinessCalendar",
    "BusinessDayCalculator",
    "count_business_days",
    "federal_holidays",
    "is_inauguration_year",
    "nth_weekday_of_month",
]

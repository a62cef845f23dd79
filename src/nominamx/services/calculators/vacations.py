"""Vacation entitlement under the 2023 LFT reform."""

from __future__ import annotations

import logging

from nominamx.config.schema import PayrollConfig

from .labor import ExemptSplit, split_exempt
from .utils import InvalidInputError, ensure_amount

_LOGGER = logging.getLogger(__name__)

# (minimum years of service, days). Used only when no table is configured.
FALLBACK_VACATION_STAIRCASE: tuple[tuple[int, int], ...] = (
    (2, 14),
    (6, 16),
    (11, 18),
    (16, 20),
    (21, 22),
    (26, 24),
    (31, 26),
    (36, 28),
    (41, 30),
    (46, 32),
    (51, 34),
)


class VacationCalculator:
    """Resolve vacation days and vacation premium for an employee."""

    def __init__(self, config: PayrollConfig) -> None:
        self._config = config
        self._rules = config.labor_concepts.vacations
        self._fallback_logged = False

    @property
    def uses_fallback_table(self) -> bool:
        return not self._rules.vacation_days_table

    def _staircase(self) -> tuple[tuple[int, int], ...]:
        if self._rules.vacation_days_table:
            return tuple(
                (entry.years_of_service, entry.days)
                for entry in self._rules.vacation_days_table
            )
        if not self._fallback_logged:
            _LOGGER.warning(
                "No vacation days table configured; using the built-in LFT staircase"
            )
            self._fallback_logged = True
        return FALLBACK_VACATION_STAIRCASE

    def entitled_days(self, years_of_service: int) -> int:
        """Return the vacation days earned after ``years_of_service`` years."""

        if isinstance(years_of_service, bool) or not isinstance(years_of_service, int):
            raise InvalidInputError("years_of_service must be an integer")
        if years_of_service < 0:
            raise InvalidInputError("years_of_service cannot be negative")

        first_year_days = self._rules.first_year_days
        if years_of_service <= 1:
            return first_year_days

        days = first_year_days
        for minimum_years, entry_days in self._staircase():
            if minimum_years > years_of_service:
                break
            days = entry_days
        return max(days, first_year_days)

    def vacation_premium(self, daily_salary: float, days: float) -> ExemptSplit:
        """Vacation premium for ``days`` of leave, split by the UMA exemption."""

        daily = ensure_amount(daily_salary, "daily_salary")
        leave_days = ensure_amount(days, "days")
        amount = daily * leave_days * self._rules.vacation_premium_rate
        return split_exempt(
            amount,
            self._rules.tax_exempt_uma_limit,
            self._config.official_values.uma.daily_value,
        )


__all__ = ["FALLBACK_VACATION_STAIRCASE", "VacationCalculator"]

"""Labor-concept calculators (aguinaldo, overtime, premiums and benefits)."""

from __future__ import annotations

from dataclasses import dataclass

from nominamx.config.schema import PayrollConfig

from .utils import ensure_amount


@dataclass(frozen=True)
class ExemptSplit:
    """An amount split into its tax-exempt and taxable parts."""

    exempt: float
    taxable: float

    @property
    def total(self) -> float:
        return self.exempt + self.taxable


def split_exempt(amount: float, limit_in_umas: float, uma_daily: float) -> ExemptSplit:
    """Split ``amount`` so at most ``limit_in_umas`` UMAs are exempt."""

    value = ensure_amount(amount)
    cap = ensure_amount(limit_in_umas, "limit_in_umas") * ensure_amount(uma_daily, "uma_daily")
    exempt = min(value, cap)
    return ExemptSplit(exempt=exempt, taxable=value - exempt)


class LaborConceptCalculator:
    """Computes statutory labor payments from the bound configuration."""

    def __init__(self, config: PayrollConfig) -> None:
        self._config = config
        self._concepts = config.labor_concepts
        self._uma_daily = config.official_values.uma.daily_value

    def minimum_wage(self, zone: str | None = None) -> float:
        """Daily minimum wage for ``zone``, falling back to the default zone."""

        return self._config.official_values.minimum_wages.daily_value_for_zone(zone)

    def hourly_rate(self, daily_salary: float) -> float:
        daily = ensure_amount(daily_salary, "daily_salary")
        return daily / self._concepts.work_schedule.daily_hours

    def aguinaldo(self, daily_salary: float, days_worked: float = 365) -> ExemptSplit:
        """Year-end bonus, proportional to the days worked in the year.

        Up to ``tax_exempt_uma_limit`` UMAs of the bonus are exempt.
        """

        daily = ensure_amount(daily_salary, "daily_salary")
        worked = ensure_amount(days_worked, "days_worked")
        rules = self._concepts.christmas_bonus
        annual_days = self._concepts.work_schedule.annual_days
        proportion = min(worked / annual_days, 1.0)
        amount = daily * rules.minimum_days * proportion
        return split_exempt(amount, rules.tax_exempt_uma_limit, self._uma_daily)

    def overtime_pay(
        self,
        daily_salary: float,
        double_hours: float = 0,
        triple_hours: float = 0,
    ) -> ExemptSplit:
        """Overtime pay; half of the double-time pay is exempt up to the UMA limit.

        Triple-time hours are fully taxable.
        """

        hourly = self.hourly_rate(daily_salary)
        double = ensure_amount(double_hours, "double_hours")
        triple = ensure_amount(triple_hours, "triple_hours")
        rules = self._concepts.overtime

        double_pay = hourly * double * rules.double_time_percentage
        triple_pay = hourly * triple * rules.triple_time_percentage
        exemptable = split_exempt(double_pay / 2, rules.tax_exempt_uma_limit, self._uma_daily)
        return ExemptSplit(
            exempt=exemptable.exempt,
            taxable=double_pay + triple_pay - exemptable.exempt,
        )

    def sunday_premium(self, daily_salary: float, sundays: int = 1) -> ExemptSplit:
        daily = ensure_amount(daily_salary, "daily_salary")
        count = ensure_amount(sundays, "sundays")
        rules = self._concepts.sunday_premium
        amount = daily * rules.percentage * count
        return split_exempt(amount, rules.tax_exempt_uma_limit * count, self._uma_daily)

    def savings_fund_contribution(self, salary: float, days: float = 1) -> float:
        """Employer savings fund contribution, capped at the configured UMAs per day."""

        base = ensure_amount(salary, "salary")
        period_days = ensure_amount(days, "days")
        rules = self._concepts.savings_fund
        contribution = base * rules.employer_contribution_percentage
        cap = rules.max_contribution_uma_limit * self._uma_daily * period_days
        return min(contribution, cap)

    def food_voucher_split(self, amount: float, days: float = 1) -> ExemptSplit:
        rules = self._concepts.food_vouchers
        period_days = ensure_amount(days, "days")
        return split_exempt(amount, rules.max_exempt_uma_limit * period_days, self._uma_daily)


__all__ = ["ExemptSplit", "LaborConceptCalculator", "split_exempt"]

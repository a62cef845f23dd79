"""IMSS, INFONAVIT and state payroll tax contribution calculators.

Every component is a plain ``rate * base`` product. Capping the base against
the IMSS maximum (UMA times the configured multiplier) is a separate step
exposed through :func:`capped_base` and
:meth:`ContributionCalculator.capped_imss_base`, so call sites compose the cap
explicitly before any rate is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from nominamx.config.schema import (
    IMSSPartyRates,
    PayrollConfig,
    RegionalConfig,
    WorkRiskClass,
)

from .utils import InvalidInputError, ensure_amount


class InfonavitCreditType(str, Enum):
    """Discount schemes for employees repaying an INFONAVIT credit."""

    PERCENTAGE = "porcentaje"
    FIXED_AMOUNT = "cuota_fija"
    UMA_MULTIPLE = "veces_salario_minimo"


@dataclass(frozen=True)
class ContributionBreakdown:
    """Per-component contribution amounts and their total."""

    base: float
    components: Mapping[str, float]

    @property
    def total(self) -> float:
        return sum(self.components.values())


def capped_base(raw_base: float, max_multiplier: float, uma: float) -> float:
    """Return ``raw_base`` limited to ``max_multiplier`` times ``uma``."""

    base = ensure_amount(raw_base, "raw_base")
    multiplier = ensure_amount(max_multiplier, "max_multiplier")
    uma_value = ensure_amount(uma, "uma")
    return min(base, multiplier * uma_value)


def _resolve_risk_class(value: WorkRiskClass | str) -> WorkRiskClass:
    try:
        return WorkRiskClass(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown work risk class '{value}'") from exc


class ContributionCalculator:
    """Social security contribution calculator bound to one configuration."""

    def __init__(
        self,
        config: PayrollConfig,
        work_risk_class: WorkRiskClass | str = WorkRiskClass.I,
    ) -> None:
        self._config = config
        self._rates = config.contribution_rates
        self.work_risk_class = _resolve_risk_class(work_risk_class)

    @staticmethod
    def _common_components(rates: IMSSPartyRates) -> dict[str, float]:
        return {
            "disease_maternity_insurance": rates.disease_maternity_insurance,
            "disability_life": rates.disability_life,
            "retirement": rates.retirement,
            "severance_old_age": rates.severance_old_age.base,
            "childcare_social_benefits": rates.childcare_social_benefits,
        }

    def employer_components(
        self, work_risk_class: WorkRiskClass | str | None = None
    ) -> Mapping[str, float]:
        """Return the employer rates that make up the total employer rate.

        Severance/old-age credits are not part of the total; see
        :meth:`severance_credits_contribution`.
        """

        risk_class = (
            self.work_risk_class
            if work_risk_class is None
            else _resolve_risk_class(work_risk_class)
        )
        employer = self._rates.imss.employer
        components = self._common_components(employer)
        components["work_risk"] = employer.work_risk.rate_for_class(risk_class)
        return MappingProxyType(components)

    def employee_components(self) -> Mapping[str, float]:
        """Return the employee rates; work risk is funded by the employer only."""

        return MappingProxyType(self._common_components(self._rates.imss.employee))

    def total_employer_rate(self, work_risk_class: WorkRiskClass | str | None = None) -> float:
        return sum(self.employer_components(work_risk_class).values())

    def total_employee_rate(self) -> float:
        return sum(self.employee_components().values())

    def employer_breakdown(
        self,
        base_salary: float,
        work_risk_class: WorkRiskClass | str | None = None,
    ) -> ContributionBreakdown:
        base = ensure_amount(base_salary, "base_salary")
        components = {
            name: base * rate
            for name, rate in self.employer_components(work_risk_class).items()
        }
        return ContributionBreakdown(base=base, components=MappingProxyType(components))

    def employee_breakdown(self, base_salary: float) -> ContributionBreakdown:
        base = ensure_amount(base_salary, "base_salary")
        components = {name: base * rate for name, rate in self.employee_components().items()}
        return ContributionBreakdown(base=base, components=MappingProxyType(components))

    def employer_contribution(
        self,
        base_salary: float,
        work_risk_class: WorkRiskClass | str | None = None,
    ) -> float:
        """Employer IMSS contribution for ``base_salary`` (no capping applied)."""

        return self.employer_breakdown(base_salary, work_risk_class).total

    def employee_contribution(self, base_salary: float) -> float:
        """Employee IMSS contribution for ``base_salary`` (no capping applied)."""

        return self.employee_breakdown(base_salary).total

    def severance_credits_contribution(self, base_salary: float, party: str = "employer") -> float:
        """Apply the severance/old-age credits sub-rate on its own."""

        base = ensure_amount(base_salary, "base_salary")
        if party not in {"employer", "employee"}:
            raise InvalidInputError("party must be 'employer' or 'employee'")
        rates: IMSSPartyRates = getattr(self._rates.imss, party)
        return base * rates.severance_old_age.credits

    def capped_imss_base(self, raw_base: float) -> float:
        """Cap ``raw_base`` at the configured IMSS maximum (UMA x multiplier)."""

        official = self._config.official_values
        return capped_base(raw_base, official.limits.imss_cap.multiplier, official.uma.daily_value)

    def employee_period_contribution(self, sdi: float, working_days: float) -> ContributionBreakdown:
        """Employee IMSS amounts for a period from a daily integrated salary.

        The SDI is capped before it is multiplied by the working days.
        """

        days = ensure_amount(working_days, "working_days")
        return self.employee_breakdown(self.capped_imss_base(sdi) * days)

    def employer_period_contribution(
        self,
        sdi: float,
        working_days: float,
        work_risk_class: WorkRiskClass | str | None = None,
    ) -> ContributionBreakdown:
        days = ensure_amount(working_days, "working_days")
        return self.employer_breakdown(self.capped_imss_base(sdi) * days, work_risk_class)

    def infonavit_employer_contribution(self, base_salary: float) -> float:
        base = ensure_amount(base_salary, "base_salary")
        return base * self._rates.infonavit.employer_contribution_rate

    def infonavit_employee_contribution(self, base_salary: float) -> float:
        base = ensure_amount(base_salary, "base_salary")
        return base * self._rates.infonavit.employee_contribution_rate

    def infonavit_credit_deduction(
        self,
        sdi: float,
        working_days: float,
        credit_type: InfonavitCreditType | str,
        credit_value: float,
    ) -> float:
        """Employee deduction for an active INFONAVIT credit.

        ``porcentaje`` applies ``credit_value`` percent to the period salary,
        ``cuota_fija`` is a fixed amount per period and ``veces_salario_minimo``
        charges ``credit_value`` UMAs per working day.
        """

        daily = ensure_amount(sdi, "sdi")
        days = ensure_amount(working_days, "working_days")
        value = ensure_amount(credit_value, "credit_value")
        try:
            scheme = InfonavitCreditType(credit_type)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown INFONAVIT credit type '{credit_type}'") from exc

        if scheme is InfonavitCreditType.PERCENTAGE:
            return daily * days * value / 100
        if scheme is InfonavitCreditType.FIXED_AMOUNT:
            return value
        return self._config.official_values.uma.daily_value * value * days


def calculate_state_payroll_tax(regional: RegionalConfig, taxable_base: float) -> float:
    """State payroll tax for ``taxable_base``; zero when the tax is disabled."""

    base = ensure_amount(taxable_base, "taxable_base")
    tax = regional.state_payroll_tax
    if not tax.enabled:
        return 0.0
    return base * tax.rate


__all__ = [
    "ContributionBreakdown",
    "ContributionCalculator",
    "InfonavitCreditType",
    "calculate_state_payroll_tax",
    "capped_base",
]

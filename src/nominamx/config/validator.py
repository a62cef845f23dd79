"""Utilities for validating payroll configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Sequence

from .schema import (
    ConfigurationError,
    ContributionRates,
    IMSSPartyRates,
    ISRBracket,
    LaborConcepts,
    OfficialValues,
    PayrollConfig,
    RegionalConfig,
    SubsidyBracket,
    VacationRules,
)

MIN_FISCAL_YEAR = 2020
MAX_FISCAL_YEAR = 2030
# Published SAT tables leave one cent between an upper limit and the next lower limit.
BRACKET_GAP_TOLERANCE = 0.011


class ConfigurationValidationError(ConfigurationError):
    """Raised when a loaded configuration violates one or more rules."""

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = tuple(issues)
        message = "configuration validation failed:\n  - " + "\n  - ".join(self.issues)
        super().__init__(message)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_official_values(values: OfficialValues) -> list[str]:
    errors: list[str] = []
    scope = "official_values"

    if not values.uma.daily_value > 0:
        errors.append(_format_scope(scope, "UMA daily value must be positive"))

    wages = values.minimum_wages
    if not wages.general.daily_value > 0:
        errors.append(_format_scope(scope, "general minimum wage must be positive"))

    default_record = wages.zone_record(wages.default_zone)
    if default_record is None:
        errors.append(
            _format_scope(
                scope,
                f"default minimum wage zone '{wages.default_zone}' is not a known active zone",
            )
        )
    elif not default_record.daily_value > 0:
        errors.append(
            _format_scope(
                scope,
                f"default minimum wage zone '{wages.default_zone}' must have a positive daily value",
            )
        )

    if not values.limits.imss_cap.multiplier > 0:
        errors.append(_format_scope(scope, "IMSS cap multiplier must be positive"))

    if not MIN_FISCAL_YEAR <= values.fiscal_year <= MAX_FISCAL_YEAR:
        errors.append(
            _format_scope(scope, f"fiscal year {values.fiscal_year} is outside valid range")
        )

    return errors


def _validate_regional(regional: RegionalConfig) -> list[str]:
    errors: list[str] = []
    scope = "regional"

    if not regional.state.name.strip():
        errors.append(_format_scope(scope, "state name cannot be empty"))

    tax = regional.state_payroll_tax
    if tax.enabled:
        if not 0 <= tax.rate <= 1:
            errors.append(
                _format_scope(scope, "state payroll tax rate must be between 0 and 1")
            )
        if not tax.calculation_base:
            errors.append(
                _format_scope(scope, "state payroll tax calculation base cannot be empty")
            )

    return errors


def _party_rates(rates: IMSSPartyRates) -> dict[str, float]:
    return {
        "disease_maternity_insurance": rates.disease_maternity_insurance,
        "disability_life": rates.disability_life,
        "retirement": rates.retirement,
        "severance_old_age.base": rates.severance_old_age.base,
        "severance_old_age.credits": rates.severance_old_age.credits,
        "childcare_social_benefits": rates.childcare_social_benefits,
        "work_risk.class_i": rates.work_risk.class_i,
        "work_risk.class_ii": rates.work_risk.class_ii,
        "work_risk.class_iii": rates.work_risk.class_iii,
        "work_risk.class_iv": rates.work_risk.class_iv,
        "work_risk.class_v": rates.work_risk.class_v,
        "housing": rates.housing,
    }


def _validate_contribution_rates(rates: ContributionRates) -> list[str]:
    errors: list[str] = []

    for party, party_rates in (
        ("employer", rates.imss.employer),
        ("employee", rates.imss.employee),
    ):
        for label, value in _party_rates(party_rates).items():
            if not value >= 0:
                errors.append(
                    _format_scope(
                        f"contribution_rates.imss.{party}",
                        f"{label} rate {value} cannot be negative",
                    )
                )

    infonavit = rates.infonavit
    for label, value in (
        ("employer", infonavit.employer_contribution_rate),
        ("employee", infonavit.employee_contribution_rate),
    ):
        if not value >= 0:
            errors.append(
                _format_scope(
                    "contribution_rates.infonavit",
                    f"{label} INFONAVIT rate cannot be negative",
                )
            )

    return errors


def _validate_vacation_table(rules: VacationRules) -> list[str]:
    errors: list[str] = []
    scope = "labor_concepts.vacations"

    previous_years: int | None = None
    previous_days: int | None = None
    for entry in rules.vacation_days_table:
        if entry.years_of_service < 1:
            errors.append(_format_scope(scope, "years of service entries must be at least 1"))
        if not entry.days > 0:
            errors.append(
                _format_scope(
                    scope,
                    f"vacation days for {entry.years_of_service} years must be positive",
                )
            )
        if previous_years is not None and entry.years_of_service <= previous_years:
            errors.append(
                _format_scope(scope, "vacation days table must be in ascending order")
            )
        if previous_days is not None and entry.days < previous_days:
            errors.append(
                _format_scope(
                    scope,
                    f"vacation days decrease at {entry.years_of_service} years of service",
                )
            )
        previous_years = entry.years_of_service
        previous_days = entry.days

    return errors


def _validate_labor_concepts(concepts: LaborConcepts) -> list[str]:
    errors: list[str] = []
    scope = "labor_concepts"

    if not concepts.christmas_bonus.minimum_days > 0:
        errors.append(_format_scope(scope, "christmas bonus minimum days must be positive"))

    vacations = concepts.vacations
    if not vacations.first_year_days > 0:
        errors.append(_format_scope(scope, "vacation first year days must be positive"))
    if not 0 <= vacations.vacation_bonus_percentage <= 1:
        errors.append(
            _format_scope(scope, "vacation bonus percentage must be between 0 and 1")
        )
    errors.extend(_validate_vacation_table(vacations))

    schedule = concepts.work_schedule
    if not schedule.daily_hours > 0:
        errors.append(_format_scope(scope, "daily work hours must be positive"))
    if not 1 <= schedule.weekly_days <= 7:
        errors.append(_format_scope(scope, "weekly work days must be between 1 and 7"))

    if not concepts.overtime.double_time_percentage >= 0:
        errors.append(
            _format_scope(scope, "overtime double time percentage cannot be negative")
        )
    if not concepts.overtime.triple_time_percentage >= 0:
        errors.append(
            _format_scope(scope, "overtime triple time percentage cannot be negative")
        )
    if not concepts.sunday_premium.percentage >= 0:
        errors.append(_format_scope(scope, "sunday premium percentage cannot be negative"))

    return errors


def _validate_bracket_table(
    scope: str, brackets: Sequence[ISRBracket] | Sequence[SubsidyBracket]
) -> list[str]:
    errors: list[str] = []

    previous = None
    for index, bracket in enumerate(brackets):
        if not bracket.upper_limit >= bracket.lower_limit:
            errors.append(
                _format_scope(scope, f"bracket {index} upper limit is below its lower limit")
            )
        amounts = (
            (bracket.fixed_fee, bracket.rate_percentage)
            if isinstance(bracket, ISRBracket)
            else (bracket.subsidy_amount,)
        )
        if not all(amount >= 0 for amount in amounts):
            errors.append(_format_scope(scope, f"bracket {index} values must be non-negative"))

        if previous is not None:
            if bracket.lower_limit <= previous.lower_limit:
                errors.append(
                    _format_scope(scope, "brackets must be in ascending order of lower limit")
                )
            elif bracket.lower_limit <= previous.upper_limit:
                errors.append(
                    _format_scope(scope, f"bracket {index} overlaps bracket {index - 1}")
                )
            elif bracket.lower_limit - previous.upper_limit > BRACKET_GAP_TOLERANCE:
                errors.append(
                    _format_scope(
                        scope,
                        f"gap between bracket {index - 1} and bracket {index}",
                    )
                )
        previous = bracket

    return errors


def _validate_calculation_tables(config: PayrollConfig) -> list[str]:
    errors: list[str] = []
    tables = config.calculation_tables

    for frequency in ("monthly", "biweekly", "weekly"):
        errors.extend(
            _validate_bracket_table(
                f"calculation_tables.isr_tables.{frequency}",
                tables.isr_tables.table_for(frequency),
            )
        )
        errors.extend(
            _validate_bracket_table(
                f"calculation_tables.subsidy_tables.{frequency}",
                tables.subsidy_tables.table_for(frequency),
            )
        )

    return errors


def validate_payroll_config(config: PayrollConfig) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_official_values(config.official_values))
    errors.extend(_validate_regional(config.regional))
    errors.extend(_validate_contribution_rates(config.contribution_rates))
    errors.extend(_validate_labor_concepts(config.labor_concepts))
    errors.extend(_validate_calculation_tables(config))

    return errors


def ensure_valid(config: PayrollConfig) -> PayrollConfig:
    """Raise ``ConfigurationValidationError`` listing every failing rule."""

    issues = validate_payroll_config(config)
    if issues:
        raise ConfigurationValidationError(issues)
    return config


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Validate a payroll configuration directory and report every issue found."
        )
    )
    parser.add_argument(
        "config_dirs",
        nargs="*",
        help="Configuration directories to validate (defaults to the bundled data)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    # The loader imports this module, so it is resolved at call time.
    from .loader import parse_payroll_config, resolve_config_directory

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    targets = args.config_dirs or [None]

    exit_code = 0

    for target in targets:
        root = resolve_config_directory(target)
        try:
            config = parse_payroll_config(root)
        except ConfigurationError as error:
            print(f"[{root}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_payroll_config(config)
        if issues:
            exit_code = 1
            print(f"[{root}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{root}] OK")

    return exit_code


__all__ = [
    "ConfigurationValidationError",
    "ensure_valid",
    "main",
    "validate_payroll_config",
]


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())

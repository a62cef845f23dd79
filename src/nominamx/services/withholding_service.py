"""Compute the withholdings and employer costs of one pay period.

The service validates the request, runs each calculator against the loaded
configuration and assembles a rounded response. Profiling hooks live here so
callers get a single ``calculate_withholdings`` entry point.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from contextlib import contextmanager
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from nominamx.config.loader import default_payroll_config
from nominamx.config.schema import PayrollConfig

from .calculators import (
    ContributionBreakdown,
    ContributionCalculator,
    InvalidInputError,
    calculate_net_isr,
    calculate_state_payroll_tax,
    lookup_isr_bracket,
    round_currency,
    round_rate,
)
from .models import WithholdingRequest, WithholdingResponse, format_validation_error

_LOGGER = logging.getLogger(__name__)

PROFILE_ENV = "NOMINAMX_PROFILE_CALCULATIONS"


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv(PROFILE_ENV, "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _parse_request(payload: Mapping[str, Any] | WithholdingRequest) -> WithholdingRequest:
    if isinstance(payload, WithholdingRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Payload must be a mapping")
    try:
        return WithholdingRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(format_validation_error(exc)) from exc


def _summarise_breakdown(breakdown: ContributionBreakdown) -> dict[str, Any]:
    return {
        "base": round_currency(breakdown.base),
        "components": {
            name: round_currency(amount) for name, amount in breakdown.components.items()
        },
        "total": round_currency(breakdown.total),
    }


def calculate_withholdings(
    payload: Mapping[str, Any] | WithholdingRequest,
    config: PayrollConfig | None = None,
) -> dict[str, Any]:
    """Return ISR, IMSS, INFONAVIT and state payroll tax amounts for a period.

    ``config`` defaults to the configuration resolved by
    :func:`~nominamx.config.loader.default_payroll_config`.
    """

    request = _parse_request(payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    if config is None:
        with _profile_section("load_config", timings):
            config = default_payroll_config()

    tables = config.calculation_tables
    contributions = ContributionCalculator(config, request.work_risk_class)

    with _profile_section("isr", timings):
        net_isr = calculate_net_isr(tables, request.taxable_income, request.frequency)
        bracket = lookup_isr_bracket(tables, request.taxable_income, request.frequency)

    with _profile_section("imss", timings):
        employee_imss = contributions.employee_period_contribution(
            request.sdi, request.working_days
        )
        employer_imss = contributions.employer_period_contribution(
            request.sdi, request.working_days
        )

    with _profile_section("infonavit", timings):
        period_base = contributions.capped_imss_base(request.sdi) * request.working_days
        infonavit_employer = contributions.infonavit_employer_contribution(period_base)
        credit_deduction: float | None = None
        if request.infonavit_credit is not None:
            credit_deduction = contributions.infonavit_credit_deduction(
                request.sdi,
                request.working_days,
                request.infonavit_credit.type,
                request.infonavit_credit.value,
            )

    with _profile_section("state_payroll_tax", timings):
        state_base = (
            request.state_tax_base
            if request.state_tax_base is not None
            else request.taxable_income
        )
        state_tax = calculate_state_payroll_tax(config.regional, state_base)

    employee_total = net_isr.withholding + employee_imss.total + (credit_deduction or 0.0)
    employer_total = employer_imss.total + infonavit_employer + state_tax

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_withholdings timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    infonavit: dict[str, Any] = {
        "employer_contribution": round_currency(infonavit_employer),
    }
    if credit_deduction is not None:
        infonavit["credit_deduction"] = round_currency(credit_deduction)

    response_model = WithholdingResponse.model_validate(
        {
            "isr": {
                "taxable_base": round_currency(request.taxable_income),
                "isr": round_currency(net_isr.isr),
                "subsidy": round_currency(net_isr.subsidy),
                "withholding": round_currency(net_isr.withholding),
                "subsidy_delivered": round_currency(net_isr.subsidy_delivered),
                "marginal_rate": round_rate(bracket.marginal_rate),
            },
            "imss_employee": _summarise_breakdown(employee_imss),
            "imss_employer": _summarise_breakdown(employer_imss),
            "infonavit": infonavit,
            "state_payroll_tax": round_currency(state_tax),
            "total_employee_deductions": round_currency(employee_total),
            "total_employer_cost": round_currency(employer_total),
            "meta": {
                "fiscal_year": config.official_values.fiscal_year,
                "frequency": request.frequency,
                "work_risk_class": request.work_risk_class,
                "state": config.regional.state.name,
            },
        }
    )

    return response_model.model_dump(mode="json", exclude_none=True)


__all__ = ["calculate_withholdings"]

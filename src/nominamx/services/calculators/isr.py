"""ISR withholding and employment subsidy calculators."""

from __future__ import annotations

from dataclasses import dataclass

from nominamx.config.schema import (
    CalculationTables,
    ISRBracket,
    PayFrequency,
    SubsidyBracket,
)

from .utils import BracketLookupError, ensure_amount, ensure_frequency, select_bracket


@dataclass(frozen=True)
class NetISR:
    """ISR for a period after applying the employment subsidy."""

    isr: float
    subsidy: float
    withholding: float
    subsidy_delivered: float


def lookup_isr_bracket(
    tables: CalculationTables,
    taxable_base: float,
    frequency: PayFrequency | str,
) -> ISRBracket:
    """Return the ISR bracket containing ``taxable_base`` for ``frequency``."""

    amount = ensure_amount(taxable_base, "taxable_base")
    period = ensure_frequency(frequency)
    brackets = tables.isr_tables.table_for(period)
    try:
        return select_bracket(brackets, amount)
    except BracketLookupError as exc:
        raise BracketLookupError(f"No {period.value} ISR table is configured") from exc


def calculate_isr(
    tables: CalculationTables,
    taxable_base: float,
    frequency: PayFrequency | str,
) -> float:
    """Calculate ISR as ``fixed_fee + (base - lower_limit) * marginal_rate``.

    Published fixed fees are rounded to cents, so a bracket can start a few
    cents below the top of the previous one. The result is floored at the
    formula of every lower bracket evaluated at the same base, which keeps the
    tax non-decreasing across bracket boundaries.
    """

    bracket = lookup_isr_bracket(tables, taxable_base, frequency)
    amount = float(taxable_base)
    tax = 0.0
    for candidate in tables.isr_tables.table_for(ensure_frequency(frequency)):
        tax = max(tax, _bracket_tax(candidate, amount))
        if candidate is bracket:
            break
    return tax


def _bracket_tax(bracket: ISRBracket, amount: float) -> float:
    excess = max(amount - bracket.lower_limit, 0.0)
    return bracket.fixed_fee + excess * bracket.marginal_rate


def lookup_subsidy_bracket(
    tables: CalculationTables,
    taxable_base: float,
    frequency: PayFrequency | str,
) -> SubsidyBracket:
    amount = ensure_amount(taxable_base, "taxable_base")
    period = ensure_frequency(frequency)
    brackets = tables.subsidy_tables.table_for(period)
    try:
        return select_bracket(brackets, amount)
    except BracketLookupError as exc:
        raise BracketLookupError(
            f"No {period.value} employment subsidy table is configured"
        ) from exc


def calculate_employment_subsidy(
    tables: CalculationTables,
    taxable_base: float,
    frequency: PayFrequency | str,
) -> float:
    """Return the flat employment subsidy for ``taxable_base``."""

    return lookup_subsidy_bracket(tables, taxable_base, frequency).subsidy_amount


def calculate_net_isr(
    tables: CalculationTables,
    taxable_base: float,
    frequency: PayFrequency | str,
) -> NetISR:
    """Apply the employment subsidy to the ISR of a period.

    The withholding never goes below zero; a subsidy larger than the tax is
    reported separately as ``subsidy_delivered``.
    """

    isr = calculate_isr(tables, taxable_base, frequency)
    subsidy = calculate_employment_subsidy(tables, taxable_base, frequency)
    return NetISR(
        isr=isr,
        subsidy=subsidy,
        withholding=max(isr - subsidy, 0.0),
        subsidy_delivered=max(subsidy - isr, 0.0),
    )


__all__ = [
    "NetISR",
    "calculate_employment_subsidy",
    "calculate_isr",
    "calculate_net_isr",
    "lookup_isr_bracket",
    "lookup_subsidy_bracket",
]

"""Domain-specific calculation helpers."""

from .contributions import (
    ContributionBreakdown,
    ContributionCalculator,
    InfonavitCreditType,
    calculate_state_payroll_tax,
    capped_base,
)
from .isr import (
    NetISR,
    calculate_employment_subsidy,
    calculate_isr,
    calculate_net_isr,
    lookup_isr_bracket,
    lookup_subsidy_bracket,
)
from .labor import ExemptSplit, LaborConceptCalculator, split_exempt
from .utils import (
    BracketLookupError,
    InvalidInputError,
    ensure_amount,
    ensure_frequency,
    round_currency,
    round_rate,
    select_bracket,
)
from .vacations import FALLBACK_VACATION_STAIRCASE, VacationCalculator

__all__ = [
    "BracketLookupError",
    "ContributionBreakdown",
    "ContributionCalculator",
    "ExemptSplit",
    "FALLBACK_VACATION_STAIRCASE",
    "InfonavitCreditType",
    "InvalidInputError",
    "LaborConceptCalculator",
    "NetISR",
    "VacationCalculator",
    "calculate_employment_subsidy",
    "calculate_isr",
    "calculate_net_isr",
    "calculate_state_payroll_tax",
    "capped_base",
    "ensure_amount",
    "ensure_frequency",
    "lookup_isr_bracket",
    "lookup_subsidy_bracket",
    "round_currency",
    "round_rate",
    "select_bracket",
    "split_exempt",
]

"""Service-layer helpers for the nominamx payroll engine."""

from .business_days import BusinessCalendar, BusinessDayCalculator, count_business_days
from .withholding_service import calculate_withholdings

__all__ = [
    "BusinessCalendar",
    "BusinessDayCalculator",
    "calculate_withholdings",
    "count_business_days",
]

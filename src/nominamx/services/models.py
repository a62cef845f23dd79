"""Pydantic models describing withholding requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nominamx.config.schema import PayFrequency, WorkRiskClass

from .calculators.contributions import InfonavitCreditType

__all__ = [
    "ContributionSummary",
    "ISRSummary",
    "InfonavitCreditInput",
    "InfonavitSummary",
    "ResponseMeta",
    "WithholdingRequest",
    "WithholdingResponse",
    "format_validation_error",
]


class InfonavitCreditInput(BaseModel):
    """Active INFONAVIT credit of the employee."""

    model_config = ConfigDict(extra="forbid")

    type: InfonavitCreditType
    value: float = Field(ge=0)


class WithholdingRequest(BaseModel):
    """Per-period payroll figures supplied by the caller."""

    model_config = ConfigDict(extra="forbid")

    frequency: PayFrequency = PayFrequency.BIWEEKLY
    taxable_income: float = Field(ge=0)
    sdi: float = Field(default=0.0, ge=0)
    working_days: float = Field(default=0.0, ge=0)
    work_risk_class: WorkRiskClass = WorkRiskClass.I
    infonavit_credit: InfonavitCreditInput | None = None
    state_tax_base: float | None = Field(default=None, ge=0)

    @field_validator("frequency", "work_risk_class", mode="before")
    @classmethod
    def _normalise_label(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class ISRSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    taxable_base: float
    isr: float
    subsidy: float
    withholding: float
    subsidy_delivered: float
    marginal_rate: float


class ContributionSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base: float
    components: dict[str, float]
    total: float


class InfonavitSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employer_contribution: float
    credit_deduction: float | None = None


class ResponseMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fiscal_year: int
    frequency: PayFrequency
    work_risk_class: WorkRiskClass
    state: str


class WithholdingResponse(BaseModel):
    """Withholdings and employer costs for a single pay period."""

    model_config = ConfigDict(extra="forbid")

    isr: ISRSummary
    imss_employee: ContributionSummary
    imss_employer: ContributionSummary
    infonavit: InfonavitSummary
    state_payroll_tax: float
    total_employee_deductions: float
    total_employer_cost: float
    meta: ResponseMeta


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid withholding payload: {details}"

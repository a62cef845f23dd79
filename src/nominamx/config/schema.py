"""Pydantic models describing the payroll configuration tree."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration files are missing, malformed or inconsistent."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(
        frozen=True, extra="forbid", populate_by_name=True, allow_inf_nan=False
    )


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in {0, "0", "false", "False", None}:
        return False
    if value in {1, "1", "true", "True"}:
        return True
    raise ConfigurationError("Boolean flags must be explicit true/false values")


def _coerce_tuple(value: Any, label: str) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ConfigurationError(f"'{label}' must be provided as a list")
    return tuple(value)


# ---------------------------------------------------------------------------
# Official values
# ---------------------------------------------------------------------------


class UMAValues(ImmutableModel):
    """Unidad de Medida y Actualización values for the fiscal year."""

    daily_value: float
    monthly_value: float = 0.0
    annual_value: float = 0.0


class MinimumWageZone(ImmutableModel):
    """Minimum wage values for a single wage zone."""

    daily_value: float
    professional_daily: Mapping[str, float] = Field(default_factory=dict)

    @field_validator("professional_daily", mode="before")
    @classmethod
    def _coerce_professions(cls, value: Any) -> Mapping[str, float]:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(key): float(val) for key, val in value.items()}
        raise ConfigurationError("'professional_daily' must be a mapping")


class HistoricalMinimumWageZone(MinimumWageZone):
    """Phased-out wage zone that only applies while flagged as active."""

    daily_value: float = 0.0
    active: bool = False

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        return _coerce_boolean(value)


class MinimumWageHistorical(ImmutableModel):
    """Container for deprecated minimum wage zones."""

    zone_b: HistoricalMinimumWageZone = Field(default_factory=HistoricalMinimumWageZone)
    zone_c: HistoricalMinimumWageZone = Field(
        default_factory=HistoricalMinimumWageZone,
        validation_alias=AliasChoices("zone_c", "json_c"),
    )


class MinimumWages(ImmutableModel):
    """Minimum wages by zone with default-zone fallback semantics."""

    default_zone: str = "general"
    general: MinimumWageZone
    northern_border_free_zone: MinimumWageZone | None = None
    historical: MinimumWageHistorical = Field(default_factory=MinimumWageHistorical)

    def zone_record(self, zone: str) -> MinimumWageZone | None:
        """Return the record for ``zone`` or ``None`` when unknown or inactive."""

        if zone == "general":
            return self.general
        if zone == "northern_border_free_zone":
            return self.northern_border_free_zone
        if zone in {"zone_b", "zone_c"}:
            record = getattr(self.historical, zone)
            return record if record.active else None
        return None

    def default_daily_value(self) -> float:
        record = self.zone_record(self.default_zone)
        if record is None:
            return self.general.daily_value
        return record.daily_value

    def daily_value_for_zone(self, zone: str | None) -> float:
        """Return the daily minimum wage for ``zone``.

        Unknown or inactive zones resolve to the default zone.
        """

        if zone is None:
            return self.default_daily_value()
        record = self.zone_record(zone)
        if record is None:
            return self.default_daily_value()
        return record.daily_value

    def professional_daily_value(self, profession: str, zone: str | None = None) -> float:
        record = self.zone_record(zone or self.default_zone) or self.general
        return record.professional_daily.get(profession, record.daily_value)


class IMSSCapLimit(ImmutableModel):
    """IMSS contribution base cap expressed as a multiple of the UMA."""

    multiplier: float


class OfficialLimits(ImmutableModel):
    imss_cap: IMSSCapLimit


class OfficialValues(ImmutableModel):
    """Official government values for a fiscal year."""

    fiscal_year: int
    uma: UMAValues
    minimum_wages: MinimumWages
    limits: OfficialLimits

    @computed_field
    @property
    def imss_base_cap(self) -> float:
        return self.uma.daily_value * self.limits.imss_cap.multiplier


# ---------------------------------------------------------------------------
# Regional configuration
# ---------------------------------------------------------------------------


class StateConfig(ImmutableModel):
    name: str
    code: str = ""


class StatePayrollTaxConfig(ImmutableModel):
    """State payroll tax (Impuesto Sobre Nómina) settings."""

    enabled: bool = False
    rate: float = 0.0
    calculation_base: Sequence[str] = Field(default_factory=tuple)

    @field_validator("enabled", mode="before")
    @classmethod
    def _coerce_enabled(cls, value: Any) -> bool:
        return _coerce_boolean(value)

    @field_validator("calculation_base", mode="before")
    @classmethod
    def _coerce_base(cls, value: Any) -> Sequence[str]:
        return tuple(str(entry) for entry in _coerce_tuple(value, "calculation_base"))


class LocalHoliday(ImmutableModel):
    """State or municipal holiday declared by the regional configuration."""

    date: dt.date
    description: str = ""
    applies_to: str = "all"


class RegionalConfig(ImmutableModel):
    state: StateConfig
    state_payroll_tax: StatePayrollTaxConfig = Field(default_factory=StatePayrollTaxConfig)
    local_holidays: Sequence[LocalHoliday] = Field(default_factory=tuple)

    @field_validator("local_holidays", mode="before")
    @classmethod
    def _coerce_holidays(cls, value: Any) -> Sequence[Any]:
        return _coerce_tuple(value, "local_holidays")


# ---------------------------------------------------------------------------
# Contribution rates
# ---------------------------------------------------------------------------


class WorkRiskClass(str, Enum):
    """IMSS work-risk premium classes."""

    I = "I"  # noqa: E741
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"

    @classmethod
    def _missing_(cls, value: object) -> WorkRiskClass | None:
        if isinstance(value, str):
            normalised = value.strip().upper()
            if normalised.startswith("CLASS_"):
                normalised = normalised[len("CLASS_"):]
            for member in cls:
                if member.value == normalised:
                    return member
        return None

    @property
    def field_name(self) -> str:
        return f"class_{self.value.lower()}"


class SeveranceOldAgeRates(ImmutableModel):
    """Cesantía en edad avanzada y vejez: base rate plus tracked credits."""

    base: float = 0.0
    credits: float = 0.0


class WorkRiskRates(ImmutableModel):
    class_i: float = 0.0
    class_ii: float = 0.0
    class_iii: float = 0.0
    class_iv: float = 0.0
    class_v: float = 0.0

    def rate_for_class(self, risk_class: WorkRiskClass | str) -> float:
        return getattr(self, WorkRiskClass(risk_class).field_name)


class IMSSPartyRates(ImmutableModel):
    """IMSS rates paid by either the employer or the employee."""

    disease_maternity_insurance: float = 0.0
    disability_life: float = 0.0
    retirement: float = 0.0
    severance_old_age: SeveranceOldAgeRates = Field(default_factory=SeveranceOldAgeRates)
    childcare_social_benefits: float = 0.0
    work_risk: WorkRiskRates = Field(default_factory=WorkRiskRates)
    housing: float = 0.0


class IMSSMaximumBases(ImmutableModel):
    """Per-branch maximum bases expressed as UMA multiples."""

    disease_maternity_insurance: float | None = None
    disability_life_insurance: float | None = None
    retirement: float | None = None


class IMSSRates(ImmutableModel):
    employer: IMSSPartyRates
    employee: IMSSPartyRates
    maximum_bases: IMSSMaximumBases = Field(default_factory=IMSSMaximumBases)


class InfonavitRates(ImmutableModel):
    employer_contribution_rate: float = 0.0
    employee_contribution_rate: float = 0.0
    maximum_base: float | None = None


class ContributionRates(ImmutableModel):
    imss: IMSSRates
    infonavit: InfonavitRates = Field(default_factory=InfonavitRates)


# ---------------------------------------------------------------------------
# Labor concepts
# ---------------------------------------------------------------------------


class ChristmasBonusRules(ImmutableModel):
    """Aguinaldo rules (Article 87 LFT)."""

    minimum_days: int
    minimum_amount: int = 0
    tax_exempt_uma_limit: float = 0.0


class VacationDaysBracket(ImmutableModel):
    """Entitled vacation days starting at ``years_of_service``."""

    years_of_service: int
    days: int


class VacationRules(ImmutableModel):
    vacation_premium_rate: float = 0.25
    vacation_days_table: Sequence[VacationDaysBracket] = Field(default_factory=tuple)
    first_year_days: int
    vacation_bonus_percentage: float = 0.25
    tax_exempt_uma_limit: float = 0.0

    @field_validator("vacation_days_table", mode="before")
    @classmethod
    def _coerce_table(cls, value: Any) -> Sequence[Any]:
        return _coerce_tuple(value, "vacation_days_table")


class WorkSchedule(ImmutableModel):
    daily_hours: float
    weekly_days: float
    biweekly_days: float = 15.0
    monthly_days: float = 30.4
    annual_days: float = 365.0


class Overtime(ImmutableModel):
    """Overtime pay multipliers (2.0 for double time, 3.0 for triple time)."""

    double_time_percentage: float = 2.0
    triple_time_percentage: float = 3.0
    tax_exempt_uma_limit: float = 0.0


class SundayPremium(ImmutableModel):
    percentage: float = 0.25
    tax_exempt_uma_limit: float = 0.0


class SavingsFund(ImmutableModel):
    employer_contribution_percentage: float = 0.0
    employee_contribution_percentage: float = 0.0
    max_contribution_uma_limit: float = 0.0


class FoodVouchers(ImmutableModel):
    max_exempt_uma_limit: float = 0.0


class LaborConcepts(ImmutableModel):
    christmas_bonus: ChristmasBonusRules
    vacations: VacationRules
    work_schedule: WorkSchedule
    overtime: Overtime = Field(default_factory=Overtime)
    sunday_premium: SundayPremium = Field(default_factory=SundayPremium)
    savings_fund: SavingsFund = Field(default_factory=SavingsFund)
    food_vouchers: FoodVouchers = Field(default_factory=FoodVouchers)


# ---------------------------------------------------------------------------
# Calculation tables
# ---------------------------------------------------------------------------


class PayFrequency(str, Enum):
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"


class ISRBracket(ImmutableModel):
    """A single ISR bracket; ``rate_percentage`` is published in percent."""

    lower_limit: float
    upper_limit: float
    fixed_fee: float
    rate_percentage: float = Field(validation_alias=AliasChoices("rate_percentage", "percentage"))

    @property
    def marginal_rate(self) -> float:
        return self.rate_percentage / 100


class SubsidyBracket(ImmutableModel):
    lower_limit: float
    upper_limit: float
    subsidy_amount: float


class ISRTables(ImmutableModel):
    """ISR tables per pay frequency (``*_2024`` keys are accepted as aliases)."""

    monthly: Sequence[ISRBracket] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("monthly", "monthly_2024"),
    )
    biweekly: Sequence[ISRBracket] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("biweekly", "biweekly_2024"),
    )
    weekly: Sequence[ISRBracket] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("weekly", "weekly_2024"),
    )

    @field_validator("monthly", "biweekly", "weekly", mode="before")
    @classmethod
    def _coerce_rows(cls, value: Any) -> Sequence[Any]:
        return _coerce_tuple(value, "isr_tables")

    def table_for(self, frequency: PayFrequency | str) -> Sequence[ISRBracket]:
        return getattr(self, PayFrequency(frequency).value)


class SubsidyTables(ImmutableModel):
    """Employment subsidy tables per pay frequency."""

    monthly: Sequence[SubsidyBracket] = Field(default_factory=tuple)
    biweekly: Sequence[SubsidyBracket] = Field(default_factory=tuple)
    weekly: Sequence[SubsidyBracket] = Field(default_factory=tuple)

    @field_validator("monthly", "biweekly", "weekly", mode="before")
    @classmethod
    def _coerce_rows(cls, value: Any) -> Sequence[Any]:
        return _coerce_tuple(value, "subsidy_tables")

    def table_for(self, frequency: PayFrequency | str) -> Sequence[SubsidyBracket]:
        return getattr(self, PayFrequency(frequency).value)


class CalculationTables(ImmutableModel):
    isr_tables: ISRTables
    subsidy_tables: SubsidyTables = Field(default_factory=SubsidyTables)


# ---------------------------------------------------------------------------
# Manifest and aggregate
# ---------------------------------------------------------------------------


class MasterConfig(ImmutableModel):
    """Master manifest mapping section keys to configuration files."""

    model_config = ConfigDict(
        frozen=True, extra="allow", populate_by_name=True, allow_inf_nan=False
    )

    version: str = ""
    name: str = ""
    description: str = ""
    last_updated: str = ""
    config_files: Mapping[str, str]
    tables: Mapping[str, Any] = Field(default_factory=dict)
    holidays: Mapping[str, Any] = Field(default_factory=dict)
    settings: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("config_files", mode="before")
    @classmethod
    def _coerce_files(cls, value: Any) -> Mapping[str, str]:
        if not isinstance(value, Mapping):
            raise ConfigurationError("Manifest must define a 'config_files' mapping")
        return {str(key): str(path) for key, path in value.items()}

    @field_validator("tables", "holidays", "settings", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Mapping[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError("Manifest metadata sections must be mappings")
        return dict(value)

    @model_validator(mode="after")
    def _validate_paths(self) -> Self:
        for key, path in self.config_files.items():
            if not path.strip():
                raise ConfigurationError(f"Manifest declares an empty path for '{key}'")
        return self

    def section_path(self, key: str, config_dir: Path) -> Path:
        """Resolve the file declared for ``key`` against ``config_dir``."""

        try:
            declared = self.config_files[key]
        except KeyError as exc:
            raise ConfigurationError(
                f"Configuration file for {key} not specified in master config"
            ) from exc

        path = Path(declared)
        if not path.is_absolute():
            path = config_dir / path
        return path


class PayrollConfig(ImmutableModel):
    """Root aggregate read by every calculator."""

    official_values: OfficialValues
    regional: RegionalConfig
    contribution_rates: ContributionRates
    labor_concepts: LaborConcepts
    calculation_tables: CalculationTables
    master: MasterConfig | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_mapping(cls, data: Any) -> Any:
        if not isinstance(data, (Mapping, BaseModel)):
            raise ConfigurationError("Payroll configuration must be a mapping")
        return data


__all__ = [
    "CalculationTables",
    "ChristmasBonusRules",
    "ConfigurationError",
    "ContributionRates",
    "FoodVouchers",
    "HistoricalMinimumWageZone",
    "IMSSCapLimit",
    "IMSSMaximumBases",
    "IMSSPartyRates",
    "IMSSRates",
    "ISRBracket",
    "ISRTables",
    "ImmutableModel",
    "InfonavitRates",
    "LaborConcepts",
    "LocalHoliday",
    "MasterConfig",
    "MinimumWageHistorical",
    "MinimumWageZone",
    "MinimumWages",
    "OfficialLimits",
    "OfficialValues",
    "Overtime",
    "PayFrequency",
    "PayrollConfig",
    "RegionalConfig",
    "SavingsFund",
    "SeveranceOldAgeRates",
    "StateConfig",
    "StatePayrollTaxConfig",
    "SubsidyBracket",
    "SubsidyTables",
    "SundayPremium",
    "UMAValues",
    "VacationDaysBracket",
    "VacationRules",
    "ValidationError",
    "WorkRiskClass",
    "WorkRiskRates",
    "WorkSchedule",
]

"""Unit coverage for the period withholding service."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nominamx.config.schema import PayrollConfig
from nominamx.services import calculate_withholdings
from nominamx.services.calculators import InvalidInputError
from nominamx.services.models import WithholdingRequest


def build_payload(**overrides):
    payload = {
        "frequency": "biweekly",
        "taxable_income": 9000,
        "sdi": 620,
        "working_days": 15,
    }
    payload.update(overrides)
    return payload


def test_biweekly_withholdings(payroll_config: PayrollConfig) -> None:
    result = calculate_withholdings(build_payload(), payroll_config)

    assert result["isr"]["isr"] == pytest.approx(1099.34)
    assert result["isr"]["withholding"] == pytest.approx(1099.34)
    assert result["isr"]["subsidy_delivered"] == 0.0
    assert result["isr"]["marginal_rate"] == pytest.approx(0.2136)
    assert result["imss_employee"]["base"] == pytest.approx(9300.0)
    assert result["imss_employee"]["total"] == pytest.approx(186.0)
    assert result["imss_employer"]["total"] == pytest.approx(948.0)
    assert result["imss_employer"]["components"]["work_risk"] == pytest.approx(50.55)
    assert result["infonavit"] == {"employer_contribution": pytest.approx(465.0)}
    assert result["state_payroll_tax"] == pytest.approx(225.0)
    assert result["total_employee_deductions"] == pytest.approx(1285.34)
    assert result["total_employer_cost"] == pytest.approx(1638.0)
    assert result["meta"] == {
        "fiscal_year": 2025,
        "frequency": "biweekly",
        "work_risk_class": "I",
        "state": "San Luis Potosí",
    }


def test_low_income_reports_delivered_subsidy(payroll_config: PayrollConfig) -> None:
    result = calculate_withholdings(build_payload(taxable_income=2000), payroll_config)

    assert result["isr"]["withholding"] == 0.0
    assert result["isr"]["subsidy_delivered"] == pytest.approx(65.03)


def test_sdi_is_capped(payroll_config: PayrollConfig) -> None:
    result = calculate_withholdings(build_payload(sdi=5000), payroll_config)

    assert result["imss_employee"]["base"] == pytest.approx(42427.5)
    assert result["imss_employee"]["total"] == pytest.approx(848.55)


def test_infonavit_credit_is_deducted(payroll_config: PayrollConfig) -> None:
    payload = build_payload(infonavit_credit={"type": "porcentaje", "value": 20})

    result = calculate_withholdings(payload, payroll_config)

    assert result["infonavit"]["credit_deduction"] == pytest.approx(1860.0)
    assert result["total_employee_deductions"] == pytest.approx(3145.34)


def test_explicit_state_tax_base(payroll_config: PayrollConfig) -> None:
    result = calculate_withholdings(build_payload(state_tax_base=20000), payroll_config)

    assert result["state_payroll_tax"] == pytest.approx(500.0)


def test_work_risk_class_changes_employer_cost(payroll_config: PayrollConfig) -> None:
    result = calculate_withholdings(build_payload(work_risk_class="V"), payroll_config)

    # 9300 * 0.1723875
    assert result["imss_employer"]["total"] == pytest.approx(1603.20)
    assert result["meta"]["work_risk_class"] == "V"


def test_accepts_request_models(payroll_config: PayrollConfig) -> None:
    request = WithholdingRequest.model_validate(build_payload())

    assert calculate_withholdings(request, payroll_config) == calculate_withholdings(
        build_payload(), payroll_config
    )


def test_negative_amounts_are_rejected(payroll_config: PayrollConfig) -> None:
    with pytest.raises(InvalidInputError, match="taxable_income: value cannot be negative"):
        calculate_withholdings(build_payload(taxable_income=-5), payroll_config)


def test_unknown_fields_are_rejected(payroll_config: PayrollConfig) -> None:
    with pytest.raises(InvalidInputError, match="Invalid withholding payload"):
        calculate_withholdings(build_payload(bonus=10), payroll_config)


def test_non_mapping_payload_is_rejected(payroll_config: PayrollConfig) -> None:
    with pytest.raises(InvalidInputError, match="mapping"):
        calculate_withholdings(["not", "a", "mapping"], payroll_config)


def test_defaults_to_bundled_configuration(isolated_config_directory: Path) -> None:
    result = calculate_withholdings(build_payload())

    assert result["meta"]["fiscal_year"] == 2025


def test_profiling_logs_timings(
    payroll_config: PayrollConfig, monkeypatch: pytest.MonkeyPatch, caplog
) -> None:
    monkeypatch.setenv("NOMINAMX_PROFILE_CALCULATIONS", "true")

    with caplog.at_level(logging.DEBUG, logger="nominamx.services.withholding_service"):
        calculate_withholdings(build_payload(), payroll_config)

    messages = [record.getMessage() for record in caplog.records]
    assert any("calculate_withholdings timings" in message for message in messages)
    assert any("'isr'" in message and "'total'" in message for message in messages)

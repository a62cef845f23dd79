"""Unit coverage for payroll configuration loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml

from nominamx.config import loader
from nominamx.config.schema import ConfigurationError, PayFrequency, WorkRiskClass
from nominamx.config.validator import ConfigurationValidationError


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def test_bundled_configuration_loads(payroll_config) -> None:
    assert payroll_config.official_values.fiscal_year == 2025
    assert payroll_config.official_values.uma.daily_value == pytest.approx(113.14)
    assert payroll_config.official_values.imss_base_cap == pytest.approx(2828.5)
    assert payroll_config.regional.state.code == "SLP"
    assert payroll_config.master is not None
    assert set(payroll_config.master.config_files) == set(loader.SECTION_KEYS)


def test_bundled_tables_cover_every_frequency(payroll_config) -> None:
    tables = payroll_config.calculation_tables
    for frequency in PayFrequency:
        assert tables.isr_tables.table_for(frequency)
        assert tables.subsidy_tables.table_for(frequency)


def test_isr_rates_are_stored_in_percent(payroll_config) -> None:
    bracket = payroll_config.calculation_tables.isr_tables.monthly[1]

    assert bracket.rate_percentage == pytest.approx(6.40)
    assert bracket.marginal_rate == pytest.approx(0.064)


def test_load_honours_environment_override(
    isolated_config_directory: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    official_path = isolated_config_directory / "payroll" / "official_values.json"
    data = _read_json(official_path)
    data["uma"]["daily_value"] = 120.0
    _write_json(official_path, data)

    monkeypatch.setenv(loader.CONFIG_DIR_ENV, str(isolated_config_directory))

    config = loader.load_payroll_config()

    assert config.official_values.uma.daily_value == pytest.approx(120.0)
    assert loader.default_payroll_config().official_values.uma.daily_value == pytest.approx(
        120.0
    )


def test_load_logs_success(isolated_config_directory: Path, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="nominamx.config.loader"):
        loader.load_payroll_config(isolated_config_directory)

    assert any("Loaded payroll configuration" in record.message for record in caplog.records)


def test_missing_manifest_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="error loading master config"):
        loader.load_payroll_config(tmp_path)


def test_manifest_without_section_key_raises(isolated_config_directory: Path) -> None:
    manifest_path = isolated_config_directory / loader.MASTER_FILE
    manifest = _read_json(manifest_path)
    del manifest["config_files"]["labor_concepts"]
    _write_json(manifest_path, manifest)

    with pytest.raises(ConfigurationError, match="labor_concepts not specified"):
        loader.load_payroll_config(isolated_config_directory)


def test_missing_section_file_raises(isolated_config_directory: Path) -> None:
    (isolated_config_directory / "payroll" / "regional.json").unlink()

    with pytest.raises(ConfigurationError, match="not found"):
        loader.load_payroll_config(isolated_config_directory)


def test_malformed_section_raises(isolated_config_directory: Path) -> None:
    (isolated_config_directory / "payroll" / "regional.json").write_text(
        "{not json", encoding="utf-8"
    )

    with pytest.raises(ConfigurationError, match="Error parsing config file"):
        loader.load_payroll_config(isolated_config_directory)


def test_section_with_wrong_shape_raises(isolated_config_directory: Path) -> None:
    official_path = isolated_config_directory / "payroll" / "official_values.json"
    data = _read_json(official_path)
    data["uma"] = "not a mapping"
    _write_json(official_path, data)

    with pytest.raises(ConfigurationError, match="official_values.json"):
        loader.load_payroll_config(isolated_config_directory)


@pytest.mark.parametrize(
    ("section", "path", "value"),
    [
        ("official_values.json", ("uma", "daily_value"), float("nan")),
        ("contribution_rates.json", ("infonavit", "employer_contribution_rate"), float("nan")),
        ("regional.json", ("state_payroll_tax", "rate"), float("inf")),
    ],
)
def test_non_finite_values_are_rejected(
    isolated_config_directory: Path, section: str, path: tuple[str, str], value: float
) -> None:
    section_path = isolated_config_directory / "payroll" / section
    data = _read_json(section_path)
    data[path[0]][path[1]] = value
    _write_json(section_path, data)

    with pytest.raises(ConfigurationError, match=section):
        loader.load_payroll_config(isolated_config_directory)


def test_unknown_section_fields_are_rejected(isolated_config_directory: Path) -> None:
    regional_path = isolated_config_directory / "payroll" / "regional.json"
    data = _read_json(regional_path)
    data["unexpected"] = True
    _write_json(regional_path, data)

    with pytest.raises(ConfigurationError):
        loader.load_payroll_config(isolated_config_directory)


def test_yaml_sections_are_supported(isolated_config_directory: Path) -> None:
    payroll_dir = isolated_config_directory / "payroll"
    labor = _read_json(payroll_dir / "labor_concepts.json")
    labor["christmas_bonus"]["minimum_days"] = 30
    (payroll_dir / "labor_concepts.yaml").write_text(
        yaml.safe_dump(labor, allow_unicode=True), encoding="utf-8"
    )

    manifest_path = isolated_config_directory / loader.MASTER_FILE
    manifest = _read_json(manifest_path)
    manifest["config_files"]["labor_concepts"] = "payroll/labor_concepts.yaml"
    _write_json(manifest_path, manifest)

    config = loader.load_payroll_config(isolated_config_directory)

    assert config.labor_concepts.christmas_bonus.minimum_days == 30


def test_absolute_section_paths_are_used_verbatim(
    isolated_config_directory: Path, tmp_path: Path
) -> None:
    outside = tmp_path / "shared" / "regional.json"
    outside.parent.mkdir()
    regional = _read_json(isolated_config_directory / "payroll" / "regional.json")
    regional["state"]["name"] = "Jalisco"
    _write_json(outside, regional)

    manifest_path = isolated_config_directory / loader.MASTER_FILE
    manifest = _read_json(manifest_path)
    manifest["config_files"]["regional"] = str(outside)
    _write_json(manifest_path, manifest)

    config = loader.load_payroll_config(isolated_config_directory)

    assert config.regional.state.name == "Jalisco"


def test_rule_violations_raise_validation_error(
    isolated_config_directory: Path, caplog
) -> None:
    official_path = isolated_config_directory / "payroll" / "official_values.json"
    data = _read_json(official_path)
    data["uma"]["daily_value"] = 0
    data["fiscal_year"] = 1999
    _write_json(official_path, data)

    with caplog.at_level(logging.ERROR, logger="nominamx.config.loader"):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            loader.load_payroll_config(isolated_config_directory)

    issues = excinfo.value.issues
    assert any("UMA daily value must be positive" in issue for issue in issues)
    assert any("fiscal year 1999 is outside valid range" in issue for issue in issues)
    assert any("failed validation" in record.message for record in caplog.records)


def test_parse_skips_rule_validation(isolated_config_directory: Path) -> None:
    official_path = isolated_config_directory / "payroll" / "official_values.json"
    data = _read_json(official_path)
    data["fiscal_year"] = 1999
    _write_json(official_path, data)

    config = loader.parse_payroll_config(isolated_config_directory)

    assert config.official_values.fiscal_year == 1999


def test_minimum_wage_zone_fallbacks(payroll_config) -> None:
    wages = payroll_config.official_values.minimum_wages

    assert wages.daily_value_for_zone("northern_border_free_zone") == pytest.approx(419.88)
    assert wages.daily_value_for_zone("zone_b") == pytest.approx(278.80)
    assert wages.daily_value_for_zone("atlantis") == pytest.approx(278.80)
    assert wages.daily_value_for_zone(None) == pytest.approx(278.80)
    assert wages.professional_daily_value("trabajador_social") == pytest.approx(303.10)
    assert wages.professional_daily_value("unknown") == pytest.approx(278.80)


def test_work_risk_class_accepts_field_names(payroll_config) -> None:
    work_risk = payroll_config.contribution_rates.imss.employer.work_risk

    assert WorkRiskClass("class_iii") is WorkRiskClass.III
    assert work_risk.rate_for_class("v") == pytest.approx(0.0758875)

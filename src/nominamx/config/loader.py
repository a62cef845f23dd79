"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .schema import (
    CalculationTables,
    ConfigurationError,
    ContributionRates,
    LaborConcepts,
    MasterConfig,
    OfficialValues,
    PayrollConfig,
    RegionalConfig,
)
from .validator import ConfigurationValidationError, ensure_valid

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
CONFIG_DIR_ENV = "NOMINAMX_CONFIG_DIR"
MASTER_FILE = Path("payroll") / "main.json"

SECTION_MODELS: Mapping[str, type] = {
    "official_values": OfficialValues,
    "regional": RegionalConfig,
    "contribution_rates": ContributionRates,
    "labor_concepts": LaborConcepts,
    "calculation_tables": CalculationTables,
}
SECTION_KEYS = tuple(SECTION_MODELS)

_YAML_SUFFIXES = {".yaml", ".yml"}


def resolve_config_directory(config_dir: str | os.PathLike[str] | None = None) -> Path:
    """Return the configuration root, honouring ``NOMINAMX_CONFIG_DIR``."""

    if config_dir is not None:
        return Path(config_dir)
    override = os.getenv(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override)
    return CONFIG_DIRECTORY


def _load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            if path.suffix.lower() in _YAML_SUFFIXES:
                data = yaml.safe_load(handle)
            else:
                data = json.load(handle)
    except (json.JSONDecodeError, yaml.YAMLError) as error:
        raise ConfigurationError(f"Error parsing config file {path}: {error}") from error
    except OSError as error:
        raise ConfigurationError(f"Error reading config file {path}: {error}") from error

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must define a mapping at the top level"
        )
    return data


def load_master_config(config_dir: str | os.PathLike[str] | None = None) -> MasterConfig:
    """Load the master manifest from ``<config_dir>/payroll/main.json``."""

    root = resolve_config_directory(config_dir)
    master_path = root / MASTER_FILE
    _LOGGER.debug("Loading payroll manifest from %s", master_path)
    try:
        raw_master = _load_document(master_path)
    except ConfigurationError as error:
        raise ConfigurationError(f"error loading master config: {error}") from error

    try:
        return MasterConfig.model_validate(raw_master)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def load_section(master: MasterConfig, key: str, config_dir: Path) -> Any:
    """Load and parse the section declared under ``key`` in ``master``."""

    try:
        model = SECTION_MODELS[key]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown configuration section '{key}'") from exc

    path = master.section_path(key, config_dir)
    _LOGGER.debug("Loading %s section from %s", key, path)
    raw_section = _load_document(path)

    try:
        return model.model_validate(raw_section)
    except ValidationError as error:
        raise ConfigurationError(f"Error parsing config file {path}: {error}") from error


def parse_payroll_config(config_dir: str | os.PathLike[str] | None = None) -> PayrollConfig:
    """Build the aggregate from disk without running the rule validator."""

    root = resolve_config_directory(config_dir)
    master = load_master_config(root)

    sections = {key: load_section(master, key, root) for key in SECTION_KEYS}

    try:
        return PayrollConfig(master=master, **sections)
    except ValidationError as error:  # pragma: no cover - sections already validated
        raise ConfigurationError(f"Payroll configuration assembly failed: {error}") from error


def load_payroll_config(config_dir: str | os.PathLike[str] | None = None) -> PayrollConfig:
    """Load, validate and return the payroll configuration.

    Raises ``ConfigurationError`` when the manifest or a section cannot be read
    and ``ConfigurationValidationError`` when any rule check fails. A partially
    valid configuration is never returned.
    """

    root = resolve_config_directory(config_dir)
    config = parse_payroll_config(root)

    try:
        ensure_valid(config)
    except ConfigurationValidationError:
        _LOGGER.error("Payroll configuration in %s failed validation", root)
        raise

    _LOGGER.info(
        "Loaded payroll configuration '%s' (fiscal year %s) from %s",
        config.master.name if config.master else "",
        config.official_values.fiscal_year,
        root,
    )
    return config


@lru_cache(maxsize=1)
def default_payroll_config() -> PayrollConfig:
    """Return the configuration from the default directory, loaded once per process.

    Call ``default_payroll_config.cache_clear()`` after changing
    ``NOMINAMX_CONFIG_DIR``.
    """

    return load_payroll_config()


__all__ = [
    "CONFIG_DIRECTORY",
    "CONFIG_DIR_ENV",
    "MASTER_FILE",
    "SECTION_KEYS",
    "default_payroll_config",
    "load_master_config",
    "load_payroll_config",
    "load_section",
    "parse_payroll_config",
    "resolve_config_directory",
]

"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path
from shutil import copytree

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402

from nominamx.config import loader  # noqa: E402
from nominamx.config.schema import PayrollConfig  # noqa: E402


@pytest.fixture(scope="session")
def payroll_config() -> PayrollConfig:
    """Return the bundled, validated payroll configuration."""

    return loader.load_payroll_config(loader.CONFIG_DIRECTORY)


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a writable copy of the bundled configuration directory."""

    target = tmp_path / "config"
    copytree(loader.CONFIG_DIRECTORY, target)
    monkeypatch.delenv(loader.CONFIG_DIR_ENV, raising=False)
    loader.default_payroll_config.cache_clear()

    yield target

    loader.default_payroll_config.cache_clear()

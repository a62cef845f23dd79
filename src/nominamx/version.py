"""Expose the nominamx release version."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "nominamx"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[2] / "pyproject.toml"

_SECTION_PATTERN = re.compile(r"^\[(?P<name>[^\]]+)\]$")
_VERSION_PATTERN = re.compile(r"""^version\s*=\s*["'](?P<value>[^"']+)["']""")


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed version, reading ``pyproject.toml`` for source checkouts."""

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return read_pyproject_version(PYPROJECT_PATH)


def read_pyproject_version(path: Path) -> str:
    """Return ``[project].version`` from the given ``pyproject.toml``."""

    if not path.exists():
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    in_project = False
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        section = _SECTION_PATTERN.match(line)
        if section:
            in_project = section.group("name") == "project"
            continue
        if in_project:
            match = _VERSION_PATTERN.match(line)
            if match:
                return match.group("value")

    raise RuntimeError(f"No [project] version declared in {path}")


__all__ = ["PACKAGE_NAME", "get_project_version", "read_pyproject_version"]

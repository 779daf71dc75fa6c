# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Version extraction from build manifests.

The package version is read from the application's own build descriptor at
run time so it can never drift from the version the binary was built with.

Supported sources:

- cargo: Cargo.toml [package].version. When the crate inherits its version
  from a workspace (version.workspace = true), [workspace.package].version
  of the same file is used.
- pyproject: pyproject.toml [project].version, then [tool.poetry].version.
- file: first non-empty line of a plain text file (e.g. VERSION).
- literal: a value written directly in the recipe. Supported for
  completeness but it duplicates the manifest, so callers warn about it.

Example:
    ```python
    from pathlib import Path
    from debpack.versioning import read_manifest_version

    found = read_manifest_version("cargo", manifest=Path("Cargo.toml"))
    print(found.version)  # 1.0.4
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
import tomllib
from typing import Any

from debpack.exceptions import ConfigError

__all__ = [
    "DiscoveredVersion",
    "SUPPORTED_SOURCES",
    "read_manifest_version",
    "validate_debian_version",
]

SUPPORTED_SOURCES = ("cargo", "pyproject", "file", "literal")

# Debian policy 5.6.12: upstream version must start with a digit
_DEBIAN_VERSION_RE = re.compile(r"^(?:[0-9]+:)?[0-9][A-Za-z0-9.+~-]*$")


@dataclass(frozen=True)
class DiscoveredVersion:
    """Container for a resolved version string.

    Attributes:
        version: Raw version string (e.g., "1.0.4").
        source: Where it came from (e.g., "cargo", "literal").
        manifest: Manifest file the version was read from, if any.
    """

    version: str
    source: str
    manifest: Path | None = None


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Version manifest not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"Error parsing TOML: {path}: {err}") from err


def _version_from_cargo(path: Path) -> str:
    data = _load_toml(path)
    package = data.get("package", {})
    version = package.get("version")

    if isinstance(version, dict) and version.get("workspace") is True:
        version = data.get("workspace", {}).get("package", {}).get("version")
    elif version is None and "workspace" in data:
        # Virtual workspace manifest
        version = data["workspace"].get("package", {}).get("version")

    if not isinstance(version, str) or not version.strip():
        raise ConfigError(f"No [package] version found in {path}")
    return version.strip()


def _version_from_pyproject(path: Path) -> str:
    data = _load_toml(path)
    version = data.get("project", {}).get("version")
    if version is None:
        version = data.get("tool", {}).get("poetry", {}).get("version")

    if not isinstance(version, str) or not version.strip():
        raise ConfigError(
            f"No static [project] version found in {path} "
            "(dynamic versions are not supported)"
        )
    return version.strip()


def _version_from_file(path: Path) -> str:
    if not path.exists():
        raise ConfigError(f"Version file not found: {path}")
    for line in path.read_text(encoding="utf-8").splitlines():
        if line.strip():
            return line.strip()
    raise ConfigError(f"Version file is empty: {path}")


def validate_debian_version(version: str) -> str:
    """Check that a version string is acceptable to dpkg.

    Args:
        version: Version string to check.

    Returns:
        The version unchanged.

    Raises:
        ConfigError: If the string is not a valid Debian version.
    """
    if not _DEBIAN_VERSION_RE.match(version):
        raise ConfigError(
            f"Invalid package version {version!r}: must start with a digit and "
            "contain only alphanumerics and . + ~ - :"
        )
    return version


def read_manifest_version(
    source: str,
    manifest: Path | None = None,
    value: str | None = None,
) -> DiscoveredVersion:
    """Read the package version from its authoritative source.

    Args:
        source: One of SUPPORTED_SOURCES.
        manifest: Path to the manifest file (cargo, pyproject, file).
        value: Version literal (literal source only).

    Returns:
        The resolved version and where it came from.

    Raises:
        ConfigError: If the source is unknown, the manifest is missing or
            unparsable, or the version is not a valid Debian version.
    """
    if source not in SUPPORTED_SOURCES:
        raise ConfigError(
            f"Unsupported version source: {source!r}. "
            f"Supported: {', '.join(SUPPORTED_SOURCES)}"
        )

    if source == "literal":
        if value is None or not str(value).strip():
            raise ConfigError("version.value is required for the literal source")
        version = str(value).strip()
        return DiscoveredVersion(validate_debian_version(version), source)

    if manifest is None:
        raise ConfigError(f"version.manifest is required for the {source} source")

    readers = {
        "cargo": _version_from_cargo,
        "pyproject": _version_from_pyproject,
        "file": _version_from_file,
    }
    version = readers[source](manifest)
    return DiscoveredVersion(validate_debian_version(version), source, manifest)

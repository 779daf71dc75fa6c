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

"""Package metadata resolution.

Resolves the (name, version, architecture) triple for a build before any
filesystem mutation happens. The version is read from the application's
build manifest; the architecture is a fixed Debian identifier from the
recipe, or "auto" to use the host's.

Example:
    ```python
    from pathlib import Path
    from debpack.config import load_effective_config
    from debpack.metadata import resolve_metadata

    config = load_effective_config(Path("debpack.yaml"))
    metadata = resolve_metadata(config)
    print(metadata.archive_name())  # roextract_1.0.4_amd64.deb
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import platform
import re
from typing import Any

from debpack.exceptions import ConfigError
from debpack.versioning import read_manifest_version

__all__ = [
    "ARCHIVE_EXTENSION",
    "PackageMetadata",
    "host_architecture",
    "resolve_metadata",
    "validate_architecture",
    "validate_package_name",
]

ARCHIVE_EXTENSION = "deb"

_PACKAGE_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9+.-]+$")
_ARCHITECTURE_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")

# platform.machine() -> Debian architecture
_MACHINE_TO_DEBIAN_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armv6l": "armel",
    "i386": "i386",
    "i686": "i386",
    "ppc64le": "ppc64el",
    "s390x": "s390x",
    "riscv64": "riscv64",
}


@dataclass(frozen=True)
class PackageMetadata:
    """Identity of the package being built.

    Attributes:
        name: Debian package name (e.g., "roextract").
        version: Version string, used as-is (e.g., "1.0.4").
        architecture: Debian architecture (e.g., "amd64").
    """

    name: str
    version: str
    architecture: str

    def archive_name(self, extension: str = ARCHIVE_EXTENSION) -> str:
        """Return the archive file name, <name>_<version>_<arch>.<ext>.

        The name depends on nothing but the metadata, so rebuilding the
        same version overwrites the previous archive.
        """
        # dpkg drops the epoch from file names
        version = self.version.split(":", 1)[-1]
        return f"{self.name}_{version}_{self.architecture}.{extension}"


def validate_package_name(name: Any) -> str:
    """Check a package name against Debian policy.

    Raises:
        ConfigError: If the name is missing or not a valid package name.
    """
    if not isinstance(name, str) or not _PACKAGE_NAME_RE.match(name):
        raise ConfigError(
            f"Invalid package name {name!r}: must be at least two characters of "
            "lowercase letters, digits, '+', '-' or '.', starting with a "
            "letter or digit"
        )
    return name


def host_architecture() -> str:
    """Map the host machine type to a Debian architecture.

    Raises:
        ConfigError: If the machine type has no known Debian equivalent.
    """
    machine = platform.machine().lower()
    try:
        return _MACHINE_TO_DEBIAN_ARCH[machine]
    except KeyError:
        raise ConfigError(
            f"Cannot map host machine {machine!r} to a Debian architecture; "
            "set package.architecture explicitly"
        ) from None


def validate_architecture(architecture: Any) -> str:
    """Check an architecture identifier, resolving "auto" to the host's.

    Raises:
        ConfigError: If the identifier is missing or malformed.
    """
    if architecture == "auto":
        return host_architecture()
    if not isinstance(architecture, str) or not _ARCHITECTURE_RE.match(architecture):
        raise ConfigError(f"Invalid package architecture: {architecture!r}")
    return architecture


def resolve_metadata(config: dict[str, Any]) -> PackageMetadata:
    """Resolve package metadata from a loaded recipe.

    Pure read: nothing on disk is modified.

    Args:
        config: Merged recipe configuration from load_effective_config().

    Returns:
        The package metadata for this run.

    Raises:
        ConfigError: If the name or architecture is invalid, or the version
            source is missing or unparsable.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    package = config.get("package") or {}
    version_cfg = config.get("version") or {}

    name = validate_package_name(package.get("name"))
    architecture = validate_architecture(package.get("architecture", "amd64"))

    source = version_cfg.get("source")
    if not source:
        raise ConfigError("version.source is required (cargo, pyproject, file, literal)")

    manifest = version_cfg.get("manifest")
    found = read_manifest_version(
        source,
        manifest=Path(manifest) if manifest else None,
        value=version_cfg.get("value"),
    )

    if found.source == "literal":
        logger.warning(
            "VERSION",
            "Using a literal version from the recipe; prefer reading it from "
            "the build manifest so the two cannot drift",
        )
    else:
        logger.verbose("VERSION", f"Read version {found.version} from {found.manifest}")

    metadata = PackageMetadata(
        name=name, version=found.version, architecture=architecture
    )
    logger.verbose(
        "VERSION",
        f"Resolved {metadata.name} {metadata.version} ({metadata.architecture})",
    )
    return metadata

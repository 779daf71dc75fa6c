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

"""Public API return types for debpack.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Note:
    Only public API return types belong in this module. Domain types
    (like PackageMetadata and StagingTree) stay with their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from debpack.metadata import PackageMetadata


@dataclass(frozen=True)
class BuildResult:
    """Result from building (and optionally installing) a package.

    Attributes:
        metadata: Name, version, and architecture of the package.
        package_path: Path to the created .deb file.
        staging_dir: Staging directory used for the build.
        staging_removed: False if the staging directory could not be
            removed (a warning was logged).
        installed: True if installed, False if installation failed, None if
            installation was not requested.
        install_error: Installer error message when installed is False.
        status: "success", or "install_failed" when the archive was built
            but could not be installed.
    """

    metadata: PackageMetadata
    package_path: Path
    staging_dir: Path
    staging_removed: bool
    installed: bool | None
    install_error: str | None
    status: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a recipe.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        recipe_path: String path to the validated recipe file.
        package: Resolved package file name, when metadata could be resolved.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    recipe_path: str
    package: str | None = None

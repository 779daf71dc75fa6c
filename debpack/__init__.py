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

"""debpack - Debian packages from prebuilt binaries

A small CLI and library that turns a release binary into an installable
.deb: it reads the version from the application's own build manifest,
stages the binary and DEBIAN/control, normalizes permissions, runs
dpkg-deb, optionally installs the result, and always removes its staging
directory.

Quick Start:
Validate a recipe:

    $ debpack validate packages/debian/debpack.yaml

Build the package:

    $ debpack build packages/debian/debpack.yaml

For full CLI documentation:

    $ debpack --help
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Build Debian packages from prebuilt release binaries"

# Re-export commonly used functions for convenience
from debpack.config import load_effective_config
from debpack.core import build_deb
from debpack.exceptions import (
    ArchiveBuildError,
    CleanupError,
    ConfigError,
    DebpackError,
    InstallError,
    MissingArtifactError,
    PackagingError,
    StagingPermissionError,
)
from debpack.install import command_installer, install_archive
from debpack.metadata import PackageMetadata, resolve_metadata
from debpack.results import BuildResult, ValidationResult
from debpack.validation import validate_recipe

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "ArchiveBuildError",
    "BuildResult",
    "CleanupError",
    "ConfigError",
    "DebpackError",
    "InstallError",
    "MissingArtifactError",
    "PackageMetadata",
    "PackagingError",
    "StagingPermissionError",
    "ValidationResult",
    "build_deb",
    "command_installer",
    "install_archive",
    "load_effective_config",
    "resolve_metadata",
    "validate_recipe",
]

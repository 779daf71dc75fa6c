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

"""Exception hierarchy for debpack.

This module defines a custom exception hierarchy that allows library users
to distinguish between the ways a package build can fail:

- ConfigError: Recipe problems (YAML parse, missing fields, bad version source)
- PackagingError: Build-stage failures, with three specific subclasses:
    - MissingArtifactError: The prebuilt release binary (or another payload
      file) is not where the recipe says it is
    - StagingPermissionError: A file mode could not be set or verified
    - ArchiveBuildError: dpkg-deb is missing, exits non-zero, or produces
      no archive
- InstallError: The installer failed. The archive is still usable.
- CleanupError: The staging directory could not be removed. The pipeline
  never raises this to callers; it is reported as a warning.

All exceptions inherit from DebpackError, allowing users to catch every
debpack error with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from pathlib import Path
        from debpack.core import build_deb
        from debpack.exceptions import ConfigError, MissingArtifactError

        try:
            result = build_deb(Path("debpack.yaml"))
        except MissingArtifactError as e:
            print(f"Run the release build first: {e}")
        except ConfigError as e:
            print(f"Recipe error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "DebpackError",
    "ConfigError",
    "PackagingError",
    "MissingArtifactError",
    "StagingPermissionError",
    "ArchiveBuildError",
    "InstallError",
    "CleanupError",
]


class DebpackError(Exception):
    """Base exception for all debpack errors."""

    pass


class ConfigError(DebpackError):
    """Raised for recipe and metadata problems.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, empty files, non-mapping documents)
    - Missing or invalid recipe fields (package name, architecture)
    - Version sources that are missing or cannot be parsed
    - Control descriptors lacking required fields
    """

    pass


class PackagingError(DebpackError):
    """Raised for failures while assembling or archiving a package.

    Fatal for the current run. The staging directory is removed before the
    error reaches the caller.
    """

    pass


class MissingArtifactError(PackagingError):
    """Raised when the release binary or another payload source is absent.

    Example:
        ```python
        from debpack.exceptions import MissingArtifactError

        try:
            build_deb(Path("debpack.yaml"))
        except MissingArtifactError:
            print("Run 'cargo build --release' first")
        ```
    """

    pass


class StagingPermissionError(PackagingError):
    """Raised when the filesystem refuses a mode change in the staging tree,
    or when the staged modes do not match what dpkg-deb accepts.
    """

    pass


class ArchiveBuildError(PackagingError):
    """Raised when the archive builder fails.

    Attributes:
        returncode: Exit code of the archive builder, or None when the tool
            could not be started at all.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class InstallError(DebpackError):
    """Raised when installing a built archive fails.

    The archive itself stays valid and can be installed manually.

    Attributes:
        returncode: Exit code of the installer, or None when it could not
            be started.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class CleanupError(DebpackError):
    """Raised when the staging directory cannot be removed.

    Only raised by the low-level removal helper. The pipeline converts it
    into a warning because the archive is unaffected, but the residue will
    be removed again by the next run.
    """

    pass

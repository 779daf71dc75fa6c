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

"""Version resolution utilities for debpack.

Modules:
    manifest
        Reads the package version from Cargo.toml, pyproject.toml, a plain
        VERSION file, or a recipe literal, and checks it against Debian
        version syntax.
"""

from .manifest import (
    SUPPORTED_SOURCES,
    DiscoveredVersion,
    read_manifest_version,
    validate_debian_version,
)

__all__ = [
    "SUPPORTED_SOURCES",
    "DiscoveredVersion",
    "read_manifest_version",
    "validate_debian_version",
]

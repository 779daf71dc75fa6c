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

""".deb archive creation for debpack.

This module runs dpkg-deb against a normalized staging tree.

Design Principles:
    - The archive is named <name>_<version>_<arch>.deb from the metadata
      alone, so rebuilding a version replaces the earlier file
    - dpkg-deb writes to <archive>.partial, which is renamed into place only
      after a successful build; a failed build leaves no archive behind and
      does not destroy the previous one
    - No timeout unless the recipe sets build.timeout
    - Entries are recorded as root:root (--root-owner-group) unless disabled

Example:
    ```python
    from pathlib import Path
    from debpack.build.archiver import build_archive

    archive = build_archive(
        staging_root=Path("packages/debian/staging"),
        metadata=metadata,
        output_dir=Path("."),
    )
    print(archive)  # /work/roextract_1.0.4_amd64.deb
    ```
"""

from __future__ import annotations

import os
from pathlib import Path
import shutil
import subprocess

from debpack.exceptions import ArchiveBuildError
from debpack.metadata import PackageMetadata

DEFAULT_TOOL = "dpkg-deb"


def archive_path(metadata: PackageMetadata, output_dir: Path) -> Path:
    """Return where the archive for metadata is written."""
    return output_dir / metadata.archive_name()


def _find_tool(tool: str) -> str:
    """Resolve the archiver executable.

    Raises:
        ArchiveBuildError: If the tool is not installed.
    """
    found = shutil.which(tool)
    if found is None:
        raise ArchiveBuildError(
            f"{tool} not found on PATH. Install the dpkg package to build .deb files."
        )
    return found


def build_archive(
    staging_root: Path,
    metadata: PackageMetadata,
    output_dir: Path,
    tool: str = DEFAULT_TOOL,
    root_owner_group: bool = True,
    timeout: float | None = None,
) -> Path:
    """Build a .deb from a staging tree.

    Args:
        staging_root: Normalized staging root (contains DEBIAN/).
        metadata: Package metadata, used to name the archive.
        output_dir: Directory for the archive. Created if needed.
        tool: Archive builder executable. Default is "dpkg-deb".
        root_owner_group: Record root:root ownership for all entries.
            Default is True.
        timeout: Seconds before the tool is killed. Default is None (wait
            indefinitely).

    Returns:
        Path to the created archive.

    Raises:
        ArchiveBuildError: If the tool is missing, fails, times out, or
            produces no file.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    tool_path = _find_tool(tool)

    output_dir = output_dir.resolve()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise ArchiveBuildError(
            f"Could not create output directory {output_dir}: {err}"
        ) from err
    final_path = archive_path(metadata, output_dir)
    partial_path = final_path.with_name(final_path.name + ".partial")

    cmd = [tool_path]
    if root_owner_group:
        cmd.append("--root-owner-group")
    cmd += ["--build", str(staging_root), str(partial_path)]

    logger.verbose("ARCHIVE", f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
        for line in (result.stdout or "").strip().splitlines():
            logger.verbose("ARCHIVE", f"  {line}")

        if not partial_path.is_file():
            raise ArchiveBuildError(
                f"{tool} completed but no archive was written to {partial_path}"
            )
        os.replace(partial_path, final_path)

    except subprocess.CalledProcessError as err:
        error_msg = f"{tool} failed (exit code {err.returncode})"
        if err.stderr:
            error_msg += f"\n{err.stderr.strip()}"
        raise ArchiveBuildError(error_msg, returncode=err.returncode) from err
    except subprocess.TimeoutExpired as err:
        raise ArchiveBuildError(f"{tool} timed out after {err.timeout}s") from err
    except OSError as err:
        raise ArchiveBuildError(f"Failed to create {final_path.name}: {err}") from err
    finally:
        partial_path.unlink(missing_ok=True)

    logger.verbose("ARCHIVE", f"[OK] Created: {final_path.name}")

    return final_path

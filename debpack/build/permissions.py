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

"""File mode normalization for the staging tree.

dpkg-deb refuses to build when DEBIAN/ or the maintainer scripts have
unexpected modes, and a user's umask or a copied source file can easily
produce them. Every path in the tree is therefore set to an exact mode:

    directories (root, DEBIAN/, payload dirs)   0755
    installed binary                            0755
    maintainer scripts                          0755
    DEBIAN/control and other control files      0644
    other payload files                         0644 (or the recipe's mode)

Ownership is not changed here; the archiver asks dpkg-deb to record
root:root for every entry.
"""

from __future__ import annotations

import os
from pathlib import Path
import stat

from debpack.build.staging import StagingTree
from debpack.exceptions import StagingPermissionError

DIR_MODE = 0o755
EXECUTABLE_MODE = 0o755
SCRIPT_MODE = 0o755
CONTROL_FILE_MODE = 0o644
DATA_FILE_MODE = 0o644


def expected_modes(tree: StagingTree) -> dict[Path, int]:
    """Map every path in the staging tree to the mode it must have."""
    executables = set(tree.executables)
    scripts = set(tree.scripts)
    modes: dict[Path, int] = {tree.root: DIR_MODE}

    for dirpath, dirnames, filenames in os.walk(tree.root):
        base = Path(dirpath)
        for name in dirnames:
            modes[base / name] = DIR_MODE
        for name in filenames:
            path = base / name
            if path in executables:
                modes[path] = EXECUTABLE_MODE
            elif path in scripts:
                modes[path] = SCRIPT_MODE
            elif base == tree.control_dir:
                modes[path] = CONTROL_FILE_MODE
            else:
                modes[path] = tree.file_modes.get(path, DATA_FILE_MODE)

    return modes


def verify_permissions(tree: StagingTree) -> list[str]:
    """Compare the tree's modes against expected_modes().

    Returns:
        One message per mismatching path (empty when everything matches).
    """
    problems = []
    for path, mode in expected_modes(tree).items():
        actual = stat.S_IMODE(path.lstat().st_mode)
        if actual != mode:
            rel = path.relative_to(tree.root)
            problems.append(f"{rel}: mode {actual:04o}, expected {mode:04o}")
    return problems


def normalize_permissions(tree: StagingTree) -> None:
    """Set exact modes on every path in the staging tree.

    Args:
        tree: Populated staging tree.

    Raises:
        StagingPermissionError: If a chmod fails or the resulting modes
            still do not match.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()

    for path, mode in expected_modes(tree).items():
        try:
            os.chmod(path, mode)
        except OSError as err:
            raise StagingPermissionError(
                f"Cannot set mode {mode:04o} on {path}: {err}"
            ) from err
        logger.debug("PERMS", f"{mode:04o} {path.relative_to(tree.root)}")

    problems = verify_permissions(tree)
    if problems:
        raise StagingPermissionError(
            "Staging tree modes do not match after normalization:\n  "
            + "\n  ".join(problems)
        )

    logger.verbose("PERMS", "[OK] Staging tree permissions normalized")

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

"""Staging tree construction for debpack.

The staging tree mirrors the installed filesystem plus a DEBIAN/ directory
holding the control descriptor and maintainer scripts. It is the only input
dpkg-deb sees.

Layout for the roextract example:

    <staging_dir>/
        DEBIAN/
            control
        usr/
            bin/
                roextract          (copied from target/release/RoExtract)

Private Helpers:
    - _relative_target: Validate an in-package path
    - _copy_into: Copy one file into the tree, creating parents
    - _installed_size_kib: Compute Installed-Size for the payload

Design Principles:
    - The staging tree is owned by a single run and removed on every exit
      path by staging_area()
    - An existing staging directory (left by an interrupted run) is removed
      before the tree is populated
    - Inputs are checked before anything is created, so a missing release
      binary never produces a staging directory

Example:
    ```python
    from pathlib import Path
    from debpack.build.staging import populate_staging_tree, staging_area

    with staging_area(Path("packages/debian/staging")) as root:
        tree = populate_staging_tree(
            root,
            metadata,
            binary_path=Path("target/release/RoExtract"),
            package_cfg=config["package"],
        )
        ...
    # root no longer exists here
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
import math
import os
from pathlib import Path, PurePosixPath
import shutil
from typing import Any

from debpack.build.control import render_control
from debpack.exceptions import (
    CleanupError,
    ConfigError,
    MissingArtifactError,
    PackagingError,
)
from debpack.metadata import PackageMetadata

CONTROL_DIR_NAME = "DEBIAN"

MAINTAINER_SCRIPTS = ("preinst", "postinst", "prerm", "postrm", "config")


@dataclass(frozen=True)
class StagingTree:
    """A populated staging directory.

    Attributes:
        root: Staging root handed to dpkg-deb.
        control_dir: The DEBIAN/ directory.
        control_file: DEBIAN/control.
        executables: Installed files that must be executable (the binary).
        scripts: Maintainer scripts inside DEBIAN/.
        data_files: Other payload files (mode 0644 unless overridden).
        file_modes: Explicit modes from the recipe, by staged path.
    """

    root: Path
    control_dir: Path
    control_file: Path
    executables: tuple[Path, ...]
    scripts: tuple[Path, ...] = ()
    data_files: tuple[Path, ...] = ()
    file_modes: dict[Path, int] = field(default_factory=dict)


def _relative_target(target: str) -> PurePosixPath:
    """Turn an in-package path like /usr/bin/app into usr/bin/app.

    Raises:
        PackagingError: If the path is empty, escapes the tree, or points
            into DEBIAN/.
    """
    path = PurePosixPath(str(target).strip().lstrip("/"))
    if not path.parts or ".." in path.parts:
        raise PackagingError(f"Invalid install path: {target!r}")
    if path.parts[0] == CONTROL_DIR_NAME:
        raise PackagingError(f"Install path may not be inside DEBIAN/: {target!r}")
    return path


def _copy_into(source: Path, root: Path, target: PurePosixPath) -> Path:
    dest = root.joinpath(*target.parts)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)
    return dest


def _installed_size_kib(files: list[Path]) -> int:
    """Installed-Size in KiB, rounded up per file the way dpkg estimates it."""
    return sum(math.ceil(f.stat().st_size / 1024) for f in files)


def _parse_mode(raw: Any) -> int:
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw), 8)
    except ValueError as err:
        raise PackagingError(f"Invalid file mode: {raw!r}") from err


def remove_staging(root: Path) -> None:
    """Remove a staging directory if it exists.

    Raises:
        CleanupError: If the directory exists but cannot be removed.
    """
    if not root.exists():
        return
    try:
        shutil.rmtree(root)
    except OSError as err:
        raise CleanupError(f"Could not remove staging directory {root}: {err}") from err


def _missing_parents(root: Path) -> list[Path]:
    """Parents of root that do not exist yet, innermost first."""
    missing = []
    for parent in root.parents:
        if parent.exists():
            break
        missing.append(parent)
    return missing


def _remove_empty_parents(parents: list[Path]) -> None:
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    for parent in parents:
        try:
            parent.rmdir()
        except OSError as err:
            # Still in use, e.g. by another package's staging root
            logger.debug("CLEANUP", f"Keeping {parent}: {err}")
            return
        logger.debug("CLEANUP", f"Removed {parent}")


def check_staging_dir(staging_dir: Path, protected: Iterable[Path]) -> None:
    """Refuse a staging directory that would delete the user's own files.

    The staging root is wiped before and after every build, so it must not
    be, or contain, any input or output of the build.

    Args:
        staging_dir: Configured staging root.
        protected: Paths that must survive the build (recipe directory,
            output directory, binary, manifest, control file, payload
            sources, maintainer scripts).

    Raises:
        ConfigError: If staging_dir equals or contains a protected path.
    """
    root = staging_dir.resolve()
    for path in protected:
        resolved = Path(path).resolve()
        if resolved == root or root in resolved.parents:
            raise ConfigError(
                f"Staging directory {root} would remove {resolved}; "
                "set build.staging_dir to a dedicated directory"
            )


@contextmanager
def staging_area(root: Path) -> Iterator[Path]:
    """Acquire an empty staging directory and remove it on exit.

    Any leftover directory at root is removed first. On exit, normal or
    exceptional, the directory is removed again, together with any parent
    directories this call had to create. A removal failure is logged as a
    warning and never masks the original error.

    Args:
        root: Staging directory path.

    Yields:
        The freshly created staging root.

    Raises:
        PackagingError: If a leftover staging directory cannot be removed
            or the new one cannot be created.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    root = root.resolve()

    if root.exists():
        logger.verbose("STAGE", f"Removing leftover staging directory: {root}")
        try:
            remove_staging(root)
        except CleanupError as err:
            raise PackagingError(str(err)) from err

    created_parents = _missing_parents(root)
    try:
        root.mkdir(parents=True)
    except OSError as err:
        raise PackagingError(f"Could not create staging directory {root}: {err}") from err

    logger.verbose("STAGE", f"Created staging directory: {root}")

    try:
        yield root
    finally:
        try:
            remove_staging(root)
            logger.verbose("CLEANUP", f"[OK] Removed staging directory: {root}")
        except CleanupError as err:
            logger.warning("CLEANUP", f"{err}; it will be removed by the next run")
        else:
            _remove_empty_parents(created_parents)


def check_artifacts(
    binary_path: Path,
    files: list[dict[str, Any]] | None = None,
    scripts: dict[str, str] | None = None,
) -> None:
    """Verify that every payload source exists before staging starts.

    Raises:
        MissingArtifactError: If the release binary or any extra file or
            maintainer script is missing.
        PackagingError: If a maintainer script name is not recognized.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()

    if not binary_path.is_file():
        raise MissingArtifactError(
            f"Release binary not found: {binary_path}\n"
            "Build the application in release mode before packaging."
        )
    if not os.access(binary_path, os.X_OK):
        logger.warning(
            "STAGE", f"Release binary is not executable: {binary_path}"
        )

    for entry in files or []:
        source = Path(entry.get("source", ""))
        if not source.is_file():
            raise MissingArtifactError(f"Payload file not found: {source}")

    for name, path in (scripts or {}).items():
        if name not in MAINTAINER_SCRIPTS:
            raise PackagingError(
                f"Unknown maintainer script {name!r}. "
                f"Supported: {', '.join(MAINTAINER_SCRIPTS)}"
            )
        if not Path(path).is_file():
            raise MissingArtifactError(f"Maintainer script not found: {path}")


def populate_staging_tree(
    root: Path,
    metadata: PackageMetadata,
    binary_path: Path,
    package_cfg: dict[str, Any],
    install_path: str | None = None,
    control_template: Path | None = None,
    scripts: dict[str, str] | None = None,
    files: list[dict[str, Any]] | None = None,
) -> StagingTree:
    """Populate an empty staging root with the payload and control data.

    Args:
        root: Empty staging root, as yielded by staging_area().
        metadata: Resolved package metadata.
        binary_path: Prebuilt release binary.
        package_cfg: Recipe package section (used for the control file).
        install_path: Path of the binary inside the package.
            Default: usr/bin/<package name>
        control_template: Control file to copy instead of generating one.
        scripts: Maintainer scripts, by name (postinst, prerm, ...).
        files: Extra payload files as {source, target, mode} dicts.

    Returns:
        Description of the populated tree.

    Raises:
        MissingArtifactError: If the binary or another source is missing.
        PackagingError: If an install path is invalid or copying fails.
        ConfigError: If the control descriptor is invalid.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()

    check_artifacts(binary_path, files, scripts)

    control_dir = root / CONTROL_DIR_NAME
    target = _relative_target(install_path or f"usr/bin/{metadata.name}")
    data_files: list[Path] = []
    script_paths: list[Path] = []
    file_modes: dict[Path, int] = {}

    try:
        control_dir.mkdir(parents=True, exist_ok=True)

        staged_binary = _copy_into(binary_path, root, target)
        logger.verbose("STAGE", f"Copied binary: {binary_path.name} -> /{target}")

        for entry in files or []:
            if not entry.get("target"):
                raise PackagingError(f"files entry is missing a target: {entry}")
            source = Path(entry["source"])
            dest = _copy_into(source, root, _relative_target(entry["target"]))
            data_files.append(dest)
            if "mode" in entry:
                file_modes[dest] = _parse_mode(entry["mode"])
            logger.verbose("STAGE", f"Copied file: {source.name} -> /{entry['target']}")

        for name, path in (scripts or {}).items():
            dest = control_dir / name
            shutil.copyfile(path, dest)
            script_paths.append(dest)
            logger.verbose("STAGE", f"Copied maintainer script: {name}")
    except OSError as err:
        raise PackagingError(f"Failed to populate staging tree: {err}") from err

    installed_size = _installed_size_kib([staged_binary, *data_files])
    control_text = render_control(
        metadata,
        package_cfg,
        template_path=control_template,
        installed_size=installed_size,
    )
    control_file = control_dir / "control"
    try:
        control_file.write_text(control_text, encoding="utf-8")
    except OSError as err:
        raise PackagingError(f"Failed to write {control_file}: {err}") from err
    logger.verbose("STAGE", "[OK] Wrote DEBIAN/control")

    return StagingTree(
        root=root,
        control_dir=control_dir,
        control_file=control_file,
        executables=(staged_binary,),
        scripts=tuple(script_paths),
        data_files=tuple(data_files),
        file_modes=file_modes,
    )

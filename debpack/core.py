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

"""Core orchestration for debpack.

This module runs the complete build for one recipe:

    resolve metadata -> [prebuild] -> stage -> normalize permissions
        -> archive -> [install] -> clean up

Stages from staging through installation run inside staging_area(), so the
staging directory is removed whether the run finishes, fails while staging,
fails in dpkg-deb, or fails to install. Cleanup problems are warnings.

Failure policy:

- ConfigError, MissingArtifactError, StagingPermissionError and
  ArchiveBuildError abort the run (after cleanup) and propagate
- An install failure is recorded in the result with status
  "install_failed"; the archive stays on disk for manual installation
- Nothing is retried

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from debpack.core import build_deb

        result = build_deb(Path("packages/debian/debpack.yaml"))
        print(result.package_path)  # roextract_1.0.4_amd64.deb
        ```

    With an injected installer:
        ```python
        installed = []
        result = build_deb(
            Path("debpack.yaml"),
            install=True,
            installer=installed.append,
        )
        ```
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
import subprocess
from typing import Any

from debpack.build.archiver import DEFAULT_TOOL, build_archive
from debpack.build.permissions import normalize_permissions
from debpack.build.staging import (
    check_artifacts,
    check_staging_dir,
    populate_staging_tree,
    staging_area,
)
from debpack.config import load_effective_config
from debpack.exceptions import ConfigError, InstallError, PackagingError
from debpack.install import DEFAULT_INSTALL_COMMAND, Installer, command_installer
from debpack.logging import get_global_logger
from debpack.metadata import PackageMetadata, resolve_metadata
from debpack.results import BuildResult


def run_prebuild(command: Sequence[str], workdir: Path) -> None:
    """Run the recipe's release build command (e.g. cargo build --release).

    Args:
        command: Command line to run.
        workdir: Directory to run it in.

    Raises:
        PackagingError: If the command cannot be started or exits non-zero.
    """
    logger = get_global_logger()
    if isinstance(command, str):
        command = command.split()
    logger.verbose("BUILD", f"Running in {workdir}: {' '.join(command)}")

    try:
        subprocess.run(list(command), cwd=workdir, check=True)
    except subprocess.CalledProcessError as err:
        raise PackagingError(
            f"Prebuild command failed (exit code {err.returncode}): {' '.join(command)}"
        ) from err
    except OSError as err:
        raise PackagingError(f"Could not run prebuild command: {err}") from err


def _default_staging_dir(config: dict[str, Any], metadata: PackageMetadata) -> Path:
    recipe_dir = Path(config.get("_recipe_dir", "."))
    return recipe_dir / ".debpack-staging" / metadata.name


def protected_paths(
    config: dict[str, Any],
    binary_path: Path | None = None,
    output_dir: Path | None = None,
) -> list[Path]:
    """Paths a build reads or writes that the staging root must not hold.

    Args:
        config: Effective recipe configuration.
        binary_path: Binary override. Default: recipe binary.path
        output_dir: Output override. Default: recipe build.output_dir, or
            the current working directory.
    """
    version_cfg = config.get("version") or {}
    binary_cfg = config.get("binary") or {}
    control_cfg = config.get("control") or {}
    build_cfg = config.get("build") or {}

    candidates: list[Any] = [
        config.get("_recipe_dir"),
        output_dir or build_cfg.get("output_dir") or Path.cwd(),
        binary_path or binary_cfg.get("path"),
        control_cfg.get("path"),
        version_cfg.get("manifest"),
        build_cfg.get("workdir"),
    ]
    scripts = control_cfg.get("scripts")
    if isinstance(scripts, dict):
        candidates.extend(scripts.values())
    files = config.get("files")
    if isinstance(files, list):
        candidates.extend(e.get("source") for e in files if isinstance(e, dict))

    return [Path(c) for c in candidates if c]


def _resolve_installer(
    config: dict[str, Any], install: bool | None, installer: Installer | None
) -> Installer | None:
    install_cfg = config.get("install") or {}
    if install is None:
        install = bool(install_cfg.get("enabled", False))
    if not install:
        return None
    if installer is not None:
        return installer
    return command_installer(install_cfg.get("command") or DEFAULT_INSTALL_COMMAND)


def build_deb(
    recipe_path: Path,
    *,
    binary_path: Path | None = None,
    output_dir: Path | None = None,
    install: bool | None = None,
    installer: Installer | None = None,
    prebuild: bool = False,
) -> BuildResult:
    """Build a .deb from a recipe and a prebuilt release binary.

    This is the main entry point for the 'debpack build' command. It:

    1. Loads the recipe and resolves name, version, and architecture
    2. Optionally runs the recipe's prebuild command
    3. Stages the binary, extra files, and control data
    4. Normalizes file modes
    5. Runs dpkg-deb to write <name>_<version>_<arch>.deb
    6. Optionally installs the archive
    7. Removes the staging directory (always)

    Args:
        recipe_path: Path to the recipe YAML file.
        binary_path: Release binary to package. Default: recipe binary.path
        output_dir: Directory for the archive. Default: recipe
            build.output_dir, or the current working directory.
        install: Install after building. Default: recipe install.enabled
        installer: Installer capability to use when installing. Default:
            runs the recipe's install.command (sudo apt install).
        prebuild: Run build.prebuild before staging. Default is False.

    Returns:
        BuildResult with the archive path and install outcome.

    Raises:
        ConfigError: If the recipe or version source is invalid, or the
            staging directory overlaps an input or output of the build.
        MissingArtifactError: If the release binary or another payload file
            is missing.
        StagingPermissionError: If file modes cannot be normalized.
        ArchiveBuildError: If dpkg-deb fails.
        PackagingError: If prebuild or staging fails for another reason.
    """
    logger = get_global_logger()
    total = 6 if prebuild else 5
    step = 0

    def _step(message: str) -> None:
        nonlocal step
        step += 1
        logger.step(step, total, message)

    _step("Resolving package metadata...")
    config = load_effective_config(recipe_path)
    metadata = resolve_metadata(config)

    package_cfg = config.get("package") or {}
    binary_cfg = config.get("binary") or {}
    control_cfg = config.get("control") or {}
    build_cfg = config.get("build") or {}
    recipe_dir = Path(config["_recipe_dir"])

    if binary_path is None:
        raw = binary_cfg.get("path")
        if not raw:
            raise ConfigError("binary.path is required (or pass binary_path)")
        binary_path = Path(raw)
    binary_path = binary_path.resolve()

    if output_dir is None:
        output_dir = Path(build_cfg.get("output_dir") or Path.cwd())

    staging_dir = Path(
        build_cfg.get("staging_dir") or _default_staging_dir(config, metadata)
    )
    # The staging root is wiped, so it may not overlap any input or output
    check_staging_dir(staging_dir, protected_paths(config, binary_path, output_dir))
    control_template = Path(control_cfg["path"]) if control_cfg.get("path") else None
    active_installer = _resolve_installer(config, install, installer)

    if prebuild:
        _step("Running prebuild command...")
        command = build_cfg.get("prebuild")
        if not command:
            raise ConfigError("--prebuild requested but build.prebuild is not set")
        run_prebuild(command, Path(build_cfg.get("workdir") or recipe_dir))

    # Fail before creating anything if the release build has not run
    check_artifacts(binary_path, config.get("files"), control_cfg.get("scripts"))

    installed: bool | None = None
    install_error: str | None = None

    with staging_area(staging_dir) as root:
        _step("Staging package tree...")
        tree = populate_staging_tree(
            root,
            metadata,
            binary_path=binary_path,
            package_cfg=package_cfg,
            install_path=binary_cfg.get("install_path"),
            control_template=control_template,
            scripts=control_cfg.get("scripts"),
            files=config.get("files"),
        )

        _step("Normalizing permissions...")
        normalize_permissions(tree)

        _step(f"Building {metadata.archive_name()}...")
        package_path = build_archive(
            root,
            metadata,
            output_dir,
            tool=build_cfg.get("tool") or DEFAULT_TOOL,
            root_owner_group=bool(build_cfg.get("root_owner_group", True)),
            timeout=build_cfg.get("timeout"),
        )

        if active_installer is not None:
            _step("Installing package...")
            try:
                active_installer(package_path)
                installed = True
            except InstallError as err:
                installed = False
                install_error = str(err)
                logger.warning(
                    "INSTALL",
                    f"{err}. The package is still available at {package_path}",
                )
        else:
            _step("Skipping installation")

    staging_removed = not staging_dir.exists()
    logger.verbose("BUILD", f"[OK] Package created: {package_path}")

    return BuildResult(
        metadata=metadata,
        package_path=package_path,
        staging_dir=staging_dir.resolve(),
        staging_removed=staging_removed,
        installed=installed,
        install_error=install_error,
        status="install_failed" if installed is False else "success",
    )

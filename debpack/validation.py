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

"""Recipe validation module.

Checks a recipe without staging or building anything. Useful for quick
feedback while writing a recipe and as a CI pre-check.

Validation Checks:

- YAML syntax is valid and the document is a mapping
- apiVersion is supported
- package.name and package.architecture are valid
- maintainer and description are present (unless a control file is given)
- The version source is configured and resolvable
- binary.path is configured (a missing file is only a warning, since the
  release build may not have run yet)
- Control file, maintainer scripts, and extra files exist
- build.staging_dir does not equal or contain any of those files, the
  recipe directory, or the output directory

Example:
    Validate a recipe and handle results:
        ```python
        from pathlib import Path
        from debpack.validation import validate_recipe

        result = validate_recipe(Path("debpack.yaml"))
        if result.status == "valid":
            print(f"Would build {result.package}")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path

from debpack.build.staging import MAINTAINER_SCRIPTS, check_staging_dir
from debpack.config import load_effective_config
from debpack.core import protected_paths
from debpack.exceptions import ConfigError
from debpack.metadata import resolve_metadata
from debpack.results import ValidationResult

__all__ = ["SUPPORTED_API_VERSIONS", "validate_recipe"]

SUPPORTED_API_VERSIONS = ("debpack/v1",)


def validate_recipe(recipe_path: Path) -> ValidationResult:
    """Validate a recipe file without building anything.

    Args:
        recipe_path: Path to the recipe YAML file to validate.

    Returns:
        ValidationResult with status "valid" or "invalid", the error and
            warning messages, and the archive name when metadata resolved.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []
    package_name: str | None = None

    def _result() -> ValidationResult:
        return ValidationResult(
            status="invalid" if errors else "valid",
            errors=errors,
            warnings=warnings,
            recipe_path=str(recipe_path),
            package=package_name,
        )

    logger.verbose("VALIDATE", f"Validating recipe: {recipe_path}")

    try:
        config = load_effective_config(recipe_path)
    except ConfigError as err:
        errors.append(str(err))
        return _result()

    api_version = config.get("apiVersion")
    if api_version is None:
        errors.append("Missing required field: apiVersion")
    elif api_version not in SUPPORTED_API_VERSIONS:
        errors.append(
            f"Unsupported apiVersion: {api_version!r}. "
            f"Supported: {', '.join(SUPPORTED_API_VERSIONS)}"
        )

    package = config.get("package")
    if not isinstance(package, dict):
        errors.append("Missing required section: package")
        return _result()

    control = config.get("control") or {}
    control_path = control.get("path")
    if control_path and not Path(control_path).is_file():
        errors.append(f"Control file not found: {control_path}")
    if not control_path:
        for key in ("maintainer", "description"):
            if not package.get(key):
                errors.append(f"Missing package.{key} (required without control.path)")

    try:
        metadata = resolve_metadata(config)
        package_name = metadata.archive_name()
        logger.verbose("VALIDATE", f"Resolved {package_name}")
    except ConfigError as err:
        errors.append(str(err))

    binary = config.get("binary") or {}
    if not binary.get("path"):
        errors.append("Missing required field: binary.path")
    elif not Path(binary["path"]).is_file():
        warnings.append(
            f"Release binary not found: {binary['path']} (build it before packaging)"
        )

    scripts = control.get("scripts") or {}
    if not isinstance(scripts, dict):
        errors.append("control.scripts must be a mapping of script name to path")
        scripts = {}
    for name, path in scripts.items():
        if name not in MAINTAINER_SCRIPTS:
            errors.append(f"Unknown maintainer script: {name}")
        elif not Path(path).is_file():
            errors.append(f"Maintainer script not found: {path}")

    files = config.get("files") or []
    if not isinstance(files, list):
        errors.append("files must be a list")
        files = []
    for i, entry in enumerate(files):
        if not isinstance(entry, dict) or not entry.get("source") or not entry.get("target"):
            errors.append(f"files[{i}] needs both source and target")
        elif not Path(entry["source"]).is_file():
            errors.append(f"files[{i}] source not found: {entry['source']}")

    staging_dir = (config.get("build") or {}).get("staging_dir")
    if staging_dir:
        try:
            check_staging_dir(Path(staging_dir), protected_paths(config))
        except ConfigError as err:
            errors.append(str(err))

    install = config.get("install") or {}
    if install.get("enabled") and not install.get("command"):
        warnings.append("install.enabled without install.command; using 'sudo apt install'")

    return _result()

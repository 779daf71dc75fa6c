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

"""Recipe loading and merging for debpack.

A recipe is a YAML file describing one Debian package: its name and
architecture, where its version comes from, which prebuilt binary goes into
it, and how the archive is built and (optionally) installed.

Two layers make up the effective configuration:

1. defaults/org.yaml, optional, found in the recipe directory or any of its
   parents. Holds what many packages share: maintainer, dpkg-deb options,
   the install command.
2. The recipe itself, which always wins over the defaults.

Layers are combined key by key. Nested mappings merge recursively; a list
or scalar in the recipe replaces the default outright, so a recipe's
files: list is never concatenated with one from the defaults.

Relative paths are anchored at the recipe's directory rather than the
working directory, so `debpack build packages/debian/debpack.yaml` behaves
the same from anywhere. Only these keys are rewritten:

    version.manifest          control.scripts.<name>
    binary.path               files[].source
    control.path              build.staging_dir
    build.output_dir          build.workdir

binary.install_path and files[].target are paths inside the package and are
left alone.

Example:
    ```python
    from pathlib import Path
    from debpack.config import load_effective_config

    cfg = load_effective_config(Path("packages/debian/debpack.yaml"))
    cfg["binary"]["path"]  # '/home/me/roextract/target/release/RoExtract'
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from debpack.exceptions import ConfigError

DEFAULTS_DIR_NAME = "defaults"
DEFAULTS_FILE_NAME = "org.yaml"

_SECTION_PATH_KEYS = (
    ("version", "manifest"),
    ("binary", "path"),
    ("control", "path"),
    ("build", "staging_dir"),
    ("build", "output_dir"),
    ("build", "workdir"),
)


def _load_yaml_file(p: Path) -> Any:
    """Parse one YAML file.

    Raises:
        ConfigError: If the file is missing, unparsable, or empty.
    """
    if not p.is_file():
        raise ConfigError(f"file not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    except OSError as err:
        raise ConfigError(f"Cannot read {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


def _load_mapping(p: Path) -> dict[str, Any]:
    data = _load_yaml_file(p)
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {p}")
    return data


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return base updated with overlay, merging nested mappings.

    Lists and scalars from overlay replace the base value. Neither input is
    modified.
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge_dicts(current, value)
        else:
            merged[key] = value
    return merged


def _find_defaults_root(start_dir: Path) -> Path | None:
    """Return the nearest defaults/ directory holding org.yaml, if any."""
    for directory in (start_dir, *start_dir.parents):
        defaults_dir = directory / DEFAULTS_DIR_NAME
        if (defaults_dir / DEFAULTS_FILE_NAME).is_file():
            return defaults_dir
    return None


def _resolve_path_value(raw: Any, base_dir: Path) -> Any:
    if not isinstance(raw, str) or not raw:
        return raw
    path = Path(raw).expanduser()
    if path.is_absolute():
        return str(path)
    return str((base_dir / path).resolve())


def _resolve_known_paths(cfg: dict[str, Any], recipe_dir: Path) -> None:
    """Anchor the recipe's file-system paths at recipe_dir, in place."""
    for section, key in _SECTION_PATH_KEYS:
        block = cfg.get(section)
        if isinstance(block, dict) and key in block:
            block[key] = _resolve_path_value(block[key], recipe_dir)

    control = cfg.get("control")
    scripts = control.get("scripts") if isinstance(control, dict) else None
    if isinstance(scripts, dict):
        for name, value in scripts.items():
            scripts[name] = _resolve_path_value(value, recipe_dir)

    files = cfg.get("files")
    if isinstance(files, list):
        for entry in files:
            if isinstance(entry, dict) and "source" in entry:
                entry["source"] = _resolve_path_value(entry["source"], recipe_dir)


def _debug_dump(title: str, data: dict[str, Any]) -> None:
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    logger.debug("CONFIG", f"--- {title} ---")
    dumped = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    for line in dumped.splitlines():
        if line.strip():
            logger.debug("CONFIG", line)


def load_effective_config(recipe_path: Path) -> dict[str, Any]:
    """Load a recipe merged over any organization defaults.

    Args:
        recipe_path: Path to the recipe YAML file.

    Returns:
        The merged configuration with known paths made absolute. The
            "_recipe_dir" key holds the absolute recipe directory.

    Raises:
        ConfigError: If the recipe or defaults file is missing, unparsable,
            empty, or not a mapping.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    recipe_path = recipe_path.resolve()
    recipe_dir = recipe_path.parent

    logger.verbose("CONFIG", f"Loading recipe: {recipe_path}")
    recipe = _load_mapping(recipe_path)

    layers: list[tuple[str, dict[str, Any]]] = []
    defaults_root = _find_defaults_root(recipe_dir)
    if defaults_root is not None:
        defaults_path = defaults_root / DEFAULTS_FILE_NAME
        logger.verbose("CONFIG", f"Using defaults: {defaults_path}")
        layers.append((DEFAULTS_FILE_NAME, _load_mapping(defaults_path)))
    layers.append((recipe_path.name, recipe))

    merged: dict[str, Any] = {}
    for name, layer in layers:
        _debug_dump(f"Content from {name}", layer)
        merged = _deep_merge_dicts(merged, layer)

    logger.verbose("CONFIG", f"Merged {len(layers)} layer(s)")
    _debug_dump("Effective configuration", merged)

    _resolve_known_paths(merged, recipe_dir)
    merged["_recipe_dir"] = str(recipe_dir)

    return merged

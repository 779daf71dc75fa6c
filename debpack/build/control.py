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

"""DEBIAN/control generation for debpack.

The control descriptor either comes from a file in the source tree or is
generated from the recipe's package section.

Template files are copied as-is except for these placeholders, which are
replaced with resolved values:

- ${name}
- ${version}
- ${architecture}
- ${maintainer}
- ${description}

A control file without placeholders is therefore copied verbatim. After
rendering, the descriptor is parsed back and checked: the required fields
must be present, and Package/Version/Architecture should agree with the
resolved metadata (a disagreement is reported as a warning, since it usually
means a version was bumped in the manifest but not in a static control file).

Example:
    ```python
    from debpack.build.control import render_control
    from debpack.metadata import PackageMetadata

    metadata = PackageMetadata("roextract", "1.0.4", "amd64")
    text = render_control(
        metadata,
        {"maintainer": "Jane <jane@example.com>", "description": "Extractor"},
    )
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from debpack.exceptions import ConfigError
from debpack.metadata import PackageMetadata

REQUIRED_FIELDS = ("Package", "Version", "Architecture", "Maintainer", "Description")

# recipe key -> control field, in output order
_OPTIONAL_FIELDS = (
    ("section", "Section"),
    ("priority", "Priority"),
    ("homepage", "Homepage"),
)


def _format_description(description: str) -> str:
    """Format a possibly multi-line description as a control field value.

    The first line is the synopsis; following lines become the extended
    description, indented by one space, with blank lines written as " .".
    """
    lines = description.strip().splitlines()
    out = [lines[0].strip()]
    for line in lines[1:]:
        out.append(" ." if not line.strip() else f" {line.rstrip()}")
    return "\n".join(out)


def _substitute_placeholders(text: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        text = text.replace("${" + key + "}", value)
    return text


def parse_control(text: str) -> dict[str, str]:
    """Parse a control descriptor into a field -> value mapping.

    Continuation lines (starting with whitespace) are appended to the
    preceding field's value.

    Raises:
        ConfigError: If a line is neither a field nor a continuation.
    """
    fields: dict[str, str] = {}
    current: str | None = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        if line[0] in " \t":
            if current is None:
                raise ConfigError(
                    f"control line {lineno}: continuation line without a field"
                )
            fields[current] += "\n" + line
            continue
        if ":" not in line:
            raise ConfigError(f"control line {lineno}: expected 'Field: value'")
        key, _, value = line.partition(":")
        current = key.strip()
        fields[current] = value.strip()

    return fields


def check_control(fields: dict[str, str], metadata: PackageMetadata) -> None:
    """Check a parsed control descriptor against the resolved metadata.

    Raises:
        ConfigError: If a required field is missing or empty.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()

    missing = [f for f in REQUIRED_FIELDS if not fields.get(f)]
    if missing:
        raise ConfigError(f"control descriptor is missing: {', '.join(missing)}")

    expected = {
        "Package": metadata.name,
        "Version": metadata.version,
        "Architecture": metadata.architecture,
    }
    for field, value in expected.items():
        if fields[field] != value:
            logger.warning(
                "STAGE",
                f"control {field} is {fields[field]!r} but the package is built "
                f"as {value!r}",
            )


def render_control(
    metadata: PackageMetadata,
    package_cfg: dict[str, Any],
    template_path: Path | None = None,
    installed_size: int | None = None,
) -> str:
    """Produce the text of DEBIAN/control.

    Args:
        metadata: Resolved package metadata.
        package_cfg: The recipe's package section (maintainer, description,
            optional section/priority/homepage).
        template_path: Control file to copy/render instead of generating one.
        installed_size: Payload size in KiB, written as Installed-Size when
            the descriptor is generated.

    Returns:
        Control file text, always ending in a newline.

    Raises:
        ConfigError: If the template is missing or the result lacks a
            required field.
    """
    from debpack.logging import get_global_logger

    logger = get_global_logger()
    maintainer = str(package_cfg.get("maintainer") or "").strip()
    description = str(package_cfg.get("description") or "").strip()

    if template_path is not None:
        if not template_path.exists():
            raise ConfigError(f"Control file not found: {template_path}")
        logger.verbose("STAGE", f"Rendering control file: {template_path}")
        text = _substitute_placeholders(
            template_path.read_text(encoding="utf-8"),
            {
                "name": metadata.name,
                "version": metadata.version,
                "architecture": metadata.architecture,
                "maintainer": maintainer,
                "description": _format_description(description) if description else "",
            },
        )
    else:
        logger.verbose("STAGE", "Generating control file from recipe")
        lines = [
            f"Package: {metadata.name}",
            f"Version: {metadata.version}",
            f"Architecture: {metadata.architecture}",
            f"Maintainer: {maintainer}",
        ]
        if installed_size is not None:
            lines.append(f"Installed-Size: {installed_size}")
        for key, field in _OPTIONAL_FIELDS:
            value = package_cfg.get(key)
            if value:
                lines.append(f"{field}: {value}")
        if description:
            lines.append(f"Description: {_format_description(description)}")
        else:
            lines.append("Description:")
        text = "\n".join(lines)

    if not text.endswith("\n"):
        text += "\n"

    check_control(parse_control(text), metadata)
    return text
